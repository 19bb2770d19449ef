"""Channel allocation and feature toggle management"""

from collections.abc import Iterable, Mapping
from typing import Any

from ..config.defaults import AllocationParams
from ..config.validation import ConfigValidator, parse_channel
from ..errors import (
    RedistributionError,
    UnknownChannelError,
    ValidationError,
    ValidationIssue,
)
from ..logging.config import get_allocation_logger, log_allocation_change
from ..models.distribution import CHANNEL_ORDER, Channel

logger = get_allocation_logger(__name__)


def redistribute(amount: int, peers: Iterable[Channel]) -> dict[Channel, int]:
    """
    Split ``amount`` percentage points across ``peers``.

    Each peer receives ``amount // len(peers)``; the remainder is handed out
    one point at a time in channel declaration order.

    Args:
        amount: Non-negative integer to split
        peers: Channels receiving a share

    Returns:
        Mapping of peer to delta, summing exactly to ``amount``

    Raises:
        ValidationError: Negative amount or empty peer set
        RedistributionError: Deltas do not sum to ``amount``
    """
    peer_set = set(peers)
    ordered = [c for c in CHANNEL_ORDER if c in peer_set]

    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise ValidationError(
            "Redistribution amount must be a non-negative integer",
            issues=[ValidationIssue(field="amount", message="Invalid amount", value=amount)]
        )
    if not ordered:
        raise ValidationError(
            "Redistribution requires at least one peer",
            issues=[ValidationIssue(field="peers", message="Empty peer set", value=[])]
        )

    share, remainder = divmod(amount, len(ordered))
    deltas = {peer: share for peer in ordered}
    for peer in ordered[:remainder]:
        deltas[peer] += 1

    if sum(deltas.values()) != amount:
        raise RedistributionError(
            f"Redistribution of {amount} produced {sum(deltas.values())}",
            amount=amount,
            deltas={c.value: d for c, d in deltas.items()}
        )

    return deltas


class AllocationManager:
    """
    Owns the channel percentage map and per-channel enable flags.

    Every mutation is validated before it is committed, so readers never
    observe a map that does not sum to 100.
    """

    def __init__(self, params: AllocationParams = AllocationParams()):
        initial = {c: getattr(params, c.value) for c in CHANNEL_ORDER}
        self._allocations: dict[Channel, int] = self._validated(initial)
        self._features: dict[Channel, bool] = {c: True for c in CHANNEL_ORDER}

    @staticmethod
    def _validated(allocations: Mapping[Any, Any]) -> dict[Channel, int]:
        issues = ConfigValidator.validate_allocations(allocations)
        if issues:
            raise ValidationError(
                issues[0].message if len(issues) == 1 else "Invalid allocations",
                issues=issues,
                context={"allocations": dict(allocations) if isinstance(allocations, Mapping) else allocations}
            )

        result = {c: 0 for c in CHANNEL_ORDER}
        for key, value in allocations.items():
            result[parse_channel(key)] = int(value)
        return result

    def set_allocations(self, allocations: Mapping[Any, Any]) -> dict[Channel, int]:
        """
        Replace the allocation map.

        Channels missing from ``allocations`` are set to 0.

        Raises:
            ValidationError: Unknown channel, bad value, or sum not 100
        """
        new_allocations = self._validated(allocations)

        before = self.get_allocations()
        self._allocations = new_allocations
        log_allocation_change(logger, "set_allocations", _as_plain(before), _as_plain(new_allocations))

        return self.get_allocations()

    def set_feature_enabled(self, channel: Any, enabled: bool) -> None:
        """
        Enable or disable a channel.

        Disabling a channel that holds a non-zero allocation moves its share
        to the remaining enabled channels. The last enabled channel keeps its
        share when disabled.
        """
        try:
            target = parse_channel(channel)
        except ValueError:
            raise UnknownChannelError(channel) from None

        enabled = bool(enabled)
        if self._features[target] == enabled:
            return

        if enabled:
            self._features[target] = True
            logger.info("Channel enabled", channel=target.value)
            return

        freed = self._allocations[target]
        peers = [c for c in CHANNEL_ORDER if c != target and self._features[c]]

        if freed == 0 or not peers:
            self._features[target] = False
            logger.info("Channel disabled", channel=target.value, allocation_kept=freed)
            return

        deltas = redistribute(freed, peers)

        updated = dict(self._allocations)
        updated[target] = 0
        for peer, delta in deltas.items():
            updated[peer] += delta

        residual = 100 - sum(updated.values())
        if residual:
            logger.warning("Correcting allocation residual", residual=residual, peer=peers[0].value)
            updated[peers[0]] += residual

        before = self.get_allocations()
        self._allocations = updated
        self._features[target] = False

        log_allocation_change(
            logger,
            f"disable:{target.value}",
            _as_plain(before),
            _as_plain(updated),
            context={"freed": freed, "peers": [p.value for p in peers]}
        )

    def get_allocations(self) -> dict[Channel, int]:
        return dict(self._allocations)

    def get_features(self) -> dict[Channel, bool]:
        return dict(self._features)

    def is_enabled(self, channel: Any) -> bool:
        try:
            return self._features[parse_channel(channel)]
        except ValueError:
            raise UnknownChannelError(channel) from None

    def enabled_channels(self) -> list[Channel]:
        """Enabled channels in fixed execution order."""
        return [c for c in CHANNEL_ORDER if self._features[c]]


def _as_plain(allocations: Mapping[Channel, int]) -> dict[str, int]:
    return {c.value: v for c, v in allocations.items()}
