"""
Data models for fee distribution.

Channels, per-cycle results and the cumulative statistics that are folded
from every cycle and handed to the stats store.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..utils.time import utc_now


class Channel(str, Enum):
    """Fee spending channels, declared in the fixed tie-break order."""
    MARKET_MAKING = "market_making"
    BUYBACK_BURN = "buyback_burn"
    LIQUIDITY = "liquidity"
    CREATOR_REVENUE = "creator_revenue"


CHANNEL_ORDER: tuple[Channel, ...] = tuple(Channel)


@dataclass
class ChannelResult:
    """Outcome of one channel action."""
    channel: Channel
    amount: int = 0                      # Amount actually spent/routed
    success: bool = False
    action: Optional[str] = None         # buy, sell, retained, lp_add, ...
    signature: Optional[str] = None
    burned: int = 0                      # Tokens burned (buyback channel)
    error: Optional[str] = None

    @classmethod
    def failed(cls, channel: Channel, error: str) -> "ChannelResult":
        return cls(channel=channel, amount=0, success=False, error=error)

    @classmethod
    def skipped(cls, channel: Channel, action: str) -> "ChannelResult":
        return cls(channel=channel, amount=0, success=True, action=action)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "amount": self.amount,
            "success": self.success,
        }
        if self.action:
            data["action"] = self.action
        if self.signature:
            data["signature"] = self.signature
        if self.burned:
            data["burned"] = self.burned
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class DistributionResult:
    """Per-channel results of one distribute_fees call."""
    total: int = 0
    distributable: int = 0
    plan: dict[Channel, int] = field(default_factory=dict)
    results: dict[Channel, ChannelResult] = field(default_factory=dict)
    total_distributed: int = 0
    total_failed: int = 0
    skipped_reason: Optional[str] = None

    @classmethod
    def noop(cls, total: int, reason: str) -> "DistributionResult":
        return cls(total=total, skipped_reason=reason)

    @property
    def failed_channels(self) -> list[Channel]:
        return [c for c, r in self.results.items() if not r.success]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "distributable": self.distributable,
            "plan": {c.value: a for c, a in self.plan.items()},
            "results": {c.value: r.to_dict() for c, r in self.results.items()},
            "distributed": self.total_distributed,
            "failed": self.total_failed,
            "skipped_reason": self.skipped_reason,
        }


@dataclass
class ClaimResult:
    """Outcome of a fee claim against the claim service."""
    claimed: int = 0
    signature: Optional[str] = None
    reason: Optional[str] = None         # nothing_to_claim, already_claimed
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class OperatorFeeResult:
    """Outcome of forwarding the operator fee."""
    amount: int = 0                      # Amount actually forwarded
    success: bool = False
    signature: Optional[str] = None
    error: Optional[str] = None


@dataclass
class CycleResult:
    """Aggregated outcome of one claim_and_distribute cycle."""
    claimed: int = 0
    operator_fee: int = 0
    distributed: int = 0
    failed: int = 0
    pending_retry: int = 0
    results: dict[Channel, ChannelResult] = field(default_factory=dict)
    claim_signature: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "claimed": self.claimed,
            "operator_fee": self.operator_fee,
            "distributed": self.distributed,
            "failed": self.failed,
            "pending_retry": self.pending_retry,
            "results": {c.value: r.to_dict() for c, r in self.results.items()},
            "claim_signature": self.claim_signature,
            "reason": self.reason,
            "error": self.error,
        }


@dataclass(frozen=True)
class TransactionRecord:
    """Entry in the rolling transaction log."""
    type: str
    amount: int
    reference: Optional[str]             # Signature, 'retained' or error text
    timestamp: datetime


@dataclass
class CumulativeStats:
    """Running totals across all cycles for one engine."""
    total_claimed: int = 0
    total_distributed: int = 0
    pending_retry: int = 0
    operator_fees: int = 0
    channel_totals: dict[Channel, int] = field(
        default_factory=lambda: {c: 0 for c in Channel}
    )
    transactions: deque = field(default_factory=lambda: deque(maxlen=100))

    def log_transaction(self, type: str, amount: int, reference: Optional[str] = None,
                        timestamp: Optional[datetime] = None) -> None:
        self.transactions.append(TransactionRecord(
            type=type,
            amount=amount,
            reference=reference,
            timestamp=timestamp or utc_now(),
        ))

    def fold_distribution(self, result: DistributionResult) -> None:
        """Add a distribution result to the running totals."""
        for channel, channel_result in result.results.items():
            if channel_result.amount > 0:
                self.channel_totals[channel] += channel_result.amount
            if not channel_result.success:
                unspent = result.plan.get(channel, 0) - channel_result.amount
                self.log_transaction(f"{channel.value}_failed", unspent,
                                     channel_result.error or "unknown")
        self.total_distributed += result.total_distributed
        self.pending_retry += result.total_failed

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_claimed": self.total_claimed,
            "total_distributed": self.total_distributed,
            "pending_retry": self.pending_retry,
            "operator_fees": self.operator_fees,
            **{c.value: total for c, total in self.channel_totals.items()},
            "transactions": [
                {
                    "type": t.type,
                    "amount": t.amount,
                    "reference": t.reference,
                    "timestamp": t.timestamp.isoformat(),
                }
                for t in self.transactions
            ],
        }
