"""Configuration and allocation validation utilities."""

import math
from collections.abc import Mapping
from typing import Any

from ..errors import ValidationIssue
from ..models.distribution import Channel

ALLOCATION_TOLERANCE = 0.01


def parse_channel(value: Any) -> Channel:
    """Resolve a Channel from an enum member or its string value."""
    if isinstance(value, Channel):
        return value
    return Channel(value)


class ConfigValidator:
    """Validates allocation maps and numeric configuration parameters."""

    @staticmethod
    def validate_allocations(allocations: Any) -> list[ValidationIssue]:
        """Validate a channel -> percent mapping."""
        errors = []

        if not isinstance(allocations, Mapping):
            return [ValidationIssue(
                field="allocations",
                message="Must be a mapping of channel to percent",
                value=allocations
            )]

        total = 0.0
        for key, value in allocations.items():
            try:
                parse_channel(key)
            except ValueError:
                errors.append(ValidationIssue(
                    field=str(key),
                    message="Unknown channel",
                    value=value
                ))
                continue

            if isinstance(value, bool) or not isinstance(value, (int, float)):
                errors.append(ValidationIssue(
                    field=str(key),
                    message="Must be a number",
                    value=value
                ))
                continue

            if math.isnan(value) or math.isinf(value) or value < 0:
                errors.append(ValidationIssue(
                    field=str(key),
                    message="Must be a finite non-negative number",
                    value=value
                ))
                continue

            if isinstance(value, float) and not value.is_integer():
                errors.append(ValidationIssue(
                    field=str(key),
                    message="Must be a whole percent",
                    value=value
                ))
                continue

            total += value

        if not errors and abs(total - 100) > ALLOCATION_TOLERANCE:
            errors.append(ValidationIssue(
                field="allocations",
                message=f"Allocations must sum to 100%. Current: {total}%",
                value=total
            ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationIssue]:
        """Validate a merged configuration dictionary."""
        errors = []

        allocation = config.get("allocation", {})
        if allocation:
            for issue in ConfigValidator.validate_allocations(allocation):
                errors.append(ValidationIssue(
                    field=f"allocation.{issue.field}",
                    message=issue.message,
                    value=issue.value
                ))

        distribution = config.get("distribution", {})

        value = distribution.get("min_fee_reserve", 0)
        if not isinstance(value, int) or value < 0:
            errors.append(ValidationIssue(
                field="distribution.min_fee_reserve",
                message="Must be a non-negative integer",
                value=value
            ))

        value = distribution.get("operator_fee_bps", 0)
        if not isinstance(value, int) or value < 0 or value > 10_000:
            errors.append(ValidationIssue(
                field="distribution.operator_fee_bps",
                message="Must be an integer between 0 and 10000",
                value=value
            ))

        value = distribution.get("sell_fraction_pct", 10)
        if not isinstance(value, int) or value <= 0 or value > 100:
            errors.append(ValidationIssue(
                field="distribution.sell_fraction_pct",
                message="Must be an integer between 1 and 100",
                value=value
            ))

        value = distribution.get("liquidity_slippage", 0.05)
        if not isinstance(value, (int, float)) or value < 0 or value >= 1:
            errors.append(ValidationIssue(
                field="distribution.liquidity_slippage",
                message="Must be a number in [0, 1)",
                value=value
            ))

        retry = config.get("retry", {})
        value = retry.get("max_attempts", 1)
        if not isinstance(value, int) or value < 1:
            errors.append(ValidationIssue(
                field="retry.max_attempts",
                message="Must be a positive integer",
                value=value
            ))

        for key in ("base_delay", "jitter"):
            value = retry.get(key, 0)
            if not isinstance(value, (int, float)) or value < 0:
                errors.append(ValidationIssue(
                    field=f"retry.{key}",
                    message="Must be a non-negative number",
                    value=value
                ))

        trade = config.get("trade", {})
        value = trade.get("min_call_interval", 0)
        if not isinstance(value, (int, float)) or value < 0:
            errors.append(ValidationIssue(
                field="trade.min_call_interval",
                message="Must be a non-negative number",
                value=value
            ))

        burn_poll = config.get("burn_poll", {})
        value = burn_poll.get("max_attempts", 1)
        if not isinstance(value, int) or value < 0:
            errors.append(ValidationIssue(
                field="burn_poll.max_attempts",
                message="Must be a non-negative integer",
                value=value
            ))

        analyzer = config.get("analyzer", {})
        value = analyzer.get("max_history", 100)
        if not isinstance(value, int) or value < 30:
            errors.append(ValidationIssue(
                field="analyzer.max_history",
                message="Must be an integer of at least 30",
                value=value
            ))

        return errors
