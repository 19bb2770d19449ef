"""
Centralized logging configuration for the fee distribution engine.

This module provides standardized logging configuration using structlog
for all components. Channel executions and allocation changes are logged
through dedicated audit helpers so that every fund movement leaves a
structured trail.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_distribution_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for fund movements performed by the distribution channels.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for distribution audit events
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="distribution",
        audit_trail=True
    )


def get_allocation_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger for allocation and feature toggle changes.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for allocation audit events
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="allocation",
        audit_trail=True
    )


def log_channel_result(
    logger: FilteringBoundLogger,
    channel: str,
    planned_amount: int,
    success: bool,
    action: Optional[str] = None,
    error: Optional[str] = None,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log the outcome of one channel action with standardized format.

    Args:
        logger: Structlog logger instance
        channel: Channel that was executed
        planned_amount: Amount planned for the channel (smallest units)
        success: Whether the channel action succeeded
        action: Concrete action taken (buy, sell, retained, ...)
        error: Error message when the action failed
        context: Additional context data
    """
    bound_logger = logger.bind(
        channel=channel,
        planned_amount=planned_amount,
        channel_result="OK" if success else "FAILED",
        action=action,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if success:
        bound_logger.info("Channel executed")
    else:
        bound_logger.warning("Channel failed", error=error)


def log_allocation_change(
    logger: FilteringBoundLogger,
    trigger: str,
    before: dict[str, int],
    after: dict[str, int],
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log an allocation change with standardized format.

    Args:
        logger: Structlog logger instance
        trigger: What caused the change (set_allocations, disable:<channel>)
        before: Allocation map before the change
        after: Allocation map after the change
        context: Additional context data
    """
    bound_logger = logger.bind(
        trigger=trigger,
        allocations_before=before,
        allocations_after=after,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Allocation change")
