"""Failure reporting for attribution and persistence errors."""

import logging

from typing import Literal, Protocol

from pydantic import BaseModel, ConfigDict

from staking_indexer.helpers.logging import get_logger


Operation = Literal["reward", "slash"]


class FailureContext(BaseModel):
    """Block context attached to every reported failure."""

    model_config = ConfigDict(frozen=True)

    block_number: int
    event_index: int
    operation: Operation

    @property
    def tag(self) -> str:
        return f"{self.operation} #{self.block_number}-{self.event_index}"


class ErrorReporter(Protocol):
    """Sink for failures (alerting, error tracking, ...).

    Implementations must not raise and must not block the caller.
    """

    def report_failure(self, context: FailureContext, err: BaseException) -> None: ...


class LoggingErrorReporter:
    """Error reporter that writes failures to the application log."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or get_logger(__name__)
        self.reported = 0

    def report_failure(self, context: FailureContext, err: BaseException) -> None:
        self.reported += 1
        self.logger.error(
            "Failed %s: %s",
            context.tag,
            err,
            exc_info=(type(err), err, err.__traceback__),
        )


__all__ = [
    "ErrorReporter",
    "FailureContext",
    "LoggingErrorReporter",
    "Operation",
]
