"""Error taxonomy shared by the strike engine and its HTTP surface."""

from __future__ import annotations


class StrikeEngineError(Exception):
    """Base class; each subclass carries a stable code and HTTP status."""

    code = "strike_engine_error"
    status_code = 500

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class UnauthorizedError(StrikeEngineError):
    code = "unauthorized"
    status_code = 403


class NotFoundError(StrikeEngineError):
    code = "not_found"
    status_code = 404


class AlreadyProcessedError(StrikeEngineError):
    code = "already_processed"
    status_code = 409


class InvalidInputError(StrikeEngineError):
    code = "invalid_input"
    status_code = 400


class PersistenceError(StrikeEngineError):
    code = "persistence_error"
    status_code = 503


class PartialFailureError(StrikeEngineError):
    """The strike was recorded but a later enforcement write did not land.

    Re-submitting the same decision replays the remaining steps against the
    already-recorded strike.
    """

    code = "partial_failure"
    status_code = 500

    def __init__(self, stage: str, *, strike_id: str | None, message: str | None = None) -> None:
        super().__init__(message or f"enforcement_incomplete:{stage}")
        self.stage = stage
        self.strike_id = strike_id


__all__ = [
    "StrikeEngineError",
    "UnauthorizedError",
    "NotFoundError",
    "AlreadyProcessedError",
    "InvalidInputError",
    "PersistenceError",
    "PartialFailureError",
]
