# This project was developed with assistance from AI tools.
"""Typed workflow errors.

Every rejected transition request maps to exactly one of these. Guards return
them, services raise them, and ``main.py`` renders them as RFC 7807 responses
with a machine-readable ``code`` so the client can show a specific message.
"""


class TransitionError(Exception):
    """Base class for expected, recoverable workflow rejections."""

    code = "transition_error"
    http_status = 400

    def __init__(self, message: str, *, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __repr__(self):
        return f"<{type(self).__name__}(code='{self.code}', message='{self.message}')>"


class Unauthorized(TransitionError):
    """Actor's role may not perform the requested transition."""

    code = "unauthorized"
    http_status = 403


class InvalidStateTransition(TransitionError):
    """Transition not reachable from the current status."""

    code = "invalid_state_transition"
    http_status = 409

    def __init__(self, message: str, *, already_submitted: bool = False, details: dict | None = None):
        super().__init__(message, details=details)
        self.already_submitted = already_submitted
        if already_submitted:
            self.code = "already_submitted"


class PreconditionFailed(TransitionError):
    """A business rule adjacent to the state machine is not satisfied."""

    code = "precondition_failed"
    http_status = 422

    def __init__(
        self,
        message: str,
        *,
        reason: str,
        failures: list[str] | None = None,
        details: dict | None = None,
    ):
        merged = {"reason": reason, "failures": failures or []}
        merged.update(details or {})
        super().__init__(message, details=merged)
        self.reason = reason
        self.failures = failures or []


class ConcurrencyConflict(TransitionError):
    """The snapshot behind the request is stale relative to the stored version."""

    code = "concurrency_conflict"
    http_status = 409


class PersistenceFailure(TransitionError):
    """The store could not commit. Nothing was applied."""

    code = "persistence_failure"
    http_status = 503
