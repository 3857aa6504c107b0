"""Error taxonomy for the fix engine. The API layer maps each class to one HTTP status."""

from __future__ import annotations


class FixEngineError(Exception):
    """Base class; message is safe to show to the reviewer."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(FixEngineError):
    """Required CMS credentials or target settings are missing. Raised before any mutation."""


class NotFoundError(FixEngineError):
    """Referenced audit, fix or CMS document does not exist. Nothing was mutated."""


class InvalidStateError(FixEngineError):
    """Operation not allowed from the record's current status. Nothing was mutated."""

    def __init__(self, fix_id: str, status: str | None, action: str) -> None:
        self.fix_id = fix_id
        self.status = status
        self.action = action
        if status is None:
            message = f"Cannot {action} fix {fix_id}: record no longer exists."
        else:
            message = f"Cannot {action} fix {fix_id}: current status is {status}."
        super().__init__(message)


class UnsupportedOperationError(FixEngineError):
    """Field kind or capability the target CMS adapter does not support."""


class CMSRequestError(FixEngineError):
    """The CMS request failed (auth, validation, network or timeout)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RemoteWriteError(CMSRequestError):
    """The CMS rejected or failed a write. Recorded on the fix as FAILED, then re-raised."""


class ConflictError(FixEngineError):
    """The resource already exists (e.g. an audit id ingested twice)."""


class InvalidValueError(FixEngineError):
    """A proposed or edited value cannot be written to its field kind. Nothing was mutated."""
