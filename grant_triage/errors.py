"""Exception types raised by the triage engine."""

from typing import Optional


class GrantTriageError(Exception):
    """Base class for all engine errors."""

    retryable: bool = False


class NotAuthenticatedError(GrantTriageError):
    """Raised when a mutating operation is called without an owning user."""


class RecordNotFoundError(GrantTriageError):
    """Raised when a record does not exist or is not visible to the user."""


class InvalidTransitionError(GrantTriageError):
    """Raised when a status change is not allowed from the current state."""

    def __init__(self, current: str, requested: str, allowed: Optional[list] = None):
        self.current = current
        self.requested = requested
        self.allowed = allowed or []
        super().__init__(
            f"Cannot transition from '{current}' to '{requested}' "
            f"(allowed: {', '.join(self.allowed) or 'none'})"
        )


class UnknownSectionError(GrantTriageError, ValueError):
    """Raised for a draft section identifier outside the fixed section set."""


class QualificationValidationError(GrantTriageError):
    """Raised when collaborator scoring output is malformed or out of range."""


class CollaboratorUnavailableError(GrantTriageError):
    """Raised when the search, scoring or drafting service fails."""

    retryable = True

    def __init__(self, collaborator: str, message: str):
        self.collaborator = collaborator
        super().__init__(f"{collaborator}: {message}")


class ApplicationCreationError(GrantTriageError):
    """Raised when approval could not produce its draft application.

    The approval is reverted before this is raised, so retrying the approval
    is safe.
    """

    retryable = True


def require_user(user_id: Optional[str]) -> str:
    """Return the user id or raise NotAuthenticatedError when absent."""
    if not user_id or not str(user_id).strip():
        raise NotAuthenticatedError("User not authenticated")
    return user_id
