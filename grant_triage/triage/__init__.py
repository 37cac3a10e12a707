"""Human-in-the-loop review state machine."""

from .hitl import TRANSITIONS, approve, list_actionable, reject, reopen, snooze

__all__ = ["TRANSITIONS", "approve", "list_actionable", "reject", "reopen", "snooze"]
