"""Human-in-the-loop review of scored opportunities.

Transitions are checked against the effective status, so a snooze whose
horizon has passed behaves exactly like pending. Nothing flips expired
snoozes in the background; the stored row keeps 'snoozed' until the next
review action.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from ..applications.lifecycle import create_draft_application
from ..errors import (
    ApplicationCreationError,
    InvalidTransitionError,
    RecordNotFoundError,
    require_user,
)
from ..models.application import Application
from ..models.opportunity_scored import Decision, HitlStatus, ScoredOpportunity

logger = logging.getLogger(__name__)

DEFAULT_SNOOZE_HOURS = 24

# Effective status -> allowed next statuses
TRANSITIONS = {
    HitlStatus.PENDING: [HitlStatus.APPROVED, HitlStatus.REJECTED, HitlStatus.SNOOZED],
    HitlStatus.SNOOZED: [HitlStatus.PENDING],
    HitlStatus.APPROVED: [HitlStatus.PENDING],
    HitlStatus.REJECTED: [HitlStatus.PENDING],
}


def _now(now: Optional[datetime]) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now if now.tzinfo else now.replace(tzinfo=timezone.utc)


def _load(store, user_id: str, scored_id: str) -> ScoredOpportunity:
    record = store.get_scored_by_id(user_id, scored_id)
    if record is None:
        raise RecordNotFoundError(f"Scored opportunity {scored_id} not found")
    return record


def _check_transition(record: ScoredOpportunity, requested: HitlStatus, now: datetime) -> None:
    current = record.effective_status(now)
    # An expired snooze reads as pending but may still be explicitly reopened
    if requested == HitlStatus.PENDING and record.hitl_status == HitlStatus.SNOOZED:
        return
    allowed = TRANSITIONS.get(current, [])
    if requested not in allowed:
        raise InvalidTransitionError(current.value, requested.value, [s.value for s in allowed])


def approve(
    store, user_id: str, scored_id: str, now: Optional[datetime] = None
) -> Tuple[ScoredOpportunity, Application]:
    """Approve a scored opportunity and open its draft application.

    Approval and draft creation succeed or fail together: if the draft
    cannot be created the status is put back and ApplicationCreationError
    is raised. A draft left over from an earlier approval is reused.
    """
    user_id = require_user(user_id)
    now = _now(now)
    record = _load(store, user_id, scored_id)
    _check_transition(record, HitlStatus.APPROVED, now)

    updated = store.update_hitl_status(user_id, scored_id, HitlStatus.APPROVED)
    try:
        application = store.get_application_for_scored(user_id, scored_id)
        if application is None:
            application = create_draft_application(store, user_id, scored_id)
        else:
            logger.info("Reusing application %s for scored opportunity %s", application.id, scored_id)
    except Exception as exc:
        logger.error("Draft creation failed for %s, reverting approval: %s", scored_id, exc)
        store.update_hitl_status(user_id, scored_id, record.hitl_status, record.snoozed_until)
        raise ApplicationCreationError(
            f"Could not create application for scored opportunity {scored_id}"
        ) from exc

    logger.info("Approved scored opportunity %s", scored_id)
    return updated, application


def reject(store, user_id: str, scored_id: str, now: Optional[datetime] = None) -> ScoredOpportunity:
    user_id = require_user(user_id)
    record = _load(store, user_id, scored_id)
    _check_transition(record, HitlStatus.REJECTED, _now(now))
    updated = store.update_hitl_status(user_id, scored_id, HitlStatus.REJECTED)
    logger.info("Rejected scored opportunity %s", scored_id)
    return updated


def snooze(
    store,
    user_id: str,
    scored_id: str,
    until: Optional[datetime] = None,
    now: Optional[datetime] = None,
    hours: int = DEFAULT_SNOOZE_HOURS,
) -> ScoredOpportunity:
    """Hide a pending opportunity until `until` (default now + `hours`).

    Raises:
        ValueError: if `until` is not after now
    """
    user_id = require_user(user_id)
    now = _now(now)
    if until is None:
        until = now + timedelta(hours=hours)
    elif until.tzinfo is None:
        until = until.replace(tzinfo=timezone.utc)
    if until <= now:
        raise ValueError("Snooze time must be in the future")

    record = _load(store, user_id, scored_id)
    _check_transition(record, HitlStatus.SNOOZED, now)
    updated = store.update_hitl_status(user_id, scored_id, HitlStatus.SNOOZED, until)
    logger.info("Snoozed scored opportunity %s until %s", scored_id, until.isoformat())
    return updated


def reopen(store, user_id: str, scored_id: str, now: Optional[datetime] = None) -> ScoredOpportunity:
    """Return an approved, rejected or snoozed opportunity to pending.

    An application created by an earlier approval is left in place.
    """
    user_id = require_user(user_id)
    record = _load(store, user_id, scored_id)
    _check_transition(record, HitlStatus.PENDING, _now(now))
    updated = store.update_hitl_status(user_id, scored_id, HitlStatus.PENDING)
    logger.info("Reopened scored opportunity %s (was %s)", scored_id, record.hitl_status.value)
    return updated


def list_actionable(
    store,
    user_id: str,
    now: Optional[datetime] = None,
    decision: Optional[Decision] = None,
) -> List[ScoredOpportunity]:
    """Pending opportunities plus snoozes that have expired, best first."""
    now = _now(now)
    records = store.get_scored(require_user(user_id), decision=decision)
    return [r for r in records if r.is_actionable(now)]
