"""Application lifecycle: draft creation, status moves and section drafting."""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..errors import InvalidTransitionError, RecordNotFoundError, require_user
from ..models.application import (
    Application,
    ApplicationStatus,
    parse_section,
)

logger = logging.getLogger(__name__)

# Forward-only: from -> allowed_to
APPLICATION_TRANSITIONS = {
    ApplicationStatus.DRAFT: [ApplicationStatus.IN_PROGRESS, ApplicationStatus.SUBMITTED],
    ApplicationStatus.IN_PROGRESS: [ApplicationStatus.SUBMITTED],
    ApplicationStatus.SUBMITTED: [ApplicationStatus.AWARDED, ApplicationStatus.REJECTED],
    ApplicationStatus.AWARDED: [],
    ApplicationStatus.REJECTED: [],
}

ACTIVE_STATUSES = frozenset({ApplicationStatus.DRAFT, ApplicationStatus.IN_PROGRESS})

ACTIVE_WINDOW_DAYS = 30

PIPELINE_COLUMNS = {
    "draft": [ApplicationStatus.DRAFT],
    "in_progress": [ApplicationStatus.IN_PROGRESS],
    "submitted": [ApplicationStatus.SUBMITTED],
    "completed": [ApplicationStatus.AWARDED, ApplicationStatus.REJECTED],
}


def _load(store, user_id: str, application_id: str) -> Application:
    application = store.get_application(user_id, application_id)
    if application is None:
        raise RecordNotFoundError(f"Application {application_id} not found")
    return application


def create_draft_application(store, user_id: str, scored_id: str) -> Application:
    """Create a draft application with all four sections empty."""
    user_id = require_user(user_id)
    application = store.create_application(
        Application(user_id=user_id, opportunity_scored_id=scored_id)
    )
    logger.info("Created draft application %s for scored opportunity %s", application.id, scored_id)
    return application


def advance_status(
    store,
    user_id: str,
    application_id: str,
    status: ApplicationStatus,
    now: Optional[datetime] = None,
) -> Application:
    """Move an application forward through its lifecycle.

    Requesting the current status is a no-op. Entering submitted stamps
    submitted_at once; later moves never clear or replace it.

    Raises:
        InvalidTransitionError: for backward moves or moves out of a terminal state
        RecordNotFoundError: if the application is not the user's
    """
    user_id = require_user(user_id)
    status = ApplicationStatus(status)
    application = _load(store, user_id, application_id)

    current = application.status
    if status == current:
        logger.debug("Application %s already %s", application_id, status.value)
        return application

    allowed = APPLICATION_TRANSITIONS.get(current, [])
    if status not in allowed:
        raise InvalidTransitionError(current.value, status.value, [s.value for s in allowed])

    fields: Dict[str, Any] = {"status": status.value}
    if status == ApplicationStatus.SUBMITTED and application.submitted_at is None:
        fields["submitted_at"] = (now or datetime.now(timezone.utc)).isoformat()

    updated = store.update_application(user_id, application_id, fields)
    logger.info("Application %s moved from %s to %s", application_id, current.value, status.value)
    return updated


def update_sections(
    store, user_id: str, application_id: str, sections: Dict[str, str]
) -> Application:
    """Merge section text into an application.

    Raises:
        UnknownSectionError: for a section name outside the fixed set
    """
    user_id = require_user(user_id)
    validated = {parse_section(name).value: text or "" for name, text in sections.items()}
    application = _load(store, user_id, application_id)

    if application.is_terminal:
        logger.warning(
            "Editing sections of %s application %s", application.status.value, application_id
        )

    merged = dict(application.content_sections)
    merged.update(validated)
    return store.update_application(user_id, application_id, {"content_sections": merged})


def draft_context(application: Application) -> Dict[str, str]:
    """Opportunity details handed to the drafting collaborator."""
    opportunity = application.opportunity
    if opportunity is None:
        return {"title": "", "agency": "", "amount": "", "deadline": ""}

    if opportunity.deadline is not None:
        deadline = opportunity.deadline.isoformat()
    else:
        deadline = opportunity.raw_data.get("deadline_text") or ""

    return {
        "title": opportunity.title,
        "agency": opportunity.agency or "",
        "amount": opportunity.amount_text or "",
        "deadline": deadline,
    }


async def generate_section_draft(
    store, drafter, user_id: str, application_id: str, section
) -> Application:
    """Draft one section with the collaborator and store the text verbatim.

    The section name is checked before anything is loaded or called.
    """
    section = parse_section(section)
    user_id = require_user(user_id)
    application = _load(store, user_id, application_id)

    text = await drafter.generate(section, draft_context(application))
    return update_sections(store, user_id, application_id, {section.value: text})


def count_active_proposals(
    applications: Iterable[Application],
    now: Optional[datetime] = None,
    window_days: int = ACTIVE_WINDOW_DAYS,
) -> int:
    """Unsubmitted applications whose opportunity deadline falls within the window."""
    today: date = (now or datetime.now(timezone.utc)).date()
    horizon = today + timedelta(days=window_days)

    count = 0
    for application in applications:
        if application.status not in ACTIVE_STATUSES or application.opportunity is None:
            continue
        deadline = application.opportunity.deadline
        if deadline is not None and today <= deadline <= horizon:
            count += 1
    return count


def load_active_proposal_count(
    store, user_id: str, now: Optional[datetime] = None, window_days: int = ACTIVE_WINDOW_DAYS
) -> int:
    return count_active_proposals(store.get_applications(require_user(user_id)), now, window_days)


def group_pipeline(applications: Iterable[Application]) -> Dict[str, List[Application]]:
    """Board columns: draft, in_progress, submitted, completed (awarded + rejected)."""
    columns: Dict[str, List[Application]] = {name: [] for name in PIPELINE_COLUMNS}
    for application in applications:
        for name, statuses in PIPELINE_COLUMNS.items():
            if application.status in statuses:
                columns[name].append(application)
                break
    return columns
