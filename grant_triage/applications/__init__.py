"""Application lifecycle management."""

from .lifecycle import (
    APPLICATION_TRANSITIONS,
    advance_status,
    count_active_proposals,
    create_draft_application,
    generate_section_draft,
    group_pipeline,
    load_active_proposal_count,
    update_sections,
)

__all__ = [
    "APPLICATION_TRANSITIONS",
    "advance_status",
    "count_active_proposals",
    "create_draft_application",
    "generate_section_draft",
    "group_pipeline",
    "load_active_proposal_count",
    "update_sections",
]
