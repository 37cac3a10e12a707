"""Dashboard counts over a user's scored opportunities."""

from datetime import datetime, timezone
from typing import Iterable, Optional
from pydantic import BaseModel

from ..errors import require_user
from ..models.opportunity_scored import Decision, HitlStatus, ScoredOpportunity


class DashboardMetrics(BaseModel):
    """Headline counts; pending/approved are literal stored statuses."""

    priority_a: int = 0
    priority_b: int = 0
    pending: int = 0
    approved: int = 0
    actionable: int = 0
    total: int = 0


def compute_metrics(
    scored: Iterable[ScoredOpportunity], now: Optional[datetime] = None
) -> DashboardMetrics:
    now = now or datetime.now(timezone.utc)
    metrics = DashboardMetrics()
    for record in scored:
        metrics.total += 1
        if record.decision == Decision.PRIORITY_A:
            metrics.priority_a += 1
        elif record.decision == Decision.PRIORITY_B:
            metrics.priority_b += 1
        if record.hitl_status == HitlStatus.PENDING:
            metrics.pending += 1
        elif record.hitl_status == HitlStatus.APPROVED:
            metrics.approved += 1
        if record.is_actionable(now):
            metrics.actionable += 1
    return metrics


def load_metrics(store, user_id: str, now: Optional[datetime] = None) -> DashboardMetrics:
    """Fetch the user's scored opportunities and fold them into counts."""
    return compute_metrics(store.get_scored(require_user(user_id)), now)
