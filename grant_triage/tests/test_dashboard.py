"""Tests for dashboard metrics."""

from datetime import timedelta

from grant_triage.dashboard import compute_metrics, load_metrics
from grant_triage.models import HitlStatus
from grant_triage.tests.fakes import make_scored


def test_counts_by_decision_and_status(now):
    records = [
        make_scored("u", "r1", 40, 30, 15, 5, hitl_status=HitlStatus.PENDING),
        make_scored("u", "r2", 40, 30, 15, 5, hitl_status=HitlStatus.APPROVED),
        make_scored("u", "r3", 30, 25, 15, 5, hitl_status=HitlStatus.PENDING),
    ]
    metrics = compute_metrics(records, now)

    assert metrics.priority_a == 2
    assert metrics.priority_b == 1
    assert metrics.pending == 2
    assert metrics.approved == 1
    assert metrics.total == 3


def test_snoozed_not_counted_as_pending(now):
    records = [
        make_scored(
            "u", "r1", hitl_status=HitlStatus.SNOOZED, snoozed_until=now + timedelta(hours=2)
        ),
        make_scored(
            "u", "r2", hitl_status=HitlStatus.SNOOZED, snoozed_until=now - timedelta(hours=2)
        ),
    ]
    metrics = compute_metrics(records, now)

    assert metrics.pending == 0
    assert metrics.actionable == 1


def test_empty():
    metrics = compute_metrics([])
    assert metrics.total == 0
    assert metrics.priority_a == 0


def test_load_metrics_scoped_to_user(store, user_id, seeded_scored, now):
    store.upsert_scored_opportunity(make_scored("other", "raw-x", 40, 30, 20, 10))
    metrics = load_metrics(store, user_id, now)
    # seeded record: 35 + 25 + 15 + 8 = 83
    assert metrics.total == 1
    assert metrics.priority_b == 1
    assert metrics.pending == 1
