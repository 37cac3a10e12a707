"""CLI wiring tests; config and the backend are mocked."""

from unittest.mock import MagicMock, patch

import pytest

from grant_triage.main import build_parser, main
from grant_triage.tests.fakes import InMemoryStore, make_scored


@pytest.fixture
def cli_store():
    store = InMemoryStore()
    fake_config = MagicMock()
    fake_config.log_level = "INFO"
    fake_config.snooze_hours = 24
    with patch("grant_triage.main.load_config", return_value=fake_config), patch(
        "grant_triage.main.SupabaseClient", return_value=store
    ):
        yield store


def test_parser_search_options():
    args = build_parser().parse_args(
        ["search", "battery recycling", "--user", "u1", "--sector", "cleantech", "--rule-based"]
    )
    assert args.command == "search"
    assert args.query == "battery recycling"
    assert args.sector == "cleantech"
    assert args.rule_based


def test_parser_requires_user():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["metrics"])


def test_review_approve(cli_store, capsys):
    scored = cli_store.upsert_scored_opportunity(make_scored("u1", "raw-1"))

    assert main(["review", "approve", scored.id, "--user", "u1"]) == 0
    assert "approved" in capsys.readouterr().out
    assert len(cli_store.applications) == 1


def test_invalid_review_exits_2(cli_store):
    scored = cli_store.upsert_scored_opportunity(make_scored("u1", "raw-1"))
    assert main(["review", "reject", scored.id, "--user", "u1"]) == 0
    assert main(["review", "approve", scored.id, "--user", "u1"]) == 2
    assert cli_store.applications == {}


def test_metrics(cli_store, capsys):
    cli_store.upsert_scored_opportunity(make_scored("u1", "raw-1", 40, 30, 15, 5))

    assert main(["metrics", "--user", "u1"]) == 0
    assert "Priority A: 1" in capsys.readouterr().out
