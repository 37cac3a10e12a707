"""Command-line entry point.

Usage:
    python -m grant_triage.main search "<query>" --user ID [--sector S] [--funding-range R] [--deadline D] [--rule-based]
    python -m grant_triage.main metrics --user ID
    python -m grant_triage.main review approve|reject|snooze|reopen SCORED_ID --user ID
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from .config import Config, load_config
from .adapters import PerplexitySearchAdapter, QualificationAdapter
from .dashboard import load_metrics
from .database import SupabaseClient
from .errors import GrantTriageError
from .ingestion import search_and_score
from .models.search import SearchFilters
from .scorer.weights import load_rubric
from .triage import approve, reject, reopen, snooze

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="grant_triage", description="Grant opportunity triage")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Search for grants and score every hit")
    search.add_argument("query")
    search.add_argument("--user", required=True, help="Owning user id")
    search.add_argument("--sector")
    search.add_argument("--funding-range")
    search.add_argument("--deadline")
    search.add_argument(
        "--rule-based", action="store_true", help="Score with the local rule-based policy only"
    )

    metrics = sub.add_parser("metrics", help="Print dashboard counts")
    metrics.add_argument("--user", required=True)

    review = sub.add_parser("review", help="Record a review decision")
    review.add_argument("action", choices=["approve", "reject", "snooze", "reopen"])
    review.add_argument("scored_id")
    review.add_argument("--user", required=True)

    return parser


async def run_search(args: argparse.Namespace, config: Config, store: SupabaseClient) -> int:
    searcher = PerplexitySearchAdapter(
        config.perplexity_api_key, url=config.perplexity_url, model=config.search_model
    )
    qualifier = None
    if not args.rule_based:
        qualifier = QualificationAdapter(
            config.ai_gateway_api_key, url=config.ai_gateway_url, model=config.scoring_model
        )
    filters = SearchFilters(
        funding_range=args.funding_range, deadline=args.deadline, sector=args.sector
    )

    report = await search_and_score(
        args.query,
        args.user,
        store,
        searcher,
        qualifier=qualifier,
        filters=filters,
        rubric=load_rubric(config.rubric_path),
    )

    for outcome in report.outcomes:
        if outcome.error:
            print(f"FAILED  {outcome.title}: {outcome.error}")
        else:
            flag = " (fallback)" if outcome.used_fallback else ""
            print(f"{outcome.total_score:>4}  {outcome.decision.value:<12} {outcome.title}{flag}")
    for citation in report.citations:
        print(f"source: {citation}")
    return 1 if report.outcomes and not report.succeeded else 0


def run_metrics(args: argparse.Namespace, store: SupabaseClient) -> int:
    metrics = load_metrics(store, args.user)
    print(f"Priority A: {metrics.priority_a}")
    print(f"Priority B: {metrics.priority_b}")
    print(f"Pending:    {metrics.pending}")
    print(f"Approved:   {metrics.approved}")
    print(f"Actionable: {metrics.actionable}")
    return 0


def run_review(args: argparse.Namespace, config: Config, store: SupabaseClient) -> int:
    if args.action == "approve":
        record, application = approve(store, args.user, args.scored_id)
        print(f"approved {record.id}; application {application.id} ({application.status.value})")
    elif args.action == "reject":
        record = reject(store, args.user, args.scored_id)
        print(f"rejected {record.id}")
    elif args.action == "snooze":
        record = snooze(store, args.user, args.scored_id, hours=config.snooze_hours)
        print(f"snoozed {record.id} until {record.snoozed_until.isoformat()}")
    else:
        record = reopen(store, args.user, args.scored_id)
        print(f"reopened {record.id}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config()
    logging.getLogger().setLevel(config.log_level)

    store = SupabaseClient(config.supabase_url, config.supabase_key)
    try:
        if args.command == "search":
            return asyncio.run(run_search(args, config, store))
        if args.command == "metrics":
            return run_metrics(args, store)
        return run_review(args, config, store)
    except GrantTriageError as e:
        logger.error("%s failed: %s", args.command, e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
