"""Supabase database client for the triage engine.

Every owned record (scored opportunities, applications, company profiles)
is read and written with an explicit user_id filter; there is no ambient
session. Upserts are idempotent on the tables' unique keys.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client, create_client

from ..errors import RecordNotFoundError, require_user
from ..models.application import Application, ApplicationStatus
from ..models.company_profile import CompanyProfile
from ..models.opportunity_raw import RawOpportunity
from ..models.opportunity_scored import Decision, HitlStatus, ScoredOpportunity

logger = logging.getLogger(__name__)

RAW_TABLE = "opportunities_raw"
SCORED_TABLE = "opportunities_scored"
APPLICATIONS_TABLE = "applications"
PROFILES_TABLE = "company_profiles"

RAW_CONFLICT_KEY = "source,external_id"
SCORED_CONFLICT_KEY = "user_id,opportunity_raw_id"
PROFILE_CONFLICT_KEY = "user_id"

UNIQUE_VIOLATION = "23505"

SCORED_WITH_RAW = f"*, {RAW_TABLE}(*)"
APPLICATION_WITH_RAW = f"*, {SCORED_TABLE}({RAW_TABLE}(*))"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_unique_violation(exc: APIError) -> bool:
    return str(getattr(exc, "code", "")) == UNIQUE_VIOLATION


def _application_from_row(row: Dict[str, Any]) -> Application:
    row = dict(row)
    scored = row.pop(SCORED_TABLE, None) or {}
    raw = scored.get(RAW_TABLE) if isinstance(scored, dict) else None
    if raw:
        row["opportunity"] = raw
    return Application(**row)


class SupabaseClient:
    """Client for the opportunities_raw, opportunities_scored, applications and company_profiles tables."""

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
    ) -> None:
        """Initialize Supabase client from explicit args or env vars.

        Args:
            url: Supabase project URL (falls back to SUPABASE_URL env var).
            key: Supabase anon/service key (falls back to SUPABASE_KEY env var).
        """
        self._url = url or os.environ["SUPABASE_URL"]
        self._key = key or os.environ["SUPABASE_KEY"]
        self._client: Client = create_client(self._url, self._key)

    # ------------------------------------------------------------------
    # Raw opportunities (shared across users)
    # ------------------------------------------------------------------

    def upsert_raw_opportunity(self, opportunity: RawOpportunity) -> RawOpportunity:
        """Insert or update a raw opportunity keyed by (source, external_id).

        Returns:
            The stored row, including its backend id.
        """
        record = opportunity.to_record()
        try:
            response = (
                self._client.table(RAW_TABLE)
                .upsert(record, on_conflict=RAW_CONFLICT_KEY)
                .execute()
            )
        except APIError as exc:
            if not _is_unique_violation(exc):
                raise
            logger.info("Raw opportunity %s already stored, re-reading", opportunity.external_id)
            return self._get_raw_by_key(opportunity.source, opportunity.external_id)

        if not response.data:
            return self._get_raw_by_key(opportunity.source, opportunity.external_id)
        logger.info("Upserted raw opportunity %s/%s", opportunity.source, opportunity.external_id)
        return RawOpportunity(**response.data[0])

    def get_raw_opportunity(self, raw_id: str) -> Optional[RawOpportunity]:
        response = self._client.table(RAW_TABLE).select("*").eq("id", raw_id).execute()
        return RawOpportunity(**response.data[0]) if response.data else None

    def mark_raw_processed(self, raw_id: str) -> None:
        self._client.table(RAW_TABLE).update({"is_processed": True}).eq("id", raw_id).execute()

    def _get_raw_by_key(self, source: str, external_id: str) -> RawOpportunity:
        response = (
            self._client.table(RAW_TABLE)
            .select("*")
            .eq("source", source)
            .eq("external_id", external_id)
            .execute()
        )
        if not response.data:
            raise RecordNotFoundError(f"Raw opportunity {source}/{external_id} not found")
        return RawOpportunity(**response.data[0])

    # ------------------------------------------------------------------
    # Scored opportunities
    # ------------------------------------------------------------------

    def upsert_scored_opportunity(self, scored: ScoredOpportunity) -> ScoredOpportunity:
        """Insert or replace the user's qualification of one raw opportunity.

        Keyed by (user_id, opportunity_raw_id): re-scoring overwrites.
        """
        user_id = require_user(scored.user_id)
        record = scored.to_record()
        record["updated_at"] = _now_iso()
        try:
            response = (
                self._client.table(SCORED_TABLE)
                .upsert(record, on_conflict=SCORED_CONFLICT_KEY)
                .execute()
            )
        except APIError as exc:
            if not _is_unique_violation(exc):
                raise
            response = None

        if response is None or not response.data:
            existing = self.get_scored_for_raw(user_id, scored.opportunity_raw_id)
            if existing is None:
                raise RecordNotFoundError(
                    f"Scored opportunity for raw {scored.opportunity_raw_id} not found"
                )
            return existing

        logger.info(
            "Upserted scored opportunity for raw %s: total=%d decision=%s",
            scored.opportunity_raw_id,
            scored.total_score,
            scored.decision.value,
        )
        return ScoredOpportunity(**response.data[0])

    def get_scored_for_raw(self, user_id: str, raw_id: str) -> Optional[ScoredOpportunity]:
        response = (
            self._client.table(SCORED_TABLE)
            .select(SCORED_WITH_RAW)
            .eq("user_id", require_user(user_id))
            .eq("opportunity_raw_id", raw_id)
            .execute()
        )
        return ScoredOpportunity(**response.data[0]) if response.data else None

    def get_scored(
        self,
        user_id: str,
        decision: Optional[Decision] = None,
        hitl_status: Optional[HitlStatus] = None,
        limit: Optional[int] = None,
    ) -> List[ScoredOpportunity]:
        """Fetch the user's scored opportunities, best first, with raw records joined."""
        query = (
            self._client.table(SCORED_TABLE)
            .select(SCORED_WITH_RAW)
            .eq("user_id", require_user(user_id))
        )
        if decision is not None:
            query = query.eq("decision", Decision(decision).value)
        if hitl_status is not None:
            query = query.eq("hitl_status", HitlStatus(hitl_status).value)
        query = query.order("total_score", desc=True)
        if limit is not None:
            query = query.limit(limit)
        response = query.execute()
        return [ScoredOpportunity(**row) for row in response.data]

    def get_scored_by_id(self, user_id: str, scored_id: str) -> Optional[ScoredOpportunity]:
        response = (
            self._client.table(SCORED_TABLE)
            .select(SCORED_WITH_RAW)
            .eq("user_id", require_user(user_id))
            .eq("id", scored_id)
            .execute()
        )
        return ScoredOpportunity(**response.data[0]) if response.data else None

    def update_hitl_status(
        self,
        user_id: str,
        scored_id: str,
        status: HitlStatus,
        snoozed_until: Optional[datetime] = None,
    ) -> ScoredOpportunity:
        """Set hitl_status (and snoozed_until, cleared unless snoozing).

        Raises:
            RecordNotFoundError: if the record is not the user's or does not exist
        """
        status = HitlStatus(status)
        record = {
            "hitl_status": status.value,
            "snoozed_until": snoozed_until.isoformat() if snoozed_until else None,
            "updated_at": _now_iso(),
        }
        response = (
            self._client.table(SCORED_TABLE)
            .update(record)
            .eq("user_id", require_user(user_id))
            .eq("id", scored_id)
            .execute()
        )
        if not response.data:
            raise RecordNotFoundError(f"Scored opportunity {scored_id} not found")
        logger.info("Updated scored opportunity %s hitl_status to '%s'", scored_id, status.value)
        return ScoredOpportunity(**response.data[0])

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    def create_application(self, application: Application) -> Application:
        """Insert an application; a duplicate for the same scored record returns the existing row."""
        user_id = require_user(application.user_id)
        try:
            response = (
                self._client.table(APPLICATIONS_TABLE)
                .insert(application.to_record())
                .execute()
            )
        except APIError as exc:
            if not _is_unique_violation(exc):
                raise
            existing = self.get_application_for_scored(user_id, application.opportunity_scored_id)
            if existing is None:
                raise
            return existing

        if not response.data:
            raise RecordNotFoundError(
                f"Application for scored opportunity {application.opportunity_scored_id} was not returned"
            )
        logger.info("Created application for scored opportunity %s", application.opportunity_scored_id)
        return Application(**response.data[0])

    def get_application(self, user_id: str, application_id: str) -> Optional[Application]:
        response = (
            self._client.table(APPLICATIONS_TABLE)
            .select(APPLICATION_WITH_RAW)
            .eq("user_id", require_user(user_id))
            .eq("id", application_id)
            .execute()
        )
        return _application_from_row(response.data[0]) if response.data else None

    def get_application_for_scored(self, user_id: str, scored_id: str) -> Optional[Application]:
        response = (
            self._client.table(APPLICATIONS_TABLE)
            .select(APPLICATION_WITH_RAW)
            .eq("user_id", require_user(user_id))
            .eq("opportunity_scored_id", scored_id)
            .execute()
        )
        return _application_from_row(response.data[0]) if response.data else None

    def get_applications(
        self, user_id: str, status: Optional[ApplicationStatus] = None
    ) -> List[Application]:
        """Fetch the user's applications, newest first, with opportunity context."""
        query = (
            self._client.table(APPLICATIONS_TABLE)
            .select(APPLICATION_WITH_RAW)
            .eq("user_id", require_user(user_id))
        )
        if status is not None:
            query = query.eq("status", ApplicationStatus(status).value)
        response = query.order("created_at", desc=True).execute()
        return [_application_from_row(row) for row in response.data]

    def update_application(
        self, user_id: str, application_id: str, fields: Dict[str, Any]
    ) -> Application:
        """Patch an application and stamp updated_at.

        Raises:
            RecordNotFoundError: if the record is not the user's or does not exist
        """
        record = dict(fields)
        record["updated_at"] = _now_iso()
        response = (
            self._client.table(APPLICATIONS_TABLE)
            .update(record)
            .eq("user_id", require_user(user_id))
            .eq("id", application_id)
            .execute()
        )
        if not response.data:
            raise RecordNotFoundError(f"Application {application_id} not found")
        return Application(**response.data[0])

    # ------------------------------------------------------------------
    # Company profiles
    # ------------------------------------------------------------------

    def get_company_profile(self, user_id: str) -> Optional[CompanyProfile]:
        response = (
            self._client.table(PROFILES_TABLE)
            .select("*")
            .eq("user_id", require_user(user_id))
            .execute()
        )
        return CompanyProfile(**response.data[0]) if response.data else None

    def upsert_company_profile(self, profile: CompanyProfile) -> CompanyProfile:
        user_id = require_user(profile.user_id)
        record = profile.to_record()
        record["updated_at"] = _now_iso()
        try:
            response = (
                self._client.table(PROFILES_TABLE)
                .upsert(record, on_conflict=PROFILE_CONFLICT_KEY)
                .execute()
            )
        except APIError as exc:
            if not _is_unique_violation(exc):
                raise
            response = None

        if response is None or not response.data:
            existing = self.get_company_profile(user_id)
            if existing is None:
                raise RecordNotFoundError(f"Company profile for user {user_id} not found")
            return existing
        return CompanyProfile(**response.data[0])
