"""Default organization profile.

Used for scoring when a user has not saved a company profile. Environment
variable overrides (prefixed GRANT_PROFILE_) take precedence over defaults.
"""

import os
from typing import Optional

from ..models.company_profile import CompanyProfile


def _env(key: str, default: str) -> str:
    """Read GRANT_PROFILE_ prefixed env var with fallback."""
    return os.environ.get(f"GRANT_PROFILE_{key}", default)


def _env_list(key: str, default: list[str]) -> list[str]:
    """Read GRANT_PROFILE_ prefixed env var as comma-separated list."""
    val = os.environ.get(f"GRANT_PROFILE_{key}")
    if val is None:
        return default
    return [v.strip() for v in val.split(",") if v.strip()]


def _env_float(key: str, default: Optional[float]) -> Optional[float]:
    """Read GRANT_PROFILE_ prefixed env var as a number; empty means unset."""
    val = os.environ.get(f"GRANT_PROFILE_{key}")
    if val is None:
        return default
    return float(val) if val.strip() else None


def _env_int(key: str, default: int) -> int:
    """Read GRANT_PROFILE_ prefixed env var as integer."""
    val = os.environ.get(f"GRANT_PROFILE_{key}")
    if val is None:
        return default
    return int(val)


def build_default_profile() -> CompanyProfile:
    """Build the fallback profile, re-reading the environment on each call."""
    return CompanyProfile(
        name=_env("NAME", "Default Organization"),
        sectors=_env_list("SECTORS", ["clean technology", "workforce development"]),
        keywords=_env_list("KEYWORDS", ["battery recycling", "neurodiverse workforce"]),
        cost_share_capacity=_env_float("COST_SHARE_CAPACITY", None),
        geographic_priorities=_env_list("GEOGRAPHIC_PRIORITIES", ["USA", "EU"]),
        active_proposal_count=_env_int("ACTIVE_PROPOSALS", 0),
        team_credentials=_env_list("TEAM_CREDENTIALS", []),
    )
