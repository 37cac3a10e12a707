"""Focus-area vocabulary for rule-based scoring.

Maps grant opportunity language to the organization's technical and
social focus areas, and names the combinations that earn the
intersectional bonus.
"""

import re
from typing import Dict, List, Tuple

FOCUS_AREAS: Dict[str, List[str]] = {
    # Technical
    "lithium_recycling": [
        "lithium recycling",
        "lithium-ion recycling",
        "battery recycling",
        "battery recovery",
        "lithium recovery",
        "black mass",
        "spent batteries",
    ],
    "critical_minerals": [
        "critical mineral",
        "critical minerals",
        "critical materials",
        "rare earth",
        "rare earths",
        "mineral recovery",
    ],
    "clean_water": [
        "clean water",
        "water treatment",
        "water purification",
        "wastewater",
        "desalination",
        "water quality",
    ],
    "circular_economy": [
        "circular economy",
        "resource recovery",
        "waste reduction",
        "materials reuse",
        "closed-loop",
    ],
    "carbon": [
        "decarbonization",
        "carbon capture",
        "carbon reduction",
        "emissions reduction",
        "net zero",
        "net-zero",
    ],
    "stem": [
        "stem",
        "science",
        "engineering",
        "innovation",
        "research and development",
        "r&d",
        "technology",
    ],

    # Social
    "autism": [
        "autism",
        "autistic",
        "neurodiverse",
        "neurodiversity",
        "neurodivergent",
    ],
    "workforce": [
        "employment",
        "workforce",
        "job training",
        "career pathways",
        "apprenticeship",
        "hiring",
    ],
    "underserved": [
        "underserved",
        "underrepresented",
        "low-income",
        "disadvantaged communities",
        "marginalized",
        "rural communities",
    ],
    "disability": [
        "disability",
        "disabilities",
        "disabled",
        "inclusive education",
        "special education",
        "accessibility",
    ],
    "social_impact": [
        "community",
        "communities",
        "social impact",
        "education",
        "public benefit",
        "equity",
    ],
}

TECHNICAL_PRIMARY = frozenset({"lithium_recycling"})
TECHNICAL_ADJACENT = frozenset({"critical_minerals", "clean_water", "circular_economy", "carbon"})
TECHNICAL_GENERAL = frozenset({"stem"})

SOCIAL_CORE = frozenset({"autism"})
SOCIAL_COMPANION = frozenset({"workforce", "underserved"})
SOCIAL_ADJACENT = frozenset({"disability"})
SOCIAL_GENERAL = frozenset({"social_impact"})

# Areas specific enough to count toward differentiation
DISTINCT_AREAS = (
    TECHNICAL_PRIMARY | TECHNICAL_ADJACENT | SOCIAL_CORE | SOCIAL_COMPANION | SOCIAL_ADJACENT
)

# Every area in a combination must match for the intersectional bonus
INTERSECTIONAL_COMBINATIONS: Dict[str, frozenset] = {
    "neurodiverse_battery_recycling": frozenset({"autism", "lithium_recycling"}),
    "neurodiverse_critical_minerals": frozenset({"autism", "critical_minerals"}),
    "neurodiverse_circular_economy": frozenset({"autism", "circular_economy"}),
    "green_jobs_battery_recycling": frozenset({"workforce", "lithium_recycling"}),
    "inclusive_clean_water": frozenset({"disability", "clean_water"}),
    "underserved_clean_water": frozenset({"underserved", "clean_water"}),
}

_PATTERN_CACHE: Dict[str, "re.Pattern[str]"] = {}


def phrase_in_text(phrase: str, text: str) -> bool:
    """Whole-word, case-insensitive phrase match."""
    pattern = _PATTERN_CACHE.get(phrase)
    if pattern is None:
        pattern = re.compile(r"(?<![a-z0-9])" + re.escape(phrase.lower()) + r"(?![a-z0-9])")
        _PATTERN_CACHE[phrase] = pattern
    return bool(pattern.search(text.lower()))


def find_focus_matches(text: str) -> List[Tuple[str, str, str]]:
    """Find focus-area matches in opportunity text.

    Args:
        text: Opportunity title, description and eligibility text

    Returns:
        List of (focus_area, matched_phrase, context) tuples, one per area,
        in FOCUS_AREAS order
    """

    if not text:
        return []

    matches = []
    for area, phrases in FOCUS_AREAS.items():
        for phrase in phrases:
            if phrase_in_text(phrase, text):
                matches.append((area, phrase, _extract_context(text, phrase)))
                break

    return matches


def matched_combinations(areas: frozenset) -> List[str]:
    """Names of intersectional combinations fully covered by the matched areas."""
    return [name for name, combo in INTERSECTIONAL_COMBINATIONS.items() if combo <= areas]


def _extract_context(text: str, keyword: str, window: int = 60) -> str:
    """Extract context around a keyword match."""

    idx = text.lower().find(keyword.lower())
    if idx == -1:
        return ""

    start = max(0, idx - window)
    end = min(len(text), idx + len(keyword) + window)

    context = text[start:end].strip()

    if start > 0:
        context = "..." + context
    if end < len(text):
        context = context + "..."

    return context
