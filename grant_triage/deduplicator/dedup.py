"""Deduplication logic for search hits."""

import logging
from typing import List, Optional, Set, Tuple

from ..models.opportunity_raw import RawOpportunity

logger = logging.getLogger(__name__)

DedupKey = Tuple[str, str]


class Deduplicator:
    """Collapses opportunities sharing a (source, external_id) key.

    The same grant often appears more than once in a single search response;
    only the first occurrence is scored. Keys already stored are not
    filtered here since re-ingestion is an update, not a duplicate.
    """

    def __init__(self, seen_keys: Optional[Set[DedupKey]] = None):
        self.seen_keys: Set[DedupKey] = set(seen_keys or ())

    def deduplicate(self, opportunities: List[RawOpportunity]) -> List[RawOpportunity]:
        """Return opportunities with repeated keys removed, order preserved."""
        unique = []
        duplicate_count = 0

        for opp in opportunities:
            if opp.dedup_key in self.seen_keys:
                duplicate_count += 1
                logger.debug("Duplicate found: %s:%s", opp.source, opp.external_id)
            else:
                unique.append(opp)
                self.seen_keys.add(opp.dedup_key)

        logger.info("Deduplication: %d unique, %d duplicates", len(unique), duplicate_count)
        return unique
