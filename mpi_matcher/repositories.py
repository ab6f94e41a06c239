"""Candidate repositories: the storage side of duplicate detection."""
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from .matching.fuzzy_matchers import parse_date
from .matching.fuzzy_search import SearchPredicate, matches_record
from .matching.models import PatientIdentity
from .matching.normalizers import extract_digits
from .matching.prefilters import (
    DobPlusPrefix,
    ExactName,
    PhoneSuffix,
    PrefilterClause,
    PrefilterQuery,
    PrefixName,
    SwappedName,
)

logger = logging.getLogger(__name__)


class CandidateRepository(Protocol):
    def find_candidates(self, query: PrefilterQuery) -> List[Dict[str, Any]]:
        """Return at most query.limit live records matching any clause of the query."""
        ...


def _text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def clause_matches(clause: PrefilterClause, record: Mapping[str, Any]) -> bool:
    """Evaluate a single prefilter clause against a stored record."""
    identity = PatientIdentity.from_mapping(record)
    first = _text(identity.first_name)
    last = _text(identity.last_name)

    if isinstance(clause, PhoneSuffix):
        return extract_digits(identity.phone_number).endswith(clause.digits)
    if isinstance(clause, ExactName):
        return first == clause.first_name and last == clause.last_name
    if isinstance(clause, PrefixName):
        return bool(first and last) and first.startswith(clause.first_prefix) and last.startswith(clause.last_prefix)
    if isinstance(clause, SwappedName):
        return first == clause.last_name and last == clause.first_name
    if isinstance(clause, DobPlusPrefix):
        return parse_date(identity.date_of_birth) == clause.date_of_birth and bool(last) and last.startswith(clause.last_prefix)
    raise TypeError(f"Unsupported prefilter clause: {type(clause).__name__}")


class InMemoryCandidateRepository:
    """Holds patient records in a list; used for CSV-backed checks and tests."""

    def __init__(self, records: Optional[Iterable[Mapping[str, Any]]] = None):
        self.records: List[Dict[str, Any]] = [dict(r) for r in (records or [])]

    def add(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        stored = dict(record)
        self.records.append(stored)
        return stored

    @staticmethod
    def _is_live(record: Mapping[str, Any]) -> bool:
        return not record.get("deleted_at") and not record.get("deletedAt")

    def find_candidates(self, query: PrefilterQuery) -> List[Dict[str, Any]]:
        results = []
        for record in self.records:
            if query.exclude_deleted and not self._is_live(record):
                continue
            if any(clause_matches(clause, record) for clause in query.clauses):
                results.append(record)
                if len(results) >= query.limit:
                    break
        logger.debug(f"In-memory prefilter matched {len(results)} of {len(self.records)} records")
        return results

    def search(self, predicates: Sequence[SearchPredicate], limit: int = 20) -> List[Dict[str, Any]]:
        """Records matching any fuzzy search predicate, in storage order."""
        if not predicates:
            return []
        results = [r for r in self.records if self._is_live(r) and matches_record(predicates, r)]
        return results[:limit]
