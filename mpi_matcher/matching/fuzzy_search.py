"""Approximate patient lookup predicates built from free-text search input."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Sequence

from ..config import PATIENT_NUMBER_PREFIX
from .normalizers import extract_digits, normalize_name

MIN_TOKEN_LENGTH = 2
MIN_PHONE_DIGITS = 4


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class SearchOperator(Enum):
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"


@dataclass(frozen=True)
class SearchPredicate:
    field: str
    operator: SearchOperator
    value: str
    case_insensitive: bool = True

    def matches(self, record: Mapping[str, Any]) -> bool:
        stored = record.get(self.field)
        if stored is None:
            stored = record.get(_camel_case(self.field))
        if stored is None:
            return False
        stored = str(stored)
        value = self.value
        if self.case_insensitive:
            stored = stored.lower()
            value = value.lower()
        if self.operator is SearchOperator.CONTAINS:
            return value in stored
        return stored.startswith(value)


def build_fuzzy_search_predicates(
    search_term: str,
    patient_number_prefix: str = PATIENT_NUMBER_PREFIX,
) -> List[SearchPredicate]:
    """
    Turn a search box entry into OR-ed lookup predicates.

    Each normalized name token longer than one character is matched
    anywhere in the first, last and middle name and as a prefix of the
    first and last name. Four or more digits also search the phone
    number, and input starting with the patient number prefix searches
    patient numbers.
    """
    if not isinstance(search_term, str):
        return []

    predicates: List[SearchPredicate] = []

    tokens = [t for t in normalize_name(search_term).split(' ') if len(t) >= MIN_TOKEN_LENGTH]
    for token in tokens:
        predicates.append(SearchPredicate("first_name", SearchOperator.CONTAINS, token))
        predicates.append(SearchPredicate("last_name", SearchOperator.CONTAINS, token))
        predicates.append(SearchPredicate("middle_name", SearchOperator.CONTAINS, token))
        predicates.append(SearchPredicate("first_name", SearchOperator.STARTS_WITH, token))
        predicates.append(SearchPredicate("last_name", SearchOperator.STARTS_WITH, token))

    phone_digits = extract_digits(search_term)
    if len(phone_digits) >= MIN_PHONE_DIGITS:
        predicates.append(SearchPredicate("phone_number", SearchOperator.CONTAINS, phone_digits, case_insensitive=False))

    term = search_term.strip()
    if patient_number_prefix and term.upper().startswith(patient_number_prefix.upper()):
        predicates.append(SearchPredicate("patient_number", SearchOperator.STARTS_WITH, term))

    return predicates


def matches_record(predicates: Sequence[SearchPredicate], record: Mapping[str, Any]) -> bool:
    """True when any predicate matches the record."""
    return any(p.matches(record) for p in predicates)
