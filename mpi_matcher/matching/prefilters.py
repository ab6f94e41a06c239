"""
Candidate prefilter clauses.

A new registration is compared only against a small pool of existing
records. No single clause is both precise and complete, so the pool is the
union (OR) of five clause kinds. Each clause is a plain value; storage
adapters translate them into their own query language.
"""
from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Tuple, Union

from ..config import DEFAULT_CANDIDATE_LIMIT, DEFAULT_PHONE_PLAN, DEFAULT_PREFIX_LENGTH, PhoneNumberingPlan
from .fuzzy_matchers import parse_date
from .models import PatientIdentity
from .normalizers import normalize_phone


@dataclass(frozen=True)
class PhoneSuffix:
    """Stored phone number ends with these national digits."""
    digits: str


@dataclass(frozen=True)
class ExactName:
    """Case-insensitive exact first and last name."""
    first_name: str
    last_name: str


@dataclass(frozen=True)
class PrefixName:
    """First and last name both start with the given prefixes."""
    first_prefix: str
    last_prefix: str


@dataclass(frozen=True)
class SwappedName:
    """Names entered the wrong way round: stored first name is last_name, stored last name is first_name."""
    first_name: str
    last_name: str


@dataclass(frozen=True)
class DobPlusPrefix:
    """Exact date of birth and a last-name prefix."""
    date_of_birth: date
    last_prefix: str


PrefilterClause = Union[PhoneSuffix, ExactName, PrefixName, SwappedName, DobPlusPrefix]


@dataclass(frozen=True)
class PrefilterQuery:
    clauses: Tuple[PrefilterClause, ...]
    limit: int = DEFAULT_CANDIDATE_LIMIT
    exclude_deleted: bool = True

    @property
    def is_empty(self) -> bool:
        return not self.clauses


def _name_key(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def build_prefilter_query(
    payload: Union[PatientIdentity, Mapping[str, Any]],
    phone_plan: PhoneNumberingPlan = DEFAULT_PHONE_PLAN,
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
    limit: int = DEFAULT_CANDIDATE_LIMIT,
) -> PrefilterQuery:
    """Build the OR-query for whichever clauses the payload has the inputs for."""
    identity = PatientIdentity.from_mapping(payload)
    clauses = []

    phone = normalize_phone(identity.phone_number, phone_plan)
    if len(phone) >= phone_plan.national_number_length:
        clauses.append(PhoneSuffix(phone[-phone_plan.national_number_length:]))

    first = _name_key(identity.first_name)
    last = _name_key(identity.last_name)

    if first and last:
        clauses.append(ExactName(first, last))
        clauses.append(PrefixName(first[:prefix_length], last[:prefix_length]))
        clauses.append(SwappedName(first, last))

    dob = parse_date(identity.date_of_birth)
    if dob is not None and last:
        clauses.append(DobPlusPrefix(dob, last[:prefix_length]))

    return PrefilterQuery(clauses=tuple(clauses), limit=limit)
