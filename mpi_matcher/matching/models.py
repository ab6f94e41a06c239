from dataclasses import dataclass, field, fields
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from ..config import ConfidenceLevel

# camelCase keys accepted from registration payloads
FIELD_ALIASES = {
    "firstName": "first_name",
    "middleName": "middle_name",
    "lastName": "last_name",
    "dateOfBirth": "date_of_birth",
    "dob": "date_of_birth",
    "phoneNumber": "phone_number",
    "phone": "phone_number",
    "sex": "gender",
}


def is_present(value: Any) -> bool:
    """A field takes part in scoring unless it is None or a blank string."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


@dataclass(frozen=True)
class PatientIdentity:
    """The identity fields of a patient record used for matching. Any field may be absent."""
    first_name: Optional[Any] = None
    middle_name: Optional[Any] = None
    last_name: Optional[Any] = None
    date_of_birth: Optional[Any] = None
    gender: Optional[Any] = None
    phone_number: Optional[Any] = None

    @classmethod
    def from_mapping(cls, record: Mapping[str, Any]) -> "PatientIdentity":
        """
        Build an identity from a payload or database row; unknown keys are ignored.

        When a field appears under several aliases the first present value wins.
        """
        if isinstance(record, PatientIdentity):
            return record
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in record.items():
            name = FIELD_ALIASES.get(key, key)
            if name in known and not is_present(values.get(name)):
                values[name] = value
        return cls(**values)

    def has(self, field_name: str) -> bool:
        return is_present(getattr(self, field_name))

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class MatchInfo:
    """Per-field comparison outcome; similarity_score is on a 0-100 scale."""
    field_name: str
    input_value: Any
    db_value: Any
    match_type: str
    similarity_score: int = 0
    details: Optional[str] = None


@dataclass(frozen=True)
class MatchResult:
    """Composite comparison of a new patient against one existing candidate."""
    candidate_id: Any
    patient: Mapping[str, Any]
    score: int
    confidence: ConfidenceLevel
    breakdown: Dict[str, int]
    fields: List[MatchInfo] = field(default_factory=list)
    is_likely_duplicate: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "patient": _serializable(dict(self.patient)),
            "score": self.score,
            "confidence": self.confidence.value,
            "breakdown": dict(self.breakdown),
        }


@dataclass(frozen=True)
class DuplicateCheckReport:
    """Everything the caller needs to decide whether a registration may proceed."""
    matches: List[MatchResult]
    definite_match_count: int
    probable_match_count: int
    possible_match_count: int
    can_proceed: bool
    requires_review: bool
    message: str
    threshold: int = 60
    candidates_evaluated: int = 0

    @property
    def has_duplicates(self) -> bool:
        return bool(self.matches)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasDuplicates": self.has_duplicates,
            "matches": [m.to_dict() for m in self.matches],
            "definiteMatchCount": self.definite_match_count,
            "probableMatchCount": self.probable_match_count,
            "possibleMatchCount": self.possible_match_count,
            "canProceed": self.can_proceed,
            "requiresReview": self.requires_review,
            "message": self.message,
        }


def _serializable(record: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v.isoformat() if isinstance(v, (datetime, date)) else v for k, v in record.items()}
