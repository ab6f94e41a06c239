import re
from datetime import date, datetime
from typing import Any, Optional

from ..config import DEFAULT_PHONE_PLAN, DOB_FORMAT, PhoneNumberingPlan
from .models import MatchInfo, is_present
from .normalizers import normalize_name, normalize_phone
from .phonetics import sounds_like
from .string_metrics import similarity

PHONETIC_BONUS = 10
NEUTRAL_SCORE = 50

_ISO_DATE_PREFIX = re.compile(r'^\s*(\d{4}-\d{2}-\d{2})')


def parse_date(value: Any) -> Optional[date]:
    """Parse a date of birth from a date, datetime or ISO-8601 string; None if unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    match = _ISO_DATE_PREFIX.match(value)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), DOB_FORMAT).date()
    except ValueError:
        return None


def date_similarity(date1: Any, date2: Any) -> int:
    """
    Tiered date-of-birth similarity.

    100 exact, 80 same year and month (day typo), 50 same year,
    30 when the years differ by exactly one, otherwise 0.
    """
    d1 = parse_date(date1)
    d2 = parse_date(date2)
    if d1 is None or d2 is None:
        return 0

    if d1 == d2:
        return 100
    if d1.year == d2.year and d1.month == d2.month:
        return 80
    if d1.year == d2.year:
        return 50
    if abs(d1.year - d2.year) == 1:
        return 30
    return 0


def phone_similarity(phone1: Any, phone2: Any, plan: PhoneNumberingPlan = DEFAULT_PHONE_PLAN) -> int:
    """
    Compare two phone numbers, tolerating country code and trunk prefix
    differences and one or two mistyped digits.
    """
    p1 = normalize_phone(phone1, plan)
    p2 = normalize_phone(phone2, plan)

    if not p1 or not p2:
        return 0
    if p1 == p2:
        return 100

    suffix_length = plan.national_number_length
    if len(p1) >= suffix_length and len(p2) >= suffix_length and p1[-suffix_length:] == p2[-suffix_length:]:
        return 100

    if len(p1) == len(p2):
        differences = sum(1 for a, b in zip(p1, p2) if a != b)
        if differences == 1:
            return 80
        if differences == 2:
            return 50

    return 0


def name_similarity(input_name: str, db_name: str) -> int:
    """Similarity of normalized names; 0 when either normalizes to nothing."""
    left = normalize_name(input_name)
    right = normalize_name(db_name)
    if not left or not right:
        return 0
    return similarity(left, right)


def _classify(score: int) -> str:
    if score >= 100:
        return "Exact"
    if score > 0:
        return "Fuzzy"
    return "Mismatch"


class FuzzyMatcher:
    """Field-level comparators producing MatchInfo entries for the scorer."""

    def __init__(
        self,
        phone_plan: PhoneNumberingPlan = DEFAULT_PHONE_PLAN,
        phonetic_bonus: int = PHONETIC_BONUS,
    ):
        if not (0 <= phonetic_bonus <= 100):
            raise ValueError("phonetic_bonus must be between 0 and 100")
        self.phone_plan = phone_plan
        self.phonetic_bonus = phonetic_bonus

    def compare_names(self, field_name: str, input_name: Any, db_name: Any) -> MatchInfo:
        if not isinstance(input_name, str) or not isinstance(db_name, str):
            return MatchInfo(field_name, input_name, db_name, "Mismatch", 0, details="Non-text name value")

        base = name_similarity(input_name, db_name)
        phonetic = sounds_like(input_name, db_name)
        # The cap swallows the bonus once the spelling already matches
        score = min(100, base + (self.phonetic_bonus if phonetic else 0))

        if base < 100 and phonetic:
            return MatchInfo(field_name, input_name, db_name, "Phonetic", score,
                             details=f"similarity {base} + phonetic bonus")
        return MatchInfo(field_name, input_name, db_name, _classify(score), score)

    def compare_middle_names(self, input_name: Any, db_name: Any) -> Optional[MatchInfo]:
        """None when neither side has a middle name; neutral 50 when only one does."""
        field_name = "middle_name"
        input_present = is_present(input_name)
        db_present = is_present(db_name)

        if not input_present and not db_present:
            return None
        if input_present != db_present:
            return MatchInfo(field_name, input_name, db_name, "Neutral", NEUTRAL_SCORE,
                             details="Middle name on one record only")
        if not isinstance(input_name, str) or not isinstance(db_name, str):
            return MatchInfo(field_name, input_name, db_name, "Mismatch", 0, details="Non-text name value")

        score = name_similarity(input_name, db_name)
        return MatchInfo(field_name, input_name, db_name, _classify(score), score)

    def compare_dates(self, input_dob: Any, db_dob: Any) -> MatchInfo:
        field_name = "date_of_birth"
        score = date_similarity(input_dob, db_dob)
        details = None
        if parse_date(input_dob) is None or parse_date(db_dob) is None:
            details = "Unparseable date"
        return MatchInfo(field_name, input_dob, db_dob, _classify(score), score, details)

    def compare_phones(self, input_phone: Any, db_phone: Any) -> MatchInfo:
        score = phone_similarity(input_phone, db_phone, self.phone_plan)
        return MatchInfo("phone_number", input_phone, db_phone, _classify(score), score)

    def compare_gender(self, input_gender: Any, db_gender: Any) -> MatchInfo:
        field_name = "gender"
        if not isinstance(input_gender, str) or not isinstance(db_gender, str):
            return MatchInfo(field_name, input_gender, db_gender, "Mismatch", 0, details="Non-text gender value")
        score = 100 if input_gender.strip().upper() == db_gender.strip().upper() else 0
        return MatchInfo(field_name, input_gender, db_gender, _classify(score), score)
