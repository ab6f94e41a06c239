"""
Name and phone number normalization.

Both normalizers are total: any input, including None or non-string
values, produces a (possibly empty) string rather than an exception.
"""
import re
from dataclasses import dataclass
from typing import Any

from ..config import DEFAULT_PHONE_PLAN, PhoneNumberingPlan

NAME_TITLES = ('mr', 'mrs', 'ms', 'miss', 'dr', 'prof', 'sir', 'madam', 'chief', 'alhaji', 'hajia')

_TITLE_PATTERNS = [re.compile(rf'^{title}\.?\s+') for title in NAME_TITLES]
_INVALID_NAME_CHARS = re.compile(r'[^a-z\s-]')
_WHITESPACE = re.compile(r'\s+')
_NON_DIGITS = re.compile(r'\D')


@dataclass(frozen=True)
class ParsedName:
    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""


def normalize_name(name: Any) -> str:
    """
    Lowercase a name, strip a leading title and anything that is not a
    letter, space or hyphen, then collapse whitespace.

    >>> normalize_name("  Dr. Kwame   O'Brien ")
    'kwame obrien'
    """
    if not isinstance(name, str) or not name:
        return ""

    normalized = name.lower().strip()

    for pattern in _TITLE_PATTERNS:
        normalized = pattern.sub('', normalized)

    normalized = _INVALID_NAME_CHARS.sub('', normalized)
    normalized = _WHITESPACE.sub(' ', normalized)
    return normalized.strip()


def parse_full_name(full_name: Any) -> ParsedName:
    """Split a free-text full name into first, middle and last components."""
    parts = [p for p in normalize_name(full_name).split(' ') if p]

    if not parts:
        return ParsedName()
    if len(parts) == 1:
        return ParsedName(first_name=parts[0])
    if len(parts) == 2:
        return ParsedName(first_name=parts[0], last_name=parts[1])

    return ParsedName(
        first_name=parts[0],
        middle_name=' '.join(parts[1:-1]),
        last_name=parts[-1],
    )


def extract_digits(value: Any) -> str:
    if value is None:
        return ""
    return _NON_DIGITS.sub('', str(value))


def normalize_phone(phone: Any, plan: PhoneNumberingPlan = DEFAULT_PHONE_PLAN) -> str:
    """
    Reduce a phone number to its national significant digits.

    "+233 24 123 4567" and "0241234567" both normalize to "241234567"
    under the default plan.
    """
    if phone is None or isinstance(phone, bool):
        return ""

    normalized = extract_digits(phone)

    if normalized.startswith(plan.country_code) and len(normalized) > plan.national_number_length:
        normalized = normalized[len(plan.country_code):]

    trunk = plan.trunk_prefix
    if trunk and normalized.startswith(trunk) and len(normalized) == plan.national_number_length + len(trunk):
        normalized = normalized[len(trunk):]

    return normalized
