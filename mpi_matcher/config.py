"""Configuration constants and settings for mpi_matcher."""
import os
from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, Optional

from .exceptions import InvalidConfigurationError

# Application constants
APP_VERSION = "0.1.0"
DOB_FORMAT = "%Y-%m-%d"
PATIENT_NUMBER_PREFIX = "PT-"

# Logging configuration
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
LOGGER_NAME = "mpi_matcher.main"

# Candidate retrieval
DEFAULT_CANDIDATE_LIMIT = 20
DEFAULT_PREFIX_LENGTH = 3
DEFAULT_MATCH_THRESHOLD = 60

# File handling
DEFAULT_FILE_ENCODING = 'utf-8'
VALID_OUTPUT_FORMATS = ['json', 'csv', 'stdout']
FILE_EXTENSION_MAP = {
    '.json': 'json',
    '.csv': 'csv',
}

# Database configuration defaults
DEFAULT_SQL_DRIVER = "{SQL Server Native Client 10.0}"

# Column names of the patient table, keyed by identity field
DEFAULT_PATIENT_COLUMN_MAP = {
    "id": "PatientID",
    "patient_number": "PatientNumber",
    "first_name": "FirstName",
    "middle_name": "MiddleName",
    "last_name": "LastName",
    "date_of_birth": "DateOfBirth",
    "gender": "Gender",
    "phone_number": "PhoneNumber",
    "deleted_at": "DeletedAt",
}


@dataclass(frozen=True)
class MatchWeights:
    """Relative importance of each identity field in the composite score."""
    first_name: int = 25
    last_name: int = 25
    middle_name: int = 5
    date_of_birth: int = 25
    phone_number: int = 15
    gender: int = 5

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, int) or value < 0:
                raise InvalidConfigurationError(f"Weight for {f.name} must be a non-negative integer")
        if self.total != 100:
            raise InvalidConfigurationError(f"Match weights must sum to 100, got {self.total}")

    @property
    def total(self) -> int:
        return sum(getattr(self, f.name) for f in fields(self))

    def as_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class ConfidenceLevel(Enum):
    """Bucketed classification of a composite match score."""
    DEFINITE_MATCH = "DEFINITE_MATCH"    # Almost certainly the same person
    PROBABLE_MATCH = "PROBABLE_MATCH"    # Very likely the same person
    POSSIBLE_MATCH = "POSSIBLE_MATCH"    # Might be the same person
    UNLIKELY_MATCH = "UNLIKELY_MATCH"    # Probably not the same person
    NO_MATCH = "NO_MATCH"


@dataclass(frozen=True)
class ConfidenceThresholds:
    """Lower bounds (inclusive) of the confidence buckets."""
    definite_match: int = 95
    probable_match: int = 80
    possible_match: int = 60
    unlikely_match: int = 40

    def __post_init__(self):
        ordered = [self.definite_match, self.probable_match, self.possible_match, self.unlikely_match]
        if any(not 0 <= bound <= 100 for bound in ordered):
            raise InvalidConfigurationError("Confidence thresholds must be between 0 and 100")
        if ordered != sorted(ordered, reverse=True):
            raise InvalidConfigurationError("Confidence thresholds must be strictly descending")
        if len(set(ordered)) != len(ordered):
            raise InvalidConfigurationError("Confidence thresholds must be strictly descending")

    def classify(self, score: int) -> ConfidenceLevel:
        """Map a composite score to its ConfidenceLevel bucket."""
        if score >= self.definite_match:
            return ConfidenceLevel.DEFINITE_MATCH
        elif score >= self.probable_match:
            return ConfidenceLevel.PROBABLE_MATCH
        elif score >= self.possible_match:
            return ConfidenceLevel.POSSIBLE_MATCH
        elif score >= self.unlikely_match:
            return ConfidenceLevel.UNLIKELY_MATCH
        else:
            return ConfidenceLevel.NO_MATCH


@dataclass(frozen=True)
class PhoneNumberingPlan:
    """
    Regional phone numbering parameters.

    The defaults describe Ghanaian numbers: +233 country code, a single
    leading trunk zero and nine-digit national significant numbers.
    """
    country_code: str = "233"
    trunk_prefix: str = "0"
    national_number_length: int = 9

    def __post_init__(self):
        if not self.country_code.isdigit():
            raise InvalidConfigurationError("country_code must contain digits only")
        if self.trunk_prefix and not self.trunk_prefix.isdigit():
            raise InvalidConfigurationError("trunk_prefix must contain digits only")
        if self.national_number_length < 1:
            raise InvalidConfigurationError("national_number_length must be positive")


DEFAULT_WEIGHTS = MatchWeights()
DEFAULT_THRESHOLDS = ConfidenceThresholds()
DEFAULT_PHONE_PLAN = PhoneNumberingPlan()


def get_env_or_default(key: str, default: str = "") -> str:
    """Get environment variable with optional default."""
    return os.getenv(key, default)


def load_phone_plan_from_env() -> PhoneNumberingPlan:
    """Build a PhoneNumberingPlan from MPI_PHONE_* environment variables."""
    length = get_env_or_default("MPI_PHONE_NATIONAL_LENGTH", str(DEFAULT_PHONE_PLAN.national_number_length))
    try:
        national_length = int(length)
    except ValueError:
        raise InvalidConfigurationError(f"MPI_PHONE_NATIONAL_LENGTH must be an integer, got '{length}'")
    return PhoneNumberingPlan(
        country_code=get_env_or_default("MPI_PHONE_COUNTRY_CODE", DEFAULT_PHONE_PLAN.country_code),
        trunk_prefix=get_env_or_default("MPI_PHONE_TRUNK_PREFIX", DEFAULT_PHONE_PLAN.trunk_prefix),
        national_number_length=national_length,
    )


def parse_weights(spec: str) -> MatchWeights:
    """
    Parse a weight override string such as "first_name=30,last_name=30,...".

    Fields not mentioned keep their default weight; the result must still
    sum to 100.
    """
    overrides: Dict[str, int] = {}
    for part in spec.split(','):
        part = part.strip()
        if not part:
            continue
        if '=' not in part:
            raise InvalidConfigurationError(f"Invalid weight entry '{part}', expected field=weight")
        name, value = (p.strip() for p in part.split('=', 1))
        if name not in DEFAULT_WEIGHTS.as_dict():
            raise InvalidConfigurationError(f"Unknown weight field '{name}'")
        try:
            overrides[name] = int(value)
        except ValueError:
            raise InvalidConfigurationError(f"Weight for {name} must be an integer, got '{value}'")
    return MatchWeights(**{**DEFAULT_WEIGHTS.as_dict(), **overrides})


def load_weights_from_env() -> MatchWeights:
    """Read MPI_WEIGHTS from the environment, falling back to the defaults."""
    spec: Optional[str] = os.getenv("MPI_WEIGHTS")
    if not spec:
        return DEFAULT_WEIGHTS
    return parse_weights(spec)
