"""
Weighted multi-field match scoring.

A composite score is the weighted mean of the field scores for the fields
present on both records. Fields missing on either side are dropped from
numerator and denominator alike, so a sparse record is not penalized for
what it does not say. The middle name is the exception: it counts whenever
at least one side has one, scoring a neutral 50 when only one side does.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from ..config import (
    DEFAULT_PHONE_PLAN,
    DEFAULT_THRESHOLDS,
    DEFAULT_WEIGHTS,
    ConfidenceThresholds,
    MatchWeights,
    PhoneNumberingPlan,
)
from .fuzzy_matchers import FuzzyMatcher
from .models import MatchInfo, MatchResult, PatientIdentity
from .string_metrics import round_half_up

logger = logging.getLogger(__name__)

IdentityLike = Union[PatientIdentity, Mapping[str, Any]]

CANDIDATE_ID_KEYS = ("id", "patient_id", "patientId", "patient_number", "patientNumber")


def candidate_identifier(record: Mapping[str, Any]) -> Any:
    """First identifier-like key found on a candidate record, else None."""
    for key in CANDIDATE_ID_KEYS:
        value = record.get(key)
        if value is not None:
            return value
    return None


class MatchScorer:
    """Fuses field comparators into a composite score and confidence bucket."""

    def __init__(
        self,
        weights: MatchWeights = DEFAULT_WEIGHTS,
        thresholds: ConfidenceThresholds = DEFAULT_THRESHOLDS,
        phone_plan: PhoneNumberingPlan = DEFAULT_PHONE_PLAN,
        fuzzy_matcher: Optional[FuzzyMatcher] = None,
    ):
        self.weights = weights
        self.thresholds = thresholds
        self.phone_plan = phone_plan
        self.fuzzy_matcher = fuzzy_matcher or FuzzyMatcher(phone_plan=phone_plan)

    def compare_fields(self, new: PatientIdentity, existing: PatientIdentity) -> List[MatchInfo]:
        """Field comparisons for every field that takes part in the score, in weight order."""
        matcher = self.fuzzy_matcher
        comparisons: List[MatchInfo] = []

        if new.has("first_name") and existing.has("first_name"):
            comparisons.append(matcher.compare_names("first_name", new.first_name, existing.first_name))

        if new.has("last_name") and existing.has("last_name"):
            comparisons.append(matcher.compare_names("last_name", new.last_name, existing.last_name))

        middle = matcher.compare_middle_names(new.middle_name, existing.middle_name)
        if middle is not None:
            comparisons.append(middle)

        if new.has("date_of_birth") and existing.has("date_of_birth"):
            comparisons.append(matcher.compare_dates(new.date_of_birth, existing.date_of_birth))

        if new.has("phone_number") and existing.has("phone_number"):
            comparisons.append(matcher.compare_phones(new.phone_number, existing.phone_number))

        if new.has("gender") and existing.has("gender"):
            comparisons.append(matcher.compare_gender(new.gender, existing.gender))

        return comparisons

    def composite_score(self, comparisons: List[MatchInfo]) -> int:
        weights = self.weights.as_dict()
        total_weight = 0
        weighted_score = 0
        for info in comparisons:
            weight = weights.get(info.field_name, 0)
            weighted_score += info.similarity_score * weight
            total_weight += weight
        if total_weight == 0:
            return 0
        return round_half_up(weighted_score / total_weight)

    def score(self, new_patient: IdentityLike, existing_patient: IdentityLike) -> MatchResult:
        """Score an existing patient record against a new registration."""
        new = PatientIdentity.from_mapping(new_patient)
        if isinstance(existing_patient, PatientIdentity):
            record: Mapping[str, Any] = existing_patient.to_dict()
        else:
            record = existing_patient
        existing = PatientIdentity.from_mapping(record)

        comparisons = self.compare_fields(new, existing)
        composite = self.composite_score(comparisons)
        breakdown: Dict[str, int] = {info.field_name: info.similarity_score for info in comparisons}
        candidate_id = candidate_identifier(record)
        logger.debug(f"Scored candidate {candidate_id}: {composite} over {len(comparisons)} fields")

        return MatchResult(
            candidate_id=candidate_id,
            patient=record,
            score=composite,
            confidence=self.thresholds.classify(composite),
            breakdown=breakdown,
            fields=comparisons,
            is_likely_duplicate=composite >= self.thresholds.possible_match,
        )


_DEFAULT_SCORER = MatchScorer()


def calculate_match_score(patient1: IdentityLike, patient2: IdentityLike) -> MatchResult:
    """Score two records with the default weights and thresholds."""
    return _DEFAULT_SCORER.score(patient1, patient2)
