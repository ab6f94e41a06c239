import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..config import DEFAULT_CANDIDATE_LIMIT, DEFAULT_MATCH_THRESHOLD, DEFAULT_PREFIX_LENGTH
from ..secure_logging import get_secure_logger
from .models import ConfidenceLevel, DuplicateCheckReport, MatchResult, PatientIdentity
from .prefilters import PrefilterQuery, build_prefilter_query
from .scorer import MatchScorer

logger = get_secure_logger(__name__)

PayloadLike = Union[PatientIdentity, Mapping[str, Any]]


class DuplicateDetector:
    """
    Finds existing patients that may be the same person as a new registration.

    Candidates come from the repository through a bounded prefilter query;
    every candidate is then scored with the MatchScorer. Repository errors
    are not caught here.
    """

    def __init__(
        self,
        repository,
        scorer: Optional[MatchScorer] = None,
        max_candidates: int = DEFAULT_CANDIDATE_LIMIT,
        prefix_length: int = DEFAULT_PREFIX_LENGTH,
    ):
        if max_candidates < 1:
            raise ValueError("max_candidates must be at least 1")
        self.repository = repository
        self.scorer = scorer or MatchScorer()
        self.max_candidates = max_candidates
        self.prefix_length = prefix_length

    def build_query(self, payload: PayloadLike) -> PrefilterQuery:
        return build_prefilter_query(
            payload,
            phone_plan=self.scorer.phone_plan,
            prefix_length=self.prefix_length,
            limit=self.max_candidates,
        )

    def _fetch_candidates(self, query: PrefilterQuery) -> List[Dict[str, Any]]:
        start_time = time.time()
        candidates = list(self.repository.find_candidates(query))
        duration_ms = (time.time() - start_time) * 1000
        logger.log_patient_search("prefilter", len(query.clauses), len(candidates), duration_ms)

        if len(candidates) > self.max_candidates:
            logger.warning(
                f"Repository returned {len(candidates)} candidates, "
                f"only the first {self.max_candidates} will be scored."
            )
            candidates = candidates[:self.max_candidates]
        return candidates

    def rank_candidates(
        self,
        payload: PayloadLike,
        candidates: Iterable[Mapping[str, Any]],
        threshold: int = DEFAULT_MATCH_THRESHOLD,
    ) -> List[MatchResult]:
        """Score an already retrieved pool; best first, ties kept in retrieval order."""
        new_patient = PatientIdentity.from_mapping(payload)
        results = [self.scorer.score(new_patient, candidate) for candidate in candidates]
        # sorted() is stable, so equal scores keep retrieval order
        results = sorted(results, key=lambda r: r.score, reverse=True)
        return [r for r in results if r.score >= threshold]

    def _detect(self, payload: PayloadLike, threshold: int) -> Tuple[List[MatchResult], int]:
        query = self.build_query(payload)
        if query.is_empty:
            logger.warning("Payload has no name, date of birth or phone to prefilter on. Skipping candidate retrieval.")
            return [], 0

        candidates = self._fetch_candidates(query)
        matches = self.rank_candidates(payload, candidates, threshold)
        logger.info(f"Evaluated {len(candidates)} candidates, {len(matches)} at or above score {threshold}.")
        return matches, len(candidates)

    def find_potential_duplicates(
        self,
        payload: PayloadLike,
        threshold: int = DEFAULT_MATCH_THRESHOLD,
    ) -> List[MatchResult]:
        matches, _ = self._detect(payload, threshold)
        return matches

    def check(self, payload: PayloadLike, threshold: int = DEFAULT_MATCH_THRESHOLD) -> DuplicateCheckReport:
        """Run duplicate detection and summarize it for the registration workflow."""
        matches, evaluated = self._detect(payload, threshold)
        report = build_report(matches, threshold, candidates_evaluated=evaluated)
        logger.log_duplicate_check(
            report.definite_match_count,
            report.probable_match_count,
            report.possible_match_count,
            evaluated,
        )
        return report


def build_report(
    matches: List[MatchResult],
    threshold: int = DEFAULT_MATCH_THRESHOLD,
    candidates_evaluated: int = 0,
) -> DuplicateCheckReport:
    """Count matches per bucket and derive the proceed/review flags and message."""
    definite = sum(1 for m in matches if m.confidence is ConfidenceLevel.DEFINITE_MATCH)
    probable = sum(1 for m in matches if m.confidence is ConfidenceLevel.PROBABLE_MATCH)
    possible = sum(1 for m in matches if m.confidence is ConfidenceLevel.POSSIBLE_MATCH)

    if definite:
        message = (
            f"Found {definite} definite match{'es' if definite != 1 else ''}. "
            f"This patient is almost certainly already registered."
        )
    elif probable or possible:
        message = (
            f"Found {probable + possible} potential duplicate{'s' if probable + possible != 1 else ''} "
            f"({probable} probable, {possible} possible). Please review before registering."
        )
    elif matches:
        message = f"Found {len(matches)} low-confidence match{'es' if len(matches) != 1 else ''}."
    else:
        message = "No potential duplicates found."

    return DuplicateCheckReport(
        matches=matches,
        definite_match_count=definite,
        probable_match_count=probable,
        possible_match_count=possible,
        can_proceed=definite == 0,
        requires_review=(probable + possible) > 0,
        message=message,
        threshold=threshold,
        candidates_evaluated=candidates_evaluated,
    )
