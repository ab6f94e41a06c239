"""
Duplicate-aware patient registration.

The gate runs a duplicate check before a patient is created and decides:

* BLOCKED when a definite match exists; DuplicateBlocked is raised.
* WARNED when probable or possible matches exist; nothing is created and the
  report is returned so a person can decide.
* ALLOWED otherwise; the patient is created straight away.

Either override flag skips the check and always creates the patient. Every
override is logged.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from .config import DEFAULT_MATCH_THRESHOLD
from .exceptions import DuplicateBlocked
from .matching.models import ConfidenceLevel, DuplicateCheckReport
from .matching.search_strategy import DuplicateDetector
from .secure_logging import get_secure_logger

logger = get_secure_logger(__name__)


class GateDecision(Enum):
    CHECKING = "CHECKING"
    BLOCKED = "BLOCKED"
    WARNED = "WARNED"
    ALLOWED = "ALLOWED"


class RegistrationStatus(Enum):
    CREATED = "CREATED"
    DUPLICATE_WARNING = "DUPLICATE_WARNING"


@dataclass(frozen=True)
class RegistrationOutcome:
    status: RegistrationStatus
    decision: GateDecision
    patient: Optional[Any] = None
    duplicate_check: Optional[DuplicateCheckReport] = None

    def to_dict(self) -> dict:
        result = {"status": self.status.value}
        if self.patient is not None:
            result["patient"] = self.patient
        if self.duplicate_check is not None:
            result["duplicateCheck"] = self.duplicate_check.to_dict()
        return result


class RegistrationGate:
    """Wraps patient creation with a block / warn / allow duplicate check."""

    def __init__(
        self,
        detector: DuplicateDetector,
        patient_creator: Callable[[Mapping[str, Any]], Any],
        threshold: int = DEFAULT_MATCH_THRESHOLD,
    ):
        self.detector = detector
        self.patient_creator = patient_creator
        self.threshold = threshold

    @staticmethod
    def evaluate(report: DuplicateCheckReport) -> GateDecision:
        if report.definite_match_count > 0:
            return GateDecision.BLOCKED
        if report.probable_match_count > 0 or report.possible_match_count > 0:
            return GateDecision.WARNED
        return GateDecision.ALLOWED

    def _create(self, payload: Mapping[str, Any], decision: GateDecision,
                report: Optional[DuplicateCheckReport] = None) -> RegistrationOutcome:
        patient = self.patient_creator(payload)
        return RegistrationOutcome(
            status=RegistrationStatus.CREATED,
            decision=decision,
            patient=patient,
            duplicate_check=report,
        )

    def create_with_duplicate_check(
        self,
        payload: Mapping[str, Any],
        skip_duplicate_check: bool = False,
        confirmed_not_duplicate: bool = False,
    ) -> RegistrationOutcome:
        """
        Create a patient unless the duplicate check blocks or defers it.

        Raises:
            DuplicateBlocked: a definite match exists and no override was given.
        """
        if skip_duplicate_check or confirmed_not_duplicate:
            flag = "skip_duplicate_check" if skip_duplicate_check else "confirmed_not_duplicate"
            logger.log_override(flag)
            return self._create(payload, GateDecision.ALLOWED)

        report = self.detector.check(payload, threshold=self.threshold)
        decision = self.evaluate(report)

        if decision is GateDecision.BLOCKED:
            ids = [m.candidate_id for m in report.matches if m.confidence is ConfidenceLevel.DEFINITE_MATCH]
            logger.warning(f"Registration blocked: definite match with patient(s) {ids}")
            raise DuplicateBlocked(report)

        if decision is GateDecision.WARNED:
            logger.info(f"Registration deferred for review: {report.message}")
            return RegistrationOutcome(
                status=RegistrationStatus.DUPLICATE_WARNING,
                decision=decision,
                duplicate_check=report,
            )

        logger.info("No duplicates requiring review, creating patient.")
        return self._create(payload, decision, report)
