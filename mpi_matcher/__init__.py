"""mpi_matcher package"""
import logging

# Configure a null handler by default
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Expose public interface
from .config import APP_VERSION, MatchWeights, ConfidenceThresholds, PhoneNumberingPlan
from .exceptions import (
    MPIError,
    InvalidConfigurationError,
    CandidateRetrievalFailure,
    DatabaseConnectionError,
    QueryExecutionError,
    DuplicateBlocked,
)
from .matching import (
    ConfidenceLevel,
    DuplicateCheckReport,
    DuplicateDetector,
    MatchResult,
    MatchScorer,
    PatientIdentity,
    build_fuzzy_search_predicates,
    calculate_match_score,
)
from .registration import GateDecision, RegistrationGate, RegistrationOutcome, RegistrationStatus
from .repositories import CandidateRepository, InMemoryCandidateRepository

__version__ = APP_VERSION

__all__ = [
    'MatchWeights',
    'ConfidenceThresholds',
    'PhoneNumberingPlan',
    'MPIError',
    'InvalidConfigurationError',
    'CandidateRetrievalFailure',
    'DatabaseConnectionError',
    'QueryExecutionError',
    'DuplicateBlocked',
    'ConfidenceLevel',
    'PatientIdentity',
    'MatchResult',
    'DuplicateCheckReport',
    'MatchScorer',
    'calculate_match_score',
    'DuplicateDetector',
    'build_fuzzy_search_predicates',
    'RegistrationGate',
    'RegistrationOutcome',
    'RegistrationStatus',
    'GateDecision',
    'CandidateRepository',
    'InMemoryCandidateRepository',
]
