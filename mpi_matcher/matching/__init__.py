"""Patient identity matching: metrics, normalizers, scoring and duplicate detection."""

from .fuzzy_matchers import FuzzyMatcher, date_similarity, phone_similarity
from .fuzzy_search import SearchOperator, SearchPredicate, build_fuzzy_search_predicates
from .models import ConfidenceLevel, DuplicateCheckReport, MatchInfo, MatchResult, PatientIdentity
from .normalizers import normalize_name, normalize_phone, parse_full_name
from .phonetics import soundex, sounds_like
from .prefilters import PrefilterQuery, build_prefilter_query
from .scorer import MatchScorer, calculate_match_score
from .search_strategy import DuplicateDetector, build_report
from .string_metrics import levenshtein_distance, similarity

__all__ = [
    "ConfidenceLevel",
    "PatientIdentity",
    "MatchInfo",
    "MatchResult",
    "DuplicateCheckReport",
    "FuzzyMatcher",
    "MatchScorer",
    "calculate_match_score",
    "DuplicateDetector",
    "build_report",
    "PrefilterQuery",
    "build_prefilter_query",
    "SearchOperator",
    "SearchPredicate",
    "build_fuzzy_search_predicates",
    "levenshtein_distance",
    "similarity",
    "soundex",
    "sounds_like",
    "normalize_name",
    "normalize_phone",
    "parse_full_name",
    "date_similarity",
    "phone_similarity",
]
