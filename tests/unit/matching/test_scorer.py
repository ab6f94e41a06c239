"""Unit tests for mpi_matcher.matching.scorer module."""

import pytest

from mpi_matcher.config import ConfidenceThresholds, MatchWeights
from mpi_matcher.matching.models import ConfidenceLevel, PatientIdentity
from mpi_matcher.matching.scorer import MatchScorer, calculate_match_score, candidate_identifier


@pytest.fixture
def existing_jon():
    """The same person as new_patient, registered with a typo and an international phone format."""
    return {
        "id": 1,
        "firstName": "Jon",
        "lastName": "Doe",
        "dateOfBirth": "1990-01-01",
        "phoneNumber": "233241234567",
    }


class TestCompositeScore:
    """Test weighted composite scoring."""

    def test_typo_and_phone_format(self, scorer, new_patient, existing_jon):
        """Test a first name typo with the same phone in another format."""
        result = scorer.score(new_patient, existing_jon)

        assert result.breakdown == {
            "first_name": 85,
            "last_name": 100,
            "date_of_birth": 100,
            "phone_number": 100,
        }
        assert result.score == 96
        assert result.score >= 80
        assert result.confidence is ConfidenceLevel.DEFINITE_MATCH
        assert result.is_likely_duplicate is True
        assert result.candidate_id == 1

    def test_same_name_different_person(self, scorer, new_patient):
        """Test identical names with a DOB a decade apart and an unrelated phone."""
        existing = {
            "firstName": "John",
            "lastName": "Doe",
            "dateOfBirth": "2000-01-01",
            "phoneNumber": "0551112223",
        }
        result = scorer.score(new_patient, existing)

        assert result.breakdown["date_of_birth"] == 0
        assert result.breakdown["phone_number"] == 0
        # Names alone carry 50 of the 90 available points
        assert result.score == 56
        assert result.score < 60
        assert result.confidence is ConfidenceLevel.UNLIKELY_MATCH
        assert result.is_likely_duplicate is False

    def test_absent_fields_not_penalized(self, scorer):
        """Test that fields missing on one side leave the denominator."""
        result = scorer.score(
            {"first_name": "John", "last_name": "Doe"},
            {"first_name": "John", "last_name": "Doe", "date_of_birth": "1990-01-01", "phone_number": "0241234567"},
        )
        assert result.score == 100
        assert set(result.breakdown) == {"first_name", "last_name"}

    def test_names_without_latin_letters(self, scorer):
        """Test that names normalizing to nothing are not scored as equal."""
        result = scorer.score({"first_name": "李", "last_name": "王"}, {"first_name": "张", "last_name": "陈"})

        assert result.breakdown == {"first_name": 10, "last_name": 10}
        assert result.score == 10
        assert result.confidence is ConfidenceLevel.NO_MATCH
        assert all(info.match_type != "Exact" for info in result.fields)

    def test_unrelated_non_latin_twin_not_definite(self, scorer):
        """Test a different person sharing phone and date of birth."""
        result = scorer.score(
            {"first_name": "李", "last_name": "王", "date_of_birth": "1990-01-01", "phone_number": "0241234567"},
            {"first_name": "张", "last_name": "陈", "date_of_birth": "1990-01-01", "phone_number": "0241234567"},
        )
        assert result.score == 50
        assert result.confidence is ConfidenceLevel.UNLIKELY_MATCH

    def test_blank_string_is_absent(self, scorer):
        """Test that an empty phone number does not count as a mismatch."""
        result = scorer.score(
            {"first_name": "John", "last_name": "Doe", "phone_number": ""},
            {"first_name": "John", "last_name": "Doe", "phone_number": "0241234567"},
        )
        assert "phone_number" not in result.breakdown
        assert result.score == 100

    def test_nothing_comparable(self, scorer):
        """Test that records sharing no fields score 0."""
        result = scorer.score({"first_name": "John"}, {"last_name": "Doe"})
        assert result.score == 0
        assert result.confidence is ConfidenceLevel.NO_MATCH
        assert result.breakdown == {}

    def test_middle_name_on_one_side(self, scorer):
        """Test the neutral middle name score."""
        result = scorer.score(
            {"first_name": "John", "middle_name": "Kofi", "last_name": "Doe"},
            {"first_name": "John", "last_name": "Doe"},
        )
        assert result.breakdown["middle_name"] == 50
        assert result.score == 95

    def test_gender_mismatch(self, scorer):
        """Test a gender mismatch on otherwise identical names."""
        result = scorer.score(
            {"first_name": "John", "last_name": "Doe", "gender": "M"},
            {"first_name": "John", "last_name": "Doe", "gender": "F"},
        )
        assert result.score == 91
        assert result.confidence is ConfidenceLevel.PROBABLE_MATCH

    def test_idempotent(self, scorer, new_patient, existing_jon):
        """Test that scoring the same pair twice yields the same result."""
        assert scorer.score(new_patient, existing_jon) == scorer.score(new_patient, existing_jon)

    def test_identity_inputs(self, scorer):
        """Test scoring PatientIdentity objects directly."""
        identity = PatientIdentity(first_name="Ama", last_name="Mensah", gender="F")
        result = scorer.score(identity, identity)
        assert result.score == 100
        assert result.patient["first_name"] == "Ama"

    def test_custom_weights(self, new_patient, existing_jon):
        """Test scoring with names-only weights; 92.5 rounds up."""
        weights = MatchWeights(first_name=50, last_name=50, middle_name=0,
                               date_of_birth=0, phone_number=0, gender=0)
        result = MatchScorer(weights=weights).score(new_patient, existing_jon)
        assert result.score == 93

    def test_fields_recorded(self, scorer, new_patient, existing_jon, custom_assertions):
        """Test that every compared field has a MatchInfo."""
        result = scorer.score(new_patient, existing_jon)
        assert [info.field_name for info in result.fields] == list(result.breakdown)
        for info in result.fields:
            custom_assertions.assert_valid_match_info(info)


class TestConfidenceBuckets:
    """Test classification of composite scores."""

    @pytest.mark.parametrize(
        "score,level",
        [
            (100, ConfidenceLevel.DEFINITE_MATCH),
            (95, ConfidenceLevel.DEFINITE_MATCH),
            (94, ConfidenceLevel.PROBABLE_MATCH),
            (80, ConfidenceLevel.PROBABLE_MATCH),
            (79, ConfidenceLevel.POSSIBLE_MATCH),
            (60, ConfidenceLevel.POSSIBLE_MATCH),
            (59, ConfidenceLevel.UNLIKELY_MATCH),
            (40, ConfidenceLevel.UNLIKELY_MATCH),
            (39, ConfidenceLevel.NO_MATCH),
            (0, ConfidenceLevel.NO_MATCH),
        ],
    )
    def test_boundaries(self, score, level):
        """Test the inclusive lower bound of every bucket."""
        assert ConfidenceThresholds().classify(score) is level

    def test_custom_thresholds(self, new_patient, existing_jon):
        """Test injecting stricter thresholds."""
        thresholds = ConfidenceThresholds(definite_match=99, probable_match=90, possible_match=70, unlikely_match=50)
        result = MatchScorer(thresholds=thresholds).score(new_patient, existing_jon)
        assert result.confidence is ConfidenceLevel.PROBABLE_MATCH


class TestHelpers:
    """Test module level helpers."""

    def test_candidate_identifier(self):
        """Test lookup order of identifier keys."""
        assert candidate_identifier({"id": 5, "patient_number": "PT-1"}) == 5
        assert candidate_identifier({"patientNumber": "PT-1"}) == "PT-1"
        assert candidate_identifier({"first_name": "Kofi"}) is None

    def test_calculate_match_score(self, new_patient, existing_jon):
        """Test the default scorer shortcut."""
        assert calculate_match_score(new_patient, existing_jon).score == 96
