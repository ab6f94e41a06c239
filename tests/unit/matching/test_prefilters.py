"""Unit tests for mpi_matcher.matching.prefilters module."""

from datetime import date

from mpi_matcher.config import PhoneNumberingPlan
from mpi_matcher.matching.prefilters import (
    DobPlusPrefix,
    ExactName,
    PhoneSuffix,
    PrefixName,
    SwappedName,
    build_prefilter_query,
)


class TestBuildPrefilterQuery:
    """Test prefilter clause construction."""

    def test_full_payload(self, new_patient):
        """Test that a complete payload produces all five clauses."""
        query = build_prefilter_query(new_patient)

        assert query.clauses == (
            PhoneSuffix("241234567"),
            ExactName("john", "doe"),
            PrefixName("joh", "doe"),
            SwappedName("john", "doe"),
            DobPlusPrefix(date(1990, 1, 1), "doe"),
        )
        assert query.limit == 20
        assert query.exclude_deleted is True
        assert not query.is_empty

    def test_short_phone_skipped(self):
        """Test that a phone shorter than a national number is not used."""
        query = build_prefilter_query({"phone_number": "12345"})
        assert query.is_empty

    def test_names_trimmed_and_lowercased(self):
        """Test name keys."""
        query = build_prefilter_query({"first_name": "  AMA ", "last_name": "Mensah"})
        assert ExactName("ama", "mensah") in query.clauses
        assert PrefixName("ama", "men") in query.clauses

    def test_dob_needs_last_name(self):
        """Test that the DOB clause is skipped without a last name."""
        query = build_prefilter_query({"date_of_birth": "1990-01-01"})
        assert query.is_empty

    def test_dob_with_last_name_only(self):
        """Test the DOB clause without a first name."""
        query = build_prefilter_query({"last_name": "Doe", "date_of_birth": "1990-01-01"})
        assert query.clauses == (DobPlusPrefix(date(1990, 1, 1), "doe"),)

    def test_unparseable_dob_skipped(self):
        """Test that an invalid DOB adds no clause."""
        query = build_prefilter_query({"last_name": "Doe", "date_of_birth": "soon"})
        assert query.is_empty

    def test_empty_payload(self):
        """Test that an empty payload has no clauses."""
        assert build_prefilter_query({}).is_empty

    def test_custom_limit_and_prefix(self, new_patient):
        """Test limit and prefix length parameters."""
        query = build_prefilter_query(new_patient, prefix_length=2, limit=5)
        assert query.limit == 5
        assert PrefixName("jo", "do") in query.clauses

    def test_custom_phone_plan(self):
        """Test the phone suffix length follows the numbering plan."""
        plan = PhoneNumberingPlan(country_code="44", trunk_prefix="0", national_number_length=10)
        query = build_prefilter_query({"phone_number": "+44 7911 123456"}, phone_plan=plan)
        assert query.clauses == (PhoneSuffix("7911123456"),)
