"""Shared pytest configuration and fixtures for mpi-matcher tests."""

import csv
import tempfile
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock, Mock

import pytest

from mpi_matcher.matching import FuzzyMatcher, MatchScorer
from mpi_matcher.matching.models import MatchInfo
from mpi_matcher.repositories import InMemoryCandidateRepository
from mpi_matcher.sql_interface import SQLInterface


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def new_patient():
    """A registration payload as the front-end sends it (camelCase keys)."""
    return {
        "firstName": "John",
        "lastName": "Doe",
        "dateOfBirth": "1990-01-01",
        "phoneNumber": "0241234567",
    }


@pytest.fixture
def existing_patients():
    """Existing patient records as rows from the patient table."""
    return [
        {
            "id": 1,
            "patient_number": "PT-2024-0001",
            "first_name": "Jon",
            "middle_name": None,
            "last_name": "Doe",
            "date_of_birth": date(1990, 1, 1),
            "gender": "M",
            "phone_number": "233241234567",
            "deleted_at": None,
        },
        {
            "id": 2,
            "patient_number": "PT-2024-0002",
            "first_name": "Ama",
            "middle_name": "Serwaa",
            "last_name": "Mensah",
            "date_of_birth": date(1985, 7, 12),
            "gender": "F",
            "phone_number": "0201112223",
            "deleted_at": None,
        },
        {
            "id": 3,
            "patient_number": "PT-2023-0417",
            "first_name": "John",
            "middle_name": None,
            "last_name": "Dodoo",
            "date_of_birth": date(1990, 1, 1),
            "gender": "M",
            "phone_number": "0557778889",
            "deleted_at": None,
        },
        {
            "id": 4,
            "patient_number": "PT-2022-0100",
            "first_name": "John",
            "middle_name": None,
            "last_name": "Doe",
            "date_of_birth": date(1990, 1, 1),
            "gender": "M",
            "phone_number": "0241234567",
            "deleted_at": "2024-03-01",
        },
    ]


@pytest.fixture
def in_memory_repository(existing_patients):
    """Repository over the existing_patients records."""
    return InMemoryCandidateRepository(existing_patients)


@pytest.fixture
def scorer():
    """MatchScorer with the default weights, thresholds and Ghanaian numbering plan."""
    return MatchScorer()


@pytest.fixture
def fuzzy_matcher():
    """Create a FuzzyMatcher instance for testing."""
    return FuzzyMatcher()


@pytest.fixture
def sample_match_info():
    """Sample MatchInfo objects for testing."""
    return [
        MatchInfo("first_name", "John", "Jon", "Phonetic", 85),
        MatchInfo("last_name", "Doe", "Doe", "Exact", 100),
        MatchInfo("date_of_birth", "1990-01-01", date(1990, 1, 1), "Exact", 100),
    ]


@pytest.fixture
def patients_csv(temp_dir):
    """CSV export of existing patients using the patient table's column names."""
    path = temp_dir / "patients.csv"
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["PatientID", "PatientNumber", "FirstName", "MiddleName", "LastName",
                         "DateOfBirth", "Gender", "PhoneNumber"])
        writer.writerows(
            [
                ["1", "PT-2024-0001", "Jon", "", "Doe", "1990-01-01", "M", "233241234567"],
                ["2", "PT-2024-0002", "Ama", "Serwaa", "Mensah", "1985-07-12", "F", "0201112223"],
            ],
        )
    return path


@pytest.fixture
def mock_sql_interface():
    """Mock SQLInterface for testing without database connection."""
    mock = Mock(spec=SQLInterface)
    mock.connect.return_value = True
    mock.connection = MagicMock()
    mock.cursor = MagicMock()
    mock.is_connected = True
    mock.execute_query.return_value = True
    mock.fetch_results.return_value = []
    mock.close_connection.return_value = None
    return mock


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Set up test environment variables and cleanup."""
    test_env = {
        "SQL_SERVER": "test_server",
        "DATABASE": "test_db",
        "USERNAME_SQL": "test_user",
        "PASSWORD": "test_pass",
        "SQL_DRIVER": "{SQL Server Native Client 10.0}",
    }

    for key, value in test_env.items():
        monkeypatch.setenv(key, value)

    for key in ("MPI_WEIGHTS", "MPI_PHONE_COUNTRY_CODE", "MPI_PHONE_TRUNK_PREFIX", "MPI_PHONE_NATIONAL_LENGTH"):
        monkeypatch.delenv(key, raising=False)

    yield


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "database: mark test as requiring database")


class CustomAssertions:
    """Custom assertion helpers for domain-specific testing."""

    @staticmethod
    def assert_valid_match_info(match_info: MatchInfo) -> None:
        """Assert that MatchInfo object is properly constructed."""
        assert match_info.field_name is not None
        assert match_info.match_type in ["Exact", "Fuzzy", "Phonetic", "Neutral", "Mismatch"]
        assert 0 <= match_info.similarity_score <= 100

    @staticmethod
    def assert_sql_query_format(query: str) -> None:
        """Assert that SQL query is properly formatted."""
        assert isinstance(query, str)
        assert query.strip().upper().startswith("SELECT")
        assert "?" in query

    @staticmethod
    def assert_report_counts(report, definite: int, probable: int, possible: int) -> None:
        """Assert the bucket counts of a DuplicateCheckReport."""
        assert report.definite_match_count == definite
        assert report.probable_match_count == probable
        assert report.possible_match_count == possible


@pytest.fixture
def custom_assertions():
    """Provide custom assertion helpers."""
    return CustomAssertions()
