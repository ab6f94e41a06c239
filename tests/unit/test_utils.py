"""Unit tests for mpi_matcher.utils module."""

import json

import pytest

from mpi_matcher.utils import canonical_field_name, load_record, read_patients_from_csv


class TestCanonicalFieldName:
    """Test header normalization."""

    @pytest.mark.parametrize(
        "header,expected",
        [
            ("first_name", "first_name"),
            ("firstName", "first_name"),
            ("FirstName", "first_name"),
            ("DateOfBirth", "date_of_birth"),
            ("DOB", "date_of_birth"),
            ("PatientID", "id"),
            (" Phone ", "phone_number"),
            ("Email", "email"),
        ],
    )
    def test_mapping(self, header, expected):
        """Test snake_case, camelCase and table column spellings."""
        assert canonical_field_name(header) == expected


class TestReadPatientsFromCsv:
    """Test reading existing patients from CSV."""

    def test_reads_records(self, patients_csv):
        """Test that rows are keyed by identity field names."""
        records = read_patients_from_csv(str(patients_csv))
        assert len(records) == 2
        assert records[0]["id"] == "1"
        assert records[0]["first_name"] == "Jon"
        assert records[0]["date_of_birth"] == "1990-01-01"
        assert records[1]["middle_name"] == "Serwaa"

    def test_blank_cells_become_none(self, patients_csv):
        """Test that empty cells do not take part in scoring."""
        records = read_patients_from_csv(str(patients_csv))
        assert records[0]["middle_name"] is None

    def test_missing_file(self, temp_dir):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            read_patients_from_csv(str(temp_dir / "missing.csv"))

    def test_empty_file(self, temp_dir):
        """Test that a file without header row raises ValueError."""
        path = temp_dir / "empty.csv"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="no header row"):
            read_patients_from_csv(str(path))

    def test_byte_order_mark(self, temp_dir):
        """Test that a UTF-8 BOM does not end up in the first header."""
        path = temp_dir / "bom.csv"
        path.write_text("\ufeffPatientID,FirstName\n7,Kofi\n", encoding="utf-8")
        assert read_patients_from_csv(str(path)) == [{"id": "7", "first_name": "Kofi"}]


class TestLoadRecord:
    """Test loading patient records given on the command line."""

    def test_inline_json(self):
        """Test a record passed as inline JSON."""
        assert load_record('{"firstName": "Ama"}') == {"firstName": "Ama"}

    def test_json_file(self, temp_dir):
        """Test a record read from a JSON file."""
        path = temp_dir / "record.json"
        path.write_text(json.dumps({"last_name": "Mensah"}), encoding="utf-8")
        assert load_record(str(path)) == {"last_name": "Mensah"}

    def test_invalid_json(self):
        """Test that malformed JSON raises ValueError."""
        with pytest.raises(ValueError, match="Invalid patient record JSON"):
            load_record("{not json")

    def test_not_an_object(self):
        """Test that JSON arrays are rejected."""
        with pytest.raises(ValueError, match="must be a JSON object"):
            load_record('[1, 2]')
