"""Utility functions for mpi-matcher"""
import csv
import json
import logging
import os
from typing import Any, Dict, List, Optional

from .config import DEFAULT_FILE_ENCODING
from .matching.models import FIELD_ALIASES

# Extra CSV header spellings seen in registration exports
_CSV_HEADER_ALIASES = {
    "patientid": "id",
    "patient_id": "id",
    "patientnumber": "patient_number",
    "firstname": "first_name",
    "middlename": "middle_name",
    "lastname": "last_name",
    "dateofbirth": "date_of_birth",
    "phonenumber": "phone_number",
    "deletedat": "deleted_at",
    "dob": "date_of_birth",
    "phone": "phone_number",
    "sex": "gender",
}


def canonical_field_name(header: str) -> str:
    """Map a CSV header or JSON key to the snake_case identity field name."""
    key = header.strip()
    if key in FIELD_ALIASES:
        return FIELD_ALIASES[key]
    return _CSV_HEADER_ALIASES.get(key.lower(), key.lower())


def read_patients_from_csv(csv_file_path: str, logger: Optional[logging.Logger] = None) -> List[Dict[str, Any]]:
    """
    Read existing patient records from a CSV file.

    Headers may be snake_case, camelCase or the column names of the patient
    table (FirstName, DateOfBirth, ...). Empty cells become None so that
    they do not take part in scoring.

    Args:
        csv_file_path (str): Path to the CSV file
        logger (Optional[logging.Logger]): Logger for error reporting

    Returns:
        List[Dict[str, Any]]: One record per CSV row, keyed by identity field names

    Raises:
        FileNotFoundError: If the CSV file does not exist
        ValueError: If the CSV file has no header row
    """
    logger = logger or logging.getLogger(__name__)
    if not os.path.exists(csv_file_path):
        logger.error(f"CSV file not found: {csv_file_path}")
        raise FileNotFoundError(csv_file_path)

    records = []
    with open(csv_file_path, mode='r', encoding='utf-8-sig', newline='') as infile:  # utf-8-sig for BOM
        reader = csv.DictReader(infile)
        if not reader.fieldnames:
            logger.error(f"CSV file '{csv_file_path}' appears to be empty or improperly formatted.")
            raise ValueError(f"CSV file has no header row: {csv_file_path}")

        for row in reader:
            record = {}
            for header, value in row.items():
                if header is None:
                    continue
                value = value.strip() if isinstance(value, str) else value
                record[canonical_field_name(header)] = value or None
            records.append(record)

    logger.info(f"Loaded {len(records)} patient records from '{csv_file_path}'.")
    return records


def load_record(value: str) -> Dict[str, Any]:
    """
    Load a patient record given inline JSON or a path to a JSON file.

    Raises:
        ValueError: If the value is not valid JSON or not a JSON object
    """
    if os.path.isfile(value):
        with open(value, 'r', encoding=DEFAULT_FILE_ENCODING) as f:
            text = f.read()
    else:
        text = value

    try:
        record = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid patient record JSON: {e}") from e
    if not isinstance(record, dict):
        raise ValueError("Patient record must be a JSON object")
    return record
