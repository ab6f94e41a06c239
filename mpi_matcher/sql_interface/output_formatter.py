import csv
import io
import json
import logging
import sys
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from tabulate import tabulate

from ..matching.models import DuplicateCheckReport, MatchResult

logger = logging.getLogger(__name__)

# Columns shown for patients in console tables, in display order
PATIENT_DISPLAY_FIELDS = ["id", "patient_number", "first_name", "middle_name", "last_name",
                          "date_of_birth", "gender", "phone_number"]


class OutputFormatter:
    """Formats match results, duplicate reports and search rows for display or saving."""

    @staticmethod
    def _match_result_to_row(result: MatchResult) -> Dict[str, Any]:
        """Flatten a MatchResult into one row: score columns, patient columns, per-field scores."""
        row = {
            'candidate_id': result.candidate_id,
            'score': result.score,
            'confidence': result.confidence.value,
        }
        for key in PATIENT_DISPLAY_FIELDS:
            if key in result.patient and key != 'id':
                row[key] = result.patient[key]
        for info in result.fields:
            row[f"{info.field_name}_match_type"] = info.match_type
            row[f"{info.field_name}_similarity"] = info.similarity_score
        return row

    @staticmethod
    def _datetime_serializer(obj: Any) -> str:
        """
        Custom serializer for converting datetime.datetime and datetime.date
        objects into ISO 8601 string format for JSON compatibility.
        """
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")

    @staticmethod
    def to_rows(data: Any) -> List[Dict[str, Any]]:
        """Normalize a report, a list of MatchResults or a list of dicts into flat rows."""
        if isinstance(data, DuplicateCheckReport):
            data = data.matches
        if isinstance(data, MatchResult):
            data = [data]
        rows = []
        for item in data or []:
            if isinstance(item, MatchResult):
                rows.append(OutputFormatter._match_result_to_row(item))
            else:
                rows.append(dict(item))
        return rows

    @staticmethod
    def format_as_json(data_payload: Any, metadata: Optional[Dict[str, Any]] = None, indent: Optional[int] = 4) -> str:
        """
        Formats the payload and metadata into a structured JSON string.

        The output JSON has two top-level keys, "metadata" and "data".
        DuplicateCheckReport and MatchResult objects are written with their
        own to_dict() shape; dates become ISO 8601 strings.

        Raises:
            TypeError: If the data contains non-serializable types not handled
                     by the _datetime_serializer.
        """
        if isinstance(data_payload, (DuplicateCheckReport, MatchResult)):
            data = data_payload.to_dict()
        elif isinstance(data_payload, list):
            data = [item.to_dict() if isinstance(item, MatchResult) else item for item in data_payload]
        else:
            data = data_payload

        structured_output = {
            "metadata": metadata or {},
            "data": data,
        }
        try:
            return json.dumps(structured_output, default=OutputFormatter._datetime_serializer, indent=indent)
        except (TypeError, ValueError) as e:
            logger.error(f"Error during JSON serialization: {e}")
            raise

    @staticmethod
    def format_as_csv(data: Any) -> str:
        """Formats the data into a CSV string, one row per match or record."""
        rows = OutputFormatter.to_rows(data)
        if not rows:
            return ""

        fieldnames: List[str] = []
        for row in rows:
            for key in row:
                if key not in fieldnames:
                    fieldnames.append(key)

        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)
        return output.getvalue()

    @staticmethod
    def format_as_console_table(data: Any, stream=sys.stdout) -> None:
        """Formats data as a console table and writes to the given stream."""
        if isinstance(data, DuplicateCheckReport):
            print(data.message, file=stream)

        rows = OutputFormatter.to_rows(data)
        if not rows:
            logger.info("No data to display.")
            print("No data to display.", file=stream)
            return

        if 'score' in rows[0]:
            headers = ["candidate_id", "first_name", "last_name", "date_of_birth", "score", "confidence"]
        else:
            headers = [h for h in PATIENT_DISPLAY_FIELDS if any(h in row for row in rows)] or list(rows[0].keys())
        table_rows = [[row.get(h) for h in headers] for row in rows]
        print(tabulate(table_rows, headers=headers, tablefmt="grid"), file=stream)
