"""Output handling utilities for formatting and writing results."""
import io
import os
import sys
import logging
from typing import Any, Dict, Optional

from .config import DEFAULT_FILE_ENCODING, FILE_EXTENSION_MAP, VALID_OUTPUT_FORMATS
from .sql_interface.output_formatter import OutputFormatter

logger = logging.getLogger(__name__)


def determine_output_format(user_format: Optional[str], output_file_path: Optional[str]) -> str:
    """Determines the effective output format based on user input and file extension."""
    if user_format:
        return user_format

    if output_file_path:
        _, ext = os.path.splitext(output_file_path)
        ext = ext.lower()

        if ext in FILE_EXTENSION_MAP:
            return FILE_EXTENSION_MAP[ext]
        if ext:
            logger.warning(
                f"Output file extension '{ext}' for '{output_file_path}' is not recognized. "
                f"Defaulting to 'json' format."
            )
        else:
            logger.warning(f"No file extension for '{output_file_path}'. Defaulting to 'json' format.")
        return 'json'

    return 'stdout'


def render_output(results: Any, effective_format: str, metadata_dict: Optional[Dict[str, Any]] = None) -> str:
    """Render results in the requested format as a string."""
    if effective_format not in VALID_OUTPUT_FORMATS:
        raise ValueError(f"Unknown output format: {effective_format}")

    if effective_format == 'json':
        return OutputFormatter.format_as_json(results, metadata_dict)
    if effective_format == 'csv':
        return OutputFormatter.format_as_csv(results)

    buf = io.StringIO()
    OutputFormatter.format_as_console_table(results, stream=buf)
    return buf.getvalue()


def handle_output(
    results: Any,
    output_file_path: Optional[str],
    effective_format: str,
    metadata_dict: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Format results and write them to a file or stdout.

    Args:
        results: A DuplicateCheckReport, MatchResult or list of records
        output_file_path: Path to save results to (None for stdout)
        effective_format: Output format ('json', 'csv', 'stdout')
        metadata_dict: Optional metadata dictionary to include in JSON output
    """
    text = render_output(results, effective_format, metadata_dict)

    if output_file_path:
        with open(output_file_path, 'w', encoding=DEFAULT_FILE_ENCODING, newline='') as f:
            f.write(text)
        logger.info(f"Saved results to {output_file_path}")
    else:
        sys.stdout.write(text if text.endswith('\n') else text + '\n')
