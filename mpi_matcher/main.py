"""Main module for the mpi_matcher package."""
import argparse
import logging
import os
import sys
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .config import (
    DEFAULT_CANDIDATE_LIMIT,
    DEFAULT_MATCH_THRESHOLD,
    LOGGER_NAME,
    VALID_OUTPUT_FORMATS,
    load_phone_plan_from_env,
    load_weights_from_env,
)
from .exceptions import CandidateRetrievalFailure, DatabaseConnectionError, InvalidConfigurationError
from .matching.fuzzy_search import build_fuzzy_search_predicates
from .matching.scorer import MatchScorer
from .matching.search_strategy import DuplicateDetector
from .metadata import create_metadata_dict
from .output_handler import determine_output_format, handle_output
from .repositories import InMemoryCandidateRepository
from .secure_logging import configure_secure_logging
from .sql_interface.db_interface import SQLInterface
from .sql_interface.repository import SQLCandidateRepository
from .utils import load_record, read_patients_from_csv

load_dotenv()


def _add_source_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        '--existing-csv', '-e', type=str, metavar='CSV_FILE_PATH',
        help='Read existing patients from this CSV file instead of the SQL database.'
    )


def _add_output_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        '--output', '-o', type=str, metavar='FILE_PATH',
        help='Optional path to save results as a JSON or CSV file.'
    )
    subparser.add_argument(
        '--format', '-f',
        type=str,
        choices=VALID_OUTPUT_FORMATS,
        default=None,
        help='Output format: json, csv, or stdout (table to console). Inferred from -o extension if not set.'
    )


def setup_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Probabilistic patient matching for a master patient index.",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument(
        '--debug', '-v',
        action='store_true',
        help='Enable verbose debug output for troubleshooting.'
    )
    subparsers = parser.add_subparsers(
        dest='action', help='The main action to perform. Use one of the subcommands below.',
        required=True, metavar='ACTION'
    )

    # --- Sub-command: compare ---
    parser_compare = subparsers.add_parser('compare', help='Score two patient records against each other.')
    parser_compare.add_argument(
        '--record-a', '-a', type=str, required=True, metavar='JSON',
        help='First patient record, as inline JSON or a path to a JSON file.'
    )
    parser_compare.add_argument(
        '--record-b', '-b', type=str, required=True, metavar='JSON',
        help='Second patient record, as inline JSON or a path to a JSON file.'
    )
    _add_output_arguments(parser_compare)

    # --- Sub-command: check-duplicates ---
    parser_check = subparsers.add_parser(
        'check-duplicates', help='Look for existing patients that may be the same person as a new registration.'
    )
    parser_check.add_argument('--first-name', '-fn', type=str, metavar='NAME', help='First name of the new patient.')
    parser_check.add_argument('--middle-name', '-mn', type=str, metavar='NAME', help='Middle name of the new patient.')
    parser_check.add_argument('--last-name', '-ln', type=str, metavar='NAME', help='Last name of the new patient.')
    parser_check.add_argument(
        '--dob', '-d', type=str, metavar='YYYY-MM-DD',
        help='Date of birth of the new patient in %%Y-%%m-%%d format.'
    )
    parser_check.add_argument('--gender', '-g', type=str, metavar='GENDER', help='Gender of the new patient.')
    parser_check.add_argument('--phone', '-p', type=str, metavar='PHONE', help='Phone number of the new patient.')
    parser_check.add_argument(
        '--threshold', '-t', type=int, default=DEFAULT_MATCH_THRESHOLD, metavar='0-100',
        help=f'Minimum composite score for a candidate to be reported (default: {DEFAULT_MATCH_THRESHOLD}).'
    )
    _add_source_arguments(parser_check)
    _add_output_arguments(parser_check)

    # --- Sub-command: search ---
    parser_search = subparsers.add_parser('search', help='Free-text patient search by name, phone or patient number.')
    parser_search.add_argument('query', type=str, metavar='QUERY', help='Search text, e.g. "kwame" or "PT-2024".')
    parser_search.add_argument(
        '--limit', '-l', type=int, default=DEFAULT_CANDIDATE_LIMIT, metavar='N',
        help=f'Maximum number of patients to return (default: {DEFAULT_CANDIDATE_LIMIT}).'
    )
    _add_source_arguments(parser_search)
    _add_output_arguments(parser_search)

    return parser


@contextmanager
def open_repository(args: argparse.Namespace, logger: logging.Logger):
    """Yield a candidate repository for the CSV file or the SQL database named by args."""
    csv_path = getattr(args, 'existing_csv', None)
    if csv_path:
        yield InMemoryCandidateRepository(read_patients_from_csv(csv_path, logger))
        return

    with SQLInterface(debug=args.debug) as db:
        if not db.is_connected:
            raise DatabaseConnectionError("Database connection failed")
        yield SQLCandidateRepository(db)


def _new_patient_payload(args: argparse.Namespace) -> Dict[str, Any]:
    payload = {
        'first_name': args.first_name,
        'middle_name': args.middle_name,
        'last_name': args.last_name,
        'date_of_birth': args.dob,
        'gender': args.gender,
        'phone_number': args.phone,
    }
    return {k: v for k, v in payload.items() if v is not None}


def handle_compare(args, scorer: MatchScorer, logger: logging.Logger):
    record_a = load_record(args.record_a)
    record_b = load_record(args.record_b)
    result = scorer.score(record_a, record_b)
    logger.info(f"Comparison score {result.score} ({result.confidence.value})")
    return result, 1


def handle_check_duplicates(args, scorer: MatchScorer, logger: logging.Logger):
    payload = _new_patient_payload(args)
    if not payload:
        raise ValueError("check-duplicates needs at least one identity field (name, --dob or --phone).")
    with open_repository(args, logger) as repository:
        detector = DuplicateDetector(repository, scorer=scorer)
        report = detector.check(payload, threshold=args.threshold)
    return report, len(report.matches)


def handle_search(args, scorer: MatchScorer, logger: logging.Logger):
    predicates = build_fuzzy_search_predicates(args.query)
    if not predicates:
        logger.warning("Search text produced no usable search terms.")
        return [], 0
    with open_repository(args, logger) as repository:
        rows = repository.search(predicates, limit=args.limit)
    return rows, len(rows)


# Action handlers dictionary mapping actions to their handler functions
ACTION_HANDLERS = {
    'compare': handle_compare,
    'check-duplicates': handle_check_duplicates,
    'search': handle_search,
}


def main(argv: Optional[list] = None) -> int:
    parser = setup_arg_parser()
    args = parser.parse_args(argv)

    debug = getattr(args, 'debug', False)
    log_file = os.getenv('MPI_APP_LOGFILE', None)
    configure_secure_logging(
        level=logging.DEBUG if debug else logging.INFO,
        log_file=log_file,
        production_mode=not debug,
    )
    logger = logging.getLogger(LOGGER_NAME)
    logger.debug(f"Action: {args.action}")

    try:
        scorer = MatchScorer(weights=load_weights_from_env(), phone_plan=load_phone_plan_from_env())
    except InvalidConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    handler = ACTION_HANDLERS[args.action]
    start_time = datetime.utcnow()
    try:
        results, results_count = handler(args, scorer, logger)
    except CandidateRetrievalFailure as e:
        logger.error(f"Could not retrieve candidate patients: {e}", exc_info=debug)
        return 1
    except (OSError, ValueError) as e:
        logger.error(f"{type(e).__name__}: {e}", exc_info=debug)
        return 1
    execution_duration_ms = int((datetime.utcnow() - start_time).total_seconds() * 1000)

    effective_format = determine_output_format(args.format, args.output)
    metadata_dict = create_metadata_dict(start_time, execution_duration_ms, args, results_count)
    handle_output(results, args.output, effective_format, metadata_dict)

    logger.info(f"--- {args.action} finished ---")
    return 0


if __name__ == "__main__":
    sys.exit(main())
