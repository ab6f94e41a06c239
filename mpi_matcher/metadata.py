"""Metadata generation utilities for mpi-matcher."""
from datetime import datetime
from typing import Any, Dict

from .config import APP_VERSION

# Argument names copied into the metadata block; patient identity values are left out
METADATA_PARAM_KEYS = ['action', 'threshold', 'existing_csv', 'limit', 'format']


def extract_query_parameters(args: Any) -> Dict[str, str]:
    """Extract relevant parameters from args for metadata."""
    return {
        k: str(v) for k, v in vars(args).items()
        if k in METADATA_PARAM_KEYS and v is not None
    }


def create_metadata_dict(
    start_time: datetime,
    execution_duration_ms: int,
    args: Any,
    results_count: int,
) -> Dict[str, Any]:
    """Create the metadata dictionary written alongside command results."""
    return {
        'timestamp_utc': start_time.isoformat(),
        'action': args.action,
        'tool_version': APP_VERSION,
        'execution_duration_ms': execution_duration_ms,
        'result_count': results_count,
        'source': 'csv' if getattr(args, 'existing_csv', None) else 'database',
        'parameters': extract_query_parameters(args),
        'status': 'success' if results_count else 'success_no_data',
    }
