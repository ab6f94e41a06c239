"""SQL interface package for mpi-matcher."""

import logging

from .db_interface import SQLInterface
from .output_formatter import OutputFormatter
from .query_builder import (
    CandidateQueryBuilder,
    ColumnConfig,
    DynamicQueryBuilder,
    TableConfig,
    escape_like,
)
from .repository import SQLCandidateRepository

logger = logging.getLogger(__name__)

__all__ = [
    "SQLInterface",
    "SQLCandidateRepository",
    "DynamicQueryBuilder",
    "CandidateQueryBuilder",
    "TableConfig",
    "ColumnConfig",
    "escape_like",
    "OutputFormatter",
]

logger.debug("SQL interface package initialized")
