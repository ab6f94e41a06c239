"""Candidate repository backed by the SQL Server patient table."""
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import DEFAULT_CANDIDATE_LIMIT
from ..exceptions import DatabaseConnectionError, QueryExecutionError
from ..matching.fuzzy_search import SearchPredicate
from ..matching.prefilters import PrefilterQuery
from .db_interface import SQLInterface
from .query_builder import CandidateQueryBuilder

logger = logging.getLogger(__name__)


class SQLCandidateRepository:
    """
    Fetches candidate patients through an SQLInterface.

    Failures are raised as CandidateRetrievalFailure subclasses so the
    duplicate check never reports "no duplicates" for a pool it could not
    read.
    """

    def __init__(
        self,
        sql_interface: SQLInterface,
        query_builder: Optional[CandidateQueryBuilder] = None,
        column_map: Optional[Dict[str, str]] = None,
    ):
        self.db = sql_interface
        self.query_builder = query_builder or CandidateQueryBuilder(column_map=column_map)

    def _run(self, sql: str, params: Tuple[Any, ...]) -> List[Dict[str, Any]]:
        if not self.db.is_connected:
            raise DatabaseConnectionError("Not connected to the patient database")
        if not self.db.execute_query(sql, params):
            raise QueryExecutionError("Candidate query failed to execute")
        rows = self.db.fetch_results()
        if rows is None:
            raise QueryExecutionError("Candidate query results could not be fetched")
        return rows

    def find_candidates(self, query: PrefilterQuery) -> List[Dict[str, Any]]:
        if query.is_empty:
            return []
        sql, params = self.query_builder.candidates_query(query)
        rows = self._run(sql, params)
        logger.debug(f"Prefilter query returned {len(rows)} rows")
        return rows[:query.limit]

    def search(self, predicates: Sequence[SearchPredicate], limit: int = DEFAULT_CANDIDATE_LIMIT) -> List[Dict[str, Any]]:
        """Patients matching any fuzzy search predicate."""
        if not predicates:
            return []
        sql, params = self.query_builder.search_query(predicates, limit)
        return self._run(sql, params)
