"""Dynamic SQL query builder for candidate retrieval and patient search."""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import DEFAULT_CANDIDATE_LIMIT, DEFAULT_PATIENT_COLUMN_MAP
from ..matching.fuzzy_search import SearchOperator, SearchPredicate
from ..matching.prefilters import (
    DobPlusPrefix,
    ExactName,
    PhoneSuffix,
    PrefilterClause,
    PrefilterQuery,
    PrefixName,
    SwappedName,
)


@dataclass
class TableConfig:
    """Configuration for a database table."""
    name: str
    schema: str = "dbo"
    alias: Optional[str] = None

    @property
    def full_name(self) -> str:
        """Get fully qualified table name."""
        return f"{self.schema}.{self.name}"

    @property
    def reference(self) -> str:
        """Get table reference for SQL (with alias if provided)."""
        if self.alias:
            return f"{self.full_name} {self.alias}"
        return self.full_name


@dataclass
class ColumnConfig:
    """Configuration for table columns."""
    name: str
    table_alias: Optional[str] = None
    alias: Optional[str] = None

    @property
    def reference(self) -> str:
        """Get column reference for SQL."""
        prefix = f"{self.table_alias}." if self.table_alias else ""
        suffix = f" AS {self.alias}" if self.alias else ""
        return f"{prefix}{self.name}{suffix}"


# Separators removed from stored phone numbers before suffix and digit matching
PHONE_SEPARATORS = (" ", "-", "+", "(", ")", ".", "/")


def escape_like(value: str) -> str:
    """Escape SQL Server LIKE wildcards so user input matches literally."""
    return value.replace("[", "[[]").replace("%", "[%]").replace("_", "[_]")


class DynamicQueryBuilder:
    """Builds SQL queries dynamically based on configuration."""

    def __init__(self):
        """Initialize the query builder."""
        self.reset()

    def reset(self):
        """Reset the builder state."""
        self._select_columns: List[ColumnConfig] = []
        self._from_table: Optional[TableConfig] = None
        self._where_conditions: List[str] = []
        self._parameters: List[Any] = []
        self._order_by: List[str] = []
        self._limit: Optional[int] = None

    def select(self, columns: List[ColumnConfig]) -> 'DynamicQueryBuilder':
        """Add SELECT columns."""
        self._select_columns.extend(columns)
        return self

    def from_table(self, table: TableConfig) -> 'DynamicQueryBuilder':
        """Set the FROM table."""
        self._from_table = table
        return self

    def where(self, condition: str, *params) -> 'DynamicQueryBuilder':
        """Add WHERE condition with parameters."""
        self._where_conditions.append(condition)
        self._parameters.extend(params)
        return self

    def where_any(self, conditions: Sequence[Tuple[str, Tuple[Any, ...]]]) -> 'DynamicQueryBuilder':
        """Add a parenthesized OR group of conditions, each with its own parameters."""
        if not conditions:
            return self
        self._where_conditions.append("(" + " OR ".join(cond for cond, _ in conditions) + ")")
        for _, params in conditions:
            self._parameters.extend(params)
        return self

    def order_by(self, column: str, direction: str = "ASC") -> 'DynamicQueryBuilder':
        """Add ORDER BY clause."""
        self._order_by.append(f"{column} {direction}")
        return self

    def limit(self, count: int) -> 'DynamicQueryBuilder':
        """Add LIMIT clause (SQL Server uses TOP)."""
        self._limit = count
        return self

    def build(self) -> Tuple[str, Tuple[Any, ...]]:
        """Build the final SQL query and parameters."""
        if not self._from_table:
            raise ValueError("FROM table must be specified")

        columns_str = ", ".join(col.reference for col in self._select_columns) or "*"
        top = f"TOP {self._limit} " if self._limit else ""
        query_parts = [f"SELECT {top}{columns_str}", f"FROM {self._from_table.reference}"]

        if self._where_conditions:
            query_parts.append("WHERE " + " AND ".join(self._where_conditions))
        if self._order_by:
            query_parts.append("ORDER BY " + ", ".join(self._order_by))

        return "\n".join(query_parts), tuple(self._parameters)


class CandidateQueryBuilder:
    """Translates prefilter clauses and search predicates into patient table queries."""

    def __init__(
        self,
        patient_table: str = "Patient",
        schema: str = "dbo",
        column_map: Optional[Dict[str, str]] = None,
    ):
        self.patient_table = TableConfig(name=patient_table, schema=schema, alias="p")
        self.column_map = dict(column_map or DEFAULT_PATIENT_COLUMN_MAP)
        self.builder = DynamicQueryBuilder()

    def column(self, field: str) -> str:
        """Qualified column reference for an identity field name."""
        try:
            return f"p.{self.column_map[field]}"
        except KeyError:
            raise ValueError(f"No column mapped for field '{field}'") from None

    def _select_patient_columns(self) -> None:
        columns = [
            ColumnConfig(column, "p", field)
            for field, column in self.column_map.items()
            if field != "deleted_at"
        ]
        self.builder.select(columns).from_table(self.patient_table)

    def _digits_only(self, field: str) -> str:
        expr = self.column(field)
        for ch in PHONE_SEPARATORS:
            expr = f"REPLACE({expr}, '{ch}', '')"
        return expr

    def clause_condition(self, clause: PrefilterClause) -> Tuple[str, Tuple[Any, ...]]:
        """SQL condition and parameters for one prefilter clause."""
        first = f"LOWER({self.column('first_name')})"
        last = f"LOWER({self.column('last_name')})"

        if isinstance(clause, PhoneSuffix):
            return f"{self._digits_only('phone_number')} LIKE ?", (f"%{escape_like(clause.digits)}",)
        if isinstance(clause, ExactName):
            return f"({first} = ? AND {last} = ?)", (clause.first_name, clause.last_name)
        if isinstance(clause, PrefixName):
            return (
                f"({first} LIKE ? AND {last} LIKE ?)",
                (f"{escape_like(clause.first_prefix)}%", f"{escape_like(clause.last_prefix)}%"),
            )
        if isinstance(clause, SwappedName):
            return f"({first} = ? AND {last} = ?)", (clause.last_name, clause.first_name)
        if isinstance(clause, DobPlusPrefix):
            return (
                f"(CAST({self.column('date_of_birth')} AS DATE) = ? AND {last} LIKE ?)",
                (clause.date_of_birth.isoformat(), f"{escape_like(clause.last_prefix)}%"),
            )
        raise TypeError(f"Unsupported prefilter clause: {type(clause).__name__}")

    def predicate_condition(self, predicate: SearchPredicate) -> Tuple[str, Tuple[Any, ...]]:
        """SQL condition and parameters for one fuzzy search predicate."""
        if predicate.field == "phone_number":
            column = self._digits_only(predicate.field)
        else:
            column = self.column(predicate.field)
        value = escape_like(predicate.value)
        if predicate.case_insensitive:
            column = f"LOWER({column})"
            value = value.lower()
        if predicate.operator is SearchOperator.CONTAINS:
            return f"{column} LIKE ?", (f"%{value}%",)
        return f"{column} LIKE ?", (f"{value}%",)

    def _finish(self, conditions, limit: int, exclude_deleted: bool) -> Tuple[str, Tuple[Any, ...]]:
        self.builder.where_any(conditions)
        if exclude_deleted and "deleted_at" in self.column_map:
            self.builder.where(f"{self.column('deleted_at')} IS NULL")
        self.builder.order_by(self.column("id")).limit(limit)
        return self.builder.build()

    def candidates_query(self, query: PrefilterQuery) -> Tuple[str, Tuple[Any, ...]]:
        """Build the bounded OR query for a duplicate check prefilter."""
        if query.is_empty:
            raise ValueError("Prefilter query has no clauses")
        self.builder.reset()
        self._select_patient_columns()
        conditions = [self.clause_condition(clause) for clause in query.clauses]
        return self._finish(conditions, query.limit, query.exclude_deleted)

    def search_query(
        self,
        predicates: Sequence[SearchPredicate],
        limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> Tuple[str, Tuple[Any, ...]]:
        """Build the OR query for a free-text patient search."""
        if not predicates:
            raise ValueError("Search needs at least one predicate")
        self.builder.reset()
        self._select_patient_columns()
        conditions = [self.predicate_condition(p) for p in predicates]
        return self._finish(conditions, limit, exclude_deleted=True)
