"""Database interface module for the SQL Server patient store."""

import html
import re
import time
from typing import Any, Dict, List, Optional, Tuple

try:
    import pyodbc
except ImportError:
    # Allow module to be imported for testing without the ODBC driver manager
    pyodbc = None

from bs4 import BeautifulSoup

from ..config import DEFAULT_SQL_DRIVER, get_env_or_default
from ..secure_logging import get_secure_logger

logger = get_secure_logger(__name__)


class SQLInterface:
    """Handles database connection, query execution, and result fetching."""

    @staticmethod
    def _clean_field_value(value: Any) -> Any:
        """
        Clean a field value read from the patient table.

        Registration front-ends occasionally store names with HTML entities
        or markup; those are decoded and stripped so they do not distort
        name similarity.

        Args:
            value (Any): The value to clean, typically a string from a database field.

        Returns:
            Any: The cleaned value if the input was a string, otherwise the original value.
        """
        if not isinstance(value, str):
            return value

        text = html.unescape(value)
        text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
        text = BeautifulSoup(text, "html.parser").get_text(separator="\n")
        text = re.sub(r"\n\s*\n+", "\n", text)
        return text.strip()

    def __init__(self, debug: bool = False):
        """Initializes connection parameters from environment variables."""
        self.server: Optional[str] = get_env_or_default("SQL_SERVER") or None
        self.database: Optional[str] = get_env_or_default("DATABASE") or None
        self.username_sql: Optional[str] = get_env_or_default("USERNAME_SQL") or None
        self.password: Optional[str] = get_env_or_default("PASSWORD") or None
        self.driver: str = get_env_or_default("SQL_DRIVER", DEFAULT_SQL_DRIVER)
        self.connection = None
        self.cursor = None
        self.debug = debug

    def __enter__(self):
        """Context manager entry point: establishes connection."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit point: closes connection."""
        self.close_connection()
        return False

    @property
    def is_connected(self) -> bool:
        return self.connection is not None and self.cursor is not None

    def connect(self) -> bool:
        """
        Establishes a database connection using parameters from environment variables.

        Returns:
            bool: True if connection is successful, False otherwise.
        """
        if pyodbc is None:
            logger.error("pyodbc not available. Cannot establish database connection.")
            return False

        if self.connection is not None:
            logger.warning("Connection object already exists. Close before reconnecting if needed.")
            return True

        if not all([self.server, self.database, self.username_sql, self.password, self.driver]):
            logger.error(
                "Database connection details incomplete. Check your .env file "
                "(SQL_SERVER, DATABASE, USERNAME_SQL, PASSWORD, SQL_DRIVER).",
            )
            return False

        start_time = time.time()
        try:
            connection_string = (
                f"DRIVER={self.driver};"
                f"SERVER={self.server};"
                f"DATABASE={self.database};"
                f"UID={self.username_sql};"
                f"PWD={self.password};"
            )
            logger.debug(f"Attempting database connection to server: {self.server}")

            self.connection = pyodbc.connect(connection_string, autocommit=False)
            self.cursor = self.connection.cursor()

            duration_ms = (time.time() - start_time) * 1000
            logger.log_database_operation("CONNECT", success=True, duration_ms=duration_ms)
            return True
        except Exception as ex:
            duration_ms = (time.time() - start_time) * 1000
            if hasattr(ex, "args") and len(ex.args) >= 2:
                # pyodbc.Error carries the SQLSTATE first; the rest may echo credentials
                logger.error(f"Database connection failed: SQLSTATE {ex.args[0]}")
            else:
                logger.error(f"Database connection failed: {type(ex).__name__}")
            logger.log_database_operation("CONNECT", success=False, duration_ms=duration_ms)
            self.connection = None
            self.cursor = None
            return False

    def execute_query(self, query: str, params: Tuple = ()) -> bool:
        """
        Executes a SQL query using parameters to prevent SQL injection.

        Args:
            query (str): The SQL query string with '?' placeholders for parameters.
            params (Tuple): A tuple of parameter values corresponding to the placeholders.

        Returns:
            bool: True if execution was successful, False on error.
        """
        if not self.is_connected:
            logger.error("Not connected to the database. Cannot execute query.")
            return False

        start_time = time.time()
        try:
            self.cursor.execute(query, params)
            duration_ms = (time.time() - start_time) * 1000
            logger.log_sql_execution(query, params, success=True, duration_ms=duration_ms)
            return True
        except Exception as ex:
            duration_ms = (time.time() - start_time) * 1000
            logger.log_sql_execution(query, params, success=False, duration_ms=duration_ms)
            if hasattr(ex, "args") and len(ex.args) >= 2:
                logger.error(f"SQL execution failed: SQLSTATE {ex.args[0]}")
            else:
                logger.error(f"SQL execution failed: {type(ex).__name__}")
            self._rollback()
            return False

    def fetch_results(self) -> Optional[List[Dict[str, Any]]]:
        """
        Fetches all rows of the last executed query as dictionaries keyed by column name.

        Returns:
            Optional[List[Dict[str, Any]]]: The rows, an empty list if the query returned
                                            no result set, or None if fetching failed.
        """
        if not self.cursor:
            logger.error("No cursor available to fetch results.")
            return None

        try:
            if self.cursor.description is None:
                return []

            columns = [column[0] for column in self.cursor.description]
            start_time = time.time()
            rows = self.cursor.fetchall()
            duration_ms = (time.time() - start_time) * 1000
            logger.log_database_operation("FETCH", success=True, duration_ms=duration_ms, row_count=len(rows))

            return [
                {col: self._clean_field_value(val) for col, val in zip(columns, row)}
                for row in rows
            ]
        except Exception as ex:
            logger.error(f"Error fetching results from cursor: {type(ex).__name__}")
            return None

    def _rollback(self) -> None:
        """Internal helper method to roll back the current transaction."""
        if self.connection:
            try:
                self.connection.rollback()
                logger.info("Transaction rolled back due to error.")
            except Exception as rollback_ex:
                logger.critical(f"Error during transaction rollback: {type(rollback_ex).__name__}")

    def close_connection(self) -> None:
        """Closes the database cursor and connection if they are open."""
        if self.cursor:
            try:
                self.cursor.close()
            except Exception as ex:
                logger.warning(f"Error closing cursor: {ex}")
            finally:
                self.cursor = None

        if self.connection:
            try:
                self.connection.close()
                logger.info("Connection closed.")
            except Exception as ex:
                logger.warning(f"Error closing connection: {ex}")
            finally:
                self.connection = None
