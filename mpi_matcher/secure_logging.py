"""
Secure logging utilities for patient identity matching.

This module provides logging functions that keep protected health information
(names, dates of birth, phone numbers) out of log files while still
recording what the matching engine decided and why.
"""

import logging
import re
from typing import Any, Optional

from .config import LOG_FORMAT


class SecureLogger:
    """
    Secure logging wrapper that sanitizes sensitive data before logging.

    Designed for patient registration where identities must be protected
    while maintaining audit trails of duplicate checks and overrides.
    """

    # Patterns that should never appear in logs
    SENSITIVE_PATTERNS = [
        r'(?i)(password)[\'"]?\s*[:=]\s*[\'"]?([^\s\'";]+)',
        r'(?i)(pwd)[\'"]?\s*[:=]\s*[\'"]?([^\s\'";]+)',
        r'(?i)(secret)[\'"]?\s*[:=]\s*[\'"]?([^\s\'";]+)',
        r'(?i)(token)[\'"]?\s*[:=]\s*[\'"]?([^\s\'";]+)',
    ]

    # Patient data patterns that should be masked in production
    PATIENT_DATA_PATTERNS = [
        (r"\b\d{4}-\d{2}-\d{2}\b", "***DATE***"),
        (r"\b\d{1,2}/\d{1,2}/\d{4}\b", "***DATE***"),
        (r"\b\d{1,2}\.\d{1,2}\.\d{4}\b", "***DATE***"),
        (r"\+?\d[\d\s-]{6,}\d", "***PHONE***"),
    ]

    def __init__(self, logger: logging.Logger, production_mode: bool = True):
        """
        Initialize secure logger wrapper.

        Args:
            logger: The underlying logger instance
            production_mode: If True, applies strict security filtering
        """
        self.logger = logger
        self.production_mode = production_mode

    def _sanitize_message(self, message: str) -> str:
        """
        Sanitize log message by removing/masking sensitive data.

        Args:
            message: Original log message

        Returns:
            Sanitized message safe for logging
        """
        sanitized = str(message)

        for pattern in self.SENSITIVE_PATTERNS:
            sanitized = re.sub(pattern, r"\1=***REDACTED***", sanitized)

        if self.production_mode:
            for pattern, replacement in self.PATIENT_DATA_PATTERNS:
                sanitized = re.sub(pattern, replacement, sanitized)

        return sanitized

    def _sanitize_params(self, params: Any) -> str:
        """
        Safely represent query parameters for logging.

        Args:
            params: SQL query parameters (tuple, list, dict, etc.)

        Returns:
            Safe string representation of parameters
        """
        if params is None:
            return "None"

        if isinstance(params, (tuple, list)):
            if not params:
                return "[]"
            if self.production_mode:
                return "[" + ", ".join(f"param_{i}=<{type(p).__name__}>" for i, p in enumerate(params)) + "]"
            safe_params = []
            for param in params:
                if isinstance(param, str) and len(param) > 4:
                    safe_params.append(f"{param[:2]}...")
                else:
                    safe_params.append(str(param))
            return f"[{', '.join(safe_params)}]"

        if isinstance(params, dict):
            return f"<dict with {len(params)} keys>"

        return f"<{type(params).__name__}>"

    def _get_sql_summary(self, sql: str) -> str:
        """Create a safe summary of SQL query for logging."""
        if not sql or not sql.split():
            return "<empty query>"

        sql_clean = " ".join(sql.split())
        first_word = sql_clean.split()[0].upper()
        word_count = len(sql_clean.split())

        if self.production_mode:
            return f"<{first_word} query, {word_count} tokens>"
        if len(sql_clean) > 100:
            return f"{first_word}: {sql_clean[:50]}...{sql_clean[-20:]}"
        return f"{first_word}: {sql_clean}"

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message with security filtering."""
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(self._sanitize_message(message), **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message with security filtering."""
        self.logger.info(self._sanitize_message(message), **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message with security filtering."""
        self.logger.warning(self._sanitize_message(message), **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error message with security filtering."""
        self.logger.error(self._sanitize_message(message), **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        """Log critical message with security filtering."""
        self.logger.critical(self._sanitize_message(message), **kwargs)

    def log_database_operation(
        self,
        operation: str,
        success: bool = True,
        duration_ms: Optional[float] = None,
        row_count: Optional[int] = None,
    ) -> None:
        """Log database operation in a secure, audit-friendly way."""
        status = "SUCCESS" if success else "FAILED"
        duration_str = f", {duration_ms:.2f}ms" if duration_ms is not None else ""
        row_str = f", {row_count} rows" if row_count is not None else ""

        self.info(f"DB_AUDIT: {operation} {status}{duration_str}{row_str}")

    def log_sql_execution(
        self,
        sql: str,
        params: Any = None,
        success: bool = True,
        duration_ms: Optional[float] = None,
    ) -> None:
        """Securely log SQL query execution."""
        sql_summary = self._get_sql_summary(sql)
        param_summary = self._sanitize_params(params)
        status = "SUCCESS" if success else "FAILED"
        duration_str = f" ({duration_ms:.2f}ms)" if duration_ms is not None else ""

        self.debug(f"SQL_EXEC: {sql_summary} | PARAMS: {param_summary} | {status}{duration_str}")

    def log_patient_search(
        self,
        search_type: str,
        criteria_count: int,
        results_count: int,
        duration_ms: Optional[float] = None,
    ) -> None:
        """
        Log patient search operations without exposing sensitive data.

        Args:
            search_type: Type of search (prefilter, fuzzy, etc.)
            criteria_count: Number of search criteria used
            results_count: Number of results returned
            duration_ms: Search duration in milliseconds
        """
        duration_str = f" ({duration_ms:.2f}ms)" if duration_ms is not None else ""
        self.info(
            f"PATIENT_SEARCH: {search_type} search with {criteria_count} criteria "
            f"returned {results_count} results{duration_str}",
        )

    def log_duplicate_check(
        self,
        definite_count: int,
        probable_count: int,
        possible_count: int,
        candidates_evaluated: int,
    ) -> None:
        """Log the bucket counts of a duplicate check."""
        self.info(
            f"DUPLICATE_CHECK: {candidates_evaluated} candidates evaluated | "
            f"definite={definite_count} probable={probable_count} possible={possible_count}",
        )

    def log_override(self, flag: str, details: Optional[str] = None) -> None:
        """Record that a caller bypassed the duplicate gate."""
        details_str = f" | {self._sanitize_message(details)}" if details else ""
        self.warning(f"DUPLICATE_OVERRIDE: registration forced with {flag}{details_str}")


def get_secure_logger(name: str, production_mode: bool = True) -> SecureLogger:
    """
    Get a secure logger instance.

    Args:
        name: Logger name (typically __name__)
        production_mode: Enable production security filtering

    Returns:
        SecureLogger instance
    """
    base_logger = logging.getLogger(name)
    return SecureLogger(base_logger, production_mode=production_mode)


def configure_secure_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    production_mode: bool = True,
) -> None:
    """
    Configure secure logging for the entire application.

    Args:
        level: Logging level
        log_file: Optional log file path
        production_mode: Enable production security filtering
    """
    if production_mode:
        formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
