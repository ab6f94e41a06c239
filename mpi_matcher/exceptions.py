"""Custom exceptions for mpi_matcher."""


class MPIError(Exception):
    """Base class for all patient index errors."""
    pass


class InvalidConfigurationError(MPIError, ValueError):
    """Raised when weights, thresholds or numbering plans are inconsistent."""
    pass


class CandidateRetrievalFailure(MPIError):
    """Raised by a candidate repository when the candidate pool cannot be fetched."""
    pass


class DatabaseConnectionError(CandidateRetrievalFailure):
    """Raised when unable to connect to the database."""
    pass


class QueryExecutionError(CandidateRetrievalFailure):
    """Raised when a query fails to execute."""
    pass


class DuplicateBlocked(MPIError):
    """Raised when registration is refused because a definite match exists."""

    def __init__(self, report, message=None):
        self.report = report
        super().__init__(message or getattr(report, "message", "Duplicate patient detected"))
