"""Custom exceptions for the reconciliation application."""


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    pass


class ConflictError(ReconciliationError):
    """A decision would pair a transaction that is already matched."""

    pass


class InvalidArgumentError(ReconciliationError):
    """Unknown transaction id, malformed amount/date, or out-of-range confidence."""

    pass


class NotFoundError(ReconciliationError):
    """Candidate or decision no longer exists."""

    pass


class SessionClosedError(ReconciliationError):
    """Mutation attempted on a finalized session."""

    pass


class ConfigurationError(ReconciliationError):
    """Error in configuration."""

    pass


class StatementImportError(ReconciliationError):
    """Error reading a bank statement or ledger export."""

    pass


class ReportGenerationError(ReconciliationError):
    """Error generating Excel report."""

    pass
