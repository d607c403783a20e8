"""Utility modules."""

from .exceptions import (
    ReconciliationError,
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    SessionClosedError,
    ConfigurationError,
    StatementImportError,
    ReportGenerationError,
)
from .logging_config import setup_logging, level_from_name

__all__ = [
    "ReconciliationError",
    "ConflictError",
    "InvalidArgumentError",
    "NotFoundError",
    "SessionClosedError",
    "ConfigurationError",
    "StatementImportError",
    "ReportGenerationError",
    "setup_logging",
    "level_from_name",
]
