"""Bank statement to ledger reconciliation matcher."""

__version__ = "0.1.0"
