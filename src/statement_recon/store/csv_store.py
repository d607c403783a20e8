"""
CSV-backed transaction store.
Parses bank statement and ledger exports into transaction models.
"""

from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional
import logging

import pandas as pd

from ..config import ReconConfig, SideInputConfig
from ..models.transaction import Transaction, TransactionSource, parse_amount
from ..utils.exceptions import InvalidArgumentError, StatementImportError
from .base import StatementBatch, TransactionStore

logger = logging.getLogger(__name__)


class CsvTransactionStore(TransactionStore):
    """
    Store that reads one CSV file per reconciliation side.

    Amounts come from a signed amount column when present, otherwise
    from a debit/credit column pair (debits become negative).
    """

    def __init__(self, bank_path: Path, recorded_path: Path, config: Optional[ReconConfig] = None):
        """
        Initialize the store.

        Args:
            bank_path: Bank statement CSV export
            recorded_path: Ledger CSV export
            config: Application configuration (defaults if omitted)
        """
        self.bank_path = Path(bank_path)
        self.recorded_path = Path(recorded_path)
        self.config = config or ReconConfig()

    def fetch(self) -> StatementBatch:
        """
        Parse both files.

        Raises:
            StatementImportError: If a file cannot be read
            InvalidArgumentError: If ids are duplicated within a side
        """
        bank = parse_transaction_file(
            self.bank_path, self.config.input.bank, TransactionSource.BANK
        )
        recorded = parse_transaction_file(
            self.recorded_path, self.config.input.recorded, TransactionSource.RECORDED
        )
        return StatementBatch(bank_transactions=bank, recorded_transactions=recorded)


def parse_transaction_file(
    file_path: Path, side_config: SideInputConfig, source: TransactionSource
) -> list[Transaction]:
    """
    Parse a CSV file and return its transactions.

    Args:
        file_path: Path to the CSV file
        side_config: Parsing settings for this side
        source: Side the transactions belong to

    Returns:
        List of transactions, skipping unusable rows

    Raises:
        StatementImportError: If the file cannot be read
    """
    logger.info(f"Parsing {source.value} CSV file: {file_path}")

    try:
        df = pd.read_csv(
            file_path,
            encoding=side_config.encoding,
            delimiter=side_config.delimiter,
            dtype=str,
        )
    except Exception as e:
        logger.error(f"Failed to read CSV file: {e}")
        raise StatementImportError(f"Failed to read CSV file {file_path}: {e}") from e

    parser = _RowParser(side_config, source)
    transactions: list[Transaction] = []

    for idx, row in df.iterrows():
        try:
            txn = parser.parse(row, int(idx))
        except InvalidArgumentError as e:
            logger.warning(f"Row {idx}: {e}, skipping")
            continue
        if txn:
            transactions.append(txn)

    logger.info(f"Extracted {len(transactions)} {source.value} transactions from {file_path}")
    return transactions


class _RowParser:
    """Converts DataFrame rows for one side into transactions."""

    def __init__(self, side_config: SideInputConfig, source: TransactionSource):
        self.side_config = side_config
        self.source = source
        self.columns = side_config.column_mappings

    def parse(self, row: pd.Series, idx: int) -> Optional[Transaction]:
        txn_date = self._parse_date(self._value(row, "date"))
        if not txn_date:
            logger.warning(f"Row {idx}: Invalid date, skipping")
            return None

        amount = self._parse_row_amount(row)
        if amount is None:
            logger.warning(f"Row {idx}: No valid amount found, skipping")
            return None

        txn_id = self._value(row, "id") or f"{self.side_config.id_prefix}-{idx + 1:05d}"
        account = self._value(row, "account") if self.source == TransactionSource.RECORDED else None

        return Transaction(
            id=txn_id,
            date=txn_date,
            amount=amount,
            description=self._value(row, "description") or "",
            reference=self._value(row, "reference"),
            account=account,
            source=self.source,
        )

    def _value(self, row: pd.Series, field: str) -> Optional[str]:
        column = self.columns.get(field)
        if not column or column not in row.index:
            return None
        value = row.get(column)
        if pd.isna(value):
            return None
        text = str(value).strip()
        return text or None

    def _parse_row_amount(self, row: pd.Series) -> Optional[Decimal]:
        signed = self._value(row, "amount")
        if signed is not None:
            return parse_amount(signed)

        debit = self._value(row, "debit")
        credit = self._value(row, "credit")
        debit_val = abs(parse_amount(debit)) if debit is not None else None
        credit_val = abs(parse_amount(credit)) if credit is not None else None

        if debit_val:
            return -debit_val
        if credit_val is not None:
            return credit_val
        # A zero debit is still an amount
        return debit_val

    def _parse_date(self, date_value: Any) -> Optional[date]:
        if date_value is None:
            return None

        try:
            return datetime.strptime(date_value, self.side_config.date_format).date()
        except ValueError:
            # Try pandas parser as fallback
            try:
                parsed = pd.to_datetime(date_value)
            except (ValueError, TypeError):
                return None
            return None if pd.isna(parsed) else parsed.date()
