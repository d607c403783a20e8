"""
Excel report generator for reconciliation sessions.
Creates multi-sheet workbooks with formatted output.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional
import logging

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Border, Side
from openpyxl.worksheet.worksheet import Worksheet

from ..config import ReconConfig, SheetConfig
from ..matching.session import ReconciliationSession
from ..models.transaction import (
    AuditEntry,
    DecisionStatus,
    MatchCandidate,
    MatchDecision,
    ReconciliationSummary,
    Transaction,
)
from ..utils.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
MATCH_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
MANUAL_FILL = PatternFill(start_color="DDEBF7", end_color="DDEBF7", fill_type="solid")
SUGGESTED_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
UNMATCHED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)

TRANSACTION_HEADERS = ["ID", "Date", "Reference", "Amount", "Type", "Description", "Account"]


class ExcelReportGenerator:
    """Generates Excel reconciliation reports with multiple sheets."""

    def __init__(self, config: Optional[ReconConfig] = None):
        """
        Initialize the report generator.

        Args:
            config: Application configuration
        """
        self.config = config or ReconConfig()
        self.sheet_config = self.config.output.sheets

    def generate_report(self, session: ReconciliationSession, output_path: Path) -> Path:
        """
        Generate the complete reconciliation report.

        Args:
            session: Session whose decisions and candidates are reported
            output_path: Path for output file

        Returns:
            Path to generated report

        Raises:
            ReportGenerationError: If the workbook cannot be built or saved
        """
        logger.info(f"Generating Excel report: {output_path}")

        try:
            summary = session.summary()
            decisions = session.active_decisions()
            bank_by_id = {t.id: t for t in session.bank_transactions}
            recorded_by_id = {t.id: t for t in session.recorded_transactions}

            wb = Workbook()
            if wb.active:
                wb.remove(wb.active)

            sheets = self.sheet_config
            if sheets.summary.enabled:
                self._create_summary_sheet(wb, sheets.summary, summary)
            if sheets.matched.enabled:
                self._create_matched_sheet(
                    wb, sheets.matched, decisions, bank_by_id, recorded_by_id
                )
            if sheets.bank_unmatched.enabled:
                self._create_transaction_sheet(
                    wb, sheets.bank_unmatched, session.unmatched_bank_transactions()
                )
            if sheets.recorded_unmatched.enabled:
                self._create_transaction_sheet(
                    wb, sheets.recorded_unmatched, session.unmatched_recorded_transactions()
                )
            if sheets.suggestions.enabled:
                self._create_suggestions_sheet(
                    wb, sheets.suggestions, session.current_candidates(), bank_by_id, recorded_by_id
                )
            if sheets.audit_trail.enabled:
                self._create_audit_trail_sheet(wb, sheets.audit_trail, summary, session.audit_log())

            output_path.parent.mkdir(parents=True, exist_ok=True)
            wb.save(output_path)
        except (OSError, ValueError, KeyError) as e:
            logger.error(f"Failed to generate report: {e}")
            raise ReportGenerationError(f"Failed to generate report {output_path}: {e}") from e

        logger.info(f"Report saved: {output_path}")
        return output_path

    def _create_summary_sheet(
        self, wb: Workbook, sheet: SheetConfig, summary: ReconciliationSummary
    ) -> None:
        """Create the summary sheet with key metrics."""
        ws = wb.create_sheet(sheet.name)

        ws["A1"] = "Bank Reconciliation Summary"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:D1")

        sections = [
            (
                "Session",
                [
                    ("Session ID:", summary.session_id),
                    ("Status:", summary.status),
                    (
                        "Statement Period:",
                        f"{summary.statement_period_start or '-'} to "
                        f"{summary.statement_period_end or '-'}",
                    ),
                ],
            ),
            (
                "Transaction Counts",
                [
                    ("Total Bank Transactions:", summary.total_bank_transactions),
                    ("Total Recorded Transactions:", summary.total_recorded_transactions),
                    ("Accepted Matches:", summary.matched_count),
                    ("Manual Matches:", summary.manual_count),
                    ("Rejected Suggestions:", summary.rejected_count),
                    ("Open Suggestions:", summary.suggested_count),
                    ("Bank Unmatched:", summary.bank_unmatched_count),
                    ("Recorded Unmatched:", summary.recorded_unmatched_count),
                ],
            ),
            (
                "Amount Totals",
                [
                    ("Bank Total Credits:", f"${summary.bank_total_credits:,.2f}"),
                    ("Bank Total Debits:", f"${summary.bank_total_debits:,.2f}"),
                    ("Matched Credits:", f"${summary.matched_total_credits:,.2f}"),
                    ("Matched Debits:", f"${summary.matched_total_debits:,.2f}"),
                    ("Unmatched Bank Net:", f"${summary.unmatched_bank_net:,.2f}"),
                ],
            ),
            ("Progress", [("Bank Match Rate:", f"{summary.match_rate_bank:.1f}%")]),
        ]

        row = 3
        for title, rows in sections:
            ws[f"A{row}"] = title
            ws[f"A{row}"].font = Font(bold=True)
            row += 1
            for label, value in rows:
                ws[f"A{row}"] = label
                ws[f"B{row}"] = value
                row += 1
            row += 1

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 40

    def _create_matched_sheet(
        self,
        wb: Workbook,
        sheet: SheetConfig,
        decisions: list[MatchDecision],
        bank_by_id: dict[str, Transaction],
        recorded_by_id: dict[str, Transaction],
    ) -> None:
        """Create the matched transactions sheet."""
        ws = wb.create_sheet(sheet.name)

        headers = [
            "Decision ID",
            "Bank Date",
            "Bank Amount",
            "Bank Description",
            "Recorded Date",
            "Recorded Amount",
            "Recorded Description",
            "Account",
            "Status",
            "Confidence",
            "Reason",
            "Decided At",
        ]
        self._write_headers(ws, headers)

        for row_num, decision in enumerate(decisions, start=2):
            bank_txn = bank_by_id[decision.bank_transaction_id]
            recorded_txn = recorded_by_id[decision.recorded_transaction_id]

            row_data = [
                decision.id,
                bank_txn.date,
                float(bank_txn.amount),
                bank_txn.description,
                recorded_txn.date,
                float(recorded_txn.amount),
                recorded_txn.description,
                recorded_txn.account or "",
                decision.status.value,
                f"{decision.confidence:.2f}",
                decision.reason or "",
                decision.decided_at.strftime("%Y-%m-%d %H:%M:%S"),
            ]
            fill = MANUAL_FILL if decision.status == DecisionStatus.MANUAL else MATCH_FILL
            self._write_row(ws, row_num, row_data, fill)

        self._auto_fit_columns(ws)

    def _create_transaction_sheet(
        self, wb: Workbook, sheet: SheetConfig, transactions: list[Transaction]
    ) -> None:
        """Create a sheet listing unmatched transactions for one side."""
        ws = wb.create_sheet(sheet.name)
        self._write_headers(ws, TRANSACTION_HEADERS)

        for row_num, txn in enumerate(transactions, start=2):
            row_data = [
                txn.id,
                txn.date,
                txn.reference or "",
                float(txn.amount),
                txn.type.value,
                txn.description,
                txn.account or "",
            ]
            self._write_row(ws, row_num, row_data, UNMATCHED_FILL)

        self._auto_fit_columns(ws)

    def _create_suggestions_sheet(
        self,
        wb: Workbook,
        sheet: SheetConfig,
        candidates: list[MatchCandidate],
        bank_by_id: dict[str, Transaction],
        recorded_by_id: dict[str, Transaction],
    ) -> None:
        """Create the sheet of open, undecided candidates."""
        ws = wb.create_sheet(sheet.name)

        headers = [
            "Candidate ID",
            "Bank Description",
            "Bank Amount",
            "Recorded Description",
            "Recorded Amount",
            "Date Difference (Days)",
            "Confidence",
            "Reason",
        ]
        self._write_headers(ws, headers)

        for row_num, candidate in enumerate(candidates, start=2):
            bank_txn = bank_by_id[candidate.bank_transaction_id]
            recorded_txn = recorded_by_id[candidate.recorded_transaction_id]
            row_data = [
                candidate.id,
                bank_txn.description,
                float(bank_txn.amount),
                recorded_txn.description,
                float(recorded_txn.amount),
                candidate.date_distance_days,
                f"{candidate.confidence:.2f}",
                candidate.reason.value,
            ]
            self._write_row(ws, row_num, row_data, SUGGESTED_FILL)

        self._auto_fit_columns(ws)

    def _create_audit_trail_sheet(
        self,
        wb: Workbook,
        sheet: SheetConfig,
        summary: ReconciliationSummary,
        entries: list[AuditEntry],
    ) -> None:
        """Create the audit trail sheet."""
        ws = wb.create_sheet(sheet.name)

        ws["A1"] = "Reconciliation Audit Trail"
        ws["A1"].font = Font(size=14, bold=True)

        audit_info = [
            ("Generated At:", datetime.now().strftime("%Y-%m-%d %H:%M:%S")),
            ("Config File:", summary.config_file_used or "Default"),
            ("Session ID:", summary.session_id),
        ]

        row = 3
        for label, value in audit_info:
            ws[f"A{row}"] = label
            ws[f"B{row}"] = value
            row += 1

        row += 1
        ws[f"A{row}"] = "Decision Log"
        ws[f"A{row}"].font = Font(bold=True)
        row += 1

        headers = ["Timestamp", "Action", "Decision ID", "Bank ID", "Recorded ID", "Detail"]
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=row, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
        row += 1

        for entry in entries:
            log_data = [
                entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                entry.action,
                entry.decision_id or "",
                entry.bank_transaction_id or "",
                entry.recorded_transaction_id or "",
                entry.detail,
            ]
            for col, value in enumerate(log_data, start=1):
                ws.cell(row=row, column=col, value=value)
            row += 1

        self._auto_fit_columns(ws)

    def _write_headers(self, ws: Worksheet, headers: list[str]) -> None:
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.border = THIN_BORDER

    def _write_row(self, ws: Worksheet, row_num: int, values: list, fill: PatternFill) -> None:
        for col, value in enumerate(values, start=1):
            cell = ws.cell(row=row_num, column=col, value=value)
            cell.border = THIN_BORDER
            cell.fill = fill

    def _auto_fit_columns(self, ws: Worksheet) -> None:
        """Auto-fit column widths based on content."""
        for column_cells in ws.columns:
            max_length = max((len(str(c.value)) for c in column_cells if c.value), default=0)
            column = column_cells[0].column_letter
            ws.column_dimensions[column].width = min(max_length + 2, 50)
