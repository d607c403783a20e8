"""
Statement Recon - Excel Report Tests
"""

import pytest
from openpyxl import load_workbook

from statement_recon.config import ReconConfig
from statement_recon.models.transaction import candidate_id
from statement_recon.reports.excel_generator import ExcelReportGenerator
from statement_recon.utils.exceptions import ReportGenerationError


class TestExcelReportGenerator:
    """Test cases for ExcelReportGenerator."""

    @pytest.fixture
    def decided_session(self, session):
        session.list_candidates()
        session.accept_candidate(candidate_id("bank_005", "rec_005"))
        session.reject(candidate_id("bank_004", "rec_004"))
        session.manual_match("bank_001", "rec_001")
        return session

    def test_writes_all_sheets(self, decided_session, tmp_path):
        output = tmp_path / "reports" / "recon.xlsx"

        path = ExcelReportGenerator().generate_report(decided_session, output)

        wb = load_workbook(path)
        assert wb.sheetnames == [
            "Summary",
            "Matched Transactions",
            "Unmatched Bank",
            "Unmatched Recorded",
            "Suggestions",
            "Audit Trail",
        ]

    def test_matched_sheet_rows(self, decided_session, tmp_path):
        path = ExcelReportGenerator().generate_report(decided_session, tmp_path / "r.xlsx")

        ws = load_workbook(path)["Matched Transactions"]
        statuses = [ws.cell(row=r, column=9).value for r in range(2, ws.max_row + 1)]

        assert ws.cell(row=1, column=1).value == "Decision ID"
        assert statuses == ["accepted", "manual"]

    def test_unmatched_and_suggestion_sheets(self, decided_session, tmp_path):
        path = ExcelReportGenerator().generate_report(decided_session, tmp_path / "r.xlsx")
        wb = load_workbook(path)

        bank_ids = [c.value for c in wb["Unmatched Bank"]["A"][1:]]
        suggestion_ids = [c.value for c in wb["Suggestions"]["A"][1:]]

        assert bank_ids == ["bank_002", "bank_003", "bank_004"]
        assert sorted(suggestion_ids) == [
            candidate_id("bank_002", "rec_002"),
            candidate_id("bank_003", "rec_003"),
        ]

    def test_audit_trail_lists_actions(self, decided_session, tmp_path):
        path = ExcelReportGenerator().generate_report(decided_session, tmp_path / "r.xlsx")
        ws = load_workbook(path)["Audit Trail"]

        actions = [ws.cell(row=r, column=2).value for r in range(1, ws.max_row + 1)]

        assert ["accept", "reject", "manual_match"] == [
            a for a in actions if a in {"accept", "reject", "manual_match"}
        ]

    def test_disabled_and_renamed_sheets(self, decided_session, tmp_path):
        config = ReconConfig(
            output={
                "sheets": {
                    "suggestions": {"enabled": False, "name": "Suggestions"},
                    "summary": {"enabled": True, "name": "Overview"},
                }
            }
        )

        path = ExcelReportGenerator(config).generate_report(decided_session, tmp_path / "r.xlsx")

        sheetnames = load_workbook(path).sheetnames
        assert "Suggestions" not in sheetnames
        assert sheetnames[0] == "Overview"

    def test_unwritable_path_raises(self, decided_session, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with pytest.raises(ReportGenerationError):
            ExcelReportGenerator().generate_report(decided_session, blocker / "r.xlsx")
