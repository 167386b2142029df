import csv
import json
from datetime import date

import pandas as pd

from core.analyzer import RoleRiskAnalyzer
from core.models import UserAccountRow
from core.user_analytics import UserAnalyzer
from utils.report_export import (
    EXPOSURE_COLUMNS, aggregates_to_dict, export_exposures_csv, export_user_report, export_workbook
)


def test_exposure_csv_matches_table_layout(risk_csv, role_csv, tmp_path) -> None:
    result = RoleRiskAnalyzer().analyze_files(str(risk_csv), str(role_csv))
    output = tmp_path / "exposures.csv"

    export_exposures_csv(result.exposures, str(output))

    with open(output, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert list(rows[0].keys()) == EXPOSURE_COLUMNS
    assert rows[0]["Functions (Actions)"] == "F1 (CREATE), F2 (APPROVE)"
    assert rows[1]["Risk Type"] == "Critical Action"


def test_workbook_has_every_breakdown(risk_csv, role_csv, tmp_path) -> None:
    result = RoleRiskAnalyzer().analyze_files(str(risk_csv), str(role_csv))
    output = tmp_path / "report.xlsx"

    export_workbook(result, str(output))

    sheets = pd.read_excel(output, sheet_name=None)
    assert set(sheets) == {
        "Exposures", "Summary", "By_Risk_Level", "By_Risk_Type", "By_Role",
        "Top_Risky_Roles", "By_Function", "By_Business_Process",
    }
    assert len(sheets["Exposures"]) == 2


def test_empty_summary_serializes_to_json() -> None:
    result = RoleRiskAnalyzer().analyze([], [])

    payload = json.loads(json.dumps(aggregates_to_dict(result.aggregates)))

    assert payload["total_risks"] == 0
    assert payload["by_risk_level"] == []
    assert payload["highest_risk_role"] is None


def test_user_report_is_stamped_json(tmp_path) -> None:
    analytics = UserAnalyzer().analyze([UserAccountRow("jdoe", lock_status="1")], as_of=date(2024, 6, 30))
    output = tmp_path / "user_report.json"

    export_user_report(analytics, str(output))

    report = json.loads(output.read_text(encoding="utf-8"))
    assert "generated_at" in report
    assert report["summary"]["locked_users"] == 1
    assert report["summary"]["status_shares"][1] == {"name": "Locked Users", "count": 1, "percentage": 100.0}
