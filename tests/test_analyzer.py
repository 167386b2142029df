import pytest

from core.analyzer import RoleRiskAnalyzer
from core.errors import InputTooLargeError
from core.models import RiskDefinitionRow, RoleAssignmentRow, RiskType


def test_analyze_files_end_to_end(risk_csv, role_csv) -> None:
    result = RoleRiskAnalyzer().analyze_files(str(risk_csv), str(role_csv))

    assert [(e.role, e.risk_id, e.risk_type) for e in result.exposures] == [
        ("Manager", "R1", RiskType.SEGREGATION_OF_DUTIES),
        ("Admin", "R2", RiskType.CRITICAL_ACTION),
    ]
    assert result.roles == ["Clerk", "Manager", "Admin"]

    aggregates = result.aggregates
    assert aggregates.total_risks == 2
    assert aggregates.unique_sod_risks == 1
    assert aggregates.unique_critical_risks == 1
    assert [(s.name, s.percentage) for s in aggregates.by_risk_level] == [("High", 50.0), ("Critical", 50.0)]
    assert [r.role for r in aggregates.top_risky_roles] == ["Admin", "Manager"]
    assert aggregates.highest_risk_role == "Manager"
    assert aggregates.most_affected_process == "P2P"


def test_analyses_do_not_share_state() -> None:
    analyzer = RoleRiskAnalyzer()
    risk_rows = [RiskDefinitionRow("R2", "F3", "Critical Action", action="DELETE")]

    first = analyzer.analyze(risk_rows, [RoleAssignmentRow("Admin", "DELETE")])
    second = analyzer.analyze(risk_rows, [RoleAssignmentRow("Clerk", "READ")])

    assert len(first.exposures) == 1
    assert second.exposures == ()
    assert second.roles == ["Clerk"]


def test_empty_role_dataset() -> None:
    result = RoleRiskAnalyzer().analyze([RiskDefinitionRow("R2", "F3", "Critical Action", action="DELETE")], [])

    assert result.exposures == ()
    assert result.aggregates.total_risks == 0
    assert result.aggregates.unique_critical_risks == 1


def test_row_cap_rejects_oversized_input() -> None:
    rows = [RoleAssignmentRow(f"Role{i}", "READ") for i in range(6)]

    with pytest.raises(InputTooLargeError):
        RoleRiskAnalyzer(max_rows=5).analyze([], rows)
