import pandas as pd
import pytest

from core.errors import IngestionError
from processors.risk_dataset import RiskDatasetProcessor
from processors.role_assignments import RoleAssignmentProcessor
from utils.csv_utils import CSVHandler


def test_risk_dataset_decodes_trimmed_rows(risk_csv) -> None:
    rows = RiskDatasetProcessor().load(str(risk_csv))

    assert len(rows) == 3
    first = rows[0]
    assert first.risk_id == "R1"
    assert first.function_id == "F1"
    assert first.risk_type == "Segregation of Duties"
    assert first.risk_level == "High"
    assert first.function_description == "Create vendor"
    assert first.action == "CREATE"


def test_headers_and_values_are_trimmed_and_bom_removed(tmp_path) -> None:
    path = tmp_path / "roles.csv"
    path.write_text("\ufeff Final Placement , Action \n  Clerk  ,  create \n", encoding="utf-8")

    rows = RoleAssignmentProcessor().load(str(path))

    assert rows[0].role == "Clerk"
    assert rows[0].action == "CREATE"


def test_missing_required_column_fails_fast(tmp_path) -> None:
    path = tmp_path / "roles.csv"
    path.write_text("Role,Action\nClerk,CREATE\n", encoding="utf-8")

    with pytest.raises(IngestionError) as excinfo:
        RoleAssignmentProcessor().load(str(path))

    assert "Final Placement" in str(excinfo.value)


def test_optional_risk_columns_may_be_absent(tmp_path) -> None:
    path = tmp_path / "risks.csv"
    path.write_text("Risk ID,Risk Type,Function ID,Action\nR2,Critical Action,F3,delete\n", encoding="utf-8")

    rows = RiskDatasetProcessor().load(str(path))

    assert rows[0].description == ""
    assert rows[0].risk_level == ""
    assert rows[0].action == "DELETE"


def test_empty_fields_are_kept_for_the_builders(tmp_path) -> None:
    path = tmp_path / "risks.csv"
    path.write_text("Risk ID,Risk Type,Function ID,Action\nR9,Critical Action,,delete\n", encoding="utf-8")

    rows = RiskDatasetProcessor().load(str(path))

    assert len(rows) == 1
    assert rows[0].function_id == ""


def test_excel_upload_is_read_as_strings(tmp_path) -> None:
    path = tmp_path / "roles.xlsx"
    pd.DataFrame({"Final Placement": ["Clerk", "Manager"], "Action": ["create", 42]}).to_excel(path, index=False)

    rows = RoleAssignmentProcessor().load(str(path))

    assert [(r.role, r.action) for r in rows] == [("Clerk", "CREATE"), ("Manager", "42")]


def test_unsupported_extension_is_an_ingestion_error(tmp_path) -> None:
    path = tmp_path / "roles.txt"
    path.write_text("Final Placement,Action\n", encoding="utf-8")

    with pytest.raises(IngestionError):
        CSVHandler.read_table(str(path))


def test_empty_csv_is_an_ingestion_error(tmp_path) -> None:
    path = tmp_path / "roles.csv"
    path.write_text("", encoding="utf-8")

    with pytest.raises(IngestionError):
        RoleAssignmentProcessor().load(str(path))


def test_legacy_xls_workbook_is_rejected(tmp_path) -> None:
    path = tmp_path / "roles.xls"
    path.write_bytes(b"\xd0\xcf\x11\xe0")

    with pytest.raises(IngestionError) as excinfo:
        CSVHandler.read_table(str(path))

    assert ".xls" in str(excinfo.value)
