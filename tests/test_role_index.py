from core.models import RoleAssignmentRow
from core.role_index import RoleActionIndex


def test_actions_are_upper_cased_and_grouped_by_role() -> None:
    index = RoleActionIndex().build([
        RoleAssignmentRow("Clerk", "create"),
        RoleAssignmentRow("Manager", "Approve"),
        RoleAssignmentRow("Clerk", "CREATE"),
        RoleAssignmentRow("Clerk", "post"),
    ])

    assert list(index) == ["Clerk", "Manager"]
    assert list(index["Clerk"].actions) == ["CREATE", "POST"]
    assert list(index["Manager"].actions) == ["APPROVE"]


def test_rows_missing_role_or_action_are_skipped() -> None:
    index = RoleActionIndex().build([
        RoleAssignmentRow("", "CREATE"),
        RoleAssignmentRow("Clerk", ""),
    ])

    assert index == {}


def test_roles_are_case_sensitive() -> None:
    index = RoleActionIndex().build([
        RoleAssignmentRow("clerk", "CREATE"),
        RoleAssignmentRow("Clerk", "CREATE"),
    ])

    assert set(index) == {"clerk", "Clerk"}
