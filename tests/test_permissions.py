from core.permissions import Permissions, UserSession


def test_permissions_decode_nested_record() -> None:
    permissions = Permissions.from_record({
        "audit": {"enabled": True, "roleAnalysis": True},
        "sorReview": True,
    })

    assert permissions.audit_enabled
    assert permissions.audit_role_analysis
    assert not permissions.audit_user_analysis
    assert permissions.sor_review
    assert not permissions.super_user_access
    # dashboard defaults on, like the stored default
    assert permissions.dashboard


def test_permissions_round_trip_record_layout() -> None:
    record = Permissions(audit_role_analysis=True, dashboard=False).to_record()

    assert record["audit"]["roleAnalysis"] is True
    assert record["audit"]["enabled"] is False
    assert record["dashboard"] is False
    assert Permissions.from_record(record) == Permissions(audit_role_analysis=True, dashboard=False)


def test_malformed_record_is_tolerated() -> None:
    assert Permissions.from_record({"audit": True}) == Permissions()
    assert Permissions.from_record(None) == Permissions()


def test_session_path_access() -> None:
    session = UserSession("analyst", permissions=Permissions(audit_role_analysis=True, dashboard=False))

    assert session.can_access("/role-analysis")
    assert session.can_access("/role-analysis/1234")
    assert not session.can_access("/user-analysis")
    assert not session.can_access("/dashboard")
    assert not session.can_access("/somewhere-else")


def test_admin_sees_everything() -> None:
    session = UserSession("root", role="admin", permissions=Permissions(dashboard=False))

    assert session.can_access("/super-user-access")
    assert [item["id"] for item in session.visible_menu()][-1] == "admin"


def test_menu_shows_audit_group_with_permitted_children_only() -> None:
    session = UserSession("analyst", permissions=Permissions(audit_role_analysis=True))

    menu = session.visible_menu()

    assert [item["id"] for item in menu] == ["dashboard", "audit"]
    assert [child["id"] for child in menu[1]["submenu"]] == ["role-analysis"]


def test_session_survives_cookie_round_trip() -> None:
    session = UserSession("analyst", permissions=Permissions(sor_review=True), user_id=7)

    assert UserSession.from_dict(session.to_dict()) == session


def test_menu_leaves_out_pages_that_are_not_served() -> None:
    session = UserSession("root", role="admin")

    menu = session.visible_menu(available_paths={"/dashboard", "/role-analysis", "/users"})

    assert [item["id"] for item in menu] == ["dashboard", "audit", "admin"]
    assert [child["id"] for child in menu[1]["submenu"]] == ["role-analysis"]
    assert session.visible_menu(available_paths=set()) == []
