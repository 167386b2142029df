from core.models import RiskDefinitionRow, RoleAssignmentRow, RiskType, MatchedFunction
from core.risk_graph import RiskGraphBuilder
from core.risk_matcher import RiskMatcher
from core.role_index import RoleActionIndex


def _sod(risk_id, function_id, action, level="High"):
    return RiskDefinitionRow(risk_id=risk_id, function_id=function_id, risk_type="Segregation of Duties",
                             action=action, risk_level=level, description=f"P2P - {risk_id}")


def _critical(risk_id, function_id, action, level="Critical"):
    return RiskDefinitionRow(risk_id=risk_id, function_id=function_id, risk_type="Critical Action",
                             action=action, risk_level=level, description=f"GL - {risk_id}")


def _match(risk_rows, role_rows):
    graph = RiskGraphBuilder().build(risk_rows)
    index = RoleActionIndex().build([RoleAssignmentRow(role, action) for role, action in role_rows])
    return RiskMatcher().match(index, graph)


SOD_RISK = [_sod("R1", "F1", "CREATE"), _sod("R1", "F2", "APPROVE")]


def test_sod_requires_every_function() -> None:
    exposures = _match(SOD_RISK, [("Clerk", "CREATE"), ("Manager", "CREATE"), ("Manager", "APPROVE")])

    assert len(exposures) == 1
    exposure = exposures[0]
    assert exposure.role == "Manager"
    assert exposure.risk_id == "R1"
    assert exposure.risk_type is RiskType.SEGREGATION_OF_DUTIES
    assert exposure.matched_functions == (
        MatchedFunction("F1", ("CREATE",)),
        MatchedFunction("F2", ("APPROVE",)),
    )
    assert exposure.functions_label == "F1 (CREATE), F2 (APPROVE)"


def test_critical_action_matches_single_function() -> None:
    exposures = _match([_critical("R2", "F3", "DELETE")], [("Admin", "DELETE")])

    assert len(exposures) == 1
    assert exposures[0].risk_type is RiskType.CRITICAL_ACTION
    assert exposures[0].matched_functions == (MatchedFunction("F3", ("DELETE",)),)


def test_empty_role_data_matches_nothing() -> None:
    assert _match(SOD_RISK + [_critical("R2", "F3", "DELETE")], []) == []


def test_match_is_deterministic() -> None:
    risk_rows = SOD_RISK + [_critical("R2", "F3", "DELETE"), _critical("R3", "F1", "CREATE")]
    role_rows = [("Manager", "CREATE"), ("Manager", "APPROVE"), ("Admin", "DELETE"), ("Admin", "CREATE")]

    assert _match(risk_rows, role_rows) == _match(risk_rows, role_rows)


def test_critical_exposures_precede_sod_within_a_role() -> None:
    risk_rows = SOD_RISK + [_critical("R3", "F1", "CREATE")]
    exposures = _match(risk_rows, [("Manager", "CREATE"), ("Manager", "APPROVE")])

    assert [(e.risk_id, e.risk_type) for e in exposures] == [
        ("R3", RiskType.CRITICAL_ACTION),
        ("R1", RiskType.SEGREGATION_OF_DUTIES),
    ]


def test_each_role_risk_pair_reported_once() -> None:
    risk_rows = SOD_RISK + [_sod("R1", "F1", "EDIT")]
    exposures = _match(risk_rows, [("Manager", "CREATE"), ("Manager", "EDIT"), ("Manager", "APPROVE")])

    assert len(exposures) == 1
    assert exposures[0].matched_functions[0] == MatchedFunction("F1", ("CREATE", "EDIT"))


def test_adding_an_action_never_removes_exposures() -> None:
    risk_rows = SOD_RISK + [_critical("R2", "F3", "DELETE")]
    base_roles = [("Manager", "CREATE"), ("Admin", "DELETE")]

    before = {(e.role, e.risk_id) for e in _match(risk_rows, base_roles)}
    after = {(e.role, e.risk_id) for e in _match(risk_rows, base_roles + [("Manager", "APPROVE")])}

    assert before <= after
    assert ("Manager", "R1") in after - before


def test_action_comparison_is_case_insensitive() -> None:
    risk_rows = [_critical("R2", "F3", "Create")]
    exposures = _match(risk_rows, [("A", "create"), ("B", "Create"), ("C", "CREATE")])

    assert [e.role for e in exposures] == ["A", "B", "C"]


def test_unknown_function_never_matches() -> None:
    graph = RiskGraphBuilder().build(SOD_RISK + [_critical("R2", "F3", "DELETE")])
    graph.critical_risks["R2"].function_id = "MISSING"
    graph.sod_risks["R1"].required_functions["F404"] = None
    index = RoleActionIndex().build([
        RoleAssignmentRow("Manager", "CREATE"),
        RoleAssignmentRow("Manager", "APPROVE"),
        RoleAssignmentRow("Manager", "DELETE"),
    ])

    assert RiskMatcher().match(index, graph) == []


def test_role_with_no_actions_matches_nothing() -> None:
    graph = RiskGraphBuilder().build([_critical("R2", "F3", "DELETE")])
    index = RoleActionIndex().build([RoleAssignmentRow("Admin", "DELETE")])
    index["Admin"].actions.clear()

    assert RiskMatcher().match(index, graph) == []
