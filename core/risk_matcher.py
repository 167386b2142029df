# =============================================================================
# core/risk_matcher.py - Role/risk exposure matching
# =============================================================================

import logging
from typing import Dict, List, Tuple

from core.models import (
    RiskGraph, RiskExposure, RiskType, MatchedFunction, RoleActionSet,
    SoDRiskDefinition, CriticalActionRiskDefinition
)


class RiskMatcher:
    """
    Joins the role index against the risk graph.

    For each role, in index order, critical action risks are checked first and
    then segregation of duties risks. A critical action risk applies when the
    role holds any action of its function. A SoD risk applies only when the role
    holds at least one action of every required function.
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    def match(self, role_index: Dict[str, RoleActionSet], graph: RiskGraph) -> List[RiskExposure]:
        """Return every (role, risk) exposure, each pair exactly once"""
        exposures: List[RiskExposure] = []

        for role, role_set in role_index.items():
            role_actions = role_set.actions
            if not role_actions:
                continue

            for risk in graph.critical_risks.values():
                exposure = self._match_critical(role, role_actions, risk, graph)
                if exposure:
                    exposures.append(exposure)

            for risk in graph.sod_risks.values():
                exposure = self._match_sod(role, role_actions, risk, graph)
                if exposure:
                    exposures.append(exposure)

        self.logger.debug(f"Matched {len(exposures)} exposures across {len(role_index)} roles")
        return exposures

    def matching_actions(self, function_id: str, role_actions, graph: RiskGraph) -> Tuple[str, ...]:
        """Actions of a function held by the role; unknown functions match nothing"""
        function_set = graph.function_actions.get(function_id)
        if function_set is None:
            return ()
        return tuple(action for action in function_set.actions if action in role_actions)

    def _match_critical(self, role: str, role_actions, risk: CriticalActionRiskDefinition,
                        graph: RiskGraph):
        matched = self.matching_actions(risk.function_id, role_actions, graph)
        if not matched:
            return None

        return RiskExposure(
            risk_id=risk.risk_id,
            role=role,
            risk_type=RiskType.CRITICAL_ACTION,
            risk_level=risk.risk_level,
            description=risk.description,
            matched_functions=(MatchedFunction(risk.function_id, matched),)
        )

    def _match_sod(self, role: str, role_actions, risk: SoDRiskDefinition, graph: RiskGraph):
        matched_functions = []
        for function_id in risk.required_functions:
            matched = self.matching_actions(function_id, role_actions, graph)
            if not matched:
                return None
            matched_functions.append(MatchedFunction(function_id, matched))

        if not matched_functions:
            return None

        return RiskExposure(
            risk_id=risk.risk_id,
            role=role,
            risk_type=RiskType.SEGREGATION_OF_DUTIES,
            risk_level=risk.risk_level,
            description=risk.description,
            matched_functions=tuple(matched_functions)
        )
