# =============================================================================
# core/risk_graph.py - Risk definition graph builder
# =============================================================================

import logging
from typing import Iterable

from core.models import (
    RiskDefinitionRow, RiskGraph, RiskType, SoDRiskDefinition,
    CriticalActionRiskDefinition, FunctionActionSet
)


class RiskGraphBuilder:
    """
    Builds the risk -> function -> action lookups from risk definition rows.

    Rows missing a Risk ID or Function ID are dropped without error. Rows with an
    unrecognized Risk Type only contribute their action to the function map.
    """

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    def build(self, risk_rows: Iterable[RiskDefinitionRow]) -> RiskGraph:
        """Fold risk definition rows into a RiskGraph"""
        graph = RiskGraph()
        dropped = 0

        for row in risk_rows:
            if not row.risk_id or not row.function_id:
                dropped += 1
                self.logger.debug(f"Dropping risk row without Risk ID/Function ID: {row}")
                continue

            risk_type = RiskType.parse(row.risk_type)

            if risk_type is RiskType.SEGREGATION_OF_DUTIES:
                sod_risk = graph.sod_risks.get(row.risk_id)
                if sod_risk is None:
                    sod_risk = SoDRiskDefinition(
                        risk_id=row.risk_id,
                        description=row.description,
                        risk_level=row.risk_level
                    )
                    graph.sod_risks[row.risk_id] = sod_risk
                sod_risk.required_functions[row.function_id] = None

            elif risk_type is RiskType.CRITICAL_ACTION:
                # First row wins for critical actions
                if row.risk_id not in graph.critical_risks:
                    graph.critical_risks[row.risk_id] = CriticalActionRiskDefinition(
                        risk_id=row.risk_id,
                        function_id=row.function_id,
                        description=row.description,
                        risk_level=row.risk_level
                    )

            if row.action:
                self._add_function_action(graph, row)

        self.logger.info(
            f"Risk graph built: {len(graph.sod_risks)} SoD risks, "
            f"{len(graph.critical_risks)} Critical Action risks, "
            f"{len(graph.function_actions)} functions"
        )
        if dropped:
            self.logger.info(f"Dropped {dropped} risk rows missing Risk ID or Function ID")

        return graph

    def _add_function_action(self, graph: RiskGraph, row: RiskDefinitionRow) -> None:
        function_set = graph.function_actions.get(row.function_id)
        if function_set is None:
            function_set = FunctionActionSet(function_id=row.function_id)
            graph.function_actions[row.function_id] = function_set

        if not function_set.function_description and row.function_description:
            function_set.function_description = row.function_description

        function_set.actions[row.action.upper()] = None
