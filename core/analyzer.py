# =============================================================================
# core/analyzer.py - Role risk analysis pipeline
# =============================================================================

import logging
from typing import Optional, Sequence

from core.aggregation import summarize
from core.errors import InputTooLargeError
from core.models import AnalysisResult, RiskDefinitionRow, RoleAssignmentRow
from core.risk_graph import RiskGraphBuilder
from core.risk_matcher import RiskMatcher
from core.role_index import RoleActionIndex
from processors.risk_dataset import RiskDatasetProcessor
from processors.role_assignments import RoleAssignmentProcessor

DEFAULT_MAX_ROWS = 200_000


class RoleRiskAnalyzer:
    """
    Runs build -> index -> match -> summarize over two in-memory tables.

    Every call starts from fresh builders, so analyzer instances can be shared
    between requests without leaking state from one analysis into another.
    """

    def __init__(self, max_rows: int = DEFAULT_MAX_ROWS):
        self.max_rows = max_rows
        self.logger = logging.getLogger(self.__class__.__name__)

    def analyze(self, risk_rows: Sequence[RiskDefinitionRow],
                role_rows: Sequence[RoleAssignmentRow]) -> AnalysisResult:
        """Compute every role/risk exposure and the dashboard aggregates"""
        self._check_size("Risk dataset", risk_rows)
        self._check_size("Role assignment file", role_rows)

        self.logger.info(f"Starting analysis: {len(risk_rows)} risk rows, {len(role_rows)} role rows")

        graph = RiskGraphBuilder().build(risk_rows)
        role_index = RoleActionIndex().build(role_rows)
        exposures = RiskMatcher().match(role_index, graph)
        aggregates = summarize(exposures, role_index, graph)

        self.logger.info("Analysis complete.")
        self.logger.info(
            f"Found {aggregates.sod_count} SoD risks and {aggregates.critical_count} Critical Action risks"
        )
        self.logger.info(
            f"Analyzed {aggregates.unique_sod_risks} unique SoD risks and "
            f"{aggregates.unique_critical_risks} Critical Action risks across {aggregates.total_roles} roles"
        )

        return AnalysisResult(
            exposures=tuple(exposures),
            role_index=role_index,
            graph=graph,
            aggregates=aggregates
        )

    def analyze_files(self, risk_path: str, role_path: str,
                      sheet_name: Optional[str] = None) -> AnalysisResult:
        """Load both uploads through their processors and analyze them"""
        risk_rows = RiskDatasetProcessor().load(risk_path, sheet_name)
        role_rows = RoleAssignmentProcessor().load(role_path, sheet_name)
        return self.analyze(risk_rows, role_rows)

    def _check_size(self, name: str, rows: Sequence) -> None:
        if self.max_rows and len(rows) > self.max_rows:
            self.logger.error(f"{name} has {len(rows)} rows, limit is {self.max_rows}")
            raise InputTooLargeError(f"{name} has {len(rows)} rows; the limit is {self.max_rows}")
