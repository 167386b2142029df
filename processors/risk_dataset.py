# =============================================================================
# processors/risk_dataset.py - Risk definition dataset processor
# =============================================================================

from typing import Dict, Any

from core.base_processor import BaseDatasetProcessor
from core.models import RiskDefinitionRow


class RiskDatasetProcessor(BaseDatasetProcessor):
    """Decodes the risk definition dataset (risk -> function -> action rows)"""

    # Column mappings
    RISK_ID_COLUMN = 'Risk ID'
    DESCRIPTION_COLUMN = 'Description'
    RISK_LEVEL_COLUMN = 'Risk Level'
    RISK_TYPE_COLUMN = 'Risk Type'
    FUNCTION_ID_COLUMN = 'Function ID'
    FUNCTION_DESCRIPTION_COLUMN = 'Function Description'
    ACTION_COLUMN = 'Action'

    REQUIRED_COLUMNS = [RISK_ID_COLUMN, RISK_TYPE_COLUMN, FUNCTION_ID_COLUMN, ACTION_COLUMN]
    OPTIONAL_COLUMNS = [DESCRIPTION_COLUMN, RISK_LEVEL_COLUMN, FUNCTION_DESCRIPTION_COLUMN]
    DATASET_NAME = "Risk dataset"

    def decode_row(self, row: Dict[str, Any]) -> RiskDefinitionRow:
        return RiskDefinitionRow(
            risk_id=self.field(row, self.RISK_ID_COLUMN),
            function_id=self.field(row, self.FUNCTION_ID_COLUMN),
            risk_type=self.field(row, self.RISK_TYPE_COLUMN),
            description=self.field(row, self.DESCRIPTION_COLUMN),
            risk_level=self.field(row, self.RISK_LEVEL_COLUMN),
            function_description=self.field(row, self.FUNCTION_DESCRIPTION_COLUMN),
            action=self.field(row, self.ACTION_COLUMN).upper()
        )
