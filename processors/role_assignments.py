# =============================================================================
# processors/role_assignments.py - Role/action assignment file processor
# =============================================================================

from typing import Dict, Any

from core.base_processor import BaseDatasetProcessor
from core.models import RoleAssignmentRow


class RoleAssignmentProcessor(BaseDatasetProcessor):
    """Decodes the role assignment file (Final Placement, Action)"""

    ROLE_COLUMN = 'Final Placement'
    ACTION_COLUMN = 'Action'

    REQUIRED_COLUMNS = [ROLE_COLUMN, ACTION_COLUMN]
    DATASET_NAME = "Role assignment file"

    def decode_row(self, row: Dict[str, Any]) -> RoleAssignmentRow:
        return RoleAssignmentRow(
            role=self.field(row, self.ROLE_COLUMN),
            action=self.field(row, self.ACTION_COLUMN).upper()
        )
