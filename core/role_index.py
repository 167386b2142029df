# =============================================================================
# core/role_index.py - Role to action index
# =============================================================================

import logging
from typing import Dict, Iterable

from core.models import RoleAssignmentRow, RoleActionSet


class RoleActionIndex:
    """Builds the role -> action set index from role assignment rows"""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    def build(self, role_rows: Iterable[RoleAssignmentRow]) -> Dict[str, RoleActionSet]:
        """Index actions by role; roles are matched exactly and case-sensitively"""
        index: Dict[str, RoleActionSet] = {}
        skipped = 0

        for row in role_rows:
            if not row.role or not row.action:
                skipped += 1
                continue

            role_set = index.get(row.role)
            if role_set is None:
                role_set = RoleActionSet(role=row.role)
                index[row.role] = role_set
            role_set.actions[row.action.upper()] = None

        self.logger.info(f"Indexed {len(index)} roles ({skipped} rows without role or action skipped)")
        return index
