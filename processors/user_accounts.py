# =============================================================================
# processors/user_accounts.py - User account listing processor
# =============================================================================

from typing import Dict, Any

from core.base_processor import BaseDatasetProcessor
from core.models import UserAccountRow


class UserAccountProcessor(BaseDatasetProcessor):
    """Decodes a user account listing (validity, lock status, logon and role columns)"""

    USER_ID_COLUMN = 'User ID'
    VALID_TO_COLUMN = 'Valid To'
    VALID_THROUGH_COLUMN = 'Valid Through'
    USER_GROUP_COLUMN = 'User Group'
    LOCK_STATUS_COLUMN = 'Lock Status'
    CREATION_DATE_COLUMN = 'Creation Date'
    LAST_LOGON_COLUMN = 'Last Logon Date'
    DEPARTMENT_COLUMN = 'Department'
    ROLES_COLUMN = 'Roles'

    ROLE_SEPARATOR = ';'

    REQUIRED_COLUMNS = [USER_ID_COLUMN]
    OPTIONAL_COLUMNS = [
        VALID_TO_COLUMN, VALID_THROUGH_COLUMN, USER_GROUP_COLUMN, LOCK_STATUS_COLUMN,
        CREATION_DATE_COLUMN, LAST_LOGON_COLUMN, DEPARTMENT_COLUMN, ROLES_COLUMN
    ]
    DATASET_NAME = "User listing"

    def decode_row(self, row: Dict[str, Any]) -> UserAccountRow:
        roles = [role.strip() for role in self.field(row, self.ROLES_COLUMN).split(self.ROLE_SEPARATOR)]
        return UserAccountRow(
            user_id=self.field(row, self.USER_ID_COLUMN),
            valid_to=self.field(row, self.VALID_TO_COLUMN),
            valid_through=self.field(row, self.VALID_THROUGH_COLUMN),
            user_group=self.field(row, self.USER_GROUP_COLUMN),
            lock_status=self.field(row, self.LOCK_STATUS_COLUMN),
            creation_date=self.field(row, self.CREATION_DATE_COLUMN),
            last_logon_date=self.field(row, self.LAST_LOGON_COLUMN),
            department=self.field(row, self.DEPARTMENT_COLUMN),
            roles=[role for role in roles if role]
        )
