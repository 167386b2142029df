# =============================================================================
# core/user_analytics.py - User account status and access analysis
# =============================================================================

import logging
from dataclasses import asdict, fields
from datetime import date
from typing import Dict, List, Optional, Sequence

import pandas as pd

from core.aggregation import percentage_of
from core.analyzer import DEFAULT_MAX_ROWS
from core.errors import InputTooLargeError
from core.models import DepartmentStats, LevelShare, NamedCount, UserAccountRow, UserAnalytics
from processors.user_accounts import UserAccountProcessor

INACTIVE_AFTER_DAYS = 30
# More roles than these thresholds means high or medium access
HIGH_ACCESS_ROLES = 5
MEDIUM_ACCESS_ROLES = 2
ACCESS_LEVELS = ('High', 'Medium', 'Low')


def access_level(role_count: int) -> str:
    """Access level of a user holding role_count roles"""
    if role_count > HIGH_ACCESS_ROLES:
        return 'High'
    if role_count > MEDIUM_ACCESS_ROLES:
        return 'Medium'
    return 'Low'


def _parse_dates(values: pd.Series) -> pd.Series:
    # Empty, unparseable and out-of-range dates become NaT, which never compares true
    return pd.to_datetime(values, errors='coerce', format='mixed', utc=True)


class UserAnalyzer:
    """
    Account status dashboard for a user listing.

    A user is expired when Valid Through lies before the reference date, locked
    when Lock Status is a number above zero, and inactive when the last logon
    is older than the inactivity window. Active users carry none of these flags.
    Department, role and access level statistics come from the Department and
    Roles columns when the listing has them.
    """

    def __init__(self, max_rows: int = DEFAULT_MAX_ROWS, inactive_after_days: int = INACTIVE_AFTER_DAYS):
        self.max_rows = max_rows
        self.inactive_after_days = inactive_after_days
        self.logger = logging.getLogger(self.__class__.__name__)

    def analyze(self, rows: Sequence[UserAccountRow], as_of: Optional[date] = None) -> UserAnalytics:
        """Compute status counts, creation trend and access statistics"""
        as_of = as_of or date.today()
        if self.max_rows and len(rows) > self.max_rows:
            self.logger.error(f"User listing has {len(rows)} rows, limit is {self.max_rows}")
            raise InputTooLargeError(f"User listing has {len(rows)} rows; the limit is {self.max_rows}")

        users = [row for row in rows if row.user_id]
        total = len(users)
        self.logger.info(f"Analyzing {total} users as of {as_of.isoformat()}")

        frame = pd.DataFrame([asdict(user) for user in users],
                             columns=[f.name for f in fields(UserAccountRow)])
        reference = pd.Timestamp(as_of, tz='UTC')

        expired = _parse_dates(frame['valid_through']) < reference
        locked = pd.to_numeric(frame['lock_status'], errors='coerce').fillna(0) > 0
        inactive = _parse_dates(frame['last_logon_date']) < reference - pd.Timedelta(days=self.inactive_after_days)
        active = ~(expired | locked | inactive)

        expired_count = int(expired.sum())
        locked_count = int(locked.sum())
        inactive_count = int(inactive.sum())

        created = _parse_dates(frame['creation_date']).dropna()
        months = created.dt.strftime('%Y-%m').value_counts().sort_index()

        departments: Dict[str, List[int]] = {}
        role_counts: Dict[str, int] = {}
        levels = {level: 0 for level in ACCESS_LEVELS}
        for user in users:
            if user.department:
                stats = departments.setdefault(user.department, [0, 0])
                stats[0] += 1
                stats[1] += len(user.roles)
            for role in user.roles:
                role_counts[role] = role_counts.get(role, 0) + 1
            levels[access_level(len(user.roles))] += 1

        analytics = UserAnalytics(
            as_of=as_of.isoformat(),
            total_users=total,
            expired_users=expired_count,
            locked_users=locked_count,
            inactive_users=inactive_count,
            active_users=int(active.sum()),
            status_shares=(
                LevelShare('Expired Users', expired_count, percentage_of(expired_count, total)),
                LevelShare('Locked Users', locked_count, percentage_of(locked_count, total)),
                LevelShare('Inactive Users', inactive_count, percentage_of(inactive_count, total)),
            ),
            monthly_trend=tuple(NamedCount(month, int(count)) for month, count in months.items()),
            by_department=tuple(
                DepartmentStats(name, user_count, role_count)
                for name, (user_count, role_count) in departments.items()
            ),
            role_distribution=tuple(NamedCount(role, count) for role, count in role_counts.items()),
            access_levels=tuple(NamedCount(level, count) for level, count in levels.items())
        )

        self.logger.info(
            f"User analysis complete: {expired_count} expired, {locked_count} locked, "
            f"{inactive_count} inactive, {analytics.active_users} active"
        )
        return analytics

    def analyze_file(self, file_path: str, sheet_name: Optional[str] = None,
                     as_of: Optional[date] = None) -> UserAnalytics:
        """Load a user listing through its processor and analyze it"""
        rows = UserAccountProcessor().load(file_path, sheet_name)
        return self.analyze(rows, as_of)
