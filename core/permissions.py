# =============================================================================
# core/permissions.py - Feature permission flags and user session
# =============================================================================

from dataclasses import dataclass, field, asdict, fields
from typing import Any, Dict, Iterable, List, Optional

ADMIN_ROLE = 'admin'

# Stored record layout: (flag, path into the nested permissions object)
PERMISSION_PATHS = {
    'audit_enabled': ('audit', 'enabled'),
    'audit_user_analysis': ('audit', 'userAnalysis'),
    'audit_role_analysis': ('audit', 'roleAnalysis'),
    'audit_combined_analysis': ('audit', 'combinedAnalysis'),
    'audit_recommendations': ('audit', 'recommendations'),
    'user_access_review': ('userAccessReview',),
    'sor_review': ('sorReview',),
    'super_user_access': ('superUserAccess',),
    'dashboard': ('dashboard',),
}

# Path prefix -> flag guarding it
PATH_PERMISSIONS = [
    ('/user-analysis', 'audit_user_analysis'),
    ('/role-analysis', 'audit_role_analysis'),
    ('/combined-analysis', 'audit_combined_analysis'),
    ('/recommendations', 'audit_recommendations'),
    ('/user-access-review', 'user_access_review'),
    ('/sor-review', 'sor_review'),
    ('/super-user-access', 'super_user_access'),
    ('/dashboard', 'dashboard'),
]

MENU_ITEMS = [
    {'id': 'dashboard', 'label': 'Dashboard', 'path': '/dashboard'},
    {
        'id': 'audit',
        'label': 'Audit',
        'submenu': [
            {'id': 'user-analysis', 'label': 'User Analysis', 'path': '/user-analysis'},
            {'id': 'role-analysis', 'label': 'Role Risk Analysis', 'path': '/role-analysis'},
            {'id': 'combined-analysis', 'label': 'User and Role Analysis', 'path': '/combined-analysis'},
            {'id': 'recommendations', 'label': 'Recommendations', 'path': '/recommendations'},
        ]
    },
    {'id': 'user-access', 'label': 'User Access Review', 'path': '/user-access-review'},
    {'id': 'sor', 'label': 'SOR Review', 'path': '/sor-review'},
    {'id': 'super-user', 'label': 'Super User Access', 'path': '/super-user-access'},
    {'id': 'admin', 'label': 'Administration', 'path': '/users', 'admin_only': True},
]


@dataclass
class Permissions:
    """Recognized feature flags of an account"""
    audit_enabled: bool = False
    audit_user_analysis: bool = False
    audit_role_analysis: bool = False
    audit_combined_analysis: bool = False
    audit_recommendations: bool = False
    user_access_review: bool = False
    sor_review: bool = False
    super_user_access: bool = False
    dashboard: bool = True

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> "Permissions":
        """Decode the nested permissions object kept by the account store"""
        record = record or {}
        values = {}
        for flag, path in PERMISSION_PATHS.items():
            node: Any = record
            for key in path:
                node = node.get(key) if isinstance(node, dict) else None
            if node is not None:
                values[flag] = bool(node)
        return cls(**values)

    def to_record(self) -> Dict[str, Any]:
        """Encode as the nested permissions object"""
        record: Dict[str, Any] = {}
        for flag, path in PERMISSION_PATHS.items():
            node = record
            for key in path[:-1]:
                node = node.setdefault(key, {})
            node[path[-1]] = getattr(self, flag)
        return record

    @classmethod
    def all_granted(cls) -> "Permissions":
        return cls(**{f.name: True for f in fields(cls)})


@dataclass
class UserSession:
    """Authenticated user, built once at login and passed to route guards and menus"""
    username: str
    role: str = 'user'
    permissions: Permissions = field(default_factory=Permissions)
    user_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def can_access(self, path: str) -> bool:
        """Whether the session may open a path; unknown paths are denied"""
        if self.is_admin:
            return True
        for prefix, flag in PATH_PERMISSIONS:
            if path.startswith(prefix):
                return getattr(self.permissions, flag)
        return False

    def visible_menu(self, available_paths: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        """
        Menu items this session may see; groups appear when any child does.

        When available_paths is given, items whose page is not served are left out.
        """
        served = set(available_paths) if available_paths is not None else None

        def shown(path: str) -> bool:
            return self.can_access(path) and (served is None or path in served)

        visible = []
        for item in MENU_ITEMS:
            if item.get('admin_only'):
                if self.is_admin and (served is None or item['path'] in served):
                    visible.append(item)
            elif 'submenu' in item:
                children = [child for child in item['submenu'] if shown(child['path'])]
                if children:
                    visible.append({**item, 'submenu': children})
            elif shown(item['path']):
                visible.append(item)
        return visible

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['permissions'] = self.permissions.to_record()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserSession":
        return cls(
            username=data['username'],
            role=data.get('role', 'user'),
            permissions=Permissions.from_record(data.get('permissions')),
            user_id=data.get('user_id')
        )
