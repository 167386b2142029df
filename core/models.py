# =============================================================================
# core/models.py - Risk review data models
# =============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class RiskType(Enum):
    """Enumeration of risk definition types"""
    SEGREGATION_OF_DUTIES = "Segregation of Duties"
    CRITICAL_ACTION = "Critical Action"

    @classmethod
    def parse(cls, label: str) -> Optional["RiskType"]:
        """Map a dataset label to a RiskType, None when unrecognized"""
        if not label:
            return None
        compact = ''.join(label.split()).lower()
        for risk_type in cls:
            if compact in (''.join(risk_type.value.split()).lower(), risk_type.name.replace('_', '').lower()):
                return risk_type
        return None


@dataclass
class RiskDefinitionRow:
    """One record of the risk definition dataset"""
    risk_id: str
    function_id: str
    risk_type: str = ""
    description: str = ""
    risk_level: str = ""
    function_description: str = ""
    action: str = ""


@dataclass
class RoleAssignmentRow:
    """One record of the role/action assignment file"""
    role: str
    action: str = ""


@dataclass
class SoDRiskDefinition:
    """Segregation of duties risk: every required function must be present"""
    risk_id: str
    description: str = ""
    risk_level: str = ""
    # dict keys used as an insertion-ordered set
    required_functions: Dict[str, None] = field(default_factory=dict)
    risk_type: RiskType = field(default=RiskType.SEGREGATION_OF_DUTIES, init=False)


@dataclass
class CriticalActionRiskDefinition:
    """Critical action risk bound to a single function"""
    risk_id: str
    function_id: str
    description: str = ""
    risk_level: str = ""
    risk_type: RiskType = field(default=RiskType.CRITICAL_ACTION, init=False)


@dataclass
class FunctionActionSet:
    """Actions that make up a function"""
    function_id: str
    function_description: str = ""
    actions: Dict[str, None] = field(default_factory=dict)


@dataclass
class RoleActionSet:
    """Actions granted to a role"""
    role: str
    actions: Dict[str, None] = field(default_factory=dict)


@dataclass(frozen=True)
class MatchedFunction:
    """A function and the role actions that matched it"""
    function_id: str
    matched_actions: Tuple[str, ...]

    @property
    def label(self) -> str:
        return f"{self.function_id} ({', '.join(self.matched_actions)})"


@dataclass(frozen=True)
class RiskExposure:
    """A (role, risk) pair where the role satisfies the risk's matching rule"""
    risk_id: str
    role: str
    risk_type: RiskType
    risk_level: str
    description: str
    matched_functions: Tuple[MatchedFunction, ...]

    @property
    def functions_label(self) -> str:
        """Functions with their matched actions, e.g. 'F1 (CREATE), F2 (APPROVE)'"""
        return ', '.join(matched.label for matched in self.matched_functions)

    @property
    def business_process(self) -> str:
        """Business process prefix of the description ('P2P - ...' -> 'P2P')"""
        return self.description.split('-')[0].strip()


@dataclass
class RiskGraph:
    """Lookup structures derived from the risk definition dataset"""
    sod_risks: Dict[str, SoDRiskDefinition] = field(default_factory=dict)
    critical_risks: Dict[str, CriticalActionRiskDefinition] = field(default_factory=dict)
    function_actions: Dict[str, FunctionActionSet] = field(default_factory=dict)


@dataclass(frozen=True)
class NamedCount:
    name: str
    count: int


@dataclass(frozen=True)
class LevelShare:
    """Count and share of exposures; percentage is None when undefined"""
    name: str
    count: int
    percentage: Optional[float]


@dataclass(frozen=True)
class RoleScore:
    role: str
    score: int
    exposure_count: int


@dataclass(frozen=True)
class Aggregates:
    """Dashboard metrics derived from an exposure list"""
    total_risks: int = 0
    sod_count: int = 0
    critical_count: int = 0
    unique_sod_risks: int = 0
    unique_critical_risks: int = 0
    total_roles: int = 0
    affected_roles: int = 0
    by_risk_level: Tuple[LevelShare, ...] = ()
    by_risk_type: Tuple[LevelShare, ...] = ()
    by_role: Tuple[NamedCount, ...] = ()
    top_risky_roles: Tuple[RoleScore, ...] = ()
    by_function: Tuple[NamedCount, ...] = ()
    by_business_process: Tuple[NamedCount, ...] = ()
    highest_risk_role: Optional[str] = None
    most_affected_process: Optional[str] = None


@dataclass(frozen=True)
class ExposurePage:
    """One page of the role-filtered exposure list"""
    items: Tuple[RiskExposure, ...]
    page: int
    page_size: int
    total_pages: int
    filtered_count: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


@dataclass(frozen=True)
class AnalysisResult:
    """Immutable outcome of one analysis run"""
    exposures: Tuple[RiskExposure, ...]
    role_index: Dict[str, RoleActionSet]
    graph: RiskGraph
    aggregates: Aggregates

    @property
    def roles(self) -> List[str]:
        """Every role with at least one action, for the role selector"""
        return list(self.role_index.keys())


@dataclass
class UserAccountRow:
    """One record of a user account listing"""
    user_id: str
    valid_to: str = ""
    valid_through: str = ""
    user_group: str = ""
    lock_status: str = ""
    creation_date: str = ""
    last_logon_date: str = ""
    department: str = ""
    roles: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DepartmentStats:
    name: str
    user_count: int
    role_count: int


@dataclass(frozen=True)
class UserAnalytics:
    """Account status and access metrics of a user listing"""
    as_of: str
    total_users: int = 0
    expired_users: int = 0
    locked_users: int = 0
    inactive_users: int = 0
    active_users: int = 0
    # Status shares overlap, so they need not add up to 100
    status_shares: Tuple[LevelShare, ...] = ()
    monthly_trend: Tuple[NamedCount, ...] = ()
    by_department: Tuple[DepartmentStats, ...] = ()
    role_distribution: Tuple[NamedCount, ...] = ()
    access_levels: Tuple[NamedCount, ...] = ()
