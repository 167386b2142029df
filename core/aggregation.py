# =============================================================================
# core/aggregation.py - Dashboard aggregation and pagination
# =============================================================================

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from core.models import (
    Aggregates, ExposurePage, LevelShare, NamedCount, RiskExposure, RiskGraph,
    RiskType, RoleActionSet, RoleScore
)

RISK_LEVEL_WEIGHTS = {'low': 1, 'medium': 2, 'high': 3, 'critical': 4}
TOP_RISKY_ROLES_LIMIT = 10

# Shares are computed in tenths of a percent
_TENTHS_TOTAL = 1000


def risk_score(risk_level: str) -> int:
    """Weight of a risk level label; unknown levels weigh 0"""
    return RISK_LEVEL_WEIGHTS.get((risk_level or '').strip().lower(), 0)


def percentage_of(count: int, total: int) -> Optional[float]:
    """Percentage rounded half up to one decimal, None when total is zero"""
    if total == 0:
        return None
    exact = Decimal(count * 100) / Decimal(total)
    return float(exact.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


def _count_by(values: Iterable[str]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return counts


def _max_by_count(counts: Dict[str, int]) -> Optional[str]:
    # Strictly greater keeps the first-encountered key on ties
    winner = None
    best = -1
    for name, count in counts.items():
        if count > best:
            winner, best = name, count
    return winner


def _shares(counts: Dict[str, int], total: int) -> Tuple[LevelShare, ...]:
    """
    Percentages of a partition of total, one decimal each, summing to exactly 100.0.

    Uses largest-remainder rounding on tenths of a percent; equal remainders
    are resolved in first-encountered order.
    """
    if total == 0:
        return tuple(LevelShare(name, count, None) for name, count in counts.items())

    tenths = {name: count * _TENTHS_TOTAL // total for name, count in counts.items()}
    leftover = _TENTHS_TOTAL - sum(tenths.values())
    by_remainder = sorted(counts, key=lambda name: counts[name] * _TENTHS_TOTAL % total, reverse=True)
    for name in by_remainder[:max(leftover, 0)]:
        tenths[name] += 1

    return tuple(LevelShare(name, count, tenths[name] / 10) for name, count in counts.items())


def _named(counts: Dict[str, int]) -> Tuple[NamedCount, ...]:
    return tuple(NamedCount(name, count) for name, count in counts.items())


def top_risky_roles(exposures: Sequence[RiskExposure], limit: int = TOP_RISKY_ROLES_LIMIT) -> List[RoleScore]:
    """Roles ranked by summed risk level weight, ties in first-encountered order"""
    scores: Dict[str, int] = {}
    counts: Dict[str, int] = {}
    for exposure in exposures:
        scores[exposure.role] = scores.get(exposure.role, 0) + risk_score(exposure.risk_level)
        counts[exposure.role] = counts.get(exposure.role, 0) + 1

    ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    return [RoleScore(role, score, counts[role]) for role, score in ranked[:limit]]


def summarize(exposures: Sequence[RiskExposure], role_index: Dict[str, RoleActionSet],
              graph: Optional[RiskGraph] = None) -> Aggregates:
    """Derive dashboard metrics from an exposure list without mutating it"""
    total = len(exposures)
    graph = graph or RiskGraph()

    type_counts = _count_by(exposure.risk_type.value for exposure in exposures)
    role_counts = _count_by(exposure.role for exposure in exposures)
    level_counts = _count_by(exposure.risk_level for exposure in exposures)
    process_counts = _count_by(exposure.business_process for exposure in exposures)
    function_counts = _count_by(
        matched.function_id
        for exposure in exposures
        for matched in exposure.matched_functions
    )

    return Aggregates(
        total_risks=total,
        sod_count=type_counts.get(RiskType.SEGREGATION_OF_DUTIES.value, 0),
        critical_count=type_counts.get(RiskType.CRITICAL_ACTION.value, 0),
        unique_sod_risks=len(graph.sod_risks),
        unique_critical_risks=len(graph.critical_risks),
        total_roles=len(role_index),
        affected_roles=len(role_counts),
        by_risk_level=_shares(level_counts, total),
        by_risk_type=_shares(type_counts, total),
        by_role=_named(role_counts),
        top_risky_roles=tuple(top_risky_roles(exposures)),
        by_function=_named(function_counts),
        by_business_process=_named(process_counts),
        highest_risk_role=_max_by_count(role_counts),
        most_affected_process=_max_by_count(process_counts)
    )


def paginate(exposures: Sequence[RiskExposure], role: Optional[str] = None,
             page: int = 1, page_size: int = 10) -> ExposurePage:
    """
    Filter exposures by exact role and return one page.

    An empty result is reported as page 1 of 1. Out-of-range pages are clamped.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")

    filtered = [exposure for exposure in exposures if role is None or exposure.role == role]
    total_pages = max(1, math.ceil(len(filtered) / page_size))
    page = min(max(page, 1), total_pages)
    start = (page - 1) * page_size

    return ExposurePage(
        items=tuple(filtered[start:start + page_size]),
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        filtered_count=len(filtered)
    )
