# =============================================================================
# utils/report_export.py - Exposure and dashboard report export
# =============================================================================

import json
import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Iterable, List

import pandas as pd

from core.models import AnalysisResult, Aggregates, ExposurePage, RiskExposure, UserAnalytics
from utils.csv_utils import CSVHandler

EXPOSURE_COLUMNS = ['Risk ID', 'Risk Type', 'Role', 'Risk Level', 'Functions (Actions)', 'Description']

logger = logging.getLogger(__name__)


def exposure_to_row(exposure: RiskExposure) -> Dict[str, str]:
    """Flat table row, as shown in the exposure table"""
    return {
        'Risk ID': exposure.risk_id,
        'Risk Type': exposure.risk_type.value,
        'Role': exposure.role,
        'Risk Level': exposure.risk_level,
        'Functions (Actions)': exposure.functions_label,
        'Description': exposure.description,
    }


def exposure_to_dict(exposure: RiskExposure) -> Dict[str, Any]:
    return {
        'risk_id': exposure.risk_id,
        'role': exposure.role,
        'risk_type': exposure.risk_type.value,
        'risk_level': exposure.risk_level,
        'description': exposure.description,
        'functions': exposure.functions_label,
        'matched_functions': [
            {'function_id': matched.function_id, 'matched_actions': list(matched.matched_actions)}
            for matched in exposure.matched_functions
        ],
    }


def aggregates_to_dict(aggregates: Aggregates) -> Dict[str, Any]:
    """JSON shape of the aggregates; undefined percentages become null"""
    return asdict(aggregates)


def page_to_dict(page: ExposurePage) -> Dict[str, Any]:
    return {
        'items': [exposure_to_dict(exposure) for exposure in page.items],
        'page': page.page,
        'page_size': page.page_size,
        'total_pages': page.total_pages,
        'filtered_count': page.filtered_count,
    }


def export_exposures_csv(exposures: Iterable[RiskExposure], output_path: str) -> None:
    """Write the exposure table to CSV (header only when there are no exposures)"""
    rows = [exposure_to_row(exposure) for exposure in exposures]
    CSVHandler.write_csv(rows, output_path, EXPOSURE_COLUMNS)


def _frame(records: List[Dict[str, Any]], columns: List[str]) -> pd.DataFrame:
    return pd.DataFrame(records, columns=columns)


def export_workbook(result: AnalysisResult, output_path: str) -> None:
    """Export exposures and every dashboard breakdown to one Excel workbook"""
    aggregates = result.aggregates

    summary = [
        {'Metric': 'Total Risks', 'Value': aggregates.total_risks},
        {'Metric': 'SoD Risks', 'Value': aggregates.sod_count},
        {'Metric': 'Critical Action Risks', 'Value': aggregates.critical_count},
        {'Metric': 'Unique SoD Risks', 'Value': aggregates.unique_sod_risks},
        {'Metric': 'Unique Critical Action Risks', 'Value': aggregates.unique_critical_risks},
        {'Metric': 'Total Roles', 'Value': aggregates.total_roles},
        {'Metric': 'Affected Roles', 'Value': aggregates.affected_roles},
        {'Metric': 'Most Affected Role', 'Value': aggregates.highest_risk_role or ''},
        {'Metric': 'Most Affected Process', 'Value': aggregates.most_affected_process or ''},
    ]

    sheets = {
        'Exposures': _frame([exposure_to_row(e) for e in result.exposures], EXPOSURE_COLUMNS),
        'Summary': _frame(summary, ['Metric', 'Value']),
        'By_Risk_Level': _frame(
            [{'Risk Level': s.name, 'Count': s.count, 'Percentage': s.percentage}
             for s in aggregates.by_risk_level],
            ['Risk Level', 'Count', 'Percentage']),
        'By_Risk_Type': _frame(
            [{'Risk Type': s.name, 'Count': s.count, 'Percentage': s.percentage}
             for s in aggregates.by_risk_type],
            ['Risk Type', 'Count', 'Percentage']),
        'By_Role': _frame(
            [{'Role': c.name, 'Count': c.count} for c in aggregates.by_role], ['Role', 'Count']),
        'Top_Risky_Roles': _frame(
            [{'Role': r.role, 'Risk Score': r.score, 'Exposures': r.exposure_count}
             for r in aggregates.top_risky_roles],
            ['Role', 'Risk Score', 'Exposures']),
        'By_Function': _frame(
            [{'Function ID': c.name, 'Count': c.count} for c in aggregates.by_function],
            ['Function ID', 'Count']),
        'By_Business_Process': _frame(
            [{'Business Process': c.name, 'Count': c.count} for c in aggregates.by_business_process],
            ['Business Process', 'Count']),
    }

    with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
        for sheet_name, frame in sheets.items():
            frame.to_excel(writer, sheet_name=sheet_name, index=False)

    logger.info(f"Exported analysis workbook with {len(result.exposures)} exposures to {output_path}")


def user_analytics_to_dict(analytics: UserAnalytics) -> Dict[str, Any]:
    """JSON shape of a user account analysis"""
    return asdict(analytics)


def export_user_report(analytics: UserAnalytics, output_path: str) -> None:
    """Write the user analysis report as JSON, stamped with its generation time"""
    report = {
        'generated_at': datetime.now().isoformat(timespec='seconds'),
        'summary': user_analytics_to_dict(analytics),
    }
    with open(output_path, 'w', encoding='utf-8') as file:
        json.dump(report, file, indent=2)

    logger.info(f"Exported user analysis report for {analytics.total_users} users to {output_path}")
