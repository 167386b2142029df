# =============================================================================
# main.py - CLI entry point
# =============================================================================

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from core.accounts import AccountStore
from core.aggregation import paginate
from core.analyzer import RoleRiskAnalyzer
from core.errors import RoleRiskError
from core.user_analytics import INACTIVE_AFTER_DAYS, UserAnalyzer
from utils.config import Config
from utils.report_export import (
    aggregates_to_dict, export_exposures_csv, export_user_report, export_workbook, exposure_to_row
)


def setup_logging(level: str = "INFO") -> str:
    """Setup logging configuration with both console and file output"""
    from datetime import datetime

    # Create logs directory if it doesn't exist
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    # Generate date-stamped filename
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = log_dir / f"role_risk_review_{timestamp}.log"

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler always logs DEBUG
    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized - Console: {level.upper()}, File: DEBUG")
    logger.info(f"Log file: {log_filename}")

    return str(log_filename)


def handle_analyze(args, config: Config) -> int:
    """Run the role risk analysis over two files and write the requested outputs"""
    logger = logging.getLogger(__name__)

    for input_file in (args.risk_file, args.role_file):
        if not Path(input_file).exists():
            logger.error(f"Input file not found: {input_file}")
            return 1

    max_rows = args.max_rows if args.max_rows is not None else config.max_analysis_rows
    analyzer = RoleRiskAnalyzer(max_rows=max_rows)
    result = analyzer.analyze_files(args.risk_file, args.role_file, args.sheet_name)
    aggregates = result.aggregates

    if args.role and args.role not in result.role_index:
        logger.warning(f"Role {args.role} has no actions in {args.role_file}")

    page = paginate(result.exposures, role=args.role, page=args.page, page_size=args.page_size)
    for exposure in page.items:
        row = exposure_to_row(exposure)
        logger.info(" | ".join(f"{key}: {value}" for key, value in row.items()))
    logger.info(
        f"Page {page.page} of {page.total_pages} "
        f"(showing {len(page.items)} of {page.filtered_count} results)"
    )

    logger.info(f"Total risks: {aggregates.total_risks} "
                f"(SoD: {aggregates.sod_count}, Critical Action: {aggregates.critical_count})")
    for share in aggregates.by_risk_level:
        percentage = 'n/a' if share.percentage is None else f"{share.percentage:.1f}%"
        logger.info(f"  {share.name or '(no level)'}: {share.count} ({percentage})")
    if aggregates.highest_risk_role:
        logger.info(f"Most affected role: {aggregates.highest_risk_role}")
    if aggregates.most_affected_process:
        logger.info(f"Most affected process: {aggregates.most_affected_process}")

    if args.output:
        export_exposures_csv(result.exposures, args.output)
    if args.workbook:
        export_workbook(result, args.workbook)
    if args.json:
        with open(args.json, 'w', encoding='utf-8') as f:
            json.dump({
                'summary': aggregates_to_dict(aggregates),
                'roles': result.roles,
            }, f, indent=2, ensure_ascii=False)
        logger.info(f"JSON summary exported to: {args.json}")

    return 0


def handle_analyze_users(args, config: Config) -> int:
    """Run the account status analysis over a user listing"""
    logger = logging.getLogger(__name__)

    if not Path(args.listing_file).exists():
        logger.error(f"Input file not found: {args.listing_file}")
        return 1

    as_of = date.fromisoformat(args.as_of) if args.as_of else None
    max_rows = args.max_rows if args.max_rows is not None else config.max_analysis_rows
    analyzer = UserAnalyzer(max_rows=max_rows, inactive_after_days=args.inactive_days)
    analytics = analyzer.analyze_file(args.listing_file, args.sheet_name, as_of)

    logger.info(f"Total users: {analytics.total_users} (active: {analytics.active_users})")
    for share in analytics.status_shares:
        percentage = 'n/a' if share.percentage is None else f"{share.percentage:.1f}%"
        logger.info(f"  {share.name}: {share.count} ({percentage})")
    for department in analytics.by_department:
        logger.info(f"  {department.name}: {department.user_count} users, {department.role_count} roles")

    if args.json:
        export_user_report(analytics, args.json)
        logger.info(f"JSON report exported to: {args.json}")

    return 0


def handle_create_admin(args, config: Config) -> int:
    """Seed the account store with an admin account"""
    logger = logging.getLogger(__name__)
    store = AccountStore(args.accounts_file or config.accounts_file)
    if not store.ensure_admin(args.username, args.email, args.password):
        logger.error(f"Account store {store.path} already has users; admin not created")
        return 1
    logger.info(f"Admin account {args.username} created in {store.path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Role Risk Review")
    subparsers = parser.add_subparsers(dest='command', help='Command')

    analyze_parser = subparsers.add_parser('analyze', help='Analyze role exposure to SoD and critical action risks')
    analyze_parser.add_argument('risk_file', help='Risk dataset (CSV or XLSX)')
    analyze_parser.add_argument('role_file', help='Role assignment file (CSV or XLSX)')
    analyze_parser.add_argument('-o', '--output', help='Export exposures to CSV file')
    analyze_parser.add_argument('--workbook', help='Export full report to Excel workbook')
    analyze_parser.add_argument('--json', help='Export summary metrics to JSON file')
    analyze_parser.add_argument('--sheet-name', help='Excel sheet name (optional)')
    analyze_parser.add_argument('--role', help='Only list exposures of this role')
    analyze_parser.add_argument('--page', type=int, default=1, help='Page of exposures to list')
    analyze_parser.add_argument('--page-size', type=int, default=10, help='Exposures per page')
    analyze_parser.add_argument('--max-rows', type=int, help='Row cap per input table')

    users_parser = subparsers.add_parser('analyze-users', help='Analyze account status of a user listing')
    users_parser.add_argument('listing_file', help='User listing (CSV or XLSX)')
    users_parser.add_argument('--json', help='Export the report to JSON file')
    users_parser.add_argument('--sheet-name', help='Excel sheet name (optional)')
    users_parser.add_argument('--as-of', help='Reference date, YYYY-MM-DD (defaults to today)')
    users_parser.add_argument('--inactive-days', type=int, default=INACTIVE_AFTER_DAYS,
                              help='Days without logon before a user counts as inactive')
    users_parser.add_argument('--max-rows', type=int, help='Row cap for the listing')

    admin_parser = subparsers.add_parser('create-admin', help='Create the initial admin account')
    admin_parser.add_argument('username')
    admin_parser.add_argument('email')
    admin_parser.add_argument('password')
    admin_parser.add_argument('--accounts-file', help='Account store path (defaults to ACCOUNTS_FILE)')

    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)
    config = Config()

    try:
        if args.command == 'analyze':
            return handle_analyze(args, config)
        if args.command == 'analyze-users':
            return handle_analyze_users(args, config)
        if args.command == 'create-admin':
            return handle_create_admin(args, config)
        logger.error(f"Unknown command: {args.command}")
        return 1

    except (RoleRiskError, ValueError, OSError) as e:
        logger.error(f"Processing failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
