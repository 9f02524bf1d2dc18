"""
Main Entry Point - Report Runner CLI

Command-line wrapper that loads a snapshot, runs the selected reports and
writes their results. The report library itself has no I/O.
"""

import logging
import sys
from typing import List, Optional

from aw_analytics.coreutils.logging import setup_logging
from aw_analytics.coreutils.settings import load_settings
from aw_analytics.orchestration.pipeline import run_reports
from aw_analytics.transformation.reports import REPORTS

logger = logging.getLogger(__name__)


def list_reports() -> None:
    """Print the available reports"""
    for name, spec in REPORTS.items():
        print(f"{name:<26} {spec.title}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    import argparse

    parser = argparse.ArgumentParser(description="AdventureWorks Sales Reports")
    parser.add_argument("command", choices=["run", "list"], help="Command to run")
    parser.add_argument(
        "--report",
        action="append",
        choices=list(REPORTS),
        help="Report to run (repeatable, default: all)",
    )
    parser.add_argument("--year", type=int, help="Target year for single-year reports")
    parser.add_argument("--data-dir", help="Directory holding the source tables")
    parser.add_argument("--output-dir", help="Directory for report results")
    parser.add_argument(
        "--format", choices=["csv", "parquet", "json"], help="Output file format"
    )
    parser.add_argument(
        "--no-save", action="store_true", help="Run reports without writing results"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    args = parser.parse_args(argv)

    if args.command == "list":
        list_reports()
        return 0

    settings = load_settings(
        data_dir=args.data_dir,
        output_dir=args.output_dir,
        target_year=args.year,
        output_format=args.format,
        log_level="DEBUG" if args.verbose else None,
    )
    setup_logging(level=getattr(logging, settings.log_level, logging.INFO))

    try:
        results = run_reports(settings, args.report, save=not args.no_save)
    except Exception as e:
        logger.error(f"❌ Report run failed: {e}")
        return 1

    failed = [name for name, result in results.items() if not result.succeeded]
    if failed:
        logger.error(f"❌ Failed reports: {failed}")
        return 1

    logger.info("✅ Report run completed successfully")
    return 0


if __name__ == "__main__":
    sys.exit(main())
