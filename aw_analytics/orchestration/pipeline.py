"""
Report Pipeline Orchestrator

Runs a selection of reports over one source snapshot.
- Each report runs independently; a failure is recorded, not propagated
- No retries: reports are deterministic
- Loading and saving are delegated to the load layer
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
import logging

import polars as pl

from aw_analytics.coreutils.logging import log_function_call
from aw_analytics.coreutils.settings import ReportSettings
from aw_analytics.extract.tables import SourceTables
from aw_analytics.load.local_storage import load_source_tables, save_report
from aw_analytics.transformation.reports import REPORTS
from aw_analytics.transformation.validators import (
    get_summary_stats,
    validate_data_quality,
    validate_result_schema,
)

logger = logging.getLogger(__name__)


@dataclass
class ReportResult:
    """Outcome of one report invocation"""

    name: str
    df: Optional[pl.DataFrame] = None
    error: Optional[str] = None
    output_path: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class ReportRunner:
    """Runs reports over an immutable snapshot with per-report isolation"""

    def __init__(self, tables: SourceTables, settings: Optional[ReportSettings] = None):
        """
        Initialize the report runner

        Args:
            tables: Source snapshot shared by every report
            settings: Report parameters (defaults if not provided)
        """
        self.tables = tables
        self.settings = settings or ReportSettings()

    def run_report(self, name: str) -> ReportResult:
        """
        Run a single report by registry name

        Args:
            name: Report name, see REPORTS

        Returns:
            ReportResult: Result table or the error that stopped it
        """
        if name not in REPORTS:
            raise ValueError(f"Unknown report: {name}")

        spec = REPORTS[name]
        kwargs = {arg: getattr(self.settings, attr) for arg, attr in spec.settings_args.items()}
        log_function_call(spec.func.__name__, **kwargs)

        try:
            df = spec.func(self.tables, **kwargs)
            validate_result_schema(df, spec.result_schema, name)
        except Exception as e:
            logger.error(f"❌ Report {name} failed: {e}")
            return ReportResult(name=name, error=f"{type(e).__name__}: {e}")

        stats = get_summary_stats(df, name)
        logger.info(f"✅ {spec.title}: {stats['total_rows']} rows")
        return ReportResult(name=name, df=df)

    def run(self, names: Optional[Iterable[str]] = None) -> Dict[str, ReportResult]:
        """
        Run several reports

        Args:
            names: Report names to run (all reports if None)

        Returns:
            Dict: Report name -> ReportResult, in the order run
        """
        selected = list(names) if names else list(REPORTS)
        unknown = [n for n in selected if n not in REPORTS]
        if unknown:
            raise ValueError(f"Unknown reports: {unknown}")

        logger.info(f"🚀 Running {len(selected)} reports")
        results = {name: self.run_report(name) for name in selected}

        failed = [n for n, r in results.items() if not r.succeeded]
        if failed:
            logger.warning(f"{len(failed)} reports failed: {failed}")
        else:
            logger.info("🎉 All reports completed successfully")
        return results

    def save_results(self, results: Dict[str, ReportResult]) -> List[str]:
        """
        Save every successful result to the output directory

        Args:
            results: Output of run()

        Returns:
            List[str]: Paths written
        """
        paths = []
        for name, result in results.items():
            if not result.succeeded:
                continue
            result.output_path = save_report(
                result.df, name, self.settings.output_dir, self.settings.output_format
            )
            paths.append(result.output_path)
        return paths


def run_reports(
    settings: ReportSettings, names: Optional[Iterable[str]] = None, save: bool = True
) -> Dict[str, ReportResult]:
    """
    Load the snapshot, check its quality, run reports and save the results

    Args:
        settings: Run settings
        names: Report names to run (all if None)
        save: Write successful results to settings.output_dir

    Returns:
        Dict: Report name -> ReportResult
    """
    logger.info(f"📁 Loading source tables from {settings.data_dir}")
    tables = load_source_tables(settings.data_dir)

    validate_data_quality(tables)

    runner = ReportRunner(tables, settings)
    results = runner.run(names)

    if save:
        paths = runner.save_results(results)
        logger.info(f"Saved {len(paths)} report files to {settings.output_dir}")

    return results
