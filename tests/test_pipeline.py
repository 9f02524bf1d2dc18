"""
Test Orchestration, Load Layer and Settings

Runs reports end to end over a snapshot on disk and checks that one
failing report does not affect the others.
"""

import os
from datetime import datetime

import polars as pl
import pytest
from pydantic import ValidationError

from aw_analytics.coreutils.settings import ReportSettings, load_settings
from aw_analytics.coreutils.time import shift_months
from aw_analytics.load.local_storage import (
    load_source_tables,
    load_table,
    save_report,
)
from aw_analytics.main import main
from aw_analytics.orchestration.pipeline import ReportRunner, run_reports
from aw_analytics.transformation.reports import REPORTS, ReportSpec
from aw_analytics.transformation.validators import (
    get_summary_stats,
    validate_data_quality,
    validate_result_schema,
)


@pytest.fixture
def snapshot_dir(tmp_path, full_tables):
    """Write the full snapshot to disk, one Parquet file per table"""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    for name, df in full_tables.items():
        df.write_parquet(data_dir / f"{name}.parquet")
    return data_dir


def test_runner_runs_every_report(full_tables):
    runner = ReportRunner(full_tables, ReportSettings(target_year=2014))

    results = runner.run()

    assert list(results) == list(REPORTS)
    assert all(result.succeeded for result in results.values())
    assert results["pending_purchase_orders"].df.to_dicts() == [
        {"year": 2014, "status": 1, "order_cnt": 1, "value": 500.0}
    ]


def test_failing_report_is_isolated(full_tables, monkeypatch):
    def boom(tables):
        raise ZeroDivisionError("division by zero")

    original = REPORTS["seasonal_discount_cost"]
    monkeypatch.setitem(
        REPORTS,
        "seasonal_discount_cost",
        ReportSpec(original.name, original.title, boom, original.result_schema),
    )

    results = ReportRunner(full_tables).run(["top_territories", "seasonal_discount_cost", "stock_trend"])

    assert not results["seasonal_discount_cost"].succeeded
    assert "ZeroDivisionError" in results["seasonal_discount_cost"].error
    assert results["top_territories"].succeeded
    assert results["stock_trend"].succeeded


def test_runner_rejects_unknown_report(full_tables):
    with pytest.raises(ValueError):
        ReportRunner(full_tables).run(["no_such_report"])


def test_save_and_reload_report(tmp_path, full_tables):
    runner = ReportRunner(full_tables, ReportSettings(output_dir=str(tmp_path), output_format="parquet"))
    result = runner.run_report("stock_trend")

    path = save_report(result.df, "stock_trend", str(tmp_path), "parquet")

    assert path.endswith("stock_trend.parquet")
    assert pl.read_parquet(path).equals(result.df)


def test_save_report_unknown_format(tmp_path, full_tables):
    with pytest.raises(ValueError):
        save_report(full_tables.product, "x", str(tmp_path), "xlsx")


def test_load_table_from_csv_text(tmp_path):
    (tmp_path / "PurchaseOrderHeader.csv").write_text(
        "PurchaseOrderID,Status,TotalDue,ModifiedDate\n"
        "1,1,500.0,2014-01-02 00:00:00\n"
        "2,1,300.0,2014-05-02 00:00:00\n"
    )

    raw = load_table(str(tmp_path), "PurchaseOrderHeader")
    tables = load_source_tables(str(tmp_path))

    assert raw.schema["Status"] == pl.String
    assert tables.purchase_order_header["TotalDue"].sum() == 800.0
    assert tables.product.height == 0


def test_load_source_tables_missing_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_source_tables(str(tmp_path / "missing"))


def test_run_reports_writes_outputs(snapshot_dir, tmp_path):
    settings = ReportSettings(
        data_dir=str(snapshot_dir), output_dir=str(tmp_path / "output"), output_format="csv"
    )

    results = run_reports(settings, ["retention_cohort", "stock_to_sales"])

    assert all(result.succeeded for result in results.values())
    assert os.path.exists(tmp_path / "output" / "retention_cohort.csv")
    assert os.path.exists(tmp_path / "output" / "stock_to_sales.csv")


def test_cli_run_and_list(snapshot_dir, tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)

    assert main(["list"]) == 0
    assert "pending_purchase_orders" in capsys.readouterr().out

    exit_code = main(
        [
            "run",
            "--data-dir",
            str(snapshot_dir),
            "--output-dir",
            str(tmp_path / "out"),
            "--report",
            "pending_purchase_orders",
            "--format",
            "json",
        ]
    )

    assert exit_code == 0
    assert os.path.exists(tmp_path / "out" / "pending_purchase_orders.json")


def test_cli_missing_data_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert main(["run", "--data-dir", str(tmp_path / "nope"), "--no-save"]) == 1


def test_load_settings_from_env(monkeypatch):
    monkeypatch.setenv("AW_TARGET_YEAR", "2013")
    monkeypatch.setenv("AW_OUTPUT_FORMAT", "PARQUET")

    settings = load_settings()
    assert settings.target_year == 2013
    assert settings.output_format == "parquet"

    assert load_settings(target_year=2012).target_year == 2012


def test_settings_validation():
    with pytest.raises(ValidationError):
        ReportSettings(output_format="xlsx")
    with pytest.raises(ValidationError):
        ReportSettings(top_n=0)


def test_data_quality_reports_orphans(make_tables):
    tables = make_tables(
        work_order=pl.DataFrame(
            {"ProductID": [771, 999], "StockedQty": [1, 1], "ModifiedDate": [datetime(2014, 1, 1)] * 2}
        )
    )

    metrics = validate_data_quality(tables)

    assert metrics["orphan_counts"]["WorkOrder.ProductID"] == 1
    assert metrics["duplicate_counts"]["Product"] == 0
    assert metrics["row_counts"]["WorkOrder"] == 2


def test_result_schema_mismatch():
    with pytest.raises(ValueError):
        validate_result_schema(pl.DataFrame({"x": [1]}), REPORTS["stock_trend"].result_schema, "stock_trend")


def test_summary_stats():
    stats = get_summary_stats(pl.DataFrame({"name": ["a", "b"], "qty": [1, 2]}), "demo")

    assert stats["total_rows"] == 2
    assert stats["numeric_sums"] == {"qty": 3}


def test_shift_months():
    assert shift_months(datetime(2014, 6, 30), -12) == datetime(2013, 6, 30)
    assert shift_months(datetime(2014, 3, 31), -1) == datetime(2014, 2, 28)
    assert shift_months(datetime(2014, 1, 15), -13) == datetime(2012, 12, 15)
