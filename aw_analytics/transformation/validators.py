"""
Data Validators - Transform Layer

Functions for validating source snapshots and report results.
Ensures data quality and schema compliance.
"""

import polars as pl
from typing import Dict, Any
from aw_analytics.extract.schemas import PRIMARY_KEYS
from aw_analytics.extract.tables import (
    SchemaValidationError,
    SourceTables,
    validate_required_columns,
)
import logging

logger = logging.getLogger(__name__)

__all__ = [
    "SchemaValidationError",
    "validate_required_columns",
    "validate_result_schema",
    "validate_data_quality",
    "get_summary_stats",
]


def validate_result_schema(
    df: pl.DataFrame, expected: pl.Schema, report_name: str
) -> bool:
    """
    Validate a report result matches its declared schema

    Args:
        df: Report result
        expected: Declared result schema
        report_name: Report name for the error message

    Returns:
        bool: True if valid, raises exception if invalid
    """
    if df.schema != expected:
        raise ValueError(
            f"Schema mismatch for {report_name}: expected {expected}, got {df.schema}"
        )
    return True


def validate_data_quality(tables: SourceTables) -> Dict[str, Any]:
    """
    Validate data quality of a source snapshot and return quality metrics

    Issues are logged as warnings; nothing is raised.

    Args:
        tables: Source snapshot

    Returns:
        Dict: Row counts, null counts, duplicate keys and orphaned references
    """
    logger.info("Validating source data quality")

    quality_metrics = {
        "row_counts": tables.row_counts(),
        "null_counts": {},
        "duplicate_counts": {},
        "orphan_counts": {},
    }

    for table_name, df in tables.items():
        nulls = {column: df.select(pl.col(column).is_null().sum()).item() for column in df.columns}
        quality_metrics["null_counts"][table_name] = nulls

        key = PRIMARY_KEYS.get(table_name)
        if key:
            duplicate_count = df.height - df.select(key).n_unique() if df.height else 0
            quality_metrics["duplicate_counts"][table_name] = duplicate_count
            if duplicate_count > 0:
                logger.warning(f"Duplicate {key} found in {table_name}: {duplicate_count}")

    # Referential integrity
    orphans = {
        "SalesOrderDetail.ProductID": tables.sales_order_detail.join(
            tables.product, on="ProductID", how="anti"
        ).height,
        "SalesOrderDetail.SalesOrderID": tables.sales_order_detail.join(
            tables.sales_order_header, on="SalesOrderID", how="anti"
        ).height,
        "Product.ProductSubcategoryID": tables.product.filter(
            pl.col("ProductSubcategoryID").is_not_null()
        )
        .join(tables.product_subcategory, on="ProductSubcategoryID", how="anti")
        .height,
        "WorkOrder.ProductID": tables.work_order.join(
            tables.product, on="ProductID", how="anti"
        ).height,
    }
    quality_metrics["orphan_counts"] = orphans

    for reference, count in orphans.items():
        if count > 0:
            logger.warning(f"Found {count} orphaned references in {reference}")

    logger.info("Source data quality validation completed")
    return quality_metrics


def get_summary_stats(df: pl.DataFrame, report_name: str) -> Dict[str, Any]:
    """
    Get summary statistics for a report result

    Args:
        df: Report result
        report_name: Report name for logging

    Returns:
        Dict: Row count, columns and sums of numeric columns
    """
    numeric_sums = {
        column: df.select(pl.col(column).sum()).item()
        for column, dtype in df.schema.items()
        if dtype.is_numeric()
    }
    stats = {
        "report": report_name,
        "total_rows": df.height,
        "columns": df.columns,
        "numeric_sums": numeric_sums,
    }

    logger.debug(f"Generated summary stats for {report_name}: {stats}")
    return stats
