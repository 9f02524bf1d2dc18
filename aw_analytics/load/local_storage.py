"""
Local Storage - Load Layer

Functions for local file storage operations.
Reads source table snapshots and writes report results as Parquet,
CSV or JSON.
"""

import polars as pl
import json
import os
from typing import Optional
import logging

from aw_analytics.extract.schemas import TABLE_NAMES
from aw_analytics.extract.tables import SourceTables

logger = logging.getLogger(__name__)

# Lookup order when several formats of the same table exist
SOURCE_EXTENSIONS = (".parquet", ".csv", ".json")


def _ensure_parent(filepath: str) -> None:
    parent = os.path.dirname(filepath)
    if parent:
        os.makedirs(parent, exist_ok=True)


def save_parquet(df: pl.DataFrame, filepath: str) -> str:
    """
    Save DataFrame to Parquet file

    Args:
        df: DataFrame to save
        filepath: Path to save file

    Returns:
        str: Path to saved file
    """
    logger.info(f"Saving DataFrame to Parquet: {filepath}")
    _ensure_parent(filepath)

    df.write_parquet(filepath)

    logger.info(f"Saved {df.height} records to {filepath}")
    return filepath


def save_csv(df: pl.DataFrame, filepath: str) -> str:
    """
    Save DataFrame to CSV file

    Args:
        df: DataFrame to save
        filepath: Path to save file

    Returns:
        str: Path to saved file
    """
    logger.info(f"Saving DataFrame to CSV: {filepath}")
    _ensure_parent(filepath)

    df.write_csv(filepath)

    logger.info(f"Saved {df.height} records to {filepath}")
    return filepath


def save_json(df: pl.DataFrame, filepath: str) -> str:
    """
    Save DataFrame to JSON file

    Args:
        df: DataFrame to save
        filepath: Path to save file

    Returns:
        str: Path to saved file
    """
    logger.info(f"Saving DataFrame to JSON: {filepath}")
    _ensure_parent(filepath)

    # Convert to JSON
    data = df.to_dicts()

    with open(filepath, "w") as f:
        json.dump(data, f, indent=2, default=str)

    logger.info(f"Saved {len(data)} records to {filepath}")
    return filepath


WRITERS = {
    "parquet": save_parquet,
    "csv": save_csv,
    "json": save_json,
}


def save_report(
    df: pl.DataFrame, report_name: str, output_dir: str = "output", fmt: str = "csv"
) -> str:
    """
    Save a report result as <output_dir>/<report_name>.<fmt>

    Args:
        df: Report result
        report_name: Registry name of the report
        output_dir: Output directory
        fmt: "csv", "parquet" or "json"

    Returns:
        str: Path to saved file
    """
    if fmt not in WRITERS:
        raise ValueError(f"Unsupported output format: {fmt}")

    return WRITERS[fmt](df, os.path.join(output_dir, f"{report_name}.{fmt}"))


def load_table(directory: str, table_name: str) -> Optional[pl.DataFrame]:
    """
    Load one source table from a directory

    Looks for <table_name>.parquet, .csv, then .json.

    Args:
        directory: Directory holding the snapshot
        table_name: Source table name, e.g. "SalesOrderDetail"

    Returns:
        Optional[pl.DataFrame]: Loaded table, or None if no file exists
    """
    for extension in SOURCE_EXTENSIONS:
        filepath = os.path.join(directory, f"{table_name}{extension}")
        if not os.path.exists(filepath):
            continue

        logger.info(f"Loading {table_name} from {filepath}")
        if extension == ".parquet":
            df = pl.read_parquet(filepath)
        elif extension == ".csv":
            # keep raw text, coercion happens in the table access layer
            df = pl.read_csv(filepath, infer_schema=False)
        else:
            with open(filepath, "r") as f:
                data = json.load(f)
            df = pl.DataFrame(data, strict=False, infer_schema_length=10000)

        logger.info(f"Loaded {df.height} records from {filepath}")
        return df

    logger.warning(f"No file found for {table_name} in {directory}")
    return None


def load_source_tables(directory: str) -> SourceTables:
    """
    Load every source table found in a directory into a snapshot

    Args:
        directory: Directory holding the snapshot

    Returns:
        SourceTables: Coerced snapshot; missing tables are empty
    """
    if not os.path.isdir(directory):
        raise FileNotFoundError(f"Data directory not found: {directory}")

    frames = {attr: load_table(directory, name) for attr, name in TABLE_NAMES.items()}
    return SourceTables.from_frames(**frames)
