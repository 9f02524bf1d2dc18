"""
Source Tables - Typed, Read-Only Views

Coerces externally supplied tables to the declared source schemas and
exposes the joins the reports need. Nothing here mutates its inputs.
"""

from dataclasses import dataclass, fields
from typing import Dict, Iterable, List, Optional, Union
import logging

import polars as pl

from .schemas import NULLABLE_COLUMNS, SOURCE_SCHEMAS, TABLE_NAMES

logger = logging.getLogger(__name__)

# Text values treated as missing when coercing to numeric or datetime
NULL_TOKENS = ["", "NULL", "NONE", "NAN"]

JOIN_TYPES = ("inner", "left", "full")


class SchemaValidationError(ValueError):
    """A required column is missing or cannot be converted to its declared type"""

    def __init__(self, table: str, column: str, reason: str):
        self.table = table
        self.column = column
        self.reason = reason
        super().__init__(f"{table}.{column}: {reason}")


def _convert(expr: pl.Expr, source: pl.DataType, target: pl.DataType) -> pl.Expr:
    """Build the conversion expression from a source dtype to a target dtype"""
    if source == pl.String:
        if target == pl.String:
            return expr
        if target == pl.Datetime:
            return expr.str.to_datetime(time_unit="us", strict=False)
        if target == pl.Int64:
            # "7" and "7.0" both land on 7
            return expr.cast(pl.Float64, strict=False).cast(pl.Int64, strict=False)
        return expr.cast(target, strict=False)

    if target == pl.String:
        return expr.cast(pl.String)
    return expr.cast(target, strict=False)


def validate_required_columns(
    df: pl.DataFrame, table_name: str, required: Iterable[str]
) -> bool:
    """
    Validate that a table carries every required column

    Args:
        df: Table to check
        table_name: Name used in the error
        required: Column names that must be present

    Returns:
        bool: True if valid, raises SchemaValidationError otherwise
    """
    for column in required:
        if column not in df.columns:
            raise SchemaValidationError(table_name, column, "required column missing")
    return True


def coerce_table(df: pl.DataFrame, table_name: str) -> pl.DataFrame:
    """
    Coerce a source table to its declared schema

    Args:
        df: Table as supplied by the loader
        table_name: Source table name, e.g. "SalesOrderDetail"

    Returns:
        pl.DataFrame: Table with exactly the declared columns and dtypes

    Raises:
        SchemaValidationError: Missing column or unconvertible values
    """
    if table_name not in SOURCE_SCHEMAS:
        raise ValueError(f"Unknown source table: {table_name}")

    schema = SOURCE_SCHEMAS[table_name]

    validate_required_columns(df, table_name, schema.names())

    if df.height == 0:
        return pl.DataFrame(schema=schema)

    exprs = []
    for column, target in schema.items():
        source = df.schema[column]
        if source == target:
            exprs.append(pl.col(column))
            continue

        raw = pl.col(column)
        if source == pl.String:
            raw = raw.str.strip_chars()
            raw = pl.when(raw.str.to_uppercase().is_in(NULL_TOKENS)).then(None).otherwise(raw)

        converted = _convert(raw, source, target)

        # values present before conversion but lost by it are mistyped
        bad = df.select((raw.is_not_null() & converted.is_null()).sum()).item()
        if bad:
            raise SchemaValidationError(
                table_name, column, f"{bad} values cannot be converted from {source} to {target}"
            )

        if target == pl.Int64 and source in (pl.String, pl.Float32, pl.Float64):
            as_float = raw.cast(pl.Float64, strict=False)
            fractional = df.select((as_float != as_float.floor()).sum()).item()
            if fractional:
                raise SchemaValidationError(
                    table_name, column, f"{fractional} fractional values in integer column"
                )
        exprs.append(converted.alias(column))

    coerced = df.select(exprs)

    for column in schema.names():
        if column in NULLABLE_COLUMNS.get(table_name, set()):
            continue
        null_count = coerced.select(pl.col(column).is_null().sum()).item()
        if null_count > 0:
            logger.warning(f"{table_name}.{column} has {null_count} null values")

    logger.debug(f"Coerced {table_name}: {coerced.height} rows")
    return coerced


@dataclass(frozen=True, eq=False)
class SourceTables:
    """Immutable snapshot of the seven source tables, already coerced"""

    sales_order_detail: pl.DataFrame
    sales_order_header: pl.DataFrame
    special_offer: pl.DataFrame
    work_order: pl.DataFrame
    purchase_order_header: pl.DataFrame
    product: pl.DataFrame
    product_subcategory: pl.DataFrame

    @classmethod
    def from_frames(cls, **frames: Optional[pl.DataFrame]) -> "SourceTables":
        """
        Build a snapshot from any subset of the source tables

        Keyword names are the snake_case attribute names (e.g. product=...).
        Tables not supplied become empty frames with the declared schema.
        """
        unknown = set(frames) - set(TABLE_NAMES)
        if unknown:
            raise ValueError(f"Unknown source tables: {sorted(unknown)}")

        coerced = {}
        for attr, table_name in TABLE_NAMES.items():
            df = frames.get(attr)
            if df is None:
                coerced[attr] = pl.DataFrame(schema=SOURCE_SCHEMAS[table_name])
            else:
                coerced[attr] = coerce_table(df, table_name)
        return cls(**coerced)

    @classmethod
    def empty(cls) -> "SourceTables":
        """Snapshot with every table empty"""
        return cls.from_frames()

    def items(self) -> List[tuple]:
        """(source table name, DataFrame) pairs"""
        return [(TABLE_NAMES[f.name], getattr(self, f.name)) for f in fields(self)]

    def row_counts(self) -> Dict[str, int]:
        return {name: df.height for name, df in self.items()}


def join_tables(
    left: pl.DataFrame,
    right: pl.DataFrame,
    on: Union[str, List[str]],
    how: str = "inner",
) -> pl.DataFrame:
    """
    Equality join between two tables

    Args:
        left: Left table
        right: Right table
        on: Key column(s), present with the same dtype on both sides
        how: "inner", "left" or "full" (full outer, key columns coalesced)

    Returns:
        pl.DataFrame: Joined table; unmatched rows carry null counterparts
    """
    if how not in JOIN_TYPES:
        raise ValueError(f"Unsupported join type: {how}")

    if how == "full":
        return left.join(right, on=on, how="full", coalesce=True)
    return left.join(right, on=on, how=how)


def sales_with_subcategory(tables: SourceTables) -> pl.DataFrame:
    """Order lines with ProductName and SubcategoryName (left joins)"""
    products = tables.product.select(
        "ProductID",
        pl.col("Name").alias("ProductName"),
        "ProductSubcategoryID",
    )
    subcategories = tables.product_subcategory.select(
        "ProductSubcategoryID",
        pl.col("Name").alias("SubcategoryName"),
    )

    detail = join_tables(tables.sales_order_detail, products, "ProductID", how="left")
    return join_tables(detail, subcategories, "ProductSubcategoryID", how="left")


def sales_with_header(tables: SourceTables) -> pl.DataFrame:
    """Order lines joined to their order header (inner join)"""
    headers = tables.sales_order_header.select(
        "SalesOrderID", "CustomerID", "TerritoryID", "Status"
    )
    return join_tables(tables.sales_order_detail, headers, "SalesOrderID", how="inner")


def sales_with_offer(tables: SourceTables) -> pl.DataFrame:
    """Order lines with subcategory and special offer attributes (left joins)"""
    offers = tables.special_offer.select("SpecialOfferID", "DiscountPct", "Type")
    return join_tables(sales_with_subcategory(tables), offers, "SpecialOfferID", how="left")
