"""
Transformation Layer Schemas

Result schemas for the eight reports. Column names are stable and form
the output contract of each report.
"""

import polars as pl

SUBCATEGORY_PERFORMANCE_SCHEMA = pl.Schema(
    [
        ("month_start", pl.Date()),
        ("month", pl.String()),
        ("subcategory", pl.String()),
        ("qty_item", pl.Int64()),
        ("total_sales", pl.Float64()),
        ("order_cnt", pl.Int64()),
    ]
)

SUBCATEGORY_GROWTH_SCHEMA = pl.Schema(
    [
        ("year", pl.Int32()),
        ("subcategory", pl.String()),
        ("qty_item", pl.Int64()),
        ("prev_qty_item", pl.Int64()),
        ("qty_diff_pct", pl.Float64()),
        ("rank", pl.Int64()),
    ]
)

TOP_TERRITORIES_SCHEMA = pl.Schema(
    [
        ("year", pl.Int32()),
        ("territory_id", pl.Int64()),
        ("order_qty", pl.Int64()),
        ("rank", pl.Int64()),
    ]
)

SEASONAL_DISCOUNT_COST_SCHEMA = pl.Schema(
    [
        ("year", pl.Int32()),
        ("subcategory", pl.String()),
        ("total_discount_cost", pl.Float64()),
    ]
)

RETENTION_COHORT_SCHEMA = pl.Schema(
    [
        ("month_join", pl.Int8()),
        ("month_offset", pl.Int8()),
        ("month_diff", pl.String()),
        ("customer_cnt", pl.Int64()),
    ]
)

STOCK_TREND_SCHEMA = pl.Schema(
    [
        ("product_name", pl.String()),
        ("month", pl.Int8()),
        ("year", pl.Int32()),
        ("stock_qty", pl.Int64()),
        ("stock_prev", pl.Int64()),
        ("diff_pct", pl.Float64()),
    ]
)

STOCK_TO_SALES_SCHEMA = pl.Schema(
    [
        ("product_name", pl.String()),
        ("month", pl.Int8()),
        ("year", pl.Int32()),
        ("sales", pl.Int64()),
        ("stock", pl.Int64()),
        ("ratio", pl.Float64()),
    ]
)

PENDING_PURCHASE_ORDERS_SCHEMA = pl.Schema(
    [
        ("year", pl.Int32()),
        ("status", pl.Int64()),
        ("order_cnt", pl.Int64()),
        ("value", pl.Float64()),
    ]
)
