"""
Report Transformers - Sales & Inventory Analytics

Eight independent, pure report functions. Each takes a SourceTables
snapshot and returns a new DataFrame matching its result schema.
Empty inputs give an empty result with the same schema.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict
import logging

import duckdb
import polars as pl

from aw_analytics.coreutils.time import shift_months
from aw_analytics.extract.tables import (
    SourceTables,
    join_tables,
    sales_with_header,
    sales_with_offer,
    sales_with_subcategory,
)
from .schemas import (
    PENDING_PURCHASE_ORDERS_SCHEMA,
    RETENTION_COHORT_SCHEMA,
    SEASONAL_DISCOUNT_COST_SCHEMA,
    STOCK_TO_SALES_SCHEMA,
    STOCK_TREND_SCHEMA,
    SUBCATEGORY_GROWTH_SCHEMA,
    SUBCATEGORY_PERFORMANCE_SCHEMA,
    TOP_TERRITORIES_SCHEMA,
)

logger = logging.getLogger(__name__)

SEASONAL_DISCOUNT_TYPE = "seasonal discount"


def _conform(df: pl.DataFrame, schema: pl.Schema) -> pl.DataFrame:
    """Select and cast the result columns in schema order"""
    return df.select([pl.col(name).cast(dtype) for name, dtype in schema.items()])


def _empty(schema: pl.Schema) -> pl.DataFrame:
    return pl.DataFrame(schema=schema)


def _in_year(year: int) -> pl.Expr:
    return pl.col("ModifiedDate").dt.year() == year


def subcategory_performance_last_12_months(tables: SourceTables) -> pl.DataFrame:
    """
    Monthly quantity, revenue and order count per subcategory over the
    twelve calendar months up to the latest order line

    Args:
        tables: Source snapshot

    Returns:
        pl.DataFrame: One row per (month, subcategory), ordered by
        subcategory then chronological month
    """
    logger.info("Building last-12-months subcategory performance")

    sales = sales_with_subcategory(tables)
    max_date = sales.select(pl.col("ModifiedDate").max()).item()
    if max_date is None:
        logger.info("No order lines, returning empty result")
        return _empty(SUBCATEGORY_PERFORMANCE_SCHEMA)

    # window bounds are calendar dates, time of day is ignored
    cutoff = shift_months(max_date, -12).date()
    logger.info(f"Window: {cutoff} to {max_date.date()}")

    result = (
        sales.filter(pl.col("ModifiedDate").dt.date() >= cutoff)
        .with_columns(
            pl.col("ModifiedDate").dt.truncate("1mo").cast(pl.Date).alias("month_start")
        )
        .group_by(["month_start", "SubcategoryName"])
        .agg(
            pl.col("OrderQty").sum().alias("qty_item"),
            pl.col("LineTotal").sum().alias("total_sales"),
            pl.col("SalesOrderID").n_unique().alias("order_cnt"),
        )
        .with_columns(
            pl.col("month_start").dt.strftime("%b %Y").alias("month"),
            pl.col("SubcategoryName").alias("subcategory"),
        )
        .sort(["subcategory", "month_start"], nulls_last=True)
    )

    logger.info(f"Created {result.height} subcategory performance rows")
    return _conform(result, SUBCATEGORY_PERFORMANCE_SCHEMA)


def top_subcategory_growth(tables: SourceTables, top_n: int = 3) -> pl.DataFrame:
    """
    Subcategories with the highest year-over-year growth in quantity sold

    The previous-year value comes from the preceding row of the same
    subcategory in year order, and only counts when it is exactly the
    prior calendar year. Rows without one (first year observed, gap years)
    and rows whose previous quantity is zero have no defined growth and
    are excluded. Ranking is dense, so every row tied at the cut-off is kept.

    Args:
        tables: Source snapshot
        top_n: Highest dense rank to keep

    Returns:
        pl.DataFrame: Ranked rows ordered by growth descending
    """
    logger.info(f"Building top {top_n} subcategory YoY growth")

    sales = sales_with_subcategory(tables)
    if sales.is_empty():
        return _empty(SUBCATEGORY_GROWTH_SCHEMA)

    yearly = (
        sales.with_columns(pl.col("ModifiedDate").dt.year().alias("year"))
        .group_by(["year", "SubcategoryName"])
        .agg(pl.col("OrderQty").sum().alias("qty_item"))
        .sort(["SubcategoryName", "year"], nulls_last=True)
        .with_columns(
            pl.col("qty_item").shift(1).over("SubcategoryName").alias("lag_qty"),
            pl.col("year").shift(1).over("SubcategoryName").alias("lag_year"),
        )
        .with_columns(
            pl.when(pl.col("lag_year") == pl.col("year") - 1)
            .then(pl.col("lag_qty"))
            .otherwise(None)
            .alias("prev_qty_item")
        )
    )

    result = (
        yearly.filter(pl.col("prev_qty_item").is_not_null() & (pl.col("prev_qty_item") != 0))
        .with_columns(
            (pl.col("qty_item") / pl.col("prev_qty_item") - 1).round(2).alias("qty_diff_pct")
        )
        .with_columns(
            pl.col("qty_diff_pct").rank(method="dense", descending=True).alias("rank"),
            pl.col("SubcategoryName").alias("subcategory"),
        )
        .filter(pl.col("rank") <= top_n)
        .sort(
            ["qty_diff_pct", "subcategory", "year"],
            descending=[True, False, False],
            nulls_last=True,
        )
    )

    logger.info(f"Kept {result.height} growth rows with rank <= {top_n}")
    return _conform(result, SUBCATEGORY_GROWTH_SCHEMA)


def top_territories_by_year(tables: SourceTables, top_n: int = 3) -> pl.DataFrame:
    """
    Territories with the largest ordered quantity in each year

    Args:
        tables: Source snapshot
        top_n: Highest dense rank to keep per year

    Returns:
        pl.DataFrame: Ordered by year, then rank
    """
    logger.info(f"Building top {top_n} territories per year")

    sales = sales_with_header(tables)
    if sales.is_empty():
        return _empty(TOP_TERRITORIES_SCHEMA)

    result = (
        sales.with_columns(pl.col("ModifiedDate").dt.year().alias("year"))
        .group_by(["year", "TerritoryID"])
        .agg(pl.col("OrderQty").sum().alias("order_qty"))
        .with_columns(
            pl.col("order_qty")
            .rank(method="dense", descending=True)
            .over("year")
            .alias("rank"),
            pl.col("TerritoryID").alias("territory_id"),
        )
        .filter(pl.col("rank") <= top_n)
        .sort(["year", "rank", "territory_id"], nulls_last=True)
    )

    logger.info(f"Created {result.height} territory ranking rows")
    return _conform(result, TOP_TERRITORIES_SCHEMA)


def seasonal_discount_cost(tables: SourceTables) -> pl.DataFrame:
    """
    Cost of seasonal discounts per subcategory and year

    disc_cost = OrderQty * DiscountPct * UnitPrice, over lines whose offer
    type contains "seasonal discount" in any letter case. Exact duplicate
    (date, subcategory, discount, type, cost) combinations count once.

    Args:
        tables: Source snapshot

    Returns:
        pl.DataFrame: One row per (year, subcategory)
    """
    logger.info("Building seasonal discount cost")

    sales = sales_with_offer(tables)
    if sales.is_empty():
        return _empty(SEASONAL_DISCOUNT_COST_SCHEMA)

    discounted = (
        sales.filter(
            pl.col("Type").str.to_lowercase().str.contains(SEASONAL_DISCOUNT_TYPE, literal=True)
        )
        .with_columns(
            (pl.col("OrderQty") * pl.col("DiscountPct") * pl.col("UnitPrice")).alias("disc_cost"),
            pl.col("ModifiedDate").dt.date().alias("order_date"),
        )
        .unique(
            subset=["order_date", "SubcategoryName", "DiscountPct", "Type", "disc_cost"],
            maintain_order=True,
        )
    )
    logger.info(f"Found {discounted.height} distinct seasonal discount lines")

    result = (
        discounted.with_columns(pl.col("ModifiedDate").dt.year().alias("year"))
        .group_by(["year", "SubcategoryName"])
        .agg(pl.col("disc_cost").sum().alias("total_discount_cost"))
        .with_columns(pl.col("SubcategoryName").alias("subcategory"))
        .sort(["year", "subcategory"], nulls_last=True)
    )

    return _conform(result, SEASONAL_DISCOUNT_COST_SCHEMA)


def customer_retention_cohort(
    tables: SourceTables,
    year: int,
    status: int = 5,
    sort_by_label: bool = False,
) -> pl.DataFrame:
    """
    Monthly customer retention grid for one year

    Customers join the cohort of the first month they have an order with
    the given status. Each later active month adds the customer to the
    cell (cohort month, offset), labelled "M - {offset}".

    Args:
        tables: Source snapshot
        year: Calendar year to analyse
        status: SalesOrderHeader status to keep (5 = shipped)
        sort_by_label: Order offsets by their text label instead of numerically

    Returns:
        pl.DataFrame: Cohort grid ordered by cohort month, then offset
    """
    logger.info(f"Building retention cohort for {year} (status={status})")

    orders = tables.sales_order_header.filter(_in_year(year) & (pl.col("Status") == status))
    if orders.is_empty():
        return _empty(RETENTION_COHORT_SCHEMA)

    monthly = (
        orders.with_columns(
            pl.col("ModifiedDate").dt.month().alias("month"),
            pl.col("ModifiedDate").dt.year().alias("year"),
        )
        .group_by(["month", "year", "CustomerID"])
        .agg(pl.col("SalesOrderID").n_unique().alias("sales_cnt"))
    )

    offset_col = "month_diff" if sort_by_label else "month_offset"
    result = (
        # one row per (customer, month) after grouping, so the minimum is unique
        monthly.with_columns(pl.col("month").min().over("CustomerID").alias("month_join"))
        .with_columns((pl.col("month") - pl.col("month_join")).alias("month_offset"))
        .with_columns(pl.format("M - {}", pl.col("month_offset")).alias("month_diff"))
        .group_by(["month_join", "month_offset", "month_diff"])
        .agg(pl.col("CustomerID").n_unique().alias("customer_cnt"))
        .sort(["month_join", offset_col])
    )

    logger.info(f"Created {result.height} cohort cells")
    return _conform(result, RETENTION_COHORT_SCHEMA)


def stock_level_trend(tables: SourceTables, year: int) -> pl.DataFrame:
    """
    Monthly stocked quantity per product with month-over-month change

    diff_pct = round(100 * (curr / prev - 1), 1). A product's first month,
    or a month whose previous stock is zero, reports 0.0.

    Args:
        tables: Source snapshot
        year: Calendar year to analyse

    Returns:
        pl.DataFrame: Ordered by product name, then month descending
    """
    logger.info(f"Building stock level trend for {year}")

    products = tables.product.select("ProductID", pl.col("Name").alias("product_name"))
    stock = join_tables(products, tables.work_order, "ProductID", how="left").filter(
        _in_year(year)
    )
    if stock.is_empty():
        return _empty(STOCK_TREND_SCHEMA)

    monthly = (
        stock.with_columns(
            pl.col("ModifiedDate").dt.month().alias("month"),
            pl.col("ModifiedDate").dt.year().alias("year"),
        )
        .group_by(["product_name", "month", "year"])
        .agg(pl.col("StockedQty").sum().alias("stock_qty"))
        .sort(["product_name", "year", "month"], nulls_last=True)
        .with_columns(pl.col("stock_qty").shift(1).over("product_name").alias("stock_prev"))
    )

    result = monthly.with_columns(
        pl.when(pl.col("stock_prev").is_null() | (pl.col("stock_prev") == 0))
        .then(0.0)
        .otherwise(((pl.col("stock_qty") / pl.col("stock_prev") - 1) * 100).round(1))
        .alias("diff_pct")
    ).sort(["product_name", "month"], descending=[False, True], nulls_last=True)

    logger.info(f"Created {result.height} stock trend rows")
    return _conform(result, STOCK_TREND_SCHEMA)


STOCK_TO_SALES_SQL = """
    WITH sales AS (
        SELECT
            p.Name AS product_name
            , EXTRACT(MONTH FROM sod.ModifiedDate) AS month
            , EXTRACT(YEAR FROM sod.ModifiedDate) AS year
            , SUM(sod.OrderQty)::BIGINT AS sales
        FROM sales_order_detail sod
        LEFT JOIN product p ON sod.ProductID = p.ProductID
        WHERE EXTRACT(YEAR FROM sod.ModifiedDate) = $1
        GROUP BY 1, 2, 3
    ),
    stock AS (
        SELECT
            p.Name AS product_name
            , EXTRACT(MONTH FROM wo.ModifiedDate) AS month
            , EXTRACT(YEAR FROM wo.ModifiedDate) AS year
            , SUM(wo.StockedQty)::BIGINT AS stock
        FROM work_order wo
        LEFT JOIN product p ON wo.ProductID = p.ProductID
        WHERE EXTRACT(YEAR FROM wo.ModifiedDate) = $1
        GROUP BY 1, 2, 3
    ),
    combined AS (
        SELECT
            COALESCE(s.product_name, w.product_name) AS product_name
            , COALESCE(s.month, w.month) AS month
            , COALESCE(s.year, w.year) AS year
            , COALESCE(s.sales, 0) AS sales
            , COALESCE(w.stock, 0) AS stock
        FROM sales s
        FULL OUTER JOIN stock w
            ON s.product_name IS NOT DISTINCT FROM w.product_name
            AND s.month = w.month
            AND s.year = w.year
    )
    SELECT
        product_name
        , month
        , year
        , sales
        , stock
        , ROUND(CAST(stock AS DOUBLE) / NULLIF(sales, 0), 2) AS ratio
    FROM combined
    ORDER BY month DESC, ratio DESC NULLS LAST, product_name ASC NULLS LAST
"""


def stock_to_sales_ratio(tables: SourceTables, year: int) -> pl.DataFrame:
    """
    Stocked quantity divided by sold quantity per product and month

    Sales and stock are aggregated separately and full outer joined, so a
    product with stock but no sales (or the reverse) still appears with
    the missing side as 0. Zero sales leave the ratio null (undefined).

    Args:
        tables: Source snapshot
        year: Calendar year to analyse

    Returns:
        pl.DataFrame: Ordered by month descending, then ratio descending
    """
    logger.info(f"Building stock-to-sales ratio for {year}")

    if tables.sales_order_detail.is_empty() and tables.work_order.is_empty():
        return _empty(STOCK_TO_SALES_SCHEMA)

    conn = duckdb.connect()
    try:
        conn.register("sales_order_detail", tables.sales_order_detail)
        conn.register("work_order", tables.work_order)
        conn.register("product", tables.product)

        result = conn.execute(STOCK_TO_SALES_SQL, [year]).pl()
    except Exception as e:
        logger.error(f"❌ Error building stock-to-sales ratio: {e}")
        raise
    finally:
        conn.close()

    undefined = result.filter(pl.col("ratio").is_null()).height
    if undefined:
        logger.info(f"{undefined} product-months have no sales, ratio left undefined")

    logger.info(f"Created {result.height} stock-to-sales rows")
    return _conform(result, STOCK_TO_SALES_SCHEMA)


def pending_purchase_orders(tables: SourceTables, year: int, status: int = 1) -> pl.DataFrame:
    """
    Count and value of purchase orders in a given status for one year

    Args:
        tables: Source snapshot
        year: Calendar year to analyse
        status: PurchaseOrderHeader status to keep (1 = pending)

    Returns:
        pl.DataFrame: One row per (year, status) present
    """
    logger.info(f"Building purchase order backlog for {year} (status={status})")

    orders = tables.purchase_order_header.filter(_in_year(year) & (pl.col("Status") == status))
    if orders.is_empty():
        return _empty(PENDING_PURCHASE_ORDERS_SCHEMA)

    result = (
        orders.with_columns(pl.col("ModifiedDate").dt.year().alias("year"))
        .group_by(["year", "Status"])
        .agg(
            pl.col("PurchaseOrderID").n_unique().alias("order_cnt"),
            pl.col("TotalDue").sum().alias("value"),
        )
        .rename({"Status": "status"})
        .sort(["year", "status"])
    )

    return _conform(result, PENDING_PURCHASE_ORDERS_SCHEMA)


@dataclass(frozen=True)
class ReportSpec:
    """Registry entry tying a report name to its function and result schema"""

    name: str
    title: str
    func: Callable[..., pl.DataFrame]
    result_schema: pl.Schema
    # report keyword argument -> ReportSettings attribute
    settings_args: Dict[str, str] = field(default_factory=dict)


REPORTS: Dict[str, ReportSpec] = {
    spec.name: spec
    for spec in [
        ReportSpec(
            "subcategory_performance",
            "Last 12 months subcategory performance",
            subcategory_performance_last_12_months,
            SUBCATEGORY_PERFORMANCE_SCHEMA,
        ),
        ReportSpec(
            "subcategory_growth",
            "Top subcategories by YoY quantity growth",
            top_subcategory_growth,
            SUBCATEGORY_GROWTH_SCHEMA,
            {"top_n": "top_n"},
        ),
        ReportSpec(
            "top_territories",
            "Top territories by order quantity per year",
            top_territories_by_year,
            TOP_TERRITORIES_SCHEMA,
            {"top_n": "top_n"},
        ),
        ReportSpec(
            "seasonal_discount_cost",
            "Seasonal discount cost by subcategory and year",
            seasonal_discount_cost,
            SEASONAL_DISCOUNT_COST_SCHEMA,
        ),
        ReportSpec(
            "retention_cohort",
            "Customer retention cohort",
            customer_retention_cohort,
            RETENTION_COHORT_SCHEMA,
            {"year": "target_year", "status": "shipped_status"},
        ),
        ReportSpec(
            "stock_trend",
            "Stock level trend and month-over-month change",
            stock_level_trend,
            STOCK_TREND_SCHEMA,
            {"year": "target_year"},
        ),
        ReportSpec(
            "stock_to_sales",
            "Stock-to-sales ratio by product and month",
            stock_to_sales_ratio,
            STOCK_TO_SALES_SCHEMA,
            {"year": "target_year"},
        ),
        ReportSpec(
            "pending_purchase_orders",
            "Pending purchase order backlog",
            pending_purchase_orders,
            PENDING_PURCHASE_ORDERS_SCHEMA,
            {"year": "target_year", "status": "pending_status"},
        ),
    ]
}
