"""
Extract Layer Schemas

Source table schemas for the sales/inventory snapshot.
Column names keep the source system's PascalCase naming.
"""

import polars as pl

SALES_ORDER_DETAIL_SCHEMA = pl.Schema(
    [
        ("SalesOrderID", pl.Int64()),
        ("ProductID", pl.Int64()),
        ("OrderQty", pl.Int64()),
        ("UnitPrice", pl.Float64()),
        ("LineTotal", pl.Float64()),
        ("SpecialOfferID", pl.Int64()),
        ("ModifiedDate", pl.Datetime("us")),
    ]
)

SALES_ORDER_HEADER_SCHEMA = pl.Schema(
    [
        ("SalesOrderID", pl.Int64()),
        ("CustomerID", pl.Int64()),
        ("TerritoryID", pl.Int64()),
        ("Status", pl.Int64()),
        ("TotalDue", pl.Float64()),
        ("ModifiedDate", pl.Datetime("us")),
    ]
)

SPECIAL_OFFER_SCHEMA = pl.Schema(
    [
        ("SpecialOfferID", pl.Int64()),
        ("DiscountPct", pl.Float64()),
        ("Type", pl.String()),
    ]
)

WORK_ORDER_SCHEMA = pl.Schema(
    [
        ("ProductID", pl.Int64()),
        ("StockedQty", pl.Int64()),
        ("ModifiedDate", pl.Datetime("us")),
    ]
)

PURCHASE_ORDER_HEADER_SCHEMA = pl.Schema(
    [
        ("PurchaseOrderID", pl.Int64()),
        ("Status", pl.Int64()),
        ("TotalDue", pl.Float64()),
        ("ModifiedDate", pl.Datetime("us")),
    ]
)

# ProductSubcategoryID arrives as text in Product and as an integer in
# ProductSubcategory; both are declared Int64 so the join keys compare.
PRODUCT_SCHEMA = pl.Schema(
    [
        ("ProductID", pl.Int64()),
        ("Name", pl.String()),
        ("ProductSubcategoryID", pl.Int64()),
    ]
)

PRODUCT_SUBCATEGORY_SCHEMA = pl.Schema(
    [
        ("ProductSubcategoryID", pl.Int64()),
        ("Name", pl.String()),
    ]
)

SOURCE_SCHEMAS = {
    "SalesOrderDetail": SALES_ORDER_DETAIL_SCHEMA,
    "SalesOrderHeader": SALES_ORDER_HEADER_SCHEMA,
    "SpecialOffer": SPECIAL_OFFER_SCHEMA,
    "WorkOrder": WORK_ORDER_SCHEMA,
    "PurchaseOrderHeader": PURCHASE_ORDER_HEADER_SCHEMA,
    "Product": PRODUCT_SCHEMA,
    "ProductSubcategory": PRODUCT_SUBCATEGORY_SCHEMA,
}

# Foreign keys that may legitimately be null
NULLABLE_COLUMNS = {
    "SalesOrderDetail": {"SpecialOfferID"},
    "SalesOrderHeader": {"TerritoryID"},
    "Product": {"ProductSubcategoryID"},
}

# Primary key per table, used for duplicate checks
PRIMARY_KEYS = {
    "SalesOrderHeader": ["SalesOrderID"],
    "SpecialOffer": ["SpecialOfferID"],
    "PurchaseOrderHeader": ["PurchaseOrderID"],
    "Product": ["ProductID"],
    "ProductSubcategory": ["ProductSubcategoryID"],
}

# Attribute name on SourceTables -> source table name
TABLE_NAMES = {
    "sales_order_detail": "SalesOrderDetail",
    "sales_order_header": "SalesOrderHeader",
    "special_offer": "SpecialOffer",
    "work_order": "WorkOrder",
    "purchase_order_header": "PurchaseOrderHeader",
    "product": "Product",
    "product_subcategory": "ProductSubcategory",
}
