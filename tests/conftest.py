"""
Shared fixtures - small in-memory snapshots of the source tables
"""

import sys
import os
from datetime import datetime

import polars as pl
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from aw_analytics.extract.tables import SourceTables


def line(order_id, product_id, qty, when, unit_price=10.0, offer_id=1):
    """One SalesOrderDetail row"""
    return {
        "SalesOrderID": order_id,
        "ProductID": product_id,
        "OrderQty": qty,
        "UnitPrice": unit_price,
        "LineTotal": qty * unit_price,
        "SpecialOfferID": offer_id,
        "ModifiedDate": when,
    }


def header(order_id, customer_id, when, status=5, territory_id=1, total_due=100.0):
    """One SalesOrderHeader row"""
    return {
        "SalesOrderID": order_id,
        "CustomerID": customer_id,
        "TerritoryID": territory_id,
        "Status": status,
        "TotalDue": total_due,
        "ModifiedDate": when,
    }


def work_order(product_id, qty, when):
    """One WorkOrder row"""
    return {"ProductID": product_id, "StockedQty": qty, "ModifiedDate": when}


@pytest.fixture
def products() -> pl.DataFrame:
    """Products with the subcategory key stored as text, as in the source"""
    return pl.DataFrame(
        {
            "ProductID": [771, 772, 773, 774, 775],
            "Name": ["Mountain-100", "Road-150", "Sport Helmet", "Misc Part", "No Stock Item"],
            "ProductSubcategoryID": ["1", "2", "3", "NULL", "1"],
        }
    )


@pytest.fixture
def subcategories() -> pl.DataFrame:
    return pl.DataFrame(
        {
            "ProductSubcategoryID": [1, 2, 3],
            "Name": ["Mountain Bikes", "Road Bikes", "Helmets"],
        }
    )


@pytest.fixture
def make_tables(products, subcategories):
    """Build a SourceTables snapshot with the standard products and subcategories"""

    def _make(**frames):
        frames.setdefault("product", products)
        frames.setdefault("product_subcategory", subcategories)
        built = {
            name: pl.DataFrame(rows) if isinstance(rows, list) else rows
            for name, rows in frames.items()
        }
        return SourceTables.from_frames(**built)

    return _make


@pytest.fixture
def full_tables(make_tables):
    """A snapshot with every table populated, for end-to-end runs"""
    return make_tables(
        sales_order_detail=[
            line(1, 771, 2, datetime(2013, 3, 1), offer_id=2),
            line(2, 772, 3, datetime(2014, 3, 5)),
            line(3, 773, 1, datetime(2014, 5, 9), offer_id=2),
        ],
        sales_order_header=[
            header(1, 11000, datetime(2013, 3, 1)),
            header(2, 11000, datetime(2014, 3, 5), territory_id=4),
            header(3, 11001, datetime(2014, 5, 9), territory_id=6),
        ],
        special_offer=pl.DataFrame(
            {
                "SpecialOfferID": [1, 2],
                "DiscountPct": [0.0, 0.1],
                "Type": ["No Discount", "Seasonal Discount"],
            }
        ),
        work_order=[
            work_order(771, 20, datetime(2014, 2, 1)),
            work_order(771, 10, datetime(2014, 3, 1)),
        ],
        purchase_order_header=pl.DataFrame(
            {
                "PurchaseOrderID": [1, 2],
                "Status": [1, 4],
                "TotalDue": [500.0, 250.0],
                "ModifiedDate": [datetime(2014, 1, 2), datetime(2014, 1, 3)],
            }
        ),
    )
