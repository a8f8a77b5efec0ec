"""
Post-load referential integrity.

Fact rows are loaded without foreign key constraints; this finds the ones
whose product or customer has no dimension row. The check runs against
what the warehouse holds after the load, so rows kept from earlier runs
count on both sides.
"""

from typing import Optional

import polars as pl
from sqlalchemy import Float, cast, select
from sqlalchemy.engine import Engine

from retail_etl.database.connection import get_engine
from retail_etl.database.models import DimCustomer, DimProduct, FactSale

# Frame schema of fact rows read back from the warehouse
LOADED_FACT_SCHEMA = {
    "sale_id": pl.Int64,
    "customer_id": pl.Int64,
    "product_id": pl.Int64,
    "sale_date": pl.Date,
    "quantity_sold": pl.Int64,
    "unit_price": pl.Float64,
    "total_sale": pl.Float64,
}


def find_orphaned_sales(
    fact_sales: pl.DataFrame,
    dim_products: pl.DataFrame,
    dim_customers: pl.DataFrame,
) -> pl.DataFrame:
    """Fact rows whose product_id or customer_id is missing from its dimension."""
    known_products = dim_products.select("product_id").unique().with_columns(
        pl.lit(True).alias("_has_product")
    )
    known_customers = dim_customers.select("customer_id").unique().with_columns(
        pl.lit(True).alias("_has_customer")
    )

    return (
        fact_sales
        .join(known_products, on="product_id", how="left")
        .join(known_customers, on="customer_id", how="left")
        .filter(pl.col("_has_product").is_null() | pl.col("_has_customer").is_null())
        .drop(["_has_product", "_has_customer"])
    )


def _read_keys(conn, column, name: str) -> pl.DataFrame:
    keys = conn.execute(select(column)).scalars().all()
    return pl.DataFrame({name: keys}, schema={name: pl.Int64})


def find_orphaned_sales_in_warehouse(engine: Optional[Engine] = None) -> pl.DataFrame:
    """Run ``find_orphaned_sales`` over the loaded fact and dimension tables."""
    engine = engine or get_engine()

    with engine.connect() as conn:
        dim_products = _read_keys(conn, DimProduct.product_id, "product_id")
        dim_customers = _read_keys(conn, DimCustomer.customer_id, "customer_id")
        rows = conn.execute(
            select(
                FactSale.sale_id,
                FactSale.customer_id,
                FactSale.product_id,
                FactSale.sale_date,
                FactSale.quantity_sold,
                cast(FactSale.unit_price, Float).label("unit_price"),
                cast(FactSale.total_sale, Float).label("total_sale"),
            ).order_by(FactSale.sale_key)
        ).all()

    fact_sales = pl.DataFrame(
        [tuple(row) for row in rows],
        schema=LOADED_FACT_SCHEMA,
        orient="row",
    )
    return find_orphaned_sales(fact_sales, dim_products, dim_customers)
