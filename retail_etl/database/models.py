"""
Database Models - Star Schema Design

Staging Tables (rebuilt on every run, see ``staging_metadata``):
- stg_products / stg_products_cleaned
- stg_customers
- stg_sales / stg_sales_cleaned

Dimension Tables:
- DimProduct: Product catalog with conformed categories
- DimCustomer: Customers with derived display name

Fact Tables:
- FactSale: Sales transactions

Fact rows carry product and customer keys but no foreign key constraint;
orphan detection is done after load by ``retail_etl.quality.integrity``.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import (
    Column,
    Date,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for dimensional models"""
    pass


# =============================================================================
# STAGING TABLES
# =============================================================================

staging_metadata = MetaData()


def _staging_products(name: str) -> Table:
    return Table(
        name,
        staging_metadata,
        Column("product_id", Integer),
        Column("product_name", String(200)),
        Column("category", String(100)),
        Column("sub_category", String(100)),
        Column("price", Numeric),
    )


def _staging_sales(name: str) -> Table:
    return Table(
        name,
        staging_metadata,
        Column("sale_id", Integer),
        Column("customer_id", Integer),
        Column("product_id", Integer),
        Column("sale_date", Date),
        Column("quantity_sold", Integer),
        Column("unit_price", Numeric),
        Column("total_sale", Numeric),
    )


stg_products = _staging_products("stg_products")
stg_products_cleaned = _staging_products("stg_products_cleaned")
stg_sales = _staging_sales("stg_sales")
stg_sales_cleaned = _staging_sales("stg_sales_cleaned")

stg_customers = Table(
    "stg_customers",
    staging_metadata,
    Column("customer_id", Integer),
    Column("first_name", String(100)),
    Column("last_name", String(100)),
    Column("email", String(255)),
    Column("phone", String(50)),
    Column("city", String(100)),
    Column("state", String(100)),
    Column("country", String(100)),
)

STAGING_TABLES: Dict[str, Table] = {
    table.name: table
    for table in (stg_products, stg_products_cleaned, stg_customers, stg_sales, stg_sales_cleaned)
}


# =============================================================================
# DIMENSION TABLES
# =============================================================================

class DimProduct(Base):
    """
    Product Dimension Table

    Loaded from the cleaned product staging rows; category and sub_category
    are always populated. Every other column is taken as-is.
    """
    __tablename__ = "dim_products"

    product_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    product_name: Mapped[Optional[str]] = mapped_column(String(200))
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    sub_category: Mapped[str] = mapped_column(String(100), nullable=False)
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric)

    __table_args__ = (
        Index("ix_dim_products_category", "category"),
    )


class DimCustomer(Base):
    """
    Customer Dimension Table

    customer_name is derived as first name, a single space, last name.
    """
    __tablename__ = "dim_customers"

    customer_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    customer_name: Mapped[Optional[str]] = mapped_column(String(201))
    country: Mapped[Optional[str]] = mapped_column(String(100))

    __table_args__ = (
        Index("ix_dim_customers_country", "country"),
    )


# =============================================================================
# FACT TABLES
# =============================================================================

class FactSale(Base):
    """
    Sales Fact Table

    sale_id is the source identifier and is not unique here: repeated
    append loads produce repeated rows. sale_key is a surrogate.
    Only the two dimension keys are required.
    """
    __tablename__ = "fact_sales"

    sale_key: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sale_id: Mapped[Optional[int]] = mapped_column(Integer)
    customer_id: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[int] = mapped_column(Integer, nullable=False)
    sale_date: Mapped[Optional[date]] = mapped_column(Date)
    quantity_sold: Mapped[Optional[int]] = mapped_column(Integer)
    unit_price: Mapped[Optional[Decimal]] = mapped_column(Numeric)
    total_sale: Mapped[Optional[Decimal]] = mapped_column(Numeric)

    __table_args__ = (
        Index("ix_fact_sales_sale_id", "sale_id"),
        Index("ix_fact_sales_product", "product_id"),
        Index("ix_fact_sales_customer", "customer_id"),
        Index("ix_fact_sales_date", "sale_date"),
    )


# Natural key used by upsert loads
NATURAL_KEYS = {
    DimProduct: "product_id",
    DimCustomer: "customer_id",
    FactSale: "sale_id",
}
