"""
Reporting Views

The three dashboard aggregates over the star schema. Each is a plain
query function: nothing is cached or materialized, every call re-reads
fact_sales and the dimensions.

``install_views`` publishes the same SELECTs as database views so BI tools
can query them by name.
"""

from datetime import date
from typing import Callable, Dict, List, Optional

import structlog
from pydantic import BaseModel
from sqlalchemy import Select, func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import Session
from sqlalchemy.sql.expression import FunctionElement
from sqlalchemy.types import Date

from retail_etl.database.connection import get_engine
from retail_etl.database.models import DimCustomer, DimProduct, FactSale

logger = structlog.get_logger(__name__)

TOP_PRODUCTS_LIMIT = 10
TOP_CUSTOMERS_LIMIT = 5


class month_start(FunctionElement):
    """First day of the calendar month of a date expression"""
    type = Date()
    name = "month_start"
    inherit_cache = True


@compiles(month_start)
def _month_start_default(element, compiler, **kw):
    return "CAST(date_trunc('month', %s) AS DATE)" % compiler.process(element.clauses, **kw)


@compiles(month_start, "sqlite")
def _month_start_sqlite(element, compiler, **kw):
    return "date(%s, 'start of month')" % compiler.process(element.clauses, **kw)


class ProductRevenue(BaseModel):
    """Revenue per product"""
    product_id: int
    product_name: Optional[str]
    total_revenue: float


class MonthlyRevenue(BaseModel):
    """Revenue per calendar month"""
    sale_month: date
    total_revenue: float


class CustomerVolume(BaseModel):
    """Units and revenue per customer"""
    customer_id: int
    customer_name: Optional[str]
    total_quantity: int
    total_revenue: float


# =============================================================================
# QUERIES
# =============================================================================

def top_products_by_revenue_query(limit: int = TOP_PRODUCTS_LIMIT) -> Select:
    revenue = func.sum(FactSale.total_sale).label("total_revenue")
    return (
        select(FactSale.product_id, DimProduct.product_name, revenue)
        .select_from(FactSale)
        .join(DimProduct, DimProduct.product_id == FactSale.product_id)
        .group_by(FactSale.product_id, DimProduct.product_name)
        .order_by(revenue.desc())
        .limit(limit)
    )


def monthly_revenue_trend_query() -> Select:
    month = month_start(FactSale.sale_date)
    return (
        select(month.label("sale_month"), func.sum(FactSale.total_sale).label("total_revenue"))
        .group_by(month)
        .order_by(month)
    )


def top_customers_by_volume_query(limit: int = TOP_CUSTOMERS_LIMIT) -> Select:
    quantity = func.sum(FactSale.quantity_sold).label("total_quantity")
    return (
        select(
            FactSale.customer_id,
            DimCustomer.customer_name,
            quantity,
            func.sum(FactSale.total_sale).label("total_revenue"),
        )
        .select_from(FactSale)
        .join(DimCustomer, DimCustomer.customer_id == FactSale.customer_id)
        .group_by(FactSale.customer_id, DimCustomer.customer_name)
        .order_by(quantity.desc())
        .limit(limit)
    )


def top_products_by_revenue(db: Session, limit: int = TOP_PRODUCTS_LIMIT) -> List[ProductRevenue]:
    """Top products by summed total_sale, highest first"""
    rows = db.execute(top_products_by_revenue_query(limit)).mappings().all()
    return [ProductRevenue(**row) for row in rows]


def monthly_revenue_trend(db: Session) -> List[MonthlyRevenue]:
    """Summed total_sale per month, oldest first"""
    rows = db.execute(monthly_revenue_trend_query()).mappings().all()
    return [MonthlyRevenue(**row) for row in rows]


def top_customers_by_volume(db: Session, limit: int = TOP_CUSTOMERS_LIMIT) -> List[CustomerVolume]:
    """Top customers by units bought, highest first"""
    rows = db.execute(top_customers_by_volume_query(limit)).mappings().all()
    return [CustomerVolume(**row) for row in rows]


VIEWS: Dict[str, Callable[[Session], List[BaseModel]]] = {
    "top_products_by_revenue": top_products_by_revenue,
    "monthly_revenue_trend": monthly_revenue_trend,
    "top_customers_by_volume": top_customers_by_volume,
}

VIEW_QUERIES: Dict[str, Callable[[], Select]] = {
    "vw_top_products_by_revenue": top_products_by_revenue_query,
    "vw_monthly_revenue_trend": monthly_revenue_trend_query,
    "vw_top_customers_by_volume": top_customers_by_volume_query,
}


def install_views(engine: Optional[Engine] = None) -> List[str]:
    """
    Create (or recreate) the reporting views.

    Returns:
        Names of the installed views
    """
    engine = engine or get_engine()

    with engine.begin() as conn:
        for name, build in VIEW_QUERIES.items():
            body = build().compile(dialect=engine.dialect, compile_kwargs={"literal_binds": True})
            conn.execute(text(f"DROP VIEW IF EXISTS {name}"))
            conn.execute(text(f"CREATE VIEW {name} AS {body}"))

    logger.info("Reporting views installed", views=list(VIEW_QUERIES))
    return list(VIEW_QUERIES)


def read_view(db: Session, name: str) -> List[dict]:
    """Read an installed view by name"""
    if name not in VIEW_QUERIES:
        raise ValueError(f"Unknown view: {name}")
    return [dict(row) for row in db.execute(text(f"SELECT * FROM {name}")).mappings().all()]
