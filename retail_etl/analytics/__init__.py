"""
Analytics Module
"""
from .views import (
    top_products_by_revenue,
    monthly_revenue_trend,
    top_customers_by_volume,
    install_views,
    read_view,
    VIEWS,
    ProductRevenue,
    MonthlyRevenue,
    CustomerVolume,
)

__all__ = [
    "top_products_by_revenue",
    "monthly_revenue_trend",
    "top_customers_by_volume",
    "install_views",
    "read_view",
    "VIEWS",
    "ProductRevenue",
    "MonthlyRevenue",
    "CustomerVolume",
]
