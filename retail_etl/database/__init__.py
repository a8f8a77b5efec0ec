"""
Database Module
"""
from .connection import (
    init_database,
    close_database,
    get_db,
    get_engine,
    init_schema,
    create_warehouse_engine,
)
from .models import Base, DimProduct, DimCustomer, FactSale

__all__ = [
    "init_database",
    "close_database",
    "get_db",
    "get_engine",
    "init_schema",
    "create_warehouse_engine",
    "Base",
    "DimProduct",
    "DimCustomer",
    "FactSale",
]
