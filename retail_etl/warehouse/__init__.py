"""
Warehouse Loading Module
"""
from .loader import WarehouseLoader, LoadStrategy, LoadResult

__all__ = [
    "WarehouseLoader",
    "LoadStrategy",
    "LoadResult",
]
