"""
Data Transformation Module
"""
from .cleaners import DataCleaner, CleaningStats, clean_dataframe
from .conformers import conform_products, conform_customers, conform_sales

__all__ = [
    "DataCleaner",
    "CleaningStats",
    "clean_dataframe",
    "conform_products",
    "conform_customers",
    "conform_sales",
]
