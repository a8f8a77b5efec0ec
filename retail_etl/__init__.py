"""
Retail Sales ETL

Batch pipeline from raw product, customer and sales extracts to a star
schema with dashboard aggregates.
"""

__version__ = "1.0.0"
