"""
Test Suite Configuration
"""
from datetime import date
from pathlib import Path
from typing import Callable, Generator, List

import pytest
import polars as pl
from sqlalchemy.engine import Engine

from retail_etl.database.connection import create_warehouse_engine, init_schema
from retail_etl.ingestion import CUSTOMER_SCHEMA, PRODUCT_SCHEMA, SALE_SCHEMA


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory warehouse with the dimensional schema"""
    engine = create_warehouse_engine("sqlite://")
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[[str, List[str]], Path]:
    """Write raw extract lines (header first) into tmp_path"""
    def _write(name: str, lines: List[str]) -> Path:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path
    return _write


@pytest.fixture
def raw_extracts(write_csv, tmp_path: Path) -> Path:
    """A small, valid set of the three extracts"""
    write_csv("products.csv", [
        "Product_ID,Product_Name,Category,Sub_Category,Price",
        '1,"Widget, Large",Tools,Hand Tools,9.99',
        "2,Gadget,,,19.50",
        "3,Gizmo,Electronics,,5.00",
    ])
    write_csv("customers.csv", [
        "Customer_ID,First_Name,Last_Name,Email,Phone,City,State,Country",
        "1,Ada,Lovelace,ada@example.com,555-0100,London,LDN,UK",
        "2,Alan,Turing,alan@example.com,555-0101,Wilmslow,CHS,UK",
        "3,Grace,Hopper,grace@example.com,555-0102,Arlington,VA,USA",
    ])
    write_csv("sales.csv", [
        "Sale_ID,Customer_ID,Product_ID,Sale_Date,Quantity_Sold,Unit_Price,Total_Sale",
        "100,1,1,2024-01-05,2,9.99,19.98",
        "101,2,2,2024-01-20,1,19.50,19.50",
        "102,3,3,2024-02-02,4,5.00,20.00",
        "103,,1,2024-02-10,1,9.99,9.99",
        "104,1,,2024-02-11,3,9.99,29.97",
    ])
    return tmp_path


@pytest.fixture
def sample_products_df() -> pl.DataFrame:
    """Staging products with missing categories"""
    return pl.DataFrame(
        {
            "product_id": [1, 2, 3],
            "product_name": ["Widget", "Gadget", "Gizmo"],
            "category": ["Tools", None, "Electronics"],
            "sub_category": [None, None, "Audio"],
            "price": [9.99, 19.50, 5.00],
        },
        schema=PRODUCT_SCHEMA,
    )


@pytest.fixture
def sample_customers_df() -> pl.DataFrame:
    """Staging customers"""
    return pl.DataFrame(
        {
            "customer_id": [1, 2, 3],
            "first_name": ["Ada", "Alan", "Grace"],
            "last_name": ["Lovelace", "Turing", "Hopper"],
            "email": ["ada@example.com", "alan@example.com", "grace@example.com"],
            "phone": ["555-0100", "555-0101", "555-0102"],
            "city": ["London", "Wilmslow", "Arlington"],
            "state": ["LDN", "CHS", "VA"],
            "country": ["UK", "UK", "USA"],
        },
        schema=CUSTOMER_SCHEMA,
    )


@pytest.fixture
def sample_sales_df() -> pl.DataFrame:
    """Staging sales, two of them missing a key"""
    return pl.DataFrame(
        {
            "sale_id": [100, 101, 102, 103, 104],
            "customer_id": [1, 2, 3, None, 1],
            "product_id": [1, 2, 3, 1, None],
            "sale_date": [
                date(2024, 1, 5),
                date(2024, 1, 20),
                date(2024, 2, 2),
                date(2024, 2, 10),
                date(2024, 2, 11),
            ],
            "quantity_sold": [2, 1, 4, 1, 3],
            "unit_price": [9.99, 19.50, 5.00, 9.99, 9.99],
            "total_sale": [19.98, 19.50, 20.00, 9.99, 29.97],
        },
        schema=SALE_SCHEMA,
    )
