"""
Dimensional Conformance

Reshapes staging frames into the columns of the star schema. Pure
mapping: field renames and the derived customer name, nothing else.
"""

import polars as pl

DIM_PRODUCT_COLUMNS = ["product_id", "product_name", "category", "sub_category", "price"]
DIM_CUSTOMER_COLUMNS = ["customer_id", "customer_name", "country"]
FACT_SALE_COLUMNS = [
    "sale_id",
    "customer_id",
    "product_id",
    "sale_date",
    "quantity_sold",
    "unit_price",
    "total_sale",
]


def conform_products(products_cleaned: pl.DataFrame) -> pl.DataFrame:
    """Cleaned products to dim_products rows, field for field"""
    return products_cleaned.select(DIM_PRODUCT_COLUMNS)


def conform_customers(customers: pl.DataFrame) -> pl.DataFrame:
    """
    Raw customers to dim_customers rows.

    customer_name is first name, one ASCII space, last name. Contact and
    address fields are not part of the dimension.
    """
    return customers.select(
        pl.col("customer_id"),
        pl.concat_str([pl.col("first_name"), pl.lit(" "), pl.col("last_name")]).alias("customer_name"),
        pl.col("country"),
    )


def conform_sales(sales_cleaned: pl.DataFrame) -> pl.DataFrame:
    """Cleaned sales to fact_sales rows, field for field"""
    return sales_cleaned.select(FACT_SALE_COLUMNS)
