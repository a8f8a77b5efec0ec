"""
Unit Tests - Warehouse Loading
"""
from datetime import date

import pytest
import polars as pl
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from retail_etl.database import DimCustomer, DimProduct, FactSale, get_db
from retail_etl.ingestion import CUSTOMER_SCHEMA, PRODUCT_SCHEMA, SALE_SCHEMA
from retail_etl.transformation import (
    DataCleaner,
    conform_customers,
    conform_products,
    conform_sales,
)
from retail_etl.warehouse import LoadStrategy, WarehouseLoader


def _count(engine, model) -> int:
    with get_db(engine) as db:
        return db.execute(select(func.count()).select_from(model)).scalar_one()


@pytest.fixture
def conformed(sample_products_df, sample_customers_df, sample_sales_df):
    cleaner = DataCleaner()
    return {
        "products": conform_products(cleaner.clean_products(sample_products_df)),
        "customers": conform_customers(sample_customers_df),
        "sales": conform_sales(cleaner.clean_sales(sample_sales_df)),
    }


class TestReplaceAll:
    """Tests for the default replace_all strategy"""

    def test_load_all(self, engine, conformed):
        results = WarehouseLoader(engine).load_all(
            conformed["products"], conformed["customers"], conformed["sales"]
        )

        assert results["dim_products"].rows_loaded == 3
        assert results["dim_products"].completed_at >= results["dim_products"].started_at
        assert results["dim_products"].strategy == LoadStrategy.REPLACE_ALL
        assert _count(engine, DimProduct) == 3
        assert _count(engine, DimCustomer) == 3
        assert _count(engine, FactSale) == 3

    def test_rerun_does_not_duplicate(self, engine, conformed):
        loader = WarehouseLoader(engine, strategy=LoadStrategy.REPLACE_ALL)

        for _ in range(2):
            loader.load_all(conformed["products"], conformed["customers"], conformed["sales"])

        assert _count(engine, DimCustomer) == 3
        assert _count(engine, FactSale) == 3

    def test_widget_defaults_reach_dimension(self, engine):
        raw = pl.DataFrame([(1, "Widget", None, None, 9.99)], schema=PRODUCT_SCHEMA, orient="row")

        WarehouseLoader(engine).load_products(conform_products(DataCleaner().clean_products(raw)))

        with get_db(engine) as db:
            products = db.execute(select(DimProduct)).scalars().all()
        assert len(products) == 1
        assert products[0].product_id == 1
        assert products[0].product_name == "Widget"
        assert products[0].category == "Unknown"
        assert products[0].sub_category == "Miscellaneous"
        assert float(products[0].price) == pytest.approx(9.99)

    def test_sale_with_null_product_never_loaded(self, engine):
        raw = pl.DataFrame(
            [
                (100, 5, None, date(2024, 1, 1), 2, 9.99, 19.98),
                (101, 5, 1, date(2024, 1, 1), 1, 9.99, 9.99),
            ],
            schema=SALE_SCHEMA,
            orient="row",
        )

        WarehouseLoader(engine).load_sales(conform_sales(DataCleaner().clean_sales(raw)))

        with get_db(engine) as db:
            sale_ids = db.execute(select(FactSale.sale_id)).scalars().all()
        assert sale_ids == [101]

    def test_duplicate_customer_id_raises_integrity_error(self, engine):
        customers = pl.DataFrame(
            [
                (7, "Sam", "Vimes", None, None, "Ankh", None, "Discworld"),
                (7, "Sam", "Vimes", None, None, "Ankh", None, "Discworld"),
            ],
            schema=CUSTOMER_SCHEMA,
            orient="row",
        )

        with pytest.raises(IntegrityError):
            WarehouseLoader(engine).load_customers(conform_customers(customers))

        # The failed table load is rolled back
        assert _count(engine, DimCustomer) == 0

    def test_customer_name_stored_verbatim(self, engine, conformed):
        WarehouseLoader(engine).load_customers(conformed["customers"])

        with get_db(engine) as db:
            names = db.execute(select(DimCustomer.customer_name).order_by(DimCustomer.customer_id)).scalars().all()
        assert names == ["Ada Lovelace", "Alan Turing", "Grace Hopper"]

    def test_amounts_keep_their_precision(self, engine):
        raw = pl.DataFrame([(1, "Widget", "Tools", "Hand", 1.23456)], schema=PRODUCT_SCHEMA, orient="row")

        WarehouseLoader(engine).load_products(conform_products(raw))

        with get_db(engine) as db:
            price = db.execute(select(DimProduct.price)).scalar_one()
        assert float(price) == 1.23456


class TestAppend:
    """Tests for the append strategy (no dedup between runs)"""

    @pytest.mark.parametrize("runs", [1, 2, 3])
    def test_fact_rows_duplicate_per_run(self, engine, conformed, runs):
        loader = WarehouseLoader(engine, strategy=LoadStrategy.APPEND)

        for _ in range(runs):
            loader.load_sales(conformed["sales"])

        assert _count(engine, FactSale) == conformed["sales"].height * runs
        with get_db(engine) as db:
            per_sale = db.execute(
                select(FactSale.sale_id, func.count()).group_by(FactSale.sale_id)
            ).all()
        assert all(count == runs for _, count in per_sale)

    def test_second_customer_append_hits_primary_key(self, engine, conformed):
        loader = WarehouseLoader(engine, strategy="append")
        loader.load_customers(conformed["customers"])

        with pytest.raises(IntegrityError):
            loader.load_customers(conformed["customers"])

        assert _count(engine, DimCustomer) == 3


class TestUpsert:
    """Tests for the upsert-by-key strategy"""

    def test_upsert_replaces_matching_keys(self, engine, conformed):
        loader = WarehouseLoader(engine, strategy=LoadStrategy.UPSERT)
        loader.load_products(conformed["products"])

        changed = conformed["products"].filter(pl.col("product_id") == 2).with_columns(
            pl.lit("Gadget Pro").alias("product_name")
        )
        result = loader.load_products(changed)

        assert result.rows_deleted == 1
        assert result.rows_loaded == 1
        with get_db(engine) as db:
            names = db.execute(select(DimProduct.product_name).order_by(DimProduct.product_id)).scalars().all()
        assert names == ["Widget", "Gadget Pro", "Gizmo"]

    def test_upsert_facts_by_sale_id(self, engine, conformed):
        loader = WarehouseLoader(engine, strategy=LoadStrategy.UPSERT)

        loader.load_sales(conformed["sales"])
        loader.load_sales(conformed["sales"])

        assert _count(engine, FactSale) == conformed["sales"].height

    def test_invalid_strategy(self, engine):
        with pytest.raises(ValueError):
            WarehouseLoader(engine, strategy="merge")
