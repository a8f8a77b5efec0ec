"""
Unit Tests - Data Quality
"""
import pytest
import polars as pl

from retail_etl.exceptions import DataQualityError
from retail_etl.ingestion import CUSTOMER_SCHEMA
from retail_etl.quality import (
    DataValidator,
    Failed,
    Passed,
    QualityChecker,
    RecordType,
    ValidationSeverity,
    ValidationStatus,
    find_orphaned_sales,
    find_orphaned_sales_in_warehouse,
)
from retail_etl.transformation import DataCleaner, conform_customers, conform_products, conform_sales
from retail_etl.warehouse import WarehouseLoader


class TestDataValidator:
    """Tests for DataValidator"""

    def test_not_null_check_passes(self):
        df = pl.DataFrame({"id": [1, 2, 3], "name": ["a", "b", "c"]})

        result = DataValidator().add_not_null_check("id").validate(df)

        assert result.status == ValidationStatus.PASSED
        assert result.passed_checks == 1

    def test_not_null_check_fails(self):
        df = pl.DataFrame({"id": [1, None, 3], "name": ["a", "b", "c"]})

        result = DataValidator().add_not_null_check("id").validate(df)

        assert result.status == ValidationStatus.FAILED
        assert result.failed_checks == 1
        assert result.checks[0].failed_rows == 1

    def test_unique_check_passes(self):
        df = pl.DataFrame({"id": [1, 2, 3]})

        result = DataValidator().add_unique_check("id").validate(df)

        assert result.status == ValidationStatus.PASSED

    def test_unique_check_fails(self):
        df = pl.DataFrame({"id": [1, 2, 1, 1]})

        result = DataValidator().add_unique_check("id").validate(df)

        assert result.status == ValidationStatus.FAILED
        check = result.checks[0]
        assert check.details["duplicate_keys"] == 1
        assert check.failed_rows == 2

    def test_missing_column_fails(self):
        df = pl.DataFrame({"id": [1]})

        result = DataValidator().add_not_null_check("name").validate(df)

        assert result.status == ValidationStatus.FAILED

    def test_range_check(self):
        df = pl.DataFrame({"price": [10.0, 50.0, -5.0, 200.0]})

        result = DataValidator().add_range_check("price", min_value=0, max_value=100).validate(df)

        assert result.status == ValidationStatus.FAILED
        # Two values outside range: -5 and 200
        assert result.checks[0].failed_rows == 2

    def test_warning_gives_partial_status(self):
        df = pl.DataFrame({"quantity": [1, -1]})

        result = DataValidator().add_non_negative_check("quantity").validate(df)

        assert result.status == ValidationStatus.PARTIAL
        assert result.warning_count == 1
        assert result.failures == []

    def test_strict_mode_fails_on_warning(self):
        df = pl.DataFrame({"quantity": [1, -1]})

        result = DataValidator(strict_mode=True).add_non_negative_check("quantity").validate(df)

        assert result.status == ValidationStatus.FAILED

    def test_referential_integrity_check(self):
        facts = pl.DataFrame({"product_id": [1, 2, 9, None]})
        products = pl.DataFrame({"product_id": [1, 2, 3]})

        result = (
            DataValidator()
            .add_referential_integrity_check("product_id", products, "product_id")
            .validate(facts)
        )

        assert result.status == ValidationStatus.FAILED
        assert result.checks[0].details["orphan_count"] == 1


class TestQualityChecker:
    """Tests for QualityChecker reports"""

    def test_clean_customers_pass(self, sample_customers_df):
        report = QualityChecker().check(RecordType.CUSTOMERS, sample_customers_df)

        assert report.row_count == 3
        assert report.null_rows.height == 0
        assert report.duplicate_keys.height == 0
        assert isinstance(report.outcome, Passed)
        report.enforce()

    def test_duplicate_customer_reported(self, sample_customers_df):
        """Two rows sharing customer 7 are reported as (7, 2)"""
        dupes = pl.DataFrame(
            {
                "customer_id": [7, 7],
                "first_name": ["Sam", "Sam"],
                "last_name": ["Vimes", "Vimes"],
                "email": [None, None],
                "phone": [None, None],
                "city": ["Ankh", "Ankh"],
                "state": [None, None],
                "country": ["Discworld", "Discworld"],
            },
            schema=CUSTOMER_SCHEMA,
        )
        df = pl.concat([sample_customers_df, dupes])

        report = QualityChecker().check("customers", df)

        assert report.duplicates == [(7, 2)]
        assert isinstance(report.outcome, Failed)
        assert [v.check for v in report.outcome.violations] == ["unique_customer_id"]

    def test_null_rows_on_required_fields(self, sample_sales_df):
        report = QualityChecker().check(RecordType.SALES, sample_sales_df)

        assert sorted(report.null_rows["sale_id"].to_list()) == [103, 104]
        assert isinstance(report.outcome, Failed)

    def test_optional_fields_do_not_count_as_null_rows(self, sample_products_df):
        """Category and sub-category are not required"""
        report = QualityChecker().check(RecordType.PRODUCTS, sample_products_df)

        assert report.null_rows.height == 0
        assert isinstance(report.outcome, Passed)

    def test_check_does_not_mutate(self, sample_sales_df):
        before = sample_sales_df.clone()

        QualityChecker().check(RecordType.SALES, sample_sales_df)

        assert sample_sales_df.equals(before)

    def test_enforce_raises_on_failure(self, sample_sales_df):
        report = QualityChecker().check(RecordType.SALES, sample_sales_df)

        with pytest.raises(DataQualityError) as exc_info:
            report.enforce()

        assert len(exc_info.value.violations) == 2

    def test_negative_price_is_only_a_warning(self, sample_products_df):
        df = sample_products_df.with_columns(pl.Series("price", [9.99, -1.0, 5.0]))

        report = QualityChecker().check(RecordType.PRODUCTS, df)

        assert report.validation.status == ValidationStatus.PARTIAL
        assert isinstance(report.outcome, Passed)

    def test_check_all(self, sample_products_df, sample_customers_df, sample_sales_df):
        reports = QualityChecker().check_all(sample_products_df, sample_customers_df, sample_sales_df)

        assert set(reports) == {"products", "customers", "sales"}
        assert reports["sales"].summary()["null_rows"] == 2


class TestReferentialIntegrity:
    """Tests for find_orphaned_sales"""

    def test_no_orphans(self, sample_products_df, sample_customers_df, sample_sales_df):
        facts = conform_sales(sample_sales_df.drop_nulls(["customer_id", "product_id"]))

        orphans = find_orphaned_sales(
            facts,
            conform_products(sample_products_df),
            conform_customers(sample_customers_df),
        )

        assert orphans.height == 0

    def test_orphans_found(self, sample_products_df, sample_customers_df, sample_sales_df):
        facts = conform_sales(sample_sales_df.drop_nulls(["customer_id", "product_id"]))
        products = conform_products(sample_products_df.filter(pl.col("product_id") != 2))
        customers = conform_customers(sample_customers_df.filter(pl.col("customer_id") != 3))

        orphans = find_orphaned_sales(facts, products, customers)

        assert sorted(orphans["sale_id"].to_list()) == [101, 102]
        assert orphans.columns == facts.columns

    def test_warehouse_check_reads_loaded_tables(self, engine, sample_products_df, sample_customers_df, sample_sales_df):
        loader = WarehouseLoader(engine)
        products = DataCleaner().clean_products(sample_products_df.filter(pl.col("product_id") != 2))
        loader.load_products(conform_products(products))
        loader.load_customers(conform_customers(sample_customers_df))
        loader.load_sales(conform_sales(sample_sales_df.drop_nulls(["customer_id", "product_id"])))

        orphans = find_orphaned_sales_in_warehouse(engine)

        assert orphans["sale_id"].to_list() == [101]
        assert orphans.columns == ["sale_id", "customer_id", "product_id", "sale_date", "quantity_sold", "unit_price", "total_sale"]

    def test_warehouse_check_on_empty_tables(self, engine):
        assert find_orphaned_sales_in_warehouse(engine).height == 0
