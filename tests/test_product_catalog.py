import pytest
from openpyxl import Workbook

from social_bot.services.product_catalog import Product, ProductCatalog, load_product_catalog


def write_sheet(path, rows):
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    workbook.save(path)
    return path


class TestProductCatalog:
    def test_lookup_ignores_case_and_whitespace(self):
        catalog = ProductCatalog([Product(type="Sofa", size="Large", price=1200)])

        assert catalog.find(" sofa", "LARGE ").price == 1200
        assert catalog.find("sofa", "small") is None

    def test_first_duplicate_wins(self):
        catalog = ProductCatalog(
            [Product(type="sofa", size="large", price=1200), Product(type="SOFA", size="large", price=999)]
        )

        assert len(catalog) == 1
        assert catalog.find("sofa", "large").price == 1200


class TestLoadProductCatalog:
    def test_loads_rows(self, tmp_path):
        path = write_sheet(
            tmp_path / "products.xlsx",
            [
                ["product_type", "size", "price"],
                ["sofa", "large", 1200],
                ["pillow", "small", "250"],
                ["chair", "medium", 450.0],
            ],
        )

        catalog = load_product_catalog(path)

        assert len(catalog) == 3
        assert catalog.find("pillow", "small").price == 250
        assert catalog.find("chair", "medium").price == 450

    def test_columns_in_any_order(self, tmp_path):
        path = write_sheet(tmp_path / "products.xlsx", [["Price", "Size", "Product_Type"], [300, "xl", "cover"]])

        assert load_product_catalog(path).find("cover", "xl").price == 300

    def test_incomplete_rows_are_skipped(self, tmp_path):
        path = write_sheet(
            tmp_path / "products.xlsx",
            [
                ["product_type", "size", "price"],
                ["sofa", None, 1200],
                ["sofa", "large", None],
                ["sofa", "large", "n/a"],
                ["pillow", "small", 250],
            ],
        )

        catalog = load_product_catalog(path)

        assert len(catalog) == 1
        assert catalog.find("sofa", "large") is None

    def test_missing_file_gives_empty_catalog(self, tmp_path):
        assert len(load_product_catalog(tmp_path / "missing.xlsx")) == 0

    def test_missing_column_is_an_error(self, tmp_path):
        path = write_sheet(tmp_path / "products.xlsx", [["product_type", "price"], ["sofa", 1200]])

        with pytest.raises(ValueError, match="size"):
            load_product_catalog(path)
