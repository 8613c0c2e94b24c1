#!/usr/bin/env python3
"""
Product catalog import example.

Run with:
    sqlmodel-importer run examples.products.importer:ProductImporter \
        examples/products/products.csv --database-url sqlite:///products.db --create-tables

or directly:
    python -m examples.products.importer examples/products/products.csv
"""

import sys

from sqlmodel_importer import BaseImporter, CsvSource, ImporterSettings
from sqlmodel_importer.utils import configure_logging

from .models import Product, ProductRow


class ProductImporter(BaseImporter):
    """Supplier catalog feed -> product table.

    The feed is a full snapshot: products missing from it are removed.
    """

    name = "products"
    model = Product
    key_columns = ("sku",)
    required_columns = ("SKU", "Product Name", "Price")
    column_map = {
        "SKU": "sku",
        "Product Name": "name",
        "Category": "category",
        "Price": "price",
        "Stock": "in_stock",
    }
    row_schema = ProductRow
    max_errors = 5
    max_shrink_ratio = 0.5
    delete_missing = True

    def transform_row(self, row):
        if (row.get("sku") or "").startswith("#"):
            return None  # commented-out line in the feed
        row["in_stock"] = (row.get("in_stock") or "0") != "0"
        if row.get("price"):
            row["price"] = row["price"].replace("$", "").replace(",", "")
        return row


def main():
    settings = ImporterSettings.from_env()
    configure_logging(settings.log_level)

    importer = ProductImporter(settings.create_engine(), settings)
    importer.create_tables()

    result = importer.run(CsvSource(sys.argv[1]))
    print(result.as_dict())


if __name__ == "__main__":
    main()
