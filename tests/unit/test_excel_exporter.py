"""Unit tests for the Excel exporter."""

from pathlib import Path

import pandas as pd
import pytest
from openpyxl import load_workbook

from catalog_admin.exporters.excel_exporter import export_scraped_to_excel
from catalog_admin.models import CategoryPage


@pytest.mark.unit
def test_export_detailed_products(tmp_path, scraped_product):
    output = tmp_path / "nested" / "products.xlsx"

    result = export_scraped_to_excel([scraped_product], str(output))

    assert result == Path(output)
    df = pd.read_excel(result, dtype=str)
    assert len(df) == 1
    row = df.iloc[0]
    assert row["Title"] == scraped_product.title
    assert row["Current Price"] == "₹1,299"
    assert row["Seller"] == "TowelWorld"
    assert row["Highlights"] == "100% cotton\nQuick dry"


@pytest.mark.unit
def test_export_category_listing(tmp_path, category_page_json):
    page = CategoryPage.from_api(category_page_json)

    result = export_scraped_to_excel(page.products, str(tmp_path / "listing.xlsx"), "Listing")

    df = pd.read_excel(result, sheet_name="Listing", dtype=str)
    assert list(df["Product ID"]) == ["itm-1", "itm-2", "itm-3"]


@pytest.mark.unit
def test_column_widths_are_capped(tmp_path, scraped_product):
    scraped_product.description = "x" * 400

    result = export_scraped_to_excel([scraped_product], str(tmp_path / "wide.xlsx"))

    sheet = load_workbook(result)["Products"]
    widths = [dim.width for dim in sheet.column_dimensions.values()]
    assert max(widths) == 50


@pytest.mark.unit
def test_empty_export_raises(tmp_path):
    with pytest.raises(ValueError, match="empty"):
        export_scraped_to_excel([], str(tmp_path / "empty.xlsx"))
