"""Unit tests for the bulk-upload preview."""

import pandas as pd
import pytest

from catalog_admin.bulk_upload.csv_preview import preview_upload


@pytest.mark.unit
def test_csv_preview(tmp_path):
    path = tmp_path / "products.csv"
    path.write_text(
        "Title,MRP,SRP,Description,Category\n"
        "Towel,499,399,Soft towel,Bath\n"
        "Mat,299,,,Bath\n"
        "Mug,199,149,Ceramic,Kitchen\n",
        encoding="utf-8",
    )

    preview = preview_upload(path, rows=2)

    assert preview.row_count == 3
    assert preview.columns == ["Title", "MRP", "SRP", "Description", "Category"]
    assert preview.missing_columns == []
    assert preview.head == [
        {"Title": "Towel", "MRP": "499", "SRP": "399", "Description": "Soft towel", "Category": "Bath"},
        {"Title": "Mat", "MRP": "299", "SRP": "", "Description": "", "Category": "Bath"},
    ]
    assert preview.looks_valid is True


@pytest.mark.unit
def test_missing_recommended_columns(tmp_path):
    path = tmp_path / "partial.csv"
    path.write_text("title,price\nTowel,499\n", encoding="utf-8")

    preview = preview_upload(path)

    assert preview.missing_columns == ["mrp", "srp", "description", "category"]
    assert preview.looks_valid is False


@pytest.mark.unit
def test_excel_preview(tmp_path):
    path = tmp_path / "products.xlsx"
    pd.DataFrame(
        [{"title": "Towel", "mrp": 499, "srp": 399, "description": "x", "category": "Bath"}]
    ).to_excel(path, index=False)

    preview = preview_upload(path)

    assert preview.row_count == 1
    assert preview.head[0]["mrp"] == "499"


@pytest.mark.unit
@pytest.mark.parametrize("name", ["products.json", "legacy.xls"])
def test_unsupported_extension(tmp_path, name):
    path = tmp_path / name
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(ValueError, match="Unsupported file type"):
        preview_upload(path)


@pytest.mark.unit
def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        preview_upload(tmp_path / "nope.csv")
