"""Unit tests for the scraped-product to catalog payload mapping."""

from dataclasses import replace

import pytest

from catalog_admin.categories.selector import CategoryHierarchySelector
from catalog_admin.insertion.payload_mapper import (
    NO_DESCRIPTION,
    build_detailed_description,
    build_keywords,
    build_short_description,
    map_to_insertion_payload,
)
from catalog_admin.models import CategorySelection, ProductImage, ProductImages


@pytest.fixture
def selection(category_tree):
    return CategoryHierarchySelector(category_tree).select_path("home", "bath", "towels")


@pytest.mark.unit
def test_short_description_uses_first_highlight(scraped_product):
    assert build_short_description(scraped_product) == "100% cotton"


@pytest.mark.unit
def test_short_description_falls_back_to_first_eight_title_words(scraped_product):
    product = replace(scraped_product, highlights=[])

    assert build_short_description(product) == "Acme Ultra Soft Cotton Bath Towel Set of"


@pytest.mark.unit
def test_short_description_with_short_title(scraped_product):
    product = replace(scraped_product, highlights=[], title="  Plain   Towel ")

    assert build_short_description(product) == "Plain Towel"


@pytest.mark.unit
@pytest.mark.parametrize(
    "description,highlights,expected",
    [
        ("Soft and absorbent.", ["a", "b"], "Soft and absorbent."),
        ("", ["100% cotton", "Quick dry"], "100% cotton. Quick dry"),
        ("", [], NO_DESCRIPTION),
        ("   ", [], NO_DESCRIPTION),
    ],
)
def test_detailed_description_fallbacks(scraped_product, description, highlights, expected):
    product = replace(scraped_product, description=description, highlights=highlights)

    assert build_detailed_description(product) == expected


@pytest.mark.unit
def test_keywords_combine_title_breadcrumbs_and_categories(scraped_product, selection):
    assert build_keywords(scraped_product, selection) == [
        "Acme",
        "Ultra",
        "Soft",
        "Home",
        "Bath Linen",
        "Home",
        "Bath",
        "Towels",
    ]


@pytest.mark.unit
def test_keywords_drop_empty_entries(scraped_product):
    product = replace(scraped_product, title="", breadcrumbs=[])
    selection = CategorySelection()

    assert build_keywords(product, selection) == []


@pytest.mark.unit
def test_map_payload_full_structure(scraped_product, selection):
    payload = map_to_insertion_payload(scraped_product, selection, platform="flipkart")

    assert payload["title"] == scraped_product.title
    assert payload["mrp"] == 2500  # "₹2,499.50" rounds half-up
    assert payload["srp"] == 1299
    assert payload["shortDescription"] == "100% cotton"
    assert payload["detailedDescription"] == "100% cotton. Quick dry"
    assert payload["mainImage"] == "https://img.test/t1.jpg"
    assert payload["additionalImages"] == [
        "https://img.test/t2.jpg",
        "https://img.test/t3.jpg",
        "https://img.test/t4.jpg",
    ]
    assert payload["specifications"] == [
        {"key": "Material", "value": "Cotton"},
        {"key": "Pack of", "value": "4"},
    ]
    assert payload["categoryId"] == "towels"
    assert payload["categoryPath"] == ["home", "bath", "towels"]
    assert payload["vendorSite"] == "flipkart"
    assert payload["productUrl"] == scraped_product.url
    assert payload["isActive"] is True


@pytest.mark.unit
def test_map_payload_leaf_is_deepest_selected_level(scraped_product, category_tree):
    selection = CategoryHierarchySelector(category_tree).select_path("home", "kitchen")

    payload = map_to_insertion_payload(scraped_product, selection)

    assert payload["categoryId"] == "kitchen"
    assert payload["categoryPath"] == ["home", "kitchen"]
    assert "vendorSite" not in payload


@pytest.mark.unit
def test_map_payload_without_thumbnails(scraped_product, selection):
    product = replace(
        scraped_product,
        images=ProductImages(main=[ProductImage(url="https://img.test/main.jpg")]),
    )

    payload = map_to_insertion_payload(product, selection)

    assert payload["mainImage"] == ""
    assert payload["additionalImages"] == []


@pytest.mark.unit
def test_map_payload_requires_main_category(scraped_product):
    with pytest.raises(ValueError, match="main category"):
        map_to_insertion_payload(scraped_product, CategorySelection())
