"""Mapping from scraped product records to catalog insertion payloads.

All functions here are pure: the same scraped product and category selection
always produce the same payload.
"""

import re
from typing import Any, Optional

from catalog_admin.models import CategorySelection, ScrapedProduct
from catalog_admin.utils.rounding import round_half_up

NO_DESCRIPTION = "No description available"
SHORT_DESCRIPTION_WORDS = 8
TITLE_KEYWORDS = 3
ADDITIONAL_IMAGES = 3

_AMOUNT = re.compile(r"\d[\d,]*(?:\.\d+)?")


def parse_price(text: Optional[str]) -> int:
    """Parse a display price into a whole number.

    The first amount in the text is taken with its thousands separators
    removed, so currency tokens such as ``Rs.`` are ignored. The value is
    rounded half-up. Text without an amount yields 0.

    Examples:
        >>> parse_price("₹1,999")
        1999
        >>> parse_price("$12.50")
        13
        >>> parse_price("Rs. 1,999")
        1999
        >>> parse_price("N/A")
        0
    """
    if not text:
        return 0

    match = _AMOUNT.search(str(text))
    if match is None:
        return 0
    return round_half_up(float(match.group().replace(",", "")))


def build_short_description(product: ScrapedProduct) -> str:
    """First highlight, else the first eight words of the title."""
    if product.highlights and product.highlights[0].strip():
        return product.highlights[0].strip()
    return " ".join(product.title.split()[:SHORT_DESCRIPTION_WORDS])


def build_detailed_description(product: ScrapedProduct) -> str:
    if product.description.strip():
        return product.description.strip()

    highlights = [item.strip() for item in product.highlights if item.strip()]
    if highlights:
        return ". ".join(highlights)
    return NO_DESCRIPTION


def build_keywords(product: ScrapedProduct, selection: CategorySelection) -> list[str]:
    """Title head words, breadcrumb texts and category names, empties removed."""
    candidates = product.title.split()[:TITLE_KEYWORDS]
    candidates += [crumb.text.strip() for crumb in product.breadcrumbs]
    candidates += selection.names
    return [keyword for keyword in candidates if keyword]


def map_to_insertion_payload(
    product: ScrapedProduct,
    selection: CategorySelection,
    platform: Optional[str] = None,
) -> dict[str, Any]:
    """Build the ``POST /admin/products`` body for a scraped product.

    Args:
        product: Detail-scraped product
        selection: Resolved category selection; a main category is required
        platform: Source platform, stored as the vendor site

    Returns:
        JSON-ready payload in the catalog's camelCase schema

    Raises:
        ValueError: If no main category is selected
    """
    if selection.main is None:
        raise ValueError("Please select a main category")

    thumbnails = [image.url for image in product.images.thumbnails if image.url]
    leaf = selection.leaf

    payload: dict[str, Any] = {
        "title": product.title,
        "mrp": parse_price(product.original_price),
        "srp": parse_price(product.current_price),
        "description": build_detailed_description(product),
        "shortDescription": build_short_description(product),
        "detailedDescription": build_detailed_description(product),
        "features": list(product.highlights),
        "highlights": list(product.highlights),
        "specifications": [
            {"key": key, "value": value}
            for key, value in product.specifications.items()
        ],
        "attributes": [],
        "mainImage": thumbnails[0] if thumbnails else "",
        "additionalImages": thumbnails[1 : 1 + ADDITIONAL_IMAGES],
        "keywords": build_keywords(product, selection),
        "productUrl": product.url,
        "categoryId": leaf.id,
        "categoryPath": list(selection.path),
        "isActive": True,
    }
    if platform:
        payload["vendorSite"] = platform
    return payload
