"""Shared fixtures: canned API payloads and a recording mock transport."""

import json

import httpx
import pytest

from catalog_admin.models import Category, ScrapedProduct


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)

    def calls(self, method: str, path_prefix: str = "") -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.method == method and request.url.path.startswith(path_prefix)
        ]

    @staticmethod
    def body(request: httpx.Request) -> dict:
        return json.loads(request.content)


@pytest.fixture
def product_json():
    return {
        "id": "itm-1",
        "title": "Acme Ultra Soft Cotton Bath Towel Set of Four Large",
        "url": "https://www.flipkart.com/towel/p/itm-1",
        "currentPrice": "₹1,299",
        "originalPrice": "₹2,499.50",
        "discount": "48% off",
        "rating": "4.3",
        "ratingCount": "1,204",
        "reviewCount": "180",
        "images": {
            "main": [{"url": "https://img.test/main.jpg"}],
            "thumbnails": [
                {"url": "https://img.test/t1.jpg"},
                {"url": "https://img.test/t2.jpg"},
                {"url": "https://img.test/t3.jpg"},
                {"url": "https://img.test/t4.jpg"},
                {"url": "https://img.test/t5.jpg"},
            ],
            "highQuality": [],
        },
        "description": "",
        "highlights": ["100% cotton", "Quick dry"],
        "specifications": {"Material": "Cotton", "Pack of": "4"},
        "seller": {"name": "TowelWorld", "rating": "4.5", "policies": []},
        "offers": [{"type": "Bank Offer", "description": "10% off", "hasTnC": True}],
        "breadcrumbs": [
            {"text": "Home", "url": "/"},
            {"text": "Bath Linen", "url": "/bath"},
        ],
        "availability": "In stock",
        "delivery": {"date": "Tomorrow", "time": "", "cost": "Free"},
        "scrapedAt": "2024-05-01T10:00:00Z",
    }


@pytest.fixture
def scraped_product(product_json):
    return ScrapedProduct.from_api(product_json)


@pytest.fixture
def category_tree_json():
    return [
        {
            "_id": "home",
            "name": "Home",
            "slug": "home",
            "isActive": True,
            "subcategory": [
                {
                    "_id": "bath",
                    "name": "Bath",
                    "subcategory": [
                        {"_id": "towels", "name": "Towels"},
                        {"_id": "mats", "name": "Bath Mats"},
                    ],
                },
                {
                    "_id": "kitchen",
                    "name": "Kitchen",
                    "subcategory": [{"_id": "cookware", "name": "Cookware"}],
                },
            ],
        },
        {"id": "fashion", "name": "Fashion", "subcategories": []},
    ]


@pytest.fixture
def category_tree(category_tree_json):
    return [Category.from_api(node) for node in category_tree_json]


@pytest.fixture
def category_page_json():
    return {
        "page": 1,
        "url": "https://www.flipkart.com/bath-towels",
        "products": [
            {
                "productId": "itm-1",
                "productName": "Towel Set",
                "productUrl": "https://www.flipkart.com/towel/p/itm-1",
                "sellingPrice": "₹1,299",
            },
            {
                "productId": "itm-2",
                "productName": "Hand Towel",
                "productUrl": "https://www.flipkart.com/hand/p/itm-2",
                "sellingPrice": "₹299",
            },
            {"productId": "itm-3", "productName": "Broken Listing", "productUrl": ""},
        ],
        "pagination": {"currentPage": 1, "totalPages": 4, "hasNextPage": True},
        "totalProducts": 3,
    }


@pytest.fixture
def make_transport():
    """Factory for ``RecordingTransport`` instances."""
    return RecordingTransport
