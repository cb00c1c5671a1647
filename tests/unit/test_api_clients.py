"""Unit tests for the catalog and scraping API clients."""

import httpx
import pytest

from catalog_admin.clients.base_client import ApiError
from catalog_admin.clients.catalog_client import CatalogApiClient
from catalog_admin.clients.scraping_client import ScrapingApiClient
from catalog_admin.models import SchedulerTask, ScrapeLogUpdate


def _respond(status: int = 200, **body):
    return lambda request: httpx.Response(status, json=body)


def _catalog(transport, token=None) -> CatalogApiClient:
    return CatalogApiClient("https://catalog.test", token=token, transport=transport)


def _scraping(transport) -> ScrapingApiClient:
    return ScrapingApiClient("https://scraper.test", transport=transport)


# -- Error mapping ----------------------------------------------------------


@pytest.mark.unit
def test_server_message_wins_over_fallback(make_transport):
    transport = make_transport(_respond(400, success=False, message="Invalid URL"))

    with pytest.raises(ApiError) as exc_info:
        _scraping(transport).scrape_product("flipkart", "bad")

    assert exc_info.value.message == "Invalid URL"
    assert exc_info.value.status_code == 400


@pytest.mark.unit
def test_fallback_message_when_server_is_silent(make_transport):
    transport = make_transport(lambda request: httpx.Response(502, text="Bad gateway"))

    with pytest.raises(ApiError, match="Failed to fetch categories."):
        _catalog(transport).get_category_tree()


@pytest.mark.unit
def test_success_false_is_an_error(make_transport):
    transport = make_transport(_respond(200, success=False, message="Product blocked"))

    with pytest.raises(ApiError, match="Product blocked") as exc_info:
        _scraping(transport).scrape_product("amazon", "https://amazon.in/x")

    assert exc_info.value.status_code is None


@pytest.mark.unit
def test_timeout_becomes_api_error(make_transport):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ApiError, match="timed out") as exc_info:
        _scraping(make_transport(handler)).scrape_product("flipkart", "https://x")

    assert exc_info.value.status_code is None


@pytest.mark.unit
def test_connection_error_becomes_api_error(make_transport):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ApiError, match="connection refused"):
        _catalog(make_transport(handler)).list_vendors()


@pytest.mark.unit
def test_empty_query_params_are_dropped(make_transport):
    transport = make_transport(_respond(200, success=True, data=[], pagination={}))

    _scraping(transport).list_scrape_logs(page=2, platform="", status=None, search="towel")

    assert dict(transport.requests[0].url.params) == {"page": "2", "search": "towel"}


# -- Scraping client --------------------------------------------------------


@pytest.mark.unit
def test_scrape_product_maps_camel_case(make_transport, product_json):
    transport = make_transport(_respond(200, success=True, data=product_json))

    product = _scraping(transport).scrape_product("flipkart", product_json["url"])

    request = transport.requests[0]
    assert request.url.path == "/flipkart/scrape-product"
    assert transport.body(request) == {"url": product_json["url"]}
    assert product.current_price == "₹1,299"
    assert product.rating_count == "1,204"
    assert product.seller.name == "TowelWorld"
    assert product.offers[0].has_tnc is True
    assert [crumb.text for crumb in product.breadcrumbs] == ["Home", "Bath Linen"]


@pytest.mark.unit
def test_scrape_category_sends_page(make_transport, category_page_json):
    transport = make_transport(_respond(200, success=True, data=category_page_json))

    page = _scraping(transport).scrape_category("myntra", "https://myntra.com/towels", page=3)

    assert transport.body(transport.requests[0]) == {
        "url": "https://myntra.com/towels",
        "page": 3,
    }
    assert page.total_pages == 4
    assert page.select(["itm-2", "missing"])[0].name == "Hand Towel"


@pytest.mark.unit
def test_scrape_category_rejects_page_zero(make_transport):
    transport = make_transport(_respond(200))

    with pytest.raises(ValueError):
        _scraping(transport).scrape_category("flipkart", "https://x", page=0)

    assert transport.requests == []


@pytest.mark.unit
def test_scrape_log_stats(make_transport):
    transport = make_transport(
        _respond(
            200,
            success=True,
            data={
                "counts": {"completed": 8, "failed": 2},
                "total": 10,
                "successRate": 80,
                "chart": [],
            },
        )
    )

    stats = _scraping(transport).get_scrape_log_stats("2024-05-01", "2024-05-31")

    assert stats.counts == {"completed": 8, "failed": 2}
    assert stats.success_rate == 80.0
    assert transport.requests[0].url.params["startDate"] == "2024-05-01"


@pytest.mark.unit
def test_operation_actions_hit_expected_paths(make_transport):
    transport = make_transport(_respond(200, success=True, data={}))
    client = _scraping(transport)

    client.start_operation("op-1")
    client.fail_operation("op-1", "Site down")
    client.retry_operation("op-1")
    client.cleanup_old_operations(30)

    assert [r.url.path for r in transport.requests] == [
        "/scraping-operations/op-1/start",
        "/scraping-operations/op-1/fail",
        "/scraping-operations/op-1/retry",
        "/job-processor/cleanup",
    ]
    assert transport.body(transport.requests[1]) == {"errorMessage": "Site down"}
    assert transport.body(transport.requests[3]) == {"daysOld": 30}


@pytest.mark.unit
def test_bulk_update_scrape_logs(make_transport):
    transport = make_transport(_respond(200, success=True, data=[{"_id": "a"}]))

    logs = _scraping(transport).bulk_update_scrape_logs(
        [("a", ScrapeLogUpdate(status="cancelled"))]
    )

    assert logs[0].id == "a"
    assert transport.body(transport.requests[0]) == {
        "updates": [{"id": "a", "data": {"status": "cancelled"}}]
    }


# -- Catalog client ---------------------------------------------------------


@pytest.mark.unit
def test_login_stores_bearer_token(make_transport):
    def handler(request):
        if request.url.path == "/admin/login":
            return httpx.Response(
                200,
                json={"success": True, "data": {"token": "tok-1", "admin": {"email": "a@b.c"}}},
            )
        return httpx.Response(200, json={"success": True, "data": {"categories": []}})

    transport = make_transport(handler)
    client = _catalog(transport)

    admin = client.login("a@b.c", "secret")
    client.get_category_tree()

    assert admin == {"email": "a@b.c"}
    assert transport.requests[1].headers["Authorization"] == "Bearer tok-1"


@pytest.mark.unit
def test_login_without_token_fails(make_transport):
    transport = make_transport(_respond(200, success=True, data={}))

    with pytest.raises(ApiError, match="Login failed"):
        _catalog(transport).login("a@b.c", "secret")


@pytest.mark.unit
def test_unauthorized_response_clears_token(make_transport):
    transport = make_transport(_respond(401, success=False, message="Token expired"))
    client = _catalog(transport, token="tok-1")

    with pytest.raises(ApiError, match="Token expired"):
        client.get_profile()

    assert client.token is None
    assert "Authorization" not in client.client.headers


@pytest.mark.unit
def test_verify_token_returns_false_on_401(make_transport):
    transport = make_transport(_respond(401, message="Unauthorized"))

    assert _catalog(transport, token="tok-1").verify_token() is False


@pytest.mark.unit
def test_category_tree_uses_canonical_ids(make_transport, category_tree_json):
    transport = make_transport(
        _respond(200, success=True, data={"categories": category_tree_json})
    )

    tree = _catalog(transport).get_category_tree()

    assert [node.id for node in tree] == ["home", "fashion"]
    assert [child.id for child in tree[0].children] == ["bath", "kitchen"]
    assert tree[0].find_child("bath").children[1].name == "Bath Mats"


@pytest.mark.unit
def test_update_category_requires_a_field(make_transport):
    transport = make_transport(_respond(200))

    with pytest.raises(ValueError):
        _catalog(transport).update_category("home")

    assert transport.requests == []


@pytest.mark.unit
def test_create_product_returns_created_product(make_transport):
    transport = make_transport(
        _respond(200, success=True, data={"product": {"_id": "p-1", "title": "Towel"}})
    )

    product = _catalog(transport).create_product({"title": "Towel", "mrp": 10, "srp": 9})

    assert product == {"_id": "p-1", "title": "Towel"}
    assert transport.requests[0].url.path == "/admin/products"


@pytest.mark.unit
def test_bulk_upload_sends_multipart(make_transport, tmp_path):
    upload = tmp_path / "products.csv"
    upload.write_text("title,mrp\nTowel,10\n", encoding="utf-8")
    transport = make_transport(_respond(200, success=True, message="1 product uploaded"))

    response = _catalog(transport).bulk_upload_products(upload)

    request = transport.requests[0]
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    assert b'filename="products.csv"' in request.content
    assert response["message"] == "1 product uploaded"


@pytest.mark.unit
def test_bulk_upload_missing_file(make_transport, tmp_path):
    with pytest.raises(FileNotFoundError):
        _catalog(make_transport(_respond(200))).bulk_upload_products(tmp_path / "nope.csv")


@pytest.mark.unit
@pytest.mark.parametrize(
    "fields",
    [
        {"task_name": ""},
        {"sub_sub_category_id": "towels", "sub_category_id": None},
        {"sub_category_id": "bath", "main_category_id": None},
    ],
)
def test_scheduler_task_validation(make_transport, fields):
    task = SchedulerTask(
        id="",
        task_name="Nightly towels",
        task_type="category",
        platform="flipkart",
        main_category_id="home",
        sub_category_id="bath",
        sub_sub_category_id="towels",
    )
    for key, value in fields.items():
        setattr(task, key, value)
    transport = make_transport(_respond(200))

    with pytest.raises(ValueError):
        _catalog(transport).create_scheduler_task(task)

    assert transport.requests == []


@pytest.mark.unit
def test_scheduler_task_round_trip(make_transport):
    transport = make_transport(
        _respond(
            200,
            success=True,
            data={
                "task": {
                    "_id": "t-1",
                    "taskName": "Nightly towels",
                    "taskType": "category",
                    "platform": "flipkart",
                    "mainCategoryId": {"_id": "home", "name": "Home"},
                    "schedule": {"startTime": "2024-05-01T00:00:00Z"},
                }
            },
        )
    )
    task = SchedulerTask(
        id="",
        task_name="Nightly towels",
        task_type="category",
        platform="flipkart",
        main_category_id="home",
    )

    created = _catalog(transport).create_scheduler_task(task)

    assert transport.body(transport.requests[0])["mainCategoryId"] == "home"
    assert "subCategoryId" not in transport.body(transport.requests[0])
    assert created.id == "t-1"
    assert created.main_category_id == "home"
    assert created.start_time == "2024-05-01T00:00:00Z"


@pytest.mark.unit
@pytest.mark.parametrize(
    "message,status_code,expected",
    [
        ("Method Not Allowed", 405, True),
        ("Cannot PATCH /scrape-logs/1", 404, True),
        ("Cannot PATCH /scrape-logs/1", 500, False),
        ("Cannot PATCH /scrape-logs/1", None, False),
        ("Scrape log not found", 404, False),
    ],
)
def test_method_not_allowed_detection(message, status_code, expected):
    assert ApiError(message, status_code=status_code).is_method_not_allowed is expected
