"""Client for the remote scraping service.

Covers the per-platform scrape endpoints, scrape logs, scraping operations
and the server-side job processor. The service is unauthenticated.
"""

from typing import Any, Optional

import httpx

from catalog_admin.clients.base_client import ApiClient, ApiError
from catalog_admin.config import AppConfig
from catalog_admin.models import (
    CategoryPage,
    Pagination,
    ScrapedProduct,
    ScrapeLog,
    ScrapeLogDraft,
    ScrapeLogStats,
    ScrapeLogUpdate,
    ScrapingOperation,
)
from catalog_admin.types import ScrapeLogId


class ScrapingApiClient(ApiClient):
    """Wrapper around the scraping service REST API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(base_url, timeout, transport=transport)

    @classmethod
    def from_config(cls, config: AppConfig) -> "ScrapingApiClient":
        return cls(config.scraping_api_url, timeout=config.scraping_timeout)

    # -- Scraping -----------------------------------------------------------

    def scrape_product(self, platform: str, url: str) -> ScrapedProduct:
        """Scrape one product detail page.

        Raises:
            ApiError: If the service fails or reports ``success: false``
        """
        data = self.request_data(
            "POST",
            f"/{platform}/scrape-product",
            f"Failed to scrape {platform} product.",
            json={"url": url},
        )
        if not isinstance(data, dict):
            raise ApiError(f"Failed to scrape {platform} product.")
        return ScrapedProduct.from_api(data)

    def scrape_category(self, platform: str, url: str, page: int = 1) -> CategoryPage:
        """Scrape one page of a category listing."""
        if page < 1:
            raise ValueError("Page number must be at least 1")

        data = self.request_data(
            "POST",
            f"/{platform}/scrape-category",
            f"Failed to scrape {platform} category.",
            json={"url": url, "page": page},
        )
        if not isinstance(data, dict):
            raise ApiError(f"Failed to scrape {platform} category.")
        return CategoryPage.from_api(data)

    # -- Scrape logs ----------------------------------------------------------

    def create_scrape_log(self, draft: ScrapeLogDraft) -> ScrapeLog:
        data = self.request_data(
            "POST", "/scrape-logs", "Failed to create scrape log.", json=draft.to_payload()
        )
        return ScrapeLog.from_api(data or {})

    def update_scrape_log(
        self, log_id: ScrapeLogId, update: ScrapeLogUpdate, method: str = "PATCH"
    ) -> ScrapeLog:
        """Send a partial update with the given verb.

        Verb selection and the 405 fallback live in ``ScrapeLogRecorder``.
        """
        data = self.request_data(
            method,
            f"/scrape-logs/{log_id}",
            f"Failed to update scrape log with {method} method.",
            json=update.to_payload(),
        )
        return ScrapeLog.from_api(data or {})

    def list_scrape_logs(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        platform: Optional[str] = None,
        type: Optional[str] = None,
        status: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        search: Optional[str] = None,
        category: Optional[str] = None,
    ) -> tuple[list[ScrapeLog], Pagination]:
        body = self.request(
            "GET",
            "/scrape-logs",
            "Failed to fetch scrape logs.",
            params={
                "page": page,
                "limit": limit,
                "platform": platform,
                "type": type,
                "status": status,
                "startDate": start_date,
                "endDate": end_date,
                "search": search,
                "category": category,
            },
        )
        logs = [ScrapeLog.from_api(item) for item in body.get("data") or []]
        return logs, Pagination.from_api(body.get("pagination"))

    def get_scrape_log_stats(
        self,
        start_date: str,
        end_date: str,
        platform: Optional[str] = None,
        type: Optional[str] = None,
    ) -> ScrapeLogStats:
        data = self.request_data(
            "GET",
            "/scrape-logs/stats",
            "Failed to fetch scrape logs stats.",
            params={
                "startDate": start_date,
                "endDate": end_date,
                "platform": platform,
                "type": type,
            },
        )
        return ScrapeLogStats.from_api(data or {})

    def bulk_update_scrape_logs(
        self, updates: list[tuple[ScrapeLogId, ScrapeLogUpdate]]
    ) -> list[ScrapeLog]:
        data = self.request_data(
            "PATCH",
            "/scrape-logs/bulk-update",
            "Failed to bulk update scrape logs.",
            json={
                "updates": [
                    {"id": log_id, "data": update.to_payload()}
                    for log_id, update in updates
                ]
            },
        )
        return [ScrapeLog.from_api(item) for item in data or []]

    # -- Scraping operations --------------------------------------------------

    def list_operations(
        self,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        status: Optional[str] = None,
        seller: Optional[str] = None,
        type: Optional[str] = None,
        category: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        search: Optional[str] = None,
    ) -> tuple[list[ScrapingOperation], Pagination]:
        body = self.request(
            "GET",
            "/scraping-operations",
            "Failed to fetch scraping operations.",
            params={
                "page": page,
                "limit": limit,
                "status": status,
                "seller": seller,
                "type": type,
                "category": category,
                "startDate": start_date,
                "endDate": end_date,
                "sortBy": sort_by,
                "sortOrder": sort_order,
                "search": search,
            },
        )
        operations = [ScrapingOperation.from_api(item) for item in body.get("data") or []]
        return operations, Pagination.from_api(body.get("pagination"))

    def get_operations_stats(
        self,
        seller: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> dict[str, Any]:
        return self.request_data(
            "GET",
            "/scraping-operations/stats",
            "Failed to fetch scraping operations statistics.",
            params={"seller": seller, "startDate": start_date, "endDate": end_date},
        ) or {}

    def get_operation(self, operation_id: str) -> ScrapingOperation:
        data = self.request_data(
            "GET",
            f"/scraping-operations/{operation_id}",
            "Failed to fetch scraping operation.",
        )
        return ScrapingOperation.from_api(data or {})

    def create_operation(
        self,
        url: str,
        seller: str,
        type: str = "product",
        category: Optional[str] = None,
        config: Optional[dict[str, Any]] = None,
        notes: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> ScrapingOperation:
        payload = {
            "url": url,
            "seller": seller,
            "type": type,
            "category": category,
            "config": config,
            "notes": notes,
            "tags": tags,
        }
        data = self.request_data(
            "POST",
            "/scraping-operations",
            "Failed to create scraping operation.",
            json={key: value for key, value in payload.items() if value is not None},
        )
        return ScrapingOperation.from_api(data or {})

    def update_operation(self, operation_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        return self.request_data(
            "PUT",
            f"/scraping-operations/{operation_id}",
            "Failed to update scraping operation.",
            json=fields,
        ) or {}

    def start_operation(self, operation_id: str) -> dict[str, Any]:
        return self.request_data(
            "POST",
            f"/scraping-operations/{operation_id}/start",
            "Failed to start scraping operation.",
        ) or {}

    def complete_operation(
        self,
        operation_id: str,
        scraped_data: Any,
        total_products: int,
        data_file: Optional[str] = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "scrapedData": scraped_data,
            "totalProducts": total_products,
        }
        if data_file:
            payload["dataFile"] = data_file
        return self.request_data(
            "POST",
            f"/scraping-operations/{operation_id}/complete",
            "Failed to complete scraping operation.",
            json=payload,
        ) or {}

    def fail_operation(
        self, operation_id: str, error_message: str, error_details: Any = None
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"errorMessage": error_message}
        if error_details is not None:
            payload["errorDetails"] = error_details
        return self.request_data(
            "POST",
            f"/scraping-operations/{operation_id}/fail",
            "Failed to mark scraping operation as failed.",
            json=payload,
        ) or {}

    def retry_operation(self, operation_id: str) -> dict[str, Any]:
        return self.request_data(
            "POST",
            f"/scraping-operations/{operation_id}/retry",
            "Failed to retry scraping operation.",
        ) or {}

    def delete_operation(self, operation_id: str) -> None:
        self.request(
            "DELETE",
            f"/scraping-operations/{operation_id}",
            "Failed to delete scraping operation.",
        )

    def get_operation_data(self, operation_id: str) -> Any:
        return self.request_data(
            "GET",
            f"/scraping-operations/{operation_id}/data",
            "Failed to fetch scraped data.",
        )

    # -- Job processor --------------------------------------------------------

    def get_job_processor_status(self) -> dict[str, Any]:
        return self.request_data(
            "GET", "/job-processor/status", "Failed to fetch job processor status."
        ) or {}

    def start_job_processor(self) -> str:
        body = self.request("POST", "/job-processor/start", "Failed to start job processor.")
        return body.get("message") or ""

    def stop_job_processor(self) -> str:
        body = self.request("POST", "/job-processor/stop", "Failed to stop job processor.")
        return body.get("message") or ""

    def trigger_job_processor(self) -> str:
        body = self.request(
            "POST", "/job-processor/trigger", "Failed to trigger job processor."
        )
        return body.get("message") or ""

    def retry_failed_operations(self) -> list[dict[str, Any]]:
        return self.request_data(
            "POST", "/job-processor/retry-failed", "Failed to retry failed operations."
        ) or []

    def cleanup_old_operations(self, days_old: int) -> list[str]:
        if days_old < 1:
            raise ValueError("days_old must be at least 1")
        return self.request_data(
            "POST",
            "/job-processor/cleanup",
            "Failed to cleanup old operations.",
            json={"daysOld": days_old},
        ) or []

    def update_processing_interval(self, interval_ms: int) -> str:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        body = self.request(
            "PUT",
            "/job-processor/interval",
            "Failed to update processing interval.",
            json={"intervalMs": interval_ms},
        )
        return body.get("message") or ""
