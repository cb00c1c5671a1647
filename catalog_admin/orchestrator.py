"""Orchestrator for the category scraping workflow.

Fetches a category page, then scrapes the user-selected products one by one
while a scrape log on the scraping service tracks the run.
"""

import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Optional

from loguru import logger

from catalog_admin.clients.base_client import ApiError
from catalog_admin.clients.scraping_client import ScrapingApiClient
from catalog_admin.config import AppConfig
from catalog_admin.models import (
    CategoryPage,
    Progress,
    ScrapedCategoryProduct,
    ScrapedProduct,
    ScrapeLogDraft,
)
from catalog_admin.scrape_log.recorder import (
    ScrapeLogRecorder,
    compute_progress,
    utc_now_iso,
)
from catalog_admin.types import SUPPORTED_PLATFORMS, ProductId, ScrapeLogId
from catalog_admin.utils.rate_limiter import SequentialRateLimiter

MISSING_URL_ERROR = "Product URL is missing"


@dataclass
class CategoryScrapeResult:
    """Outcome of one category scrape run.

    ``detailed_products`` and ``errors`` are keyed by the category item id and
    are only mutated by the orchestrator loop (or an explicit retry).
    """

    platform: str
    category: str
    url: str
    total: int
    log_id: Optional[ScrapeLogId] = None
    detailed_products: dict[ProductId, ScrapedProduct] = field(default_factory=dict)
    errors: dict[ProductId, str] = field(default_factory=dict)
    status: str = "pending"
    retry_count: int = 0
    duration_ms: int = 0

    @property
    def scraped(self) -> int:
        return len(self.detailed_products)

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def failed_ids(self) -> list[ProductId]:
        return list(self.errors)

    @property
    def progress(self) -> Progress:
        return compute_progress(self.scraped, self.failed, self.total)


@dataclass
class CategoryScrapeRun:
    """Per-run context holding the scrape logs currently being written."""

    active_log_ids: set[ScrapeLogId] = field(default_factory=set)

    @property
    def is_active(self) -> bool:
        return bool(self.active_log_ids)


ProgressCallback = Callable[[CategoryScrapeResult], None]


class CategoryScrapeOrchestrator:
    """Coordinates category listing, detail scraping and scrape-log updates."""

    def __init__(
        self,
        client: ScrapingApiClient,
        recorder: Optional[ScrapeLogRecorder] = None,
        limiter: Optional[SequentialRateLimiter] = None,
        progress_batch_size: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize orchestrator.

        Args:
            client: Scraping service client
            recorder: Scrape-log recorder (built from ``client`` if omitted)
            limiter: Limiter spacing out detail scrapes (1 s default)
            progress_batch_size: Push a progress update every N items
            clock: Monotonic clock used for run durations
        """
        if progress_batch_size < 1:
            raise ValueError("progress_batch_size must be at least 1")

        self.client = client
        self.recorder = recorder or ScrapeLogRecorder(client)
        self.limiter = limiter or SequentialRateLimiter()
        self.progress_batch_size = progress_batch_size
        self._clock = clock

    @classmethod
    def from_config(cls, config: AppConfig) -> "CategoryScrapeOrchestrator":
        client = ScrapingApiClient.from_config(config)
        return cls(
            client,
            recorder=ScrapeLogRecorder(client, config.scrape_log_accepts_patch),
            limiter=SequentialRateLimiter(delay_seconds=config.item_delay),
            progress_batch_size=config.progress_batch_size,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "CategoryScrapeOrchestrator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def fetch_category_page(self, platform: str, url: str, page: int = 1) -> CategoryPage:
        """Fetch one page of a category listing.

        Raises:
            ValueError: If the platform is unsupported or the URL is empty
            ApiError: If the scraping service fails
        """
        _validate_platform(platform)
        if not url or not url.strip():
            raise ValueError("Category URL is required")

        logger.info(f"Fetching {platform} category page {page}: {url}")
        category_page = self.client.scrape_category(platform, url.strip(), page)
        logger.info(
            f"Found {len(category_page.products)} products "
            f"(page {category_page.current_page}/{category_page.total_pages})"
        )
        return category_page

    def scrape_selected(
        self,
        platform: str,
        items: list[ScrapedCategoryProduct],
        category_label: str,
        url: str,
        operation_id: Optional[str] = None,
        run: Optional[CategoryScrapeRun] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> CategoryScrapeResult:
        """Scrape the selected category items sequentially.

        Per-item failures are tallied on the result and never stop the loop.
        The scrape log ends as ``completed`` once every item was attempted.

        Args:
            platform: Platform the items belong to
            items: Selected category items
            category_label: Human readable category path stored on the log
            url: Category URL the items were listed from
            operation_id: Optional scraping operation to link the log to
            run: Run context tracking active log ids
            on_progress: Called with the result after each progress push

        Returns:
            Result with scraped products, errors and the log id

        Raises:
            ValueError: If the platform is unsupported, nothing is selected or
                a selected product id is empty or repeated
            ApiError: If the scrape log cannot be created or updated
        """
        _validate_platform(platform)
        if not items:
            raise ValueError("Select at least one product to scrape")
        _validate_item_ids(items)

        run = run or CategoryScrapeRun()
        result = CategoryScrapeResult(
            platform=platform, category=category_label, url=url, total=len(items)
        )
        started = self._clock()

        result.log_id = self.recorder.create(
            ScrapeLogDraft(
                platform=platform,
                type="category",
                url=url,
                when=utc_now_iso(),
                category=category_label,
                status="in_progress",
                action="start_category_scraping",
                operation_id=operation_id,
            )
        )
        run.active_log_ids.add(result.log_id)
        result.status = "in_progress"

        logger.info(
            f"Scraping {result.total} products from {platform} category '{category_label}'"
        )

        try:
            for index, item in enumerate(items, start=1):
                self._scrape_item(platform, item, result)

                if index % self.progress_batch_size == 0 or index == result.total:
                    self._push_or_fail(
                        result, started, "in_progress", "scrape_category_products"
                    )
                    # Callback errors reach the caller but leave the log alone
                    if on_progress:
                        on_progress(result)

            self._push_or_fail(result, started, "completed", "complete_category_scraping")
            result.status = "completed"
        finally:
            run.active_log_ids.discard(result.log_id)

        logger.success(
            f"Category scraping complete: {result.scraped}/{result.total} scraped, "
            f"{result.failed} failed"
        )
        return result

    def retry_item(
        self, result: CategoryScrapeResult, item: ScrapedCategoryProduct
    ) -> bool:
        """Re-scrape one previously failed item on explicit request.

        Returns:
            True if the item was scraped this time

        Raises:
            ValueError: If the item has no URL or did not fail in this run
        """
        if item.id not in result.errors:
            raise ValueError(f"Product {item.id} did not fail in this run")
        if not item.product_url:
            raise ValueError(MISSING_URL_ERROR)

        logger.info(f"Retrying {item.name or item.id}")
        try:
            with self.limiter.limit():
                product = self.client.scrape_product(result.platform, item.product_url)
        except Exception as e:
            result.errors[item.id] = str(e)
            logger.error(f"✗ Retry failed for {item.id}: {e}")
            return False

        del result.errors[item.id]
        result.detailed_products[item.id] = product
        result.retry_count += 1
        logger.info(f"✓ Retried: {product.title or item.name}")

        if result.log_id:
            self._push_progress(result, "completed", "Retry")
        return True

    def _scrape_item(
        self, platform: str, item: ScrapedCategoryProduct, result: CategoryScrapeResult
    ) -> None:
        if not item.product_url:
            result.errors[item.id] = MISSING_URL_ERROR
            logger.warning(f"✗ Skipped {item.id}: {MISSING_URL_ERROR}")
            return

        try:
            with self.limiter.limit():
                product = self.client.scrape_product(platform, item.product_url)
        except Exception as e:
            result.errors[item.id] = str(e)
            logger.error(f"✗ Failed to scrape {item.id}: {e}")
            return

        result.detailed_products[item.id] = product
        logger.info(f"✓ Scraped: {product.title or item.name} ({item.id})")

    def _push_progress(self, result: CategoryScrapeResult, status: str, action: str) -> None:
        self.recorder.report_progress(
            result.log_id,
            scraped=result.scraped,
            failed=result.failed,
            total=result.total,
            status=status,
            action=action,
            duration_ms=result.duration_ms,
            retry_count=result.retry_count,
            platform=result.platform,
            category=result.category,
        )

    def _push_or_fail(
        self, result: CategoryScrapeResult, started: float, status: str, action: str
    ) -> None:
        result.duration_ms = self._elapsed_ms(started)
        try:
            self._push_progress(result, status, action)
        except Exception as e:
            result.status = "failed"
            logger.error(f"Category scraping failed: {e}")
            self._mark_failed(result, str(e))
            raise

    def _mark_failed(self, result: CategoryScrapeResult, message: str) -> None:
        try:
            self.recorder.mark_failed(
                result.log_id,
                message,
                duration_ms=result.duration_ms,
                retry_count=result.retry_count,
            )
        except ApiError as e:
            logger.error(f"Could not mark scrape log {result.log_id} as failed: {e}")

    def _elapsed_ms(self, started: float) -> int:
        return int((self._clock() - started) * 1000)


def _validate_item_ids(items: list[ScrapedCategoryProduct]) -> None:
    """Results are keyed by item id, so every selected id must be present and unique."""
    missing = sum(1 for item in items if not item.id)
    if missing:
        raise ValueError(f"{missing} selected product(s) have no product id")

    counts = Counter(item.id for item in items)
    duplicates = sorted(item_id for item_id, count in counts.items() if count > 1)
    if duplicates:
        raise ValueError(f"Duplicate product ids selected: {', '.join(duplicates)}")


def _validate_platform(platform: str) -> None:
    if platform not in SUPPORTED_PLATFORMS:
        available = ", ".join(SUPPORTED_PLATFORMS)
        raise ValueError(f"Platform '{platform}' not supported. Available: {available}")
