"""Scrape-log recording against the scraping service.

A scrape log is created once per attempt and then patched as the attempt
progresses. The service has historically accepted either PATCH or PUT for
updates; ``UpdateVerbAdapter`` holds what is known about that and falls back
from PATCH to PUT exactly once when the server answers 405.
"""

from datetime import datetime, timezone
from typing import Callable, Optional, TypeVar

from loguru import logger

from catalog_admin.clients.base_client import ApiError
from catalog_admin.clients.scraping_client import ScrapingApiClient
from catalog_admin.models import Progress, ScrapeLog, ScrapeLogDraft, ScrapeLogUpdate
from catalog_admin.types import ScrapeLogId
from catalog_admin.utils.rounding import percentage

T = TypeVar("T")


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with a ``Z`` suffix."""
    now = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return now.replace("+00:00", "Z")


def compute_progress(scraped: int, failed: int, total: int) -> Progress:
    """Build the progress triple for the given counters.

    Args:
        scraped: Items scraped successfully so far
        failed: Items that failed so far
        total: Items selected for the run

    Returns:
        Progress with ``current=scraped`` and a half-up rounded percentage

    Raises:
        ValueError: If a counter is negative or scraped + failed exceeds total
    """
    if scraped < 0 or failed < 0 or total < 0:
        raise ValueError("Progress counters must not be negative")
    if scraped + failed > total:
        raise ValueError(
            f"scraped ({scraped}) + failed ({failed}) exceeds total ({total})"
        )
    return Progress(current=scraped, total=total, percentage=percentage(scraped, total))


class UpdateVerbAdapter:
    """Chooses the HTTP verb for scrape-log updates.

    ``accepts_patch`` is the capability flag: ``True`` or ``None`` (unknown)
    send PATCH, ``False`` sends PUT. A 405 on PATCH triggers a single PUT and
    pins the flag to ``False`` for the rest of the adapter's life.
    """

    def __init__(self, accepts_patch: Optional[bool] = None):
        self.accepts_patch = accepts_patch

    @property
    def primary_method(self) -> str:
        return "PUT" if self.accepts_patch is False else "PATCH"

    def send(self, call: Callable[[str], T]) -> T:
        method = self.primary_method
        try:
            result = call(method)
        except ApiError as e:
            if method != "PATCH" or not e.is_method_not_allowed:
                raise
            logger.warning(f"PATCH rejected ({e.status_code}), retrying with PUT")
            self.accepts_patch = False
            return call("PUT")

        if self.accepts_patch is None:
            self.accepts_patch = True
        return result


class ScrapeLogRecorder:
    """Creates and updates remote scrape logs."""

    def __init__(
        self,
        client: ScrapingApiClient,
        accepts_patch: Optional[bool] = None,
    ):
        self.client = client
        self.verbs = UpdateVerbAdapter(accepts_patch)

    def create(self, draft: ScrapeLogDraft) -> ScrapeLogId:
        """Create a log and return its id.

        Raises:
            ApiError: If the service fails or returns no id
        """
        log = self.client.create_scrape_log(draft)
        if not log.id:
            raise ApiError("Scrape log was created without an id.")

        logger.info(
            f"Created scrape log {log.id} ({draft.platform}/{draft.type}, {draft.status})"
        )
        return log.id

    def update(self, log_id: ScrapeLogId, update: ScrapeLogUpdate) -> ScrapeLog:
        """Apply a partial update; fields left as ``None`` are not sent.

        Raises:
            ValueError: If the counters break scraped + failed <= total
            ApiError: If the update fails (after the PUT fallback, if any)
        """
        counters = (update.scraped_products, update.failed_products, update.total_products)
        if None not in counters:
            compute_progress(*counters)

        log = self.verbs.send(
            lambda method: self.client.update_scrape_log(log_id, update, method=method)
        )
        logger.debug(f"Updated scrape log {log_id}: {update.to_payload()}")
        return log

    def report_progress(
        self,
        log_id: ScrapeLogId,
        scraped: int,
        failed: int,
        total: int,
        status: str = "in_progress",
        action: str = "scrape_category_products",
        duration_ms: int = 0,
        retry_count: int = 0,
        platform: Optional[str] = None,
        category: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> ScrapeLog:
        """Push the running counters and the derived progress triple."""
        update = ScrapeLogUpdate(
            status=status,
            action=action,
            when=utc_now_iso(),
            platform=platform,
            type="category",
            category=category,
            total_products=total,
            scraped_products=scraped,
            failed_products=failed,
            progress=compute_progress(scraped, failed, total),
            duration=duration_ms,
            error_message=error_message,
            retry_count=retry_count,
        )
        return self.update(log_id, update)

    def mark_failed(
        self,
        log_id: ScrapeLogId,
        error_message: str,
        action: str = "category_scraping_failed",
        duration_ms: int = 0,
        retry_count: int = 0,
    ) -> ScrapeLog:
        return self.update(
            log_id,
            ScrapeLogUpdate(
                status="failed",
                action=action,
                when=utc_now_iso(),
                error_message=error_message,
                duration=duration_ms,
                retry_count=retry_count,
            ),
        )
