"""Persists scraped products into the catalog."""

from dataclasses import dataclass, field
from typing import Any, Optional

from loguru import logger

from catalog_admin.clients.base_client import ApiError
from catalog_admin.clients.catalog_client import CatalogApiClient
from catalog_admin.insertion.payload_mapper import map_to_insertion_payload
from catalog_admin.models import CategorySelection, ScrapedProduct


@dataclass
class InsertionResult:
    success: bool
    message: str
    product: Optional[dict[str, Any]] = None
    source_id: Optional[str] = None


@dataclass
class InsertionSummary:
    """Per-item outcomes of a batch insert."""

    results: list[InsertionResult] = field(default_factory=list)

    @property
    def inserted(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self) -> int:
        return len(self.results) - self.inserted


class ProductInserter:
    """Maps scraped products and posts them to the catalog API.

    Failures are reported with the server's message and never retried.
    """

    def __init__(self, client: CatalogApiClient):
        self.client = client

    def insert(self, payload: dict[str, Any]) -> InsertionResult:
        title = payload.get("title") or "product"
        try:
            product = self.client.create_product(payload)
        except ApiError as e:
            logger.error(f"✗ Failed to insert {title}: {e.message}")
            return InsertionResult(success=False, message=e.message)

        logger.info(f"✓ Inserted: {title}")
        return InsertionResult(
            success=True, message="Product inserted successfully", product=product
        )

    def insert_scraped(
        self,
        product: ScrapedProduct,
        selection: CategorySelection,
        platform: Optional[str] = None,
    ) -> InsertionResult:
        """Map one scraped product and insert it.

        Raises:
            ValueError: If no main category is selected
        """
        payload = map_to_insertion_payload(product, selection, platform)
        result = self.insert(payload)
        result.source_id = product.id or None
        return result

    def insert_many(
        self,
        products: dict[str, ScrapedProduct],
        selection: CategorySelection,
        platform: Optional[str] = None,
    ) -> InsertionSummary:
        """Insert scraped products one by one, keyed by their source item id.

        The category selection is validated before anything is sent.
        """
        if selection.main is None:
            raise ValueError("Please select a main category")

        summary = InsertionSummary()
        for source_id, product in products.items():
            result = self.insert(map_to_insertion_payload(product, selection, platform))
            result.source_id = source_id
            summary.results.append(result)

        logger.info(
            f"Insertion complete: {summary.inserted}/{len(summary.results)} products inserted"
        )
        return summary
