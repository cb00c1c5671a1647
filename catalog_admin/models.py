"""Data models for catalog and scraping API payloads.

Every ``from_api`` constructor is the single place where the remote camelCase
JSON (and its inconsistent ``id``/``_id`` keys) is mapped onto Python fields.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from catalog_admin.types import (
    CategoryId,
    ImageUrl,
    Platform,
    ProductId,
    ProductUrl,
    ScrapeLogId,
    ScrapeLogStatus,
    ScrapeType,
)


def _canonical_id(data: dict[str, Any]) -> str:
    """Return the record id whichever key the API used for it."""
    value = data.get("id") or data.get("_id") or ""
    return str(value)


def _drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


@dataclass
class Progress:
    """Progress triple reported on a scrape log."""

    current: int = 0
    total: int = 0
    percentage: int = 0

    @classmethod
    def from_api(cls, data: Optional[dict[str, Any]]) -> "Progress":
        data = data or {}
        return cls(
            current=int(data.get("current") or 0),
            total=int(data.get("total") or 0),
            percentage=int(data.get("percentage") or 0),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "current": self.current,
            "total": self.total,
            "percentage": self.percentage,
        }


@dataclass
class Pagination:
    """Pagination block shared by the list endpoints."""

    current_page: int = 1
    total_pages: int = 1
    total_items: int = 0
    items_per_page: Optional[int] = None
    has_next: bool = False
    has_previous: bool = False

    @classmethod
    def from_api(cls, data: Optional[dict[str, Any]]) -> "Pagination":
        data = data or {}
        current = int(data.get("currentPage") or 1)
        total_pages = int(data.get("totalPages") or 1)
        total_items = (
            data.get("totalItems")
            or data.get("totalProducts")
            or data.get("totalCategories")
            or 0
        )
        has_next = data.get("hasNext", data.get("hasNextPage"))
        has_previous = data.get("hasPrev", data.get("hasPreviousPage"))
        return cls(
            current_page=current,
            total_pages=total_pages,
            total_items=int(total_items),
            items_per_page=data.get("itemsPerPage"),
            has_next=bool(has_next) if has_next is not None else current < total_pages,
            has_previous=bool(has_previous) if has_previous is not None else current > 1,
        )


# --- Scrape logs -----------------------------------------------------------


@dataclass
class ScrapeLog:
    """One recorded scraping attempt as stored by the scraping service."""

    id: ScrapeLogId
    when: str
    platform: Platform
    type: ScrapeType
    url: str
    status: ScrapeLogStatus
    category: Optional[str] = None
    action: Optional[str] = None
    operation_id: Optional[str] = None
    total_products: int = 0
    scraped_products: int = 0
    failed_products: int = 0
    progress: Progress = field(default_factory=Progress)
    duration: int = 0  # milliseconds
    error_message: Optional[str] = None
    retry_count: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ScrapeLog":
        return cls(
            id=ScrapeLogId(_canonical_id(data)),
            when=data.get("when") or data.get("createdAt") or "",
            platform=Platform(data.get("platform") or ""),
            type=data.get("type") or "category",
            url=data.get("url") or "",
            status=data.get("status") or "pending",
            category=data.get("category"),
            action=data.get("action"),
            operation_id=data.get("operationId"),
            total_products=int(data.get("totalProducts") or 0),
            scraped_products=int(data.get("scrapedProducts") or 0),
            failed_products=int(data.get("failedProducts") or 0),
            progress=Progress.from_api(data.get("progress")),
            duration=int(data.get("duration") or 0),
            error_message=data.get("errorMessage"),
            retry_count=int(data.get("retryCount") or 0),
        )


@dataclass
class ScrapeLogDraft:
    """Fields sent when a scrape log is first created."""

    platform: Platform
    type: ScrapeType
    url: str
    when: str
    category: Optional[str] = None
    status: ScrapeLogStatus = "pending"
    action: Optional[str] = None
    operation_id: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return _drop_none(
            {
                "when": self.when,
                "platform": self.platform,
                "type": self.type,
                "url": self.url,
                "category": self.category,
                "status": self.status,
                "action": self.action,
                "operationId": self.operation_id,
            }
        )


@dataclass
class ScrapeLogUpdate:
    """Partial update for a scrape log; ``None`` fields are not sent."""

    status: Optional[ScrapeLogStatus] = None
    action: Optional[str] = None
    when: Optional[str] = None
    platform: Optional[str] = None
    type: Optional[ScrapeType] = None
    category: Optional[str] = None
    operation_id: Optional[str] = None
    total_products: Optional[int] = None
    scraped_products: Optional[int] = None
    failed_products: Optional[int] = None
    progress: Optional[Progress] = None
    duration: Optional[int] = None
    error_message: Optional[str] = None
    retry_count: Optional[int] = None

    def to_payload(self) -> dict[str, Any]:
        return _drop_none(
            {
                "status": self.status,
                "action": self.action,
                "when": self.when,
                "platform": self.platform,
                "type": self.type,
                "category": self.category,
                "operationId": self.operation_id,
                "totalProducts": self.total_products,
                "scrapedProducts": self.scraped_products,
                "failedProducts": self.failed_products,
                "progress": self.progress.to_dict() if self.progress else None,
                "duration": self.duration,
                "errorMessage": self.error_message,
                "retryCount": self.retry_count,
            }
        )


@dataclass
class ScrapeLogStats:
    """Aggregated counts from ``/scrape-logs/stats``."""

    counts: dict[str, int]
    total: int
    success_rate: float
    chart: list[dict[str, Any]]

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ScrapeLogStats":
        return cls(
            counts=dict(data.get("counts") or {}),
            total=int(data.get("total") or 0),
            success_rate=float(data.get("successRate") or 0.0),
            chart=list(data.get("chart") or []),
        )


# --- Scraped data ----------------------------------------------------------


@dataclass
class ScrapedCategoryProduct:
    """Lightweight product reference returned by a category scrape."""

    id: ProductId
    name: str
    brand: str = ""
    selling_price: str = ""
    actual_price: str = ""
    discount: str = ""
    image_url: str = ""
    product_url: ProductUrl = ProductUrl("")
    rating: str = ""
    review_count: str = ""
    availability: str = ""
    is_wishlisted: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ScrapedCategoryProduct":
        return cls(
            # Listings without an id fall back to their URL so items stay distinct
            id=ProductId(
                str(data.get("productId") or _canonical_id(data) or data.get("productUrl") or "")
            ),
            name=data.get("productName") or data.get("name") or "",
            brand=data.get("brand") or "",
            selling_price=str(data.get("sellingPrice") or ""),
            actual_price=str(data.get("actualPrice") or ""),
            discount=str(data.get("discount") or ""),
            image_url=data.get("productImage") or "",
            product_url=ProductUrl(data.get("productUrl") or ""),
            rating=str(data.get("rating") or ""),
            review_count=str(data.get("reviewCount") or ""),
            availability=data.get("availability") or "",
            is_wishlisted=bool(data.get("isWishlisted", False)),
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "Product ID": self.id,
            "Name": self.name,
            "Brand": self.brand,
            "Selling Price": self.selling_price,
            "MRP": self.actual_price,
            "Discount": self.discount,
            "Rating": self.rating,
            "Reviews": self.review_count,
            "Availability": self.availability,
            "Product URL": self.product_url,
            "Image URL": self.image_url,
        }


@dataclass
class CategoryPage:
    """One page of category results plus its pagination metadata."""

    page: int
    url: str
    products: list[ScrapedCategoryProduct]
    current_page: int = 1
    total_pages: int = 1
    has_next: bool = False
    has_previous: bool = False
    total_products: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CategoryPage":
        products = [
            ScrapedCategoryProduct.from_api(item) for item in data.get("products") or []
        ]
        pagination = Pagination.from_api(data.get("pagination"))
        return cls(
            page=int(data.get("page") or pagination.current_page),
            url=data.get("url") or "",
            products=products,
            current_page=pagination.current_page,
            total_pages=pagination.total_pages,
            has_next=pagination.has_next,
            has_previous=pagination.has_previous,
            total_products=int(data.get("totalProducts") or len(products)),
        )

    def select(self, product_ids: list[str]) -> list[ScrapedCategoryProduct]:
        """Return the subset of products whose id is in ``product_ids``, in page order."""
        wanted = set(product_ids)
        return [product for product in self.products if product.id in wanted]


@dataclass
class ProductImage:
    url: ImageUrl
    high_quality_url: str = ""
    alt: str = ""
    type: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any] | str) -> "ProductImage":
        if isinstance(data, str):
            return cls(url=ImageUrl(data))
        return cls(
            url=ImageUrl(data.get("url") or ""),
            high_quality_url=data.get("highQualityUrl") or "",
            alt=data.get("alt") or "",
            type=data.get("type") or "",
        )


@dataclass
class ProductImages:
    main: list[ProductImage] = field(default_factory=list)
    thumbnails: list[ProductImage] = field(default_factory=list)
    high_quality: list[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Optional[dict[str, Any]]) -> "ProductImages":
        data = data or {}
        return cls(
            main=[ProductImage.from_api(item) for item in data.get("main") or []],
            thumbnails=[
                ProductImage.from_api(item) for item in data.get("thumbnails") or []
            ],
            high_quality=[str(url) for url in data.get("highQuality") or []],
        )


@dataclass
class Seller:
    name: str = ""
    rating: str = ""
    policies: list[str] = field(default_factory=list)


@dataclass
class Offer:
    type: str = ""
    description: str = ""
    has_tnc: bool = False


@dataclass
class Breadcrumb:
    text: str = ""
    url: str = ""


@dataclass
class Delivery:
    date: str = ""
    time: str = ""
    cost: str = ""


@dataclass
class ScrapedProduct:
    """Full scraped record for one product page."""

    id: str
    title: str
    url: str = ""
    current_price: str = ""
    original_price: str = ""
    discount: str = ""
    rating: str = ""
    rating_count: str = ""
    review_count: str = ""
    images: ProductImages = field(default_factory=ProductImages)
    description: str = ""
    highlights: list[str] = field(default_factory=list)
    specifications: dict[str, str] = field(default_factory=dict)
    seller: Seller = field(default_factory=Seller)
    offers: list[Offer] = field(default_factory=list)
    breadcrumbs: list[Breadcrumb] = field(default_factory=list)
    availability: str = ""
    delivery: Delivery = field(default_factory=Delivery)
    scraped_at: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ScrapedProduct":
        seller = data.get("seller") or {}
        delivery = data.get("delivery") or {}
        return cls(
            id=_canonical_id(data),
            title=data.get("title") or "",
            url=data.get("url") or "",
            current_price=str(data.get("currentPrice") or ""),
            original_price=str(data.get("originalPrice") or ""),
            discount=str(data.get("discount") or ""),
            rating=str(data.get("rating") or ""),
            rating_count=str(data.get("ratingCount") or ""),
            review_count=str(data.get("reviewCount") or ""),
            images=ProductImages.from_api(data.get("images")),
            description=data.get("description") or "",
            highlights=[str(item) for item in data.get("highlights") or []],
            specifications={
                str(key): str(value)
                for key, value in (data.get("specifications") or {}).items()
            },
            seller=Seller(
                name=seller.get("name") or "",
                rating=str(seller.get("rating") or ""),
                policies=list(seller.get("policies") or []),
            ),
            offers=[
                Offer(
                    type=offer.get("type") or "",
                    description=offer.get("description") or "",
                    has_tnc=bool(offer.get("hasTnC", False)),
                )
                for offer in data.get("offers") or []
            ],
            breadcrumbs=[
                Breadcrumb(text=crumb.get("text") or "", url=crumb.get("url") or "")
                for crumb in data.get("breadcrumbs") or []
            ],
            availability=data.get("availability") or "",
            delivery=Delivery(
                date=delivery.get("date") or "",
                time=delivery.get("time") or "",
                cost=delivery.get("cost") or "",
            ),
            scraped_at=data.get("scrapedAt") or "",
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "ID": self.id,
            "Title": self.title,
            "Current Price": self.current_price,
            "Original Price": self.original_price,
            "Discount": self.discount,
            "Rating": self.rating,
            "Ratings": self.rating_count,
            "Reviews": self.review_count,
            "Seller": self.seller.name,
            "Availability": self.availability,
            "Highlights": "\n".join(self.highlights),
            "Description": self.description,
            "Image URLs": "\n".join(image.url for image in self.images.main),
            "Product URL": self.url,
        }


# --- Catalog ---------------------------------------------------------------


@dataclass
class Category:
    """Node of the main -> sub -> sub-sub category tree."""

    id: CategoryId
    name: str
    slug: str = ""
    is_active: bool = True
    description: str = ""
    children: list["Category"] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Category":
        raw_children = (
            data.get("subcategory")
            or data.get("subcategories")
            or data.get("children")
            or []
        )
        return cls(
            id=CategoryId(_canonical_id(data)),
            name=data.get("name") or "",
            slug=data.get("slug") or "",
            is_active=bool(data.get("isActive", True)),
            description=data.get("description") or "",
            children=[cls.from_api(child) for child in raw_children],
        )

    def find_child(self, category_id: str) -> Optional["Category"]:
        for child in self.children:
            if child.id == category_id:
                return child
        return None


@dataclass(frozen=True)
class CategorySelection:
    """Resolved main/sub/sub-sub selection."""

    main: Optional[Category] = None
    sub: Optional[Category] = None
    sub_sub: Optional[Category] = None

    @property
    def nodes(self) -> list[Category]:
        return [node for node in (self.main, self.sub, self.sub_sub) if node is not None]

    @property
    def path(self) -> list[CategoryId]:
        return [node.id for node in self.nodes]

    @property
    def names(self) -> list[str]:
        return [node.name for node in self.nodes]

    @property
    def leaf(self) -> Optional[Category]:
        nodes = self.nodes
        return nodes[-1] if nodes else None

    @property
    def label(self) -> str:
        return " > ".join(self.names)


@dataclass
class VendorAddress:
    street: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    def to_payload(self) -> dict[str, str]:
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "country": self.country,
        }


@dataclass
class Vendor:
    id: str
    name: str
    email: str
    shop_name: str = ""
    phone: str = ""
    is_active: bool = True
    is_verified: bool = False
    address: VendorAddress = field(default_factory=VendorAddress)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Vendor":
        address = data.get("address") or {}
        return cls(
            id=_canonical_id(data),
            name=data.get("name") or "",
            email=data.get("email") or "",
            shop_name=data.get("shopName") or "",
            phone=data.get("phone") or "",
            is_active=bool(data.get("isActive", True)),
            is_verified=bool(data.get("isVerified", False)),
            address=VendorAddress(
                street=address.get("street") or "",
                city=address.get("city") or "",
                state=address.get("state") or "",
                zip_code=address.get("zipCode") or "",
                country=address.get("country") or "",
            ),
        )


@dataclass
class CatalogProduct:
    """Product as listed by the admin catalog API."""

    id: str
    title: str
    mrp: int = 0
    srp: int = 0
    is_active: bool = True
    category_name: str = ""
    keywords: list[str] = field(default_factory=list)
    product_url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CatalogProduct":
        category = data.get("category") or {}
        return cls(
            id=_canonical_id(data),
            title=data.get("title") or "",
            mrp=int(data.get("mrp") or 0),
            srp=int(data.get("srp") or 0),
            is_active=bool(data.get("isActive", True)),
            category_name=category.get("name") or "",
            keywords=list(data.get("keywords") or []),
            product_url=data.get("productUrl") or "",
        )


def _nested_id(value: Any) -> Optional[str]:
    # Scheduler tasks return populated category objects, drafts send plain ids
    if isinstance(value, dict):
        return _canonical_id(value) or None
    return str(value) if value else None


@dataclass
class SchedulerTask:
    """Scheduled scraping task managed through the admin API."""

    id: str
    task_name: str
    task_type: ScrapeType
    platform: str
    status: str = "scheduled"
    result_status: str = "pending"
    url: Optional[str] = None
    main_category_id: Optional[str] = None
    sub_category_id: Optional[str] = None
    sub_sub_category_id: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "SchedulerTask":
        schedule = data.get("schedule") or {}
        return cls(
            id=_canonical_id(data),
            task_name=data.get("taskName") or "",
            task_type=data.get("taskType") or "category",
            platform=data.get("platform") or "other",
            status=data.get("status") or "scheduled",
            result_status=data.get("resultStatus") or "pending",
            url=data.get("url"),
            main_category_id=_nested_id(data.get("mainCategoryId")),
            sub_category_id=_nested_id(data.get("subCategoryId")),
            sub_sub_category_id=_nested_id(data.get("subSubCategoryId")),
            start_time=schedule.get("startTime") or data.get("startTime"),
            end_time=schedule.get("endTime") or data.get("endTime"),
            notes=data.get("notes"),
        )

    def to_payload(self) -> dict[str, Any]:
        return _drop_none(
            {
                "taskName": self.task_name,
                "taskType": self.task_type,
                "platform": self.platform,
                "url": self.url or None,
                "mainCategoryId": self.main_category_id or None,
                "subCategoryId": self.sub_category_id or None,
                "subSubCategoryId": self.sub_sub_category_id or None,
                "startTime": self.start_time or None,
                "endTime": self.end_time or None,
                "status": self.status,
                "resultStatus": self.result_status,
                "notes": self.notes or None,
            }
        )


@dataclass
class ScrapingOperation:
    """Server-side scraping job tracked by the operations API."""

    id: str
    url: str
    seller: str
    type: ScrapeType = "product"
    status: str = "pending"
    category: Optional[str] = None
    attempt_time: str = ""
    duration: Optional[int] = None
    total_products: int = 0
    scraped_products: int = 0
    failed_products: int = 0
    retry_count: int = 0
    max_retries: int = 0
    progress: Progress = field(default_factory=Progress)
    error_message: Optional[str] = None
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ScrapingOperation":
        return cls(
            id=_canonical_id(data),
            url=data.get("url") or "",
            seller=data.get("seller") or "",
            type=data.get("type") or "product",
            status=data.get("status") or "pending",
            category=data.get("category"),
            attempt_time=data.get("attemptTime") or "",
            duration=data.get("duration"),
            total_products=int(data.get("totalProducts") or 0),
            scraped_products=int(data.get("scrapedProducts") or 0),
            failed_products=int(data.get("failedProducts") or 0),
            retry_count=int(data.get("retryCount") or 0),
            max_retries=int(data.get("maxRetries") or 0),
            progress=Progress.from_api(data.get("progress")),
            error_message=data.get("errorMessage"),
            tags=list(data.get("tags") or []),
        )
