"""Runtime configuration loaded from environment variables."""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_CATALOG_API_URL = "https://admin.b2bbusineesleads.shop/api"
DEFAULT_SCRAPING_API_URL = "https://api.b2bbusineesleads.shop/api"


@dataclass
class AppConfig:
    """Settings for the catalog and scraping API clients."""

    catalog_api_url: str = DEFAULT_CATALOG_API_URL
    scraping_api_url: str = DEFAULT_SCRAPING_API_URL
    admin_token: Optional[str] = None
    catalog_timeout: float = 10.0  # seconds
    scraping_timeout: float = 30.0  # seconds
    item_delay: float = 1.0  # seconds between detail scrapes
    progress_batch_size: int = 1  # push a log update every N items
    scrape_log_accepts_patch: Optional[bool] = None  # None = discover on first update
    history_path: str = "data/scraping_history.json"


def _parse_bool(value: Optional[str]) -> Optional[bool]:
    if value is None or not value.strip():
        return None

    normalized = value.strip().lower()
    if normalized in ("1", "true", "yes", "on"):
        return True
    if normalized in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def _parse_number(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value


def load_config() -> AppConfig:
    """Build an AppConfig from the environment, falling back to defaults.

    Returns:
        Populated configuration

    Raises:
        ValueError: If a numeric or boolean variable can't be parsed
    """
    batch_size = int(_parse_number("SCRAPE_PROGRESS_BATCH", 1))
    if batch_size < 1:
        raise ValueError("SCRAPE_PROGRESS_BATCH must be at least 1")

    return AppConfig(
        catalog_api_url=os.getenv("CATALOG_API_URL", DEFAULT_CATALOG_API_URL),
        scraping_api_url=os.getenv("SCRAPING_API_URL", DEFAULT_SCRAPING_API_URL),
        admin_token=os.getenv("CATALOG_ADMIN_TOKEN") or None,
        catalog_timeout=_parse_number("CATALOG_TIMEOUT", 10.0),
        scraping_timeout=_parse_number("SCRAPING_TIMEOUT", 30.0),
        item_delay=_parse_number("SCRAPE_ITEM_DELAY", 1.0),
        progress_batch_size=batch_size,
        scrape_log_accepts_patch=_parse_bool(os.getenv("SCRAPE_LOG_ACCEPTS_PATCH")),
        history_path=os.getenv("SCRAPING_HISTORY_PATH", "data/scraping_history.json"),
    )
