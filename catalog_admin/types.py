"""Type definitions shared across the catalog admin toolkit.

Identifiers are branded with NewType so a category id can't silently be
passed where a scrape-log id is expected.
"""

from typing import Literal, NewType

Platform = NewType("Platform", str)
ProductId = NewType("ProductId", str)
CategoryId = NewType("CategoryId", str)
ScrapeLogId = NewType("ScrapeLogId", str)
ProductUrl = NewType("ProductUrl", str)
ImageUrl = NewType("ImageUrl", str)


ScrapeType = Literal["product", "category"]

ScrapeLogStatus = Literal[
    "pending", "in_progress", "success", "failed", "completed", "cancelled"
]

OperationStatus = Literal["pending", "in_progress", "success", "failed", "cancelled"]

SchedulerStatus = Literal["scheduled", "running", "completed", "cancelled"]
SchedulerResultStatus = Literal["pending", "passed", "failed"]

SUPPORTED_PLATFORMS: tuple[str, ...] = ("flipkart", "amazon", "myntra")

SCHEDULER_PLATFORMS: tuple[str, ...] = (
    "flipkart",
    "amazon",
    "myntra",
    "1mg",
    "nykaa",
    "ajio",
    "meesho",
    "snapdeal",
    "paytm",
    "other",
)
