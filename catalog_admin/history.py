"""Local scraping history kept in a JSON file.

Each run of the CLI adds a session; sessions are stored newest first and the
file is capped at ``MAX_HISTORY_ITEMS`` entries.
"""

import json
import os
import tempfile
import uuid
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from loguru import logger

from catalog_admin.models import Progress
from catalog_admin.utils.rounding import percentage

MAX_HISTORY_ITEMS = 1000
FINISHED_STATUSES = ("completed", "failed")
ACTIVE_STATUSES = ("pending", "in_progress")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_when(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _iso(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class ScrapingSession:
    """One locally recorded scraping run."""

    id: str
    when: str
    platform: str
    type: str
    url: str
    started_at: str
    status: str = "pending"
    action: str = "scrape_started"
    category: Optional[str] = None
    operation_id: Optional[str] = None
    log_id: Optional[str] = None
    total_products: int = 0
    scraped_products: int = 0
    failed_products: int = 0
    progress: dict[str, int] = field(default_factory=lambda: Progress().to_dict())
    duration: int = 0  # milliseconds
    error_message: Optional[str] = None
    retry_count: int = 0
    completed_at: Optional[str] = None
    success_rate: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScrapingSession":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass
class GroupStats:
    sessions: int = 0
    products: int = 0
    success_rate: float = 0.0


@dataclass
class ScrapingStatistics:
    total_sessions: int
    completed_sessions: int
    failed_sessions: int
    total_products: int
    successful_products: int
    failed_products: int
    average_success_rate: float
    total_duration: int
    platform_stats: dict[str, GroupStats]
    category_stats: dict[str, GroupStats]


class ScrapingHistory:
    """JSON-file backed store of scraping sessions."""

    def __init__(
        self,
        path: str | Path = "data/scraping_history.json",
        now: Callable[[], datetime] = _utc_now,
    ):
        self.path = Path(path)
        self._now = now

    # -- Storage --------------------------------------------------------------

    def load(self) -> list[ScrapingSession]:
        """Read all sessions, newest first.

        Raises:
            ValueError: If the history file is not a JSON list
        """
        if not self.path.exists():
            return []

        with open(self.path, encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, list):
            raise ValueError(f"History file {self.path} does not contain a list")
        return [ScrapingSession.from_dict(item) for item in raw]

    def _save(self, sessions: list[ScrapingSession]) -> None:
        ordered = sorted(sessions, key=lambda s: _parse_when(s.when), reverse=True)
        _write_json_atomic([asdict(s) for s in ordered[:MAX_HISTORY_ITEMS]], self.path)

    # -- Sessions -------------------------------------------------------------

    def add_session(
        self, platform: str, type: str, url: str, **extra: Any
    ) -> ScrapingSession:
        now = _iso(self._now())
        session = ScrapingSession(
            id=f"session_{int(self._now().timestamp() * 1000)}_{uuid.uuid4().hex[:9]}",
            when=now,
            platform=platform,
            type=type,
            url=url,
            started_at=now,
        )
        _apply(session, extra)

        sessions = self.load()
        sessions.insert(0, session)
        self._save(sessions)
        logger.debug(f"Recorded scraping session {session.id}")
        return session

    def update_session(self, session_id: str, **updates: Any) -> Optional[ScrapingSession]:
        """Merge ``updates`` into a session and derive rate and duration.

        Returns:
            The updated session, or None if no session has this id
        """
        sessions = self.load()
        session = next((s for s in sessions if s.id == session_id), None)
        if session is None:
            return None

        _apply(session, updates)

        if session.total_products:
            session.success_rate = session.scraped_products / session.total_products * 100
            session.progress = {
                "current": session.scraped_products,
                "total": session.total_products,
                "percentage": percentage(session.scraped_products, session.total_products),
            }

        if session.status in FINISHED_STATUSES:
            if not session.completed_at:
                session.completed_at = _iso(self._now())
            session.duration = int(
                (
                    _parse_when(session.completed_at) - _parse_when(session.started_at)
                ).total_seconds()
                * 1000
            )

        self._save(sessions)
        return session

    def get_session(self, session_id: str) -> Optional[ScrapingSession]:
        return next((s for s in self.load() if s.id == session_id), None)

    def delete_session(self, session_id: str) -> bool:
        sessions = self.load()
        remaining = [s for s in sessions if s.id != session_id]
        if len(remaining) == len(sessions):
            return False
        self._save(remaining)
        return True

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()

    # -- Queries --------------------------------------------------------------

    def by_platform(self, platform: str) -> list[ScrapingSession]:
        return [s for s in self.load() if s.platform.lower() == platform.lower()]

    def by_category(self, category: str) -> list[ScrapingSession]:
        needle = category.lower()
        return [s for s in self.load() if s.category and needle in s.category.lower()]

    def by_status(self, status: str) -> list[ScrapingSession]:
        return [s for s in self.load() if s.status == status]

    def by_date_range(self, start: datetime, end: datetime) -> list[ScrapingSession]:
        return [s for s in self.load() if start <= _parse_when(s.when) <= end]

    def recent(self, count: int = 10) -> list[ScrapingSession]:
        return self.load()[:count]

    def failed(self) -> list[ScrapingSession]:
        return [s for s in self.load() if s.status == "failed" or s.error_message]

    def active(self) -> list[ScrapingSession]:
        return [s for s in self.load() if s.status in ACTIVE_STATUSES]

    def statistics(self) -> ScrapingStatistics:
        """Aggregate totals overall, per platform and per category."""
        sessions = self.load()
        total_products = sum(s.total_products for s in sessions)
        successful = sum(s.scraped_products for s in sessions)

        return ScrapingStatistics(
            total_sessions=len(sessions),
            completed_sessions=sum(1 for s in sessions if s.status == "completed"),
            failed_sessions=sum(1 for s in sessions if s.status == "failed"),
            total_products=total_products,
            successful_products=successful,
            failed_products=sum(s.failed_products for s in sessions),
            average_success_rate=_rate(successful, total_products),
            total_duration=sum(s.duration for s in sessions),
            platform_stats=_group(sessions, lambda s: s.platform),
            category_stats=_group(sessions, lambda s: s.category),
        )

    # -- Import / export ------------------------------------------------------

    def export_json(self) -> str:
        return json.dumps([asdict(s) for s in self.load()], indent=2, ensure_ascii=False)

    def import_json(self, data: str) -> int:
        """Replace the history with sessions from a JSON list.

        Returns:
            Number of sessions stored

        Raises:
            ValueError: If ``data`` is not a JSON list
        """
        raw = json.loads(data)
        if not isinstance(raw, list):
            raise ValueError("Imported history must be a JSON list")

        sessions = [ScrapingSession.from_dict(item) for item in raw]
        self._save(sessions)
        return min(len(sessions), MAX_HISTORY_ITEMS)


def format_duration(milliseconds: int) -> str:
    """Human readable duration, e.g. ``1h 2m 5s``."""
    seconds = milliseconds // 1000
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h {minutes % 60}m"
    if hours > 0:
        return f"{hours}h {minutes % 60}m {seconds % 60}s"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def _write_json_atomic(data: Any, path: Path) -> None:
    """Write JSON to a temp file in the target directory, then rename over ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        mode="w", encoding="utf-8", dir=path.parent, delete=False, suffix=".tmp"
    ) as tmp_file:
        json.dump(data, tmp_file, indent=2, ensure_ascii=False)
        tmp_path = tmp_file.name

    try:
        os.replace(tmp_path, path)
    except OSError:
        os.remove(tmp_path)
        raise


def _apply(session: ScrapingSession, values: dict[str, Any]) -> None:
    known = {f.name for f in fields(session)}
    for key, value in values.items():
        if key not in known:
            raise ValueError(f"Unknown session field: {key}")
        setattr(session, key, value)


def _rate(part: int, whole: int) -> float:
    return part / whole * 100 if whole > 0 else 0.0


def _group(
    sessions: list[ScrapingSession], key: Callable[[ScrapingSession], Optional[str]]
) -> dict[str, GroupStats]:
    groups: dict[str, GroupStats] = {}
    scraped: dict[str, int] = {}
    for session in sessions:
        name = key(session)
        if not name:
            continue
        stats = groups.setdefault(name, GroupStats())
        stats.sessions += 1
        stats.products += session.total_products
        scraped[name] = scraped.get(name, 0) + session.scraped_products

    for name, stats in groups.items():
        stats.success_rate = _rate(scraped[name], stats.products)
    return groups
