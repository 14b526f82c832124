"""
Thoughts journal backed by two sheets: the active journal and its archive.

Rows are stored oldest first and served newest first. Clients address rows
by their position in that reversed view (see `reminder_backend.rows`), so an
id is only meaningful against the sheet state it was listed from.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from reminder_backend.cache import SheetCache
from reminder_backend.errors import NotFoundError, ValidationError
from reminder_backend.retry import DEFAULT_MAX_RETRIES, retry_operation
from reminder_backend.rows import RowCoordinates, calculate_row_index, count_data_rows
from reminder_backend.sheets import SheetsClient, delete_rows_request

logger = logging.getLogger(__name__)

JOURNAL_COLUMNS = "A:C"
ARCHIVE_COLUMNS = "A:D"
ARCHIVE_HEADERS = ["Content", "Timestamp", "Date", "ArchivedAt"]
SEARCH_SCOPES = ("main", "archive", "all")

_TIMESTAMP_FORMATS = ("%Y/%m/%d %H:%M:%S", "%Y/%m/%d", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d")


def format_timestamp(moment: datetime) -> str:
    """Locale-style timestamp, e.g. `2024/3/5 14:03:22`."""
    return f"{moment.year}/{moment.month}/{moment.day} {moment:%H:%M:%S}"


def format_date(moment: datetime) -> str:
    return f"{moment.year}/{moment.month}/{moment.day}"


def parse_timestamp(value: str) -> Optional[datetime]:
    text = (value or "").strip()
    if not text:
        return None
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        return None


def _cell(row: list[str], index: int) -> str:
    return row[index] if index < len(row) else ""


@dataclass
class Thought:
    content: str
    timestamp: str
    date: str

    @classmethod
    def from_row(cls, row: list[str]) -> "Thought":
        return cls(content=_cell(row, 0), timestamp=_cell(row, 1), date=_cell(row, 2))

    def to_row(self) -> list[str]:
        return [self.content, self.timestamp, self.date]

    def as_dict(self) -> dict:
        return {"content": self.content, "timestamp": self.timestamp, "date": self.date}


@dataclass
class ArchivedThought(Thought):
    archived_at: str = ""

    @classmethod
    def from_row(cls, row: list[str]) -> "ArchivedThought":
        return cls(
            content=_cell(row, 0),
            timestamp=_cell(row, 1),
            date=_cell(row, 2),
            archived_at=_cell(row, 3),
        )

    def to_row(self) -> list[str]:
        return [self.content, self.timestamp, self.date, self.archived_at]

    def as_dict(self) -> dict:
        payload = super().as_dict()
        payload["archivedAt"] = self.archived_at
        return payload


@dataclass
class ThoughtPage:
    items: list[dict]
    page: int
    limit: int
    total_count: int
    cached: bool = False

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit) if self.limit else 0

    @property
    def has_more(self) -> bool:
        return (self.page - 1) * self.limit + self.limit < self.total_count

    def pagination(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "totalCount": self.total_count,
            "totalPages": self.total_pages,
            "hasMore": self.has_more,
        }


@dataclass
class _SheetFamily:
    sheet_name: str
    columns: str
    record_type: type
    cache: SheetCache = field(repr=False)

    @property
    def range(self) -> str:
        return f"{self.sheet_name}!{self.columns}"


class ThoughtStore:
    """Journal repository composing index translation, retry and caching."""

    def __init__(
        self,
        client: SheetsClient,
        *,
        sheet_name: str = "Thoughts",
        archive_sheet_name: str = "ArchivedThoughts",
        max_content_length: int = 10000,
        max_retries: int = DEFAULT_MAX_RETRIES,
        cache_ttl_seconds: float = 30.0,
        timezone: str = "Asia/Shanghai",
        now: Callable[[], datetime] | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.max_content_length = max_content_length
        self.max_retries = max_retries
        self._tz = ZoneInfo(timezone)
        self._now = now or (lambda: datetime.now(self._tz))
        self._sleep = sleep

        self.journal = self._family(
            sheet_name, JOURNAL_COLUMNS, Thought, cache_ttl_seconds, clock
        )
        self.archive = self._family(
            archive_sheet_name, ARCHIVE_COLUMNS, ArchivedThought, cache_ttl_seconds, clock
        )

    def _family(
        self,
        sheet_name: str,
        columns: str,
        record_type: type,
        ttl_seconds: float,
        clock: Callable[[], float],
    ) -> _SheetFamily:
        range_ = f"{sheet_name}!{columns}"
        cache = SheetCache(
            lambda: self.client.get_values(range_)[1:],
            ttl_seconds=ttl_seconds,
            max_retries=self.max_retries,
            name=sheet_name,
            clock=clock,
            sleep=self._sleep,
        )
        return _SheetFamily(sheet_name, columns, record_type, cache)

    def _retry(self, operation):
        return retry_operation(operation, self.max_retries, sleep=self._sleep)

    def _validate_content(self, content: Optional[str]) -> str:
        if content is None or not content.strip():
            raise ValidationError("Content is required")
        if len(content) > self.max_content_length:
            raise ValidationError(
                f"Content too long. Maximum {self.max_content_length} characters allowed."
            )
        return content.strip()

    def _read_fresh(self, family: _SheetFamily) -> list[list[str]]:
        """Full range including the header row, bypassing the cache."""
        return self._retry(lambda: self.client.get_values(family.range))

    def _locate(
        self, family: _SheetFamily, index: int, rows: list[list[str]]
    ) -> RowCoordinates:
        coords = calculate_row_index(index, count_data_rows(rows))
        if coords is None:
            noun = "Archived thought" if family is self.archive else "Thought"
            raise NotFoundError(f"{noun} not found")
        return coords

    def _delete_row(self, family: _SheetFamily, coords: RowCoordinates) -> None:
        sheet_id = self._retry(lambda: self.client.get_sheet_id(family.sheet_name))
        start, end = coords.delete_range
        self._retry(
            lambda: self.client.batch_update([delete_rows_request(sheet_id, start, end)])
        )

    def _append(self, family: _SheetFamily, row: list[str]) -> None:
        self._retry(lambda: self.client.append_rows(family.range, [row]))

    def _page(
        self, family: _SheetFamily, page: int, limit: int, force_refresh: bool
    ) -> ThoughtPage:
        page = max(page, 1)
        limit = max(limit, 1)
        cached = not force_refresh and family.cache.is_valid()
        rows = family.cache.get(force_refresh=force_refresh)

        total = len(rows)
        offset = (page - 1) * limit
        items = []
        for index in range(offset, min(offset + limit, total)):
            record = family.record_type.from_row(rows[total - 1 - index])
            items.append({"id": index, **record.as_dict()})
        return ThoughtPage(
            items=items, page=page, limit=limit, total_count=total, cached=cached
        )

    def list(self, page: int = 1, limit: int = 10, force_refresh: bool = False) -> ThoughtPage:
        return self._page(self.journal, page, limit, force_refresh)

    def list_archived(
        self, page: int = 1, limit: int = 10, force_refresh: bool = False
    ) -> ThoughtPage:
        return self._page(self.archive, page, limit, force_refresh)

    def add(self, content: Optional[str]) -> Thought:
        text = self._validate_content(content)
        moment = self._now()
        thought = Thought(
            content=text, timestamp=format_timestamp(moment), date=format_date(moment)
        )
        self._append(self.journal, thought.to_row())
        self.journal.cache.invalidate()
        return thought

    def update(self, index: int, content: Optional[str]) -> Thought:
        text = self._validate_content(content)
        rows = self._read_fresh(self.journal)
        coords = self._locate(self.journal, index, rows)
        logger.info(
            "Updating thought - client index %d, sheet row %d", index, coords.sheet_row_index
        )

        original = Thought.from_row(rows[coords.array_index])
        moment = self._now()
        thought = Thought(
            content=text,
            timestamp=original.timestamp or format_timestamp(moment),
            date=original.date or format_date(moment),
        )
        row_number = coords.sheet_row_index
        range_ = f"{self.journal.sheet_name}!A{row_number}:C{row_number}"
        self._retry(lambda: self.client.update_values(range_, [thought.to_row()]))
        self.journal.cache.invalidate()
        return thought

    def delete(self, index: int) -> None:
        rows = self._read_fresh(self.journal)
        coords = self._locate(self.journal, index, rows)
        logger.info(
            "Deleting thought - client index %d, sheet row %d", index, coords.sheet_row_index
        )
        self._delete_row(self.journal, coords)
        self.journal.cache.invalidate()

    def _move(
        self, source: _SheetFamily, target: _SheetFamily, index: int, make_row
    ) -> list[str]:
        # Copy then delete; nothing undoes the copy if the delete fails.
        rows = self._read_fresh(source)
        coords = self._locate(source, index, rows)
        logger.info(
            "Moving row %d of %s to %s (client index %d)",
            coords.sheet_row_index,
            source.sheet_name,
            target.sheet_name,
            index,
        )
        moved = make_row(rows[coords.array_index])
        try:
            self._append(target, moved)
            try:
                self._delete_row(source, coords)
            except Exception:
                logger.error(
                    "Copied row %d of %s to %s but failed to delete the original; "
                    "it now exists in both sheets",
                    coords.sheet_row_index,
                    source.sheet_name,
                    target.sheet_name,
                )
                raise
        finally:
            self.journal.cache.invalidate()
            self.archive.cache.invalidate()
        return moved

    def archive_thought(self, index: int) -> ArchivedThought:
        archived_at = format_timestamp(self._now())

        def make_row(row: list[str]) -> list[str]:
            return ArchivedThought(
                content=_cell(row, 0),
                timestamp=_cell(row, 1),
                date=_cell(row, 2),
                archived_at=archived_at,
            ).to_row()

        return ArchivedThought.from_row(
            self._move(self.journal, self.archive, index, make_row)
        )

    def unarchive_thought(self, index: int) -> Thought:
        def make_row(row: list[str]) -> list[str]:
            return Thought.from_row(row).to_row()

        return Thought.from_row(self._move(self.archive, self.journal, index, make_row))

    def search(self, query: Optional[str], scope: str = "all") -> list[dict]:
        """
        Case-insensitive substring search, newest timestamp first.

        Result ids follow the same newest-first addressing as `list` /
        `list_archived` for their `type`, computed from the cached snapshot.
        """
        if scope not in SEARCH_SCOPES:
            raise ValidationError(f"Invalid search type: {scope}")
        needle = (query or "").strip().lower()
        if not needle:
            return []

        families = []
        if scope in ("main", "all"):
            families.append(("main", self.journal))
        if scope in ("archive", "all"):
            families.append(("archive", self.archive))

        results: list[dict] = []
        for kind, family in families:
            rows = family.cache.get()
            total = len(rows)
            for position, row in enumerate(rows):
                record = family.record_type.from_row(row)
                if needle in record.content.lower():
                    results.append(
                        {"id": total - 1 - position, **record.as_dict(), "type": kind}
                    )

        def sort_key(item: dict):
            parsed = parse_timestamp(item["timestamp"])
            return (parsed is not None, parsed or datetime.min)

        results.sort(key=sort_key, reverse=True)
        return results
