"""
Child-care reminder data: children, reminders, completion records and categories.

Each sheet keeps a header row and an id in column A. Rows are addressed by
that id, so unlike the journal these operations do not depend on ordering.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

from reminder_backend.errors import NotFoundError, ValidationError
from reminder_backend.retry import DEFAULT_MAX_RETRIES, retry_operation
from reminder_backend.sheets import SheetsClient, delete_rows_request

logger = logging.getLogger(__name__)

CHILDREN_SHEET = "Children"
REMINDERS_SHEET = "Reminders"
RECORDS_SHEET = "Records"
CATEGORIES_SHEET = "Categories"

CHILDREN_RANGE = f"{CHILDREN_SHEET}!A:H"
REMINDERS_RANGE = f"{REMINDERS_SHEET}!A:L"
RECORDS_RANGE = f"{RECORDS_SHEET}!A:I"
CATEGORIES_RANGE = f"{CATEGORIES_SHEET}!A:G"

CHILD_FIELDS = ["id", "name", "age", "birthday", "avatar", "createdAt", "updatedAt", "status"]
REMINDER_FIELDS = [
    "id",
    "childId",
    "title",
    "description",
    "category",
    "reminderType",
    "reminderTime",
    "repeatRule",
    "advanceMinutes",
    "enabled",
    "createdAt",
    "updatedAt",
]
RECORD_FIELDS = [
    "id",
    "reminderId",
    "childId",
    "scheduledTime",
    "completedTime",
    "status",
    "note",
    "operator",
    "createdAt",
]
CATEGORY_FIELDS = ["id", "name", "icon", "color", "order", "description", "createdAt"]

RECORD_STATUSES = ("completed", "skipped", "pending")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def _parse_int(value: Any) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def parse_day(value: str) -> Optional[date]:
    """Calendar day of an ISO date/datetime string, None when unparseable."""
    text = (value or "").strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _row_to_dict(fields: list[str], row: list[str]) -> dict:
    return {name: (row[i] if i < len(row) else "") for i, name in enumerate(fields)}


def reminder_occurs_on(reminder: dict, day: date) -> bool:
    kind = reminder.get("reminderType")
    if kind == "daily":
        return True
    reminder_day = parse_day(reminder.get("reminderTime", ""))
    if reminder_day is None:
        return False
    if kind == "once":
        return reminder_day == day
    if kind == "weekly":
        return reminder_day.weekday() == day.weekday()
    return False


class ReminderStore:
    """Repository over the Children, Reminders, Records and Categories sheets."""

    def __init__(
        self,
        client: SheetsClient,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        now_iso: Callable[[], str] = _utc_now_iso,
        new_id: Callable[[], str] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.max_retries = max_retries
        self._now_iso = now_iso
        self._new_id = new_id or (lambda: str(int(time.time() * 1000)))
        self._sleep = sleep

    def _retry(self, operation):
        return retry_operation(operation, self.max_retries, sleep=self._sleep)

    def _read(self, range_: str) -> list[list[str]]:
        return self._retry(lambda: self.client.get_values(range_))

    def _append(self, range_: str, row: list[Any]) -> None:
        self._retry(lambda: self.client.append_rows(range_, [row]))

    @staticmethod
    def _find_row(rows: list[list[str]], item_id: str) -> int:
        """0-based index into `rows` (header included) of the row with `item_id`."""
        for index, row in enumerate(rows[1:], start=1):
            if row and row[0] == item_id:
                return index
        return -1

    # Categories

    def list_categories(self) -> list[dict]:
        categories = []
        for row in self._read(CATEGORIES_RANGE)[1:]:
            category = _row_to_dict(CATEGORY_FIELDS, row)
            category["order"] = _parse_int(category["order"])
            categories.append(category)
        return categories

    # Children

    def list_children(self) -> list[dict]:
        children = []
        for row in self._read(CHILDREN_RANGE)[1:]:
            child = _row_to_dict(CHILD_FIELDS, row)
            child["status"] = child["status"] or "active"
            children.append(child)
        return children

    def add_child(
        self,
        name: Optional[str],
        age: Optional[str],
        birthday: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> dict:
        if not name or not age:
            raise ValidationError("Name and age are required")
        now = self._now_iso()
        child = {
            "id": self._new_id(),
            "name": name,
            "age": str(age),
            "birthday": birthday or "",
            "avatar": avatar or "",
            "createdAt": now,
            "updatedAt": now,
            "status": "active",
        }
        self._append(CHILDREN_RANGE, [child[key] for key in CHILD_FIELDS])
        return child

    def update_child(self, child_id: str, changes: dict) -> dict:
        rows = self._read(CHILDREN_RANGE)
        index = self._find_row(rows, child_id)
        if index == -1:
            raise NotFoundError("Child not found")

        child = _row_to_dict(CHILD_FIELDS, rows[index])
        # Name and age ignore blank values; birthday and avatar may be cleared.
        for key in ("name", "age"):
            if changes.get(key):
                child[key] = str(changes[key])
        for key in ("birthday", "avatar"):
            if changes.get(key) is not None:
                child[key] = changes[key]
        child["updatedAt"] = self._now_iso()

        row_number = index + 1
        range_ = f"{CHILDREN_SHEET}!A{row_number}:H{row_number}"
        values = [[child[key] for key in CHILD_FIELDS]]
        self._retry(lambda: self.client.update_values(range_, values))
        return child

    # Reminders

    def _reminder_from_row(self, row: list[str]) -> dict:
        reminder = _row_to_dict(REMINDER_FIELDS, row)
        reminder["advanceMinutes"] = _parse_int(reminder["advanceMinutes"])
        reminder["enabled"] = _parse_bool(reminder["enabled"])
        return reminder

    def list_reminders(
        self, child_id: Optional[str] = None, day: Optional[date] = None
    ) -> list[dict]:
        reminders = [self._reminder_from_row(row) for row in self._read(REMINDERS_RANGE)[1:]]
        if child_id:
            reminders = [r for r in reminders if r["childId"] == child_id]
        if day is not None:
            reminders = [r for r in reminders if reminder_occurs_on(r, day)]
        return reminders

    def add_reminder(self, payload: dict) -> dict:
        required = ("childId", "title", "reminderType", "reminderTime")
        if any(not payload.get(key) for key in required):
            raise ValidationError("Required fields missing")
        now = self._now_iso()
        reminder = {
            "id": self._new_id(),
            "childId": payload["childId"],
            "title": payload["title"],
            "description": payload.get("description") or "",
            "category": payload.get("category") or "",
            "reminderType": payload["reminderType"],
            "reminderTime": payload["reminderTime"],
            "repeatRule": payload.get("repeatRule") or "",
            "advanceMinutes": _parse_int(payload.get("advanceMinutes") or 0),
            "enabled": True,
            "createdAt": now,
            "updatedAt": now,
        }
        self._append(REMINDERS_RANGE, [reminder[key] for key in REMINDER_FIELDS])
        return reminder

    def update_reminder(self, reminder_id: str, changes: dict) -> dict:
        rows = self._read(REMINDERS_RANGE)
        index = self._find_row(rows, reminder_id)
        if index == -1:
            raise NotFoundError("Reminder not found")

        reminder = self._reminder_from_row(rows[index])
        editable = REMINDER_FIELDS[2:10]
        for key in editable:
            if key in changes and changes[key] is not None:
                reminder[key] = changes[key]
        reminder["advanceMinutes"] = _parse_int(reminder["advanceMinutes"])
        reminder["enabled"] = _parse_bool(reminder["enabled"])
        reminder["updatedAt"] = self._now_iso()

        row_number = index + 1
        range_ = f"{REMINDERS_SHEET}!A{row_number}:L{row_number}"
        values = [[reminder[key] for key in REMINDER_FIELDS]]
        self._retry(lambda: self.client.update_values(range_, values))
        return reminder

    def delete_reminder(self, reminder_id: str) -> None:
        rows = self._read(REMINDERS_RANGE)
        index = self._find_row(rows, reminder_id)
        if index == -1:
            raise NotFoundError("Reminder not found")
        sheet_id = self._retry(lambda: self.client.get_sheet_id(REMINDERS_SHEET))
        logger.info("Deleting reminder %s at sheet row %d", reminder_id, index + 1)
        self._retry(
            lambda: self.client.batch_update([delete_rows_request(sheet_id, index, index + 1)])
        )

    # Records

    def add_record(self, payload: dict, operator: str = "User") -> dict:
        required = ("reminderId", "childId", "scheduledTime")
        if any(not payload.get(key) for key in required):
            raise ValidationError("Required fields missing")
        status = payload.get("status") or "pending"
        now = self._now_iso()
        record = {
            "id": self._new_id(),
            "reminderId": payload["reminderId"],
            "childId": payload["childId"],
            "scheduledTime": payload["scheduledTime"],
            "completedTime": now if status == "completed" else "",
            "status": status,
            "note": payload.get("note") or "",
            "operator": operator,
            "createdAt": now,
        }
        self._append(RECORDS_RANGE, [record[key] for key in RECORD_FIELDS])
        return record

    def _records(self) -> list[dict]:
        return [_row_to_dict(RECORD_FIELDS, row) for row in self._read(RECORDS_RANGE)[1:]]

    def list_records(
        self,
        child_id: Optional[str] = None,
        reminder_id: Optional[str] = None,
        day: Optional[date] = None,
    ) -> list[dict]:
        records = self._records()
        if child_id:
            records = [r for r in records if r["childId"] == child_id]
        if reminder_id:
            records = [r for r in records if r["reminderId"] == reminder_id]
        if day is not None:
            records = [r for r in records if parse_day(r["scheduledTime"]) == day]
        return records

    def statistics(
        self,
        child_id: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> dict:
        records = self._records()
        if child_id:
            records = [r for r in records if r["childId"] == child_id]
        if start is not None and end is not None:
            in_range = []
            for record in records:
                day = parse_day(record["scheduledTime"])
                if day is not None and start <= day <= end:
                    in_range.append(record)
            records = in_range

        counts = {status: 0 for status in RECORD_STATUSES}
        for record in records:
            if record["status"] in counts:
                counts[record["status"]] += 1
        total = len(records)
        rate = round(counts["completed"] / total * 100, 2) if total else 0

        reminder_categories = {
            row[0]: row[4]
            for row in self._read(REMINDERS_RANGE)[1:]
            if len(row) > 4 and row[0]
        }
        category_stats: dict[str, dict] = {}
        for record in records:
            category = reminder_categories.get(record["reminderId"])
            if not category:
                continue
            stats = category_stats.setdefault(
                category, {"total": 0, "completed": 0, "skipped": 0, "pending": 0}
            )
            stats["total"] += 1
            if record["status"] in RECORD_STATUSES:
                stats[record["status"]] += 1

        return {
            "totalTasks": total,
            "completedTasks": counts["completed"],
            "skippedTasks": counts["skipped"],
            "pendingTasks": counts["pending"],
            "completionRate": rate,
            "categoryStats": category_stats,
        }
