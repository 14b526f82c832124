"""
Spreadsheet bootstrap: pick the journal sheet and create any missing sheets.

Only missing sheets are created and given headers; existing sheets are never
rewritten.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from reminder_backend.reminders import (
    CATEGORIES_SHEET,
    CHILDREN_SHEET,
    RECORDS_SHEET,
    REMINDERS_SHEET,
)
from reminder_backend.retry import DEFAULT_MAX_RETRIES, retry_operation
from reminder_backend.sheets import (
    SheetsClient,
    add_sheet_request,
    bold_header_request,
    colored_header_request,
)
from reminder_backend.thoughts import ARCHIVE_HEADERS

logger = logging.getLogger(__name__)

GRID_ROWS = 1000
GRID_COLUMNS = 20

REMINDER_SHEET_HEADERS = {
    CHILDREN_SHEET: ["ID", "姓名", "年龄", "生日", "头像", "创建时间", "更新时间", "状态"],
    REMINDERS_SHEET: [
        "ID",
        "孩子ID",
        "标题",
        "描述",
        "分类",
        "提醒类型",
        "提醒时间",
        "重复规则",
        "提前提醒(分钟)",
        "启用状态",
        "创建时间",
        "更新时间",
    ],
    RECORDS_SHEET: ["ID", "提醒ID", "孩子ID", "计划时间", "完成时间", "状态", "备注", "操作人", "创建时间"],
    CATEGORIES_SHEET: ["ID", "分类名称", "图标", "颜色", "排序", "描述", "创建时间"],
}

# (id, name, icon, color, order, description)
DEFAULT_CATEGORIES = [
    ("1", "喝水", "💧", "#4FC3F7", "1", "定时提醒喝水"),
    ("2", "维他命", "💊", "#66BB6A", "2", "维他命和营养补充剂"),
    ("3", "刷牙", "🦷", "#FF7043", "3", "口腔卫生护理"),
    ("4", "午睡", "😴", "#9575CD", "4", "休息和睡眠"),
    ("5", "运动", "🏃", "#FFB74D", "5", "体育锻炼活动"),
    ("6", "补铁剂", "🩸", "#F06292", "6", "铁剂补充"),
    ("7", "吃药", "💉", "#EF5350", "7", "药物服用提醒"),
    ("8", "作业", "📚", "#5C6BC0", "8", "学习任务提醒"),
    ("9", "其他", "📌", "#78909C", "9", "其他提醒事项"),
]


def default_category_rows(created_at: str | None = None) -> list[list[str]]:
    created_at = created_at or datetime.now(timezone.utc).isoformat()
    return [[*category, created_at] for category in DEFAULT_CATEGORIES]


def resolve_journal_sheet(
    client: SheetsClient,
    preferred: str = "Thoughts",
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """
    Title of the journal sheet: a case-insensitive match for `preferred`,
    otherwise the first sheet in the spreadsheet. Falls back to `preferred`
    when the sheet titles cannot be read.
    """
    try:
        titles = list(retry_operation(client.list_sheets, max_retries, sleep=sleep))
    except Exception:
        logger.exception("Failed to read sheet titles, using %r", preferred)
        return preferred
    for title in titles:
        if title.lower() == preferred.lower():
            return title
    if titles:
        logger.warning("No %r sheet found, using first sheet %r", preferred, titles[0])
        return titles[0]
    return preferred


def ensure_archive_sheet(client: SheetsClient, archive_sheet_name: str) -> bool:
    """Create the archive sheet with a bold header row. Returns True if created."""
    if archive_sheet_name in client.list_sheets():
        return False
    client.batch_update([add_sheet_request(archive_sheet_name)])
    client.update_values(
        f"{archive_sheet_name}!A1:D1", [ARCHIVE_HEADERS], value_input_option="USER_ENTERED"
    )
    sheet_id = client.get_sheet_id(archive_sheet_name)
    client.batch_update([bold_header_request(sheet_id, ARCHIVE_HEADERS)])
    logger.info("Created archive sheet: %s", archive_sheet_name)
    return True


def ensure_reminder_sheets(client: SheetsClient) -> list[str]:
    """Create missing reminder sheets with headers and seed data."""
    existing = client.list_sheets()
    missing = [name for name in REMINDER_SHEET_HEADERS if name not in existing]
    if not missing:
        return []

    client.batch_update(
        [
            add_sheet_request(name, row_count=GRID_ROWS, column_count=GRID_COLUMNS)
            for name in missing
        ]
    )
    for name in missing:
        values = [REMINDER_SHEET_HEADERS[name]]
        if name == CATEGORIES_SHEET:
            values.extend(default_category_rows())
        client.update_values(f"{name}!A1", values, value_input_option="RAW")
        logger.info("Initialized %s with headers and data", name)

    sheet_ids = client.list_sheets()
    client.batch_update([colored_header_request(sheet_ids[name]) for name in missing])
    return missing


def initialize_sheets(
    client: SheetsClient,
    *,
    archive_sheet_name: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    sleep: Callable[[float], None] = time.sleep,
) -> list[str]:
    """
    Run every bootstrap step and return the titles of sheets created.

    Each step is retried as a whole. A step that still fails is logged and
    skipped so the service can start; the routes touching that sheet then
    report the failure themselves.
    """
    created = []
    try:
        if retry_operation(
            lambda: ensure_archive_sheet(client, archive_sheet_name), max_retries, sleep=sleep
        ):
            created.append(archive_sheet_name)
    except Exception:
        logger.exception("Failed to initialize archive sheet %s", archive_sheet_name)
    try:
        created.extend(
            retry_operation(lambda: ensure_reminder_sheets(client), max_retries, sleep=sleep)
        )
    except Exception:
        logger.exception("Failed to initialize reminder sheets")
    return created
