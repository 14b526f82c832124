"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from reminder_backend.config import get_settings
from reminder_backend.reminders import ReminderStore
from reminder_backend.sheet_setup import resolve_journal_sheet
from reminder_backend.sheets import GoogleSheetsClient, InMemorySheetsClient, SheetsClient
from reminder_backend.thoughts import ThoughtStore

_sheets_client: SheetsClient | None = None
_thought_store: ThoughtStore | None = None
_reminder_store: ReminderStore | None = None


def get_sheets_client() -> SheetsClient:
    """
    Return a singleton spreadsheet client shared by every repository.
    """
    global _sheets_client
    if _sheets_client:
        return _sheets_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.google_sheets_id:
        _sheets_client = InMemorySheetsClient(
            sheets={settings.thoughts_sheet_name: [["Content", "Timestamp", "Date"]]}
        )
    else:
        _sheets_client = GoogleSheetsClient(
            spreadsheet_id=settings.google_sheets_id,
            credentials_file=settings.google_application_credentials,
            timeout_seconds=settings.request_timeout_seconds,
        )
    return _sheets_client


def get_thought_store() -> ThoughtStore:
    """
    Return a singleton journal repository so its caches persist across requests.
    """
    global _thought_store
    if _thought_store:
        return _thought_store

    settings = get_settings()
    client = get_sheets_client()
    _thought_store = ThoughtStore(
        client,
        sheet_name=resolve_journal_sheet(
            client, settings.thoughts_sheet_name, max_retries=settings.max_retries
        ),
        archive_sheet_name=settings.archive_sheet_name,
        max_content_length=settings.max_content_length,
        max_retries=settings.max_retries,
        cache_ttl_seconds=settings.cache_ttl_seconds,
        timezone=settings.timezone,
    )
    return _thought_store


def get_reminder_store() -> ReminderStore:
    global _reminder_store
    if _reminder_store:
        return _reminder_store
    settings = get_settings()
    _reminder_store = ReminderStore(get_sheets_client(), max_retries=settings.max_retries)
    return _reminder_store
