"""
HTTP routes for the journal and child-care reminder API.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from typing import Iterator, Literal, Optional

from fastapi import APIRouter, Depends, Query

from reminder_backend.auth import require_auth
from reminder_backend.config import Settings, get_settings
from reminder_backend.dependencies import get_reminder_store, get_thought_store
from reminder_backend.errors import ReminderAppError, ValidationError, classify_remote_error
from reminder_backend.reminders import ReminderStore, parse_day
from reminder_backend.schemas import (
    CategoryListResponse,
    ChildListResponse,
    ChildPayload,
    ChildResponse,
    MessageResponse,
    RecordListResponse,
    RecordPayload,
    RecordResponse,
    ReminderListResponse,
    ReminderPayload,
    ReminderResponse,
    SearchResponse,
    StatisticsResponse,
    ThoughtListResponse,
    ThoughtPayload,
    ThoughtResponse,
)
from reminder_backend.thoughts import ThoughtStore

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_auth)])


@contextmanager
def remote_call(failure_message: str) -> Iterator[None]:
    """Translate failures that outlived the retries into API errors."""
    try:
        yield
    except ReminderAppError:
        raise
    except Exception as exc:
        logger.exception(failure_message)
        raise classify_remote_error(exc, failure_message) from exc


def _parse_index(raw_id: str, noun: str = "thought") -> int:
    try:
        return int(raw_id)
    except ValueError:
        raise ValidationError(f"Invalid {noun} ID") from None


def _parse_day_param(value: Optional[str], name: str) -> Optional[date]:
    if not value:
        return None
    day = parse_day(value)
    if day is None:
        raise ValidationError(f"Invalid {name}: {value}")
    return day


def _page_limit(limit: Optional[int], settings: Settings) -> int:
    return min(limit or settings.thoughts_per_page, settings.max_page_size)


# Journal


@router.get(
    "/thoughts", response_model=ThoughtListResponse, response_model_exclude_none=True
)
def list_thoughts(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    refresh: bool = Query(False),
    store: ThoughtStore = Depends(get_thought_store),
    settings: Settings = Depends(get_settings),
):
    with remote_call("Failed to fetch thoughts"):
        result = store.list(page, _page_limit(limit, settings), force_refresh=refresh)
    return {
        "thoughts": result.items,
        "pagination": result.pagination(),
        "cached": result.cached,
    }


@router.post("/thoughts", response_model=ThoughtResponse, response_model_exclude_none=True)
def add_thought(payload: ThoughtPayload, store: ThoughtStore = Depends(get_thought_store)):
    with remote_call("Failed to add thought"):
        thought = store.add(payload.content)
    return ThoughtResponse(message="Thought added successfully", **thought.as_dict())


@router.get(
    "/thoughts/archived",
    response_model=ThoughtListResponse,
    response_model_exclude_none=True,
)
def list_archived_thoughts(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    refresh: bool = Query(False),
    store: ThoughtStore = Depends(get_thought_store),
    settings: Settings = Depends(get_settings),
):
    with remote_call("Failed to fetch archived thoughts"):
        result = store.list_archived(
            page, _page_limit(limit, settings), force_refresh=refresh
        )
    return {
        "thoughts": result.items,
        "pagination": result.pagination(),
        "cached": result.cached,
    }


@router.get(
    "/thoughts/search", response_model=SearchResponse, response_model_exclude_none=True
)
def search_thoughts(
    q: str = Query(""),
    type: Literal["main", "archive", "all"] = Query("all"),
    store: ThoughtStore = Depends(get_thought_store),
):
    with remote_call("Failed to search thoughts"):
        results = store.search(q, type)
    return {
        "thoughts": results,
        "pagination": {"totalCount": len(results), "hasMore": False},
        "query": q,
    }


@router.put(
    "/thoughts/{thought_id}",
    response_model=ThoughtResponse,
    response_model_exclude_none=True,
)
def update_thought(
    thought_id: str,
    payload: ThoughtPayload,
    store: ThoughtStore = Depends(get_thought_store),
):
    index = _parse_index(thought_id)
    with remote_call("Failed to update thought"):
        thought = store.update(index, payload.content)
    return ThoughtResponse(message="Thought updated successfully", **thought.as_dict())


@router.delete("/thoughts/{thought_id}", response_model=MessageResponse)
def delete_thought(thought_id: str, store: ThoughtStore = Depends(get_thought_store)):
    index = _parse_index(thought_id)
    with remote_call("Failed to delete thought"):
        store.delete(index)
    return MessageResponse(message="Thought deleted successfully")


@router.post(
    "/thoughts/{thought_id}/archive",
    response_model=ThoughtResponse,
    response_model_exclude_none=True,
)
def archive_thought(thought_id: str, store: ThoughtStore = Depends(get_thought_store)):
    index = _parse_index(thought_id)
    with remote_call("Failed to archive thought"):
        archived = store.archive_thought(index)
    return ThoughtResponse(message="Thought archived successfully", **archived.as_dict())


@router.post(
    "/thoughts/{thought_id}/unarchive",
    response_model=ThoughtResponse,
    response_model_exclude_none=True,
)
def unarchive_thought(thought_id: str, store: ThoughtStore = Depends(get_thought_store)):
    index = _parse_index(thought_id, "archived thought")
    with remote_call("Failed to unarchive thought"):
        restored = store.unarchive_thought(index)
    return ThoughtResponse(message="Thought unarchived successfully", **restored.as_dict())


# Child-care reminders


@router.get("/categories", response_model=CategoryListResponse)
def list_categories(store: ReminderStore = Depends(get_reminder_store)):
    with remote_call("Failed to fetch categories"):
        return {"categories": store.list_categories()}


@router.get("/children", response_model=ChildListResponse)
def list_children(store: ReminderStore = Depends(get_reminder_store)):
    with remote_call("Failed to fetch children"):
        return {"children": store.list_children()}


@router.post("/children", response_model=ChildResponse)
def add_child(payload: ChildPayload, store: ReminderStore = Depends(get_reminder_store)):
    with remote_call("Failed to add child"):
        child = store.add_child(
            payload.name,
            str(payload.age) if payload.age is not None else None,
            birthday=payload.birthday,
            avatar=payload.avatar,
        )
    return {"message": "Child added successfully", "child": child}


@router.put("/children/{child_id}", response_model=ChildResponse)
def update_child(
    child_id: str,
    payload: ChildPayload,
    store: ReminderStore = Depends(get_reminder_store),
):
    with remote_call("Failed to update child"):
        child = store.update_child(child_id, payload.model_dump(exclude_unset=True))
    return {"message": "Child updated successfully", "child": child}


@router.get("/reminders", response_model=ReminderListResponse)
def list_reminders(
    childId: Optional[str] = Query(None),
    date: Optional[str] = Query(None),
    store: ReminderStore = Depends(get_reminder_store),
):
    day = _parse_day_param(date, "date")
    with remote_call("Failed to fetch reminders"):
        return {"reminders": store.list_reminders(child_id=childId, day=day)}


@router.post("/reminders", response_model=ReminderResponse)
def add_reminder(
    payload: ReminderPayload, store: ReminderStore = Depends(get_reminder_store)
):
    with remote_call("Failed to add reminder"):
        reminder = store.add_reminder(payload.model_dump())
    return {"message": "Reminder added successfully", "reminder": reminder}


@router.put("/reminders/{reminder_id}", response_model=ReminderResponse)
def update_reminder(
    reminder_id: str,
    payload: ReminderPayload,
    store: ReminderStore = Depends(get_reminder_store),
):
    with remote_call("Failed to update reminder"):
        reminder = store.update_reminder(
            reminder_id, payload.model_dump(exclude_unset=True)
        )
    return {"message": "Reminder updated successfully", "reminder": reminder}


@router.delete("/reminders/{reminder_id}", response_model=MessageResponse)
def delete_reminder(reminder_id: str, store: ReminderStore = Depends(get_reminder_store)):
    with remote_call("Failed to delete reminder"):
        store.delete_reminder(reminder_id)
    return MessageResponse(message="Reminder deleted successfully")


@router.post("/records", response_model=RecordResponse)
def add_record(payload: RecordPayload, store: ReminderStore = Depends(get_reminder_store)):
    with remote_call("Failed to add record"):
        record = store.add_record(payload.model_dump())
    return {"message": "Record added successfully", "record": record}


@router.get("/records", response_model=RecordListResponse)
def list_records(
    childId: Optional[str] = Query(None),
    reminderId: Optional[str] = Query(None),
    date: Optional[str] = Query(None),
    store: ReminderStore = Depends(get_reminder_store),
):
    day = _parse_day_param(date, "date")
    with remote_call("Failed to fetch records"):
        records = store.list_records(child_id=childId, reminder_id=reminderId, day=day)
    return {"records": records}


@router.get("/statistics", response_model=StatisticsResponse)
def statistics(
    childId: Optional[str] = Query(None),
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    store: ReminderStore = Depends(get_reminder_store),
):
    start = _parse_day_param(startDate, "startDate")
    end = _parse_day_param(endDate, "endDate")
    with remote_call("Failed to fetch statistics"):
        stats = store.statistics(child_id=childId, start=start, end=end)
    return {"statistics": stats}
