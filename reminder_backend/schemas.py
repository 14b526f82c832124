"""
Pydantic schemas for the reminder backend.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    password: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class AuthResult(BaseModel):
    success: bool
    message: str


class AuthStatusResponse(BaseModel):
    authenticated: bool
    hasPassword: bool


class HealthResponse(BaseModel):
    status: str
    timestamp: str


class ThoughtPayload(BaseModel):
    content: Optional[str] = None


class ThoughtItem(BaseModel):
    id: int
    content: str
    timestamp: str
    date: str
    archivedAt: Optional[str] = None


class Pagination(BaseModel):
    page: int
    limit: int
    totalCount: int
    totalPages: int
    hasMore: bool


class ThoughtListResponse(BaseModel):
    thoughts: list[ThoughtItem]
    pagination: Pagination
    cached: bool


class ThoughtResponse(BaseModel):
    message: str
    content: str
    timestamp: str
    date: str
    archivedAt: Optional[str] = None


class SearchItem(BaseModel):
    id: int
    content: str
    timestamp: str
    date: str
    type: Literal["main", "archive"]
    archivedAt: Optional[str] = None


class SearchPagination(BaseModel):
    totalCount: int
    hasMore: bool = False


class SearchResponse(BaseModel):
    thoughts: list[SearchItem]
    pagination: SearchPagination
    query: str = ""


class Category(BaseModel):
    id: str
    name: str
    icon: str
    color: str
    order: int
    description: str
    createdAt: str


class CategoryListResponse(BaseModel):
    categories: list[Category]


class Child(BaseModel):
    id: str
    name: str
    age: str
    birthday: str = ""
    avatar: str = ""
    createdAt: str
    updatedAt: str
    status: str = "active"


class ChildPayload(BaseModel):
    name: Optional[str] = None
    age: Optional[Union[str, int]] = None
    birthday: Optional[str] = None
    avatar: Optional[str] = None


class ChildListResponse(BaseModel):
    children: list[Child]


class ChildResponse(BaseModel):
    message: str
    child: Child


class Reminder(BaseModel):
    id: str
    childId: str
    title: str
    description: str = ""
    category: str = ""
    reminderType: str
    reminderTime: str
    repeatRule: str = ""
    advanceMinutes: int = 0
    enabled: bool = True
    createdAt: str
    updatedAt: str


class ReminderPayload(BaseModel):
    childId: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    reminderType: Optional[str] = None
    reminderTime: Optional[str] = None
    repeatRule: Optional[str] = None
    advanceMinutes: Optional[int] = Field(default=None, ge=0)
    enabled: Optional[bool] = None


class ReminderListResponse(BaseModel):
    reminders: list[Reminder]


class ReminderResponse(BaseModel):
    message: str
    reminder: Reminder


class Record(BaseModel):
    id: str
    reminderId: str
    childId: str
    scheduledTime: str
    completedTime: str = ""
    status: str
    note: str = ""
    operator: str = ""
    createdAt: str


class RecordPayload(BaseModel):
    reminderId: Optional[str] = None
    childId: Optional[str] = None
    scheduledTime: Optional[str] = None
    status: Literal["completed", "skipped", "pending"] = "pending"
    note: Optional[str] = None


class RecordListResponse(BaseModel):
    records: list[Record]


class RecordResponse(BaseModel):
    message: str
    record: Record


class CategoryStats(BaseModel):
    total: int
    completed: int
    skipped: int
    pending: int


class Statistics(BaseModel):
    totalTasks: int
    completedTasks: int
    skippedTasks: int
    pendingTasks: int
    completionRate: float
    categoryStats: dict[str, CategoryStats]


class StatisticsResponse(BaseModel):
    statistics: Statistics
