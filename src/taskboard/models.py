"""Core task-board models, commands, and constants."""

from __future__ import annotations

from dataclasses import dataclass, field
import datetime as dt
from typing import Any, Union

VALID_PRIORITIES = ("low", "medium", "high")
DEFAULT_COLUMNS = (
    ("todo", "To do"),
    ("doing", "Doing"),
    ("done", "Done"),
)
DEFAULT_COMMENT_AUTHOR = "User"
TEMP_ID_PREFIX = "temp-"


@dataclass(slots=True)
class ChecklistItem:
    id: str
    text: str
    is_complete: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "isComplete": self.is_complete}


@dataclass(slots=True)
class Comment:
    id: str
    text: str
    author: str
    created_at: dt.datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "author": self.author,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(slots=True)
class Column:
    column_id: str
    title: str
    task_ids: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Task:
    task_id: str
    content: str
    column_id: str
    date_created: str
    description: str | None = None
    priority: str | None = None
    due_date: dt.date | None = None
    tags: list[str] = field(default_factory=list)
    assigned_to: str | None = None
    cover_image: str | None = None
    checklist: list[ChecklistItem] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)


@dataclass(slots=True)
class TaskPayload:
    """Full replacement payload for a task.

    Optional fields hold ``None`` when they are not present; ``to_dict`` drops
    them so the store can tell "cleared" from "never set".
    """

    content: str
    tags: list[str] = field(default_factory=list)
    checklist: list[ChecklistItem] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    description: str | None = None
    priority: str | None = None
    due_date: dt.date | None = None
    cover_image: str | None = None
    assigned_to: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"content": self.content}
        if self.description is not None:
            data["description"] = self.description
        if self.priority is not None:
            data["priority"] = self.priority
        if self.due_date is not None:
            data["dueDate"] = self.due_date.isoformat()
        data["tags"] = list(self.tags)
        if self.cover_image is not None:
            data["coverImage"] = self.cover_image
        if self.assigned_to is not None:
            data["assignedTo"] = self.assigned_to
        data["checklist"] = [item.to_dict() for item in self.checklist]
        data["comments"] = [comment.to_dict() for comment in self.comments]
        return data


@dataclass(frozen=True, slots=True)
class CreateTask:
    column_id: str
    payload: TaskPayload


@dataclass(frozen=True, slots=True)
class UpdateTask:
    task_id: str
    payload: TaskPayload


Command = Union[CreateTask, UpdateTask]


class TaskError(Exception):
    """Base error for task operations."""


class TaskValidationError(TaskError):
    """Raised when task fields or board layout are invalid."""


class TaskNotFoundError(TaskError):
    """Raised when a task or column cannot be located."""


class TaskConflictError(TaskError):
    """Raised for collisions and ambiguous actions."""
