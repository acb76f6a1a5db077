"""Staged edit state for a single task and its commit payload."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import datetime as dt
import math
import secrets
import string
from typing import Any, Iterable

from .models import (
    DEFAULT_COMMENT_AUTHOR,
    TEMP_ID_PREFIX,
    ChecklistItem,
    Command,
    Comment,
    CreateTask,
    Task,
    TaskPayload,
    TaskValidationError,
    UpdateTask,
)

_TEMP_ID_ALPHABET = string.ascii_lowercase + string.digits
_TEMP_ID_LENGTH = 12


def new_temp_id() -> str:
    token = "".join(secrets.choice(_TEMP_ID_ALPHABET) for _ in range(_TEMP_ID_LENGTH))
    return f"{TEMP_ID_PREFIX}{token}"


def is_temp_id(value: str) -> bool:
    return value.startswith(TEMP_ID_PREFIX)


def checklist_progress(items: Iterable[ChecklistItem]) -> int:
    """Percentage of completed items, rounded half-up; 0 for an empty list."""
    item_list = list(items)
    if not item_list:
        return 0
    completed = sum(1 for item in item_list if item.is_complete)
    return math.floor(completed * 100 / len(item_list) + 0.5)


@dataclass(slots=True)
class TaskDraft:
    content: str = ""
    description: str = ""
    priority: str = ""
    due_date: dt.date | None = None
    tags: list[str] = field(default_factory=list)
    assigned_to: str = ""
    cover_image: str = ""
    checklist: list[ChecklistItem] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)
    new_tag: str = ""
    new_checklist_item: str = ""
    new_comment: str = ""
    comment_author: str = DEFAULT_COMMENT_AUTHOR

    # -------------------- scalar fields --------------------
    def set_content(self, value: str) -> None:
        self.content = value

    def set_description(self, value: str) -> None:
        self.description = value

    def set_priority(self, value: str) -> None:
        self.priority = value

    def set_due_date(self, value: dt.date | None) -> None:
        self.due_date = value

    def set_assigned_to(self, value: str) -> None:
        self.assigned_to = value

    def set_cover_image(self, value: str) -> None:
        self.cover_image = value

    # -------------------- tags --------------------
    def add_tag(self, text: str | None = None) -> bool:
        if text is not None:
            self.new_tag = text
        tag = self.new_tag.strip()
        if not tag or tag in self.tags:
            return False
        self.tags = [*self.tags, tag]
        self.new_tag = ""
        return True

    def remove_tag(self, tag: str) -> None:
        self.tags = [existing for existing in self.tags if existing != tag]

    def replace_tags(self, values: Iterable[Any]) -> None:
        """Replace tags wholesale from a mixed multi-select value.

        Non-string entries are discarded; strings are trimmed, empties dropped,
        and duplicates collapsed to their first occurrence.
        """
        tags: list[str] = []
        for value in values:
            if not isinstance(value, str):
                continue
            tag = value.strip()
            if tag and tag not in tags:
                tags.append(tag)
        self.tags = tags

    # -------------------- checklist --------------------
    def add_checklist_item(self, text: str | None = None) -> ChecklistItem | None:
        if text is not None:
            self.new_checklist_item = text
        cleaned = self.new_checklist_item.strip()
        if not cleaned:
            return None
        item = ChecklistItem(id=new_temp_id(), text=cleaned, is_complete=False)
        self.checklist = [*self.checklist, item]
        self.new_checklist_item = ""
        return item

    def toggle_checklist_item(self, item_id: str) -> None:
        self.checklist = [
            replace(item, is_complete=not item.is_complete) if item.id == item_id else item
            for item in self.checklist
        ]

    def delete_checklist_item(self, item_id: str) -> None:
        self.checklist = [item for item in self.checklist if item.id != item_id]

    @property
    def progress(self) -> int:
        return checklist_progress(self.checklist)

    # -------------------- comments --------------------
    def add_comment(self, text: str | None = None, *, now: dt.datetime | None = None) -> Comment | None:
        if text is not None:
            self.new_comment = text
        cleaned = self.new_comment.strip()
        if not cleaned:
            return None
        comment = Comment(
            id=new_temp_id(),
            text=cleaned,
            author=self.comment_author,
            created_at=now or dt.datetime.now(),
        )
        self.comments = [comment, *self.comments]
        self.new_comment = ""
        return comment

    def delete_comment(self, comment_id: str) -> None:
        self.comments = [comment for comment in self.comments if comment.id != comment_id]

    # -------------------- commit --------------------
    @property
    def can_submit(self) -> bool:
        return bool(self.content.strip())


def load_draft(draft: TaskDraft, task: Task | None) -> TaskDraft:
    """Overwrite every staged field from ``task``, or reset for a new task.

    Unsaved edits and input buffers are discarded either way.
    """
    draft.new_tag = ""
    draft.new_checklist_item = ""
    draft.new_comment = ""
    if task is None:
        draft.content = ""
        draft.description = ""
        draft.priority = ""
        draft.due_date = None
        draft.tags = []
        draft.assigned_to = ""
        draft.cover_image = ""
        draft.checklist = []
        draft.comments = []
        return draft

    draft.content = task.content
    draft.description = task.description or ""
    draft.priority = task.priority or ""
    draft.due_date = task.due_date
    draft.tags = list(task.tags or [])
    draft.assigned_to = task.assigned_to or ""
    draft.cover_image = task.cover_image or ""
    draft.checklist = [replace(item) for item in task.checklist or []]
    draft.comments = [replace(comment) for comment in task.comments or []]
    return draft


def build_payload(draft: TaskDraft) -> TaskPayload:
    return TaskPayload(
        content=draft.content,
        description=draft.description or None,
        priority=draft.priority or None,
        due_date=draft.due_date,
        tags=list(draft.tags),
        cover_image=draft.cover_image or None,
        assigned_to=draft.assigned_to or None,
        checklist=[replace(item) for item in draft.checklist],
        comments=[replace(comment) for comment in draft.comments],
    )


def commit_draft(
    draft: TaskDraft,
    *,
    task_id: str | None = None,
    column_id: str | None = None,
) -> Command | None:
    """Return the single create/update command for ``draft``, or None if blank."""
    if not draft.can_submit:
        return None
    payload = build_payload(draft)
    if task_id is not None:
        return UpdateTask(task_id=task_id, payload=payload)
    if column_id is None:
        raise TaskValidationError("column_id is required to create a task")
    return CreateTask(column_id=column_id, payload=payload)


def tag_suggestions(tasks: Iterable[Task]) -> list[str]:
    return sorted({tag for task in tasks for tag in task.tags or []})
