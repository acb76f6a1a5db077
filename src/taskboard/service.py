"""Board store: applies create/update commands to the persisted board."""

from __future__ import annotations

from dataclasses import replace
import datetime as dt
from pathlib import Path
from typing import Iterable

from .draft import is_temp_id
from .models import (
    VALID_PRIORITIES,
    ChecklistItem,
    Column,
    Command,
    Comment,
    CreateTask,
    Task,
    TaskConflictError,
    TaskNotFoundError,
    TaskPayload,
    TaskValidationError,
)
from . import storage


PRIORITY_SORT = {"high": 0, "medium": 1, "low": 2}


def _today() -> str:
    return dt.date.today().isoformat()


def _next_seq(ids: Iterable[str], prefix: str) -> int:
    max_seq = 0
    for value in ids:
        if value.startswith(prefix):
            try:
                max_seq = max(max_seq, int(value[len(prefix) :]))
            except ValueError:
                continue
    return max_seq + 1


def _rekey_checklist(items: list[ChecklistItem]) -> list[ChecklistItem]:
    seq = _next_seq((item.id for item in items), "ci-")
    rekeyed: list[ChecklistItem] = []
    for item in items:
        if is_temp_id(item.id):
            item = replace(item, id=f"ci-{seq}")
            seq += 1
        rekeyed.append(item)
    return rekeyed


def _rekey_comments(comments: list[Comment]) -> list[Comment]:
    seq = _next_seq((comment.id for comment in comments), "cm-")
    rekeyed: list[Comment] = []
    # oldest first so sequence numbers follow creation order
    for comment in reversed(comments):
        if is_temp_id(comment.id):
            comment = replace(comment, id=f"cm-{seq}")
            seq += 1
        rekeyed.append(comment)
    rekeyed.reverse()
    return rekeyed


class BoardService:
    def __init__(self, board_root: Path) -> None:
        self.board_root = board_root.resolve()

    def ensure_layout(self) -> None:
        storage.ensure_layout(self.board_root)

    def _load(self) -> tuple[list[Column], dict[str, Task]]:
        return storage.load_board(self.board_root)

    def _save(self, columns: list[Column], tasks: dict[str, Task]) -> None:
        storage.save_board(self.board_root, columns, tasks)

    @staticmethod
    def _validate_payload(payload: TaskPayload) -> None:
        if not payload.content.strip():
            raise TaskValidationError("content is required")
        if payload.priority is not None and payload.priority not in VALID_PRIORITIES:
            raise TaskValidationError(f"Invalid priority: {payload.priority}")

    @staticmethod
    def _find_column(columns: list[Column], column_id: str) -> Column:
        for column in columns:
            if column.column_id == column_id:
                return column
        raise TaskNotFoundError(f"Column not found: {column_id}")

    @staticmethod
    def _apply_payload(task: Task, payload: TaskPayload) -> None:
        task.content = payload.content
        task.description = payload.description
        task.priority = payload.priority
        task.due_date = payload.due_date
        task.tags = list(payload.tags)
        task.assigned_to = payload.assigned_to
        task.cover_image = payload.cover_image
        task.checklist = _rekey_checklist(payload.checklist)
        task.comments = _rekey_comments(payload.comments)

    # -------------------- store interface --------------------
    def all_tasks(self) -> list[Task]:
        _, tasks = self._load()
        return list(tasks.values())

    def create(self, column_id: str, payload: TaskPayload) -> Task:
        self._validate_payload(payload)
        columns, tasks = self._load()
        column = self._find_column(columns, column_id)
        today = _today()
        task = Task(
            task_id=storage.next_task_id(list(tasks), today),
            content="",
            column_id=column.column_id,
            date_created=today,
        )
        self._apply_payload(task, payload)
        tasks[task.task_id] = task
        column.task_ids.append(task.task_id)
        self._save(columns, tasks)
        return task

    def update(self, task_id: str, payload: TaskPayload) -> Task:
        self._validate_payload(payload)
        columns, tasks = self._load()
        task = tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task not found: {task_id}")
        self._apply_payload(task, payload)
        self._save(columns, tasks)
        return task

    def dispatch(self, command: Command) -> Task:
        if isinstance(command, CreateTask):
            return self.create(command.column_id, command.payload)
        return self.update(command.task_id, command.payload)

    # -------------------- queries --------------------
    def list_columns(self) -> list[Column]:
        columns, _ = self._load()
        return columns

    def add_column(self, column_id: str, title: str | None = None) -> Column:
        column_id = column_id.strip()
        if not column_id:
            raise TaskValidationError("column id is required")
        columns, tasks = self._load()
        if any(column.column_id == column_id for column in columns):
            raise TaskConflictError(f"Column already exists: {column_id}")
        column = Column(column_id=column_id, title=(title or "").strip() or column_id)
        columns.append(column)
        self._save(columns, tasks)
        return column

    def view_task(self, task_id: str) -> Task:
        _, tasks = self._load()
        task = tasks.get(task_id.strip())
        if task is None:
            raise TaskNotFoundError(f"Task not found: {task_id}")
        return task

    def list_tasks(
        self,
        column_id: str | None = None,
        *,
        include_tags: Iterable[str] | None = None,
    ) -> list[Task]:
        columns, tasks = self._load()
        if column_id is not None:
            columns = [self._find_column(columns, column_id)]
        tag_filter = {tag.strip() for tag in include_tags or [] if tag.strip()}

        ordered: list[Task] = []
        for column in columns:
            bucket = [tasks[task_id] for task_id in column.task_ids if task_id in tasks]
            if tag_filter:
                bucket = [task for task in bucket if tag_filter.intersection(task.tags)]
            bucket.sort(
                key=lambda task: (
                    PRIORITY_SORT.get(task.priority or "", 99),
                    task.due_date or dt.date.max,
                    task.date_created,
                )
            )
            ordered.extend(bucket)
        return ordered

    def tag_counts(self) -> list[dict[str, str | int]]:
        counts: dict[str, int] = {}
        for task in self.all_tasks():
            for tag in set(task.tags):
                counts[tag] = counts.get(tag, 0) + 1
        return [{"tag": tag, "total": counts[tag]} for tag in sorted(counts)]
