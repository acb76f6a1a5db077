"""Edit-session host: seeds a draft, dispatches one command, closes."""

from __future__ import annotations

from typing import Callable, Protocol

from .draft import TaskDraft, commit_draft, load_draft, tag_suggestions
from .models import DEFAULT_COMMENT_AUTHOR, Command, Task, TaskPayload


class TaskStore(Protocol):
    def all_tasks(self) -> list[Task]: ...

    def create(self, column_id: str, payload: TaskPayload) -> Task: ...

    def update(self, task_id: str, payload: TaskPayload) -> Task: ...

    def dispatch(self, command: Command) -> Task: ...


_UNSEEDED = object()


class EditSession:
    def __init__(
        self,
        store: TaskStore,
        *,
        column_id: str | None = None,
        on_close: Callable[[], None] | None = None,
        comment_author: str = DEFAULT_COMMENT_AUTHOR,
    ) -> None:
        self.store = store
        self.column_id = column_id
        self.on_close = on_close
        self.draft = TaskDraft(comment_author=comment_author)
        self.task: Task | None = None
        self.is_open = False
        self.last_task: Task | None = None
        self._seeded_task: object = _UNSEEDED

    @property
    def is_editing(self) -> bool:
        return self.task is not None

    def sync(self, *, open: bool, task: Task | None) -> bool:
        """Apply host props; re-seed when a different task object arrives or on open.

        A fresh snapshot of the same task id counts as a change. Returns True
        when the draft was re-seeded.
        """
        opened = open and not self.is_open
        self.is_open = open
        self.task = task
        if task is self._seeded_task and not opened:
            return False
        load_draft(self.draft, task)
        self._seeded_task = task
        return True

    def open(self, task: Task | None = None, *, column_id: str | None = None) -> TaskDraft:
        if column_id is not None:
            self.column_id = column_id
        self.sync(open=True, task=task)
        return self.draft

    def tag_suggestions(self) -> list[str]:
        return tag_suggestions(self.store.all_tasks())

    def submit(self) -> Command | None:
        if not self.is_open:
            return None
        command = commit_draft(
            self.draft,
            task_id=self.task.task_id if self.task is not None else None,
            column_id=self.column_id,
        )
        if command is None:
            return None
        self.last_task = self.store.dispatch(command)
        self.close()
        return command

    def cancel(self) -> None:
        self.close()

    def close(self) -> None:
        self.is_open = False
        if self.on_close is not None:
            self.on_close()
