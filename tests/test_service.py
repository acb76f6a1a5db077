from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest
import yaml

from taskboard.draft import TaskDraft, build_payload, commit_draft, load_draft
from taskboard.models import (
    TaskConflictError,
    TaskNotFoundError,
    TaskPayload,
    TaskValidationError,
)
from taskboard.service import BoardService
from taskboard.session import EditSession


@pytest.fixture()
def svc(tmp_path: Path) -> BoardService:
    service = BoardService(tmp_path / ".taskboard")
    service.ensure_layout()
    return service


def test_ensure_layout_writes_default_columns(svc: BoardService) -> None:
    assert [column.column_id for column in svc.list_columns()] == ["todo", "doing", "done"]
    data = yaml.safe_load((svc.board_root / "board.yaml").read_text(encoding="utf-8"))
    assert data["tasks"] == []


def test_create_assigns_id_and_rekeys_temp_items(svc: BoardService) -> None:
    draft = TaskDraft(content="Buy milk")
    draft.add_checklist_item("find wallet")
    draft.add_checklist_item("walk")
    draft.add_comment("older", now=dt.datetime(2026, 2, 1, 9, 0))
    draft.add_comment("newer", now=dt.datetime(2026, 2, 1, 10, 0))

    task = svc.create("doing", build_payload(draft))

    today = dt.date.today().strftime("%Y%m%d")
    assert task.task_id == f"t-{today}-001"
    assert [item.id for item in task.checklist] == ["ci-1", "ci-2"]
    assert [(comment.id, comment.text) for comment in task.comments] == [("cm-2", "newer"), ("cm-1", "older")]
    assert svc.list_columns()[1].task_ids == [task.task_id]


def test_create_round_trips_through_yaml(svc: BoardService) -> None:
    draft = TaskDraft(content="Plan trip", priority="low", due_date=dt.date(2026, 5, 4))
    draft.add_tag("travel")
    draft.set_assigned_to("sam")
    created = svc.create("todo", build_payload(draft))

    loaded = svc.view_task(created.task_id)

    assert loaded.content == "Plan trip"
    assert loaded.priority == "low"
    assert loaded.due_date == dt.date(2026, 5, 4)
    assert loaded.tags == ["travel"]
    assert loaded.assigned_to == "sam"
    assert loaded.description is None


def test_update_replaces_fields_and_keeps_persisted_ids(svc: BoardService) -> None:
    draft = TaskDraft(content="Write", description="long text", assigned_to="ana")
    draft.add_checklist_item("outline")
    created = svc.create("todo", build_payload(draft))

    edit = load_draft(TaskDraft(), created)
    edit.set_description("")
    edit.toggle_checklist_item("ci-1")
    edit.add_checklist_item("polish")
    command = commit_draft(edit, task_id=created.task_id)
    updated = svc.dispatch(command)

    assert updated.description is None
    assert updated.assigned_to == "ana"
    assert [(item.id, item.is_complete) for item in updated.checklist] == [("ci-1", True), ("ci-2", False)]


def test_create_rejects_unknown_column(svc: BoardService) -> None:
    with pytest.raises(TaskNotFoundError):
        svc.create("backlog", TaskPayload(content="x"))


def test_create_rejects_blank_content(svc: BoardService) -> None:
    with pytest.raises(TaskValidationError):
        svc.create("todo", TaskPayload(content="  "))


def test_create_rejects_unknown_priority(svc: BoardService) -> None:
    draft = TaskDraft(content="x")
    draft.set_priority("urgent")
    with pytest.raises(TaskValidationError, match="Invalid priority: urgent"):
        svc.dispatch(commit_draft(draft, column_id="todo"))
    assert svc.all_tasks() == []


def test_update_unknown_task(svc: BoardService) -> None:
    with pytest.raises(TaskNotFoundError):
        svc.update("t-missing", TaskPayload(content="x"))


def test_add_column_rejects_duplicate(svc: BoardService) -> None:
    column = svc.add_column("review", "In review")
    assert column.title == "In review"
    with pytest.raises(TaskConflictError):
        svc.add_column("review")


def test_list_tasks_filters_and_sorts(svc: BoardService) -> None:
    svc.create("todo", TaskPayload(content="low", priority="low", tags=["a"]))
    svc.create("todo", TaskPayload(content="high", priority="high", tags=["b"]))
    svc.create("done", TaskPayload(content="none", tags=["a"]))

    assert [task.content for task in svc.list_tasks()] == ["high", "low", "none"]
    assert [task.content for task in svc.list_tasks("todo")] == ["high", "low"]
    assert [task.content for task in svc.list_tasks(include_tags=["a"])] == ["low", "none"]


def test_tag_counts(svc: BoardService) -> None:
    svc.create("todo", TaskPayload(content="one", tags=["a", "b"]))
    svc.create("todo", TaskPayload(content="two", tags=["a"]))
    assert svc.tag_counts() == [{"tag": "a", "total": 2}, {"tag": "b", "total": 1}]


def test_edit_session_against_service(svc: BoardService) -> None:
    svc.create("todo", TaskPayload(content="existing", tags=["home"]))
    session = EditSession(svc, column_id="todo")
    session.open(None)
    assert session.tag_suggestions() == ["home"]
    session.draft.set_content("Buy milk")
    session.submit()

    contents = sorted(task.content for task in svc.all_tasks())
    assert contents == ["Buy milk", "existing"]
