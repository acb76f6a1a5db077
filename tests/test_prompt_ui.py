from __future__ import annotations

import datetime as dt

import pytest

from taskboard import prompt_ui
from taskboard import selector_ui
from taskboard.models import ChecklistItem, Command, CreateTask, Task, TaskPayload, UpdateTask
from taskboard.session import EditSession


class _FakeStore:
    def __init__(self, tasks: list[Task] | None = None) -> None:
        self.tasks = list(tasks or [])
        self.commands: list[tuple[str, str, TaskPayload]] = []

    def all_tasks(self) -> list[Task]:
        return list(self.tasks)

    def create(self, column_id: str, payload: TaskPayload) -> Task:
        self.commands.append(("create", column_id, payload))
        return Task(task_id="new", content=payload.content, column_id=column_id, date_created="2026-02-01")

    def update(self, task_id: str, payload: TaskPayload) -> Task:
        self.commands.append(("update", task_id, payload))
        return Task(task_id=task_id, content=payload.content, column_id="todo", date_created="2026-02-01")

    def dispatch(self, command: Command) -> Task:
        if isinstance(command, CreateTask):
            return self.create(command.column_id, command.payload)
        return self.update(command.task_id, command.payload)


def _task(task_id: str = "t1", tags: list[str] | None = None) -> Task:
    return Task(
        task_id=task_id,
        content="Existing",
        column_id="todo",
        date_created="2026-02-01",
        tags=list(tags or []),
        checklist=[ChecklistItem(id="ci-1", text="step one"), ChecklistItem(id="ci-2", text="step two")],
    )


def _scripted(monkeypatch: pytest.MonkeyPatch, *, choices: list, texts: list) -> None:
    choice_iter = iter(choices)
    text_iter = iter(texts)
    monkeypatch.setattr(
        prompt_ui,
        "_prompt_single_choice",
        lambda title, options, default_value: next(choice_iter),
    )
    monkeypatch.setattr(prompt_ui, "_safe_prompt", lambda message, default="": next(text_iter))


def test_edit_form_create_flow_dispatches_create(monkeypatch: pytest.MonkeyPatch) -> None:
    store = _FakeStore()
    session = EditSession(store, column_id="todo")
    session.open(None)
    _scripted(
        monkeypatch,
        choices=["content", "priority", "high", "add_tag", "add_check", "add_comment", "save"],
        texts=["Buy milk", "dairy", "go to shop", "before noon"],
    )

    command = prompt_ui.edit_form(session)

    assert isinstance(command, CreateTask)
    kind, column_id, payload = store.commands[0]
    assert (kind, column_id) == ("create", "todo")
    assert payload.content == "Buy milk"
    assert payload.priority == "high"
    assert payload.tags == ["dairy"]
    assert [item.text for item in payload.checklist] == ["go to shop"]
    assert [comment.text for comment in payload.comments] == ["before noon"]


def test_edit_form_save_without_title_stays_open(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    store = _FakeStore()
    session = EditSession(store, column_id="todo")
    session.open(None)
    _scripted(monkeypatch, choices=["save", "cancel"], texts=[])

    assert prompt_ui.edit_form(session) is None
    assert store.commands == []
    assert "Title is required." in capsys.readouterr().err


def test_edit_form_toggle_and_delete_checklist(monkeypatch: pytest.MonkeyPatch) -> None:
    store = _FakeStore()
    session = EditSession(store)
    session.open(_task())
    _scripted(
        monkeypatch,
        choices=["toggle_check", "ci-2", "delete_check", "ci-1", "save"],
        texts=[],
    )

    command = prompt_ui.edit_form(session)

    assert isinstance(command, UpdateTask)
    assert command.task_id == "t1"
    assert [(item.id, item.is_complete) for item in command.payload.checklist] == [("ci-2", True)]


def test_edit_form_cancel_on_selector_abort(monkeypatch: pytest.MonkeyPatch) -> None:
    closed: list[bool] = []
    session = EditSession(_FakeStore(), column_id="todo", on_close=lambda: closed.append(True))
    session.open(None)
    _scripted(monkeypatch, choices=[None], texts=[])

    assert prompt_ui.edit_form(session) is None
    assert closed == [True]


def test_edit_form_invalid_due_date_keeps_previous(
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    session = EditSession(_FakeStore())
    session.open(_task())
    session.draft.set_due_date(dt.date(2026, 4, 1))
    _scripted(monkeypatch, choices=["due_date", "cancel"], texts=["next week"])

    prompt_ui.edit_form(session)

    assert session.draft.due_date == dt.date(2026, 4, 1)
    assert "Invalid date: next week" in capsys.readouterr().err


def test_pick_tags_merges_selection_and_free_text(monkeypatch: pytest.MonkeyPatch) -> None:
    store = _FakeStore([_task("t9", tags=["home", "work"])])
    session = EditSession(store)
    session.open(_task(tags=["old"]))
    captured: dict[str, object] = {}

    def _multi(title, options, default_values=None):
        captured["options"] = options
        captured["defaults"] = default_values
        return ["work"]

    monkeypatch.setattr(prompt_ui, "_prompt_multi_choice", _multi)
    monkeypatch.setattr(prompt_ui, "_safe_prompt", lambda message, default="": "urgent, work, ")

    prompt_ui._pick_tags(session)

    assert captured["options"] == [("home", "home"), ("old", "old"), ("work", "work")]
    assert captured["defaults"] == ["old"]
    assert session.draft.tags == ["work", "urgent"]


def test_prompt_single_choice_falls_back_to_numeric(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        prompt_ui,
        "select_one",
        lambda title, options, default_value=None: (_ for _ in ()).throw(
            selector_ui.SelectorUnavailableError("selector runtime failed")
        ),
    )
    monkeypatch.setattr(
        prompt_ui,
        "select_text",
        lambda title, default_value="": (_ for _ in ()).throw(selector_ui.SelectorUnavailableError("")),
    )
    monkeypatch.setattr(prompt_ui.typer, "prompt", lambda *args, **kwargs: "2")

    selected = prompt_ui._prompt_single_choice("priority", [("low", "low"), ("high", "high")], "low")
    assert selected == "high"


def test_choose_task_uses_selector(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(prompt_ui, "select_fuzzy", lambda title, options, default_value=None: "t1")
    assert prompt_ui.choose_task([_task()]) == "t1"


def test_init_config_form_uses_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(prompt_ui, "_prompt_single_choice", lambda *args, **kwargs: "disabled")
    monkeypatch.setattr(prompt_ui, "_safe_prompt", lambda message, default="": "  ")

    payload = prompt_ui.init_config_form(default_comment_author="Dana")
    assert payload == {"interactive_enabled": False, "comment_author": "Dana"}


def test_parse_due_date() -> None:
    assert prompt_ui.parse_due_date(" 2026-02-03 ") == dt.date(2026, 2, 3)
    assert prompt_ui.parse_due_date("") is None
    with pytest.raises(ValueError):
        prompt_ui.parse_due_date("03/02/2026")
