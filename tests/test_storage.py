from __future__ import annotations

import datetime as dt
from pathlib import Path

import yaml

from taskboard import storage
from taskboard.models import ChecklistItem, Comment, Task


def _write_config(board_root: Path, content: str) -> None:
    board_root.mkdir(parents=True, exist_ok=True)
    (board_root / "config.yaml").write_text(content, encoding="utf-8")


def test_resolve_settings_default_when_missing(tmp_path: Path) -> None:
    root = tmp_path / ".taskboard"
    warnings: list[str] = []
    assert storage.resolve_interactive_enabled(root, warn=warnings.append) is True
    assert storage.resolve_comment_author(root, warn=warnings.append) == "User"
    assert storage.resolve_date_format(root, warn=warnings.append) == "%d/%m/%Y"
    assert warnings == []


def test_resolve_settings_reads_valid_values(tmp_path: Path) -> None:
    root = tmp_path / ".taskboard"
    _write_config(
        root,
        (
            "settings:\n"
            "  interactive_enabled: false\n"
            "  comment_author: Dana\n"
            "  date_format: '%Y-%m-%d'\n"
        ),
    )
    assert storage.resolve_interactive_enabled(root) is False
    assert storage.resolve_comment_author(root) == "Dana"
    assert storage.resolve_date_format(root) == "%Y-%m-%d"


def test_resolve_comment_author_invalid_warns_and_falls_back(tmp_path: Path) -> None:
    root = tmp_path / ".taskboard"
    _write_config(root, "settings:\n  comment_author: 42\n  extra: 1\n")
    warnings: list[str] = []
    assert storage.resolve_comment_author(root, warn=warnings.append) == "User"
    assert any("Invalid settings.comment_author" in message for message in warnings)
    assert any("Unsupported settings key 'extra'" in message for message in warnings)


def test_unparseable_config_warns(tmp_path: Path) -> None:
    root = tmp_path / ".taskboard"
    _write_config(root, "settings: [unclosed\n")
    warnings: list[str] = []
    assert storage.resolve_interactive_enabled(root, warn=warnings.append) is True
    assert any("Unable to parse config" in message for message in warnings)


def test_upsert_init_config_preserves_unknown_keys(tmp_path: Path) -> None:
    root = tmp_path / ".taskboard"
    root.mkdir(parents=True)
    assert storage.upsert_init_config(root) == "created"

    _write_config(root, "custom_root: keep\nsettings:\n  custom_setting: keep-setting\n")
    assert storage.upsert_init_config(root, interactive_enabled=False, comment_author="Lee") == "updated"

    cfg = yaml.safe_load((root / "config.yaml").read_text(encoding="utf-8"))
    assert cfg["custom_root"] == "keep"
    assert cfg["settings"]["custom_setting"] == "keep-setting"
    assert cfg["settings"]["interactive_enabled"] is False
    assert cfg["settings"]["comment_author"] == "Lee"


def test_task_dict_round_trip() -> None:
    task = Task(
        task_id="t-20260201-001",
        content="Ship",
        column_id="doing",
        date_created="2026-02-01",
        priority="medium",
        due_date=dt.date(2026, 2, 28),
        tags=["release"],
        checklist=[ChecklistItem(id="ci-1", text="tag build", is_complete=True)],
        comments=[Comment(id="cm-1", text="go", author="ana", created_at=dt.datetime(2026, 2, 1, 12, 5))],
    )
    data = storage.task_to_dict(task)
    assert data["dueDate"] == "2026-02-28"
    assert data["comments"][0]["createdAt"] == "2026-02-01T12:05:00"
    assert storage.task_from_dict(yaml.safe_load(yaml.safe_dump(data))) == task


def test_board_round_trip_keeps_comment_microseconds(tmp_path: Path) -> None:
    root = tmp_path / ".taskboard"
    created_at = dt.datetime(2026, 2, 1, 10, 0, 0, 123456)
    task = Task(
        task_id="t-20260201-001",
        content="Ship",
        column_id="todo",
        date_created="2026-02-01",
        comments=[Comment(id="cm-1", text="go", author="ana", created_at=created_at)],
    )
    columns = storage.default_columns()
    columns[0].task_ids.append(task.task_id)
    storage.save_board(root, columns, {task.task_id: task})

    _, tasks = storage.load_board(root)
    assert tasks[task.task_id].comments[0].created_at == created_at


def test_discover_board_roots_prefers_nearest(tmp_path: Path) -> None:
    outer = tmp_path / ".taskboard"
    inner_dir = tmp_path / "project"
    inner = inner_dir / ".taskboard"
    outer.mkdir()
    inner.mkdir(parents=True)

    root, multiple = storage.choose_board_root(inner_dir)
    assert root == inner.resolve()
    assert multiple is True


def test_next_task_id_increments_per_day() -> None:
    ids = ["t-20260201-001", "t-20260201-007", "t-20260131-010"]
    assert storage.next_task_id(ids, "2026-02-01") == "t-20260201-008"
    assert storage.next_task_id(ids, "2026-02-02") == "t-20260202-001"
