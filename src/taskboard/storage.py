"""Filesystem layout, config, and YAML board IO for taskboard."""

from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Any, Callable

import yaml

from .models import (
    DEFAULT_COLUMNS,
    DEFAULT_COMMENT_AUTHOR,
    ChecklistItem,
    Column,
    Comment,
    Task,
)

BOARD_DIR_NAME = ".taskboard"
BOARD_FILE_NAME = "board.yaml"
CONFIG_FILE_NAME = "config.yaml"
DEFAULT_INTERACTIVE_ENABLED = True
DEFAULT_DATE_FORMAT = "%d/%m/%Y"
MANAGED_SETTINGS_KEYS = ("interactive_enabled", "comment_author", "date_format")


# -------------------- discovery --------------------
def find_repo_root(start: Path) -> Path | None:
    start = start.resolve()
    for candidate in [start, *start.parents]:
        if (candidate / ".git").exists():
            return candidate
    return None


def discover_board_roots(start: Path) -> list[Path]:
    start = start.resolve()
    roots: list[Path] = []
    for candidate in [start, *start.parents]:
        board_dir = candidate / BOARD_DIR_NAME
        if board_dir.is_dir():
            roots.append(board_dir)
    return roots


def choose_board_root(start: Path) -> tuple[Path | None, bool]:
    roots = discover_board_roots(start)
    if not roots:
        return None, False
    return roots[0], len(roots) > 1


def default_init_root(start: Path) -> Path:
    repo_root = find_repo_root(start)
    base = repo_root if repo_root is not None else start.resolve()
    return base / BOARD_DIR_NAME


def board_path(board_root: Path) -> Path:
    return board_root / BOARD_FILE_NAME


def config_path(board_root: Path) -> Path:
    return board_root / CONFIG_FILE_NAME


# -------------------- config --------------------
def default_config(
    interactive_enabled: bool = DEFAULT_INTERACTIVE_ENABLED,
    comment_author: str = DEFAULT_COMMENT_AUTHOR,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> dict[str, Any]:
    return {
        "settings": {
            "interactive_enabled": interactive_enabled,
            "comment_author": comment_author,
            "date_format": date_format,
        }
    }


def read_config(board_root: Path, warn: Callable[[str], None] | None = None) -> dict[str, Any]:
    path = config_path(board_root)
    if not path.exists():
        return {}
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError:
        if warn is not None:
            warn(f"Unable to parse config at {path}. Falling back to defaults.")
        return {}
    if not isinstance(payload, dict):
        if warn is not None:
            warn(f"Invalid config format at {path}. Falling back to defaults.")
        return {}
    return payload


def merge_managed_config(existing: dict[str, Any], **managed: Any) -> dict[str, Any]:
    merged = dict(existing)
    settings = merged.get("settings")
    settings = dict(settings) if isinstance(settings, dict) else {}
    for key in MANAGED_SETTINGS_KEYS:
        if managed.get(key) is not None:
            settings[key] = managed[key]
    merged["settings"] = settings
    return merged


def upsert_init_config(
    board_root: Path,
    *,
    interactive_enabled: bool = DEFAULT_INTERACTIVE_ENABLED,
    comment_author: str = DEFAULT_COMMENT_AUTHOR,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> str:
    path = config_path(board_root)
    status = "updated" if path.exists() else "created"
    existing = read_config(board_root) if path.exists() else {}
    merged = merge_managed_config(
        existing,
        interactive_enabled=interactive_enabled,
        comment_author=comment_author,
        date_format=date_format,
    )
    path.write_text(
        yaml.safe_dump(merged, sort_keys=False, default_flow_style=False),
        encoding="utf-8",
    )
    return status


def _settings(board_root: Path, warn: Callable[[str], None] | None) -> dict[str, Any]:
    data = read_config(board_root, warn=warn)
    for key in data.keys():
        if key != "settings" and warn is not None:
            warn(f"Unsupported config key '{key}' in {config_path(board_root)}. Ignoring.")
    settings = data.get("settings", {})
    if not isinstance(settings, dict):
        if warn is not None:
            warn(f"Invalid settings section in {config_path(board_root)}. Using defaults.")
        return {}
    for key in settings.keys():
        if key not in MANAGED_SETTINGS_KEYS and warn is not None:
            warn(f"Unsupported settings key '{key}' in {config_path(board_root)}. Ignoring.")
    return settings


def _resolve_setting(
    board_root: Path,
    key: str,
    expected: type,
    default: Any,
    warn: Callable[[str], None] | None,
) -> Any:
    value = _settings(board_root, warn).get(key)
    if value is None:
        return default
    if not isinstance(value, expected) or (expected is str and not value.strip()):
        if warn is not None:
            warn(
                f"Invalid settings.{key} in {config_path(board_root)}. "
                f"Using default '{default}'."
            )
        return default
    return value


def resolve_interactive_enabled(
    board_root: Path,
    warn: Callable[[str], None] | None = None,
) -> bool:
    return _resolve_setting(board_root, "interactive_enabled", bool, DEFAULT_INTERACTIVE_ENABLED, warn)


def resolve_comment_author(
    board_root: Path,
    warn: Callable[[str], None] | None = None,
) -> str:
    return _resolve_setting(board_root, "comment_author", str, DEFAULT_COMMENT_AUTHOR, warn)


def resolve_date_format(
    board_root: Path,
    warn: Callable[[str], None] | None = None,
) -> str:
    return _resolve_setting(board_root, "date_format", str, DEFAULT_DATE_FORMAT, warn)


# -------------------- serialization --------------------
def _parse_date(value: Any) -> dt.date | None:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    return dt.date.fromisoformat(str(value))


def _parse_datetime(value: Any) -> dt.datetime:
    if isinstance(value, dt.datetime):
        return value
    return dt.datetime.fromisoformat(str(value))


def task_to_dict(task: Task) -> dict[str, Any]:
    return {
        "id": task.task_id,
        "columnId": task.column_id,
        "dateCreated": task.date_created,
        "content": task.content,
        "description": task.description,
        "priority": task.priority,
        "dueDate": task.due_date.isoformat() if task.due_date else None,
        "tags": list(task.tags),
        "assignedTo": task.assigned_to,
        "coverImage": task.cover_image,
        "checklist": [item.to_dict() for item in task.checklist],
        "comments": [comment.to_dict() for comment in task.comments],
    }


def task_from_dict(data: dict[str, Any]) -> Task:
    return Task(
        task_id=str(data["id"]),
        content=str(data.get("content") or ""),
        column_id=str(data["columnId"]),
        date_created=str(data.get("dateCreated") or ""),
        description=data.get("description"),
        priority=data.get("priority"),
        due_date=_parse_date(data.get("dueDate")),
        tags=[str(tag) for tag in data.get("tags") or []],
        assigned_to=data.get("assignedTo"),
        cover_image=data.get("coverImage"),
        checklist=[
            ChecklistItem(
                id=str(raw["id"]),
                text=str(raw["text"]),
                is_complete=bool(raw.get("isComplete", False)),
            )
            for raw in data.get("checklist") or []
        ],
        comments=[
            Comment(
                id=str(raw["id"]),
                text=str(raw["text"]),
                author=str(raw.get("author") or DEFAULT_COMMENT_AUTHOR),
                created_at=_parse_datetime(raw["createdAt"]),
            )
            for raw in data.get("comments") or []
        ],
    )


def default_columns() -> list[Column]:
    return [Column(column_id=column_id, title=title) for column_id, title in DEFAULT_COLUMNS]


def load_board(board_root: Path) -> tuple[list[Column], dict[str, Task]]:
    path = board_path(board_root)
    if not path.exists():
        return default_columns(), {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid board format in {path}")
    columns = [
        Column(
            column_id=str(raw["id"]),
            title=str(raw.get("title") or raw["id"]),
            task_ids=[str(task_id) for task_id in raw.get("taskIds") or []],
        )
        for raw in data.get("columns") or []
    ]
    tasks: dict[str, Task] = {}
    for raw in data.get("tasks") or []:
        task = task_from_dict(raw)
        tasks[task.task_id] = task
    return columns, tasks


def save_board(board_root: Path, columns: list[Column], tasks: dict[str, Task]) -> None:
    board_root.mkdir(parents=True, exist_ok=True)
    payload = {
        "columns": [
            {"id": column.column_id, "title": column.title, "taskIds": list(column.task_ids)}
            for column in columns
        ],
        "tasks": [task_to_dict(task) for task in tasks.values()],
    }
    text = yaml.safe_dump(payload, sort_keys=False, default_flow_style=False, allow_unicode=True)
    board_path(board_root).write_text(text, encoding="utf-8")


def ensure_layout(board_root: Path) -> None:
    board_root.mkdir(parents=True, exist_ok=True)
    if not board_path(board_root).exists():
        save_board(board_root, default_columns(), {})


def next_task_id(existing_ids: list[str], created_date: str) -> str:
    ymd = created_date.replace("-", "")
    prefix = f"t-{ymd}-"
    max_seq = 0
    for task_id in existing_ids:
        if task_id.startswith(prefix):
            try:
                seq = int(task_id.split("-")[-1])
            except ValueError:
                continue
            max_seq = max(max_seq, seq)
    return f"{prefix}{max_seq + 1:03d}"
