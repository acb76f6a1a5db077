"""Prompt-based interactive helpers."""

from __future__ import annotations

import datetime as dt
from typing import Any

import typer

from .models import VALID_PRIORITIES, Command, Task
from .selector_ui import (
    SelectorUnavailableError,
    select_fuzzy,
    select_many,
    select_one,
    select_text,
)
from .session import EditSession
from . import storage


def _warn_selector_fallback(exc: Exception) -> None:
    message = str(exc)
    if not message:
        return
    typer.echo(f"Warning: {message}; falling back to numeric prompts.", err=True)


def _safe_prompt(message: str, *, default: str = "") -> str | None:
    try:
        selected = select_text(message, default_value=default)
    except SelectorUnavailableError:
        pass
    else:
        return selected

    try:
        return typer.prompt(message, default=default)
    except (typer.Abort, KeyboardInterrupt, EOFError):
        return None


def _prompt_single_choice(title: str, options: list[tuple[str, str]], default_value: str) -> str | None:
    try:
        selected = select_one(title, options, default_value=default_value)
    except SelectorUnavailableError as exc:
        _warn_selector_fallback(exc)
    else:
        return selected

    typer.echo(title)
    default_index = 1
    for idx, (value, label) in enumerate(options, start=1):
        typer.echo(f"{idx}. {label}")
        if value == default_value:
            default_index = idx

    while True:
        raw = _safe_prompt("Enter number", default=str(default_index))
        if raw is None:
            return None
        try:
            index = int(raw)
        except ValueError:
            typer.echo("Invalid selection. Enter a number.")
            continue
        if 1 <= index <= len(options):
            return options[index - 1][0]
        typer.echo("Selection out of range.")


def _prompt_multi_choice(
    title: str,
    options: list[tuple[str, str]],
    default_values: list[str] | None = None,
) -> list[str] | None:
    if not options:
        return []

    try:
        selected = select_many(title, options, default_values=default_values)
    except SelectorUnavailableError as exc:
        _warn_selector_fallback(exc)
    else:
        return selected

    defaults = set(default_values or [])
    typer.echo(title)
    default_numbers: list[str] = []
    for idx, (value, label) in enumerate(options, start=1):
        mark = "x" if value in defaults else " "
        typer.echo(f"{idx}. [{mark}] {label}")
        if value in defaults:
            default_numbers.append(str(idx))

    while True:
        raw = _safe_prompt(
            "Enter comma-separated numbers",
            default=",".join(default_numbers),
        )
        if raw is None:
            return None
        raw = raw.strip()
        if not raw:
            return []

        tokens = [token.strip() for token in raw.split(",") if token.strip()]
        try:
            indexes = [int(token) for token in tokens]
        except ValueError:
            typer.echo("Invalid selection. Use comma-separated numbers.")
            continue

        if any(index < 1 or index > len(options) for index in indexes):
            typer.echo("Selection out of range.")
            continue

        selected = {index - 1 for index in indexes}
        return [value for idx, (value, _) in enumerate(options) if idx in selected]


def _split_csv(raw: str) -> list[str]:
    return [token.strip() for token in raw.split(",") if token.strip()]


def parse_due_date(raw: str) -> dt.date | None:
    """Parse an ISO date; blank clears. Raises ValueError on bad input."""
    raw = raw.strip()
    if not raw:
        return None
    return dt.date.fromisoformat(raw)


def choose_task(tasks: list[Task], title: str = "Select task") -> str | None:
    if not tasks:
        return None

    options = [(task.task_id, f"{task.content} ({task.task_id}) [{task.column_id}]") for task in tasks]
    try:
        selected = select_fuzzy(title, options)
    except SelectorUnavailableError as exc:
        _warn_selector_fallback(exc)
    else:
        return selected

    typer.echo(title)
    for idx, (_, label) in enumerate(options, start=1):
        typer.echo(f"{idx}. {label}")
    typer.echo("0. cancel")

    raw = _safe_prompt("Enter number", default="1")
    if raw is None:
        return None
    try:
        index = int(raw)
    except ValueError:
        return None
    if 1 <= index <= len(tasks):
        return tasks[index - 1].task_id
    return None


def init_config_form(
    *,
    default_interactive_enabled: bool = storage.DEFAULT_INTERACTIVE_ENABLED,
    default_comment_author: str = storage.DEFAULT_COMMENT_AUTHOR,
) -> dict[str, Any] | None:
    default_interactive_value = "enabled" if default_interactive_enabled else "disabled"
    interactive_choice = _prompt_single_choice(
        "Default interactive behavior",
        [
            ("enabled", "Enable interactive prompts"),
            ("disabled", "Disable interactive prompts"),
        ],
        default_value=default_interactive_value,
    )
    if interactive_choice is None:
        return None

    author = _safe_prompt("Comment author", default=default_comment_author)
    if author is None:
        return None

    return {
        "interactive_enabled": interactive_choice == "enabled",
        "comment_author": author.strip() or default_comment_author,
    }


# -------------------- task edit form --------------------
def _form_title(session: EditSession) -> str:
    draft = session.draft
    heading = "Edit task" if session.is_editing else "New task"
    title = draft.content.strip() or "(untitled)"
    return (
        f"{heading}: {title}  "
        f"[tags {len(draft.tags)}] [checklist {draft.progress}%] [comments {len(draft.comments)}]"
    )


def _action_options(session: EditSession) -> list[tuple[str, str]]:
    draft = session.draft
    save_label = "Save" if draft.can_submit else "Save (title required)"
    return [
        ("content", f"Title: {draft.content or '-'}"),
        ("description", f"Description: {draft.description or '-'}"),
        ("priority", f"Priority: {draft.priority or '-'}"),
        ("due_date", f"Due date: {draft.due_date.isoformat() if draft.due_date else '-'}"),
        ("assigned_to", f"Assignee: {draft.assigned_to or '-'}"),
        ("cover_image", f"Cover image: {draft.cover_image or '-'}"),
        ("add_tag", f"Add tag ({', '.join(draft.tags) or 'none'})"),
        ("remove_tag", "Remove tag"),
        ("pick_tags", "Choose tags"),
        ("add_check", "Add checklist item"),
        ("toggle_check", "Toggle checklist item"),
        ("delete_check", "Delete checklist item"),
        ("add_comment", "Add comment"),
        ("delete_comment", "Delete comment"),
        ("save", save_label),
        ("cancel", "Cancel"),
    ]


def _edit_text_field(session: EditSession, action: str) -> None:
    draft = session.draft
    labels = {
        "content": ("title", draft.set_content, draft.content),
        "description": ("description", draft.set_description, draft.description),
        "assigned_to": ("assignee", draft.set_assigned_to, draft.assigned_to),
        "cover_image": ("cover image URL", draft.set_cover_image, draft.cover_image),
    }
    label, setter, current = labels[action]
    value = _safe_prompt(label, default=current)
    if value is not None:
        setter(value)


def _edit_priority(session: EditSession) -> None:
    options = [("", "None"), *[(value, value) for value in VALID_PRIORITIES]]
    selected = _prompt_single_choice("priority", options, default_value=session.draft.priority)
    if selected is not None:
        session.draft.set_priority(selected)


def _edit_due_date(session: EditSession) -> None:
    current = session.draft.due_date.isoformat() if session.draft.due_date else ""
    raw = _safe_prompt("due date (YYYY-MM-DD, blank clears)", default=current)
    if raw is None:
        return
    try:
        session.draft.set_due_date(parse_due_date(raw))
    except ValueError:
        typer.echo(f"Invalid date: {raw}", err=True)


def _pick_tags(session: EditSession) -> None:
    draft = session.draft
    known = sorted({*session.tag_suggestions(), *draft.tags})
    selected = _prompt_multi_choice(
        "tags",
        [(tag, tag) for tag in known],
        default_values=list(draft.tags),
    )
    if selected is None:
        return
    extra = _safe_prompt("new tags (comma separated, blank none)", default="")
    if extra is None:
        return
    draft.replace_tags([*selected, *_split_csv(extra)])


def _choose_item(title: str, options: list[tuple[str, str]]) -> str | None:
    if not options:
        typer.echo(f"Nothing to select for: {title}")
        return None
    return _prompt_single_choice(title, options, default_value=options[0][0])


def _apply_action(session: EditSession, action: str) -> None:
    draft = session.draft
    if action in {"content", "description", "assigned_to", "cover_image"}:
        _edit_text_field(session, action)
    elif action == "priority":
        _edit_priority(session)
    elif action == "due_date":
        _edit_due_date(session)
    elif action == "add_tag":
        raw = _safe_prompt("tag", default="")
        if raw is not None and not draft.add_tag(raw) and raw.strip():
            typer.echo(f"Tag already present: {raw.strip()}")
    elif action == "remove_tag":
        tag = _choose_item("Remove tag", [(tag, tag) for tag in draft.tags])
        if tag is not None:
            draft.remove_tag(tag)
    elif action == "pick_tags":
        _pick_tags(session)
    elif action == "add_check":
        raw = _safe_prompt("checklist item", default="")
        if raw is not None:
            draft.add_checklist_item(raw)
    elif action == "toggle_check":
        item_id = _choose_item(
            "Toggle checklist item",
            [(item.id, f"[{'x' if item.is_complete else ' '}] {item.text}") for item in draft.checklist],
        )
        if item_id is not None:
            draft.toggle_checklist_item(item_id)
    elif action == "delete_check":
        item_id = _choose_item(
            "Delete checklist item",
            [(item.id, item.text) for item in draft.checklist],
        )
        if item_id is not None:
            draft.delete_checklist_item(item_id)
    elif action == "add_comment":
        raw = _safe_prompt("comment", default="")
        if raw is not None:
            draft.add_comment(raw)
    elif action == "delete_comment":
        comment_id = _choose_item(
            "Delete comment",
            [(comment.id, f"{comment.author}: {comment.text}") for comment in draft.comments],
        )
        if comment_id is not None:
            draft.delete_comment(comment_id)


def edit_form(session: EditSession) -> Command | None:
    """Drive the session's draft from an action menu until save or cancel.

    Returns the dispatched command, or None when the form was canceled.
    """
    last_action = "content"
    while True:
        action = _prompt_single_choice(
            _form_title(session),
            _action_options(session),
            default_value=last_action,
        )
        if action is None or action == "cancel":
            session.cancel()
            return None
        if action == "save":
            if not session.draft.can_submit:
                typer.echo("Title is required.", err=True)
                continue
            return session.submit()
        _apply_action(session, action)
        last_action = action
