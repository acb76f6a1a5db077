"""Renderers for list and detail command output."""

from __future__ import annotations

import json
from typing import Iterable

from .draft import checklist_progress
from .models import Column, Task
from .storage import DEFAULT_DATE_FORMAT, task_to_dict


LIST_COLUMNS = (
    ("task_id", 16),
    ("content", 32),
    ("priority", 8),
    ("due", 10),
    ("checklist", 14),
    ("tags", 20),
)


def _priority_style(priority: str) -> str:
    return {
        "high": "bold red",
        "medium": "bold yellow",
        "low": "cyan",
    }.get(priority, "dim")


def _format_due(task: Task, date_format: str) -> str:
    if task.due_date is None:
        return "-"
    return task.due_date.strftime(date_format)


def _checklist_label(task: Task) -> str:
    if not task.checklist:
        return "-"
    done = sum(1 for item in task.checklist if item.is_complete)
    return f"{done}/{len(task.checklist)} ({checklist_progress(task.checklist)}%)"


def _task_list_row(task: Task, date_format: str) -> dict[str, str]:
    return {
        "task_id": task.task_id,
        "content": task.content,
        "priority": task.priority or "-",
        "due": _format_due(task, date_format),
        "checklist": _checklist_label(task),
        "tags": ", ".join(task.tags) if task.tags else "-",
    }


def _truncate(value: str, width: int) -> str:
    if width <= 0:
        return ""
    if len(value) <= width:
        return value
    if width == 1:
        return "…"
    return f"{value[: width - 1]}…"


def _group_by_column(tasks: Iterable[Task], columns: list[Column]) -> list[tuple[Column, list[Task]]]:
    by_column: dict[str, list[Task]] = {column.column_id: [] for column in columns}
    for task in tasks:
        by_column.setdefault(task.column_id, []).append(task)
    known = {column.column_id for column in columns}
    extra = [Column(column_id=key, title=key) for key in by_column if key not in known]
    return [(column, by_column[column.column_id]) for column in [*columns, *extra]]


def render_task_list_plain(
    tasks: Iterable[Task],
    columns: list[Column],
    *,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> str:
    task_list = list(tasks)
    if not task_list:
        return "No tasks found."

    widths = dict(LIST_COLUMNS)
    headers = [name for name, _ in LIST_COLUMNS]
    lines: list[str] = []
    for column, bucket in _group_by_column(task_list, columns):
        if not bucket:
            continue
        if lines:
            lines.append("")
        lines.append(f"{column.title} ({len(bucket)})")
        lines.append("  ".join(name.ljust(widths[name]) for name in headers).rstrip())
        lines.append("  ".join("-" * widths[name] for name in headers))
        for task in bucket:
            row = _task_list_row(task, date_format)
            lines.append(
                "  ".join(_truncate(row[name], widths[name]).ljust(widths[name]) for name in headers).rstrip()
            )
    return "\n".join(lines)


def render_task_list_rich(
    tasks: Iterable[Task],
    columns: list[Column],
    *,
    date_format: str = DEFAULT_DATE_FORMAT,
):
    from rich import box
    from rich.console import Group
    from rich.table import Table
    from rich.text import Text

    task_list = list(tasks)
    if not task_list:
        return "No tasks found."

    renderables = []
    for column, bucket in _group_by_column(task_list, columns):
        if not bucket:
            continue
        renderables.append(Text(f"{column.title} ({len(bucket)})", style="bold magenta"))
        table = Table(
            box=box.SIMPLE_HEAVY,
            show_header=True,
            header_style="bold white",
            pad_edge=False,
        )
        for name, width in LIST_COLUMNS:
            table.add_column(
                name,
                style="bold" if name == "content" else ("dim" if name == "task_id" else ""),
                min_width=width,
                max_width=width,
                overflow="ellipsis",
                no_wrap=True,
            )
        for task in bucket:
            row = _task_list_row(task, date_format)
            rendered: list[str | Text] = []
            for name, _ in LIST_COLUMNS:
                if name == "priority":
                    rendered.append(Text(row[name], style=_priority_style(task.priority or "")))
                else:
                    rendered.append(row[name])
            table.add_row(*rendered)
        renderables.append(table)
        renderables.append(Text(""))

    if renderables and isinstance(renderables[-1], Text) and not renderables[-1].plain:
        renderables.pop()
    return Group(*renderables)


def render_task_list_json(tasks: Iterable[Task]) -> str:
    payload = []
    for task in tasks:
        item = task_to_dict(task)
        item["progress"] = checklist_progress(task.checklist)
        payload.append(item)
    return json.dumps(payload, indent=2)


def render_tag_counts_plain(rows: Iterable[dict[str, str | int]]) -> str:
    headers = ["tag", "total"]
    row_data = [{name: str(row[name]) for name in headers} for row in rows]
    if not row_data:
        return "No tags found."

    widths = {
        name: max(len(name), *(len(item[name]) for item in row_data))
        for name in headers
    }
    lines = []
    lines.append("  ".join(name.ljust(widths[name]) for name in headers))
    lines.append("  ".join("-" * widths[name] for name in headers))
    for row in row_data:
        lines.append("  ".join(row[name].ljust(widths[name]) for name in headers))
    return "\n".join(lines)


def render_tag_counts_json(rows: Iterable[dict[str, str | int]]) -> str:
    return json.dumps([dict(row) for row in rows], indent=2)


def render_columns_plain(columns: list[Column]) -> str:
    if not columns:
        return "No columns found."
    width = max(len(column.column_id) for column in columns)
    return "\n".join(
        f"{column.column_id.ljust(width)}  {column.title} ({len(column.task_ids)})"
        for column in columns
    )


def _detail_lines(task: Task, date_format: str) -> list[str]:
    tags = ", ".join(task.tags) if task.tags else "-"
    lines = [
        f"{task.content} ({task.task_id})",
        f"[{task.column_id}] [priority: {task.priority or '-'}] [due: {_format_due(task, date_format)}]",
        f"assignee: {task.assigned_to or '-'}    tags: {tags}",
        f"created: {task.date_created}    cover: {task.cover_image or '-'}",
    ]
    if task.description:
        lines.extend(["", task.description.rstrip()])
    return lines


def render_task_detail_plain(task: Task, *, date_format: str = DEFAULT_DATE_FORMAT) -> str:
    lines = _detail_lines(task, date_format)
    lines.append("")
    lines.append(f"checklist: {_checklist_label(task)}")
    for item in task.checklist:
        mark = "x" if item.is_complete else " "
        lines.append(f"  [{mark}] {item.text} ({item.id})")
    lines.append("")
    lines.append(f"comments: {len(task.comments) or '-'}")
    for comment in task.comments:
        stamp = comment.created_at.strftime("%Y-%m-%d %H:%M")
        lines.append(f"  {stamp} | {comment.author} | {comment.text} ({comment.id})")
    return "\n".join(lines)


def render_task_detail_rich(task: Task, *, date_format: str = DEFAULT_DATE_FORMAT):
    from rich.console import Group
    from rich.progress_bar import ProgressBar
    from rich.text import Text

    title = Text()
    title.append(task.content, style="bold")
    title.append(f" ({task.task_id})", style="dim")

    chips = Text()
    chips.append(f"[{task.column_id}]", style="magenta")
    chips.append(" ")
    chips.append(f"[priority: {task.priority or '-'}]", style=_priority_style(task.priority or ""))
    chips.append(" ")
    chips.append(f"[due: {_format_due(task, date_format)}]")

    tags = ", ".join(task.tags) if task.tags else "-"
    renderables: list = [
        title,
        chips,
        Text(f"assignee: {task.assigned_to or '-'}    tags: {tags}"),
        Text(f"created: {task.date_created}    cover: {task.cover_image or '-'}"),
    ]
    if task.description:
        renderables.extend([Text(""), Text(task.description.rstrip())])

    renderables.extend([Text(""), Text(f"checklist: {_checklist_label(task)}", style="bold")])
    if task.checklist:
        renderables.append(ProgressBar(total=100, completed=checklist_progress(task.checklist), width=40))
    for item in task.checklist:
        line = Text(f"  [{'x' if item.is_complete else ' '}] ")
        line.append(item.text, style="strike dim" if item.is_complete else "")
        line.append(f" ({item.id})", style="dim")
        renderables.append(line)

    renderables.extend([Text(""), Text(f"comments: {len(task.comments) or '-'}", style="bold")])
    for comment in task.comments:
        line = Text(f"  {comment.created_at.strftime('%Y-%m-%d %H:%M')} ", style="dim")
        line.append(comment.author, style="cyan")
        line.append(f"  {comment.text}")
        line.append(f" ({comment.id})", style="dim")
        renderables.append(line)
    return Group(*renderables)


def render_task_detail_json(task: Task) -> str:
    payload = task_to_dict(task)
    payload["progress"] = checklist_progress(task.checklist)
    return json.dumps(payload, indent=2)
