"""CLI entrypoint for taskboard."""

from __future__ import annotations

from pathlib import Path
import sys
from typing import Annotated

import click
import typer

from . import render, storage
from .draft import TaskDraft
from .models import VALID_PRIORITIES, Task, TaskError, TaskValidationError
from .prompt_ui import choose_task, edit_form, init_config_form, parse_due_date
from .service import BoardService
from .session import EditSession

NoInteractiveOption = Annotated[
    bool,
    typer.Option("--nointeractive", help="Disable interactive prompts for this command"),
]
BoardRootOption = Annotated[Path | None, typer.Option("--board-root", help="Explicit .taskboard path")]
DescriptionOption = Annotated[str | None, typer.Option("--description")]
PriorityOption = Annotated[str | None, typer.Option("--priority", help="low, medium, high or none")]
DueOption = Annotated[str | None, typer.Option("--due", help="YYYY-MM-DD; empty clears")]
AssigneeOption = Annotated[str | None, typer.Option("--assignee")]
CoverOption = Annotated[str | None, typer.Option("--cover", help="Cover image URL")]
TagOption = Annotated[list[str], typer.Option("--tag", help="Can be repeated")]
CheckOption = Annotated[list[str], typer.Option("--check", help="Checklist item; can be repeated")]
CommentOption = Annotated[list[str], typer.Option("--comment", help="Can be repeated")]


def _can_interact() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def _can_prompt(interactive_enabled: bool) -> bool:
    return interactive_enabled and _can_interact()


def _can_render_rich_output() -> bool:
    return sys.stdout.isatty()


app = typer.Typer(help="Task board editor with staged task edits")


def _print_rich(renderable) -> None:
    from rich.console import Console

    Console().print(renderable)


def _echo_root_notice(root: Path, multiple_found: bool) -> None:
    typer.echo(f"Using board root: {root}", err=True)
    if multiple_found:
        typer.echo("Warning: multiple .taskboard roots found; using nearest ancestor.", err=True)


def _warn_config(message: str) -> None:
    typer.echo(f"Warning: {message}", err=True)


def _resolve_interactive_enabled(board_root: Path | None, nointeractive: bool) -> bool:
    if nointeractive:
        return False
    if board_root is None:
        return storage.DEFAULT_INTERACTIVE_ENABLED
    return storage.resolve_interactive_enabled(board_root, warn=_warn_config)


def _resolve_existing_root(board_root: Path | None) -> Path:
    if board_root is not None:
        root = board_root.resolve()
        if not root.exists():
            raise typer.BadParameter(f"board root not found: {root}")
        return root

    root, multiple = storage.choose_board_root(Path.cwd())
    if root is None:
        raise TaskValidationError(
            "No .taskboard root found from current directory upward. Run 'taskboard init' first."
        )
    _echo_root_notice(root, multiple)
    return root


def _resolve_init_root(board_root: Path | None) -> Path:
    if board_root is not None:
        return board_root.resolve()

    root, multiple = storage.choose_board_root(Path.cwd())
    if root is not None:
        _echo_root_notice(root, multiple)
        return root

    default_root = storage.default_init_root(Path.cwd())
    typer.echo(f"No .taskboard found. Initializing at: {default_root}", err=True)
    return default_root


def _service(board_root: Path | None = None, *, init: bool = False) -> BoardService:
    root = _resolve_init_root(board_root) if init else _resolve_existing_root(board_root)
    svc = BoardService(root)
    svc.ensure_layout()
    return svc


def _session(svc: BoardService, *, column_id: str | None = None) -> EditSession:
    author = storage.resolve_comment_author(svc.board_root, warn=_warn_config)
    return EditSession(svc, column_id=column_id, comment_author=author)


def _run_and_handle(fn) -> None:
    try:
        fn()
    except TaskError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _exit_canceled(code: int) -> None:
    typer.echo("Canceled.")
    raise typer.Exit(code=code)


def _normalize_priority(value: str) -> str:
    value = value.strip().lower()
    if value in ("", "none"):
        return ""
    if value not in VALID_PRIORITIES:
        raise TaskValidationError(f"Invalid priority: {value}")
    return value


def _apply_field_flags(
    draft: TaskDraft,
    *,
    title: str | None,
    description: str | None,
    priority: str | None,
    due: str | None,
    assignee: str | None,
    cover: str | None,
    tags: list[str],
    checks: list[str],
    comments: list[str],
) -> None:
    if title is not None:
        draft.set_content(title)
    if description is not None:
        draft.set_description(description)
    if priority is not None:
        draft.set_priority(_normalize_priority(priority))
    if due is not None:
        try:
            draft.set_due_date(parse_due_date(due))
        except ValueError as exc:
            raise TaskValidationError(f"Invalid due date: {due}") from exc
    if assignee is not None:
        draft.set_assigned_to(assignee)
    if cover is not None:
        draft.set_cover_image(cover)
    for tag in tags:
        draft.add_tag(tag)
    for text in checks:
        draft.add_checklist_item(text)
    for text in comments:
        draft.add_comment(text)


def _select_task_if_missing(
    svc: BoardService,
    task_id: str | None,
    prompt: str,
    *,
    interactive_enabled: bool,
) -> str:
    if task_id:
        return task_id
    tasks = svc.list_tasks()
    if not tasks:
        raise TaskValidationError("No tasks available.")
    if not _can_prompt(interactive_enabled):
        raise TaskValidationError("task_id is required in non-interactive mode")
    selected = choose_task(tasks, title=prompt)
    if not selected:
        _exit_canceled(1)
    return selected


def _echo_task_detail(svc: BoardService, task: Task) -> None:
    date_format = storage.resolve_date_format(svc.board_root, warn=_warn_config)
    if _can_render_rich_output():
        _print_rich(render.render_task_detail_rich(task, date_format=date_format))
    else:
        typer.echo(render.render_task_detail_plain(task, date_format=date_format))


@app.callback(invoke_without_command=True)
def root_callback(ctx: typer.Context) -> None:
    """Show help when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


@app.command("init")
def init_cmd(
    nointeractive: NoInteractiveOption = False,
    board_root: BoardRootOption = None,
) -> None:
    """Initialize .taskboard layout and config."""

    def _inner() -> None:
        svc = _service(board_root, init=True)
        cfg_path = storage.config_path(svc.board_root)
        typer.echo(f"Initialized board root: {svc.board_root}")

        if _can_interact() and not nointeractive:
            form = init_config_form(
                default_interactive_enabled=storage.resolve_interactive_enabled(
                    svc.board_root, warn=_warn_config
                ),
                default_comment_author=storage.resolve_comment_author(svc.board_root, warn=_warn_config),
            )
            if form is None:
                _exit_canceled(1)
            status = storage.upsert_init_config(
                svc.board_root,
                interactive_enabled=bool(form["interactive_enabled"]),
                comment_author=str(form["comment_author"]),
                date_format=storage.resolve_date_format(svc.board_root, warn=_warn_config),
            )
            typer.echo(f"{'Created' if status == 'created' else 'Updated'} config: {cfg_path}")
        elif cfg_path.exists():
            typer.echo(f"Using existing config: {cfg_path}")
        else:
            storage.upsert_init_config(svc.board_root)
            typer.echo(f"Created config: {cfg_path}")

    _run_and_handle(_inner)


@app.command("create")
def create_cmd(
    title: Annotated[str | None, typer.Argument(help="Task title")] = None,
    column: Annotated[str | None, typer.Option("--column", help="Target column id")] = None,
    description: DescriptionOption = None,
    priority: PriorityOption = None,
    due: DueOption = None,
    assignee: AssigneeOption = None,
    cover: CoverOption = None,
    tag: TagOption = [],
    check: CheckOption = [],
    comment: CommentOption = [],
    nointeractive: NoInteractiveOption = False,
    board_root: BoardRootOption = None,
) -> None:
    """Create a task in a column."""

    def _inner() -> None:
        svc = _service(board_root)
        interactive_enabled = _resolve_interactive_enabled(svc.board_root, nointeractive=nointeractive)

        open_form = title is None and _can_prompt(interactive_enabled)
        if title is None and not open_form:
            raise TaskValidationError("title is required in non-interactive mode")

        columns = svc.list_columns()
        if not columns:
            raise TaskValidationError("Board has no columns.")
        session = _session(svc, column_id=column or columns[0].column_id)
        session.open(None)
        _apply_field_flags(
            session.draft,
            title=title,
            description=description,
            priority=priority,
            due=due,
            assignee=assignee,
            cover=cover,
            tags=list(tag),
            checks=list(check),
            comments=list(comment),
        )

        if open_form:
            command = edit_form(session)
            if command is None:
                _exit_canceled(1)
        else:
            command = session.submit()
            if command is None:
                raise TaskValidationError("title is required")

        task = session.last_task
        if task is not None:
            typer.echo(f"Created: {task.content} ({task.task_id}) in {task.column_id}")

    _run_and_handle(_inner)


@app.command("edit")
def edit_cmd(
    task_id: Annotated[str | None, typer.Argument(help="Task id")] = None,
    title: Annotated[str | None, typer.Option("--title")] = None,
    description: DescriptionOption = None,
    priority: PriorityOption = None,
    due: DueOption = None,
    assignee: AssigneeOption = None,
    cover: CoverOption = None,
    tag: TagOption = [],
    remove_tag: Annotated[list[str], typer.Option("--remove-tag")] = [],
    clear_tags: Annotated[bool, typer.Option("--clear-tags")] = False,
    check: CheckOption = [],
    toggle: Annotated[list[str], typer.Option("--toggle", help="Checklist item id to toggle")] = [],
    delete_check: Annotated[list[str], typer.Option("--delete-check")] = [],
    comment: CommentOption = [],
    delete_comment: Annotated[list[str], typer.Option("--delete-comment")] = [],
    nointeractive: NoInteractiveOption = False,
    board_root: BoardRootOption = None,
) -> None:
    """Edit a task's fields, checklist, and comments in one update."""

    def _inner() -> None:
        svc = _service(board_root)
        interactive_enabled = _resolve_interactive_enabled(svc.board_root, nointeractive=nointeractive)

        has_edit_flags = any(
            [
                title is not None,
                description is not None,
                priority is not None,
                due is not None,
                assignee is not None,
                cover is not None,
                bool(tag),
                bool(remove_tag),
                clear_tags,
                bool(check),
                bool(toggle),
                bool(delete_check),
                bool(comment),
                bool(delete_comment),
            ]
        )

        selector = _select_task_if_missing(
            svc,
            task_id,
            "Select a task to edit",
            interactive_enabled=interactive_enabled,
        )
        task = svc.view_task(selector)
        session = _session(svc, column_id=task.column_id)
        draft = session.open(task)

        open_form = _can_prompt(interactive_enabled) and not has_edit_flags
        if not open_form and not has_edit_flags:
            raise TaskValidationError("No edits given.")

        if clear_tags:
            draft.replace_tags([])
        for value in remove_tag:
            draft.remove_tag(value)
        for item_id in toggle:
            draft.toggle_checklist_item(item_id)
        for item_id in delete_check:
            draft.delete_checklist_item(item_id)
        for comment_id in delete_comment:
            draft.delete_comment(comment_id)
        _apply_field_flags(
            draft,
            title=title,
            description=description,
            priority=priority,
            due=due,
            assignee=assignee,
            cover=cover,
            tags=list(tag),
            checks=list(check),
            comments=list(comment),
        )

        if open_form:
            command = edit_form(session)
            if command is None:
                _exit_canceled(1)
        else:
            command = session.submit()
            if command is None:
                raise TaskValidationError("title is required")

        updated = session.last_task
        if updated is not None:
            typer.echo(f"Updated: {updated.content} ({updated.task_id})")

    _run_and_handle(_inner)


@app.command("list")
def list_cmd(
    column: Annotated[str | None, typer.Argument(help="Optional column id", show_default=False)] = None,
    as_json: Annotated[bool, typer.Option("--json")] = False,
    tag: TagOption = [],
    board_root: BoardRootOption = None,
) -> None:
    """List tasks grouped by column and sorted by priority/due date."""

    def _inner() -> None:
        svc = _service(board_root)
        tasks = svc.list_tasks(column, include_tags=tag)
        date_format = storage.resolve_date_format(svc.board_root, warn=_warn_config)
        if as_json:
            typer.echo(render.render_task_list_json(tasks))
        elif _can_render_rich_output():
            _print_rich(render.render_task_list_rich(tasks, svc.list_columns(), date_format=date_format))
        else:
            typer.echo(render.render_task_list_plain(tasks, svc.list_columns(), date_format=date_format))

    _run_and_handle(_inner)


@app.command("view")
def view_cmd(
    task_id: Annotated[str | None, typer.Argument(help="Task id")] = None,
    as_json: Annotated[bool, typer.Option("--json")] = False,
    nointeractive: NoInteractiveOption = False,
    board_root: BoardRootOption = None,
) -> None:
    """Show a detailed view of one task."""

    def _inner() -> None:
        svc = _service(board_root)
        interactive_enabled = _resolve_interactive_enabled(svc.board_root, nointeractive=nointeractive)
        selector = _select_task_if_missing(
            svc,
            task_id,
            "Select a task to view",
            interactive_enabled=interactive_enabled,
        )
        task = svc.view_task(selector)
        if as_json:
            typer.echo(render.render_task_detail_json(task))
        else:
            _echo_task_detail(svc, task)

    _run_and_handle(_inner)


@app.command("tags")
def tags_cmd(
    as_json: Annotated[bool, typer.Option("--json")] = False,
    board_root: BoardRootOption = None,
) -> None:
    """Show task counts grouped by tag."""

    def _inner() -> None:
        svc = _service(board_root)
        rows = svc.tag_counts()
        if as_json:
            typer.echo(render.render_tag_counts_json(rows))
        else:
            typer.echo(render.render_tag_counts_plain(rows))

    _run_and_handle(_inner)


@app.command("columns")
def columns_cmd(
    add: Annotated[str | None, typer.Option("--add", help="New column id")] = None,
    title: Annotated[str | None, typer.Option("--title", help="New column title")] = None,
    board_root: BoardRootOption = None,
) -> None:
    """List board columns, or add one."""

    def _inner() -> None:
        svc = _service(board_root)
        if add is not None:
            column = svc.add_column(add, title)
            typer.echo(f"Added column: {column.column_id} ({column.title})")
            return
        if title is not None:
            raise click.UsageError("--title requires --add")
        typer.echo(render.render_columns_plain(svc.list_columns()))

    _run_and_handle(_inner)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
