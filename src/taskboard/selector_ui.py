"""Arrow-key selector helpers backed by InquirerPy."""

from __future__ import annotations

import sys


class SelectorUnavailableError(RuntimeError):
    """Raised when arrow-key selector UI cannot be used."""


def _ensure_tty() -> None:
    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        raise SelectorUnavailableError("interactive selector requires a TTY")


def _inquirer():
    try:
        from InquirerPy import inquirer
    except Exception as exc:  # pragma: no cover - environment dependent
        raise SelectorUnavailableError("InquirerPy unavailable") from exc
    return inquirer


def _choices(options: list[tuple[str, str]]) -> list[dict[str, object]]:
    return [{"name": label, "value": value} for value, label in options]


def _execute(prompt):
    try:
        return prompt.execute()
    except (KeyboardInterrupt, EOFError):
        return None
    except Exception as exc:
        raise SelectorUnavailableError("selector runtime failed") from exc


def select_one(
    title: str,
    options: list[tuple[str, str]],
    *,
    default_value: str | None = None,
) -> str | None:
    """Return selected value, None on cancel, or raise SelectorUnavailableError for fallback."""
    _ensure_tty()
    if not options:
        return None

    result = _execute(
        _inquirer().select(
            message=title,
            choices=_choices(options),
            default=default_value,
            pointer=">",
            vi_mode=False,
            mandatory=False,
            raise_keyboard_interrupt=True,
        )
    )
    if result is None:
        return None
    return str(result)


def select_fuzzy(
    title: str,
    options: list[tuple[str, str]],
    *,
    default_value: str | None = None,
) -> str | None:
    """Return selected value from fuzzy prompt, None on cancel, or raise SelectorUnavailableError."""
    _ensure_tty()
    if not options:
        return None

    result = _execute(
        _inquirer().fuzzy(
            message=title,
            choices=_choices(options),
            default=default_value or "",
            vi_mode=False,
            mandatory=False,
            raise_keyboard_interrupt=True,
        )
    )
    if result is None:
        return None
    return str(result)


def select_many(
    title: str,
    options: list[tuple[str, str]],
    *,
    default_values: list[str] | None = None,
) -> list[str] | None:
    """Return selected values in source order, None on cancel, or raise SelectorUnavailableError."""
    _ensure_tty()
    if not options:
        return []

    defaults = set(default_values or [])
    choices = _choices(options)
    for choice in choices:
        choice["enabled"] = choice["value"] in defaults
    selected = _execute(
        _inquirer().checkbox(
            message=title,
            choices=choices,
            instruction="(space to toggle, enter to submit, ctrl-c to cancel)",
            vi_mode=False,
            mandatory=False,
            raise_keyboard_interrupt=True,
        )
    )
    if selected is None:
        return None
    selected_set = {str(value) for value in selected}
    return [value for value, _ in options if value in selected_set]


def select_text(title: str, *, default_value: str = "") -> str | None:
    """Return typed text, None on cancel, or raise SelectorUnavailableError."""
    _ensure_tty()
    result = _execute(
        _inquirer().text(
            message=title,
            default=default_value,
            vi_mode=False,
            mandatory=False,
            raise_keyboard_interrupt=True,
        )
    )
    if result is None:
        return None
    return str(result)
