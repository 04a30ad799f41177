"""Error reporter - annotates render failures with template context."""

from __future__ import annotations

from typing import Any, Callable, NoReturn, Optional

from pyejs.escape import escape_xml

DEFAULT_LABEL = "ejs"
CONTEXT_LINES = 3


def source_window(text: str, lineno: int) -> str:
    """Return up to three lines around ``lineno``, marking the failing one.

    Example:
        >>> print(source_window("a\\nb\\nc", 2))
            1| a
         >> 2| b
            3| c
    """
    lines = text.split("\n")
    start = max(lineno - CONTEXT_LINES, 0)
    end = min(len(lines), lineno + CONTEXT_LINES)

    window = []
    for i, line in enumerate(lines[start:end]):
        current = i + start + 1
        marker = " >> " if current == lineno else "    "
        window.append(f"{marker}{current}| {line}")
    return "\n".join(window)


def annotate(
    err: BaseException,
    text: str,
    filename: Optional[str],
    lineno: int,
    escape_fn: Callable[[Any], str] = escape_xml,
) -> BaseException:
    """Rewrite ``err``'s message in place and attach ``path``."""
    path = escape_fn(filename)
    context = source_window(text, lineno)
    original = str(err.args[0]) if err.args else str(err)
    err.args = (f"{path or DEFAULT_LABEL}:{lineno}\n{context}\n\n{original}",)
    err.path = path  # type: ignore[attr-defined]
    return err


def rethrow(
    err: BaseException,
    text: str,
    filename: Optional[str],
    lineno: int,
    escape_fn: Callable[[Any], str] = escape_xml,
) -> NoReturn:
    """Annotate ``err`` and raise it again."""
    raise annotate(err, text, filename, lineno, escape_fn)
