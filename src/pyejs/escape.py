"""Default escaping and small mapping helpers."""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, MutableMapping

_ENCODE_HTML_RULES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&#34;",
    "'": "&#39;",
}
_MATCH_HTML = re.compile(r"[&<>'\"]")


def _encode_char(match: re.Match[str]) -> str:
    return _ENCODE_HTML_RULES[match.group(0)]


def escape_xml(markup: Any) -> str:
    """Escape characters reserved in XML/HTML.

    ``None`` renders as the empty string; anything else is converted with
    ``str()`` first.

    Example:
        >>> escape_xml('<a href="x">')
        '&lt;a href=&#34;x&#34;&gt;'
    """
    if markup is None:
        return ""
    return _MATCH_HTML.sub(_encode_char, str(markup))


def shallow_copy(
    to: MutableMapping[str, Any], source: Mapping[str, Any] | None
) -> MutableMapping[str, Any]:
    """Copy top-level keys of ``source`` into ``to`` (no recursion)."""
    for key, value in (source or {}).items():
        to[key] = value
    return to


def shallow_copy_from_list(
    to: MutableMapping[str, Any],
    source: Mapping[str, Any] | None,
    keys: Iterable[str],
) -> MutableMapping[str, Any]:
    """Copy only the listed keys, and only when they hold a value."""
    source = source or {}
    for key in keys:
        if source.get(key) is not None:
            to[key] = source[key]
    return to
