"""Lexer - splits template text into literal runs and delimiter markers.

The marker table is built from the configured delimiter set; no pattern is
compiled from user-supplied delimiters. At each position the markers are tried
in priority order, so the longest-prefix variants (``<%%``, ``<%=``) win over
the plain ``<%``.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import List, Tuple

_LINEBREAKS = re.compile(r"[\r\n]+")
_LINE_EDGE_WHITESPACE = re.compile(r"^\s+|\s+$", re.MULTILINE)
_HORIZONTAL_WHITESPACE = " \t"


class TokenKind(enum.Enum):
    """Kinds of tokens produced by the lexer."""

    TEXT = "TEXT"
    LITERAL_OPEN = "LITERAL_OPEN"  # <%%
    LITERAL_CLOSE = "LITERAL_CLOSE"  # %%>
    ESCAPED_OPEN = "ESCAPED_OPEN"  # <%=
    RAW_OPEN = "RAW_OPEN"  # <%-
    SLURP_OPEN = "SLURP_OPEN"  # <%_
    COMMENT_OPEN = "COMMENT_OPEN"  # <%#
    EVAL_OPEN = "EVAL_OPEN"  # <%
    CLOSE = "CLOSE"  # %>
    TRIM_CLOSE = "TRIM_CLOSE"  # -%>
    SLURP_CLOSE = "SLURP_CLOSE"  # _%>


OPEN_KINDS = frozenset(
    {
        TokenKind.ESCAPED_OPEN,
        TokenKind.RAW_OPEN,
        TokenKind.SLURP_OPEN,
        TokenKind.COMMENT_OPEN,
        TokenKind.EVAL_OPEN,
    }
)
CLOSE_KINDS = frozenset({TokenKind.CLOSE, TokenKind.TRIM_CLOSE, TokenKind.SLURP_CLOSE})


@dataclass(frozen=True)
class DelimiterSet:
    """The three strings that bound a tag: ``<`` + ``%`` ... ``%`` + ``>``."""

    open: str = "<"
    delimiter: str = "%"
    close: str = ">"

    @property
    def tag_open(self) -> str:
        return self.open + self.delimiter

    @property
    def tag_close(self) -> str:
        return self.delimiter + self.close

    @property
    def slurp_open(self) -> str:
        return self.tag_open + "_"

    @property
    def slurp_close(self) -> str:
        return "_" + self.tag_close

    def markers(self) -> List[Tuple[TokenKind, str]]:
        """Return (kind, text) pairs in matching priority order."""
        o, d, c = self.open, self.delimiter, self.close
        return [
            (TokenKind.LITERAL_OPEN, o + d + d),
            (TokenKind.LITERAL_CLOSE, d + d + c),
            (TokenKind.ESCAPED_OPEN, o + d + "="),
            (TokenKind.RAW_OPEN, o + d + "-"),
            (TokenKind.SLURP_OPEN, o + d + "_"),
            (TokenKind.COMMENT_OPEN, o + d + "#"),
            (TokenKind.EVAL_OPEN, o + d),
            (TokenKind.CLOSE, d + c),
            (TokenKind.TRIM_CLOSE, "-" + d + c),
            (TokenKind.SLURP_CLOSE, "_" + d + c),
        ]


@dataclass(frozen=True)
class Token:
    """A literal run or a marker, with the physical line it starts on."""

    kind: TokenKind
    value: str
    line: int

    @property
    def is_marker(self) -> bool:
        return self.kind is not TokenKind.TEXT

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.value!r}, {self.line})"


def preprocess(text: str, delimiters: DelimiterSet, rm_whitespace: bool = False) -> str:
    """Apply whitespace rules before tokenization.

    With ``rm_whitespace`` every linebreak run collapses to ``\\n`` and
    leading/trailing whitespace is removed from each line. Independently,
    spaces and tabs directly before a slurp-open marker and directly after a
    slurp-close marker are removed.
    """
    if rm_whitespace:
        text = _LINEBREAKS.sub("\n", text)
        text = _LINE_EDGE_WHITESPACE.sub("", text)

    slurp_open = delimiters.slurp_open
    if slurp_open in text:
        parts = text.split(slurp_open)
        parts[:-1] = [part.rstrip(_HORIZONTAL_WHITESPACE) for part in parts[:-1]]
        text = slurp_open.join(parts)

    slurp_close = delimiters.slurp_close
    if slurp_close in text:
        parts = text.split(slurp_close)
        parts[1:] = [part.lstrip(_HORIZONTAL_WHITESPACE) for part in parts[1:]]
        text = slurp_close.join(parts)

    return text


class TemplateLexer:
    """Tokenizes template text for a given delimiter set."""

    def __init__(self, delimiters: DelimiterSet | None = None):
        self.delimiters = delimiters or DelimiterSet()
        self._markers = self.delimiters.markers()
        # Only positions starting with one of these characters can hold a marker
        self._lead_chars = frozenset(text[0] for _, text in self._markers)

    def _match_marker(self, text: str, pos: int) -> Tuple[TokenKind, str] | None:
        if text[pos] not in self._lead_chars:
            return None
        for kind, marker in self._markers:
            if text.startswith(marker, pos):
                return kind, marker
        return None

    def tokenize(self, text: str) -> List[Token]:
        """Split ``text`` into tokens whose values concatenate back to ``text``."""
        tokens: List[Token] = []
        length = len(text)
        line = 1
        text_start = 0
        pos = 0

        while pos < length:
            match = self._match_marker(text, pos)
            if match is None:
                pos += 1
                continue

            if pos > text_start:
                run = text[text_start:pos]
                tokens.append(Token(TokenKind.TEXT, run, line))
                line += run.count("\n")

            kind, marker = match
            tokens.append(Token(kind, marker, line))
            line += marker.count("\n")
            pos += len(marker)
            text_start = pos

        if text_start < length:
            tokens.append(Token(TokenKind.TEXT, text[text_start:], line))

        return tokens
