"""Assembler - drives the tag-mode state machine over lexer tokens.

Each marker switches the current mode; each literal run is turned into an
instruction according to that mode. Physical newlines are counted as tokens
are consumed so that ``SetLine`` instructions track the template line.
"""

from __future__ import annotations

import enum
import re
from typing import List, Optional

from pyejs.errors import TemplateSyntaxError
from pyejs.parser.instructions import (
    EmitEscaped,
    EmitLiteral,
    EmitRaw,
    Execute,
    InstructionSequence,
    SetLine,
)
from pyejs.parser.lexer import (
    CLOSE_KINDS,
    OPEN_KINDS,
    DelimiterSet,
    TemplateLexer,
    Token,
    TokenKind,
    preprocess,
)

COMMENT_MARKER = "#"

_LEADING_LINEBREAK = re.compile(r"\A(?:\r\n|\r|\n)")
_TRAILING_SEMICOLON = re.compile(r";(\s*)\Z")


class Mode(enum.Enum):
    """Tag modes; ``None`` stands for plain template text."""

    EVAL = "eval"
    ESCAPED = "escaped"
    RAW = "raw"
    COMMENT = "comment"
    LITERAL = "literal"


_OPEN_MODES = {
    TokenKind.EVAL_OPEN: Mode.EVAL,
    TokenKind.SLURP_OPEN: Mode.EVAL,
    TokenKind.ESCAPED_OPEN: Mode.ESCAPED,
    TokenKind.RAW_OPEN: Mode.RAW,
    TokenKind.COMMENT_OPEN: Mode.COMMENT,
}

_CODE_MODES = (Mode.EVAL, Mode.ESCAPED, Mode.RAW)


def strip_semicolon(code: str) -> str:
    """Drop one trailing statement terminator, keeping trailing whitespace."""
    return _TRAILING_SEMICOLON.sub(r"\1", code)


class SourceAssembler:
    """Builds an InstructionSequence from template text."""

    def __init__(
        self,
        delimiters: DelimiterSet | None = None,
        compile_debug: bool = True,
        rm_whitespace: bool = False,
        filename: Optional[str] = None,
        is_async: bool = False,
    ):
        self.delimiters = delimiters or DelimiterSet()
        self.compile_debug = compile_debug
        self.rm_whitespace = rm_whitespace
        self.filename = filename
        self.is_async = is_async
        self.lexer = TemplateLexer(self.delimiters)

        self.mode: Optional[Mode] = None
        self.truncate = False
        self.current_line = 1
        self.program = InstructionSequence()

    def assemble(self, text: str) -> InstructionSequence:
        """Tokenize ``text`` and return its instruction sequence.

        Raises:
            TemplateSyntaxError: If an opening tag has no matching close tag.
        """
        text = preprocess(text, self.delimiters, self.rm_whitespace)
        self.mode = None
        self.truncate = False
        self.current_line = 1
        self.program = InstructionSequence(
            template_text=text,
            filename=self.filename,
            debug=self.compile_debug,
            is_async=self.is_async,
        )

        tokens = self.lexer.tokenize(text)
        for index, token in enumerate(tokens):
            if token.kind in OPEN_KINDS:
                self._check_closed(tokens, index)
            self.scan_token(token)

        return self.program

    def _check_closed(self, tokens: List[Token], index: int) -> None:
        # The content token sits between the open and close markers
        closing = tokens[index + 2] if index + 2 < len(tokens) else None
        if closing is None or closing.kind not in CLOSE_KINDS:
            raise TemplateSyntaxError(
                f'Could not find matching close tag for "{tokens[index].value}".'
            )

    def scan_token(self, token: Token) -> None:
        """Advance the state machine by one token."""
        kind = token.kind
        newlines = token.value.count("\n")

        if kind in _OPEN_MODES:
            self.mode = _OPEN_MODES[kind]
        elif kind is TokenKind.LITERAL_OPEN:
            self.mode = Mode.LITERAL
            self.program.append(EmitLiteral(self.delimiters.tag_open))
        elif kind is TokenKind.LITERAL_CLOSE:
            self.mode = Mode.LITERAL
            self.program.append(EmitLiteral(self.delimiters.tag_close))
        elif kind in CLOSE_KINDS:
            if self.mode is Mode.LITERAL:
                self._add_output(token.value)
            self.mode = None
            self.truncate = kind is not TokenKind.CLOSE
        else:
            self._add_content(token.value)

        if self.compile_debug and newlines:
            self.current_line += newlines
            self.program.append(SetLine(self.current_line))

    def _add_content(self, content: str) -> None:
        mode = self.mode
        if mode is None or mode is Mode.LITERAL:
            self._add_output(content)
            return

        # A trailing comment would swallow the code generated after it
        if mode in _CODE_MODES and content.rfind(COMMENT_MARKER) > content.rfind("\n"):
            content += "\n"

        if mode is Mode.EVAL:
            self.program.append(Execute(content))
        elif mode is Mode.ESCAPED:
            self.program.append(EmitEscaped(strip_semicolon(content)))
        elif mode is Mode.RAW:
            self.program.append(EmitRaw(strip_semicolon(content)))
        # Mode.COMMENT: discarded

    def _add_output(self, text: str) -> None:
        if self.truncate:
            # Only the single linebreak right after a -%> or _%> tag
            text = _LEADING_LINEBREAK.sub("", text, count=1)
            self.truncate = False

        if not text:
            return

        self.program.append(EmitLiteral(text))


def assemble(text: str, **kwargs) -> InstructionSequence:
    """Convenience wrapper: ``SourceAssembler(**kwargs).assemble(text)``."""
    return SourceAssembler(**kwargs).assemble(text)
