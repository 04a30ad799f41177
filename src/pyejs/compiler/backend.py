"""Execution backends - turn an InstructionSequence into something callable.

``PythonBackend`` generates the source of one Python function::

    def __template(locals, escape_fn, include, rethrow): ...

(``async def`` in async mode), compiles it once, and re-binds the function
to a fresh global namespace on every call. When locals are exposed, the data
fields are placed in that namespace so embedded code can name them directly.

Statement tags are stitched into indented Python. Indentation written inside
tags is ignored; blocks are opened by a compound statement ending in ``:`` or
``{`` and closed by ``}`` or ``end``::

    <% for item in items { %><li><%= item %></li><% } %>
    <% if user: %>Hi<% else: %>Anonymous<% end %>
"""

from __future__ import annotations

import builtins
import inspect
import logging
import re
import types
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from pyejs.errors import TemplateRuntimeError, TemplateSyntaxError
from pyejs.options import Options
from pyejs.parser.instructions import (
    EmitEscaped,
    EmitLiteral,
    EmitRaw,
    Execute,
    InstructionSequence,
    SetLine,
)

log = logging.getLogger(__name__)

FUNCTION_NAME = "__template"
INDENT = "    "

_BLOCK_KEYWORDS = frozenset(
    {
        "if",
        "elif",
        "else",
        "for",
        "while",
        "with",
        "try",
        "except",
        "finally",
        "def",
        "class",
        "async",
        "match",
        "case",
    }
)
_CONTINUATION_KEYWORDS = frozenset({"else", "elif", "except", "finally"})
_LEADING_WORD = re.compile(r"[A-Za-z_]+")
_ELSE_IF = re.compile(r"^else\s+if\b")


def _escape_char(char: str) -> str:
    code = ord(char)
    if code < 0x100:
        return f"\\x{code:02x}"
    if code < 0x10000:
        return f"\\u{code:04x}"
    return f"\\U{code:08x}"


def quote_literal(text: str) -> str:
    """Quote template text as a double-quoted Python string literal.

    Non-printable characters are written as ``\\x``/``\\u`` escapes so that
    the generated source only ever holds printable text.
    """
    text = text.replace("\\", "\\\\")
    text = text.replace("\n", "\\n").replace("\r", "\\r")
    text = text.replace('"', '\\"')
    if not text.isprintable():
        text = "".join(c if c.isprintable() else _escape_char(c) for c in text)
    return f'"{text}"'


def scan_line(line: str, quote: Optional[str] = None) -> Tuple[str, int, Optional[str]]:
    """Mask string literals in one physical line of code.

    Args:
        line: The line to scan.
        quote: The triple quote left open by the previous line, if any.

    Returns:
        The line with string contents replaced by ``_``, the index of a
        trailing ``#`` comment (-1 if none), and the triple quote still open
        at the end of the line.
    """
    masked: List[str] = []
    i, n = 0, len(line)
    while i < n:
        char = line[i]
        if quote is not None:
            if char == "\\":
                step = 2
            elif line.startswith(quote, i):
                step = len(quote)
                quote = None
            else:
                step = 1
            masked.append("_" * min(step, n - i))
            i += step
            continue
        if char == "#":
            return "".join(masked), i, None
        if char in "'\"":
            quote = char * 3 if line.startswith(char * 3, i) else char
            masked.append("_" * len(quote))
            i += len(quote)
            continue
        masked.append(char)
        i += 1

    # Single-quoted strings cannot span lines
    if quote is not None and len(quote) == 1:
        quote = None
    return "".join(masked), -1, quote


def _bracket_balance(masked: str) -> int:
    opened = sum(masked.count(c) for c in "([{")
    closed = sum(masked.count(c) for c in ")]}")
    return opened - closed


class BlockWriter:
    """Accumulates indented Python lines and tracks open blocks."""

    def __init__(self, depth: int = 0):
        self.lines: List[str] = []
        self.depth = depth
        self._bodies: List[int] = []  # statements emitted per open block
        self._pending = 0  # unclosed brackets carried over from the last line
        self._quote: Optional[str] = None  # triple-quoted string left open

    @property
    def open_blocks(self) -> int:
        return len(self._bodies)

    def line(self, text: str) -> None:
        self.lines.append(INDENT * self.depth + text)
        if self._bodies:
            self._bodies[-1] += 1

    def open_block(self) -> None:
        self.depth += 1
        self._bodies.append(0)

    def close_block(self) -> None:
        if not self._bodies:
            raise TemplateSyntaxError("Unexpected block close: no block is open.")
        if self._bodies.pop() == 0:
            self.lines.append(INDENT * self.depth + "pass")
        self.depth -= 1

    def statement(self, code: str) -> None:
        """Translate a statement fragment line by line.

        Lines inside a multi-line string literal are kept verbatim.
        """
        for raw in code.split("\n"):
            if self._quote is not None:
                self._string_line(raw)
            else:
                self._statement_line(raw.lstrip())

    def _string_line(self, raw: str) -> None:
        masked, comment, quote = scan_line(raw, self._quote)
        self._quote = quote
        if quote is None and comment != -1:
            raw, masked = raw[:comment].rstrip(), masked[:comment]
        self.lines.append(raw)
        self._pending = max(self._pending + _bracket_balance(masked), 0)

    def _statement_line(self, line: str) -> None:
        masked, comment, quote = scan_line(line)

        if quote is not None:
            # The rest of the line belongs to a string continued below
            self.line(line)
            self._quote = quote
            self._pending = max(self._pending + _bracket_balance(masked), 0)
            return

        if comment != -1:
            line = line[:comment]
        line = line.rstrip()
        masked = masked[: len(line)]
        if not line:
            return

        if self._pending > 0:
            self.line(line)
            self._pending = max(self._pending + _bracket_balance(masked), 0)
            return

        closed = False
        if line == "end" or line.startswith("}"):
            self.close_block()
            closed = True
            line = "" if line == "end" else line[1:].strip()
            if not line:
                return
            masked = scan_line(line)[0]

        word = _LEADING_WORD.match(line)
        keyword = word.group(0) if word else ""

        if keyword in _CONTINUATION_KEYWORDS and not closed:
            self.close_block()

        if keyword in _BLOCK_KEYWORDS and masked.endswith("{"):
            self.line(_ELSE_IF.sub("elif", line[:-1].rstrip()) + ":")
            self.open_block()
            return

        if keyword in _BLOCK_KEYWORDS and masked.endswith(":"):
            self.line(_ELSE_IF.sub("elif", line))
            self.open_block()
            return

        self.line(line)
        self._pending = max(_bracket_balance(masked), 0)


def _sync_value(value: Any) -> Any:
    if inspect.isawaitable(value):
        if inspect.iscoroutine(value):
            value.close()
        raise TemplateRuntimeError(
            "Template produced an awaitable value; compile with async=True to render it."
        )
    return value


class Program:
    """A compiled template function awaiting a data context."""

    def __init__(
        self,
        code: types.CodeType,
        source: str,
        exposes_locals: bool,
        name: str = FUNCTION_NAME,
    ):
        self.code = code
        self.source = source
        self.exposes_locals = exposes_locals
        self.name = name

    def namespace(self, data: Mapping[str, Any]) -> dict:
        namespace: dict = {}
        if self.exposes_locals:
            namespace.update((k, v) for k, v in data.items() if isinstance(k, str))
        namespace["__builtins__"] = builtins
        namespace["__sync_value"] = _sync_value
        return namespace

    def __call__(
        self,
        data: Mapping[str, Any],
        escape_fn: Callable[[Any], str],
        include: Callable[..., Any],
        rethrow: Callable[..., Any],
    ) -> Any:
        fn = types.FunctionType(self.code, self.namespace(data), self.name)
        return fn(data, escape_fn, include, rethrow)


class ExecutionBackend(ABC):
    """Abstract base class for code-execution backends.

    A backend receives the instruction sequence and the options snapshot and
    returns a ``Program``: a callable taking ``(data, escape_fn, include,
    rethrow)`` and returning a string, or an awaitable string in async mode.
    """

    @abstractmethod
    def generate(self, program: InstructionSequence, options: Options) -> str:
        """Return the generated program text."""
        pass

    @abstractmethod
    def load(self, program: InstructionSequence, options: Options) -> Program:
        """Compile the program into a callable."""
        pass


class PythonBackend(ExecutionBackend):
    """Executes embedded code as Python."""

    def generate(
        self,
        program: InstructionSequence,
        options: Options,
        rebind: Sequence[str] = (),
    ) -> str:
        """Return the source of the template function.

        Args:
            program: The instructions to translate.
            options: The options snapshot.
            rebind: Data fields the template assigns to. Python makes them
                function locals, so they are copied in from the data context
                before the body runs.
        """
        lines = [
            f"{'async ' if program.is_async else ''}def {FUNCTION_NAME}"
            f"({options.locals_name}, escape_fn, include, rethrow):"
        ]
        lines.extend(INDENT + line for line in self._prelude(program.is_async))

        debug = program.debug
        if debug:
            lines.append(f"{INDENT}__line = 1")
            lines.append(f"{INDENT}__lines = {quote_literal(program.template_text)}")
            lines.append(f"{INDENT}__filename = {_quote_optional(program.filename)}")
            lines.append(f"{INDENT}try:")

        body = BlockWriter(depth=2 if debug else 1)
        for line in self._rebind(options, rebind):
            body.line(line)
        for line in self._bindings(options):
            body.line(line)
        self._emit(body, program)
        if body.open_blocks:
            raise TemplateSyntaxError(
                f"{body.open_blocks} block(s) left open at end of template."
            )
        if not body.lines:
            body.line("pass")
        lines.extend(body.lines)

        if debug:
            lines.append(f"{INDENT}except Exception as __err:")
            lines.append(
                f"{INDENT * 2}rethrow(__err, __lines, __filename, __line, escape_fn)"
            )
            lines.append(f"{INDENT * 2}raise")

        if program.is_async:
            lines.append(f"{INDENT}__values = await __gather(*[__resolve(s) for s in __output])")
            lines.append(
                f'{INDENT}return "".join(str(v) for v in __values if v is not None)'
            )
        else:
            lines.append(f'{INDENT}return "".join(__output)')

        return "\n".join(lines) + "\n"

    def _prelude(self, is_async: bool) -> List[str]:
        if not is_async:
            return [
                "__output = []",
                "def __append(s):",
                "    if s is not None:",
                "        __output.append(str(__sync_value(s)))",
                "def __escaped(s):",
                "    return escape_fn(__sync_value(s))",
            ]
        return [
            "from asyncio import gather as __gather",
            "from inspect import isawaitable as __isawaitable",
            "__output = []",
            "def __append(s):",
            "    if s is not None:",
            "        __output.append(s)",
            "async def __await_escaped(s):",
            "    return escape_fn(await s)",
            "def __escaped(s):",
            "    return __await_escaped(s) if __isawaitable(s) else escape_fn(s)",
            "async def __resolve(s):",
            "    return (await s) if __isawaitable(s) else s",
        ]

    def _rebind(self, options: Options, names: Sequence[str]) -> List[str]:
        source = options.locals_name
        return [
            f"if {quote_literal(name)} in {source}: {name} = {source}[{quote_literal(name)}]"
            for name in names
        ]

    def _bindings(self, options: Options) -> List[str]:
        lines = []
        for entry in options.files:
            name, path = entry[0], entry[1]
            args = f"{quote_literal(path)}, data"
            if len(entry) > 2 and entry[2]:
                args += f", {quote_literal(entry[2])}"
            lines.append(f"{name} = lambda data=None: include({args})")

        if options.output_function_name:
            lines.append(f"{options.output_function_name} = __append")

        if options.destructured_locals:
            lines.append(f"__locals = {options.locals_name} or {{}}")
            for name in options.destructured_locals:
                lines.append(f"{name} = __locals.get({quote_literal(name)})")
        return lines

    def _emit(self, body: BlockWriter, program: InstructionSequence) -> None:
        for instruction in program:
            if isinstance(instruction, EmitLiteral):
                body.line(f"__append({quote_literal(instruction.text)})")
            elif isinstance(instruction, EmitEscaped):
                body.line(f"__append(__escaped({instruction.code}))")
            elif isinstance(instruction, EmitRaw):
                body.line(f"__append({instruction.code})")
            elif isinstance(instruction, Execute):
                body.statement(instruction.code)
            elif isinstance(instruction, SetLine):
                body.line(f"__line = {instruction.line}")

    def load(self, program: InstructionSequence, options: Options) -> Program:
        source = self.generate(program, options)
        code = self._compile(source, program)

        if options.exposes_locals:
            assigned = assigned_names(code)
            if assigned:
                log.debug("rebinding assigned data fields: %s", ", ".join(assigned))
                source = self.generate(program, options, rebind=assigned)
                code = self._compile(source, program)

        log.debug("compiled %s (%d instructions)", program.filename or "<template>", len(program))
        return Program(code, source, exposes_locals=options.exposes_locals)

    def _compile(self, source: str, program: InstructionSequence) -> types.CodeType:
        try:
            module = compile(source, program.filename or "<template>", "exec")
        except SyntaxError as exc:
            message = f"{exc.msg} while compiling template (generated line {exc.lineno})"
            if program.filename:
                message += f" in {program.filename}"
            raise TemplateSyntaxError(message) from exc

        scratch: dict = {"__builtins__": builtins}
        exec(module, scratch)
        return scratch[FUNCTION_NAME].__code__


def assigned_names(code: types.CodeType) -> List[str]:
    """Return the names a template function assigns, parameters and internals excluded.

    Cell variables are included: a name captured by a nested function is
    still a local of the template function.
    """
    params = set(code.co_varnames[: code.co_argcount])
    names = code.co_varnames[code.co_argcount :] + code.co_cellvars
    return [
        name
        for name in dict.fromkeys(names)
        if name not in params and not name.startswith("__")
    ]


def _quote_optional(value: Optional[str]) -> str:
    return "None" if value is None else quote_literal(value)
