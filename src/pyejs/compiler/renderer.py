"""Renderer - binds compiled programs to data, escaping and includes."""

from __future__ import annotations

import os
from typing import Any, Callable, Mapping, Optional

from pyejs.compiler.backend import Program
from pyejs.compiler.reporter import rethrow as default_rethrow
from pyejs.errors import TemplateRuntimeError
from pyejs.escape import shallow_copy
from pyejs.options import Options
from pyejs.parser.instructions import InstructionSequence

IncludeFile = Callable[[str, Options, Optional[str]], Callable[[Mapping[str, Any]], Any]]


def _function_name(filename: Optional[str]) -> str:
    if not filename:
        return "anonymous"
    return os.path.splitext(os.path.basename(filename))[0]


class TemplateFunction:
    """A compiled template: ``fn(data) -> str`` (or an awaitable in async mode)."""

    def __init__(
        self,
        program: Program,
        options: Options,
        include_file: IncludeFile,
        instructions: Optional[InstructionSequence] = None,
    ):
        self._program = program
        self._include_file = include_file
        self.options = options
        self.program = instructions
        self.__name__ = _function_name(options.filename)

    @property
    def source(self) -> str:
        return self._program.source

    @property
    def is_async(self) -> bool:
        return self.options.is_async

    def __call__(self, data: Optional[Mapping[str, Any]] = None) -> Any:
        data = data if data is not None else {}
        options = self.options

        def include(
            path: str,
            include_data: Optional[Mapping[str, Any]] = None,
            type: Optional[str] = None,
        ) -> Any:
            context = shallow_copy({}, data)
            shallow_copy(context, include_data)
            return self._include_file(path, options, type)(context)

        return self._program(data, options.escape_function, include, default_rethrow)

    def __repr__(self) -> str:
        return f"<TemplateFunction {self.__name__}>"


def _missing_include(path: str, *args: Any) -> Any:
    raise TemplateRuntimeError(
        f'Cannot include "{path}": no include callback was given to the client function.'
    )


class ClientFunction:
    """An unbound compiled template.

    The caller supplies the escape function, include callback and rethrow
    callback; escape and rethrow fall back to the defaults when omitted.
    """

    def __init__(
        self,
        program: Program,
        options: Options,
        instructions: Optional[InstructionSequence] = None,
    ):
        self._program = program
        self.options = options
        self.program = instructions
        self.__name__ = _function_name(options.filename)

    @property
    def source(self) -> str:
        return self._program.source

    def __call__(
        self,
        data: Optional[Mapping[str, Any]] = None,
        escape_fn: Optional[Callable[[Any], str]] = None,
        include: Optional[Callable[..., Any]] = None,
        rethrow: Optional[Callable[..., Any]] = None,
    ) -> Any:
        return self._program(
            data if data is not None else {},
            escape_fn or self.options.escape_function,
            include or _missing_include,
            rethrow or default_rethrow,
        )

    def __repr__(self) -> str:
        return f"<ClientFunction {self.__name__}>"


class Renderer:
    """Wraps loaded programs into the callables handed back to users."""

    def __init__(self, include_file: IncludeFile):
        self.include_file = include_file

    def bind(
        self,
        program: Program,
        options: Options,
        instructions: Optional[InstructionSequence] = None,
    ) -> TemplateFunction | ClientFunction:
        if options.client:
            return ClientFunction(program, options, instructions)
        return TemplateFunction(program, options, self.include_file, instructions)
