"""Template - source text plus the options snapshot it is compiled with."""

from __future__ import annotations

import logging
from typing import Optional

from pyejs.compiler.backend import ExecutionBackend, PythonBackend
from pyejs.compiler.renderer import ClientFunction, Renderer, TemplateFunction
from pyejs.options import Options
from pyejs.parser.assembler import SourceAssembler
from pyejs.parser.instructions import InstructionSequence
from pyejs.parser.lexer import DelimiterSet

log = logging.getLogger(__name__)


class Template:
    """One compile call: text in, callable out.

    ``renderer`` comes from the owning ``Compiler``; includes made by the
    compiled template go through that compiler's loader and cache.
    """

    def __init__(
        self,
        text: str,
        renderer: Renderer,
        options: Optional[Options] = None,
        backend: Optional[ExecutionBackend] = None,
    ):
        self.text = text
        self.options = options or Options()
        self.backend = backend or PythonBackend()
        self.renderer = renderer
        self._program: Optional[InstructionSequence] = None

    @property
    def delimiters(self) -> DelimiterSet:
        opts = self.options
        return DelimiterSet(opts.open_delimiter, opts.delimiter, opts.close_delimiter)

    def generate(self) -> InstructionSequence:
        """Assemble (once) and return the instruction sequence."""
        if self._program is None:
            opts = self.options
            assembler = SourceAssembler(
                delimiters=self.delimiters,
                compile_debug=opts.compile_debug,
                rm_whitespace=opts.rm_whitespace,
                filename=opts.filename,
                is_async=opts.is_async,
            )
            self._program = assembler.assemble(self.text)
        return self._program

    def compile(self) -> TemplateFunction | ClientFunction:
        """Compile to a render callable.

        Raises:
            TemplateSyntaxError: On unmatched tags, invalid identifiers, or a
                generated program that does not compile.
        """
        self.options.validate_identifiers()
        instructions = self.generate()
        program = self.backend.load(instructions, self.options)

        if self.options.debug:
            log.info(
                "generated program for %s:\n%s",
                self.options.filename or "<template>",
                program.source,
            )

        return self.renderer.bind(program, self.options, instructions)
