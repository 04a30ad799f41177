"""Template compiler - turns parsed templates into render callables."""

from pyejs.compiler.backend import ExecutionBackend, Program, PythonBackend
from pyejs.compiler.cache import TemplateCache
from pyejs.compiler.compiler import Compiler, default_compiler
from pyejs.compiler.renderer import ClientFunction, Renderer, TemplateFunction
from pyejs.compiler.resolver import IncludeReference, IncludeResolver
from pyejs.compiler.template import Template

__all__ = [
    "Compiler",
    "default_compiler",
    "ExecutionBackend",
    "Program",
    "PythonBackend",
    "TemplateCache",
    "ClientFunction",
    "Renderer",
    "TemplateFunction",
    "IncludeReference",
    "IncludeResolver",
    "Template",
]
