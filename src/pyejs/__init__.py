"""pyejs - embedded Python templates.

Templates mix literal text with tags:

    <% code %>     run a statement
    <%= expr %>    output the escaped value
    <%- expr %>    output the raw value
    <%# text %>    comment, discarded
    <%% / %%>      literal "<%" / "%>"
    -%> / _%>      trim the following newline (``_`` also trims spaces/tabs)

Example:
    >>> import pyejs
    >>> pyejs.render("Hello, <%= name %>!", {"name": "World"})
    'Hello, World!'
"""

from typing import Any, Awaitable, Mapping, Optional

from pyejs.compiler import (
    ClientFunction,
    Compiler,
    ExecutionBackend,
    PythonBackend,
    Template,
    TemplateCache,
    TemplateFunction,
    default_compiler,
)
from pyejs.compiler.compiler import OptionsLike
from pyejs.errors import (
    ConfigurationError,
    TemplateError,
    TemplateNotFoundError,
    TemplateRuntimeError,
    TemplateSyntaxError,
)
from pyejs.escape import escape_xml
from pyejs.loader import DictLoader, FileSystemLoader, Loader
from pyejs.options import Options

__version__ = "0.1.0"

cache: TemplateCache = default_compiler.cache


def compile(template: str, options: OptionsLike = None, **kwargs: Any):
    """Compile ``template`` with the default compiler."""
    return default_compiler.compile(template, options, **kwargs)


def render(
    template: str,
    data: Optional[Mapping[str, Any]] = None,
    options: OptionsLike = None,
    **kwargs: Any,
) -> Any:
    """Compile and render ``template`` with the default compiler."""
    return default_compiler.render(template, data, options, **kwargs)


def render_async(
    template: str,
    data: Optional[Mapping[str, Any]] = None,
    options: OptionsLike = None,
    **kwargs: Any,
) -> Awaitable[str]:
    """Compile in async mode and return an awaitable of the output."""
    return default_compiler.render_async(template, data, options, **kwargs)


def render_file(
    filename: str,
    data: Optional[Mapping[str, Any]] = None,
    options: OptionsLike = None,
    **kwargs: Any,
) -> Any:
    """Render a template file with the default compiler."""
    return default_compiler.render_file(filename, data, options, **kwargs)


def clear_cache() -> None:
    """Forget every cached template of the default compiler."""
    default_compiler.clear_cache()


__all__ = [
    "compile",
    "render",
    "render_async",
    "render_file",
    "clear_cache",
    "cache",
    "escape_xml",
    "Options",
    "Compiler",
    "Template",
    "TemplateCache",
    "TemplateFunction",
    "ClientFunction",
    "ExecutionBackend",
    "PythonBackend",
    "Loader",
    "FileSystemLoader",
    "DictLoader",
    "TemplateError",
    "TemplateSyntaxError",
    "ConfigurationError",
    "TemplateNotFoundError",
    "TemplateRuntimeError",
]
