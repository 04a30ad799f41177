"""pyejs Exceptions

Custom exceptions raised while compiling and rendering templates.
"""

from __future__ import annotations


class TemplateError(Exception):
    """Base exception for all pyejs errors."""

    path: str | None = None


class TemplateSyntaxError(TemplateError):
    """Raised when a template or the program generated from it is malformed."""

    pass


class ConfigurationError(TemplateError):
    """Raised when options are inconsistent (e.g. cache without a filename)."""

    pass


class TemplateNotFoundError(TemplateError):
    """Raised when an include cannot be resolved to a file."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'Could not find the include file "{name}"')


class TemplateRuntimeError(TemplateError):
    """Raised by the runtime when a render breaks its own contract."""

    pass
