"""Resolver - maps include references to template files.

Resolution order:
- Absolute references (``/x`` or ``C:\\x``) are looked up under ``root``
  (one directory, or the first matching directory of a list).
- Relative references are looked up next to the including file first, then
  in each ``views`` directory in order.
- An extension-less reference gets the current dialect's extension.

A custom ``includer`` callback may then override the location or supply the
template text directly.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from pyejs.errors import TemplateNotFoundError
from pyejs.loader import FileSystemLoader, Loader
from pyejs.options import DEFAULT_TYPE, Options

log = logging.getLogger(__name__)

_ABSOLUTE = re.compile(r"^[A-Za-z]+:\\|^/")


def resolve_include(
    name: str, filename: str, is_dir: bool = False, type: str = DEFAULT_TYPE
) -> str:
    """Join ``name`` onto ``filename`` (or its directory) and add an extension.

    Args:
        name: The include reference.
        filename: A directory (``is_dir``) or the path of the including file.
        is_dir: Whether ``filename`` is already a directory.
        type: Dialect tag used as extension when ``name`` has none.

    Returns:
        Absolute, normalized path.
    """
    base = filename if is_dir else os.path.dirname(filename)
    include_path = os.path.abspath(os.path.join(base, name))
    if not os.path.splitext(name)[1]:
        include_path += "." + type
    return include_path


def resolve_paths(
    name: str, paths: Sequence[str], type: str, loader: Loader
) -> Optional[str]:
    """Return the first candidate under ``paths`` that exists."""
    for directory in paths:
        candidate = resolve_include(name, directory, True, type)
        if loader.exists(candidate):
            return candidate
    return None


@dataclass(frozen=True)
class IncludeReference:
    """A resolved include: where it lives and/or its inline text."""

    path: str
    filename: Optional[str]
    template: Optional[str] = None
    type: str = DEFAULT_TYPE


class IncludeResolver:
    """Resolves include references against an ``Options`` snapshot."""

    def __init__(self, loader: Loader | None = None):
        self.loader = loader or FileSystemLoader()

    def include_path(self, path: str, options: Options, type: str) -> Optional[str]:
        """Compute the default location for ``path``.

        Returns ``None`` only when no file matched and an ``includer`` is
        configured to take over.

        Raises:
            TemplateNotFoundError: If nothing matched and there is no includer.
        """
        include_path: Optional[str] = None

        if _ABSOLUTE.match(path):
            stripped = path.lstrip("/")
            if isinstance(options.root, list):
                include_path = resolve_paths(stripped, options.root, type, self.loader)
            else:
                include_path = resolve_include(stripped, options.root or "/", True, type)
        else:
            if options.filename:
                candidate = resolve_include(path, options.filename, False, type)
                if self.loader.exists(candidate):
                    include_path = candidate
            if include_path is None and options.views:
                include_path = resolve_paths(path, options.views, type, self.loader)

        if include_path is None and options.includer is None:
            raise TemplateNotFoundError(options.escape_function(path))

        log.debug("include %r resolved to %s", path, include_path)
        return include_path

    def resolve(self, path: str, options: Options, type: str | None = None) -> IncludeReference:
        """Resolve ``path`` and give the ``includer`` callback a chance to override it."""
        type = type or options.type
        filename = self.include_path(path, options, type)
        template: Optional[str] = None

        if options.includer is not None:
            result = options.includer(path, filename)
            if result:
                override = _get(result, "filename")
                if override:
                    filename = override
                template = _get(result, "template") or None

        if filename is None and template is None:
            raise TemplateNotFoundError(options.escape_function(path))

        return IncludeReference(path=path, filename=filename, template=template, type=type)


def _get(result: Any, key: str) -> Any:
    if isinstance(result, Mapping):
        return result.get(key)
    return getattr(result, key, None)
