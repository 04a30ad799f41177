"""Compiler - entry point tying parsing, includes, caching and rendering together."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Mapping, Optional, Union

from pyejs.compiler.backend import ExecutionBackend, PythonBackend
from pyejs.compiler.cache import TemplateCache
from pyejs.compiler.renderer import ClientFunction, Renderer, TemplateFunction
from pyejs.compiler.resolver import IncludeResolver
from pyejs.compiler.template import Template
from pyejs.errors import ConfigurationError
from pyejs.escape import shallow_copy_from_list
from pyejs.loader import FileSystemLoader, Loader
from pyejs.options import OPTS_PASSABLE_WITH_DATA, Options

log = logging.getLogger(__name__)

OptionsLike = Union[Options, Mapping[str, Any], None]
Compiled = Union[TemplateFunction, ClientFunction]


class Compiler:
    """Compiles templates into render callables.

    The cache, loader and backend are injectable; module-level functions in
    ``pyejs`` use a shared default instance.
    """

    def __init__(
        self,
        cache: Optional[TemplateCache] = None,
        loader: Optional[Loader] = None,
        backend: Optional[ExecutionBackend] = None,
    ):
        self.cache = cache if cache is not None else TemplateCache()
        self.loader = loader or FileSystemLoader()
        self.backend = backend or PythonBackend()
        self.resolver = IncludeResolver(self.loader)
        self.renderer = Renderer(self.include_file)

    def compile(self, template: str, options: OptionsLike = None, **kwargs: Any) -> Compiled:
        """Compile template text into ``fn(data)``.

        With ``cache`` enabled, a filename is compiled at most once; later
        calls return the cached callable.
        """
        return self.handle_cache(Options.coerce(options, **kwargs), template)

    def _compile(self, template: str, options: Options) -> Compiled:
        if options.prefix:
            template = options.prefix + template
        return Template(template, self.renderer, options, self.backend).compile()

    def handle_cache(self, options: Options, template: Optional[str] = None) -> Compiled:
        """Return the compiled callable for ``options.filename`` or ``template``.

        Raises:
            ConfigurationError: If caching is requested without a filename, or
                neither a filename nor template text is available.
        """
        filename = options.filename

        if options.cache:
            if not filename:
                raise ConfigurationError("cache option requires a filename")
            func = self.cache.get(filename)
            if func is not None:
                return func
            if template is None:
                template = self.loader.load(filename)
        elif template is None:
            if not filename:
                raise ConfigurationError("no file name or template provided")
            template = self.loader.load(filename)

        func = self._compile(template, options)

        if options.cache:
            self.cache.set(filename, func)

        return func

    def include_file(self, path: str, options: Options, type: Optional[str] = None) -> Compiled:
        """Resolve an include relative to ``options`` and compile it."""
        ref = self.resolver.resolve(path, options, type)
        child = options.merged(filename=ref.filename, type=ref.type)
        return self.handle_cache(child, ref.template)

    def render(
        self,
        template: str,
        data: Optional[Mapping[str, Any]] = None,
        options: OptionsLike = None,
        **kwargs: Any,
    ) -> Any:
        """Compile and render in one step.

        When neither ``options`` nor keyword overrides are given, a fixed set of
        option keys (``delimiter``, ``strict``, ``filename``...) is read from
        ``data`` instead.
        """
        data = data if data is not None else {}
        if options is None and not kwargs:
            options = shallow_copy_from_list({}, data, OPTS_PASSABLE_WITH_DATA)
        return self.handle_cache(Options.coerce(options, **kwargs), template)(data)

    def render_async(
        self,
        template: str,
        data: Optional[Mapping[str, Any]] = None,
        options: OptionsLike = None,
        **kwargs: Any,
    ) -> Awaitable[str]:
        """Like ``render`` but always compiles in async mode; returns an awaitable."""
        data = data if data is not None else {}
        if options is None and not kwargs:
            options = shallow_copy_from_list({}, data, OPTS_PASSABLE_WITH_DATA)
        opts = Options.coerce(options, **kwargs).merged(is_async=True)
        return self.handle_cache(opts, template)(data)

    def render_file(
        self,
        filename: str,
        data: Optional[Mapping[str, Any]] = None,
        options: OptionsLike = None,
        **kwargs: Any,
    ) -> Any:
        """Load ``filename`` (through the cache when enabled) and render it."""
        data = data if data is not None else {}
        opts = Options.coerce(options, **kwargs).merged(filename=filename)
        return self.handle_cache(opts)(data)

    def clear_cache(self) -> None:
        self.cache.reset()


default_compiler = Compiler()
