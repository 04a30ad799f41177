"""Filesystem access used by the compiler (existence checks and reads)."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Mapping

from pyejs.errors import TemplateNotFoundError

log = logging.getLogger(__name__)

_BOM = "\ufeff"


class Loader(ABC):
    """Base class for template sources."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def read(self, path: str) -> str:
        pass

    def load(self, path: str) -> str:
        """Read a template and strip a leading byte-order mark."""
        text = self.read(path)
        if text.startswith(_BOM):
            text = text[len(_BOM) :]
        return text


class FileSystemLoader(Loader):
    """Loads templates from the local filesystem as UTF-8."""

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def read(self, path: str) -> str:
        try:
            return Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            log.debug("Could not read template %s: %s", path, exc)
            raise TemplateNotFoundError(path) from exc


class DictLoader(Loader):
    """Serves templates from a mapping of absolute path -> text."""

    def __init__(self, templates: Mapping[str, str] | None = None):
        self.templates: Dict[str, str] = dict(templates or {})
        self.reads: Dict[str, int] = {}

    def exists(self, path: str) -> bool:
        return path in self.templates

    def read(self, path: str) -> str:
        if path not in self.templates:
            raise TemplateNotFoundError(path)
        self.reads[path] = self.reads.get(path, 0) + 1
        return self.templates[path]
