"""Compiled-template cache - filename -> compiled callable.

A plain in-process mapping with no eviction and no expiry. Entries live until
they are removed or the cache is reset.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

log = logging.getLogger(__name__)


class TemplateCache:
    """Process-lifetime memoization of compiled templates."""

    def __init__(self) -> None:
        self._data: Dict[str, Callable[..., Any]] = {}

    def get(self, key: str) -> Optional[Callable[..., Any]]:
        func = self._data.get(key)
        log.debug("cache %s: %s", "hit" if func is not None else "miss", key)
        return func

    def set(self, key: str, value: Callable[..., Any]) -> None:
        log.debug("cache store: %s", key)
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def reset(self) -> None:
        self._data = {}

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)
