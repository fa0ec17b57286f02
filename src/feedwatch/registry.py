#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-08 20:11:45 krylon>
#
# /data/code/python/feedwatch/src/feedwatch/registry.py
# created on 04. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.registry

(c) 2026 Benjamin Walkenhorst
"""


from threading import Lock
from typing import Any, Callable, Generic, TypeVar

from feedwatch import common

T = TypeVar("T")


class UnknownImplementation(common.FeedwatchError):
    """UnknownImplementation indicates a name that nothing was registered for."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"Unknown {kind} implementation \"{name}\"")
        self.kind = kind
        self.name = name


class Registry(Generic[T]):
    """Registry maps the names used in the configuration to factories."""

    __slots__ = [
        "kind",
        "lock",
        "_factories",
    ]

    kind: str
    lock: Lock
    _factories: dict[str, Callable[..., T]]

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.lock = Lock()
        self._factories = {}

    def __contains__(self, name: str) -> bool:
        with self.lock:
            return name in self._factories

    def register(self, name: str, factory: Callable[..., T]) -> None:
        """Register a factory under the given name, replacing any previous one."""
        with self.lock:
            self._factories[name] = factory

    def lookup(self, name: str) -> Callable[..., T]:
        """Return the factory registered for <name>."""
        with self.lock:
            try:
                return self._factories[name]
            except KeyError as err:
                raise UnknownImplementation(self.kind, name) from err

    def create(self, name: str, *args: Any, **kwargs: Any) -> T:
        """Look up the factory for <name> and call it."""
        return self.lookup(name)(*args, **kwargs)

    @property
    def names(self) -> list[str]:
        """Return the registered names, sorted."""
        with self.lock:
            return sorted(self._factories)

# Local Variables: #
# python-indent: 4 #
# End: #
