#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-13 17:21:09 krylon>
#
# /data/code/python/feedwatch/src/feedwatch/hooks.py
# created on 03. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.hooks

(c) 2026 Benjamin Walkenhorst

The HookBus lets plugins observe the loading of the configuration and the
processing of feeds. Observers are called in the order they were registered.
An observer may return HookResult.Stop to keep the remaining observers from
seeing the event, or raise an exception (preferably HookAbort) to signal a
fatal error.
"""


import logging
from dataclasses import dataclass
from enum import Enum, auto
from threading import Lock
from typing import Any, Callable, Optional

from feedwatch import common


class HookAbort(common.FeedwatchError):
    """HookAbort is raised by observers to signal a fatal error."""


class Hook(Enum):
    """Hook enumerates the extension points."""

    MainSectionItem = auto()
    FeedConfigItem = auto()
    OutputHandlerConfigItem = auto()
    UnknownSectionConfigItem = auto()
    PreFetch = auto()
    PostParse = auto()
    PreCacheSave = auto()
    PostDispatch = auto()

    @property
    def load_time(self) -> bool:
        """Return True if the Hook fires while loading the configuration."""
        return self in (Hook.MainSectionItem,
                        Hook.FeedConfigItem,
                        Hook.OutputHandlerConfigItem,
                        Hook.UnknownSectionConfigItem)


class HookResult(Enum):
    """HookResult tells the HookBus whether to go on with the remaining observers."""

    Continue = auto()
    Stop = auto()


@dataclass(kw_only=True, slots=True, frozen=True)
class HookEvent:
    """HookEvent carries whatever context is available at an extension point."""

    point: Hook
    section: str = ""
    variable: str = ""
    settings: Any = None
    policy: Any = None
    handler: Any = None
    channel: Any = None
    cache: Any = None


Observer = Callable[[HookEvent], Optional[HookResult]]


class HookBus:
    """HookBus dispatches events to the observers registered for them."""

    __slots__ = [
        "log",
        "lock",
        "_observers",
    ]

    log: logging.Logger
    lock: Lock
    _observers: dict[Hook, tuple[Observer, ...]]

    def __init__(self) -> None:
        self.log = common.get_logger("hooks")
        self.lock = Lock()
        self._observers = {}

    def register(self, point: Hook, observer: Observer) -> None:
        """Add an observer for the given extension point."""
        with self.lock:
            self._observers[point] = self._observers.get(point, ()) + (observer, )

    def observers(self, point: Hook) -> tuple[Observer, ...]:
        """Return the observers registered for <point>, in registration order."""
        with self.lock:
            return self._observers.get(point, ())

    def fire(self, point: Hook, **kwargs) -> bool:
        """Pass an event to all observers of <point>.

        Return False if one of the observers stopped the event, True otherwise.
        Exceptions raised by observers are passed on to the caller.
        """
        observers = self.observers(point)
        if len(observers) == 0:
            return True

        event: HookEvent = HookEvent(point=point, **kwargs)
        for obs in observers:
            try:
                res = obs(event)
            except Exception as err:
                self.log.error("%s in observer of %s (%s/%s): %s",
                               err.__class__.__name__,
                               point.name,
                               event.section,
                               event.variable,
                               err)
                raise

            if res == HookResult.Stop:
                self.log.debug("Observer %s stopped %s", obs, point.name)
                return False

        return True

# Local Variables: #
# python-indent: 4 #
# End: #
