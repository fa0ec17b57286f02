#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 20:58:37 krylon>
#
# /data/code/python/feedwatch/src/feedwatch/output.py
# created on 07. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.output

(c) 2026 Benjamin Walkenhorst

Output handlers receive the new Items of a run. The Dispatcher feeds them to
every configured handler, in the order they were declared.
"""


import logging
import os
import sys
import textwrap
from typing import Callable, Final, Optional, Protocol, Sequence, TextIO

from feedwatch import common
from feedwatch.engine import ChannelResult
from feedwatch.hooks import Hook, HookBus
from feedwatch.model import (Configuration, FeedPolicy, GlobalSettings,
                             OutputHandlerSpec)
from feedwatch.parser import Channel, FeedItem
from feedwatch.registry import Registry
from feedwatch.scrub import Scrubber


class OutputHandler(Protocol):
    """OutputHandler is the interface all output handlers implement."""

    def open(self, spec: OutputHandlerSpec, settings: GlobalSettings) -> None:
        """Prepare the handler for a run."""

    def display_channel(self,
                        channel: Channel,
                        items: list[FeedItem],
                        policy: FeedPolicy) -> None:
        """Process the new Items of one Channel."""

    def flush(self) -> None:
        """Finish the run, e.g. write or send what has been collected."""


class TextOutputHandler:
    """TextOutputHandler writes a plain text digest of the new Items.

    If the handler's configuration has a SaveAs variable, the text is written
    to that file, otherwise to stdout.
    """

    __slots__ = [
        "log",
        "scrubber",
        "spec",
        "settings",
        "lines",
        "stream",
    ]

    log: logging.Logger
    scrubber: Scrubber
    spec: Optional[OutputHandlerSpec]
    settings: GlobalSettings
    lines: list[str]
    stream: Optional[TextIO]

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.log = common.get_logger("output.text")
        self.scrubber = Scrubber()
        self.spec = None
        self.settings = GlobalSettings()
        self.lines = []
        self.stream = stream

    def open(self, spec: OutputHandlerSpec, settings: GlobalSettings) -> None:
        """Prepare the handler for a run."""
        self.spec = spec
        self.settings = settings
        self.lines = []

    def display_channel(self,
                        channel: Channel,
                        items: list[FeedItem],
                        policy: FeedPolicy) -> None:
        """Format the new Items of <channel>."""
        header: str = channel.title or channel.url
        if self.settings.show_rss_version and channel.rss_format:
            header += f" ({channel.rss_format})"
        self.lines.append(header)
        self.lines.append("-" * min(len(header), 78))
        if channel.link:
            self.lines.append(channel.link)
        self.lines.append("")

        for item in items:
            self.lines.append(item.title or "(no title)")
            if item.link:
                self.lines.append(item.link)
            if policy.show_authors and item.author:
                self.lines.append(f"Author: {item.author}")
            if self.settings.show_dates and item.published is not None:
                self.lines.append(f"Date: {item.published.strftime(common.TimeFmt)}")
            body: str = self.scrubber.body(item, policy)
            if body != "":
                self.lines.extend(textwrap.wrap(body, width=78) if not policy.allow_embedded_html
                                  else [body])
            self.lines.append("")

    def flush(self) -> None:
        """Write the collected text."""
        if len(self.lines) == 0:
            return

        text: Final[str] = "\n".join(self.lines) + "\n"
        target = self.spec.get("SaveAs") if self.spec is not None else None
        if target is not None:
            self.log.debug("Write %d lines to %s", len(self.lines), target)
            with open(os.path.expanduser(target), "w", encoding="utf-8") as fh:
                fh.write(text)
        else:
            out = self.stream if self.stream is not None else sys.stdout
            out.write(text)
            out.flush()
        self.lines = []


HandlerFactory = Callable[[], OutputHandler]


class Dispatcher:
    """Dispatcher passes the results of a run to the configured output handlers."""

    __slots__ = [
        "log",
        "config",
        "hooks",
        "handlers",
    ]

    log: logging.Logger
    config: Configuration
    hooks: HookBus
    handlers: list[tuple[OutputHandlerSpec, HandlerFactory]]

    def __init__(self,
                 config: Configuration,
                 hooks: HookBus,
                 registry: Registry[OutputHandler]) -> None:
        self.log = common.get_logger("dispatch")
        self.config = config
        self.hooks = hooks
        # Resolve everything up front, so an unknown handler is caught before
        # we fetch anything.
        self.handlers = [(spec, registry.lookup(spec.implementation))
                         for spec in config.output_handlers
                         if not spec.disabled]

    @property
    def download_only(self) -> bool:
        """Return True if there are no output handlers to dispatch to."""
        return len(self.handlers) == 0

    def dispatch(self, results: Sequence[ChannelResult]) -> int:
        """Hand the new Items in <results> to each output handler.

        Return the number of handlers that completed successfully.
        """
        if self.download_only:
            self.log.info("No output handlers are configured, not dispatching anything.")
            return 0

        fresh: list[ChannelResult] = [r for r in results if len(r.new_items) > 0]
        ok: int = 0

        for spec, factory in self.handlers:
            try:
                handler: OutputHandler = factory()
                handler.open(spec, self.config.settings)
                for res in fresh:
                    handler.display_channel(res.channel, res.new_items, res.policy)
                handler.flush()
                self.hooks.fire(Hook.PostDispatch,
                                section=spec.name,
                                settings=self.config.settings,
                                handler=spec)
            except Exception as err:  # pylint: disable-msg=W0718
                self.log.error("%s in output handler %s (%s): %s",
                               err.__class__.__name__,
                               spec.name,
                               spec.implementation,
                               err)
            else:
                ok += 1

        return ok


def default_outputs() -> Registry[OutputHandler]:
    """Return a Registry holding the output handlers we ship."""
    reg: Registry[OutputHandler] = Registry("output handler")
    reg.register("text", TextOutputHandler)
    return reg

# Local Variables: #
# python-indent: 4 #
# End: #
