#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 16:31:09 krylon>
#
# /data/code/python/feedwatch/tests/test_output.py
# created on 11. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.test_output

(c) 2026 Benjamin Walkenhorst
"""

import io
import os
import shutil
import unittest
from datetime import datetime
from typing import Final

from feedwatch import common
from feedwatch.config import load_config
from feedwatch.engine import ChannelResult
from feedwatch.hooks import Hook, HookBus, HookEvent
from feedwatch.model import FeedPolicy, GlobalSettings, OutputHandlerSpec
from feedwatch.output import (Dispatcher, OutputHandler, TextOutputHandler,
                              default_outputs)
from feedwatch.parser import Channel, FeedItem
from feedwatch.registry import Registry, UnknownImplementation

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_output_%Y%m%d_%H%M%S"))


class Recorder:
    """Recorder remembers what it was given."""

    calls: list[tuple[str, str]] = []

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.name = ""

    def open(self, spec: OutputHandlerSpec, settings: GlobalSettings) -> None:
        """Remember the handler's name."""
        self.name = spec.name

    def display_channel(self,
                        channel: Channel,
                        items: list[FeedItem],
                        policy: FeedPolicy) -> None:
        """Record the Channel."""
        if self.fail:
            raise RuntimeError("Handler is broken")
        Recorder.calls.append((self.name, f"{channel.title}:{len(items)}"))

    def flush(self) -> None:
        """Record the flush."""
        Recorder.calls.append((self.name, "flush"))


def make_results() -> list[ChannelResult]:
    """Create some results to dispatch."""
    results: list[ChannelResult] = []
    for name, count in (("Alpha", 2), ("Empty", 0), ("Beta", 1)):
        policy = FeedPolicy(url=f"http://example.org/{name}")
        chan = Channel(url=policy.url, title=name)
        items = [FeedItem(guid=f"{name}{i}", title=f"{name} item {i}",
                          link=f"http://example.org/{name}/{i}",
                          summary="<p>Some <b>bold</b> text</p>")
                 for i in range(count)]
        chan.set_items(items)
        results.append(ChannelResult(policy=policy, channel=chan, new_items=items))
    return results


class TestDispatcher(unittest.TestCase):
    """Test the Dispatcher."""

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        shutil.rmtree(test_dir, ignore_errors=True)

    def setUp(self) -> None:
        Recorder.calls = []

    def registry(self) -> Registry[OutputHandler]:
        """Return a Registry with the test handlers."""
        reg = default_outputs()
        reg.register("recorder", Recorder)
        reg.register("broken", lambda: Recorder(fail=True))
        return reg

    def test_01_order(self) -> None:
        """Handlers run in declaration order, a failing one does not stop the rest."""
        cfg = load_config({
            "feedwatch": [],
            "OutputHandler1": [("Class", "recorder")],
            "OutputHandler2": [("Class", "broken")],
            "OutputHandler3": [("Class", "recorder"), ("Disabled", "yes")],
            "OutputHandler4": [("Class", "recorder")],
        })
        bus = HookBus()
        events: list[HookEvent] = []
        bus.register(Hook.PostDispatch, events.append)

        disp = Dispatcher(cfg, bus, self.registry())
        ok = disp.dispatch(make_results())

        self.assertEqual(ok, 2)
        self.assertEqual(Recorder.calls, [
            ("OutputHandler1", "Alpha:2"),
            ("OutputHandler1", "Beta:1"),
            ("OutputHandler1", "flush"),
            ("OutputHandler4", "Alpha:2"),
            ("OutputHandler4", "Beta:1"),
            ("OutputHandler4", "flush"),
        ])
        self.assertEqual([e.handler.name for e in events],
                         ["OutputHandler1", "OutputHandler4"])

    def test_02_unknown(self) -> None:
        """An unknown implementation is reported before anything is dispatched."""
        cfg = load_config({
            "feedwatch": [],
            "OutputHandlerX": [("Class", "carrier-pigeon")],
        })
        with self.assertRaises(UnknownImplementation) as ctx:
            Dispatcher(cfg, HookBus(), self.registry())
        self.assertEqual(ctx.exception.name, "carrier-pigeon")

    def test_03_download_only(self) -> None:
        """Without handlers nothing is dispatched."""
        cfg = load_config({"feedwatch": []})
        disp = Dispatcher(cfg, HookBus(), self.registry())
        self.assertTrue(disp.download_only)
        self.assertEqual(disp.dispatch(make_results()), 0)
        self.assertEqual(Recorder.calls, [])

    def test_04_text(self) -> None:
        """The text handler writes a plain digest."""
        out = io.StringIO()
        handler = TextOutputHandler(out)
        settings = GlobalSettings(show_rss_version=True)
        handler.open(OutputHandlerSpec(name="OutputHandlerText", implementation="text"),
                     settings)
        for res in make_results():
            handler.display_channel(res.channel, res.new_items, res.policy)
        handler.flush()

        text = out.getvalue()
        self.assertIn("Alpha\n-----", text)
        self.assertIn("Alpha item 1\nhttp://example.org/Alpha/1\nSome bold text\n", text)
        self.assertNotIn("<b>", text)

    def test_05_text_file(self) -> None:
        """The text handler writes to the file named by SaveAs."""
        target = os.path.join(test_dir, "digest.txt")
        cfg = load_config({
            "feedwatch": [],
            "OutputHandlerText": [("Class", "text"), ("SaveAs", target)],
        })
        disp = Dispatcher(cfg, HookBus(), default_outputs())
        self.assertEqual(disp.dispatch(make_results()), 1)

        with open(target, "r", encoding="utf-8") as fh:
            text = fh.read()
        self.assertIn("Beta item 0", text)
        self.assertNotIn("Empty", text)

# Local Variables: #
# python-indent: 4 #
# End: #
