#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 15:47:36 krylon>
#
# /data/code/python/feedwatch/tests/test_engine.py
# created on 10. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.test_engine

(c) 2026 Benjamin Walkenhorst
"""

import unittest
from datetime import datetime
from typing import Final

from fakes import FakeFetcher, FakeParser, make_feed

from feedwatch.cache import Cache
from feedwatch.config import load_config
from feedwatch.engine import Engine, prune_url, sniff_encoding
from feedwatch.hooks import Hook, HookAbort, HookBus, HookEvent
from feedwatch.model import Configuration

feed_count: Final[int] = 5


def simple_config(count: int, threads: int = 2) -> Configuration:
    """Create a Configuration with <count> feeds."""
    raw: dict[str, list[tuple[str, str]]] = {
        "feedwatch": [("MaxThreads", str(threads)), ("UserAgent", "TestAgent/1.0")],
    }
    for i in range(count):
        raw[f"Feed{i:02d}"] = [("URL", f"http://example.org/feed{i}")]
    return load_config(raw)


def simple_payloads(count: int) -> dict[str, bytes]:
    """Create payloads for the feeds from simple_config."""
    return {f"http://example.org/feed{i}": make_feed(f"Feed {i}",
                                                      (f"{i}-1", "One", f"http://example.org/{i}/1"),
                                                      (f"{i}-2", "Two", f"http://example.org/{i}/2"))
            for i in range(count)}


class TestEngine(unittest.TestCase):
    """Test fetching and parsing feeds."""

    def test_01_bounded(self) -> None:
        """No more than MaxThreads feeds are fetched at once, all results arrive in order."""
        cfg = simple_config(feed_count, 2)
        fetcher = FakeFetcher(simple_payloads(feed_count), delay=0.1)
        eng = Engine(cfg.settings, HookBus(), FakeParser(), fetcher)

        results = eng.run(cfg.enabled_feeds)

        self.assertLessEqual(fetcher.max_active, 2)
        self.assertEqual(len(results), feed_count)
        self.assertEqual([r.policy.url for r in results],
                         [f.url for f in cfg.feeds])
        self.assertEqual([r.channel.title for r in results],
                         [f"Feed {i}" for i in range(feed_count)])
        self.assertEqual(eng.failures, [])

        for req in fetcher.requests:
            self.assertEqual(req.user_agent, "TestAgent/1.0")
            self.assertTrue(req.gzip)

    def test_02_failure(self) -> None:
        """A failing feed is dropped, the others are not affected."""
        cfg = simple_config(4, 3)
        payloads = simple_payloads(4)
        del payloads["http://example.org/feed1"]
        payloads["http://example.org/feed2"] = b"BROKEN"
        eng = Engine(cfg.settings, HookBus(), FakeParser(), FakeFetcher(payloads))

        results = eng.run(cfg.enabled_feeds)
        self.assertEqual([r.policy.url for r in results],
                         ["http://example.org/feed0", "http://example.org/feed3"])
        self.assertEqual(sorted(f.policy.url for f in eng.failures),
                         ["http://example.org/feed1", "http://example.org/feed2"])

    def test_03_no_feeds(self) -> None:
        """Running without any feeds is not an error."""
        cfg = simple_config(0)
        eng = Engine(cfg.settings, HookBus(), FakeParser(), FakeFetcher({}))
        self.assertEqual(eng.run(cfg.enabled_feeds), [])

    def test_04_hooks(self) -> None:
        """PreFetch and PostParse fire for each feed; an abort drops only that feed."""
        cfg = simple_config(3)
        bus = HookBus()
        events: list[HookEvent] = []

        def veto(evt: HookEvent) -> None:
            if evt.policy.url.endswith("feed1"):
                raise HookAbort("not this one")

        bus.register(Hook.PreFetch, veto)
        bus.register(Hook.PostParse, events.append)

        eng = Engine(cfg.settings, bus, FakeParser(), FakeFetcher(simple_payloads(3)))
        results = eng.run(cfg.enabled_feeds)

        self.assertEqual(len(results), 2)
        self.assertEqual(len(eng.failures), 1)
        self.assertIsInstance(eng.failures[0].error, HookAbort)
        self.assertEqual(sorted(e.policy.url for e in events),
                         ["http://example.org/feed0", "http://example.org/feed2"])
        for e in events:
            self.assertIsNotNone(e.channel)

    def test_05_policy(self) -> None:
        """Per-feed policy is applied after parsing."""
        url: Final[str] = "http://example.org/policy"
        cfg = load_config({
            "feedwatch": [],
            "FeedPolicy": [("URL", url),
                           ("IgnoreDuplicateTitles", "true"),
                           ("PruneURLs", "true"),
                           ("EditItemURL", "s|//example\\.org/|//www.example.org/|"),
                           ("TitleOverride", "My Feed")],
        })
        payload = make_feed("Original Title",
                            ("1", "Hello World", "http://example.org/1?utm_source=rss#c"),
                            ("2", "hello   world", "http://example.org/2"),
                            ("3", "Something else", "http://example.org/3?a=b"))
        eng = Engine(cfg.settings, HookBus(), FakeParser(), FakeFetcher({url: payload}))
        results = eng.run(cfg.enabled_feeds)

        self.assertEqual(len(results), 1)
        chan = results[0].channel
        self.assertEqual(chan.title, "My Feed")
        self.assertEqual([i.guid for i in chan.items], ["1", "3"])
        self.assertEqual([i.link for i in chan.items],
                         ["http://www.example.org/1", "http://www.example.org/3"])

    def test_06_preparse_edits(self) -> None:
        """Pre-parse edits are applied to the raw payload, in order."""
        url: Final[str] = "http://example.org/edit"
        cfg = load_config({
            "feedwatch": [],
            "FeedEdit": [("URL", url),
                         ("PreparseEdit1", "s/BROKEN/Fixed/"),
                         ("PreparseEdit2", "s/Fixed/Really fixed/")],
        })
        payload = b"BROKEN title\n1|One|http://example.org/1"
        eng = Engine(cfg.settings, HookBus(), FakeParser(), FakeFetcher({url: payload}))
        results = eng.run(cfg.enabled_feeds)

        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].channel.title, "Really fixed title")

    def test_07_forced_encoding(self) -> None:
        """A forced encoding overrides what the server claims."""
        url: Final[str] = "http://example.org/latin1"
        cfg = load_config({
            "feedwatch": [],
            "FeedLatin": [("URL", url), ("ForceEncoding", "iso-8859-1")],
        })
        payload = "Grüße\n1|Schön|http://example.org/1".encode("iso-8859-1")
        fetcher = FakeFetcher({url: payload}, encoding="utf-8")
        eng = Engine(cfg.settings, HookBus(), FakeParser(), fetcher)
        results = eng.run(cfg.enabled_feeds)

        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].channel.title, "Grüße")
        self.assertEqual(results[0].channel.items[0].title, "Schön")

    def test_08_merge(self) -> None:
        """Merging twice yields no new Items the second time."""
        cfg = simple_config(3)
        cache = Cache()
        eng = Engine(cfg.settings, HookBus(), FakeParser(), FakeFetcher(simple_payloads(3)))
        now = datetime(2026, 10, 19, 8, 0, 0)

        merged = eng.merge(eng.run(cfg.enabled_feeds), cache, now)
        self.assertEqual([len(m.new_items) for m in merged], [2, 2, 2])
        self.assertEqual(len(cache), 6)

        merged = eng.merge(eng.run(cfg.enabled_feeds), cache, now)
        self.assertEqual([len(m.new_items) for m in merged], [0, 0, 0])

    def test_09_helpers(self) -> None:
        """Test the small helper functions."""
        self.assertEqual(prune_url("https://example.org/a/b?x=1&y=2#frag"),
                         "https://example.org/a/b")
        self.assertEqual(sniff_encoding(b'<?xml version="1.0" encoding="ISO-8859-1"?><rss/>'),
                         "ISO-8859-1")
        self.assertIsNone(sniff_encoding(b"<rss/>"))

# Local Variables: #
# python-indent: 4 #
# End: #
