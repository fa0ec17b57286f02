#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-17 19:40:22 krylon>
#
# /data/code/python/feedwatch/src/feedwatch/engine.py
# created on 05. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.engine

(c) 2026 Benjamin Walkenhorst

Engine implements the downloading and processing of RSS feeds.
"""


import logging
import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from queue import Empty, SimpleQueue
from threading import Lock, Thread
from typing import Final, Optional, Sequence
from urllib.parse import urlsplit, urlunsplit

from feedwatch import common
from feedwatch.cache import Cache
from feedwatch.edit import apply_edits, compile_edit
from feedwatch.fetch import Fetcher, HTTPFetcher, Payload, Request
from feedwatch.hooks import Hook, HookBus
from feedwatch.model import FeedPolicy, GlobalSettings
from feedwatch.parser import Channel, FeedItem, FeedParser, ParseError

xml_enc_pat: Final[re.Pattern] = \
    re.compile(r"""^\s*<\?xml[^>]*?encoding\s*=\s*["']([A-Za-z0-9._:-]+)["']""")
xml_decl_pat: Final[re.Pattern] = \
    re.compile(r"""^(\s*<\?xml[^>]*?encoding\s*=\s*["'])[^"']*(["'])""")


@dataclass(kw_only=True, slots=True)
class FeedResult:
    """FeedResult is a successfully fetched and parsed feed."""

    policy: FeedPolicy
    channel: Channel


@dataclass(kw_only=True, slots=True)
class FeedFailure:
    """FeedFailure records a feed we could not process."""

    policy: FeedPolicy
    error: Exception


@dataclass(kw_only=True, slots=True)
class ChannelResult:
    """ChannelResult is a Channel along with the Items that are new to us."""

    policy: FeedPolicy
    channel: Channel
    new_items: list[FeedItem] = field(default_factory=list)


def prune_url(url: str) -> str:
    """Strip the query parameters and fragment from a URL."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def sniff_encoding(content: bytes) -> Optional[str]:
    """Return the encoding named in the XML declaration, if any."""
    head: Final[str] = content[:256].decode("ascii", errors="ignore")
    m = xml_enc_pat.match(head)
    if m is None:
        return None
    return m.group(1)


class Engine:
    """Engine fetches and parses feeds using a bounded number of worker threads."""

    __slots__ = [
        "log",
        "settings",
        "hooks",
        "parser",
        "fetcher",
        "lock",
        "feedq",
        "failures",
    ]

    log: logging.Logger
    settings: GlobalSettings
    hooks: HookBus
    parser: FeedParser
    fetcher: Fetcher
    lock: Lock
    feedq: SimpleQueue
    failures: list[FeedFailure]

    def __init__(self,
                 settings: GlobalSettings,
                 hooks: HookBus,
                 parser: FeedParser,
                 fetcher: Optional[Fetcher] = None) -> None:
        self.log = common.get_logger("engine")
        self.settings = settings
        self.hooks = hooks
        self.parser = parser
        self.fetcher = fetcher if fetcher is not None else HTTPFetcher()
        self.lock = Lock()
        self.feedq = SimpleQueue()
        self.failures = []

    def run(self, feeds: Sequence[FeedPolicy]) -> list[FeedResult]:
        """Fetch and parse <feeds>.

        Return the results for all feeds that were processed successfully, in
        the order the feeds were passed in. Feeds that failed are recorded in
        the failures list.
        """
        results: list[Optional[FeedResult]] = [None] * len(feeds)
        self.failures = []

        for idx, feed in enumerate(feeds):
            self.feedq.put((idx, feed))

        worker_count: Final[int] = min(self.settings.max_threads, len(feeds))
        self.log.debug("Fetching %d feeds with %d workers", len(feeds), worker_count)

        workers: list[Thread] = []
        for i in range(worker_count):
            num: int = i+1
            w: Thread = Thread(name=f"Fetcher{num:02d}",
                               target=self._fetch_loop,
                               args=(num, results),
                               daemon=True)
            w.start()
            workers.append(w)

        for w in workers:
            w.join()

        done: list[FeedResult] = [r for r in results if r is not None]
        self.log.info("Fetched %d feeds, %d failed", len(done), len(self.failures))
        return done

    def _fetch_loop(self, num: int, results: list[Optional[FeedResult]]) -> None:
        """Process feeds from the queue until it is empty."""
        self.log.debug("Fetch worker %02d is starting up.", num)
        while True:
            try:
                idx, feed = self.feedq.get_nowait()
            except Empty:
                break

            self.log.debug("Fetch worker %02d is about to fetch Feed %s",
                           num,
                           feed.url)
            try:
                chan = self.process(feed)
            except Exception as err:  # pylint: disable-msg=W0718
                self.log.error("Fetch worker %02d: %s processing feed %s: %s",
                               num,
                               err.__class__.__name__,
                               feed.url,
                               err)
                with self.lock:
                    self.failures.append(FeedFailure(policy=feed, error=err))
            else:
                with self.lock:
                    results[idx] = FeedResult(policy=feed, channel=chan)
        self.log.debug("Fetch worker %02d is quitting.", num)

    def process(self, feed: FeedPolicy) -> Channel:
        """Fetch and parse a single feed, and apply its policy to the result."""
        self.hooks.fire(Hook.PreFetch,
                        section=feed.section,
                        settings=self.settings,
                        policy=feed)

        req: Request = Request(url=feed.url,
                               user_agent=feed.user_agent,
                               gzip=self.settings.get_gzipped_feeds,
                               timeout=self.settings.fetch_timeout)
        payload: Payload = self.fetcher.fetch(req)
        content: bytes = self._prepare(feed, payload)
        chan: Channel = self.parser.parse(feed.url, content)
        self._apply_policy(feed, chan)

        self.hooks.fire(Hook.PostParse,
                        section=feed.section,
                        settings=self.settings,
                        policy=feed,
                        channel=chan)
        return chan

    def _prepare(self, feed: FeedPolicy, payload: Payload) -> bytes:
        """Decode the payload and run it through the pre-parse edit commands.

        If neither an encoding is forced nor any edits are configured, the
        payload is handed to the parser untouched.
        """
        if feed.forced_encoding is None and len(feed.preparse_edits) == 0:
            return payload.content

        enc: str = feed.forced_encoding or payload.encoding or \
            sniff_encoding(payload.content) or "utf-8"
        try:
            text: str = payload.content.decode(enc, errors="replace")
        except LookupError as err:
            raise ParseError(f"Unknown encoding {enc} for feed {feed.url}") from err

        text = text.lstrip("\ufeff")
        text = apply_edits(text, feed.preparse_edits)
        text = xml_decl_pat.sub(r"\g<1>utf-8\g<2>", text, count=1)
        return text.encode("utf-8")

    def _apply_policy(self, feed: FeedPolicy, chan: Channel) -> None:
        items: list[FeedItem] = chan.items

        if feed.ignore_duplicate_titles:
            seen: set[str] = set()
            unique: list[FeedItem] = []
            for item in items:
                title = " ".join(item.title.lower().split())
                if title in seen:
                    self.log.debug("Skip item with duplicate title \"%s\" in %s",
                                   item.title,
                                   feed.url)
                    continue
                seen.add(title)
                unique.append(item)
            items = unique

        if feed.item_url_edit is not None:
            cmd = compile_edit(feed.item_url_edit)
            items = [replace(i, link=cmd.apply(i.link)) for i in items]

        if feed.prune_urls:
            items = [replace(i, link=prune_url(i.link)) for i in items]

        chan.set_items(items)

        if feed.title_override is not None:
            chan.title = feed.title_override

    def merge(self,
              results: Sequence[FeedResult],
              cache: Cache,
              now: Optional[datetime] = None) -> list[ChannelResult]:
        """Determine the new Items in each Channel and record all Items in the Cache.

        This must only be called after run() has returned.
        """
        if now is None:
            now = datetime.now()

        merged: list[ChannelResult] = []
        for res in results:
            fresh = cache.filter_new(res.policy.url, res.channel.items, now)
            merged.append(ChannelResult(policy=res.policy,
                                        channel=res.channel,
                                        new_items=fresh))
        return merged

# Local Variables: #
# python-indent: 4 #
# End: #
