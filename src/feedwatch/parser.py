#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-15 20:03:44 krylon>
#
# /data/code/python/feedwatch/src/feedwatch/parser.py
# created on 04. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.parser

(c) 2026 Benjamin Walkenhorst

Channel and FeedItem are what the rest of the application sees of a parsed
feed. The actual parsing is done by a FeedParser, which is picked by name from
a Registry.
"""


import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Final, Optional, Protocol

import fastfeedparser as ffp  # type: ignore # pylint: disable-msg=E0401

from feedwatch import common
from feedwatch.registry import Registry


class ParseError(common.FeedwatchError):
    """ParseError indicates a feed that could not be parsed."""


@dataclass(kw_only=True, slots=True, frozen=True)
class FeedItem:
    """FeedItem is a single entry in a feed."""

    title: str = ""
    link: str = ""
    summary: str = ""
    content: str = ""
    author: Optional[str] = None
    published: Optional[datetime] = None
    guid: Optional[str] = None
    categories: tuple[str, ...] = ()

    @property
    def unique_id(self) -> str:
        """Return a string that identifies the item across runs.

        That is the item's GUID/id if it has one, its link otherwise, and as a
        last resort a digest of its title and summary.
        """
        if self.guid:
            return self.guid
        if self.link:
            return self.link
        digest = hashlib.sha1(f"{self.title}\n{self.summary}".encode("utf-8"))
        return f"sha1:{digest.hexdigest()}"


@dataclass(kw_only=True, slots=True)
class Channel:
    """Channel holds the metadata and the current Items of a feed."""

    url: str
    title: str = ""
    description: str = ""
    link: str = ""
    published: Optional[datetime] = None
    copyright: Optional[str] = None
    rss_format: Optional[str] = None
    author: Optional[str] = None
    _items: list[FeedItem] = field(default_factory=list)

    @property
    def items(self) -> list[FeedItem]:
        """Return a copy of the Channel's Items."""
        return list(self._items)

    def set_items(self, items: list[FeedItem]) -> None:
        """Replace the Channel's Items."""
        self._items = list(items)


class FeedParser(Protocol):  # pylint: disable-msg=R0903
    """FeedParser turns the raw payload of a feed into a Channel."""

    def parse(self, url: str, payload: bytes) -> Channel:
        """Parse <payload>, downloaded from <url>."""


def _parse_stamp(raw: Any) -> Optional[datetime]:
    if not raw:
        return None
    if isinstance(raw, datetime):
        return raw
    try:
        return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return None


def _entry_content(entry: Any) -> str:
    """Try to get the full content from an Atom/RSS item."""
    content = entry.get("content")
    if content:
        try:
            return content[0]["value"]
        except (IndexError, KeyError, TypeError):
            return str(content)
    return ""


class FastFeedParser:
    """FastFeedParser parses feeds using the fastfeedparser package."""

    __slots__ = ["log"]

    log: logging.Logger

    def __init__(self) -> None:
        self.log = common.get_logger("parser")

    def parse(self, url: str, payload: bytes) -> Channel:
        """Parse <payload>, downloaded from <url>."""
        try:
            rss = ffp.parse(payload)
        except Exception as err:  # pylint: disable-msg=W0718
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} parsing feed {url}: {err}"
            self.log.error(msg)
            raise ParseError(msg) from err

        meta = rss.get("feed", {})
        chan: Channel = Channel(
            url=url,
            title=meta.get("title", "") or "",
            description=meta.get("description", "") or meta.get("subtitle", "") or "",
            link=meta.get("link", "") or "",
            published=_parse_stamp(meta.get("updated") or meta.get("published")),
            copyright=meta.get("rights") or meta.get("copyright"),
            rss_format=rss.get("version"),
            author=meta.get("author"),
        )

        items: list[FeedItem] = []
        for entry in rss.get("entries", []):
            content: str = _entry_content(entry)
            summary: str = entry.get("description") or entry.get("summary") or content
            tags = tuple(t.get("term", "") for t in entry.get("tags", []) or []
                         if isinstance(t, dict))
            item: FeedItem = FeedItem(
                title=entry.get("title", "") or "",
                link=entry.get("link", "") or "",
                summary=summary or "",
                content=content,
                author=entry.get("author"),
                published=_parse_stamp(entry.get("published") or entry.get("updated")),
                guid=entry.get("id"),
                categories=tags,
            )
            items.append(item)

        self.log.debug("Got %d items from %s", len(items), url)
        chan.set_items(items)
        return chan


def default_parsers() -> Registry[FeedParser]:
    """Return a Registry holding the parsers we ship."""
    reg: Registry[FeedParser] = Registry("parser")
    reg.register("fastfeedparser", FastFeedParser)
    return reg

# Local Variables: #
# python-indent: 4 #
# End: #
