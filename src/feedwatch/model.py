#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-14 19:02:51 krylon>
#
# /data/code/python/feedwatch/src/feedwatch/model.py
# created on 02. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.model

(c) 2026 Benjamin Walkenhorst

The policy model derived from the configuration. All of these are frozen after
the configuration has been loaded.
"""


from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Final, Mapping, Optional

from feedwatch import common

DefaultDaysToCache: Final[int] = 365
DefaultMaxThreads: Final[int] = 5
DefaultFetchTimeout: Final[int] = 30
DefaultTotalCacheBackups: Final[int] = 0
DefaultSMTPHost: Final[str] = "localhost"
DefaultEmailSubject: Final[str] = f"{common.AppName} output"
DefaultParser: Final[str] = "fastfeedparser"
DefaultUserAgent: Final[str] = \
    f"{common.AppName}/{common.AppVersion} (+{common.AppHomepage})"


@dataclass(kw_only=True, slots=True, frozen=True)
class GlobalSettings:
    """GlobalSettings holds the values from the main section of the configuration.

    days_to_cache and max_summary_size are None if they are unbounded.
    """

    cache_file: Optional[Path] = None
    total_cache_backups: int = DefaultTotalCacheBackups
    update_cache: bool = True
    summary_only: bool = False
    max_summary_size: Optional[int] = None
    days_to_cache: Optional[int] = DefaultDaysToCache
    parser: str = DefaultParser
    show_rss_version: bool = False
    smtp_host: str = DefaultSMTPHost
    email_sender: Optional[str] = None
    email_subject: str = DefaultEmailSubject
    show_dates: bool = False
    show_authors: bool = False
    allow_embedded_html: bool = False
    get_gzipped_feeds: bool = True
    max_threads: int = DefaultMaxThreads
    fetch_timeout: int = DefaultFetchTimeout
    user_agent: str = DefaultUserAgent
    extra: tuple[tuple[str, str], ...] = ()

    def get_extra(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the last value given for an unrecognized variable."""
        val = default
        for k, v in self.extra:
            if k == name:
                val = v
        return val


@dataclass(kw_only=True, slots=True, frozen=True)
class FeedPolicy:
    """FeedPolicy describes one configured feed and how to treat it."""

    url: str
    section: str = ""
    enabled: bool = True
    days_to_cache: Optional[int] = DefaultDaysToCache
    prune_urls: bool = False
    summary_only: bool = False
    max_summary_size: Optional[int] = None
    show_authors: bool = False
    allow_embedded_html: bool = False
    ignore_duplicate_titles: bool = False
    title_override: Optional[str] = None
    item_url_edit: Optional[str] = None
    forced_encoding: Optional[str] = None
    preparse_edits: tuple[str, ...] = ()
    user_agent: str = DefaultUserAgent

    @classmethod
    def from_settings(cls, url: str, settings: GlobalSettings, section: str = "") -> 'FeedPolicy':
        """Create a FeedPolicy that inherits its defaults from the global settings."""
        return cls(
            url=url,
            section=section,
            days_to_cache=settings.days_to_cache,
            summary_only=settings.summary_only,
            max_summary_size=settings.max_summary_size,
            show_authors=settings.show_authors,
            allow_embedded_html=settings.allow_embedded_html,
            user_agent=settings.user_agent,
        )


@dataclass(kw_only=True, slots=True, frozen=True)
class OutputHandlerSpec:
    """OutputHandlerSpec describes a configured output handler."""

    name: str
    implementation: str
    extras: tuple[tuple[str, str], ...] = ()
    disabled: bool = False

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the value of an extra variable."""
        for k, v in self.extras:
            if k == name:
                return v
        return default


@dataclass(kw_only=True, slots=True, frozen=True)
class Configuration:
    """Configuration is the complete, validated policy model."""

    settings: GlobalSettings
    feeds: tuple[FeedPolicy, ...] = ()
    feed_map: Mapping[str, FeedPolicy] = field(default_factory=dict, compare=False)
    output_handlers: tuple[OutputHandlerSpec, ...] = ()

    def __post_init__(self) -> None:
        # feed_map is derived from feeds, so it is left out of comparisons.
        object.__setattr__(self, "feed_map", MappingProxyType(dict(self.feed_map)))

    @property
    def download_only(self) -> bool:
        """Return True if no output handlers are configured."""
        return len(self.output_handlers) == 0

    @property
    def enabled_feeds(self) -> list[FeedPolicy]:
        """Return the enabled feeds in the order they were declared."""
        return [f for f in self.feeds if f.enabled]

    def feed_for(self, url: str) -> Optional[FeedPolicy]:
        """Look up the policy for a feed by its canonical URL."""
        return self.feed_map.get(url)

    def retention_for(self, url: str) -> Optional[int]:
        """Return the number of days to keep cache entries for a feed.

        Feeds that are no longer configured use the global default.
        None means entries are kept forever.
        """
        feed = self.feed_map.get(url)
        if feed is None:
            return self.settings.days_to_cache
        return feed.days_to_cache

# Local Variables: #
# python-indent: 4 #
# End: #
