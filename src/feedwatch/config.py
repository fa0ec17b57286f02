#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-16 18:55:30 krylon>
#
# /data/code/python/feedwatch/src/feedwatch/config.py
# created on 03. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.config

(c) 2026 Benjamin Walkenhorst

The Loader turns the raw configuration - a mapping of section names to ordered
lists of (name, value) pairs - into the policy model. The main section is
mandatory, sections whose names begin with "Feed" describe feeds, sections
whose names begin with "OutputHandler" describe output handlers, everything
else is only passed on to the HookBus.
"""


import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Final, Mapping, Optional, Sequence
from urllib.parse import urlsplit, urlunsplit

from feedwatch import common
from feedwatch.edit import EditError, compile_edit
from feedwatch.hooks import Hook, HookBus
from feedwatch.model import (Configuration, FeedPolicy, GlobalSettings,
                             OutputHandlerSpec)

MainSection: Final[str] = common.AppName
FeedPrefix: Final[str] = "Feed"
HandlerPrefix: Final[str] = "OutputHandler"
NoLimit: Final[str] = "NoLimit"

VarURL: Final[str] = "URL"
VarClass: Final[str] = "Class"
VarDisabled: Final[str] = "Disabled"
VarPreparseEdit: Final[str] = "PreparseEdit"

true_words: Final[frozenset[str]] = frozenset(("true", "yes", "on", "1"))
false_words: Final[frozenset[str]] = frozenset(("false", "no", "off", "0"))
default_ports: Final[dict[str, int]] = {"http": 80, "https": 443}

RawConfig = Mapping[str, Sequence[tuple[str, str]]]


class ConfigError(common.FeedwatchError):
    """Base class for errors in the configuration."""


class MissingSection(ConfigError):
    """A required section is missing."""

    def __init__(self, section: str) -> None:
        super().__init__(f"The configuration is missing the required \"{section}\" section.")
        self.section = section


class MissingVariable(ConfigError):
    """A required variable is missing from a section."""

    def __init__(self, section: str, variable: str) -> None:
        super().__init__(f"The configuration is missing required variable \"{variable}\" "
                         f"in section \"{section}\".")
        self.section = section
        self.variable = variable


class BadValue(ConfigError):
    """Base class for variables with a value we cannot use."""

    def __init__(self, section: str, variable: str, value: str, msg: str) -> None:
        super().__init__(msg)
        self.section = section
        self.variable = variable
        self.value = value


class BadNumericValue(BadValue):
    """A variable that should be a number is not, or is out of range."""

    def __init__(self, section: str, variable: str, value: str, why: str = "") -> None:
        msg = f"Bad numeric value \"{value}\" for variable \"{variable}\" in section \"{section}\""
        if why != "":
            msg += f": {why}"
        super().__init__(section, variable, value, msg)


class NegativeCardinal(BadValue):
    """A variable that must not be negative is."""

    def __init__(self, section: str, variable: str, value: str) -> None:
        super().__init__(section, variable, value,
                         f"Unexpected negative numeric value {value} for variable "
                         f"\"{variable}\" in section \"{section}\"")


class BadBooleanValue(BadValue):
    """A variable that should be a boolean is not."""

    def __init__(self, section: str, variable: str, value: str) -> None:
        super().__init__(section, variable, value,
                         f"Bad boolean value \"{value}\" for variable \"{variable}\" "
                         f"in section \"{section}\"")


class BadEditCommand(BadValue):
    """An edit command could not be compiled."""

    def __init__(self, section: str, variable: str, value: str, why: str) -> None:
        super().__init__(section, variable, value,
                         f"Bad edit command \"{value}\" for variable \"{variable}\" "
                         f"in section \"{section}\": {why}")


class BadFeedURL(ConfigError):
    """A feed section specifies a URL we cannot make sense of."""

    def __init__(self, section: str, url: str) -> None:
        super().__init__(f"Configuration section \"{section}\" specifies a bad feed URL \"{url}\"")
        self.section = section
        self.url = url


class CacheFileIsDirectory(ConfigError):
    """The configured cache file is a directory."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Configured cache file \"{path}\" is a directory.")
        self.path = path


def parse_bool(section: str, variable: str, value: str) -> bool:
    """Parse a boolean value."""
    v = value.strip().lower()
    if v in true_words:
        return True
    if v in false_words:
        return False
    raise BadBooleanValue(section, variable, value)


def parse_cardinal(section: str, variable: str, value: str) -> int:
    """Parse a non-negative integer."""
    try:
        num = int(value.strip())
    except ValueError as err:
        raise BadNumericValue(section, variable, value) from err

    if num < 0:
        raise NegativeCardinal(section, variable, value)
    return num


def parse_days(section: str, variable: str, value: str) -> Optional[int]:
    """Parse a number of days. The value NoLimit yields None."""
    if value.strip().lower() == NoLimit.lower():
        return None
    return parse_cardinal(section, variable, value)


def parse_limit(section: str, variable: str, value: str) -> Optional[int]:
    """Parse a size limit. NoLimit yields None, just like for the day counts."""
    return parse_days(section, variable, value)


def normalize_url(url: str) -> str:
    """Bring a feed URL into a canonical form.

    Raise ValueError if the URL is not usable.
    """
    parts = urlsplit(url.strip())
    scheme: Final[str] = parts.scheme.lower()

    match scheme:
        case "http" | "https":
            host = parts.hostname
            if not host:
                raise ValueError(f"URL {url} has no host")
            if ":" in host:
                host = f"[{host}]"
            port = parts.port
            netloc = host
            if parts.username is not None:
                cred = parts.username
                if parts.password is not None:
                    cred += f":{parts.password}"
                netloc = f"{cred}@{netloc}"
            if port is not None and port != default_ports[scheme]:
                netloc += f":{port}"
            path = parts.path or "/"
        case "file":
            netloc = parts.netloc
            path = parts.path
            if path == "":
                raise ValueError(f"URL {url} has no path")
        case _:
            raise ValueError(f"Unsupported URL scheme in {url}")

    return urlunsplit((scheme, netloc, path, parts.query, ""))


def _last(pairs: Sequence[tuple[str, str]], name: str) -> Optional[str]:
    val: Optional[str] = None
    for k, v in pairs:
        if k == name:
            val = v
    return val


class Loader:
    """Loader builds a Configuration from the raw sections."""

    __slots__ = [
        "log",
        "hooks",
    ]

    log: logging.Logger
    hooks: HookBus

    def __init__(self, hooks: Optional[HookBus] = None) -> None:
        self.log = common.get_logger("config")
        self.hooks = hooks if hooks is not None else HookBus()

    def load(self, raw: RawConfig) -> Configuration:
        """Process the raw configuration.

        Any error aborts the whole process, so either a complete Configuration
        is returned or an exception is raised.
        """
        if MainSection not in raw:
            raise MissingSection(MainSection)

        settings: GlobalSettings = self._main_section(raw[MainSection])
        feeds: list[FeedPolicy] = []
        feed_map: dict[str, FeedPolicy] = {}
        handlers: list[OutputHandlerSpec] = []

        for name, pairs in raw.items():
            if name == MainSection:
                continue
            if name.startswith(FeedPrefix):
                feed = self._feed_section(name, pairs, settings)
                if feed.url in feed_map:
                    self.log.warning("Feed %s is configured more than once (section %s)",
                                     feed.url,
                                     name)
                feeds.append(feed)
                feed_map[feed.url] = feed
            elif name.startswith(HandlerPrefix):
                handler = self._handler_section(name, pairs, settings)
                if handler is not None:
                    handlers.append(handler)
            else:
                self._unknown_section(name, pairs, settings)

        self.log.debug("Loaded configuration with %d feeds and %d output handlers",
                       len(feeds),
                       len(handlers))

        return Configuration(settings=settings,
                             feeds=tuple(feeds),
                             feed_map=feed_map,
                             output_handlers=tuple(handlers))

    def _main_section(self, pairs: Sequence[tuple[str, str]]) -> GlobalSettings:
        settings: GlobalSettings = GlobalSettings()
        for name, value in pairs:
            settings = self._main_variable(settings, name, value)
            self.hooks.fire(Hook.MainSectionItem,
                            section=MainSection,
                            variable=name,
                            settings=settings)
        return settings

    def _main_variable(self, s: GlobalSettings, name: str, value: str) -> GlobalSettings:
        """Return a copy of <s> with the given variable applied."""
        sec: Final[str] = MainSection
        match name:
            case "CacheFile":
                cache_file = Path(os.path.expanduser(value.strip()))
                if cache_file.is_dir():
                    raise CacheFileIsDirectory(cache_file)
                return replace(s, cache_file=cache_file)
            case "DaysToCache":
                return replace(s, days_to_cache=parse_days(sec, name, value))
            case "TotalCacheBackups":
                return replace(s, total_cache_backups=parse_cardinal(sec, name, value))
            case "NoCacheUpdate":
                return replace(s, update_cache=not parse_bool(sec, name, value))
            case "SummaryOnly":
                return replace(s, summary_only=parse_bool(sec, name, value))
            case "MaxSummarySize":
                return replace(s, max_summary_size=parse_limit(sec, name, value))
            case "ShowRSSVersion":
                return replace(s, show_rss_version=parse_bool(sec, name, value))
            case "ShowDates":
                return replace(s, show_dates=parse_bool(sec, name, value))
            case "ShowAuthors":
                return replace(s, show_authors=parse_bool(sec, name, value))
            case "AllowEmbeddedHTML":
                return replace(s, allow_embedded_html=parse_bool(sec, name, value))
            case "GetGzippedFeeds":
                return replace(s, get_gzipped_feeds=parse_bool(sec, name, value))
            case "ParserClass":
                return replace(s, parser=value.strip())
            case "SMTPHost":
                return replace(s, smtp_host=value.strip())
            case "MailFrom":
                return replace(s, email_sender=value.strip())
            case "MailSubject":
                return replace(s, email_subject=value)
            case "MaxThreads":
                cnt = parse_cardinal(sec, name, value)
                if cnt == 0:
                    raise BadNumericValue(sec, name, value, "must be a positive integer")
                return replace(s, max_threads=cnt)
            case "FetchTimeout":
                timeout = parse_cardinal(sec, name, value)
                if timeout == 0:
                    raise BadNumericValue(sec, name, value, "must be a positive integer")
                return replace(s, fetch_timeout=timeout)
            case "UserAgent":
                return replace(s, user_agent=value.strip())
            case _:
                return replace(s, extra=s.extra + ((name, value), ))

    def _feed_section(self,
                      section: str,
                      pairs: Sequence[tuple[str, str]],
                      settings: GlobalSettings) -> FeedPolicy:
        raw_url = _last(pairs, VarURL)
        if raw_url is None:
            raise MissingVariable(section, VarURL)

        try:
            url = normalize_url(raw_url)
        except ValueError as err:
            raise BadFeedURL(section, raw_url) from err

        self.log.debug("Configured feed: URL=\"%s\"", url)

        policy: FeedPolicy = FeedPolicy.from_settings(url, settings, section)
        self.hooks.fire(Hook.FeedConfigItem,
                        section=section,
                        variable=VarURL,
                        settings=settings,
                        policy=policy)

        for name, value in pairs:
            if name == VarURL:
                continue
            policy = self._feed_variable(section, policy, name, value)
            self.hooks.fire(Hook.FeedConfigItem,
                            section=section,
                            variable=name,
                            settings=settings,
                            policy=policy)

        return policy

    @staticmethod
    def _check_edit(section: str, name: str, value: str) -> str:
        try:
            compile_edit(value)
        except EditError as err:
            raise BadEditCommand(section, name, value, str(err)) from err
        return value

    def _feed_variable(self, sec: str, p: FeedPolicy, name: str, value: str) -> FeedPolicy:
        """Return a copy of <p> with the given variable applied."""
        if name.startswith(VarPreparseEdit):
            cmd = self._check_edit(sec, name, value)
            return replace(p, preparse_edits=p.preparse_edits + (cmd, ))

        match name:
            case "DaysToCache":
                return replace(p, days_to_cache=parse_days(sec, name, value))
            case "PruneURLs":
                return replace(p, prune_urls=parse_bool(sec, name, value))
            case "SummaryOnly":
                return replace(p, summary_only=parse_bool(sec, name, value))
            case "MaxSummarySize":
                return replace(p, max_summary_size=parse_limit(sec, name, value))
            case "Disabled":
                return replace(p, enabled=not parse_bool(sec, name, value))
            case "IgnoreDuplicateTitles":
                return replace(p, ignore_duplicate_titles=parse_bool(sec, name, value))
            case "TitleOverride":
                return replace(p, title_override=value)
            case "EditItemURL":
                return replace(p, item_url_edit=self._check_edit(sec, name, value))
            case "ForceEncoding" | "ForceCharacterEncoding":
                return replace(p, forced_encoding=value.strip())
            case "UserAgent":
                return replace(p, user_agent=value.strip())
            case "ShowAuthors":
                return replace(p, show_authors=parse_bool(sec, name, value))
            case "AllowEmbeddedHTML":
                return replace(p, allow_embedded_html=parse_bool(sec, name, value))
            case _:
                return p

    def _handler_section(self,
                         section: str,
                         pairs: Sequence[tuple[str, str]],
                         settings: GlobalSettings) -> Optional[OutputHandlerSpec]:
        impl = _last(pairs, VarClass)
        if impl is None:
            raise MissingVariable(section, VarClass)

        handler: OutputHandlerSpec = OutputHandlerSpec(name=section,
                                                       implementation=impl.strip())
        self.hooks.fire(Hook.OutputHandlerConfigItem,
                        section=section,
                        variable=VarClass,
                        settings=settings,
                        handler=handler)

        disabled_val = _last(pairs, VarDisabled)
        if disabled_val is not None:
            disabled = parse_bool(section, VarDisabled, disabled_val)
            self.hooks.fire(Hook.OutputHandlerConfigItem,
                            section=section,
                            variable=VarDisabled,
                            settings=settings,
                            handler=handler)
            if disabled:
                self.log.debug("Output handler %s is disabled", section)
                return None

        for name, value in pairs:
            if name in (VarClass, VarDisabled):
                continue
            handler = replace(handler, extras=handler.extras + ((name, value), ))
            self.hooks.fire(Hook.OutputHandlerConfigItem,
                            section=section,
                            variable=name,
                            settings=settings,
                            handler=handler)

        self.log.debug("Saving output handler \"%s\" of type %s",
                       handler.name,
                       handler.implementation)
        return handler

    def _unknown_section(self,
                         section: str,
                         pairs: Sequence[tuple[str, str]],
                         settings: GlobalSettings) -> None:
        for name, _ in pairs:
            self.hooks.fire(Hook.UnknownSectionConfigItem,
                            section=section,
                            variable=name,
                            settings=settings)


def load_config(raw: RawConfig, hooks: Optional[HookBus] = None) -> Configuration:
    """Build a Configuration from <raw>."""
    return Loader(hooks).load(raw)

# Local Variables: #
# python-indent: 4 #
# End: #
