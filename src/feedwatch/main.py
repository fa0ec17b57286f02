#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 17:12:40 krylon>
#
# /data/code/python/feedwatch/src/feedwatch/main.py
# created on 08. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.main

(c) 2026 Benjamin Walkenhorst
"""


import argparse
import logging
import pathlib
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from feedwatch import common
from feedwatch.cache import Cache, CacheError, CacheUnreadable
from feedwatch.config import load_config
from feedwatch.configfile import read_config
from feedwatch.engine import ChannelResult, Engine, FeedResult
from feedwatch.fetch import Fetcher
from feedwatch.hooks import Hook, HookBus
from feedwatch.model import Configuration
from feedwatch.output import Dispatcher, OutputHandler, default_outputs
from feedwatch.parser import FeedParser, default_parsers
from feedwatch.registry import Registry


@dataclass(kw_only=True, slots=True)
class RunReport:
    """RunReport sums up what happened during a run."""

    fetched: int = 0
    failed: int = 0
    new_items: int = 0
    handlers_ok: int = 0
    cache_saved: bool = False
    results: tuple[ChannelResult, ...] = ()


def _load_cache(log: logging.Logger, config: Configuration) -> Cache:
    path = config.settings.cache_file
    if path is None:
        log.info("No cache file is configured, every item will be considered new.")
        return Cache()
    try:
        return Cache.load(path)
    except CacheUnreadable as err:
        log.error("Cannot use cache %s, starting with an empty one: %s", path, err)
        return Cache()


def _save_cache(log: logging.Logger,
                config: Configuration,
                hooks: HookBus,
                cache: Cache) -> bool:
    settings = config.settings
    if settings.cache_file is None:
        return False
    if not settings.update_cache:
        log.info("Not updating the cache, as requested.")
        return False

    try:
        hooks.fire(Hook.PreCacheSave, settings=settings, cache=cache)
    except Exception as err:  # pylint: disable-msg=W0718
        log.error("Not saving the cache, observer of %s failed: %s",
                  Hook.PreCacheSave.name,
                  err)
        return False

    try:
        cache.save(settings.cache_file, settings.total_cache_backups)
    except CacheError as err:
        # Output has already been dispatched at this point.
        log.error("Failed to save cache: %s", err)
        return False
    return True


def run(config: Configuration,
        hooks: Optional[HookBus] = None,
        parsers: Optional[Registry[FeedParser]] = None,
        outputs: Optional[Registry[OutputHandler]] = None,
        fetcher: Optional[Fetcher] = None,
        now: Optional[datetime] = None) -> RunReport:
    """Perform one complete run: fetch all feeds, pass on the new Items, update the cache."""
    log: logging.Logger = common.get_logger("main")
    if hooks is None:
        hooks = HookBus()
    if parsers is None:
        parsers = default_parsers()
    if outputs is None:
        outputs = default_outputs()

    parser: FeedParser = parsers.create(config.settings.parser)
    dispatcher: Dispatcher = Dispatcher(config, hooks, outputs)
    if dispatcher.download_only:
        log.info("No output handlers configured, this is a download-only run.")

    cache: Cache = _load_cache(log, config)
    engine: Engine = Engine(config.settings, hooks, parser, fetcher)
    feeds = config.enabled_feeds
    results: list[FeedResult] = engine.run(feeds)

    if now is None:
        now = datetime.now()

    merged: list[ChannelResult] = engine.merge(results, cache, now)
    report: RunReport = RunReport(fetched=len(results),
                                  failed=len(engine.failures),
                                  new_items=sum(len(r.new_items) for r in merged),
                                  results=tuple(merged))
    log.info("%d new items in %d feeds", report.new_items, report.fetched)

    report.handlers_ok = dispatcher.dispatch(merged)
    cache.prune(config, now)
    report.cache_saved = _save_cache(log, config, hooks, cache)
    return report


def main() -> None:
    """Run feedwatch once."""
    argp: argparse.ArgumentParser = argparse.ArgumentParser(prog=common.AppName)
    argp.add_argument("config",
                      type=pathlib.Path,
                      help="The configuration file")
    argp.add_argument("-b", "--basedir",
                      type=pathlib.Path,
                      default=common.path.base(),
                      help="The directory to store application-specific files in")
    argp.add_argument("-d", "--debug",
                      action="store_true",
                      help="Log debug messages")

    args = argp.parse_args()

    common.Debug = args.debug
    common.set_basedir(args.basedir)
    log: logging.Logger = common.get_logger("main")

    try:
        config: Configuration = load_config(read_config(args.config))
        report: RunReport = run(config)
    except common.FeedwatchError as err:
        log.error("%s: %s", err.__class__.__name__, err)
        sys.exit(1)

    log.info("Done: %d feeds fetched, %d failed, %d new items.",
             report.fetched,
             report.failed,
             report.new_items)


if __name__ == '__main__':
    main()


# Local Variables: #
# python-indent: 4 #
# End: #
