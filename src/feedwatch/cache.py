#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-16 21:14:06 krylon>
#
# /data/code/python/feedwatch/src/feedwatch/cache.py
# created on 05. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.cache

(c) 2026 Benjamin Walkenhorst

The Cache remembers which Items we have seen, so we only pass on new ones.
It is loaded at the start of a run, updated once all feeds have been fetched,
pruned, and saved at the end of the run.
"""


import logging
import os
import pickle
import shutil
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Final, Iterable, Optional, Union

from feedwatch import common
from feedwatch.model import Configuration
from feedwatch.parser import FeedItem


class CacheError(common.FeedwatchError):
    """Exception class to indicate errors in the caching layer"""


class CacheUnreadable(CacheError):
    """CacheUnreadable indicates a cache file that exists but cannot be loaded."""


@dataclass(kw_only=True, slots=True)
class CacheEntry:
    """CacheEntry records when we last saw an Item."""

    key: str
    channel_url: str
    item_url: str
    timestamp: datetime

    def age(self, now: datetime) -> timedelta:
        """Return how long ago the Item was last seen."""
        return now - self.timestamp


def cache_key(channel_url: str, item: FeedItem) -> str:
    """Return the key an Item is stored under."""
    return f"{channel_url} {item.unique_id}"


def backup_path(path: Path, num: int) -> Path:
    """Return the path of the <num>th backup of the cache file at <path>."""
    return path.with_name(f"{path.name}.{num}")


class Cache:
    """Cache maps Item keys to CacheEntries."""

    __slots__ = [
        "log",
        "entries",
    ]

    log: logging.Logger
    entries: dict[str, CacheEntry]

    def __init__(self, entries: Optional[Iterable[CacheEntry]] = None) -> None:
        self.log = common.get_logger("cache")
        self.entries = {}
        if entries is not None:
            for e in entries:
                self.entries[e.key] = e

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: str) -> bool:
        return key in self.entries

    def __getitem__(self, key: str) -> CacheEntry:
        return self.entries[key]

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'Cache':
        """Load the Cache from <path>.

        A missing file yields an empty Cache, a file we cannot read raises
        CacheUnreadable.
        """
        cpath: Final[Path] = Path(path)
        cache = cls()
        if not cpath.exists():
            cache.log.info("Cache file %s does not exist, starting with an empty cache.",
                           cpath)
            return cache

        try:
            with open(cpath, "rb") as fh:
                records = pickle.load(fh)
            for key, channel_url, item_url, stamp in records:
                cache.entries[str(key)] = CacheEntry(key=str(key),
                                                     channel_url=str(channel_url),
                                                     item_url=str(item_url),
                                                     timestamp=datetime.fromtimestamp(stamp))
        except Exception as err:  # pylint: disable-msg=W0718
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} trying to load cache from {cpath}: {err}"
            cache.log.error(msg)
            raise CacheUnreadable(msg) from err

        cache.log.debug("Loaded %d entries from %s", len(cache), cpath)
        return cache

    def filter_new(self,
                   channel_url: str,
                   items: Iterable[FeedItem],
                   now: Optional[datetime] = None) -> list[FeedItem]:
        """Return those of <items> that we have not seen before.

        All Items are recorded as seen at <now>.
        """
        if now is None:
            now = datetime.now()

        fresh: list[FeedItem] = []
        for item in items:
            key = cache_key(channel_url, item)
            entry = self.entries.get(key)
            if entry is None:
                fresh.append(item)
                self.entries[key] = CacheEntry(key=key,
                                               channel_url=channel_url,
                                               item_url=item.link,
                                               timestamp=now)
            else:
                entry.timestamp = now
                entry.item_url = item.link

        self.log.debug("%d new items in %s", len(fresh), channel_url)
        return fresh

    def prune(self, config: Configuration, now: Optional[datetime] = None) -> int:
        """Remove all entries that are older than their feed's retention period.

        Return the number of entries removed.
        """
        if now is None:
            now = datetime.now()

        stale: list[str] = []
        for key, entry in self.entries.items():
            days = config.retention_for(entry.channel_url)
            if days is None:
                continue
            if entry.age(now) > timedelta(days=days):
                stale.append(key)

        for key in stale:
            del self.entries[key]

        self.log.debug("Pruned %d of %d cache entries",
                       len(stale),
                       len(stale) + len(self.entries))
        return len(stale)

    def save(self, path: Union[str, Path], backups: int = 0) -> None:
        """Write the Cache to <path>.

        If <backups> is greater than zero, the existing file is kept as
        <path>.1, with older generations moved up to <path>.<backups>.
        Backups numbered higher than that are removed.
        The file is replaced atomically.
        """
        cpath: Final[Path] = Path(path)
        records = [(e.key, e.channel_url, e.item_url, e.timestamp.timestamp())
                   for e in self.entries.values()]

        try:
            cpath.parent.mkdir(parents=True, exist_ok=True)
            if backups > 0 and cpath.exists():
                self._rotate(cpath, backups)
            self._drop_stale_backups(cpath, backups)

            fd, tmp = tempfile.mkstemp(prefix=f".{cpath.name}.", dir=cpath.parent)
            try:
                with os.fdopen(fd, "wb") as fh:
                    pickle.dump(records, fh, protocol=pickle.HIGHEST_PROTOCOL)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp, cpath)
            except BaseException:
                os.unlink(tmp)
                raise
        except OSError as err:
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} trying to save cache to {cpath}: {err}"
            self.log.error(msg)
            raise CacheError(msg) from err

        self.log.debug("Saved %d entries to %s", len(records), cpath)

    def _rotate(self, cpath: Path, backups: int) -> None:
        """Shift the numbered backups up by one and copy the current file to .1"""
        for num in range(backups - 1, 0, -1):
            src = backup_path(cpath, num)
            if src.exists():
                os.replace(src, backup_path(cpath, num + 1))
        shutil.copy2(cpath, backup_path(cpath, 1))

    def _drop_stale_backups(self, cpath: Path, backups: int) -> None:
        """Remove the backups numbered above <backups>, left over from a larger setting."""
        num: int = backups + 1
        while backup_path(cpath, num).exists():
            self.log.debug("Remove stale backup %s", backup_path(cpath, num))
            backup_path(cpath, num).unlink()
            num += 1

# Local Variables: #
# python-indent: 4 #
# End: #
