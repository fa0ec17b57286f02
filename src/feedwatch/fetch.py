#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-15 17:29:58 krylon>
#
# /data/code/python/feedwatch/src/feedwatch/fetch.py
# created on 06. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.fetch

(c) 2026 Benjamin Walkenhorst

Download the raw payload of a feed.
"""


import logging
import time
from dataclasses import dataclass
from threading import local
from typing import Final, Optional, Protocol
from urllib.parse import unquote, urlsplit

import requests
from urllib3.exceptions import HTTPError as TransportError

from feedwatch import common

accept_header: Final[str] = \
    "application/rss+xml, application/atom+xml, application/xml;q=0.9, text/xml;q=0.9, */*;q=0.8"
chunk_size: Final[int] = 16384


class FetchError(common.FeedwatchError):
    """FetchError indicates a feed that could not be downloaded."""


@dataclass(kw_only=True, slots=True, frozen=True)
class Request:
    """Request holds the parameters for downloading a feed."""

    url: str
    user_agent: str
    gzip: bool = True
    timeout: float = 30


@dataclass(kw_only=True, slots=True, frozen=True)
class Payload:
    """Payload is the raw content of a feed, plus the encoding the server claimed."""

    url: str
    content: bytes
    encoding: Optional[str] = None


class Fetcher(Protocol):  # pylint: disable-msg=R0903
    """Fetcher downloads feeds. Implementations must be safe to use from several threads."""

    def fetch(self, req: Request) -> Payload:
        """Download the feed described by <req>."""


class HTTPFetcher:
    """HTTPFetcher downloads feeds via HTTP(S) using requests, and reads file: URLs."""

    __slots__ = [
        "log",
        "_local",
    ]

    log: logging.Logger
    _local: local

    def __init__(self) -> None:
        self.log = common.get_logger("fetch")
        self._local = local()

    def _session(self) -> requests.Session:
        """Return the calling thread's Session."""
        s: Optional[requests.Session] = getattr(self._local, "session", None)
        if s is None:
            s = requests.Session()
            s.headers.update({"Accept": accept_header})
            self._local.session = s
        return s

    def fetch(self, req: Request) -> Payload:
        """Download the feed described by <req>."""
        parts = urlsplit(req.url)
        if parts.scheme == "file":
            return self._read_file(req.url, unquote(parts.path))

        headers: dict[str, str] = {
            "User-Agent": req.user_agent,
            "Accept-Encoding": "gzip, deflate" if req.gzip else "identity",
        }

        self.log.debug("Fetch %s", req.url)
        deadline: Final[float] = time.monotonic() + req.timeout
        try:
            with self._session().get(req.url,
                                     headers=headers,
                                     timeout=req.timeout,
                                     allow_redirects=True,
                                     stream=True) as resp:
                resp.raise_for_status()
                content: bytes = self._read_body(req, resp, deadline)

                # requests falls back to ISO-8859-1 for text/* without a charset,
                # which is wrong for XML, so only trust an explicit charset.
                charset: Optional[str] = None
                if "charset" in resp.headers.get("Content-Type", "").lower():
                    charset = resp.encoding
        except (requests.RequestException, TransportError) as err:
            cname: Final[str] = err.__class__.__name__
            msg: Final[str] = f"{cname} trying to fetch {req.url}: {err}"
            self.log.error(msg)
            raise FetchError(msg) from err

        return Payload(url=req.url, content=content, encoding=charset)

    def _read_body(self, req: Request, resp: requests.Response, deadline: float) -> bytes:
        """Read the response body, giving up once <deadline> has passed.

        The timeout passed to requests only bounds each single read.
        """
        chunks: list[bytes] = []
        while True:
            if time.monotonic() > deadline:
                msg: Final[str] = \
                    f"Timeout fetching {req.url}: no complete response after {req.timeout} seconds"
                self.log.error(msg)
                raise FetchError(msg)
            data = resp.raw.read1(chunk_size, decode_content=True)
            if not data:
                break
            chunks.append(data)
        return b"".join(chunks)

    def _read_file(self, url: str, path: str) -> Payload:
        try:
            with open(path, "rb") as fh:
                return Payload(url=url, content=fh.read())
        except OSError as err:
            msg: Final[str] = f"Cannot read {url}: {err}"
            self.log.error(msg)
            raise FetchError(msg) from err

# Local Variables: #
# python-indent: 4 #
# End: #
