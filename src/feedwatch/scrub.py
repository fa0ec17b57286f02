#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-14 16:52:08 krylon>
#
# /data/code/python/feedwatch/src/feedwatch/scrub.py
# created on 07. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.scrub

(c) 2026 Benjamin Walkenhorst

This module implements the sanitizing of Item bodies for output handlers.
"""


import logging
from typing import Final, Optional

from bs4 import BeautifulSoup

from feedwatch import common
from feedwatch.model import FeedPolicy
from feedwatch.parser import FeedItem

ellipsis: Final[str] = "..."
dangerous_tags: Final[tuple[str, ...]] = ("script", "style", "iframe", "object", "embed")


class Scrubber:
    """Scrubber sanitizes the HTML of RSS Items:

    - Remove Javascript and other embedded things
    - Strip all markup if the feed does not allow embedded HTML
    - Cut the text down to the configured maximum size
    """

    __slots__ = [
        "log",
    ]

    log: logging.Logger

    def __init__(self) -> None:
        self.log = common.get_logger("scrubber")

    def scrub_html(self, content: str) -> str:
        """Remove scripts and the like from <content>, keep the rest of the markup."""
        soup = BeautifulSoup(content, "html.parser")
        for tag in soup.find_all(dangerous_tags):
            tag.decompose()

        return str(soup)

    def strip_html(self, content: str) -> str:
        """Return the plain text of <content>, with all markup removed."""
        soup = BeautifulSoup(content, "html.parser")
        for tag in soup.find_all(dangerous_tags):
            tag.decompose()
        plain: Final[str] = soup.get_text(" ")
        return " ".join(plain.split())

    @staticmethod
    def truncate(text: str, limit: Optional[int]) -> str:
        """Cut <text> down to at most <limit> characters."""
        if limit is None or len(text) <= limit:
            return text
        if limit <= len(ellipsis):
            return text[:limit]
        return text[:limit - len(ellipsis)].rstrip() + ellipsis

    def body(self, item: FeedItem, policy: FeedPolicy) -> str:
        """Return the text of <item> the way <policy> wants it displayed."""
        txt: str = item.summary if policy.summary_only or item.content == "" \
            else item.content
        if policy.allow_embedded_html:
            txt = self.scrub_html(txt)
        else:
            txt = self.strip_html(txt)

        return self.truncate(txt.strip(), policy.max_summary_size)

# Local Variables: #
# python-indent: 4 #
# End: #
