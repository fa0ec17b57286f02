#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-09 21:37:02 krylon>
#
# /data/code/python/feedwatch/src/feedwatch/edit.py
# created on 05. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.edit

(c) 2026 Benjamin Walkenhorst

Edit commands look like sed/Perl substitutions: s/regex/replacement/flags
Any character may serve as the delimiter, a backslash escapes it.
Supported flags are g (replace all matches) and i (ignore case).
Groups may be referenced as $1 or \\1 in the replacement.
"""


import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Final

from feedwatch import common

group_pat: Final[re.Pattern] = re.compile(r"\$(?:(\d+)|\{(\d+)\})")


class EditError(common.FeedwatchError):
    """EditError indicates a malformed edit command."""


@dataclass(kw_only=True, slots=True, frozen=True)
class EditCommand:
    """EditCommand is a compiled substitution."""

    source: str
    pattern: re.Pattern
    replacement: str
    count: int = 1

    def apply(self, text: str) -> str:
        """Apply the substitution to <text>."""
        return self.pattern.sub(self.replacement, text, count=self.count)


def _split(body: str, delim: str) -> list[str]:
    """Split <body> at every unescaped occurrence of <delim>."""
    parts: list[str] = []
    cur: list[str] = []
    idx: int = 0
    while idx < len(body):
        c = body[idx]
        if c == "\\" and idx + 1 < len(body) and body[idx+1] == delim:
            cur.append(delim)
            idx += 2
            continue
        if c == delim:
            parts.append("".join(cur))
            cur = []
        else:
            cur.append(c)
        idx += 1
    parts.append("".join(cur))
    return parts


@lru_cache(maxsize=256)
def compile_edit(cmd: str) -> EditCommand:
    """Parse and compile an edit command."""
    cmd = cmd.strip()
    if len(cmd) < 4 or cmd[0] != "s" or cmd[1].isalnum() or cmd[1].isspace():
        raise EditError(f"Malformed edit command: {cmd}")

    parts = _split(cmd[2:], cmd[1])
    if len(parts) != 3:
        raise EditError(f"Malformed edit command: {cmd}")

    pat, repl, flags = parts
    count: int = 1
    reflags: int = 0
    for f in flags:
        match f:
            case "g":
                count = 0
            case "i":
                reflags |= re.IGNORECASE
            case _:
                raise EditError(f"Invalid flag '{f}' in edit command: {cmd}")

    try:
        rx = re.compile(pat, reflags)
    except re.error as err:
        raise EditError(f"Invalid regular expression in edit command {cmd}: {err}") from err

    repl = group_pat.sub(lambda m: f"\\g<{m.group(1) or m.group(2)}>", repl)
    try:
        rx.sub(repl, "")
    except (re.error, IndexError) as err:
        raise EditError(f"Invalid replacement in edit command {cmd}: {err}") from err

    return EditCommand(source=cmd, pattern=rx, replacement=repl, count=count)


def apply_edits(text: str, commands: tuple[str, ...]) -> str:
    """Run <text> through each of the edit commands, in order."""
    for cmd in commands:
        text = compile_edit(cmd).apply(text)
    return text

# Local Variables: #
# python-indent: 4 #
# End: #
