#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-12 18:40:17 krylon>
#
# /data/code/python/feedwatch/src/feedwatch/common.py
# created on 02. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.common

(c) 2026 Benjamin Walkenhorst

Application-wide constants, the base directory, and the logger factory.
"""


import logging
import logging.handlers
import os
from pathlib import Path
from threading import Lock
from typing import Final, Union

AppName: Final[str] = "feedwatch"
AppVersion: Final[str] = "0.3.1"
AppHomepage: Final[str] = "https://github.com/blicero/feedwatch"
Debug: bool = False
TimeFmt: Final[str] = "%Y-%m-%d %H:%M:%S"

LogFmt: Final[str] = "%(asctime)s (%(name)-16s / line %(lineno)-4d) " + \
    "- %(levelname)-8s %(message)s"


class FeedwatchError(Exception):
    """Base class for all application-specific exceptions."""


class Path_:  # pylint: disable-msg=C0103
    """Path_ holds the locations of the files and directories the application uses."""

    __slots__ = ["__base"]

    __base: Path

    def __init__(self, root: Union[str, Path] = os.path.expanduser(f"~/.{AppName}.d")) -> None:
        self.__base = Path(root)

    def base(self, path: Union[str, Path, None] = None) -> Path:
        """Return the base directory, setting it first if <path> is given."""
        if path is not None:
            self.__base = Path(os.path.expanduser(str(path)))
        return self.__base

    @property
    def log(self) -> Path:
        """Return the path of the log file."""
        return self.__base.joinpath(f"{AppName.lower()}.log")

    def cache(self) -> Path:
        """Return the default location of the item cache."""
        return self.__base.joinpath(f"{AppName.lower()}.cache")


path: Path_ = Path_()

_lock: Final[Lock] = Lock()
_file_handler: Union[logging.Handler, None] = None


def set_basedir(folder: Union[str, Path]) -> None:
    """Set the base directory and make sure it exists."""
    global _file_handler  # pylint: disable-msg=W0603
    with _lock:
        base = path.base(folder)
        base.mkdir(parents=True, exist_ok=True)
        _file_handler = None


def _get_file_handler() -> Union[logging.Handler, None]:
    global _file_handler  # pylint: disable-msg=W0603
    with _lock:
        if _file_handler is None and path.base().is_dir():
            _file_handler = logging.handlers.RotatingFileHandler(path.log,
                                                                 "a",
                                                                 1 << 20,
                                                                 5)
            _file_handler.setFormatter(logging.Formatter(LogFmt))
        return _file_handler


def get_logger(name: str, terminal: bool = True) -> logging.Logger:
    """Create and return a logger with the given name.

    Messages go to the log file in the base directory (if it exists) and,
    unless <terminal> is False, to stderr.
    """
    log = logging.getLogger(f"{AppName}.{name}")
    log.setLevel(logging.DEBUG if Debug else logging.INFO)
    log.propagate = False

    if log.handlers:
        return log

    fh = _get_file_handler()
    if fh is not None:
        log.addHandler(fh)

    if terminal:
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter(LogFmt))
        log.addHandler(ch)

    return log

# Local Variables: #
# python-indent: 4 #
# End: #
