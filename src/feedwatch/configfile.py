#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-10 16:48:12 krylon>
#
# /data/code/python/feedwatch/src/feedwatch/configfile.py
# created on 06. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the feedwatch feed poller. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
feedwatch.configfile

(c) 2026 Benjamin Walkenhorst

Read an INI-style configuration file into the form the Loader expects.
"""


import configparser
from pathlib import Path
from typing import Union

from feedwatch.config import ConfigError


class ConfigFileError(ConfigError):
    """ConfigFileError indicates a configuration file we could not read."""


def parse_config(text: str, source: str = "<string>") -> dict[str, list[tuple[str, str]]]:
    """Parse the contents of a configuration file."""
    cp = configparser.ConfigParser(interpolation=None,
                                   default_section="__none__",
                                   strict=False)
    cp.optionxform = str  # type: ignore
    try:
        cp.read_string(text, source)
    except configparser.Error as err:
        raise ConfigFileError(f"Cannot parse configuration {source}: {err}") from err

    raw: dict[str, list[tuple[str, str]]] = {}
    for section in cp.sections():
        raw[section] = [(k, v) for k, v in cp.items(section, raw=True)]
    return raw


def read_config(path: Union[str, Path]) -> dict[str, list[tuple[str, str]]]:
    """Read the configuration file at <path>."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            text = fh.read()
    except OSError as err:
        raise ConfigFileError(f"Cannot read configuration file {path}: {err}") from err

    return parse_config(text, str(path))

# Local Variables: #
# python-indent: 4 #
# End: #
