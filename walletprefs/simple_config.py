#!/usr/bin/env python
#
# Electrum - lightweight Bitcoin client
# Copyright (C) 2018 The Electrum developers
#
# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
import json
import os
import stat
import threading
from copy import deepcopy
from typing import Any, Dict, List, Optional

from . import i18n
from .logging import Logger, get_logger
from .util import make_dir, os_chmod, standardize_path, versiontuple
from .version import WALLETPREFS_VERSION


_logger = get_logger(__name__)


def user_dir() -> str:
    if 'WALLETPREFS_DIR' in os.environ:
        return os.environ['WALLETPREFS_DIR']
    elif "HOME" in os.environ:
        return os.path.join(os.environ["HOME"], ".walletprefs")
    elif "APPDATA" in os.environ:
        return os.path.join(os.environ["APPDATA"], "WalletPrefs")
    elif "LOCALAPPDATA" in os.environ:
        return os.path.join(os.environ["LOCALAPPDATA"], "WalletPrefs")
    else:
        raise Exception("No home directory found in environment variables.")


class SimpleConfig(Logger):
    """
    The SimpleConfig class is responsible for handling operations involving
    configuration files.

    There are two different sources of possible configuration values:
        1. Command line options.
        2. User configuration (in the user's config directory)
    They are taken in order (1. overrides config options set in 2.)
    """

    def __init__(self, options: Dict[str, Any] = None, read_user_config_function=None,
                 read_user_dir_function=None):
        if options is None:
            options = {}
        Logger.__init__(self)

        # This lock needs to be acquired for updating and reading the config in
        # a thread-safe way.
        self.lock = threading.RLock()

        # The following two functions are there for dependency injection when
        # testing.
        if read_user_config_function is None:
            read_user_config_function = read_user_config
        if read_user_dir_function is None:
            self.user_dir = user_dir
        else:
            self.user_dir = read_user_dir_function

        # The command line options
        self.cmdline_options = deepcopy(options)
        # don't allow to be set on CLI:
        self.cmdline_options.pop('config_version', None)

        # Set self.path and read the user config
        self.user_config = {}  # for self.get in walletprefs_path()
        self.path = self.walletprefs_path()
        self.user_config = read_user_config_function(self.path)

    def walletprefs_path(self) -> str:
        # Read walletprefs_path from command line
        # Otherwise use the user's default data directory.
        path = self.get('walletprefs_path')
        if path is None:
            path = self.user_dir()
        path = standardize_path(path)
        make_dir(path, allow_symlink=False)
        self.logger.info(f"walletprefs directory {path}")
        return path

    def get(self, key: str, default=None) -> Any:
        with self.lock:
            out = self.cmdline_options.get(key)
            if out is None:
                out = self.user_config.get(key, default)
        return out

    def is_modifiable(self, key: str) -> bool:
        return key not in self.cmdline_options

    def set_key(self, key: str, value, *, save: bool = True) -> None:
        if not self.is_modifiable(key):
            self.logger.warning(f"not changing config key '{key}' set on the command line")
            return
        try:
            json.dumps(key)
            json.dumps(value)
        except (TypeError, ValueError):
            self.logger.info(f"json error: cannot save {repr(key)} ({repr(value)})")
            return
        with self.lock:
            if value is not None:
                self.user_config[key] = value
            else:
                self.user_config.pop(key, None)
            if save:
                self.save_user_config()

    def save_user_config(self) -> None:
        if not self.path:
            return
        path = os.path.join(self.path, "config")
        s = json.dumps(self.user_config, indent=4, sort_keys=True)
        with open(path, "w", encoding='utf-8') as f:
            f.write(s)
        os_chmod(path, stat.S_IREAD | stat.S_IWRITE)

    def get_storage_dir(self) -> str:
        path = os.path.join(self.path, "storage")
        make_dir(path, allow_symlink=False)
        return path

    def running_version(self) -> str:
        """Version of this build, compared against the version recorded in
        the preference store. The `release` key overrides it."""
        version = self.get('release') or WALLETPREFS_VERSION
        versiontuple(version)  # raises on malformed values
        return version

    def get_host_languages(self) -> List[str]:
        languages = self.get('languages')
        if languages is None:
            return i18n.get_host_languages()
        if isinstance(languages, str):
            languages = languages.split(',')
        return [lang.strip() for lang in languages if lang.strip()]


def read_user_config(path: Optional[str]) -> Dict[str, Any]:
    """Parse and store the user config settings in config.
    The returned dict is empty if the file is missing or unreadable."""
    if not path:
        return {}
    config_path = os.path.join(path, "config")
    if not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, "r", encoding='utf-8') as f:
            data = f.read()
        result = json.loads(data)
    except (OSError, ValueError) as e:
        _logger.warning(f"Cannot read config file. {e!r}")
        return {}
    if not type(result) is dict:
        return {}
    return result
