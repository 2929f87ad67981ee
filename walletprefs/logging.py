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
import logging
import datetime
import sys
import pathlib
import os
import platform
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .simple_config import SimpleConfig


class LogFormatterForFiles(logging.Formatter):

    def formatTime(self, record, datefmt=None):
        # timestamps follow ISO 8601 UTC
        date = datetime.datetime.fromtimestamp(record.created).astimezone(datetime.timezone.utc)
        if not datefmt:
            datefmt = "%Y%m%dT%H%M%S.%fZ"
        return date.strftime(datefmt)

    def format(self, record):
        record = _shorten_name_of_logrecord(record)
        return super().format(record)


file_formatter = LogFormatterForFiles(fmt="%(asctime)22s | %(levelname)8s | %(name)s | %(message)s")


class LogFormatterForConsole(logging.Formatter):

    def format(self, record):
        record = _shorten_name_of_logrecord(record)
        return super().format(record)


# try to make console log lines short... no timestamp, short levelname, no "walletprefs."
console_formatter = LogFormatterForConsole(fmt="%(levelname).1s | %(name)s | %(message)s")


def _shorten_name_of_logrecord(record: logging.LogRecord) -> logging.LogRecord:
    record = logging.makeLogRecord(record.__dict__)  # avoid mutating arg
    # strip the main module name from the logger name
    if record.name.startswith("walletprefs."):
        record.name = record.name[12:]
    return record


# enable logs universally (including for other libraries)
root_logger = logging.getLogger()
root_logger.setLevel(logging.WARNING)

# Start *without* any handlers, so nothing gets printed to stderr
# until configure_logging() is called.
_logger = logging.getLogger("walletprefs")
_logger.setLevel(logging.DEBUG)


def _configure_stderr_logging(*, verbosity: bool) -> None:
    console_stderr_handler = logging.StreamHandler(sys.stderr)
    console_stderr_handler.setFormatter(console_formatter)
    console_stderr_handler.setLevel(logging.DEBUG if verbosity else logging.WARNING)
    root_logger.addHandler(console_stderr_handler)


def _configure_file_logging(log_directory: pathlib.Path) -> None:
    log_directory.mkdir(exist_ok=True)
    timestamp = datetime.datetime.now(datetime.timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    pid = os.getpid()
    path = log_directory / f"walletprefs_log_{timestamp}_{pid}.log"
    file_handler = logging.FileHandler(path, encoding='utf-8')
    file_handler.setFormatter(file_formatter)
    file_handler.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)


class Logger:

    def __init__(self):
        self.logger = self.__get_logger_for_obj()

    def __get_logger_for_obj(self) -> logging.Logger:
        cls = self.__class__
        if cls.__module__:
            name = f"{cls.__module__}.{cls.__name__}"
        else:
            name = cls.__name__
        try:
            diag_name = self.diagnostic_name()
        except Exception as e:
            raise Exception("diagnostic name not yet available?") from e
        if diag_name:
            name += f".[{diag_name}]"
        return get_logger(name)

    def diagnostic_name(self):
        return ''


def get_logger(name: str) -> logging.Logger:
    if name.startswith("walletprefs."):
        name = name[12:]
    return _logger.getChild(name)


_logger_configured = False


def configure_logging(config: 'SimpleConfig') -> None:
    global _logger_configured
    if _logger_configured:
        return
    verbosity = config.get('verbosity')
    _configure_stderr_logging(verbosity=bool(verbosity))
    if config.get('log_to_file', False):
        log_directory = pathlib.Path(config.path) / "logs"
        _configure_file_logging(log_directory)
    _logger_configured = True

    from .version import WALLETPREFS_VERSION
    _logger.info(f"walletprefs version: {WALLETPREFS_VERSION} running on {platform.system()}")
