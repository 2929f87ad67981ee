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
import os
import stat
import threading
from typing import Dict, Optional

from .logging import Logger
from .util import (StorageReadWriteError, make_dir, os_chmod, profiler, standardize_path,
                   test_read_write_permissions)


class AbstractStorage(Logger):
    """A medium holding named records as raw strings."""

    def read(self, name: str) -> Optional[str]:
        """Returns the raw record, or None if it was never written.
        Raises StorageReadWriteError if the medium cannot be read."""
        raise NotImplementedError()

    def write(self, name: str, data: str) -> None:
        raise NotImplementedError()

    def exists(self, name: str) -> bool:
        raise NotImplementedError()


class InMemoryStorage(AbstractStorage):

    def __init__(self, records: Dict[str, str] = None):
        Logger.__init__(self)
        self.lock = threading.RLock()
        self.records = dict(records or {})
        self.write_count = 0

    def read(self, name):
        with self.lock:
            return self.records.get(name)

    def write(self, name, data):
        with self.lock:
            self.records[name] = data
            self.write_count += 1

    def exists(self, name):
        with self.lock:
            return name in self.records


class FileStorage(AbstractStorage):
    """One JSON file per record, inside `directory`."""

    def __init__(self, directory: str):
        self.directory = standardize_path(directory)
        Logger.__init__(self)
        make_dir(self.directory, allow_symlink=False)
        try:
            test_read_write_permissions(os.path.join(self.directory, "probe"))
        except IOError as e:
            raise StorageReadWriteError(e) from e
        self.logger.info(f"storage directory {self.directory}")

    def diagnostic_name(self):
        return os.path.basename(self.directory)

    def path_for(self, name: str) -> str:
        if not name or os.sep in name or (os.altsep and os.altsep in name) or name.startswith('.'):
            raise ValueError(f"invalid record name: {name!r}")
        return os.path.join(self.directory, f"{name}.json")

    def exists(self, name):
        return os.path.exists(self.path_for(name))

    def read(self, name):
        path = self.path_for(name)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadWriteError(f"cannot read {path}: {e!r}") from e

    @profiler
    def write(self, name, data):
        path = self.path_for(name)
        temp_path = "%s.tmp.%s" % (path, os.getpid())
        try:
            with open(temp_path, "w", encoding='utf-8') as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            try:
                mode = os.stat(path).st_mode
            except FileNotFoundError:
                mode = stat.S_IREAD | stat.S_IWRITE
            os.replace(temp_path, path)
            os_chmod(path, mode)
        except OSError as e:
            try:
                os.remove(temp_path)
            except FileNotFoundError:
                pass
            raise StorageReadWriteError(f"cannot write {path}: {e!r}") from e
        self.logger.debug(f"saved {path}")
