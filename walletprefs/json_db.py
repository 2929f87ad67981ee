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
import copy
import json
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, TYPE_CHECKING

from .logging import Logger
from .util import StorageReadWriteError, profiler

if TYPE_CHECKING:
    from .storage import AbstractStorage


def locked(func):
    def wrapper(self, *args, **kwargs):
        with self.lock:
            return func(self, *args, **kwargs)
    return wrapper


def modifier(func):
    """Marks a JsonDB method that may change data. Once the outermost modifier
    returns, the whole record is written through to storage if anything
    called set_modified(True)."""
    def wrapper(self: 'JsonDB', *args, **kwargs):
        with self.batch():
            return func(self, *args, **kwargs)
    return wrapper


registered_names = {}  # type: Dict[str, Tuple[Callable, Optional[type]]]
registered_dicts = {}  # type: Dict[str, Tuple[Callable, Optional[type]]]


def register_name(name: str, method: Callable, _type: Optional[type] = dict) -> None:
    registered_names[name] = method, _type


def register_dict(name: str, method: Callable, _type: Optional[type] = dict) -> None:
    registered_dicts[name] = method, _type


def _construct(constructor: Callable, _type: Optional[type], x):
    if _type == dict:
        return constructor(**x)
    elif _type == tuple:
        return constructor(*x)
    return constructor(x)


class JsonDBJsonEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, set):
            return list(obj)
        if isinstance(obj, bytes):
            return obj.hex()
        if hasattr(obj, 'to_json') and callable(obj.to_json):
            return obj.to_json()
        return super(JsonDBJsonEncoder, self).default(obj)


def merge_template(stored: Optional[Mapping[str, Any]], template: Mapping[str, Any]) -> dict:
    """Returns a record holding every key of `template`.

    Values already in `stored` win, including ones the template does not know
    about (written by a newer release). Missing keys get a copy of the
    template value, so records never share mutable defaults.
    """
    result = dict(stored or {})
    for key, value in template.items():
        if key not in result:
            result[key] = copy.deepcopy(value)
    return result


class JsonDB(Logger):
    """A named JSON record, loaded from a storage medium and written back
    through it whenever a @modifier method runs."""

    def __init__(self, storage: Optional['AbstractStorage'], name: str, *,
                 template: Mapping[str, Any] = None, write_through: bool = True):
        self.name = name
        Logger.__init__(self)
        self.lock = threading.RLock()
        self.storage = storage
        self.template = dict(template or {})
        self.write_through = write_through
        self._modified = False
        self._modifier_depth = 0
        self.data = {}  # type: Dict[str, Any]
        self.load()

    def diagnostic_name(self):
        return self.name

    def set_modified(self, b: bool) -> None:
        with self.lock:
            self._modified = b

    def modified(self) -> bool:
        return self._modified

    @contextmanager
    def batch(self):
        """Groups modifications into a single write, made when the outermost
        batch exits normally. A batch that raises leaves the changes unsaved
        until the next write or flush()."""
        with self.lock:
            self._modifier_depth += 1
            try:
                yield self
            finally:
                self._modifier_depth -= 1
            if self._modifier_depth == 0 and self.write_through and self._modified:
                self.write()

    def _read_stored(self) -> Optional[dict]:
        if self.storage is None:
            return None
        try:
            raw = self.storage.read(self.name)
        except StorageReadWriteError as e:
            self.logger.warning(f"storage unreadable, starting from template: {e!r}")
            return None
        if not raw:
            return None
        try:
            stored = json.loads(raw)
        except ValueError as e:
            self.logger.warning(f"cannot decode stored record, starting from template: {e!r}")
            return None
        if not isinstance(stored, dict):
            self.logger.warning(f"stored record is not an object ({type(stored).__name__}), starting from template")
            return None
        return stored

    @locked
    @profiler
    def load(self) -> None:
        stored = self._read_stored()
        data = merge_template(stored, self.template)
        self.data = {key: self._convert_value(key, value) for key, value in data.items()}
        # records that were missing, or gained template keys, still have to reach the medium
        self._modified = stored is None or len(data) != len(stored)
        if stored is None:
            self.logger.info("created new record from template")

    def _convert_value(self, key: str, v):
        if key in registered_dicts and isinstance(v, dict):
            constructor, _type = registered_dicts[key]
            converted = {}
            for k, x in v.items():
                try:
                    converted[k] = _construct(constructor, _type, x)
                except (TypeError, ValueError, AttributeError) as e:
                    self.logger.info(f"dropping malformed entry {key}[{k!r}]: {e!r}")
            return converted
        if key in registered_names and isinstance(v, dict):
            constructor, _type = registered_names[key]
            return _construct(constructor, _type, v)
        return v

    @locked
    def get(self, key: str, default=None):
        v = self.data.get(key)
        if v is None:
            v = default
        return v

    @modifier
    def put(self, key: str, value) -> bool:
        try:
            json.dumps(key, cls=JsonDBJsonEncoder)
            json.dumps(value, cls=JsonDBJsonEncoder)
        except (TypeError, ValueError):
            self.logger.info(f"json error: cannot save {repr(key)} ({repr(value)})")
            return False
        if key in self.data and self.data[key] == value:
            return False
        self.data[key] = copy.deepcopy(value)
        self._modified = True
        return True

    @locked
    def keys(self):
        return list(self.data.keys())

    @locked
    def dump(self, *, human_readable: bool = True) -> str:
        return json.dumps(
            self.data,
            indent=4 if human_readable else None,
            sort_keys=bool(human_readable),
            cls=JsonDBJsonEncoder,
        )

    @locked
    def write(self) -> None:
        if self.storage is None:
            return
        self.storage.write(self.name, self.dump())
        self._modified = False

    @locked
    def flush(self) -> bool:
        """Writes the record if it has unsaved changes. Returns whether it did."""
        if not self.modified():
            return False
        self.write()
        return True
