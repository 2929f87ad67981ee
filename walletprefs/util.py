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
import asyncio
import os
import stat
import threading
import time
from collections import defaultdict
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from .logging import get_logger, Logger


_logger = get_logger(__name__)


class WalletPrefsException(Exception): pass


class StorageReadWriteError(WalletPrefsException): pass


class NoAccountAvailable(WalletPrefsException):
    """Raised when the current account has to be recovered but the keyring
    reports no visible account to fall back to."""


_profiler_logger = _logger.getChild('profiler')


def profiler(func=None, *, min_threshold: Optional[float] = None):
    """Function decorator that logs execution time.

    min_threshold: if set, only log if time taken is higher than threshold
    NOTE: does not work with async methods.
    """
    if func is None:  # to make "@profiler(...)" work. (in addition to bare "@profiler")
        return partial(profiler, min_threshold=min_threshold)

    def timer_wrapper(*args, **kw_args):
        name = func.__qualname__
        t0 = time.time()
        o = func(*args, **kw_args)
        t = time.time() - t0
        if min_threshold is None or t > min_threshold:
            _profiler_logger.debug(f"{name} {t:,.4f} sec")
        return o
    return timer_wrapper


def versiontuple(v: str) -> Tuple[int, int, int]:
    """Parses 'major.minor.patch' into a comparable tuple.

    A leading 'v', pre-release ('-rc1') and build metadata ('+abc') are
    dropped, missing components count as zero.
    Raises ValueError for anything else.
    """
    if not isinstance(v, str):
        raise ValueError(f"version must be a string, not {type(v).__name__}")
    v = v.strip()
    if v[:1] in ('v', 'V'):
        v = v[1:]
    v = v.split('+', 1)[0].split('-', 1)[0]
    parts = v.split('.')
    if not 1 <= len(parts) <= 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f"not a semantic version: {v!r}")
    nums = [int(p) for p in parts]
    nums += [0] * (3 - len(nums))
    return nums[0], nums[1], nums[2]


def is_newer_version(candidate: str, reference: str) -> bool:
    return versiontuple(candidate) > versiontuple(reference)


def standardize_path(path):
    if path is not None:
        path = os.path.normcase(os.path.realpath(os.path.abspath(os.path.expanduser(path))))
    return path


def make_dir(path, allow_symlink=True):
    """Make directory if it does not yet exist."""
    if not os.path.exists(path):
        if not allow_symlink and os.path.islink(path):
            raise Exception('Dangling link: ' + path)
        os.mkdir(path)
        os_chmod(path, stat.S_IRUSR | stat.S_IWUSR | stat.S_IXUSR)


def os_chmod(path, mode):
    """os.chmod aware of tmpfs"""
    try:
        os.chmod(path, mode)
    except OSError as e:
        xdg_runtime_dir = os.environ.get("XDG_RUNTIME_DIR", None)
        if xdg_runtime_dir and is_subpath(path, xdg_runtime_dir):
            _logger.info(f"Tried to chmod in tmpfs. Skipping... {e!r}")
        else:
            raise


def is_subpath(long_path: str, short_path: str) -> bool:
    """Returns whether long_path is a sub-path of short_path."""
    try:
        common = os.path.commonpath([long_path, short_path])
    except ValueError:
        return False
    short_path = standardize_path(short_path)
    common = standardize_path(common)
    return short_path == common


def test_read_write_permissions(path) -> None:
    # note: There might already be a file at 'path'.
    #       Make sure we do NOT overwrite/corrupt that!
    temp_path = "%s.tmptest.%s" % (path, os.getpid())
    echo = "fs r/w test"
    try:
        # test READ permissions for actual path
        if os.path.exists(path):
            with open(path, "rb") as f:
                f.read(1)  # read 1 byte
        # test R/W sanity for "similar" path
        with open(temp_path, "w", encoding='utf-8') as f:
            f.write(echo)
        with open(temp_path, "r", encoding='utf-8') as f:
            echo2 = f.read()
        os.remove(temp_path)
    except Exception as e:
        raise IOError(e) from e
    if echo != echo2:
        raise IOError('echo sanity-check failed')


def get_running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class CallbackManager(Logger):
    # callbacks set by the UI contexts

    def __init__(self):
        Logger.__init__(self)
        self.callback_lock = threading.Lock()
        self.callbacks = defaultdict(list)  # type: Dict[str, List[Callable]]
        self._pending = set()  # type: Set[asyncio.Task]

    def register_callback(self, func: Callable, events: Sequence[str]) -> None:
        with self.callback_lock:
            for event in events:
                self.callbacks[event].append(func)

    def unregister_callback(self, callback: Callable) -> None:
        with self.callback_lock:
            for callbacks in self.callbacks.values():
                if callback in callbacks:
                    callbacks.remove(callback)

    def trigger_callback(self, event: str, *args) -> None:
        """Calls synchronous listeners in place; coroutine listeners are
        scheduled on the running event loop, if there is one."""
        with self.callback_lock:
            callbacks = self.callbacks[event][:]
        loop = get_running_loop()
        for callback in callbacks:
            if asyncio.iscoroutinefunction(callback):
                if loop is None:
                    self.logger.warning(f"no event loop, dropping async callback for {event!r}")
                    continue
                task = loop.create_task(self._run_async(event, callback, args))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
            else:
                callback(*args)

    async def _run_async(self, event: str, callback: Callable, args) -> None:
        try:
            await callback(*args)
        except Exception as e:
            self.logger.exception(f"callback for {event!r} failed: {e!r}")

    async def wait_for_pending(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


callback_mgr = CallbackManager()
