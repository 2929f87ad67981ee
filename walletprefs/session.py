import asyncio
from typing import Any, Dict, Optional, Set, Tuple

from aiorpcx import RPCError

from .logging import Logger
from .util import get_running_loop


class SessionService(Logger):
    """Page sessions connected to the wallet provider.

    A session is anything exposing ``async send_notification(method, args)``,
    which is what aiorpcx RPC sessions offer. Notifications are best effort:
    each one is sent at most once, in no particular order relative to other
    broadcasts, and a failed send is logged and forgotten.
    """

    def __init__(self):
        Logger.__init__(self)
        self._sessions = {}  # type: Dict[str, Tuple[Any, Optional[str]]]
        self._pending = set()  # type: Set[asyncio.Task]

    def add_session(self, session_id: str, session, *, origin: str = None) -> None:
        self._sessions[session_id] = (session, origin)

    def delete_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def get_session(self, session_id: str):
        item = self._sessions.get(session_id)
        return item[0] if item else None

    def num_sessions(self) -> int:
        return len(self._sessions)

    def broadcast_event(self, method: str, params, *, origin: str = None) -> int:
        """Schedules `method` to every session (of `origin`, if given).
        Returns the number of notifications scheduled."""
        targets = [(sid, session) for sid, (session, session_origin) in self._sessions.items()
                   if origin is None or session_origin == origin]
        if not targets:
            return 0
        loop = get_running_loop()
        if loop is None:
            self.logger.warning(f"no event loop, {method} not sent to {len(targets)} session(s)")
            return 0
        for session_id, session in targets:
            task = loop.create_task(self._send(session_id, session, method, params))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        return len(targets)

    async def _send(self, session_id: str, session, method: str, params) -> None:
        try:
            await session.send_notification(method, params)
        except (RPCError, OSError) as e:
            self.logger.info(f"could not notify session {session_id} of {method}: {e!r}")
        except Exception as e:
            self.logger.exception(f"could not notify session {session_id} of {method}: {e!r}")

    async def wait_for_pending(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.wait_for_pending()
        self._sessions.clear()
