from typing import TYPE_CHECKING

from .logging import Logger
from .util import CallbackManager, callback_mgr

if TYPE_CHECKING:
    from .records import Account
    from .session import SessionService


ACCOUNTS_CHANGED = 'accountsChanged'
# event name on the callback manager for messages addressed to the UI contexts
BROADCAST_TO_UI = 'broadcast_to_ui'


class NotificationBroadcaster(Logger):
    """Tells everybody holding a view of the wallet that the active account
    changed.

    Two separate sends, both always made:
     - connected page sessions get ``accountsChanged`` with ``[address]``;
     - the wallet's own UI contexts get a ``broadcast_to_ui`` callback with
       ``{'method': 'accountsChanged', 'params': <account json>}``.
    Consumers act on whichever arrives first and re-query state on
    activation, so neither channel is acknowledged or retried.
    """

    def __init__(self, session_service: 'SessionService', callbacks: CallbackManager = None):
        Logger.__init__(self)
        self.session_service = session_service
        self.callbacks = callbacks or callback_mgr

    def accounts_changed(self, account: 'Account') -> None:
        self.logger.info(f"current account is now {account.address}")
        self.session_service.broadcast_event(ACCOUNTS_CHANGED, [account.address])
        self.callbacks.trigger_callback(BROADCAST_TO_UI, {
            'method': ACCOUNTS_CHANGED,
            'params': account.to_json(),
        })
