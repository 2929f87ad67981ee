from .version import WALLETPREFS_VERSION
from .util import WalletPrefsException, StorageReadWriteError, NoAccountAvailable
from .constants import AddressType, NetworkType
from .records import Account, BitcoinBalance, TxHistoryItem
from .storage import AbstractStorage, InMemoryStorage, FileStorage
from .json_db import JsonDB, merge_template
from .keyring import KeyringAccount, VisibleAccountsProvider, StaticAccountsProvider
from .session import SessionService
from .notification import NotificationBroadcaster
from .preference import PreferenceService, PreferenceDB, PREFERENCE_TEMPLATE
from .simple_config import SimpleConfig


__version__ = WALLETPREFS_VERSION
