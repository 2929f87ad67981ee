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
from typing import Callable, List, Optional, Sequence, TYPE_CHECKING

from aiorpcx import run_in_thread

from . import i18n as _i18n
from . import json_db
from .bitcoin import public_key_to_address
from .constants import AddressType, NetworkType, DEFAULT_ADDRESS_TYPE, DEFAULT_NETWORK_TYPE
from .i18n import DEFAULT_LOCALE
from .json_db import JsonDB, locked, modifier
from .logging import Logger
from .records import Account, BitcoinBalance, TxHistoryItem
from .storage import AbstractStorage, FileStorage
from .util import NoAccountAvailable, WalletPrefsException, is_newer_version, versiontuple
from .version import WALLETPREFS_VERSION

if TYPE_CHECKING:
    from .keyring import VisibleAccountsProvider
    from .notification import NotificationBroadcaster
    from .simple_config import SimpleConfig


PREFERENCE_RECORD_NAME = 'preference'

PREFERENCE_TEMPLATE = {
    'currentKeyringIndex': 0,
    'currentAccount': None,
    'externalLinkAck': False,
    'balanceMap': {},
    'historyMap': {},
    'locale': DEFAULT_LOCALE,
    'watchAddressPreference': {},
    'walletSavedList': [],
    'alianNames': {},
    'initAlianNames': False,
    'currentVersion': '0',
    'firstOpen': False,
    'currency': 'USD',
    'addressType': DEFAULT_ADDRESS_TYPE,
    'networkType': DEFAULT_NETWORK_TYPE,
    'keyringAlianNames': {},
}

# reset to their default when falsy; records written by old releases may
# carry null or empty values here that the template merge keeps
FALSY_DEFAULTED_KEYS = (
    'currency', 'initAlianNames', 'externalLinkAck', 'balanceMap', 'historyMap',
    'walletSavedList', 'networkType', 'keyringAlianNames',
)
DICT_KEYS = ('balanceMap', 'historyMap', 'watchAddressPreference', 'alianNames', 'keyringAlianNames')
NULLABLE_KEYS = ('currentAccount',)


def _history_from_json(items) -> List[TxHistoryItem]:
    if not isinstance(items, list):
        raise TypeError(f"history must be a list, got {type(items).__name__}")
    return [TxHistoryItem.from_json(x) for x in items]


json_db.register_name('currentAccount', Account.from_json, None)
json_db.register_dict('balanceMap', BitcoinBalance.from_json, None)
json_db.register_dict('historyMap', _history_from_json, None)


def _is_enum_value(enum_cls, value) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        enum_cls(value)
    except ValueError:
        return False
    return True


class PreferenceDB(JsonDB):

    def __init__(self, storage: Optional[AbstractStorage], *, write_through: bool = True):
        JsonDB.__init__(self, storage, PREFERENCE_RECORD_NAME,
                        template=PREFERENCE_TEMPLATE, write_through=write_through)

    @locked
    def get_current_account(self):
        return self.data.get('currentAccount')

    @modifier
    def set_current_account(self, account: Optional[Account]) -> None:
        assert account is None or isinstance(account, Account), account
        self.put('currentAccount', account)

    @locked
    def get_address_balance(self, address: str) -> Optional[BitcoinBalance]:
        assert isinstance(address, str)
        return self.data['balanceMap'].get(address)

    @modifier
    def update_address_balance(self, address: str, balance: BitcoinBalance) -> None:
        assert isinstance(address, str)
        assert isinstance(balance, BitcoinBalance), balance
        balance_map = self.data['balanceMap']
        if balance_map.get(address) != balance:
            balance_map[address] = balance
            self.set_modified(True)

    @modifier
    def remove_address_balance(self, address: str) -> None:
        assert isinstance(address, str)
        if address in self.data['balanceMap']:
            del self.data['balanceMap'][address]
            self.set_modified(True)

    @locked
    def get_address_history(self, address: str) -> List[TxHistoryItem]:
        assert isinstance(address, str)
        return list(self.data['historyMap'].get(address, []))

    @modifier
    def update_address_history(self, address: str, history: Sequence[TxHistoryItem]) -> None:
        assert isinstance(address, str)
        history = list(history)
        assert all(isinstance(item, TxHistoryItem) for item in history), history
        history_map = self.data['historyMap']
        if history_map.get(address) != history:
            history_map[address] = history
            self.set_modified(True)

    @modifier
    def remove_address_history(self, address: str) -> None:
        assert isinstance(address, str)
        if address in self.data['historyMap']:
            del self.data['historyMap'][address]
            self.set_modified(True)

    @locked
    def get_keyring_alian_name(self, keyring_key: str) -> Optional[str]:
        return self.data['keyringAlianNames'].get(keyring_key)

    @modifier
    def set_keyring_alian_name(self, keyring_key: str, name: str) -> None:
        assert isinstance(keyring_key, str)
        assert isinstance(name, str)
        names = self.data['keyringAlianNames']
        if names.get(keyring_key) != name:
            names[keyring_key] = name
            self.set_modified(True)

    @locked
    def get_watch_address_preference(self, address: str) -> Optional[int]:
        return self.data['watchAddressPreference'].get(address)

    @modifier
    def set_watch_address_preference(self, address: str, weight: int) -> None:
        assert isinstance(address, str)
        assert isinstance(weight, int)
        weights = self.data['watchAddressPreference']
        if weights.get(address) != weight:
            weights[address] = weight
            self.set_modified(True)


class PreferenceService(Logger):
    """Owns the persisted preference record of one installation.

    Construct it once in the owning process and hand it to whoever needs
    it; call init() before anything else and teardown() before exit.
    Every setter writes the whole record through to storage before it
    returns.
    """

    def __init__(
            self,
            storage: Optional[AbstractStorage],
            *,
            keyring: 'VisibleAccountsProvider' = None,
            broadcaster: 'NotificationBroadcaster' = None,
            i18n=None,
            version: str = None,
            host_languages: Callable[[], Sequence[str]] = None,
    ):
        Logger.__init__(self)
        self.storage = storage
        self.keyring = keyring
        self.broadcaster = broadcaster
        self.i18n = i18n or _i18n
        self.version = version or WALLETPREFS_VERSION
        versiontuple(self.version)  # raises on malformed values
        self.host_languages = host_languages or _i18n.get_host_languages
        self.popup_open = False
        self._db = None  # type: Optional[PreferenceDB]

    @classmethod
    def from_config(cls, config: 'SimpleConfig', *, keyring=None, broadcaster=None) -> 'PreferenceService':
        return cls(
            FileStorage(config.get_storage_dir()),
            keyring=keyring,
            broadcaster=broadcaster,
            version=config.running_version(),
            host_languages=config.get_host_languages,
        )

    @property
    def db(self) -> PreferenceDB:
        if self._db is None:
            raise WalletPrefsException("preference store used before init()")
        return self._db

    def init(self) -> None:
        self._db = PreferenceDB(self.storage)
        with self._db.batch():
            locale = self._pin_locale()
            self._backfill_defaults()
            self._drop_incomplete_account()
        self.i18n.set_language(locale)

    async def teardown(self) -> None:
        try:
            if self.broadcaster is not None:
                await self.broadcaster.session_service.wait_for_pending()
                await self.broadcaster.callbacks.wait_for_pending()
        finally:
            if self._db is not None:
                await run_in_thread(self._db.flush)

    def _pin_locale(self) -> str:
        # only one locale is offered for now, whatever was stored before
        locale = self.db.get('locale')
        if not locale or locale != DEFAULT_LOCALE:
            self.logger.info(f"resetting locale {locale!r} to {DEFAULT_LOCALE!r}")
            self.db.put('locale', DEFAULT_LOCALE)
        return DEFAULT_LOCALE

    def _backfill_defaults(self) -> None:
        db = self.db
        for key in FALSY_DEFAULTED_KEYS:
            if not db.get(key):
                db.put(key, copy.deepcopy(PREFERENCE_TEMPLATE[key]))
        for key in DICT_KEYS:
            if not isinstance(db.get(key), dict):
                self.logger.info(f"{key} is not a mapping, resetting it")
                db.put(key, {})
        if not isinstance(db.get('walletSavedList'), list):
            db.put('walletSavedList', [])
        if not _is_enum_value(AddressType, db.get('addressType')):
            self.logger.info(f"unknown address type {db.get('addressType')!r}, using default")
            db.put('addressType', DEFAULT_ADDRESS_TYPE)
        if not _is_enum_value(NetworkType, db.get('networkType')):
            self.logger.info(f"unknown network type {db.get('networkType')!r}, using default")
            db.put('networkType', DEFAULT_NETWORK_TYPE)
        for key, value in PREFERENCE_TEMPLATE.items():
            if key not in NULLABLE_KEYS and db.get(key) is None:
                db.put(key, copy.deepcopy(value))

    def _drop_incomplete_account(self) -> None:
        account = self.db.get_current_account()
        if account is None:
            return
        if not isinstance(account, Account) or not account.is_complete():
            # written by an old release; reset_current_account() restores one
            self.logger.info("dropping current account without public key")
            self.db.set_current_account(None)

    # current account

    def get_current_account(self) -> Optional[Account]:
        return copy.deepcopy(self.db.get_current_account())

    def set_current_account(self, account: Optional[Account]) -> None:
        self.db.set_current_account(account)
        if account and self.broadcaster is not None:
            self.broadcaster.accounts_changed(account)

    async def reset_current_account(self) -> Account:
        """If the current account was hidden or deleted, fall back to the
        first visible account of the keyring."""
        if self.keyring is None:
            raise NoAccountAvailable("no keyring to recover the current account from")
        accounts = await self.keyring.get_all_visible_accounts_array()
        if not accounts:
            raise NoAccountAvailable("the keyring has no visible account")
        keyring_account = accounts[0]
        pubkey = keyring_account.pubkey
        address = public_key_to_address(pubkey, self.get_address_type(), self.get_network_type())
        account = Account(
            type=keyring_account.type,
            pubkey=pubkey,
            address=address,
            brand_name=keyring_account.brand_name,
        )
        self.set_current_account(account)
        return account

    # popup

    def set_popup_open(self, is_open: bool) -> None:
        self.popup_open = is_open

    def get_popup_open(self) -> bool:
        return self.popup_open

    # address balance

    def update_address_balance(self, address: str, balance: BitcoinBalance) -> None:
        self.db.update_address_balance(address, balance)

    def remove_address_balance(self, address: str) -> None:
        self.db.remove_address_balance(address)

    def get_address_balance(self, address: str) -> Optional[BitcoinBalance]:
        return self.db.get_address_balance(address)

    # address history

    def update_address_history(self, address: str, history: Sequence[TxHistoryItem]) -> None:
        self.db.update_address_history(address, history)

    def remove_address_history(self, address: str) -> None:
        self.db.remove_address_history(address)

    def get_address_history(self, address: str) -> List[TxHistoryItem]:
        return self.db.get_address_history(address)

    # external link ack

    def get_external_link_ack(self) -> bool:
        return bool(self.db.get('externalLinkAck'))

    def set_external_link_ack(self, ack: bool = False) -> None:
        self.db.put('externalLinkAck', bool(ack))

    # locale

    def get_locale(self) -> str:
        return self.db.get('locale')

    def set_locale(self, locale: str) -> bool:
        if not _i18n.is_supported_locale(locale):
            self.logger.warning(f"ignoring unsupported locale {locale!r}")
            return False
        locale = _i18n.normalize_locale(locale)
        self.db.put('locale', locale)
        self.i18n.set_language(locale)
        return True

    def get_accept_languages(self) -> List[str]:
        return _i18n.negotiate_languages(self.host_languages())

    # currency

    def get_currency(self) -> str:
        return self.db.get('currency')

    def set_currency(self, currency: str) -> None:
        assert isinstance(currency, str)
        self.db.put('currency', currency)

    # wallet saved list

    def get_wallet_saved_list(self) -> list:
        return list(self.db.get('walletSavedList', []))

    def update_wallet_saved_list(self, saved_list: list) -> None:
        self.db.put('walletSavedList', list(saved_list))

    # alian names

    def get_init_alian_name_status(self) -> bool:
        return bool(self.db.get('initAlianNames'))

    def change_init_alian_name_status(self) -> None:
        self.db.put('initAlianNames', True)

    # first open

    def get_is_first_open(self) -> bool:
        current_version = self.db.get('currentVersion')
        if not current_version or self._is_newer_than_recorded(current_version):
            with self.db.batch():
                self.db.put('currentVersion', self.version)
                self.db.put('firstOpen', True)
        return bool(self.db.get('firstOpen'))

    def _is_newer_than_recorded(self, recorded: str) -> bool:
        try:
            return is_newer_version(self.version, recorded)
        except ValueError as e:
            self.logger.info(f"cannot compare versions, treating {recorded!r} as outdated: {e}")
            return True

    def update_is_first_open(self) -> None:
        self.db.put('firstOpen', False)

    # address type

    def get_address_type(self) -> AddressType:
        return AddressType(self.db.get('addressType'))

    def set_address_type(self, address_type: AddressType) -> None:
        self.db.put('addressType', AddressType(address_type))

    # network type

    def get_network_type(self) -> NetworkType:
        return NetworkType(self.db.get('networkType'))

    def set_network_type(self, network_type: NetworkType) -> None:
        self.db.put('networkType', NetworkType(network_type))

    # current keyring index

    def get_current_keyring_index(self) -> int:
        return self.db.get('currentKeyringIndex')

    def set_current_keyring_index(self, keyring_index: int) -> None:
        assert isinstance(keyring_index, int)
        self.db.put('currentKeyringIndex', keyring_index)

    # keyring alian names

    def set_keyring_alian_name(self, keyring_key: str, name: str) -> None:
        self.db.set_keyring_alian_name(keyring_key, name)

    def get_keyring_alian_name(self, keyring_key: str, default_name: str = None) -> Optional[str]:
        # the first lookup of an unnamed keyring stores the caller's default,
        # so later lookups keep returning that same name
        name = self.db.get_keyring_alian_name(keyring_key)
        if not name and default_name:
            self.db.set_keyring_alian_name(keyring_key, default_name)
            name = default_name
        return name

    # watch address preference

    def get_watch_address_preference(self, address: str) -> Optional[int]:
        return self.db.get_watch_address_preference(address)

    def set_watch_address_preference(self, address: str, weight: int) -> None:
        self.db.set_watch_address_preference(address, weight)
