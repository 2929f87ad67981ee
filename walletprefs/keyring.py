from abc import ABC, abstractmethod
from typing import List, Sequence

import attr


@attr.s(frozen=True)
class KeyringAccount:
    """An account as listed by the keyring; carries no key material besides
    the public key."""
    type = attr.ib(type=str)
    pubkey = attr.ib(type=str, validator=attr.validators.instance_of(str))
    brand_name = attr.ib(default='', type=str)
    keyring_index = attr.ib(default=0, type=int)


class VisibleAccountsProvider(ABC):
    """The part of the keyring subsystem the preference store talks to."""

    @abstractmethod
    async def get_all_visible_accounts_array(self) -> Sequence[KeyringAccount]:
        """Unlocked, non-hidden accounts in display order."""
        pass


class StaticAccountsProvider(VisibleAccountsProvider):

    def __init__(self, accounts: Sequence[KeyringAccount] = ()):
        self.accounts = list(accounts)  # type: List[KeyringAccount]

    async def get_all_visible_accounts_array(self):
        return list(self.accounts)
