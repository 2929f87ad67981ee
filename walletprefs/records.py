from typing import Any, Mapping, Optional

import attr


def _str_amount(x) -> str:
    # amounts travel as decimal strings; integers from older caches are accepted
    return '0' if x is None else str(x)


def _pick(cls, d: Mapping[str, Any], renames: Mapping[str, str] = None) -> dict:
    """Keeps the keys of `d` that `cls` knows about (unknown keys come from
    newer or foreign record layouts and are dropped)."""
    if not isinstance(d, Mapping):
        raise TypeError(f"{cls.__name__} expects an object, got {type(d).__name__}")
    renames = renames or {}
    kwargs = {}
    for field in attr.fields(cls):
        key = renames.get(field.name, field.name)
        if key in d:
            kwargs[field.name] = d[key]
    return kwargs


@attr.s(frozen=True)
class Account:
    type = attr.ib(default='', type=str)
    pubkey = attr.ib(default=None, type=Optional[str])
    address = attr.ib(default='', type=str)
    brand_name = attr.ib(default='', type=str)

    _JSON_KEYS = {'brand_name': 'brandName'}

    def is_complete(self) -> bool:
        # accounts persisted by old releases carry no public key
        return bool(self.pubkey)

    def to_json(self) -> dict:
        return {
            'type': self.type,
            'pubkey': self.pubkey,
            'address': self.address,
            'brandName': self.brand_name,
        }

    @classmethod
    def from_json(cls, d: Mapping[str, Any]) -> 'Account':
        return cls(**_pick(cls, d, cls._JSON_KEYS))


@attr.s(frozen=True)
class BitcoinBalance:
    confirm_amount = attr.ib(default='0', type=str, converter=_str_amount)
    pending_amount = attr.ib(default='0', type=str, converter=_str_amount)
    amount = attr.ib(default='0', type=str, converter=_str_amount)
    confirm_btc_amount = attr.ib(default='0', type=str, converter=_str_amount)
    pending_btc_amount = attr.ib(default='0', type=str, converter=_str_amount)
    btc_amount = attr.ib(default='0', type=str, converter=_str_amount)
    confirm_inscription_amount = attr.ib(default='0', type=str, converter=_str_amount)
    pending_inscription_amount = attr.ib(default='0', type=str, converter=_str_amount)
    inscription_amount = attr.ib(default='0', type=str, converter=_str_amount)
    usd_value = attr.ib(default='0', type=str, converter=_str_amount)

    def to_json(self) -> dict:
        return attr.asdict(self)

    @classmethod
    def from_json(cls, d: Mapping[str, Any]) -> 'BitcoinBalance':
        return cls(**_pick(cls, d))


@attr.s(frozen=True)
class TxHistoryItem:
    txid = attr.ib(default='', type=str)
    time = attr.ib(default=0, type=int)
    date = attr.ib(default='', type=str)
    amount = attr.ib(default='0', type=str, converter=_str_amount)
    symbol = attr.ib(default='', type=str)
    address = attr.ib(default='', type=str)

    def to_json(self) -> dict:
        return attr.asdict(self)

    @classmethod
    def from_json(cls, d: Mapping[str, Any]) -> 'TxHistoryItem':
        return cls(**_pick(cls, d))
