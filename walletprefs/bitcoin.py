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
from bip_utils import P2PKHAddrEncoder, P2SHAddrEncoder, P2TRAddrEncoder, P2WPKHAddrEncoder

from . import constants
from .constants import AddressType, NetworkType


def public_key_to_address(pubkey: str, address_type: AddressType, network_type: NetworkType) -> str:
    """Returns the address that receives to `pubkey` (hex, compressed or
    uncompressed) under the given derivation scheme and network.

    M44_* types only differ from their native counterparts in the derivation
    path used by the keyring, the resulting script is the same.
    """
    address_type = AddressType(address_type)
    net = constants.net_for_type(network_type)
    try:
        pubkey_bytes = bytes.fromhex(pubkey)
    except (TypeError, ValueError) as e:
        raise ValueError(f"invalid public key: {pubkey!r}") from e
    if address_type == AddressType.P2PKH:
        return P2PKHAddrEncoder.EncodeKey(pubkey_bytes, net_ver=bytes([net.ADDRTYPE_P2PKH]))
    elif address_type in (AddressType.P2WPKH, AddressType.M44_P2WPKH):
        return P2WPKHAddrEncoder.EncodeKey(pubkey_bytes, hrp=net.SEGWIT_HRP, wit_ver=0)
    elif address_type in (AddressType.P2TR, AddressType.M44_P2TR):
        return P2TRAddrEncoder.EncodeKey(pubkey_bytes, hrp=net.SEGWIT_HRP)
    elif address_type == AddressType.P2SH_P2WPKH:
        # bip_utils' P2SH encoder wraps a P2WPKH witness program
        return P2SHAddrEncoder.EncodeKey(pubkey_bytes, net_ver=bytes([net.ADDRTYPE_P2SH]))
    raise NotImplementedError(address_type)
