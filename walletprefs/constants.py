# -*- coding: utf-8 -*-
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

from enum import IntEnum
from typing import Dict, Type


class AddressType(IntEnum):
    P2PKH = 0
    P2WPKH = 1
    P2TR = 2
    P2SH_P2WPKH = 3
    M44_P2WPKH = 4
    M44_P2TR = 5


class NetworkType(IntEnum):
    MAINNET = 0
    TESTNET = 1


DEFAULT_ADDRESS_TYPE = AddressType.P2WPKH
DEFAULT_NETWORK_TYPE = NetworkType.MAINNET


class AbstractNet:
    NET_NAME: str
    TESTNET: bool
    ADDRTYPE_P2PKH: int
    ADDRTYPE_P2SH: int
    SEGWIT_HRP: str


class BitcoinMainnet(AbstractNet):
    NET_NAME = "mainnet"
    TESTNET = False
    ADDRTYPE_P2PKH = 0
    ADDRTYPE_P2SH = 5
    SEGWIT_HRP = "bc"


class BitcoinTestnet(AbstractNet):
    NET_NAME = "testnet"
    TESTNET = True
    ADDRTYPE_P2PKH = 111
    ADDRTYPE_P2SH = 196
    SEGWIT_HRP = "tb"


NETS_BY_TYPE = {
    NetworkType.MAINNET: BitcoinMainnet,
    NetworkType.TESTNET: BitcoinTestnet,
}  # type: Dict[NetworkType, Type[AbstractNet]]


def net_for_type(network_type: NetworkType) -> Type[AbstractNet]:
    return NETS_BY_TYPE[NetworkType(network_type)]
