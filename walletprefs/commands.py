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
import argparse
import asyncio
import json
import sys
from typing import List, Optional

from .constants import AddressType, NetworkType
from .logging import configure_logging
from .preference import PreferenceService
from .simple_config import SimpleConfig


def _enum_by_name(enum_cls):
    def parse(name: str):
        try:
            return enum_cls[name.upper()]
        except KeyError:
            choices = ', '.join(m.name for m in enum_cls)
            raise argparse.ArgumentTypeError(f"unknown {enum_cls.__name__} {name!r} (choose from {choices})")
    return parse


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='walletprefs', description="Inspect and edit the wallet preference store.")
    parser.add_argument("-D", "--dir", dest="walletprefs_path", help="data directory")
    parser.add_argument("-v", dest="verbosity", action="store_true", default=None, help="verbose logging")
    subparsers = parser.add_subparsers(dest='cmd', metavar='<command>')
    subparsers.required = True
    subparsers.add_parser('show', help="print the whole record")
    p = subparsers.add_parser('get', help="print one field of the record")
    p.add_argument('key')
    p = subparsers.add_parser('set-currency', help="set the fiat display currency")
    p.add_argument('currency')
    p = subparsers.add_parser('set-address-type', help="set the address derivation scheme")
    p.add_argument('address_type', type=_enum_by_name(AddressType))
    p = subparsers.add_parser('set-network-type', help="set the network")
    p.add_argument('network_type', type=_enum_by_name(NetworkType))
    subparsers.add_parser('first-open', help="tell whether this version was not opened before")
    subparsers.add_parser('ack-first-open', help="clear the first-open flag")
    p = subparsers.add_parser('clear-cache', help="drop cached balance and history of an address")
    p.add_argument('address')
    subparsers.add_parser('accept-languages', help="supported locales among the host's preferred ones")
    return parser


def run_command(service: PreferenceService, args: argparse.Namespace) -> None:
    cmd = args.cmd
    if cmd == 'show':
        print(service.db.dump())
    elif cmd == 'get':
        if args.key not in service.db.keys():
            raise KeyError(args.key)
        print(json.dumps(json.loads(service.db.dump())[args.key], indent=4))
    elif cmd == 'set-currency':
        service.set_currency(args.currency.upper())
    elif cmd == 'set-address-type':
        service.set_address_type(args.address_type)
    elif cmd == 'set-network-type':
        service.set_network_type(args.network_type)
    elif cmd == 'first-open':
        print(json.dumps(service.get_is_first_open()))
    elif cmd == 'ack-first-open':
        service.update_is_first_open()
    elif cmd == 'clear-cache':
        service.remove_address_balance(args.address)
        service.remove_address_history(args.address)
    elif cmd == 'accept-languages':
        print(json.dumps(service.get_accept_languages()))
    else:
        raise NotImplementedError(cmd)


def main(argv: Optional[List[str]] = None) -> int:
    parser = get_parser()
    args = parser.parse_args(argv)
    config_options = {k: v for k, v in vars(args).items() if k in ('walletprefs_path', 'verbosity')}
    config = SimpleConfig(config_options)
    configure_logging(config)
    service = PreferenceService.from_config(config)
    service.init()
    try:
        run_command(service, args)
    except KeyError as e:
        print(f"no such field: {e.args[0]}", file=sys.stderr)
        return 1
    finally:
        asyncio.run(service.teardown())
    return 0


if __name__ == '__main__':
    sys.exit(main())
