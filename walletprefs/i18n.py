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
import gettext
import os
from typing import Iterable, List, Optional

from .logging import get_logger


_logger = get_logger(__name__)

# catalogs, if any, live in locale/<lang>/LC_MESSAGES/walletprefs.mo
LOCALE_DIR = os.path.join(os.path.dirname(__file__), 'locale')

DEFAULT_LOCALE = 'en'
SUPPORT_LOCALES = ('en',)

language = gettext.translation('walletprefs', LOCALE_DIR, fallback=True)
current_language = None  # type: Optional[str]


def _(x: str) -> str:
    if x == "":
        return ""  # empty string would return the catalog header
    return language.gettext(x)


def set_language(x: Optional[str]) -> None:
    global language, current_language
    _logger.info(f"setting language to {x!r}")
    current_language = x
    if x:
        language = gettext.translation('walletprefs', LOCALE_DIR, fallback=True, languages=[x])


def normalize_locale(tag: str) -> str:
    """'en-US' -> 'en_US'; 'de_DE.UTF-8@euro' -> 'de_DE'"""
    tag = tag.strip().split('.', 1)[0].split('@', 1)[0]
    return tag.replace('-', '_')


def is_supported_locale(tag: Optional[str]) -> bool:
    return bool(tag) and normalize_locale(tag) in SUPPORT_LOCALES


def negotiate_languages(preferred: Optional[Iterable[str]]) -> List[str]:
    """Filters the host's preferred locale tags (most preferred first) down
    to the ones we support, keeping their order."""
    if not preferred:
        return []
    normalized = (normalize_locale(tag) for tag in preferred if tag)
    return [tag for tag in normalized if tag in SUPPORT_LOCALES]


def get_host_languages() -> List[str]:
    # same lookup order as gettext
    for envar in ('LANGUAGE', 'LC_ALL', 'LC_MESSAGES', 'LANG'):
        val = os.environ.get(envar)
        if val:
            return [tag for tag in val.split(':') if tag and tag not in ('C', 'POSIX')]
    return []
