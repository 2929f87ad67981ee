import json
import shutil
import tempfile
import unittest

from walletprefs.json_db import JsonDBJsonEncoder
from walletprefs.storage import InMemoryStorage
from walletprefs.util import StorageReadWriteError


# public key of the secp256k1 generator point, i.e. private key 1
G_PUBKEY = '0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798'


def as_json(value):
    return json.loads(json.dumps(value, cls=JsonDBJsonEncoder))


class FlakyStorage(InMemoryStorage):
    """In-memory storage whose reads and writes can be made to fail."""

    def __init__(self, records=None):
        InMemoryStorage.__init__(self, records)
        self.fail_reads = False
        self.fail_writes = False

    def read(self, name):
        if self.fail_reads:
            raise StorageReadWriteError("medium unreadable")
        return InMemoryStorage.read(self, name)

    def write(self, name, data):
        if self.fail_writes:
            raise StorageReadWriteError("medium unwritable")
        InMemoryStorage.write(self, name, data)


class MockI18n:

    def __init__(self):
        self.languages = []

    def set_language(self, x):
        self.languages.append(x)


class MockSession:

    def __init__(self, *, fail_with: Exception = None):
        self.notifications = []
        self.fail_with = fail_with

    async def send_notification(self, method, args=()):
        if self.fail_with is not None:
            raise self.fail_with
        self.notifications.append((method, args))


class _TempDirMixin:

    def setUp(self):
        super().setUp()
        self.walletprefs_path = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.walletprefs_path)
        super().tearDown()


class WalletPrefsTestCase(_TempDirMixin, unittest.TestCase):
    pass


class WalletPrefsAsyncTestCase(_TempDirMixin, unittest.IsolatedAsyncioTestCase):
    pass
