import asyncio

from walletprefs.util import CallbackManager, versiontuple, is_newer_version

from . import WalletPrefsTestCase, WalletPrefsAsyncTestCase


class TestVersions(WalletPrefsTestCase):

    def test_versiontuple(self):
        self.assertEqual((1, 2, 3), versiontuple('1.2.3'))
        self.assertEqual((1, 2, 0), versiontuple('v1.2'))
        self.assertEqual((0, 0, 0), versiontuple('0'))
        self.assertEqual((2, 0, 1), versiontuple('2.0.1-rc.1+build.5'))
        for bad in ('', 'abc', '1.2.3.4', '1..2', None):
            with self.assertRaises(ValueError):
                versiontuple(bad)

    def test_ordering_is_numeric(self):
        self.assertTrue(is_newer_version('1.10.0', '1.9.9'))
        self.assertTrue(is_newer_version('1.0.1', '1.0'))
        self.assertFalse(is_newer_version('1.0.0', '1.0.0'))
        self.assertFalse(is_newer_version('1.0.0-beta', '1.0.0'))
        self.assertFalse(is_newer_version('0.9.0', '1.0.0'))


class TestCallbackManager(WalletPrefsTestCase):

    def test_sync_callbacks_are_called_in_place(self):
        mgr = CallbackManager()
        got = []
        mgr.register_callback(got.append, ['a', 'b'])
        mgr.trigger_callback('a', 1)
        mgr.trigger_callback('b', 2)
        mgr.trigger_callback('c', 3)
        self.assertEqual([1, 2], got)
        mgr.unregister_callback(got.append)
        mgr.trigger_callback('a', 4)
        self.assertEqual([1, 2], got)

    def test_async_callbacks_without_loop_are_dropped(self):
        mgr = CallbackManager()

        async def on_event(x):
            raise AssertionError("should not run")

        mgr.register_callback(on_event, ['ev'])
        with self.assertLogs('walletprefs', level='WARNING'):
            mgr.trigger_callback('ev', 'payload')


class TestAsyncCallbacks(WalletPrefsAsyncTestCase):

    async def test_async_callbacks_are_scheduled(self):
        mgr = CallbackManager()
        got = asyncio.Event()

        async def on_event(x):
            self.assertEqual('payload', x)
            got.set()

        mgr.register_callback(on_event, ['ev'])
        mgr.trigger_callback('ev', 'payload')
        await asyncio.wait_for(got.wait(), timeout=1)

    async def test_wait_for_pending_drains_and_logs_failures(self):
        mgr = CallbackManager()
        done = []

        async def slow(x):
            await asyncio.sleep(0.01)
            done.append(x)

        async def broken(x):
            raise RuntimeError("listener went away")

        mgr.register_callback(slow, ['ev'])
        mgr.register_callback(broken, ['ev'])
        with self.assertLogs('walletprefs', level='ERROR'):
            mgr.trigger_callback('ev', 7)
            await mgr.wait_for_pending()
        self.assertEqual([7], done)
