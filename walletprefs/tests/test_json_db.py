import json
import os
from unittest import mock

from walletprefs.json_db import JsonDB, merge_template, modifier
from walletprefs.storage import FileStorage, InMemoryStorage
from walletprefs.util import StorageReadWriteError

from . import WalletPrefsTestCase, FlakyStorage


TEMPLATE = {
    'name': 'default',
    'count': 0,
    'items': {},
}


class CounterDB(JsonDB):

    @modifier
    def bump(self, n=1):
        self.put('count', self.get('count') + n)

    @modifier
    def bump_twice(self):
        self.bump()
        self.bump()


class TestMergeTemplate(WalletPrefsTestCase):

    def test_missing_keys_come_from_template(self):
        merged = merge_template({'name': 'alice'}, TEMPLATE)
        self.assertEqual({'name': 'alice', 'count': 0, 'items': {}}, merged)

    def test_unknown_stored_keys_are_kept(self):
        merged = merge_template({'newer_field': [1, 2]}, TEMPLATE)
        self.assertEqual([1, 2], merged['newer_field'])
        self.assertEqual(set(TEMPLATE) | {'newer_field'}, set(merged))

    def test_stored_values_win_even_if_null(self):
        merged = merge_template({'count': None}, TEMPLATE)
        self.assertIsNone(merged['count'])

    def test_nothing_stored(self):
        self.assertEqual(TEMPLATE, merge_template(None, TEMPLATE))

    def test_template_values_are_not_shared(self):
        merged = merge_template({}, TEMPLATE)
        merged['items']['x'] = 1
        self.assertEqual({}, TEMPLATE['items'])
        self.assertEqual({}, merge_template({}, TEMPLATE)['items'])


class TestJsonDB(WalletPrefsTestCase):

    def test_new_record_uses_template_and_is_pending(self):
        storage = InMemoryStorage()
        db = CounterDB(storage, 'counter', template=TEMPLATE)
        self.assertEqual('default', db.get('name'))
        self.assertTrue(db.modified())
        self.assertTrue(db.flush())
        self.assertEqual(TEMPLATE, json.loads(storage.read('counter')))
        self.assertFalse(db.flush())

    def test_complete_stored_record_is_not_modified(self):
        storage = InMemoryStorage({'counter': json.dumps({'name': 'x', 'count': 3, 'items': {}})})
        db = CounterDB(storage, 'counter', template=TEMPLATE)
        self.assertFalse(db.modified())
        self.assertEqual(3, db.get('count'))

    def test_unreadable_storage_falls_back_to_template(self):
        storage = FlakyStorage({'counter': json.dumps({'count': 7})})
        storage.fail_reads = True
        db = CounterDB(storage, 'counter', template=TEMPLATE)
        self.assertEqual(0, db.get('count'))

    def test_undecodable_record_falls_back_to_template(self):
        for raw in ('{not json', '[1, 2, 3]', '"a string"'):
            db = CounterDB(InMemoryStorage({'counter': raw}), 'counter', template=TEMPLATE)
            self.assertEqual(TEMPLATE, db.data, raw)

    def test_modifier_writes_through(self):
        storage = InMemoryStorage({'counter': json.dumps(TEMPLATE)})
        db = CounterDB(storage, 'counter', template=TEMPLATE)
        db.bump(5)
        self.assertEqual(1, storage.write_count)
        self.assertEqual(5, json.loads(storage.read('counter'))['count'])

    def test_nested_modifiers_write_once(self):
        storage = InMemoryStorage({'counter': json.dumps(TEMPLATE)})
        db = CounterDB(storage, 'counter', template=TEMPLATE)
        db.bump_twice()
        self.assertEqual(1, storage.write_count)
        self.assertEqual(2, json.loads(storage.read('counter'))['count'])

    def test_batch_writes_once(self):
        storage = InMemoryStorage({'counter': json.dumps(TEMPLATE)})
        db = CounterDB(storage, 'counter', template=TEMPLATE)
        with db.batch():
            db.put('name', 'bob')
            db.bump()
            self.assertEqual(0, storage.write_count)
        self.assertEqual(1, storage.write_count)

    def test_unchanged_put_does_not_write(self):
        storage = InMemoryStorage({'counter': json.dumps(TEMPLATE)})
        db = CounterDB(storage, 'counter', template=TEMPLATE)
        self.assertFalse(db.put('name', 'default'))
        self.assertEqual(0, storage.write_count)

    def test_put_rejects_unserializable_values(self):
        storage = InMemoryStorage({'counter': json.dumps(TEMPLATE)})
        db = CounterDB(storage, 'counter', template=TEMPLATE)
        self.assertFalse(db.put('name', object()))
        self.assertEqual('default', db.get('name'))

    def test_write_failure_propagates(self):
        storage = FlakyStorage({'counter': json.dumps(TEMPLATE)})
        db = CounterDB(storage, 'counter', template=TEMPLATE)
        storage.fail_writes = True
        with self.assertRaises(StorageReadWriteError):
            db.bump()
        # the change stays in memory and is retried by the next flush
        self.assertTrue(db.modified())
        storage.fail_writes = False
        self.assertTrue(db.flush())
        self.assertEqual(1, json.loads(storage.read('counter'))['count'])

    def test_without_write_through_only_flush_writes(self):
        storage = InMemoryStorage({'counter': json.dumps(TEMPLATE)})
        db = CounterDB(storage, 'counter', template=TEMPLATE, write_through=False)
        db.bump()
        self.assertEqual(0, storage.write_count)
        db.flush()
        self.assertEqual(1, storage.write_count)


class TestFileStorage(WalletPrefsTestCase):

    def test_write_then_read(self):
        storage = FileStorage(os.path.join(self.walletprefs_path, 'storage'))
        self.assertFalse(storage.exists('preference'))
        self.assertIsNone(storage.read('preference'))
        storage.write('preference', '{"a": 1}')
        self.assertTrue(storage.exists('preference'))
        self.assertEqual('{"a": 1}', storage.read('preference'))
        # no temp files left behind
        self.assertEqual(['preference.json'], sorted(os.listdir(storage.directory)))

    def test_reopened_db_sees_written_data(self):
        directory = os.path.join(self.walletprefs_path, 'storage')
        db = CounterDB(FileStorage(directory), 'counter', template=TEMPLATE)
        db.bump(2)
        db2 = CounterDB(FileStorage(directory), 'counter', template=TEMPLATE)
        self.assertEqual(2, db2.get('count'))

    def test_record_names_cannot_escape_directory(self):
        storage = FileStorage(self.walletprefs_path)
        for name in ('', '../x', 'a/b', '.hidden'):
            with self.assertRaises(ValueError):
                storage.path_for(name)

    def test_unreadable_file_raises(self):
        storage = FileStorage(self.walletprefs_path)
        with open(storage.path_for('preference'), 'wb') as f:
            f.write(b'\xff\xfe\xfa')
        with self.assertRaises(StorageReadWriteError):
            storage.read('preference')

    def test_failed_write_leaves_no_temp_file(self):
        storage = FileStorage(self.walletprefs_path)
        storage.write('preference', '{"a": 1}')
        with mock.patch.object(os, 'replace', side_effect=OSError("disk full")):
            with self.assertRaises(StorageReadWriteError):
                storage.write('preference', '{"a": 2}')
        self.assertEqual(['preference.json'], os.listdir(self.walletprefs_path))
        self.assertEqual('{"a": 1}', storage.read('preference'))
