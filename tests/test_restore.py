import json
import os
import unittest

from chain_backup.action.restore_snapshot_action import RestoreSnapshotAction
from chain_backup.exceptions import BlobNotFound, CorruptedSnapshotRecord, SnapshotNotFound
from chain_backup.types.snapshot_info import SnapshotRecord, SnapshotChanges
from tests.helpers import DbTestCaseBase, read_tree


class RestoreTestCase(DbTestCaseBase):
	def test_0_restore_each_snapshot(self):
		self.write_file('a.txt', 'alpha')
		self.write_file('dir/b.bin', bytes(range(256)))
		self.create_snapshot()
		tree_1 = read_tree(self.source_path)

		self.write_file('a.txt', 'changed')
		self.remove_file('dir/b.bin')
		self.write_file('dir/sub/c.txt', '')
		self.create_snapshot()
		tree_2 = read_tree(self.source_path)

		for snapshot_id, expected in [(1, tree_1), (2, tree_2)]:
			output = self.temp_path / 'out_{}'.format(snapshot_id)
			result = RestoreSnapshotAction(self.db, snapshot_id, output).run()
			self.assertEqual(expected, read_tree(output))
			self.assertEqual(len(expected), result.file_count)
			self.assertEqual(sum(map(len, expected.values())), result.total_size)

	def test_1_overwrite_and_keep_others(self):
		self.write_file('a.txt', 'alpha')
		self.create_snapshot()

		output = self.temp_path / 'out'
		output.mkdir()
		(output / 'a.txt').write_text('old content')
		(output / 'other.txt').write_text('untouched')
		RestoreSnapshotAction(self.db, 1, output).run()
		self.assertEqual({'a.txt': b'alpha', 'other.txt': b'untouched'}, read_tree(output))

	def test_2_missing_blob(self):
		self.write_file('a.txt', 'alpha')
		self.create_snapshot()
		self.db.blob_store.delete(self.db.blob_store.calc_hash(b'alpha'))
		with self.assertRaises(BlobNotFound):
			RestoreSnapshotAction(self.db, 1, self.temp_path / 'out').run()

	def test_3_not_found(self):
		with self.assertRaises(SnapshotNotFound):
			RestoreSnapshotAction(self.db, 1, self.temp_path / 'out').run()
		self.assertFalse((self.temp_path / 'out').exists())

	def test_4_path_escape(self):
		h = self.db.blob_store.store(b'evil')
		for bad_path in ['../evil.txt', 'a/../../evil.txt', '/tmp/evil.txt', 'a//b', './a']:
			self.db.snapshot_store.save(SnapshotRecord(id=1, date='', parent=None, changes=SnapshotChanges(added={bad_path: h})))
			self.db.on_chain_modified()
			with self.assertRaises(CorruptedSnapshotRecord, msg=bad_path):
				RestoreSnapshotAction(self.db, 1, self.temp_path / 'out').run()
		self.assertFalse((self.temp_path / 'evil.txt').exists())

	def test_5_json_record_restorable(self):
		# records written by hand are restorable as well
		h = self.db.blob_store.store(b'hand written')
		self.db.snapshots_path.joinpath('7.json').write_text(json.dumps({
			'id': 7, 'date': '2024-01-02T03:04:05.678Z', 'parent': None,
			'changes': {'added': {'x/y.txt': h}, 'modified': {}, 'deleted': []},
		}))
		output = self.temp_path / 'out'
		RestoreSnapshotAction(self.db, 7, output).run()
		self.assertEqual({'x/y.txt': b'hand written'}, read_tree(output))

	def test_6_backslash_file_name(self):
		if os.name == 'nt':
			self.skipTest('backslash is a path separator on windows')
		self.write_file('a\\b.txt', 'x')
		self.write_file('dir\\/c.txt', 'y')
		self.create_snapshot()

		output = self.temp_path / 'out'
		RestoreSnapshotAction(self.db, 1, output).run()
		self.assertEqual(read_tree(self.source_path), read_tree(output))
		self.assertEqual(b'x', (output / 'a\\b.txt').read_bytes())


if __name__ == '__main__':
	unittest.main()
