import unittest

from chain_backup.action.prune_snapshot_action import PruneSnapshotAction
from chain_backup.action.restore_snapshot_action import RestoreSnapshotAction
from chain_backup.action.validate_db_action import ValidateDbAction
from chain_backup.exceptions import SnapshotNotFound
from tests.helpers import DbTestCaseBase, read_tree


class PruneTestCase(DbTestCaseBase):
	def assert_restored(self, snapshot_id: int, expected: dict):
		output = self.temp_path / 'restore_{}'.format(snapshot_id)
		RestoreSnapshotAction(self.db, snapshot_id, output).run()
		self.assertEqual(expected, read_tree(output))

	def assert_valid(self):
		result = ValidateDbAction(self.db).run()
		self.assertTrue(result.ok, result)

	def test_0_prune_root_keeps_successor(self):
		self.write_file('a.txt', 'alpha')
		self.write_file('b.txt', 'beta')
		self.create_snapshot()
		self.write_file('c.txt', 'gamma')
		self.create_snapshot()

		result = PruneSnapshotAction(self.db, 1).run()
		self.assertEqual(1, result.snapshot.id)
		self.assertEqual(0, result.blobs.count)

		self.assertEqual([2], self.db.snapshot_store.list_ids())
		record = self.db.snapshot_store.load(2)
		self.assertIsNone(record.parent)
		self.assertEqual({'a.txt', 'b.txt', 'c.txt'}, set(record.changes.added.keys()))
		self.assert_restored(2, {'a.txt': b'alpha', 'b.txt': b'beta', 'c.txt': b'gamma'})
		self.assertEqual(14, self.db.size_accounting.db_size())
		self.assert_valid()

	def test_1_prune_middle(self):
		self.write_file('a.txt', 'v1')
		self.write_file('keep.txt', 'keep')
		self.create_snapshot()
		self.write_file('a.txt', 'v2')
		self.write_file('tmp.txt', 'temporary')
		self.create_snapshot()
		self.write_file('a.txt', 'v3')
		self.remove_file('tmp.txt')
		self.create_snapshot()

		result = PruneSnapshotAction(self.db, 2).run()
		# v2 and tmp.txt are visible in no remaining snapshot
		self.assertEqual(2, result.blobs.count)
		self.assertEqual(len('v2') + len('temporary'), result.blobs.size)

		record = self.db.snapshot_store.load(3)
		self.assertEqual(1, record.parent)
		self.assertEqual({'a.txt': self.db.blob_store.calc_hash(b'v3')}, record.changes.modified)
		self.assertEqual([], record.changes.deleted)
		self.assertEqual({}, record.changes.added)

		self.assert_restored(1, {'a.txt': b'v1', 'keep.txt': b'keep'})
		self.assert_restored(3, {'a.txt': b'v3', 'keep.txt': b'keep'})
		self.assert_valid()

	def test_2_prune_tip(self):
		self.write_file('a.txt', 'alpha')
		self.create_snapshot()
		self.write_file('b.txt', 'beta')
		self.create_snapshot()

		result = PruneSnapshotAction(self.db, 2).run()
		self.assertEqual(1, result.blobs.count)
		self.assertEqual(4, result.blobs.size)
		self.assertEqual([1], self.db.snapshot_store.list_ids())

		# pruned ids are never reused
		info = self.create_snapshot()
		self.assertEqual(3, info.id)
		self.assertEqual(1, info.parent)
		self.assert_valid()

	def test_3_prune_everything(self):
		for i in range(4):
			self.write_file('f{}.txt'.format(i), str(i) * 10)
			self.create_snapshot()
		for snapshot_id in [2, 4, 1, 3]:
			PruneSnapshotAction(self.db, snapshot_id).run()
		self.assertEqual([], self.db.snapshot_store.list_ids())
		self.assertEqual(0, self.db.blob_store.get_blob_count())
		self.assertEqual([], list(self.db.blob_store.iterate_blob_directories()))
		self.assert_valid()

	def test_4_not_found(self):
		self.write_file('a.txt', 'alpha')
		self.create_snapshot()
		with self.assertRaises(SnapshotNotFound):
			PruneSnapshotAction(self.db, 2).run()
		self.assertEqual([1], self.db.snapshot_store.list_ids())
		self.assertEqual(1, self.db.blob_store.get_blob_count())

	def test_5_orphans_from_crash_are_reclaimed(self):
		self.write_file('a.txt', 'alpha')
		self.create_snapshot()
		self.write_file('b.txt', 'beta')
		self.create_snapshot()
		self.db.blob_store.store(b'written before a crash')

		result = PruneSnapshotAction(self.db, 1).run()
		self.assertEqual(1, result.blobs.count)
		self.assert_restored(2, {'a.txt': b'alpha', 'b.txt': b'beta'})

	def test_6_prune_log(self):
		self.create_snapshot()
		PruneSnapshotAction(self.db, 1).run()
		log_file = self.db.logs_path / 'prune.log'
		self.assertTrue(log_file.is_file())
		self.assertIn('Pruning snapshot #1', log_file.read_text('utf8'))

	def test_7_interrupted_prune_repaired_by_rerun(self):
		self.write_file('a.txt', 'v1')
		self.create_snapshot()
		self.write_file('a.txt', 'v2')
		self.create_snapshot()
		self.write_file('a.txt', 'v3')
		self.create_snapshot()

		# the rebased successor is saved, but the pruned record is still there
		from chain_backup.types.snapshot_info import SnapshotRecord, SnapshotChanges
		store = self.db.snapshot_store
		successor = store.load(3)
		flat_1 = self.db.reconciler.reconstruct(1)
		flat_3 = self.db.reconciler.reconstruct(3)
		store.save(SnapshotRecord(successor.id, successor.date, 1, SnapshotChanges.compute(flat_1, flat_3)))
		self.db.on_chain_modified()

		PruneSnapshotAction(self.db, 2).run()
		self.assertEqual([1, 3], store.list_ids())
		self.assert_restored(3, {'a.txt': b'v3'})
		self.assert_valid()

	def test_8_cached_states_after_prune(self):
		self.write_file('a.txt', 'v1')
		self.create_snapshot()
		self.write_file('a.txt', 'v2')
		self.write_file('b.txt', 'beta')
		self.create_snapshot()
		self.remove_file('b.txt')
		self.create_snapshot()
		flats = {i: self.db.reconciler.reconstruct(i) for i in [1, 2, 3]}

		PruneSnapshotAction(self.db, 2).run()
		with self.assertRaises(SnapshotNotFound):
			self.db.reconciler.reconstruct(2)
		self.assertEqual(flats[1], self.db.reconciler.reconstruct(1))
		self.assertEqual(flats[3], self.db.reconciler.reconstruct(3))
		self.assertEqual(flats[3], self.reopen_db().reconciler.reconstruct(3))


if __name__ == '__main__':
	unittest.main()
