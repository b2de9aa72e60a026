import logging
from typing import Dict, Set, Iterable

from chain_backup.db.blob_store import BlobStore
from chain_backup.db.reconciler import SnapshotReconciler
from chain_backup.db.snapshot_store import SnapshotStore
from chain_backup.exceptions import CorruptedSnapshotRecord
from chain_backup.types.snapshot_info import SnapshotSizes


class SizeAccounting:
	"""
	Size queries. Missing blobs are counted as 0 bytes here, see :meth:`BlobStore.size`
	"""

	def __init__(self, blob_store: BlobStore, snapshot_store: SnapshotStore, reconciler: SnapshotReconciler, logger: logging.Logger):
		self.blob_store = blob_store
		self.snapshot_store = snapshot_store
		self.reconciler = reconciler
		self.logger = logger

	def __sum_sizes(self, blob_hashes: Iterable[str]) -> int:
		sizes: Dict[str, int] = {}
		total = 0
		for h in blob_hashes:
			if (size := sizes.get(h)) is None:
				size = sizes[h] = self.blob_store.size(h)
			total += size
		return total

	def db_size(self) -> int:
		return self.blob_store.get_size_sum()

	def logical_size(self, snapshot_id: int) -> int:
		"""
		Sum of the sizes of every file in the snapshot. Identical files are counted once per path
		"""
		flat = self.reconciler.reconstruct(snapshot_id)
		return self.__sum_sizes(flat.values())

	def physical_size(self, snapshot_id: int) -> int:
		"""
		Sum of the sizes of the distinct blobs this snapshot introduces, that no ancestor has ever introduced
		"""
		record = self.snapshot_store.load(snapshot_id)
		own: Set[str] = set(record.changes.iterate_blob_hashes())

		visited: Set[int] = {snapshot_id}
		current = record.parent
		while current is not None and len(own) > 0:
			if current in visited:
				raise CorruptedSnapshotRecord(snapshot_id, 'cycle detected in the parent chain at #{}'.format(current))
			visited.add(current)
			ancestor = self.snapshot_store.load_opt(current)
			if ancestor is None:
				raise CorruptedSnapshotRecord(snapshot_id, 'ancestor #{} does not exist'.format(current))
			own.difference_update(ancestor.changes.iterate_blob_hashes())
			current = ancestor.parent

		return self.__sum_sizes(own)

	def get_sizes(self, snapshot_id: int) -> SnapshotSizes:
		return SnapshotSizes(
			logical=self.logical_size(snapshot_id),
			physical=self.physical_size(snapshot_id),
		)
