import logging
import threading
from typing import List, Set

from chain_backup.db.snapshot_store import SnapshotStore
from chain_backup.exceptions import CorruptedSnapshotRecord
from chain_backup.types.snapshot_info import Flat, SnapshotRecord
from chain_backup.utils.lru_dict import LruDict


class SnapshotReconciler:
	"""
	Rebuilds the complete path -> blob hash view of a snapshot by replaying the deltas along its chain
	"""

	def __init__(self, snapshot_store: SnapshotStore, cache_size: int, logger: logging.Logger):
		self.snapshot_store = snapshot_store
		self.logger = logger
		self.__flat_cache: LruDict[int, Flat] = LruDict(cache_size)
		self.__lock = threading.Lock()

	def reconstruct(self, snapshot_id: int) -> Flat:
		"""
		:return: a new dict that the caller is free to modify
		:raise SnapshotNotFound: if the given snapshot does not exist
		:raise CorruptedSnapshotRecord: if the chain of the snapshot is broken
		"""
		with self.__lock:
			chain: List[SnapshotRecord] = []
			visited: Set[int] = set()
			flat: Flat = {}

			current = snapshot_id
			while current is not None:
				if current in visited:
					raise CorruptedSnapshotRecord(snapshot_id, 'cycle detected in the parent chain at #{}'.format(current))
				visited.add(current)

				cached = self.__flat_cache.get(current, None)
				if cached is not None:
					flat = dict(cached)
					break

				if current == snapshot_id:
					record = self.snapshot_store.load(current)
				else:
					record = self.snapshot_store.load_opt(current)
					if record is None:
						raise CorruptedSnapshotRecord(chain[-1].id, 'parent #{} does not exist'.format(current))
				chain.append(record)
				current = record.parent

			# oldest -> newest
			for record in reversed(chain):
				record.changes.apply_to(flat)
				self.__flat_cache.set(record.id, dict(flat))

			self.logger.debug('Reconstructed snapshot #{} with {} replayed deltas, {} paths'.format(snapshot_id, len(chain), len(flat)))
			return flat

	def invalidate(self, snapshot_id: int):
		with self.__lock:
			self.__flat_cache.pop(snapshot_id, None)

	def invalidate_all(self):
		with self.__lock:
			self.__flat_cache.clear()
