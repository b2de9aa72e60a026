import dataclasses
import threading
from typing import List, Dict, Set, Optional

from typing_extensions import override

from chain_backup.action import Action
from chain_backup.exceptions import ChainBackupError
from chain_backup.types.snapshot_info import SnapshotRecord
from chain_backup.utils import hash_utils
from chain_backup.utils.thread_pool import FailFastThreadPool


@dataclasses.dataclass(frozen=True)
class BadSnapshotItem:
	snapshot_id: int
	desc: str


@dataclasses.dataclass(frozen=True)
class BadBlobItem:
	blob_hash: str
	desc: str


@dataclasses.dataclass
class ValidateDbResult:
	snapshot_count: int = 0
	blob_count: int = 0
	corrupted: List[BadSnapshotItem] = dataclasses.field(default_factory=list)  # unreadable records
	bad_chain: List[BadSnapshotItem] = dataclasses.field(default_factory=list)  # broken parent links
	missing: List[BadBlobItem] = dataclasses.field(default_factory=list)  # referenced, but the blob file does not exist
	mismatched: List[BadBlobItem] = dataclasses.field(default_factory=list)  # hash mismatch
	orphan: List[str] = dataclasses.field(default_factory=list)  # stored, but referenced by nothing

	@property
	def ok(self) -> bool:
		return len(self.corrupted) == 0 and len(self.bad_chain) == 0 and len(self.missing) == 0 and len(self.mismatched) == 0 and len(self.orphan) == 0


class ValidateDbAction(Action[ValidateDbResult]):
	"""
	Read-only consistency check of the snapshot chain and the blob store
	"""

	def __load_records(self, result: ValidateDbResult) -> Dict[int, SnapshotRecord]:
		records: Dict[int, SnapshotRecord] = {}
		for snapshot_id in self.db.snapshot_store.list_ids():
			try:
				records[snapshot_id] = self.db.snapshot_store.load(snapshot_id)
			except ChainBackupError as e:
				result.corrupted.append(BadSnapshotItem(snapshot_id, str(e)))
		return records

	def __validate_chain(self, result: ValidateDbResult, records: Dict[int, SnapshotRecord]):
		roots = [r.id for r in records.values() if r.parent is None]
		if len(records) > 0 and len(roots) != 1:
			for root_id in roots:
				result.bad_chain.append(BadSnapshotItem(root_id, 'expected exactly 1 root snapshot, found {}: {}'.format(len(roots), roots)))
			if len(roots) == 0:
				result.bad_chain.append(BadSnapshotItem(min(records.keys()), 'no root snapshot found'))

		children: Dict[int, List[int]] = {}
		for record in records.values():
			if record.parent is None:
				continue
			if record.parent not in records:
				result.bad_chain.append(BadSnapshotItem(record.id, 'parent #{} does not exist'.format(record.parent)))
			children.setdefault(record.parent, []).append(record.id)
		for parent_id, child_ids in children.items():
			if len(child_ids) > 1:
				result.bad_chain.append(BadSnapshotItem(parent_id, 'multiple successors: {}'.format(sorted(child_ids))))

		# every snapshot should reach the root without a cycle
		for record in records.values():
			visited: Set[int] = set()
			current: Optional[int] = record.id
			while current is not None and current in records:
				if current in visited:
					result.bad_chain.append(BadSnapshotItem(record.id, 'cycle detected in the parent chain at #{}'.format(current)))
					break
				visited.add(current)
				current = records[current].parent

	def __validate_blobs(self, result: ValidateDbResult, referenced: Set[str]):
		lock = threading.Lock()
		blob_store = self.db.blob_store

		def validate_one_blob(h: str):
			if not blob_store.exists(h):
				with lock:
					result.missing.append(BadBlobItem(h, 'blob file does not exist'))
				return
			sah = hash_utils.calc_file_size_and_hash(blob_store.get_blob_path(h), hash_method=self.db.hash_method)
			if sah.hash != h:
				with lock:
					result.mismatched.append(BadBlobItem(h, 'hash mismatch, found {}'.format(sah.hash)))

		with FailFastThreadPool('validator') as pool:
			for h in sorted(referenced):
				pool.submit(validate_one_blob, h)

		result.missing.sort(key=lambda item: item.blob_hash)
		result.mismatched.sort(key=lambda item: item.blob_hash)

	@override
	def run(self) -> ValidateDbResult:
		self.logger.info('Database validation start')
		result = ValidateDbResult()

		records = self.__load_records(result)
		result.snapshot_count = len(records) + len(result.corrupted)
		self.__validate_chain(result, records)

		referenced: Set[str] = set()
		for record in records.values():
			referenced.update(record.changes.iterate_blob_hashes())
		self.__validate_blobs(result, referenced)

		stored = list(self.db.blob_store.iterate_blob_hashes())
		result.blob_count = len(stored)
		result.orphan = [h for h in stored if h not in referenced]

		self.logger.info('Database validation done: {} snapshots, {} blobs, corrupted {}, bad chain {}, missing {}, mismatched {}, orphan {}'.format(
			result.snapshot_count, result.blob_count,
			len(result.corrupted), len(result.bad_chain), len(result.missing), len(result.mismatched), len(result.orphan),
		))
		return result
