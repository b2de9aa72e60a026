import threading
import time
from pathlib import Path

from typing_extensions import override

from chain_backup.action import Action
from chain_backup.action.helpers.directory_scanner import DirectoryScanner
from chain_backup.db.access import DbAccess
from chain_backup.types.blob_info import BlobListSummary
from chain_backup.types.snapshot_info import SnapshotInfo, SnapshotRecord, SnapshotChanges, Flat
from chain_backup.types.units import ByteCount
from chain_backup.utils import conversion_utils
from chain_backup.utils.thread_pool import FailFastThreadPool


class CreateSnapshotAction(Action[SnapshotInfo]):
	def __init__(self, db: DbAccess, source_path: Path):
		super().__init__(db)
		self.source_path = source_path
		self.__new_blobs = BlobListSummary.zero()
		self.__new_blobs_lock = threading.Lock()

	def __store_blob(self, h: str, content: bytes):
		if self.db.blob_store.store_hashed(h, content):
			with self.__new_blobs_lock:
				self.__new_blobs += BlobListSummary(1, len(content))

	@override
	def run(self) -> SnapshotInfo:
		start_time = time.time()
		self.__new_blobs = BlobListSummary.zero()
		self.logger.info('Scanning directory {!r} for snapshot creation'.format(self.source_path.as_posix()))

		scanner = DirectoryScanner(self.db.hash_method, ignore_patterns=self.config.backup.ignore_patterns, exclude_dirs=[self.db.root])
		scan_result = scanner.scan(self.source_path)

		last_id = self.db.snapshot_store.get_last_id()
		base_flat: Flat
		if last_id is not None:
			base_flat = self.db.reconciler.reconstruct(last_id)
		else:
			base_flat = {}

		# the blob content must be fully written before the record that references it
		stored_hashes = set()
		with FailFastThreadPool(name='blob') as pool:
			for path, h in scan_result.flat.items():
				if h in stored_hashes:
					continue
				stored_hashes.add(h)
				pool.submit(self.__store_blob, h, scan_result.contents[path])

		record = SnapshotRecord(
			id=self.db.allocate_snapshot_id(),
			date=conversion_utils.get_now_iso_str(),
			parent=last_id,
			changes=SnapshotChanges.compute(base_flat, scan_result.flat),
		)
		self.db.snapshot_store.save(record)
		self.db.update_last_snapshot_id(record.id)

		info = SnapshotInfo.of(record, self.db.size_accounting.get_sizes(record.id))
		self.logger.info('Create snapshot #{} done in {:.2f}s, {} files, +{} ~{} -{}, {} new blobs ({})'.format(
			record.id, time.time() - start_time, len(scan_result.flat),
			info.added_count, info.modified_count, info.deleted_count,
			self.__new_blobs.count, ByteCount(self.__new_blobs.size).auto_str(),
		))
		return info
