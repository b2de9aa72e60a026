import logging
from typing import Set, Optional, List

from typing_extensions import override

from chain_backup.action import Action
from chain_backup.db.access import DbAccess
from chain_backup.types.blob_info import BlobInfo, BlobListSummary
from chain_backup.types.units import ByteCount


class DeleteOrphanBlobsAction(Action[BlobListSummary]):
	"""
	Deletes every stored blob that no snapshot references
	"""
	def __init__(self, db: DbAccess, *, file_logger: Optional[logging.Logger] = None):
		super().__init__(db)
		self.file_logger = file_logger

	def __log(self, msg: str):
		self.logger.info(msg)
		if self.file_logger is not None:
			self.file_logger.info(msg)

	def collect_referenced_hashes(self) -> Set[str]:
		referenced: Set[str] = set()
		for record in self.db.snapshot_store.list_snapshots():
			referenced.update(record.changes.iterate_blob_hashes())
		return referenced

	@override
	def run(self) -> BlobListSummary:
		referenced = self.collect_referenced_hashes()
		orphans = [h for h in self.db.blob_store.iterate_blob_hashes() if h not in referenced]

		deleted: List[BlobInfo] = []
		for h in orphans:
			size = self.db.blob_store.delete(h)
			deleted.append(BlobInfo(h, size))
			if self.file_logger is not None:
				self.file_logger.info('Deleted orphan blob {} ({} bytes)'.format(h, size))
		removed_dirs = self.db.blob_store.remove_empty_blob_directories()

		bls = BlobListSummary.of(deleted)
		self.__log('Deleted {} orphan blobs ({}), {} referenced blobs kept, {} empty blob directories removed'.format(
			bls.count, ByteCount(bls.size).auto_str(), len(referenced), removed_dirs,
		))
		return bls
