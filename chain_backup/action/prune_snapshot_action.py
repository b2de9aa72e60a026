import dataclasses
import logging

from typing_extensions import override

from chain_backup.action import Action
from chain_backup.action.delete_blob_action import DeleteOrphanBlobsAction
from chain_backup.db.access import DbAccess
from chain_backup.types.blob_info import BlobListSummary
from chain_backup.types.snapshot_info import SnapshotInfo, SnapshotRecord, SnapshotChanges, Flat
from chain_backup.types.units import ByteCount
from chain_backup.utils import misc_utils, log_utils


@dataclasses.dataclass(frozen=True)
class PruneSnapshotResult:
	snapshot: SnapshotInfo
	blobs: BlobListSummary


class PruneSnapshotAction(Action[PruneSnapshotResult]):
	"""
	Removes a snapshot from the chain, then reclaims the blobs that are no longer referenced.
	Every remaining snapshot still reconstructs to the same files
	"""
	def __init__(self, db: DbAccess, snapshot_id: int):
		super().__init__(db)
		self.snapshot_id = misc_utils.ensure_type(snapshot_id, int)

	@override
	def run(self) -> PruneSnapshotResult:
		with log_utils.open_file_logger('prune', self.db.logs_path) as prune_logger:
			return self.__run(prune_logger)

	def __run(self, prune_logger: logging.Logger) -> PruneSnapshotResult:
		def log(msg: str):
			self.logger.info(msg)
			prune_logger.info(msg)

		log('Pruning snapshot #{}'.format(self.snapshot_id))
		record = self.db.snapshot_store.load(self.snapshot_id)
		snapshot_info = SnapshotInfo.of(record)

		successor = self.db.snapshot_store.find_successor(record.id)
		if successor is not None:
			# both states are computed before anything is touched
			successor_flat = self.db.reconciler.reconstruct(successor.id)
			parent_flat: Flat = self.db.reconciler.reconstruct(record.parent) if record.parent is not None else {}

			rebased = SnapshotRecord(
				id=successor.id,
				date=successor.date,
				parent=record.parent,
				changes=SnapshotChanges.compute(parent_flat, successor_flat),
			)
			self.db.snapshot_store.save(rebased)
			self.db.on_chain_modified()
			log('Rebased successor #{} onto {}, changes: +{} ~{} -{}'.format(
				rebased.id, '#{}'.format(rebased.parent) if rebased.parent is not None else 'nothing',
				len(rebased.changes.added), len(rebased.changes.modified), len(rebased.changes.deleted),
			))
		else:
			log('Snapshot #{} has no successor'.format(record.id))

		self.db.snapshot_store.delete(record.id)
		# the rebase keeps the flat state of every remaining snapshot, only the deleted one is stale
		self.db.reconciler.invalidate(record.id)
		log('Deleted snapshot record #{}'.format(record.id))

		bls = DeleteOrphanBlobsAction(self.db, file_logger=prune_logger).run()

		log('Prune snapshot #{} done, -{} blobs ({})'.format(record.id, bls.count, ByteCount(bls.size).auto_str()))
		return PruneSnapshotResult(snapshot_info, bls)
