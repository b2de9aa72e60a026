from typing_extensions import override

from chain_backup.action import Action
from chain_backup.db.access import DbAccess
from chain_backup.types.snapshot_info import SnapshotInfo
from chain_backup.utils import misc_utils


class GetSnapshotAction(Action[SnapshotInfo]):
	def __init__(self, db: DbAccess, snapshot_id: int, *, with_sizes: bool = True):
		super().__init__(db)
		self.snapshot_id = misc_utils.ensure_type(snapshot_id, int)
		self.with_sizes = with_sizes

	@override
	def run(self) -> SnapshotInfo:
		record = self.db.snapshot_store.load(self.snapshot_id)
		sizes = self.db.size_accounting.get_sizes(record.id) if self.with_sizes else None
		return SnapshotInfo.of(record, sizes)
