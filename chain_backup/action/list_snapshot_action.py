from abc import ABC
from typing import List, TypeVar, Optional

from typing_extensions import override

from chain_backup.action import Action
from chain_backup.db.access import DbAccess
from chain_backup.types.snapshot_info import SnapshotInfo

_T = TypeVar('_T')


class _ListSnapshotActionBase(Action[_T], ABC):
	def __init__(self, db: DbAccess, *, limit: Optional[int] = None):
		super().__init__(db)
		self.limit = limit

	def _list_ids(self) -> List[int]:
		ids = self.db.snapshot_store.list_ids()
		if self.limit is not None:
			ids = ids[:self.limit]
		return ids


class ListSnapshotAction(_ListSnapshotActionBase[List[SnapshotInfo]]):
	"""
	Lists all snapshots in the order of creation, with their sizes
	"""
	def __init__(self, db: DbAccess, *, limit: Optional[int] = None, with_sizes: bool = True):
		super().__init__(db, limit=limit)
		self.with_sizes = with_sizes

	@override
	def run(self) -> List[SnapshotInfo]:
		result = []
		for snapshot_id in self._list_ids():
			record = self.db.snapshot_store.load(snapshot_id)
			sizes = self.db.size_accounting.get_sizes(snapshot_id) if self.with_sizes else None
			result.append(SnapshotInfo.of(record, sizes))
		return result


class ListSnapshotIdAction(_ListSnapshotActionBase[List[int]]):
	@override
	def run(self) -> List[int]:
		return self._list_ids()
