import dataclasses

from typing_extensions import override

from chain_backup.action import Action


@dataclasses.dataclass(frozen=True)
class DbOverviewResult:
	db_version: int
	hash_method: str
	last_snapshot_id: int

	snapshot_count: int
	blob_count: int
	blob_size_sum: int


class GetDbOverviewAction(Action[DbOverviewResult]):
	@override
	def run(self) -> DbOverviewResult:
		meta = self.db.get_meta()
		return DbOverviewResult(
			db_version=meta.version,
			hash_method=meta.hash_method.name,
			last_snapshot_id=meta.last_snapshot_id,

			snapshot_count=len(self.db.snapshot_store.list_ids()),
			blob_count=self.db.blob_store.get_blob_count(),
			blob_size_sum=self.db.size_accounting.db_size(),
		)
