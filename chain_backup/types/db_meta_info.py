import dataclasses
from typing import Any

from typing_extensions import Self

from chain_backup.types.hash_method import HashMethod


@dataclasses.dataclass(frozen=True)
class DbMetaInfo:
	version: int
	hash_method: HashMethod
	last_snapshot_id: int = 0  # the largest snapshot id ever allocated, so pruned ids are never reused

	def to_dict(self) -> dict:
		return {
			'version': self.version,
			'hash_method': self.hash_method.name,
			'last_snapshot_id': self.last_snapshot_id,
		}

	@classmethod
	def from_dict(cls, data: Any) -> Self:
		"""
		:raise ValueError: if the data is malformed
		"""
		if not isinstance(data, dict):
			raise ValueError('meta should be a dict, found {}'.format(type(data)))
		version = data.get('version')
		if isinstance(version, bool) or not isinstance(version, int):
			raise ValueError('bad version {!r}'.format(version))
		try:
			hash_method = HashMethod[data.get('hash_method')]
		except (KeyError, TypeError):
			raise ValueError('unknown hash method {!r}'.format(data.get('hash_method'))) from None
		last_snapshot_id = data.get('last_snapshot_id', 0)
		if isinstance(last_snapshot_id, bool) or not isinstance(last_snapshot_id, int) or last_snapshot_id < 0:
			raise ValueError('bad last_snapshot_id {!r}'.format(last_snapshot_id))
		return cls(version=version, hash_method=hash_method, last_snapshot_id=last_snapshot_id)
