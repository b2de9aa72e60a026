import dataclasses
import functools
import re
from typing import Dict, List, Optional, Iterator, Any

from typing_extensions import Self

from chain_backup.utils import conversion_utils, misc_utils

Flat = Dict[str, str]  # posix path, related to the snapshot source directory -> blob hash
_BLOB_HASH_PATTERN = re.compile(r'[0-9a-f]{3,}')


def _ensure_str_dict(value: Any, what: str) -> Dict[str, str]:
	if not isinstance(value, dict):
		raise TypeError('{} should be a dict, found {}'.format(what, type(value)))
	for k, v in value.items():
		if not isinstance(k, str) or not isinstance(v, str):
			raise TypeError('{} should only contain str -> str, found {!r}: {!r}'.format(what, k, v))
		if not _BLOB_HASH_PATTERN.fullmatch(v):
			raise ValueError('{} contains a bad blob hash {!r}'.format(what, v))
	return value


@dataclasses.dataclass(frozen=True)
class SnapshotChanges:
	added: Dict[str, str] = dataclasses.field(default_factory=dict)
	modified: Dict[str, str] = dataclasses.field(default_factory=dict)
	deleted: List[str] = dataclasses.field(default_factory=list)

	@classmethod
	def compute(cls, old_flat: Flat, new_flat: Flat) -> Self:
		"""
		The changes that turn old_flat into new_flat
		"""
		added: Dict[str, str] = {}
		modified: Dict[str, str] = {}
		for path, blob_hash in new_flat.items():
			old_hash = old_flat.get(path)
			if old_hash is None:
				added[path] = blob_hash
			elif old_hash != blob_hash:
				modified[path] = blob_hash
		deleted = sorted(path for path in old_flat.keys() if path not in new_flat)
		return cls(added=added, modified=modified, deleted=deleted)

	def apply_to(self, flat: Flat):
		"""
		Apply the changes to the given flat in place
		"""
		flat.update(self.added)
		flat.update(self.modified)
		for path in self.deleted:
			flat.pop(path, None)

	def iterate_blob_hashes(self) -> Iterator[str]:
		yield from self.added.values()
		yield from self.modified.values()

	def is_empty(self) -> bool:
		return len(self.added) == 0 and len(self.modified) == 0 and len(self.deleted) == 0

	def to_dict(self) -> dict:
		return {
			'added': dict(self.added),
			'modified': dict(self.modified),
			'deleted': list(self.deleted),
		}

	@classmethod
	def from_dict(cls, data: Any) -> Self:
		if not isinstance(data, dict):
			raise TypeError('changes should be a dict, found {}'.format(type(data)))
		added = _ensure_str_dict(data.get('added', {}), 'changes.added')
		modified = _ensure_str_dict(data.get('modified', {}), 'changes.modified')
		deleted = data.get('deleted', [])
		if not isinstance(deleted, list) or not all(isinstance(p, str) for p in deleted):
			raise TypeError('changes.deleted should be a list of str, found {!r}'.format(deleted))

		seen: Dict[str, str] = {}
		for what, paths in [('added', added.keys()), ('modified', modified.keys()), ('deleted', deleted)]:
			for path in paths:
				if path in seen:
					raise ValueError('path {!r} appears in both changes.{} and changes.{}'.format(path, seen[path], what))
				seen[path] = what
		return cls(added=dict(added), modified=dict(modified), deleted=list(deleted))


@dataclasses.dataclass(frozen=True)
class SnapshotRecord:
	id: int
	date: str  # ISO-8601
	parent: Optional[int]
	changes: SnapshotChanges

	def to_dict(self) -> dict:
		return {
			'id': self.id,
			'date': self.date,
			'parent': self.parent,
			'changes': self.changes.to_dict(),
		}

	@classmethod
	def from_dict(cls, data: Any) -> Self:
		if not isinstance(data, dict):
			raise TypeError('record should be a dict, found {}'.format(type(data)))
		snapshot_id = data['id']
		if isinstance(snapshot_id, bool) or not isinstance(snapshot_id, int) or snapshot_id <= 0:
			raise ValueError('bad snapshot id {!r}'.format(snapshot_id))
		parent = data['parent']
		if parent is not None and (isinstance(parent, bool) or not isinstance(parent, int) or parent <= 0):
			raise ValueError('bad parent id {!r}'.format(parent))
		if parent == snapshot_id:
			raise ValueError('snapshot is the parent of itself')
		return cls(
			id=snapshot_id,
			date=misc_utils.ensure_type(data['date'], str),
			parent=parent,
			changes=SnapshotChanges.from_dict(data['changes']),
		)


@dataclasses.dataclass(frozen=True)
class SnapshotSizes:
	logical: int  # total size of all files visible in the snapshot
	physical: int  # size of blobs introduced by the snapshot, and referenced by no ancestor


@dataclasses.dataclass(frozen=True)
class SnapshotInfo:
	id: int
	date: str
	parent: Optional[int]

	added_count: int
	modified_count: int
	deleted_count: int

	logical_size: int
	physical_size: int

	@functools.cached_property
	def date_str(self) -> str:
		return conversion_utils.iso_str_to_local_date_str(self.date)

	@classmethod
	def of(cls, record: SnapshotRecord, sizes: Optional[SnapshotSizes] = None) -> Self:
		return cls(
			id=record.id,
			date=record.date,
			parent=record.parent,
			added_count=len(record.changes.added),
			modified_count=len(record.changes.modified),
			deleted_count=len(record.changes.deleted),
			logical_size=sizes.logical if sizes is not None else 0,
			physical_size=sizes.physical if sizes is not None else 0,
		)
