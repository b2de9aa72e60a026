import json
import logging
import os
import re
import threading
from pathlib import Path
from typing import List, Optional

from chain_backup.exceptions import SnapshotNotFound, CorruptedSnapshotRecord
from chain_backup.types.snapshot_info import SnapshotRecord
from chain_backup.utils import file_utils
from chain_backup.utils.lru_dict import LruDict

_RECORD_FILE_PATTERN = re.compile(r'([1-9]\d*)\.json', re.ASCII)


class SnapshotStore:
	"""
	Persistence of the snapshot chain. Each snapshot is stored as <snapshots>/<id>.json
	"""

	def __init__(self, snapshots_path: Path, temp_path: Path, cache_size: int, logger: logging.Logger):
		self.snapshots_path = snapshots_path
		self.temp_path = temp_path
		self.logger = logger
		self.__cache: LruDict[int, SnapshotRecord] = LruDict(cache_size)
		self.__cache_lock = threading.Lock()

	def __get_record_path(self, snapshot_id: int) -> Path:
		return self.snapshots_path / f'{snapshot_id}.json'

	def list_ids(self) -> List[int]:
		if not self.snapshots_path.is_dir():
			return []
		ids = []
		for name in os.listdir(self.snapshots_path):
			if (match := _RECORD_FILE_PATTERN.fullmatch(name)) is not None:
				ids.append(int(match.group(1)))
		ids.sort()
		return ids

	def get_last_id(self) -> Optional[int]:
		ids = self.list_ids()
		return ids[-1] if len(ids) > 0 else None

	def load_opt(self, snapshot_id: int) -> Optional[SnapshotRecord]:
		with self.__cache_lock:
			record = self.__cache.get(snapshot_id, None)
		if record is not None:
			return record

		try:
			with open(self.__get_record_path(snapshot_id), 'rb') as f:
				buf = f.read()
		except FileNotFoundError:
			return None

		try:
			record = SnapshotRecord.from_dict(json.loads(buf))
		except (ValueError, TypeError, KeyError) as e:
			raise CorruptedSnapshotRecord(snapshot_id, '{}: {}'.format(type(e).__name__, e)) from e
		if record.id != snapshot_id:
			raise CorruptedSnapshotRecord(snapshot_id, 'record id mismatch, found {}'.format(record.id))

		with self.__cache_lock:
			self.__cache.set(snapshot_id, record)
		return record

	def load(self, snapshot_id: int) -> SnapshotRecord:
		record = self.load_opt(snapshot_id)
		if record is None:
			raise SnapshotNotFound(snapshot_id)
		return record

	def save(self, record: SnapshotRecord):
		self.snapshots_path.mkdir(parents=True, exist_ok=True)
		data = json.dumps(record.to_dict(), indent=2, ensure_ascii=False).encode('utf8')
		file_utils.write_file_atomic(self.__get_record_path(record.id), data, temp_dir=self.temp_path)
		with self.__cache_lock:
			self.__cache.set(record.id, record)
		self.logger.debug('Saved snapshot record #{} (parent {})'.format(record.id, record.parent))

	def delete(self, snapshot_id: int):
		with self.__cache_lock:
			self.__cache.pop(snapshot_id, None)
		try:
			self.__get_record_path(snapshot_id).unlink()
		except FileNotFoundError:
			raise SnapshotNotFound(snapshot_id) from None
		self.logger.debug('Deleted snapshot record #{}'.format(snapshot_id))

	def list_snapshots(self) -> List[SnapshotRecord]:
		return [self.load(snapshot_id) for snapshot_id in self.list_ids()]

	def find_successor(self, snapshot_id: int) -> Optional[SnapshotRecord]:
		"""
		:return: the record whose parent is the given snapshot, or None if it's the chain tip
		"""
		successors = [record for record in self.list_snapshots() if record.parent == snapshot_id]
		if len(successors) > 1:
			raise CorruptedSnapshotRecord(snapshot_id, 'multiple successors found: {}'.format([r.id for r in successors]))
		return successors[0] if len(successors) > 0 else None

	def clear_cache(self):
		with self.__cache_lock:
			self.__cache.clear()
