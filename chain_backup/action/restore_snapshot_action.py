import dataclasses
import os
import posixpath
import time
from pathlib import Path

from typing_extensions import override

from chain_backup.action import Action
from chain_backup.db.access import DbAccess
from chain_backup.exceptions import CorruptedSnapshotRecord
from chain_backup.types.units import ByteCount
from chain_backup.utils import misc_utils


@dataclasses.dataclass(frozen=True)
class RestoreSnapshotResult:
	snapshot_id: int
	output_path: Path
	file_count: int
	total_size: int


class RestoreSnapshotAction(Action[RestoreSnapshotResult]):
	"""
	Writes every file of a snapshot into the output directory.
	Existing files with the same path are overwritten, other existing files are left untouched
	"""
	def __init__(self, db: DbAccess, snapshot_id: int, output_path: Path):
		super().__init__(db)
		self.snapshot_id = misc_utils.ensure_type(snapshot_id, int)
		self.output_path = output_path

	def __check_path(self, path: str):
		# a backslash is a legal file name character, unless the platform treats it as a separator
		if path == '' or path.startswith('/') or (os.altsep is not None and '\\' in path) or Path(path).is_absolute():
			raise CorruptedSnapshotRecord(self.snapshot_id, 'bad file path {!r}'.format(path))
		parts = path.split('/')
		if any(part in ('', '.', '..') for part in parts) or posixpath.normpath(path) != path:
			raise CorruptedSnapshotRecord(self.snapshot_id, 'file path {!r} escapes the output directory'.format(path))

	@override
	def run(self) -> RestoreSnapshotResult:
		start_time = time.time()
		self.logger.info('Restoring snapshot #{} to {!r}'.format(self.snapshot_id, self.output_path.as_posix()))

		flat = self.db.reconciler.reconstruct(self.snapshot_id)
		paths = sorted(flat.keys())
		for path in paths:
			self.__check_path(path)

		self.output_path.mkdir(parents=True, exist_ok=True)
		total_size = 0
		for path in paths:
			content = self.db.blob_store.load(flat[path])
			file_path = self.output_path / path
			file_path.parent.mkdir(parents=True, exist_ok=True)
			with open(file_path, 'wb') as f:
				f.write(content)
			total_size += len(content)
			self.logger.debug('Restored {!r} ({} bytes)'.format(path, len(content)))

		self.logger.info('Restore snapshot #{} done in {:.2f}s, {} files ({})'.format(
			self.snapshot_id, time.time() - start_time, len(paths), ByteCount(total_size).auto_str(),
		))
		return RestoreSnapshotResult(self.snapshot_id, self.output_path, len(paths), total_size)
