import dataclasses
import functools
import hashlib
import os
import random
import shutil
import string
import tempfile
import unittest
from pathlib import Path
from typing import Dict, List

from typing_extensions import Self, override

from chain_backup import logger
from chain_backup.action.create_snapshot_action import CreateSnapshotAction
from chain_backup.action.get_db_overview_action import GetDbOverviewAction
from chain_backup.action.prune_snapshot_action import PruneSnapshotAction
from chain_backup.action.restore_snapshot_action import RestoreSnapshotAction
from chain_backup.action.validate_db_action import ValidateDbAction
from chain_backup.config.config import Config, set_config_instance
from chain_backup.db.access import DbAccess


@dataclasses.dataclass
class _TestStats:
	file_create: int = 0
	file_rewrite: int = 0
	file_delete: int = 0
	dir_create: int = 0
	dir_remove: int = 0
	snapshot_create: int = 0
	snapshot_prune: int = 0
	snapshot_restore: int = 0

	@classmethod
	@functools.lru_cache(None)
	def get(cls) -> Self:
		return cls()

	def reset(self) -> None:
		# noinspection PyTypeChecker
		for field in dataclasses.fields(self):
			if field.type is int:
				setattr(self, field.name, 0)


def _read_tree_digests(root: Path) -> Dict[str, str]:
	result: Dict[str, str] = {}
	for dir_path, _, file_names in os.walk(root):
		for name in file_names:
			path = Path(dir_path) / name
			result[path.relative_to(root).as_posix()] = hashlib.sha256(path.read_bytes()).hexdigest()
	return result


class FuzzyEnvironment:
	MAX_DEPTH: int = 4
	MAX_FILE_SIZE: int = 16 * 1024

	def __init__(self, base_path: Path, rnd: random.Random):
		self.base_path = base_path
		self.rnd = rnd
		self.logger = logger.get()
		self.__contents: List[bytes] = []  # for reusing, so that dedup happens

	def __random_string(self, length: int) -> str:
		return ''.join(self.rnd.choices(string.ascii_lowercase + string.digits, k=length))

	def __random_content(self) -> bytes:
		if self.__contents and self.rnd.random() < 0.2:
			return self.rnd.choice(self.__contents)
		buf = self.rnd.randbytes(self.rnd.randint(0, self.MAX_FILE_SIZE))
		if len(self.__contents) < 200:
			self.__contents.append(buf)
		return buf

	def __all_dirs(self) -> List[Path]:
		return [self.base_path, *sorted(p for p in self.base_path.rglob('*') if p.is_dir())]

	def __all_files(self) -> List[Path]:
		return sorted(p for p in self.base_path.rglob('*') if p.is_file())

	def iterate_once(self):
		for file_path in self.__all_files():
			r = self.rnd.random()
			if r < 0.05:
				self.logger.debug(f'ENV: remove file {file_path}')
				file_path.unlink()
				_TestStats.get().file_delete += 1
			elif r < 0.15:
				self.logger.debug(f'ENV: rewrite file {file_path}')
				file_path.write_bytes(self.__random_content())
				_TestStats.get().file_rewrite += 1

		dirs = self.__all_dirs()
		for dir_path in dirs[1:]:
			if self.rnd.random() < 0.01 and dir_path.is_dir():
				self.logger.debug(f'ENV: remove dir {dir_path}')
				shutil.rmtree(dir_path)
				_TestStats.get().dir_remove += 1

		dirs = self.__all_dirs()
		for _ in range(self.rnd.randint(0, 6)):
			target_dir = self.rnd.choice(dirs)
			if self.rnd.random() < 0.2 and len(target_dir.relative_to(self.base_path).parts) < self.MAX_DEPTH:
				new_dir = target_dir / self.__random_string(5)
				new_dir.mkdir(exist_ok=True)
				dirs.append(new_dir)
				_TestStats.get().dir_create += 1
			else:
				file_path = target_dir / f'{self.__random_string(6)}.{self.rnd.choice(["txt", "bin", "dat"])}'
				file_path.write_bytes(self.__random_content())
				_TestStats.get().file_create += 1


class FuzzyRunTestCase(unittest.TestCase):
	def __init__(self, *args, **kwargs):
		super().__init__(*args, **kwargs)
		self.logger = logger.get()

	@override
	def setUp(self):
		_TestStats.get().reset()
		self.__temp_dir = tempfile.TemporaryDirectory()
		self.temp_path = Path(self.__temp_dir.name)

		config = Config.get_default()
		config.storage_root = str(self.temp_path / 'db')
		set_config_instance(config)

	@override
	def tearDown(self):
		set_config_instance(None)
		self.__temp_dir.cleanup()

	def test_fuzzy_run(self):
		seed = int(os.environ.get('CHAIN_BACKUP_FUZZY_TEST_SEED', '0'))
		iterations = int(os.environ.get('CHAIN_BACKUP_FUZZY_TEST_ITERATION', '60'))
		self.logger.info(f'Random seed: {seed}')
		self.logger.info(f'Iterations: {iterations}')
		rnd = random.Random(seed)

		source_path = self.temp_path / 'source'
		source_path.mkdir()
		db = DbAccess.open(Config.get().storage_path)
		env = FuzzyEnvironment(source_path, rnd)

		expected: Dict[int, Dict[str, str]] = {}
		restore_counter = 0

		def restore_and_check(sid: int, i_: int):
			nonlocal restore_counter
			restore_counter += 1
			output = self.temp_path / f'restore_{restore_counter}'
			RestoreSnapshotAction(db, sid, output).run()
			self.assertEqual(expected[sid], _read_tree_digests(output), f'Snapshot {sid} mismatch at iteration {i_}')
			shutil.rmtree(output)
			_TestStats.get().snapshot_restore += 1

		def validate_all(i_: int):
			for sid in expected.keys():
				restore_and_check(sid, i_)
			result = ValidateDbAction(db).run()
			self.assertTrue(result.ok, f'Validation failed at iteration {i_}: {result}')

		for i in range(iterations):
			self.logger.info(f'============================== Iteration {i} ==============================')
			env.iterate_once()

			if rnd.random() < 0.7:
				before = _read_tree_digests(source_path)
				info = CreateSnapshotAction(db, source_path).run()
				self.assertEqual(before, _read_tree_digests(source_path), f'Snapshot creation modified the source at iteration {i}')
				self.assertEqual(before, db.reconciler.reconstruct(info.id))
				expected[info.id] = before
				_TestStats.get().snapshot_create += 1

			if expected and rnd.random() < 0.2:
				sid = rnd.choice(list(expected.keys()))
				PruneSnapshotAction(db, sid).run()
				expected.pop(sid)
				_TestStats.get().snapshot_prune += 1

			if expected and rnd.random() < 0.1:
				restore_and_check(rnd.choice(list(expected.keys())), i)

			if i % 20 == 0 or i == iterations - 1:
				self.logger.info('Validating everything at iteration {}'.format(i))
				validate_all(i)

			self.logger.info('Test stats: {}'.format(_TestStats.get()))

		# prune everything, in random order
		ids = list(expected.keys())
		rnd.shuffle(ids)
		for sid in ids:
			PruneSnapshotAction(db, sid).run()
			expected.pop(sid)
			if rnd.random() < 0.3:
				validate_all(iterations)

		overview = GetDbOverviewAction(db).run()
		self.logger.info(f'Checking if the database is empty: {overview}')
		self.assertEqual(0, overview.snapshot_count)
		self.assertEqual(0, overview.blob_count)
		self.assertEqual(0, overview.blob_size_sum)

		self.logger.info('Fuzzy test passed')
		self.logger.info('Final test stats: {}'.format(_TestStats.get()))


if __name__ == '__main__':
	unittest.main()
