import os
import sys
import tempfile
import unittest
from pathlib import Path
from typing import Dict, Union

from typing_extensions import override

from chain_backup.action.create_snapshot_action import CreateSnapshotAction
from chain_backup.config.config import Config, set_config_instance
from chain_backup.db.access import DbAccess
from chain_backup.types.snapshot_info import SnapshotInfo


def read_tree(root: Path) -> Dict[str, bytes]:
	"""
	posix path, related to root -> file content, for every regular file under root
	"""
	result: Dict[str, bytes] = {}
	for dir_path, _, file_names in os.walk(root):
		for name in file_names:
			path = Path(dir_path) / name
			result[path.relative_to(root).as_posix()] = path.read_bytes()
	return result


class DbTestCaseBase(unittest.TestCase):
	"""
	Provides a fresh database and an empty source directory in a temporary directory
	"""

	@override
	def setUp(self):
		self.__temp_dir = tempfile.TemporaryDirectory()
		self.temp_path = Path(self.__temp_dir.name)
		self.source_path = self.temp_path / 'source'
		self.source_path.mkdir()
		self.db_path = self.temp_path / 'db'

		self.config = Config.get_default()
		self.config.storage_root = str(self.db_path)
		self.configure(self.config)
		set_config_instance(self.config)
		self.db = DbAccess.open(self.db_path, config=self.config)

	@override
	def tearDown(self):
		set_config_instance(None)
		self.__temp_dir.cleanup()

	def configure(self, config: Config):
		pass

	def reopen_db(self) -> DbAccess:
		self.db = DbAccess.open(self.db_path, create=False, config=self.config)
		return self.db

	def write_file(self, rel_path: str, content: Union[bytes, str]):
		if isinstance(content, str):
			content = content.encode('utf8')
		path = self.source_path / rel_path
		path.parent.mkdir(parents=True, exist_ok=True)
		path.write_bytes(content)

	def remove_file(self, rel_path: str):
		(self.source_path / rel_path).unlink()

	def create_snapshot(self) -> SnapshotInfo:
		return CreateSnapshotAction(self.db, self.source_path).run()

	def write_file_with_undecodable_name(self, content: bytes):
		if os.name == 'nt' or sys.getfilesystemencoding().lower() not in ('utf-8', 'utf8'):
			self.skipTest('undecodable file names are not supported on this platform')
		path = os.path.join(os.fsencode(self.source_path), b'bad\xff.txt')
		try:
			with open(path, 'wb') as f:
				f.write(content)
		except OSError:
			self.skipTest('the file system rejects undecodable file names')
