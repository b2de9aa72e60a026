import json
import logging
import threading
from pathlib import Path
from typing import Optional

from chain_backup.config.config import Config
from chain_backup.db import db_constants
from chain_backup.db.blob_store import BlobStore
from chain_backup.db.reconciler import SnapshotReconciler
from chain_backup.db.size_accounting import SizeAccounting
from chain_backup.db.snapshot_store import SnapshotStore
from chain_backup.exceptions import BadDbMeta
from chain_backup.types.db_meta_info import DbMetaInfo
from chain_backup.types.hash_method import HashMethod
from chain_backup.utils import file_utils


class DbAccess:
	"""
	Handle of an opened database directory. All caches live in the handle
	"""

	def __init__(self, root: Path, meta: DbMetaInfo, *, config: Optional[Config] = None, logger: Optional[logging.Logger] = None):
		if config is None:
			config = Config.get()
		if logger is None:
			from chain_backup import logger as logger_
			logger = logger_.get()

		self.root = root
		self.config = config
		self.logger = logger
		self.__meta = meta
		self.__meta_lock = threading.Lock()

		self.blob_store = BlobStore(self.blobs_path, self.temp_path, meta.hash_method, logger)
		self.snapshot_store = SnapshotStore(self.snapshots_path, self.temp_path, config.cache.snapshot_cache_size, logger)
		self.reconciler = SnapshotReconciler(self.snapshot_store, config.cache.flat_state_cache_size, logger)
		self.size_accounting = SizeAccounting(self.blob_store, self.snapshot_store, self.reconciler, logger)

	@classmethod
	def open(cls, storage_path: Optional[Path] = None, *, create: bool = True, config: Optional[Config] = None) -> 'DbAccess':
		"""
		:param storage_path: the database root directory. Default: the storage root in the config
		:param create: create the database if it does not exist yet
		:raise FileNotFoundError: if the database does not exist and create is False
		:raise BadDbMeta: if the meta file is unreadable
		"""
		if config is None:
			config = Config.get()
		if storage_path is None:
			storage_path = config.storage_path

		meta_path = storage_path / db_constants.META_FILE_NAME
		if not create and not storage_path.is_dir():
			raise FileNotFoundError('database at {} does not exist'.format(storage_path))

		fresh = not storage_path.is_dir() or not any(storage_path.iterdir())
		for name in [db_constants.BLOBS_DIR_NAME, db_constants.SNAPSHOTS_DIR_NAME, db_constants.TEMP_DIR_NAME]:
			(storage_path / name).mkdir(parents=True, exist_ok=True)

		# leftovers from interrupted writes
		temp_path = storage_path / db_constants.TEMP_DIR_NAME
		for p in list(temp_path.iterdir()):
			file_utils.rm_rf(p, missing_ok=True)

		if meta_path.is_file():
			meta = cls.__read_meta(meta_path)
			write_meta = False
		else:
			# a database without meta file predates the meta file, and uses sha256
			hash_method = config.backup.hash_method if fresh else HashMethod.sha256
			meta = DbMetaInfo(version=db_constants.DB_VERSION, hash_method=hash_method, last_snapshot_id=0)
			write_meta = True

		if meta.version > db_constants.DB_VERSION:
			raise BadDbMeta('database version {} is newer than the supported version {}'.format(meta.version, db_constants.DB_VERSION))

		db = cls(storage_path, meta, config=config)
		if write_meta:
			db.__write_meta(meta)
			db.logger.info('Initialized database at {} with hash method {}'.format(storage_path, meta.hash_method.name))
		return db

	@staticmethod
	def __read_meta(meta_path: Path) -> DbMetaInfo:
		try:
			with open(meta_path, 'rb') as f:
				data = json.load(f)
			return DbMetaInfo.from_dict(data)
		except ValueError as e:
			raise BadDbMeta(str(e)) from e

	def __write_meta(self, meta: DbMetaInfo):
		data = json.dumps(meta.to_dict(), indent=2).encode('utf8')
		file_utils.write_file_atomic(self.meta_path, data, temp_dir=self.temp_path)

	# ==================== Paths ====================

	@property
	def meta_path(self) -> Path:
		return self.root / db_constants.META_FILE_NAME

	@property
	def blobs_path(self) -> Path:
		return self.root / db_constants.BLOBS_DIR_NAME

	@property
	def snapshots_path(self) -> Path:
		return self.root / db_constants.SNAPSHOTS_DIR_NAME

	@property
	def temp_path(self) -> Path:
		return self.root / db_constants.TEMP_DIR_NAME

	@property
	def logs_path(self) -> Path:
		return self.root / db_constants.LOGS_DIR_NAME

	# ==================== Meta ====================

	@property
	def hash_method(self) -> HashMethod:
		return self.__meta.hash_method

	def get_meta(self) -> DbMetaInfo:
		with self.__meta_lock:
			return self.__meta

	def allocate_snapshot_id(self) -> int:
		"""
		The id for the next snapshot. Ids of pruned snapshots are never handed out again
		"""
		last_id = self.snapshot_store.get_last_id() or 0
		return max(last_id, self.get_meta().last_snapshot_id) + 1

	def update_last_snapshot_id(self, snapshot_id: int):
		with self.__meta_lock:
			if snapshot_id <= self.__meta.last_snapshot_id:
				return
			meta = DbMetaInfo(version=self.__meta.version, hash_method=self.__meta.hash_method, last_snapshot_id=snapshot_id)
			self.__write_meta(meta)
			self.__meta = meta

	def on_chain_modified(self):
		"""
		Call this after a parent rewrite or a record deletion
		"""
		self.reconciler.invalidate_all()
