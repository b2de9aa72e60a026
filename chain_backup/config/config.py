import functools
import json
import logging
from pathlib import Path
from typing import Optional

from mcdreforged.api.utils import Serializable

from chain_backup import constants
from chain_backup.config.backup_config import BackupConfig
from chain_backup.config.cache_config import CacheConfig


class Config(Serializable):
	debug: bool = False
	storage_root: str = constants.DEFAULT_STORAGE_ROOT
	concurrency: int = 1

	backup: BackupConfig = BackupConfig()
	cache: CacheConfig = CacheConfig()

	# ==================== Instance getters ====================

	@classmethod
	@functools.lru_cache
	def __get_default(cls) -> 'Config':
		return Config.get_default()

	@classmethod
	def get(cls) -> 'Config':
		if _config is None:
			return cls.__get_default()
		return _config

	@classmethod
	def load_from_file(cls, path: Path) -> 'Config':
		with open(path, 'r', encoding='utf8') as f:
			return cls.deserialize(json.load(f))

	# ==================== Field getters ====================

	def get_effective_concurrency(self) -> int:
		if self.concurrency == 0:
			import multiprocessing
			return max(1, int(multiprocessing.cpu_count() * 0.5))
		else:
			return max(1, self.concurrency)

	@property
	def storage_path(self) -> Path:
		return Path(self.storage_root)


_config: Optional[Config] = None


def set_config_instance(cfg: Optional[Config]):
	"""
	:param cfg: The config to use, or None to fall back to the default config
	"""
	global _config
	_config = cfg

	from chain_backup import logger
	logger.get().setLevel(logging.DEBUG if Config.get().debug else logging.INFO)
	if Config.get().debug:
		logger.get().debug('debug on')
