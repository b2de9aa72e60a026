import argparse
import dataclasses
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from chain_backup import logger
from chain_backup.cli import cli_utils
from chain_backup.cli.return_codes import ErrorReturnCodes
from chain_backup.config.config import Config, set_config_instance
from chain_backup.db.access import DbAccess


@dataclasses.dataclass(frozen=True)
class CommonCommandArgs:
	db_path: Optional[Path]  # None: use the storage root in the config
	config_path: Optional[Path]


class CliCommandHandlerBase(ABC):
	def __init__(self):
		self.logger: logging.Logger = logger.get()

	@property
	def config(self) -> Config:
		return Config.get()

	@abstractmethod
	def handle(self):
		...

	# ==================== Utils ====================

	def init_environment(self, args: CommonCommandArgs, *, create: bool = True) -> DbAccess:
		if args.config_path is not None:
			try:
				config = Config.load_from_file(args.config_path)
			except (OSError, ValueError, TypeError) as e:
				self.logger.error('Failed to load config file {!r}: {}'.format(args.config_path.as_posix(), e))
				ErrorReturnCodes.invalid_argument.sys_exit()
		else:
			config = Config.get_default()
		if args.db_path is not None:
			config.storage_root = str(args.db_path.as_posix())
		set_config_instance(config)

		self.logger.debug('Storage root set to {!r}'.format(config.storage_root))
		if not create and not config.storage_path.is_dir():
			self.logger.error('Database {!r} does not exist'.format(config.storage_path.as_posix()))
			ErrorReturnCodes.invalid_argument.sys_exit()
		return DbAccess.open(config.storage_path, create=create, config=config)


class CliCommandAdapterBase(ABC):
	@property
	@abstractmethod
	def command(self) -> str:
		raise NotImplementedError()

	@property
	@abstractmethod
	def description(self) -> str:
		raise NotImplementedError()

	@abstractmethod
	def build_parser(self, parser: argparse.ArgumentParser):
		raise NotImplementedError()

	@abstractmethod
	def run(self, args: argparse.Namespace):
		raise NotImplementedError()

	# ==================== Utils ====================

	@classmethod
	def _add_pos_argument_snapshot_id(cls, parser: argparse.ArgumentParser, help_: str):
		parser.add_argument('snapshot_id', type=cli_utils.snapshot_id, help=help_)

	@classmethod
	def _make_common_args(cls, args: argparse.Namespace) -> dict:
		return dict(
			db_path=Path(args.db) if args.db is not None else None,
			config_path=Path(args.config) if args.config is not None else None,
		)
