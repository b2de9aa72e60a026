import argparse
from typing import List, Dict, Optional

from chain_backup.cli import cli_utils
from chain_backup.cli.cmd import CliCommandAdapterBase
from chain_backup.cli.cmd.cmd_db_overview import DbOverviewCommandAdapter
from chain_backup.cli.cmd.cmd_list import ListCommandAdapter
from chain_backup.cli.cmd.cmd_prune import PruneCommandAdapter
from chain_backup.cli.cmd.cmd_restore import RestoreCommandAdapter
from chain_backup.cli.cmd.cmd_snapshot import SnapshotCommandAdapter
from chain_backup.cli.cmd.cmd_validate import ValidateCommandAdapter
from chain_backup.cli.return_codes import ErrorReturnCodes
from chain_backup.config.config import Config
from chain_backup.exceptions import ChainBackupError, SnapshotNotFound, BlobNotFound, CorruptedSnapshotRecord, BadDbMeta
from chain_backup.logger import get as get_logger
from chain_backup.utils import log_utils

__all__ = ['CliEntrypoint', 'cli_entry']


def __prepare_logger():
	logger = get_logger()
	assert len(logger.handlers) == 1
	logger.handlers[0].setFormatter(log_utils.LOG_FORMATTER_NO_FUNC)


__prepare_logger()
DEFAULT_STORAGE_ROOT = Config.get_default().storage_root


class CliEntrypoint:
	def __init__(self):
		self.logger = get_logger()
		self.adaptors = self.__create_command_adapters()

	@classmethod
	def __create_command_adapters(cls) -> Dict[str, CliCommandAdapterBase]:
		all_adapters: List[CliCommandAdapterBase] = [
			DbOverviewCommandAdapter(),
			ListCommandAdapter(),
			PruneCommandAdapter(),
			RestoreCommandAdapter(),
			SnapshotCommandAdapter(),
			ValidateCommandAdapter(),
		]
		adaptor_by_command = {adapter.command: adapter for adapter in all_adapters}

		if len(all_adapters) != len(adaptor_by_command):
			raise AssertionError(all_adapters, adaptor_by_command)

		return adaptor_by_command

	def main(self, argv: Optional[List[str]] = None):
		parser = argparse.ArgumentParser(prog='chain-backup', description='Chain Backup v{} CLI tools'.format(cli_utils.get_version()), formatter_class=argparse.ArgumentDefaultsHelpFormatter)
		parser.add_argument('-d', '--db', default=None, help='Path to the database directory. Default: the storage root in the config, which defaults to {!r}'.format(DEFAULT_STORAGE_ROOT))
		parser.add_argument('-c', '--config', default=None, help='Path to a json config file')
		subparsers = parser.add_subparsers(title='Command', help='Available commands', dest='command')

		for adapter in self.adaptors.values():
			subparser = subparsers.add_parser(adapter.command, help=adapter.description, description=adapter.description)
			adapter.build_parser(subparser)

		args = parser.parse_args(argv)
		if args.command is None:
			parser.print_help()
			return

		adapter = self.adaptors.get(args.command)
		if adapter is None:
			self.logger.error('Unknown command {!r}'.format(args.command))
			ErrorReturnCodes.invalid_argument.sys_exit()

		try:
			adapter.run(args)
		except SnapshotNotFound as e:
			self.logger.error('Snapshot #{} does not exist'.format(e.snapshot_id))
			ErrorReturnCodes.snapshot_not_found.sys_exit()
		except BlobNotFound as e:
			self.logger.error('Blob {} does not exist'.format(e.blob_hash))
			ErrorReturnCodes.blob_not_found.sys_exit()
		except CorruptedSnapshotRecord as e:
			self.logger.error('Snapshot #{} is corrupted: {}'.format(e.snapshot_id, e.reason))
			ErrorReturnCodes.corrupted_record.sys_exit()
		except BadDbMeta as e:
			self.logger.error('Failed to open the database: {}'.format(e))
			ErrorReturnCodes.action_failed.sys_exit()
		except ChainBackupError as e:
			self.logger.error('Command {!r} failed: {}'.format(args.command, e))
			ErrorReturnCodes.action_failed.sys_exit()
		except OSError as e:
			self.logger.error('Command {!r} failed: {}'.format(args.command, e))
			ErrorReturnCodes.action_failed.sys_exit()


def cli_entry():
	CliEntrypoint().main()
