import argparse
import dataclasses

from typing_extensions import override

from chain_backup.action.get_db_overview_action import GetDbOverviewAction
from chain_backup.cli.cmd import CliCommandHandlerBase, CommonCommandArgs, CliCommandAdapterBase
from chain_backup.types.units import ByteCount


@dataclasses.dataclass(frozen=True)
class DbOverviewCommandArgs(CommonCommandArgs):
	pass


class DbOverviewCommandHandler(CliCommandHandlerBase):
	def __init__(self, args: DbOverviewCommandArgs):
		super().__init__()
		self.args = args

	@override
	def handle(self):
		db = self.init_environment(self.args, create=False)
		result = GetDbOverviewAction(db).run()
		self.logger.info('DB version: %s', result.db_version)
		self.logger.info('DB path: %s', db.root.as_posix())
		self.logger.info('Hash method: %s', result.hash_method)
		self.logger.info('Snapshot count: %s', result.snapshot_count)
		self.logger.info('Last snapshot id: %s', result.last_snapshot_id)
		self.logger.info('Blob count: %s', result.blob_count)
		self.logger.info('Blob size sum: %s (%s)', result.blob_size_sum, ByteCount(result.blob_size_sum).auto_str())


class DbOverviewCommandAdapter(CliCommandAdapterBase):
	@property
	@override
	def command(self) -> str:
		return 'overview'

	@property
	@override
	def description(self) -> str:
		return 'Show overview information of the database'

	@override
	def build_parser(self, parser: argparse.ArgumentParser):
		pass

	@override
	def run(self, args: argparse.Namespace):
		handler = DbOverviewCommandHandler(DbOverviewCommandArgs(
			**self._make_common_args(args),
		))
		handler.handle()
