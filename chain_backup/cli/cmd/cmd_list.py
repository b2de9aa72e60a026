import argparse
import dataclasses

from typing_extensions import override

from chain_backup.action.list_snapshot_action import ListSnapshotAction
from chain_backup.cli.cmd import CliCommandHandlerBase, CommonCommandArgs, CliCommandAdapterBase
from chain_backup.types.units import ByteCount


@dataclasses.dataclass(frozen=True)
class ListCommandArgs(CommonCommandArgs):
	human: bool


class ListCommandHandler(CliCommandHandlerBase):
	def __init__(self, args: ListCommandArgs):
		super().__init__()
		self.args = args

	def __format_size(self, size: int):
		return ByteCount(size).auto_str() if self.args.human else size

	@override
	def handle(self):
		db = self.init_environment(self.args)

		snapshots = ListSnapshotAction(db).run()
		self.logger.info('Snapshot amount: {}'.format(len(snapshots)))
		if len(snapshots) == 0:
			self.logger.info('No snapshots found')
		for snapshot in snapshots:
			values = {
				'id': snapshot.id,
				'date': repr(snapshot.date_str),
				'size': self.__format_size(snapshot.logical_size),
				'distinct_size': self.__format_size(snapshot.physical_size),
			}
			self.logger.info('%s', ' '.join([f'{k}={v}' for k, v in values.items()]))
		self.logger.info('Total size: {}'.format(self.__format_size(db.size_accounting.db_size())))


class ListCommandAdapter(CliCommandAdapterBase):
	@property
	@override
	def command(self) -> str:
		return 'list'

	@property
	@override
	def description(self) -> str:
		return 'List all snapshots in order of creation'

	@override
	def build_parser(self, parser: argparse.ArgumentParser):
		parser.add_argument('-H', '--human', action='store_true', help='Prettify snapshot sizes, make it human-readable')

	@override
	def run(self, args: argparse.Namespace):
		handler = ListCommandHandler(ListCommandArgs(
			**self._make_common_args(args),
			human=args.human,
		))
		handler.handle()
