import argparse
import dataclasses

from typing_extensions import override

from chain_backup.action.prune_snapshot_action import PruneSnapshotAction
from chain_backup.cli.cmd import CliCommandHandlerBase, CommonCommandArgs, CliCommandAdapterBase
from chain_backup.types.units import ByteCount


@dataclasses.dataclass(frozen=True)
class PruneCommandArgs(CommonCommandArgs):
	snapshot_id: int


class PruneCommandHandler(CliCommandHandlerBase):
	def __init__(self, args: PruneCommandArgs):
		super().__init__()
		self.args = args

	@override
	def handle(self):
		db = self.init_environment(self.args)
		result = PruneSnapshotAction(db, self.args.snapshot_id).run()
		self.logger.info('Snapshot {} pruned successfully, freed {} blobs ({})'.format(
			result.snapshot.id, result.blobs.count, ByteCount(result.blobs.size).auto_str(),
		))


class PruneCommandAdapter(CliCommandAdapterBase):
	@property
	@override
	def command(self) -> str:
		return 'prune'

	@property
	@override
	def description(self) -> str:
		return 'Remove a snapshot and reclaim the storage no other snapshot needs'

	@override
	def build_parser(self, parser: argparse.ArgumentParser):
		self._add_pos_argument_snapshot_id(parser, 'The ID of the snapshot to prune')

	@override
	def run(self, args: argparse.Namespace):
		handler = PruneCommandHandler(PruneCommandArgs(
			**self._make_common_args(args),
			snapshot_id=args.snapshot_id,
		))
		handler.handle()
