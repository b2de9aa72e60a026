import argparse
import dataclasses
from pathlib import Path

from typing_extensions import override

from chain_backup.action.restore_snapshot_action import RestoreSnapshotAction
from chain_backup.cli.cmd import CliCommandHandlerBase, CommonCommandArgs, CliCommandAdapterBase
from chain_backup.cli.return_codes import ErrorReturnCodes


@dataclasses.dataclass(frozen=True)
class RestoreCommandArgs(CommonCommandArgs):
	snapshot_id: int
	output_path: Path


class RestoreCommandHandler(CliCommandHandlerBase):
	def __init__(self, args: RestoreCommandArgs):
		super().__init__()
		self.args = args

	@override
	def handle(self):
		if self.args.output_path.exists() and not self.args.output_path.is_dir():
			self.logger.error('Restore target {!r} exists and is not a directory'.format(self.args.output_path.as_posix()))
			ErrorReturnCodes.invalid_argument.sys_exit()

		db = self.init_environment(self.args)
		result = RestoreSnapshotAction(db, self.args.snapshot_id, self.args.output_path).run()
		self.logger.info('Snapshot {} restored to target {!r}, {} files'.format(result.snapshot_id, result.output_path.as_posix(), result.file_count))


class RestoreCommandAdapter(CliCommandAdapterBase):
	@property
	@override
	def command(self) -> str:
		return 'restore'

	@property
	@override
	def description(self) -> str:
		return 'Restore a snapshot to the target directory'

	@override
	def build_parser(self, parser: argparse.ArgumentParser):
		self._add_pos_argument_snapshot_id(parser, 'The ID of the snapshot to restore')
		parser.add_argument('target', help='The directory to restore the snapshot into')

	@override
	def run(self, args: argparse.Namespace):
		handler = RestoreCommandHandler(RestoreCommandArgs(
			**self._make_common_args(args),
			snapshot_id=args.snapshot_id,
			output_path=Path(args.target),
		))
		handler.handle()
