import argparse
import dataclasses
from pathlib import Path

from typing_extensions import override

from chain_backup.action.create_snapshot_action import CreateSnapshotAction
from chain_backup.cli.cmd import CliCommandHandlerBase, CommonCommandArgs, CliCommandAdapterBase
from chain_backup.cli.return_codes import ErrorReturnCodes
from chain_backup.types.units import ByteCount


@dataclasses.dataclass(frozen=True)
class SnapshotCommandArgs(CommonCommandArgs):
	source_path: Path


class SnapshotCommandHandler(CliCommandHandlerBase):
	def __init__(self, args: SnapshotCommandArgs):
		super().__init__()
		self.args = args

	@override
	def handle(self):
		if not self.args.source_path.is_dir():
			self.logger.error('Snapshot target {!r} is not an existing directory'.format(self.args.source_path.as_posix()))
			ErrorReturnCodes.invalid_argument.sys_exit()

		db = self.init_environment(self.args)
		info = CreateSnapshotAction(db, self.args.source_path).run()
		self.logger.info('Snapshot #{} created for target {!r}, size {} (+{})'.format(
			info.id, self.args.source_path.as_posix(),
			ByteCount(info.logical_size).auto_str(), ByteCount(info.physical_size).auto_str(),
		))


class SnapshotCommandAdapter(CliCommandAdapterBase):
	@property
	@override
	def command(self) -> str:
		return 'snapshot'

	@property
	@override
	def description(self) -> str:
		return 'Snapshot a target directory'

	@override
	def build_parser(self, parser: argparse.ArgumentParser):
		parser.add_argument('target', help='The directory to snapshot')

	@override
	def run(self, args: argparse.Namespace):
		handler = SnapshotCommandHandler(SnapshotCommandArgs(
			**self._make_common_args(args),
			source_path=Path(args.target),
		))
		handler.handle()
