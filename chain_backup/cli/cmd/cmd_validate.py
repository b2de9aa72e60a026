import argparse
import dataclasses

from typing_extensions import override

from chain_backup.action.validate_db_action import ValidateDbAction
from chain_backup.cli.cmd import CliCommandHandlerBase, CommonCommandArgs, CliCommandAdapterBase
from chain_backup.cli.return_codes import ErrorReturnCodes


@dataclasses.dataclass(frozen=True)
class ValidateCommandArgs(CommonCommandArgs):
	pass


class ValidateCommandHandler(CliCommandHandlerBase):
	def __init__(self, args: ValidateCommandArgs):
		super().__init__()
		self.args = args

	@override
	def handle(self):
		db = self.init_environment(self.args, create=False)
		result = ValidateDbAction(db).run()

		for item in result.corrupted:
			self.logger.warning('Corrupted snapshot #{}: {}'.format(item.snapshot_id, item.desc))
		for item in result.bad_chain:
			self.logger.warning('Bad chain at snapshot #{}: {}'.format(item.snapshot_id, item.desc))
		for item in result.missing:
			self.logger.warning('Missing blob {}: {}'.format(item.blob_hash, item.desc))
		for item in result.mismatched:
			self.logger.warning('Mismatched blob {}: {}'.format(item.blob_hash, item.desc))
		if len(result.orphan) > 0:
			self.logger.warning('Found {} orphan blobs, samples: {}'.format(len(result.orphan), result.orphan[:10]))

		if result.ok:
			self.logger.info('Validation passed, {} snapshots, {} blobs'.format(result.snapshot_count, result.blob_count))
		else:
			self.logger.error('Validation failed')
			ErrorReturnCodes.action_failed.sys_exit()


class ValidateCommandAdapter(CliCommandAdapterBase):
	@property
	@override
	def command(self) -> str:
		return 'validate'

	@property
	@override
	def description(self) -> str:
		return 'Check the consistency of the snapshot chain and the blob store'

	@override
	def build_parser(self, parser: argparse.ArgumentParser):
		pass

	@override
	def run(self, args: argparse.Namespace):
		handler = ValidateCommandHandler(ValidateCommandArgs(
			**self._make_common_args(args),
		))
		handler.handle()
