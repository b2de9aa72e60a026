import enum
import sys

from typing_extensions import NoReturn


class ErrorReturnCodes(enum.Enum):
	invalid_argument = 1
	argparse_error = 2  # see argparse.ArgumentParser.error
	action_failed = 3
	snapshot_not_found = 4
	blob_not_found = 5
	corrupted_record = 6

	def sys_exit(self) -> NoReturn:
		sys.exit(self.value)
