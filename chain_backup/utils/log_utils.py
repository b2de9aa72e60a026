import contextlib
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Generator

LOG_FORMATTER = logging.Formatter('[%(asctime)s %(levelname)s] (%(funcName)s) %(message)s')
LOG_FORMATTER_NO_FUNC = logging.Formatter('[%(asctime)s %(levelname)s] %(message)s')
LOG_FORMATTER.default_msec_format = '%s.%03d'
LOG_FORMATTER_NO_FUNC.default_msec_format = '%s.%03d'


class FileLogger(logging.Logger):
	def __init__(self, name: str, log_dir: Path):
		from chain_backup import constants
		super().__init__(f'{constants.PACKAGE_ID}-{name}', get_log_level())
		self.log_file = log_dir / f'{name}.log'
		self.log_file.parent.mkdir(parents=True, exist_ok=True)
		handler = RotatingFileHandler(
			self.log_file,
			maxBytes=10 * 1024 * 1024,
			backupCount=1,
			encoding='utf8'
		)
		handler.setFormatter(LOG_FORMATTER)
		self.addHandler(handler)


def get_log_level() -> int:
	from chain_backup.config.config import Config
	return logging.DEBUG if Config.get().debug else logging.INFO


@contextlib.contextmanager
def open_file_logger(name: str, log_dir: Path) -> Generator[FileLogger, None, None]:
	logger = FileLogger(name, log_dir)
	try:
		yield logger
	finally:
		for hdr in list(logger.handlers):
			logger.removeHandler(hdr)
			hdr.close()
