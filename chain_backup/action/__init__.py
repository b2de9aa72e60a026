"""
Actions for all kinds of database operations
"""
import logging
from abc import ABC, abstractmethod
from typing import TypeVar, Generic, TYPE_CHECKING

if TYPE_CHECKING:
	from chain_backup.db.access import DbAccess

_T = TypeVar('_T')


class Action(Generic[_T], ABC):
	def __init__(self, db: 'DbAccess'):
		from chain_backup import logger
		from chain_backup.config.config import Config
		self.logger: logging.Logger = logger.get()
		self.config: Config = Config.get()
		self.db = db

	@abstractmethod
	def run(self) -> _T:
		...
