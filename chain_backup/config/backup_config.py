from typing import List, Any

from mcdreforged.api.utils import Serializable

from chain_backup.types.hash_method import HashMethod


class BackupConfig(Serializable):
	# only used when a new database is created, an existing database keeps the method in its meta
	hash_method: HashMethod = HashMethod.sha256
	# gitignore-style patterns, related to the snapshot source directory
	ignore_patterns: List[str] = []

	def validate_attribute(self, attr_name: str, attr_value: Any, **kwargs):
		if attr_name == 'ignore_patterns':
			import pathspec
			try:
				pathspec.GitIgnoreSpec.from_lines(attr_value)
			except Exception as e:
				raise ValueError('bad ignore patterns {!r}: {}'.format(attr_value, e))
