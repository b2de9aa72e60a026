import collections
import dataclasses
import logging
import os
import stat
import threading
import time
from pathlib import Path
from typing import Dict, List, Deque, Tuple, Optional, Set

import pathspec

from chain_backup import logger
from chain_backup.types.hash_method import HashMethod
from chain_backup.types.snapshot_info import Flat
from chain_backup.utils import hash_utils
from chain_backup.utils.thread_pool import FailFastThreadPool


@dataclasses.dataclass(frozen=True)
class ScanResult:
	flat: Flat = dataclasses.field(default_factory=dict)  # posix path, related to the scan root -> hash
	contents: Dict[str, bytes] = dataclasses.field(default_factory=dict)  # posix path -> file content, empty if not read

	@property
	def file_count(self) -> int:
		return len(self.flat)


class DirectoryScanner:
	"""
	Walks a directory tree, hashing every regular file in it.
	Symlinks and special files are skipped, and file metadata is ignored.
	Directories in exclude_dirs, such as the database itself, are skipped when they are inside the scan root
	"""

	def __init__(self, hash_method: HashMethod, *, ignore_patterns: Optional[List[str]] = None, exclude_dirs: Optional[List[Path]] = None):
		self.logger: logging.Logger = logger.get()
		self.hash_method = hash_method
		self.ignore_patterns = pathspec.GitIgnoreSpec.from_lines(ignore_patterns or [])
		self.exclude_dirs = list(exclude_dirs or [])

	def __is_ignored(self, rel_path: str, is_dir: bool) -> bool:
		if is_dir:
			return self.ignore_patterns.match_file(rel_path + '/')
		return self.ignore_patterns.match_file(rel_path)

	def __get_excluded_rel_paths(self, root_dir: Path) -> Set[str]:
		excluded: Set[str] = set()
		root = root_dir.resolve()
		for exclude_dir in self.exclude_dirs:
			try:
				rel_path = exclude_dir.resolve().relative_to(root)
			except ValueError:
				continue  # not inside the scan root
			if rel_path != Path('.'):
				excluded.add(rel_path.as_posix())
		return excluded

	def __collect_files(self, root_dir: Path) -> List[Tuple[str, Path]]:
		files: List[Tuple[str, Path]] = []  # (posix rel path, full path)
		ignored: List[str] = []
		excluded = self.__get_excluded_rel_paths(root_dir)

		# (directory full path, posix prefix)
		queue: Deque[Tuple[Path, str]] = collections.deque([(root_dir, '')])
		while len(queue) > 0:
			dir_path, prefix = queue.popleft()
			for name in sorted(os.listdir(dir_path)):
				full_path = dir_path / name
				rel_path = prefix + name
				try:
					name.encode('utf8')
				except UnicodeEncodeError:
					# undecodable bytes in the name, the path cannot be stored in a json record
					self.logger.warning('Skipping {!r} since its name is not valid utf8'.format(rel_path))
					continue
				st = full_path.lstat()

				if stat.S_ISDIR(st.st_mode):
					if rel_path in excluded:
						self.logger.debug('Skipping excluded directory {!r}'.format(rel_path))
						continue
					if self.__is_ignored(rel_path, True):
						ignored.append(rel_path + '/')
						continue
					queue.append((full_path, rel_path + '/'))
				elif stat.S_ISREG(st.st_mode):
					if self.__is_ignored(rel_path, False):
						ignored.append(rel_path)
						continue
					files.append((rel_path, full_path))
				elif stat.S_ISLNK(st.st_mode):
					self.logger.debug('Skipping symlink {!r}'.format(rel_path))
				else:
					self.logger.debug('Skipping special file {!r} with mode {}'.format(rel_path, oct(st.st_mode)))

		if len(ignored) > 0:
			self.logger.debug('Ignored {} paths by patterns, samples: {}'.format(len(ignored), ignored[:100]))
		return files

	def scan(self, root_dir: Path, *, read_content: bool = True) -> ScanResult:
		"""
		:param root_dir: the directory to scan
		:param read_content: if the content of the files should be kept in the result
		:raise FileNotFoundError: if root_dir does not exist
		:raise NotADirectoryError: if root_dir is not a directory
		"""
		if not root_dir.exists():
			raise FileNotFoundError('scan root {!r} does not exist'.format(str(root_dir)))
		if not root_dir.is_dir():
			raise NotADirectoryError('scan root {!r} is not a directory'.format(str(root_dir)))

		start_time = time.time()
		files = self.__collect_files(root_dir)

		flat: Flat = {}
		contents: Dict[str, bytes] = {}
		lock = threading.Lock()

		def read_worker(rel_path: str, full_path: Path):
			with open(full_path, 'rb') as f:
				content = f.read()
			h = hash_utils.calc_bytes_hash(content, hash_method=self.hash_method)
			with lock:
				flat[rel_path] = h
				contents[rel_path] = content

		def hash_worker(rel_path: str, full_path: Path):
			h = hash_utils.calc_file_size_and_hash(full_path, hash_method=self.hash_method).hash
			with lock:
				flat[rel_path] = h

		with FailFastThreadPool(name='scanner') as pool:
			for rel_path, full_path in files:
				pool.submit(read_worker if read_content else hash_worker, rel_path, full_path)

		self.logger.debug('Scan directory {!r} done, cost {:.2f}s, file count {}'.format(str(root_dir), time.time() - start_time, len(files)))
		return ScanResult(flat=dict(sorted(flat.items())), contents=contents)
