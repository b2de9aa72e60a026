import logging
import os
import re
from pathlib import Path
from typing import Iterator

from chain_backup.exceptions import BlobNotFound
from chain_backup.types.hash_method import HashMethod
from chain_backup.utils import hash_utils, file_utils

_HEX_PATTERN = re.compile(r'[0-9a-f]+')


class BlobStore:
	"""
	Content-addressed blob storage. A blob with hash h lives at <blobs>/<h[:2]>/<h[2:]>
	"""

	def __init__(self, blobs_path: Path, temp_path: Path, hash_method: HashMethod, logger: logging.Logger):
		self.blobs_path = blobs_path
		self.temp_path = temp_path
		self.hash_method = hash_method
		self.logger = logger

	def calc_hash(self, content: bytes) -> str:
		return hash_utils.calc_bytes_hash(content, hash_method=self.hash_method)

	def get_blob_path(self, h: str) -> Path:
		if len(h) <= 2:
			raise ValueError(f'hash {h!r} too short')
		if not _HEX_PATTERN.fullmatch(h):
			raise ValueError(f'hash {h!r} is not a lowercase hex string')
		return self.blobs_path / h[:2] / h[2:]

	def store(self, content: bytes) -> str:
		"""
		Store the content if absent

		:return: the hash of the content
		"""
		h = self.calc_hash(content)
		self.store_hashed(h, content)
		return h

	def store_hashed(self, h: str, content: bytes) -> bool:
		"""
		Store content whose hash is already known

		:return: if a new blob file is written
		"""
		blob_path = self.get_blob_path(h)
		if blob_path.is_file():
			return False
		blob_path.parent.mkdir(parents=True, exist_ok=True)
		file_utils.write_file_atomic(blob_path, content, temp_dir=self.temp_path)
		self.logger.debug('Stored blob {} ({} bytes)'.format(h, len(content)))
		return True

	def load(self, h: str) -> bytes:
		blob_path = self.get_blob_path(h)
		try:
			with open(blob_path, 'rb') as f:
				return f.read()
		except FileNotFoundError:
			raise BlobNotFound(h) from None

	def exists(self, h: str) -> bool:
		return self.get_blob_path(h).is_file()

	def size(self, h: str) -> int:
		"""
		:return: the stored size of the blob, or 0 if the blob does not exist
		"""
		try:
			return self.get_blob_path(h).stat().st_size
		except FileNotFoundError:
			self.logger.debug('Blob {} does not exist, counting its size as 0'.format(h))
			return 0

	def iterate_blob_directories(self) -> Iterator[Path]:
		if not self.blobs_path.is_dir():
			return
		for name in sorted(os.listdir(self.blobs_path)):
			path = self.blobs_path / name
			if len(name) == 2 and _HEX_PATTERN.fullmatch(name) and path.is_dir():
				yield path

	def iterate_blob_hashes(self) -> Iterator[str]:
		for blob_dir in self.iterate_blob_directories():
			for name in sorted(os.listdir(blob_dir)):
				if _HEX_PATTERN.fullmatch(name) and (blob_dir / name).is_file():
					yield blob_dir.name + name

	def delete(self, h: str) -> int:
		"""
		:return: the freed size in bytes
		"""
		blob_path = self.get_blob_path(h)
		try:
			size = blob_path.stat().st_size
		except FileNotFoundError:
			return 0
		blob_path.unlink(missing_ok=True)
		self.logger.debug('Deleted blob {} ({} bytes)'.format(h, size))
		return size

	def remove_empty_blob_directories(self) -> int:
		cnt = 0
		for blob_dir in list(self.iterate_blob_directories()):
			if not any(blob_dir.iterdir()):
				blob_dir.rmdir()
				cnt += 1
		return cnt

	def get_size_sum(self) -> int:
		return sum(self.size(h) for h in self.iterate_blob_hashes())

	def get_blob_count(self) -> int:
		return sum(1 for _ in self.iterate_blob_hashes())
