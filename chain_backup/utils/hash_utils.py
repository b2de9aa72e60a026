import dataclasses
from pathlib import Path
from typing import IO, TYPE_CHECKING

if TYPE_CHECKING:
	from chain_backup.types.hash_method import Hasher, HashMethod


def create_hasher(*, hash_method: 'HashMethod') -> 'Hasher':
	return hash_method.value.create_hasher()


_READ_BUF_SIZE = 128 * 1024


@dataclasses.dataclass(frozen=True)
class SizeAndHash:
	size: int
	hash: str


def calc_reader_size_and_hash(file_obj: IO[bytes], *, hash_method: 'HashMethod', buf_size: int = _READ_BUF_SIZE) -> SizeAndHash:
	hasher = create_hasher(hash_method=hash_method)
	size = 0
	while buf := file_obj.read(buf_size):
		hasher.update(buf)
		size += len(buf)
	return SizeAndHash(size, hasher.hexdigest())


def calc_file_size_and_hash(path: Path, **kwargs) -> SizeAndHash:
	with open(path, 'rb') as f:
		return calc_reader_size_and_hash(f, **kwargs)


def calc_bytes_hash(buf: bytes, *, hash_method: 'HashMethod') -> str:
	hasher = create_hasher(hash_method=hash_method)
	hasher.update(buf)
	return hasher.hexdigest()
