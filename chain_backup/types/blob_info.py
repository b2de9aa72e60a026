import dataclasses
from typing import Iterable

from typing_extensions import Self

from chain_backup.utils import misc_utils


@dataclasses.dataclass(frozen=True)
class BlobInfo:
	hash: str
	size: int


@dataclasses.dataclass
class BlobListSummary:
	count: int
	size: int

	@classmethod
	def zero(cls) -> Self:
		return cls(0, 0)

	@classmethod
	def of(cls, blobs: Iterable[BlobInfo]) -> Self:
		cnt, size_sum = 0, 0
		for blob in blobs:
			cnt += 1
			size_sum += blob.size
		return cls(count=cnt, size=size_sum)

	def __add__(self, other: Self) -> Self:
		misc_utils.ensure_type(other, type(self))
		return BlobListSummary(
			count=self.count + other.count,
			size=self.size + other.size,
		)
