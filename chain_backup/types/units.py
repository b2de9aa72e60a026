import functools
from abc import ABC, abstractmethod
from typing import Union, Generic, Dict, TypeVar, NamedTuple

from chain_backup.utils import misc_utils

_T = TypeVar('_T')


class ValueUnitPair(NamedTuple):
	value: float
	unit: str

	def to_str(self, ndigits: int = 2) -> str:
		if ndigits >= 0:
			return f'{self.value:.{ndigits}f}{self.unit}'
		else:
			return f'{self.value}{self.unit}'


class _UnitValueBase(Generic[_T], str, ABC):
	_value: _T

	@classmethod
	@abstractmethod
	def _get_unit_map(cls) -> Dict[str, _T]:
		...

	@property
	def value(self) -> _T:
		return self._value

	@staticmethod
	def __precise_div(a: Union[float, int], b: Union[float, int]) -> Union[float, int]:
		if isinstance(a, int) and (1 / b).is_integer():
			return a * int(1 / b)
		return a / b

	@classmethod
	def _auto_format(cls, val: _T) -> ValueUnitPair:
		if val < 0:
			uvp = cls._auto_format(-val)
			return ValueUnitPair(-uvp.value, uvp.unit)
		ret = None
		for unit, k in cls._get_unit_map().items():
			x = cls.__precise_div(val, k)
			if x >= 1 or ret is None:
				if isinstance(x, float) and x.is_integer():
					x = int(x)
				ret = ValueUnitPair(x, unit)
			else:
				break
		if ret is None:
			raise AssertionError()
		return ret

	@classmethod
	def _precise_format(cls, val: _T) -> ValueUnitPair:
		if val < 0:
			uvp = cls._precise_format(-val)
			return ValueUnitPair(-uvp.value, uvp.unit)

		units = list(reversed(cls._get_unit_map().items()))
		if val == 0:
			return ValueUnitPair(val, units[-1][0])
		for i, tp in enumerate(units):  # high -> low
			unit, k = tp
			x = cls.__precise_div(val, k)
			if isinstance(x, int) or (isinstance(x, float) and x.is_integer()) or i == len(units) - 1:
				if isinstance(x, float) and x.is_integer():
					x = int(x)
				return ValueUnitPair(x, unit)
		raise AssertionError()

	def precise_format(self) -> ValueUnitPair:
		return self._precise_format(self._value)

	def auto_format(self) -> ValueUnitPair:
		return self._auto_format(self._value)

	def auto_str(self, **kwargs) -> str:
		return self.auto_format().to_str(**kwargs)

	def precise_str(self, **kwargs) -> str:
		return self.precise_format().to_str(**kwargs)

	def __str__(self) -> str:
		return self.precise_str(ndigits=-1)

	def __repr__(self) -> str:
		return misc_utils.represent(self, attrs={'value': self._value})


class ByteCount(_UnitValueBase[int]):
	"""
	Byte count formatted with binary prefixes, e.g. 4KiB, 1.5MiB
	"""
	__units = {'B': 1, 'KiB': 2 ** 10, 'MiB': 2 ** 20, 'GiB': 2 ** 30, 'TiB': 2 ** 40, 'PiB': 2 ** 50}

	@classmethod
	@functools.lru_cache
	def _get_unit_map(cls) -> Dict[str, int]:
		return dict(cls.__units)

	def __new__(cls, value: int):
		if isinstance(value, bool) or not isinstance(value, int):
			raise TypeError(type(value))

		obj = super().__new__(cls, cls._precise_format(value).to_str(ndigits=-1))
		obj._value = value
		return obj
