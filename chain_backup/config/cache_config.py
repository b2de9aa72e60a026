from typing import Any

from mcdreforged.api.utils import Serializable


class CacheConfig(Serializable):
	flat_state_cache_size: int = 64
	snapshot_cache_size: int = 1024

	def validate_attribute(self, attr_name: str, attr_value: Any, **kwargs):
		if attr_name in ('flat_state_cache_size', 'snapshot_cache_size') and attr_value <= 0:
			raise ValueError('{} should be positive, found {}'.format(attr_name, attr_value))
