import argparse
import functools


@functools.lru_cache(None)
def get_version() -> str:
	from importlib import metadata
	try:
		return metadata.version('chain-backup')
	except metadata.PackageNotFoundError:
		return '?'


def snapshot_id(s: str) -> int:
	try:
		value = int(s)
	except ValueError:
		raise argparse.ArgumentTypeError('invalid snapshot id {!r}'.format(s)) from None
	if value <= 0:
		raise argparse.ArgumentTypeError('snapshot id should be a positive integer, found {}'.format(value))
	return value
