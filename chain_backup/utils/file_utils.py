import os
import shutil
import stat
import tempfile
from pathlib import Path


def rm_rf(path: Path, *, missing_ok: bool = False):
	"""
	Does not follow symlink
	"""
	try:
		is_dir = stat.S_ISDIR(path.lstat().st_mode)
	except FileNotFoundError:
		if not missing_ok:
			raise
	else:
		if is_dir:
			shutil.rmtree(path)
		else:
			path.unlink(missing_ok=missing_ok)


def write_file_atomic(path: Path, data: bytes, *, temp_dir: Path):
	"""
	Write to a temp file first, then move it to the target path,
	so readers never see a partially written file

	temp_dir should be on the same filesystem as path
	"""
	fd, temp_path = tempfile.mkstemp(dir=temp_dir, prefix=path.name + '.', suffix='.tmp')
	try:
		with os.fdopen(fd, 'wb') as f:
			f.write(data)
		os.replace(temp_path, path)
	except BaseException:
		Path(temp_path).unlink(missing_ok=True)
		raise
