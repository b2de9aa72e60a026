class ChainBackupError(Exception):
	pass


class SnapshotNotFound(ChainBackupError):
	def __init__(self, snapshot_id: int):
		super().__init__('snapshot #{} does not exist'.format(snapshot_id))
		self.snapshot_id = snapshot_id


class BlobNotFound(ChainBackupError):
	def __init__(self, blob_hash: str):
		super().__init__('blob {} does not exist'.format(blob_hash))
		self.blob_hash = blob_hash


class CorruptedSnapshotRecord(ChainBackupError):
	"""
	A snapshot record exists, but its content, or its position in the chain, is invalid
	"""
	def __init__(self, snapshot_id: int, reason: str):
		super().__init__('snapshot #{} is corrupted: {}'.format(snapshot_id, reason))
		self.snapshot_id = snapshot_id
		self.reason = reason


class BadDbMeta(ChainBackupError):
	def __init__(self, reason: str):
		super().__init__('bad database meta: {}'.format(reason))
		self.reason = reason
