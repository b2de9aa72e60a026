DB_VERSION = 1

META_FILE_NAME = 'meta.json'
BLOBS_DIR_NAME = 'blobs'
SNAPSHOTS_DIR_NAME = 'snapshots'
TEMP_DIR_NAME = 'temp'
LOGS_DIR_NAME = 'logs'
