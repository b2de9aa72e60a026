import uuid

PACKAGE_ID = 'chain_backup'
INSTANCE_ID = uuid.uuid4().hex[:4]

# storage related
DEFAULT_STORAGE_ROOT = '.mydb'
