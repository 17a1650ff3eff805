from devcli.providers.storage.base import StorageEntry, StorageProvider
from devcli.providers.storage.filesystem import FilesystemProvider
from devcli.providers.storage.s3 import S3Provider

__all__ = ["FilesystemProvider", "S3Provider", "StorageEntry", "StorageProvider"]
