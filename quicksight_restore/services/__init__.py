"""
Storage, platform and support services for QuickSight restore operations.

ArchiveRestoreService is imported from ``services.archive_restore`` directly.
"""

from .base import AssetCache, DeploymentHistory, ObjectStore, QuickSightPlatform
from .asset_cache import ObjectStoreAssetCache
from .history import InMemoryDeploymentHistory
from .quicksight_client import QuickSightPlatformClient
from .s3_store import S3ObjectStore
from .logging import LoggingService
from .error_handler import ErrorHandler, RetryConfig

__all__ = [
    "AssetCache",
    "DeploymentHistory",
    "ObjectStore",
    "QuickSightPlatform",
    "ObjectStoreAssetCache",
    "InMemoryDeploymentHistory",
    "QuickSightPlatformClient",
    "S3ObjectStore",
    "LoggingService",
    "ErrorHandler",
    "RetryConfig"
]
