"""
Data models for QuickSight restore operations.
"""

from .asset_types import AssetType
from .asset_export import ApiSnapshot, AssetExportData
from .config import RestoreConfig
from .deployment import (
    AssetTransformation,
    DeploymentConfig,
    DeploymentItem,
    DeploymentManifest,
    DeploymentOptions,
    DeploymentResult,
    DeploymentStatus,
    DeploymentTarget,
    EnrichmentStatus,
    ValidationOptions,
    ValidationResult
)
from .parsed_asset import ParsedAssetInfo
from .exceptions import (
    QuickSightRestoreError,
    ConfigurationError,
    AWSCredentialsError,
    QuickSightAPIError,
    AssetNotFoundError,
    S3Error,
    RestorePreconditionError,
    UnsupportedAssetTypeError,
    DeploymentError
)

__all__ = [
    "AssetType",
    "ApiSnapshot",
    "AssetExportData",
    "RestoreConfig",
    "AssetTransformation",
    "DeploymentConfig",
    "DeploymentItem",
    "DeploymentManifest",
    "DeploymentOptions",
    "DeploymentResult",
    "DeploymentStatus",
    "DeploymentTarget",
    "EnrichmentStatus",
    "ValidationOptions",
    "ValidationResult",
    "ParsedAssetInfo",
    "QuickSightRestoreError",
    "ConfigurationError",
    "AWSCredentialsError",
    "QuickSightAPIError",
    "AssetNotFoundError",
    "S3Error",
    "RestorePreconditionError",
    "UnsupportedAssetTypeError",
    "DeploymentError"
]
