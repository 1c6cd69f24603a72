"""
QuickSight Restore Tool

Restores archived Amazon QuickSight assets back into a live account.
"""

__version__ = "1.0.0"
__author__ = "QuickSight Restore Tool"

from .config import ConfigurationManager
from .orchestrator import QuickSightRestoreOrchestrator
from .models import (
    AssetType,
    DeploymentConfig,
    DeploymentManifest,
    DeploymentResult,
    DeploymentStatus,
    RestoreConfig,
    ValidationResult,
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
    "ConfigurationManager",
    "QuickSightRestoreOrchestrator",
    "AssetType",
    "DeploymentConfig",
    "DeploymentManifest",
    "DeploymentResult",
    "DeploymentStatus",
    "RestoreConfig",
    "ValidationResult",
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
