"""
Custom exception classes for QuickSight restore operations.
"""

from typing import Optional, Dict, Any


class QuickSightRestoreError(Exception):
    """Base exception for QuickSight restore operations."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}


class ConfigurationError(QuickSightRestoreError):
    """Exception raised for configuration-related errors."""
    pass


class AWSCredentialsError(QuickSightRestoreError):
    """Exception raised for AWS credentials-related errors."""
    pass


class QuickSightAPIError(QuickSightRestoreError):
    """Exception raised for QuickSight API-related errors."""
    pass


class AssetNotFoundError(QuickSightAPIError):
    """Raised when the platform reports that a resource does not exist."""
    pass


class S3Error(QuickSightRestoreError):
    """Exception raised for S3-related errors."""
    pass


class RestorePreconditionError(QuickSightRestoreError):
    """Raised when archived data lacks a component required to recreate the asset."""
    pass


class UnsupportedAssetTypeError(QuickSightRestoreError):
    """Raised when an asset kind has no restore implementation."""
    pass


class DeploymentError(QuickSightRestoreError):
    """Exception raised for deployment coordination errors."""
    pass
