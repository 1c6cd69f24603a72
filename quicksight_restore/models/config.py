"""
Configuration data models for QuickSight restore operations.
"""

from dataclasses import dataclass
from typing import Optional, List
import re


@dataclass
class RestoreConfig:
    """Configuration settings for QuickSight restore operations."""

    # No default values
    s3_bucket_name: str

    # AWS Configuration
    aws_region: str
    aws_account_id: str
    identity_region: Optional[str] = None  # Optional separate region for user/group operations

    # Default deployment options, overridable per manifest entry
    namespace: str = "default"
    check_dependencies: bool = True
    overwrite_existing: bool = False
    skip_if_exists: bool = False

    # Batch execution
    parallel: bool = False
    stop_on_error: bool = False
    max_workers: int = 4

    # Retry settings
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0

    # Logging Configuration
    logging_level: str = "INFO"
    logging_file_path: str = "./logs/restore.log"

    # Optional AWS Credentials
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_session_token: Optional[str] = None

    def validate(self) -> List[str]:
        """
        Validate configuration settings and return list of validation errors.

        Returns:
            List[str]: List of validation error messages. Empty if valid.
        """
        errors = []

        errors.extend(self._validate_aws_settings())
        errors.extend(self._validate_s3_settings())
        errors.extend(self._validate_restore_options())
        errors.extend(self._validate_retry_settings())
        errors.extend(self._validate_logging_settings())

        return errors

    def _validate_aws_settings(self) -> List[str]:
        """Validate AWS configuration settings."""
        errors = []

        if not self.aws_region:
            errors.append("AWS region is required")
        elif not re.match(r'^[a-z0-9-]+$', self.aws_region):
            errors.append("AWS region format is invalid")

        if self.identity_region and not re.match(r'^[a-z0-9-]+$', self.identity_region):
            errors.append("Identity region format is invalid")

        if not self.aws_account_id:
            errors.append("AWS account ID is required")
        elif not re.match(r'^\d{12}$', self.aws_account_id):
            errors.append("AWS account ID must be a 12-digit number")

        return errors

    def _validate_s3_settings(self) -> List[str]:
        """Validate S3 configuration settings."""
        errors = []

        if not self.s3_bucket_name:
            errors.append("S3 bucket name is required")
        elif not self._is_valid_s3_bucket_name(self.s3_bucket_name):
            errors.append("S3 bucket name is invalid")

        return errors

    def _validate_restore_options(self) -> List[str]:
        """Validate restore and batch option settings."""
        errors = []

        if not self.namespace or not re.match(r'^[a-zA-Z0-9._-]+$', self.namespace):
            errors.append("Namespace is required and may only contain letters, digits, '.', '_' and '-'")

        if self.overwrite_existing and self.skip_if_exists:
            errors.append("overwrite_existing and skip_if_exists cannot both be enabled")

        if not isinstance(self.max_workers, int):
            errors.append("max_workers must be an integer")
        elif not (1 <= self.max_workers <= 32):
            errors.append("max_workers must be between 1 and 32 inclusive")

        return errors

    def _validate_retry_settings(self) -> List[str]:
        """Validate retry/backoff settings."""
        errors = []

        if not isinstance(self.max_retries, int) or self.max_retries < 0:
            errors.append("max_retries must be a non-negative integer")

        if self.base_delay <= 0:
            errors.append("base_delay must be positive")
        elif self.max_delay < self.base_delay:
            errors.append("max_delay must be greater than or equal to base_delay")

        return errors

    def _validate_logging_settings(self) -> List[str]:
        """Validate logging configuration settings."""
        errors = []

        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.logging_level not in valid_levels:
            errors.append(f"Logging level must be one of: {', '.join(valid_levels)}")

        if not self.logging_file_path:
            errors.append("Logging file path is required")

        return errors

    def _is_valid_s3_bucket_name(self, bucket_name: str) -> bool:
        """
        Validate S3 bucket name according to AWS naming rules.

        Args:
            bucket_name: The bucket name to validate

        Returns:
            bool: True if valid, False otherwise
        """
        if not bucket_name:
            return False

        # 3-63 chars, lowercase letters, digits, hyphens and periods
        if len(bucket_name) < 3 or len(bucket_name) > 63:
            return False

        if not re.match(r'^[a-z0-9][a-z0-9.-]*[a-z0-9]$', bucket_name):
            return False

        if '..' in bucket_name or '.-' in bucket_name or '-.' in bucket_name:
            return False

        # Must not look like an IP address
        if re.match(r'^\d+\.\d+\.\d+\.\d+$', bucket_name):
            return False

        return True

