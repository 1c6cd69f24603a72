"""
Error handling and retry logic for QuickSight restore operations.
"""

import time
import random
import logging
from typing import Callable, Optional, List, Tuple
from functools import wraps
from botocore.exceptions import ClientError, BotoCoreError, NoCredentialsError
from botocore.exceptions import EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError

from ..models.exceptions import (
    QuickSightRestoreError, ConfigurationError, AWSCredentialsError, QuickSightAPIError,
    AssetNotFoundError, S3Error, RestorePreconditionError, UnsupportedAssetTypeError
)


NOT_FOUND_ERROR_CODES = frozenset({
    'ResourceNotFoundException',
    'ResourceNotFound',
    'NoSuchKey',
    'NotFound',
    '404'
})

DATE_ERROR_HINT = "This may be due to invalid date formats in the archived data."


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(self,
                 max_attempts: int = 3,
                 base_delay: float = 1.0,
                 max_delay: float = 60.0,
                 exponential_base: float = 2.0,
                 jitter: bool = True):
        """
        Initialize retry configuration.

        Args:
            max_attempts: Maximum number of attempts
            base_delay: Base delay in seconds for first retry
            max_delay: Maximum delay in seconds between retries
            exponential_base: Base for exponential backoff calculation
            jitter: Whether to add random jitter to delays
        """
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter


class ErrorHandler:
    """Error classification and retry logic for AWS calls made during restores."""

    # AWS error codes that should trigger retries
    RETRYABLE_ERROR_CODES = {
        'Throttling',
        'ThrottlingException',
        'RequestLimitExceeded',
        'LimitExceededException',
        'ServiceUnavailable',
        'InternalServerError',
        'InternalFailure',
        'InternalFailureException',
        'ServiceException',
        'SlowDown',
        'RequestTimeout',
        'RequestTimeoutException'
    }

    # AWS error codes that should not be retried
    NON_RETRYABLE_ERROR_CODES = {
        'AccessDenied',
        'AccessDeniedException',
        'InvalidParameterValue',
        'InvalidParameterValueException',
        'ResourceNotFound',
        'ResourceNotFoundException',
        'ResourceExistsException',
        'ConflictException',
        'ValidationException',
        'InvalidRequestException',
        'UnsupportedUserEditionException',
        'UnauthorizedOperation',
        'Forbidden',
        'NoSuchBucket',
        'NoSuchKey'
    }

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the error handler.

        Args:
            logger: Optional logger instance for error reporting
        """
        self.logger = logger or logging.getLogger(__name__)

    def handle_api_error(self, error: Exception, operation: str,
                         service: str = 'aws') -> Tuple[bool, Optional[str]]:
        """
        Handle AWS API errors and determine if retry should be attempted.

        Client errors from QuickSight and S3 are converted to the matching
        custom exception and raised.

        Args:
            error: The exception that occurred
            operation: Name of the operation that failed
            service: AWS service name

        Returns:
            Tuple[bool, Optional[str]]: (should_retry, error_message)

        Raises:
            AWSCredentialsError: For access-denied and missing-credential errors
            AssetNotFoundError: For QuickSight ResourceNotFoundException
            QuickSightAPIError: For other QuickSight client errors
            S3Error: For S3 client errors
        """
        if isinstance(error, ClientError):
            error_code = error.response['Error']['Code']
            error_message = error.response['Error'].get('Message', '')

            self.logger.error(
                f"AWS API error in {service}.{operation}: {error_code} - {error_message}",
                extra={
                    'context': {
                        'service': service,
                        'operation': operation,
                        'error_code': error_code,
                        'error_message': error_message,
                        'request_id': error.response.get('ResponseMetadata', {}).get('RequestId')
                    }
                }
            )

            should_retry = error_code in self.RETRYABLE_ERROR_CODES

            if error_code in ['AccessDenied', 'AccessDeniedException', 'UnauthorizedOperation']:
                raise AWSCredentialsError(
                    f"Access denied for {service}.{operation}: {error_message}",
                    error_code=error_code,
                    context={'service': service, 'operation': operation}
                )
            elif service == 'quicksight':
                error_class = AssetNotFoundError if error_code in NOT_FOUND_ERROR_CODES else QuickSightAPIError
                raise error_class(
                    f"QuickSight API error: {error_message}",
                    error_code=error_code,
                    context={'operation': operation}
                )
            elif service == 's3':
                raise S3Error(
                    f"S3 error: {error_message}",
                    error_code=error_code,
                    context={'operation': operation}
                )

            return should_retry, f"{error_code}: {error_message}"

        elif isinstance(error, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)):
            error_message = f"Network error in {service}.{operation}: {str(error)}"
            self.logger.warning(error_message)
            return True, error_message

        elif isinstance(error, NoCredentialsError):
            error_message = "AWS credentials not found or invalid"
            self.logger.error(error_message)
            raise AWSCredentialsError(error_message)

        elif isinstance(error, BotoCoreError):
            error_message = f"Boto3 error in {service}.{operation}: {str(error)}"
            self.logger.error(error_message)
            return False, error_message

        else:
            error_message = f"Unknown error in {service}.{operation}: {str(error)}"
            self.logger.error(error_message, exc_info=True)
            return False, error_message

    def should_retry(self, error: Exception, attempt: int, max_attempts: int) -> bool:
        """
        Determine if an operation should be retried based on the error and attempt count.

        Args:
            error: The exception that occurred
            attempt: Current attempt number (1-based)
            max_attempts: Maximum number of attempts allowed

        Returns:
            bool: True if operation should be retried
        """
        if attempt >= max_attempts:
            return False

        if isinstance(error, ClientError):
            error_code = error.response['Error']['Code']
            return error_code in self.RETRYABLE_ERROR_CODES

        if isinstance(error, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)):
            return True

        # Precondition failures are properties of the archived data and never change on retry
        if isinstance(error, (AWSCredentialsError, ConfigurationError,
                              RestorePreconditionError, UnsupportedAssetTypeError)):
            return False

        return False

    def calculate_backoff_delay(self, attempt: int, config: RetryConfig) -> float:
        """
        Calculate the delay before the next retry attempt using exponential backoff.

        Args:
            attempt: Current attempt number (1-based)
            config: Retry configuration

        Returns:
            float: Delay in seconds
        """
        delay = config.base_delay * (config.exponential_base ** (attempt - 1))
        delay = min(delay, config.max_delay)

        if config.jitter:
            jitter_range = delay * 0.1  # 10% jitter
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0, delay)

    def retry_with_backoff(self,
                           func: Callable,
                           config: Optional[RetryConfig] = None,
                           operation_name: Optional[str] = None,
                           service_name: str = 'aws') -> Callable:
        """
        Wrap a function with retry logic and exponential backoff.

        Args:
            func: Function to wrap with retry logic
            config: Retry configuration (uses default if None)
            operation_name: Name of the operation for logging
            service_name: AWS service name for error handling

        Returns:
            Callable: Wrapped function with retry logic
        """
        if config is None:
            config = RetryConfig()

        @wraps(func)
        def wrapper(*args, **kwargs):
            op_name = operation_name or func.__name__

            for attempt in range(1, config.max_attempts + 1):
                try:
                    return func(*args, **kwargs)

                except Exception as error:
                    if not self.should_retry(error, attempt, config.max_attempts):
                        if attempt > 1:
                            self.logger.error(f"All {attempt} attempts failed for {service_name}.{op_name}")
                        raise

                    self.logger.warning(
                        f"Attempt {attempt}/{config.max_attempts} failed for {op_name}: {str(error)}",
                        extra={
                            'context': {
                                'service': service_name,
                                'operation': op_name,
                                'attempt': attempt,
                                'max_attempts': config.max_attempts,
                                'error_type': type(error).__name__
                            }
                        }
                    )

                    delay = self.calculate_backoff_delay(attempt, config)
                    self.logger.info(
                        f"Retrying {op_name} in {delay:.2f} seconds (attempt {attempt + 1}/{config.max_attempts})"
                    )
                    time.sleep(delay)

            raise QuickSightRestoreError(f"No attempts made for {op_name}: max_attempts must be at least 1")

        return wrapper

    def create_retry_decorator(self,
                               config: Optional[RetryConfig] = None,
                               operation_name: Optional[str] = None,
                               service_name: str = 'aws'):
        """
        Create a retry decorator with specific configuration.

        Args:
            config: Retry configuration
            operation_name: Operation name for logging
            service_name: AWS service name

        Returns:
            Callable: Decorator function
        """
        def decorator(func):
            return self.retry_with_backoff(func, config, operation_name, service_name)
        return decorator

    def get_error_remediation_steps(self, error: Exception) -> List[str]:
        """
        Get suggested remediation steps for common errors.

        Args:
            error: The exception that occurred

        Returns:
            List[str]: List of suggested remediation steps
        """
        if isinstance(error, AWSCredentialsError):
            return [
                "Check that AWS credentials are properly configured",
                "Verify AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables",
                "Check IAM role permissions for quicksight:Create*, quicksight:Delete* and quicksight:Describe*",
                "Verify the AWS region is correctly specified"
            ]

        elif isinstance(error, RestorePreconditionError):
            return [
                "Re-export the asset so that the archive contains its definition",
                "Check that the archived document has an apiResponses section",
                "Inspect the archive with --mode inspect to see which snapshots are present"
            ]

        elif isinstance(error, UnsupportedAssetTypeError):
            return [
                "Restore this asset kind manually from the QuickSight console",
                "Supported kinds are dashboard, analysis, dataset and datasource"
            ]

        elif isinstance(error, QuickSightAPIError):
            if error.error_code == 'AccessDeniedException':
                return [
                    "Verify QuickSight permissions for the AWS account",
                    "Check that the principal has QuickSight admin privileges",
                    "Ensure the AWS account ID is correct"
                ]
            elif error.error_code == 'ResourceExistsException':
                return [
                    "Run again with --overwrite to replace the existing asset",
                    "Or use --skip-if-exists to leave it untouched",
                    "Or restore under a different --target-id"
                ]
            elif error.error_code == 'ResourceNotFoundException':
                return [
                    "Restore the asset's dependencies (datasets, data sources) first",
                    "Verify the AWS account ID and region"
                ]

        elif isinstance(error, S3Error):
            if error.error_code == 'NoSuchBucket':
                return [
                    "Verify the bucket name is correct",
                    "Check that the bucket exists in the specified region"
                ]
            elif error.error_code in ('NoSuchKey', '404'):
                return [
                    "Check that the asset has been archived",
                    "Verify the asset type and id"
                ]
            elif error.error_code == 'AccessDenied':
                return [
                    "Check S3 permissions (s3:GetObject, s3:PutObject, s3:HeadObject)",
                    "Verify bucket policy allows the required operations"
                ]

        elif isinstance(error, ConfigurationError):
            return [
                "Review the configuration file for syntax errors",
                "Validate all required configuration parameters are provided",
                "Check that AWS account ID is a 12-digit number"
            ]

        return [
            "Check the error logs for more detailed information",
            "Verify AWS credentials and permissions",
            "Check network connectivity to AWS services"
        ]


def is_not_found_error(error: Exception) -> bool:
    """
    Whether an error reports a missing resource.

    Args:
        error: Exception raised by a platform or store call

    Returns:
        bool: True for AssetNotFoundError or a not-found ClientError code
    """
    if isinstance(error, AssetNotFoundError):
        return True
    if isinstance(error, ClientError):
        return error.response.get('Error', {}).get('Code') in NOT_FOUND_ERROR_CODES
    return False


def is_date_parsing_error(message: str) -> bool:
    """Detect failures caused by string dates in archived data reaching date parameters."""
    if 'getTime' in message:
        return True
    lowered = message.lower()
    return 'invalid type for parameter' in lowered and ('datetime' in lowered or 'timestamp' in lowered)


def classify_restore_error(error: Exception) -> str:
    """
    Build the user-facing message recorded on a failed deployment.

    Args:
        error: Exception raised during the restore pipeline

    Returns:
        str: Error message, rewritten for date-serialization failures
    """
    message = getattr(error, 'message', None) or str(error)
    if is_date_parsing_error(message):
        return f"Date parsing error during restore: {message}. {DATE_ERROR_HINT}"
    return message
