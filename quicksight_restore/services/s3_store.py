"""
S3-backed JSON document store.
"""

import json
import logging
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .base import ObjectStore
from .error_handler import ErrorHandler, RetryConfig, is_not_found_error

logger = logging.getLogger(__name__)


class S3ObjectStore(ObjectStore):
    """Reads and writes JSON documents with an S3 client."""

    def __init__(self, s3_client: Any, retry_config: Optional[RetryConfig] = None,
                 error_handler: Optional[ErrorHandler] = None):
        """
        Args:
            s3_client: boto3 S3 client
            retry_config: Retry behaviour for throttled calls
            error_handler: Error handler used for retries and error conversion
        """
        self.s3_client = s3_client
        self.retry_config = retry_config or RetryConfig()
        self.error_handler = error_handler or ErrorHandler(logger)

    def _call(self, operation: str, **params: Any) -> Dict[str, Any]:
        method = getattr(self.s3_client, operation)
        call = self.error_handler.create_retry_decorator(self.retry_config, operation, 's3')(method)
        try:
            return call(**params)
        except (ClientError, BotoCoreError) as e:
            self.error_handler.handle_api_error(e, operation, 's3')
            raise

    def exists(self, bucket: str, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError as e:
            if is_not_found_error(e):
                return False
            self.error_handler.handle_api_error(e, 'head_object', 's3')
            raise

    def get(self, bucket: str, key: str) -> Dict[str, Any]:
        response = self._call('get_object', Bucket=bucket, Key=key)
        body = response['Body'].read()
        logger.debug(f"Read s3://{bucket}/{key} ({len(body)} bytes)")
        return json.loads(body)

    def put(self, bucket: str, key: str, document: Any) -> None:
        body = json.dumps(document, indent=2, default=str)
        self._call(
            'put_object',
            Bucket=bucket,
            Key=key,
            Body=body.encode('utf-8'),
            ContentType='application/json'
        )
        logger.debug(f"Wrote s3://{bucket}/{key} ({len(body)} bytes)")
