"""
Tests for error classification and retries.
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from quicksight_restore.models.exceptions import (
    AssetNotFoundError, AWSCredentialsError, QuickSightAPIError, RestorePreconditionError, S3Error,
    UnsupportedAssetTypeError
)
from quicksight_restore.services.error_handler import (
    ErrorHandler, RetryConfig, classify_restore_error, is_date_parsing_error, is_not_found_error
)


def _client_error(code, message='error'):
    return ClientError(
        {'Error': {'Code': code, 'Message': message}, 'ResponseMetadata': {'RequestId': 'req-1'}},
        'Operation'
    )


@pytest.fixture
def handler():
    return ErrorHandler()


@pytest.fixture
def no_sleep(monkeypatch):
    delays = []
    monkeypatch.setattr('quicksight_restore.services.error_handler.time.sleep', delays.append)
    return delays


class TestHandleApiError:

    def test_quicksight_not_found(self, handler):
        with pytest.raises(AssetNotFoundError) as excinfo:
            handler.handle_api_error(_client_error('ResourceNotFoundException', 'gone'), 'DeleteDashboard',
                                     'quicksight')

        assert excinfo.value.message == 'QuickSight API error: gone'
        assert excinfo.value.context == {'operation': 'DeleteDashboard'}

    def test_quicksight_other_errors(self, handler):
        with pytest.raises(QuickSightAPIError) as excinfo:
            handler.handle_api_error(_client_error('ResourceExistsException'), 'CreateDataSet', 'quicksight')

        assert not isinstance(excinfo.value, AssetNotFoundError)
        assert excinfo.value.error_code == 'ResourceExistsException'

    def test_s3_errors(self, handler):
        with pytest.raises(S3Error):
            handler.handle_api_error(_client_error('NoSuchKey'), 'get_object', 's3')

    @pytest.mark.parametrize('code', ['AccessDenied', 'AccessDeniedException', 'UnauthorizedOperation'])
    def test_access_denied(self, handler, code):
        with pytest.raises(AWSCredentialsError):
            handler.handle_api_error(_client_error(code), 'CreateDashboard', 'quicksight')

    def test_other_services_report_retryability(self, handler):
        should_retry, message = handler.handle_api_error(_client_error('ThrottlingException', 'slow'), 'Call', 'sts')

        assert should_retry
        assert message == 'ThrottlingException: slow'

    def test_network_errors_are_retryable(self, handler):
        should_retry, _ = handler.handle_api_error(EndpointConnectionError(endpoint_url='https://x'), 'Call')
        assert should_retry

    def test_missing_credentials(self, handler):
        with pytest.raises(AWSCredentialsError):
            handler.handle_api_error(NoCredentialsError(), 'Call')


class TestRetry:

    def test_retries_throttling_then_succeeds(self, handler, no_sleep):
        func = MagicMock(side_effect=[_client_error('ThrottlingException'), 'ok'])
        func.__name__ = 'create_dashboard'

        wrapped = handler.retry_with_backoff(func, RetryConfig(max_attempts=3, base_delay=0.5, jitter=False))

        assert wrapped() == 'ok'
        assert func.call_count == 2
        assert no_sleep == [0.5]

    def test_gives_up_after_max_attempts(self, handler, no_sleep):
        func = MagicMock(side_effect=_client_error('ServiceUnavailable'))
        func.__name__ = 'describe_data_set'

        wrapped = handler.retry_with_backoff(func, RetryConfig(max_attempts=3, base_delay=1.0, jitter=False))

        with pytest.raises(ClientError):
            wrapped()
        assert func.call_count == 3
        assert no_sleep == [1.0, 2.0]

    @pytest.mark.parametrize('error', [
        _client_error('ValidationException'),
        RestorePreconditionError('No PhysicalTableMap found for dataset orders'),
        UnsupportedAssetTypeError('Restore not implemented for asset type user'),
        ValueError('bad'),
    ])
    def test_does_not_retry_permanent_errors(self, handler, no_sleep, error):
        func = MagicMock(side_effect=error)
        func.__name__ = 'call'

        with pytest.raises(type(error)):
            handler.retry_with_backoff(func, RetryConfig(max_attempts=5))()

        assert func.call_count == 1
        assert no_sleep == []

    def test_backoff_is_capped(self, handler):
        config = RetryConfig(base_delay=1.0, max_delay=5.0, jitter=False)

        delays = [handler.calculate_backoff_delay(attempt, config) for attempt in range(1, 6)]

        assert delays == [1.0, 2.0, 4.0, 5.0, 5.0]

    def test_decorator(self, handler, no_sleep):
        calls = []

        @handler.create_retry_decorator(RetryConfig(max_attempts=2, jitter=False))
        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise _client_error('SlowDown')
            return 'done'

        assert flaky() == 'done'
        assert len(calls) == 2


class TestClassification:

    @pytest.mark.parametrize('error, expected', [
        (AssetNotFoundError('gone'), True),
        (_client_error('ResourceNotFoundException'), True),
        (_client_error('404'), True),
        (_client_error('ConflictException'), False),
        (QuickSightAPIError('conflict'), False),
        (RuntimeError('boom'), False),
    ])
    def test_is_not_found_error(self, error, expected):
        assert is_not_found_error(error) is expected

    @pytest.mark.parametrize('message, expected', [
        ('date.getTime is not a function', True),
        ("Invalid type for parameter CreatedTime, valid types: <class 'datetime.datetime'>", True),
        ('Invalid type for parameter LastRefreshTime (timestamp)', True),
        ('Invalid type for parameter Name, valid types: <class str>', False),
        ('Dataset not found', False),
    ])
    def test_is_date_parsing_error(self, message, expected):
        assert is_date_parsing_error(message) is expected

    def test_classify_date_error(self):
        message = classify_restore_error(Exception('x.getTime is not a function'))

        assert message == (
            'Date parsing error during restore: x.getTime is not a function. '
            'This may be due to invalid date formats in the archived data.'
        )

    def test_classify_uses_custom_message(self):
        error = RestorePreconditionError('No dashboard definition found for dashboard sales')
        assert classify_restore_error(error) == 'No dashboard definition found for dashboard sales'


@pytest.mark.parametrize('error, first_step', [
    (AWSCredentialsError('denied'), 'Check that AWS credentials are properly configured'),
    (RestorePreconditionError('missing'), 'Re-export the asset so that the archive contains its definition'),
    (QuickSightAPIError('exists', error_code='ResourceExistsException'),
     'Run again with --overwrite to replace the existing asset'),
    (S3Error('missing', error_code='NoSuchKey'), 'Check that the asset has been archived'),
])
def test_remediation_steps(handler, error, first_step):
    assert handler.get_error_remediation_steps(error)[0] == first_step
