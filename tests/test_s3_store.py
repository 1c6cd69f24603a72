"""
Tests for the S3 document store.
"""

import io
import json

import boto3
import pytest
from botocore.response import StreamingBody
from botocore.stub import Stubber

from quicksight_restore.models.exceptions import S3Error
from quicksight_restore.services.error_handler import RetryConfig
from quicksight_restore.services.s3_store import S3ObjectStore

from .fakes import BUCKET, REGION


@pytest.fixture
def s3_client():
    return boto3.client(
        's3',
        region_name=REGION,
        aws_access_key_id='testing',
        aws_secret_access_key='testing'
    )


@pytest.fixture
def stubber(s3_client):
    with Stubber(s3_client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def store(s3_client):
    return S3ObjectStore(s3_client, RetryConfig(max_attempts=1))


def _body(document):
    raw = json.dumps(document).encode('utf-8')
    return StreamingBody(io.BytesIO(raw), len(raw))


def test_put_writes_indented_json(store, stubber):
    document = {'DataSetId': 'orders', 'Name': 'Orders'}
    stubber.add_response('put_object', {}, {
        'Bucket': BUCKET,
        'Key': 'assets/datasets/orders.json',
        'Body': json.dumps(document, indent=2).encode('utf-8'),
        'ContentType': 'application/json',
    })

    store.put(BUCKET, 'assets/datasets/orders.json', document)


def test_get_parses_json(store, stubber):
    stubber.add_response(
        'get_object',
        {'Body': _body([{'assetId': 'orders'}])},
        {'Bucket': BUCKET, 'Key': 'cache/datasets.json'}
    )

    assert store.get(BUCKET, 'cache/datasets.json') == [{'assetId': 'orders'}]


def test_exists(store, stubber):
    stubber.add_response('head_object', {'ContentLength': 2},
                         {'Bucket': BUCKET, 'Key': 'archived/dashboards/sales.json'})
    stubber.add_client_error('head_object', service_error_code='404', http_status_code=404)

    assert store.exists(BUCKET, 'archived/dashboards/sales.json')
    assert not store.exists(BUCKET, 'archived/dashboards/missing.json')


def test_exists_propagates_access_errors(store, stubber):
    stubber.add_client_error('head_object', service_error_code='403', http_status_code=403)

    with pytest.raises(S3Error):
        store.exists(BUCKET, 'archived/dashboards/sales.json')


def test_get_missing_key_raises_s3_error(store, stubber):
    stubber.add_client_error('get_object', service_error_code='NoSuchKey', http_status_code=404)

    with pytest.raises(S3Error) as excinfo:
        store.get(BUCKET, 'archived/dashboards/missing.json')

    assert excinfo.value.error_code == 'NoSuchKey'


def test_slow_down_is_retried(s3_client, stubber, monkeypatch):
    monkeypatch.setattr('quicksight_restore.services.error_handler.time.sleep', lambda delay: None)
    store = S3ObjectStore(s3_client, RetryConfig(max_attempts=2, jitter=False))
    stubber.add_client_error('get_object', service_error_code='SlowDown', http_status_code=503)
    stubber.add_response('get_object', {'Body': _body({'ok': True})})

    assert store.get(BUCKET, 'cache/metadata.json') == {'ok': True}
