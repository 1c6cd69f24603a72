"""
Shared fixtures for the restore tests.
"""

from typing import Any, Dict

import pytest

from quicksight_restore.models.asset_types import AssetType
from quicksight_restore.services.archive_restore import ArchiveRestoreService
from quicksight_restore.services.asset_cache import ObjectStoreAssetCache
from quicksight_restore.services.history import InMemoryDeploymentHistory

from .fakes import ACCOUNT_ID, BUCKET, REGION, InMemoryObjectStore, make_platform


@pytest.fixture
def object_store():
    return InMemoryObjectStore()


@pytest.fixture
def platform():
    return make_platform()


@pytest.fixture
def asset_cache(object_store):
    return ObjectStoreAssetCache(object_store, BUCKET)


@pytest.fixture
def history():
    return InMemoryDeploymentHistory()


@pytest.fixture
def restore_service(object_store, platform, asset_cache):
    return ArchiveRestoreService(
        object_store=object_store,
        platform=platform,
        asset_cache=asset_cache,
        bucket_name=BUCKET,
        aws_account_id=ACCOUNT_ID,
        aws_region=REGION
    )


@pytest.fixture
def archive(object_store):
    """Write an archived document and return it."""
    def _archive(asset_type: AssetType, asset_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        object_store.put(BUCKET, asset_type.archive_path(asset_id), document)
        return document
    return _archive
