"""
Per-kind asset index kept as JSON documents in the object store.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from dateutil import parser as date_parser

from ..models.asset_types import AssetType
from .base import AssetCache, ObjectStore

logger = logging.getLogger(__name__)

CACHE_METADATA_KEY = 'cache/metadata.json'

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def cache_key(asset_type: AssetType) -> str:
    return f"cache/{asset_type.plural}.json"


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO timestamp; unparseable or missing values sort first."""
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = date_parser.isoparse(str(value))
        except (ValueError, TypeError, OverflowError):
            return _EPOCH
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class ObjectStoreAssetCache(AssetCache):
    """
    One list of asset records per kind at ``cache/<plural>.json``, plus a
    counts document at ``cache/metadata.json``.
    """

    def __init__(self, object_store: ObjectStore, bucket_name: str):
        self.object_store = object_store
        self.bucket_name = bucket_name

    def get_assets(self, asset_type: AssetType) -> List[Dict[str, Any]]:
        key = cache_key(asset_type)
        if not self.object_store.exists(self.bucket_name, key):
            return []
        document = self.object_store.get(self.bucket_name, key)
        return document if isinstance(document, list) else document.get('assets', [])

    def _save_assets(self, asset_type: AssetType, assets: List[Dict[str, Any]]) -> None:
        self.object_store.put(self.bucket_name, cache_key(asset_type), assets)

    def replace_asset(self, asset_type: AssetType, asset_id: str, record: Dict[str, Any]) -> None:
        """Insert a record, replacing any existing record with the same asset id."""
        assets = [a for a in self.get_assets(asset_type) if a.get('assetId') != asset_id]
        assets.append(record)
        self._save_assets(asset_type, assets)
        logger.info(
            f"Cached {asset_type.value} {asset_id}",
            extra={'context': {'asset_type': asset_type.value, 'asset_id': asset_id, 'total': len(assets)}}
        )

    def rebuild_cache_for_asset_type(self, asset_type: AssetType) -> None:
        """
        Collapse duplicate records and refresh the counts document.

        When an asset id appears more than once, the record with the latest
        ``lastUpdatedTime`` is kept.
        """
        latest: Dict[str, Dict[str, Any]] = {}
        for record in self.get_assets(asset_type):
            asset_id = record.get('assetId')
            current = latest.get(asset_id)
            if current is None or (parse_timestamp(record.get('lastUpdatedTime'))
                                   >= parse_timestamp(current.get('lastUpdatedTime'))):
                latest[asset_id] = record

        assets = sorted(latest.values(), key=lambda r: str(r.get('assetName') or r.get('assetId') or ''))
        self._save_assets(asset_type, assets)
        self._update_metadata(asset_type, len(assets))

        logger.info(f"Rebuilt {asset_type.value} cache with {len(assets)} assets")

    def _update_metadata(self, asset_type: AssetType, count: int) -> None:
        metadata: Dict[str, Any] = {}
        if self.object_store.exists(self.bucket_name, CACHE_METADATA_KEY):
            metadata = self.object_store.get(self.bucket_name, CACHE_METADATA_KEY) or {}

        counts = metadata.setdefault('assetCounts', {})
        counts[asset_type.plural] = count
        metadata['lastUpdated'] = datetime.now(timezone.utc).isoformat()
        self.object_store.put(self.bucket_name, CACHE_METADATA_KEY, metadata)
