"""
Lookup of the restore strategy for an asset kind.
"""

from typing import Dict, Optional

from ..models.asset_types import AssetType
from ..models.exceptions import UnsupportedAssetTypeError
from ..parsing.service import AssetParserService
from ..services.base import ObjectStore, QuickSightPlatform
from .base import BaseAssetRestoreStrategy
from .dataset import DatasetRestoreStrategy
from .datasource import DatasourceRestoreStrategy
from .exploration import AnalysisRestoreStrategy, DashboardRestoreStrategy
from .unsupported import UnsupportedRestoreStrategy

UNSUPPORTED_ASSET_TYPES = (AssetType.FOLDER, AssetType.GROUP, AssetType.USER)


class RestoreStrategyFactory:
    """Builds one strategy per kind up front, sharing the collaborators."""

    def __init__(self, platform: QuickSightPlatform, object_store: ObjectStore, bucket_name: str,
                 parser_service: Optional[AssetParserService] = None):
        shared = (platform, object_store, bucket_name, parser_service or AssetParserService())

        self.strategies: Dict[AssetType, BaseAssetRestoreStrategy] = {
            AssetType.DASHBOARD: DashboardRestoreStrategy(*shared),
            AssetType.ANALYSIS: AnalysisRestoreStrategy(*shared),
            AssetType.DATASET: DatasetRestoreStrategy(*shared),
            AssetType.DATASOURCE: DatasourceRestoreStrategy(*shared),
        }
        for asset_type in UNSUPPORTED_ASSET_TYPES:
            self.strategies[asset_type] = UnsupportedRestoreStrategy(asset_type, *shared)

    def get_strategy(self, asset_type: AssetType) -> BaseAssetRestoreStrategy:
        """
        Return the strategy for a kind.

        Raises:
            UnsupportedAssetTypeError: If the kind is unknown
        """
        try:
            asset_type = AssetType.parse(asset_type)
        except ValueError:
            raise UnsupportedAssetTypeError(f"No restore strategy found for asset type: {asset_type}")

        strategy = self.strategies.get(asset_type)
        if strategy is None:
            raise UnsupportedAssetTypeError(f"No restore strategy found for asset type: {asset_type.value}")
        return strategy

    def has_strategy(self, asset_type: AssetType) -> bool:
        try:
            return AssetType.parse(asset_type) in self.strategies
        except ValueError:
            return False
