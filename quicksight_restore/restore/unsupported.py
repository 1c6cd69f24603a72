"""
Placeholder strategy for kinds that cannot be recreated on the platform yet.
"""

import logging
from typing import Any, Dict, List

from ..models.asset_types import AssetType
from ..models.deployment import ValidationResult
from ..models.exceptions import UnsupportedAssetTypeError
from .base import BaseAssetRestoreStrategy

logger = logging.getLogger(__name__)


class UnsupportedRestoreStrategy(BaseAssetRestoreStrategy):
    """Used for folders, groups and users."""

    def __init__(self, asset_type: AssetType, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.asset_type = asset_type

    def restore(self, asset_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        raise UnsupportedAssetTypeError(
            f"Restore not implemented for asset type {self.asset_type.value}",
            context={'asset_type': self.asset_type.value, 'asset_id': asset_id}
        )

    def delete_existing(self, asset_id: str) -> None:
        logger.debug(f"Nothing to delete for unsupported {self.asset_type.value} {asset_id}")

    def validate_dependencies(self, asset_id: str, data: Dict[str, Any]) -> List[ValidationResult]:
        return [ValidationResult(
            validator='dependencies',
            passed=False,
            severity='warning',
            message=f"Restore not yet implemented for {self.asset_type.value}",
            details={'assetId': asset_id}
        )]
