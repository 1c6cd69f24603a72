"""
Base class for per-kind restore strategies.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from ..models.asset_types import AssetType
from ..models.deployment import DeploymentConfig, ValidationResult
from ..models.exceptions import RestorePreconditionError
from ..parsing.base import as_dict, as_list, unwrap
from ..parsing.service import AssetParserService
from ..services.base import ObjectStore, QuickSightPlatform
from ..services.error_handler import is_not_found_error

logger = logging.getLogger(__name__)

# Describe payloads may or may not wrap their body under the kind's key
DESCRIBE_KEYS = {
    AssetType.DASHBOARD: 'Dashboard',
    AssetType.ANALYSIS: 'Analysis',
    AssetType.DATASET: 'DataSet',
    AssetType.DATASOURCE: 'DataSource',
    AssetType.FOLDER: 'Folder',
    AssetType.USER: 'User',
    AssetType.GROUP: 'Group',
}

NAME_KEYS = ('Name', 'UserName', 'GroupName')


def snapshot_data(data: Dict[str, Any], name: str) -> Any:
    """Payload of an ``apiResponses`` snapshot carried on deploy data."""
    return as_dict(as_dict(data.get('apiResponses')).get(name)).get('data')


class BaseAssetRestoreStrategy(ABC):
    """
    Recreates one kind of asset on the platform from archived data.

    Strategies receive the transformed deploy data: the describe body with
    overrides applied at the top level, plus the original ``apiResponses``.
    Top-level values win over the snapshots so that overrides take effect.
    """

    asset_type: AssetType

    def __init__(self, platform: QuickSightPlatform, object_store: ObjectStore, bucket_name: str,
                 parser_service: Optional[AssetParserService] = None):
        self.platform = platform
        self.object_store = object_store
        self.bucket_name = bucket_name
        self.parser_service = parser_service or AssetParserService()

    @abstractmethod
    def restore(self, asset_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create the asset on the platform.

        Args:
            asset_id: Target asset id
            data: Transformed deploy data

        Returns:
            Dict[str, Any]: Platform response; carries ``arn`` when known

        Raises:
            RestorePreconditionError: If required data is missing
            UnsupportedAssetTypeError: If the kind cannot be restored
        """
        pass

    def check_preconditions(self, asset_id: str, data: Dict[str, Any]) -> None:
        """
        Check the data ``restore`` needs before anything touches the platform.

        Runs ahead of ``delete_existing`` so an unusable archive never
        removes the live asset.

        Raises:
            RestorePreconditionError: If required data is missing
        """
        pass

    @abstractmethod
    def delete_existing(self, asset_id: str) -> None:
        """Delete the live asset, treating "not found" as success."""
        pass

    @abstractmethod
    def validate_dependencies(self, asset_id: str, data: Dict[str, Any]) -> List[ValidationResult]:
        pass

    def validate(self, asset_id: str, data: Dict[str, Any], config: DeploymentConfig) -> List[ValidationResult]:
        """Required-field check, then dependency checks when requested."""
        results = []

        required = self.validate_required_fields(data, config)
        if required is not None:
            results.append(required)

        if config.validation.check_dependencies:
            results.extend(self.validate_dependencies(asset_id, data))

        return results

    def validate_required_fields(self, data: Dict[str, Any],
                                 config: DeploymentConfig) -> Optional[ValidationResult]:
        describe = self.describe_body(data)
        name = config.options.name or describe.get('Name') or data.get('name')
        if not name:
            return ValidationResult(
                validator='required-fields',
                passed=False,
                severity='error',
                message=f"Asset name is required for {self.asset_type.value}"
            )
        return None

    def validate_required_data(self, asset_id: str, value: Any, what: str) -> None:
        if not value:
            message = f"No {what} found for {self.asset_type.value} {asset_id}"
            logger.error(message)
            raise RestorePreconditionError(
                message,
                context={'asset_type': self.asset_type.value, 'asset_id': asset_id}
            )

    # Data access

    def describe_body(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Archived describe body overlaid with the top-level deploy values."""
        describe = as_dict(unwrap(snapshot_data(data, 'describe'), DESCRIBE_KEYS[self.asset_type]))
        top_level = {k: v for k, v in data.items() if k != 'apiResponses'}
        return {**describe, **top_level}

    def extract_name(self, data: Dict[str, Any]) -> str:
        candidates = [
            data,
            as_dict(unwrap(snapshot_data(data, 'describe'), DESCRIBE_KEYS[self.asset_type])),
            as_dict(snapshot_data(data, 'list')),
            as_dict(snapshot_data(data, 'definition')),
        ]
        for candidate in candidates:
            for key in NAME_KEYS:
                if candidate.get(key):
                    return candidate[key]
        return f"Restored {self.asset_type.value}"

    def extract_permissions(self, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        return as_list(data.get('Permissions')) or as_list(snapshot_data(data, 'permissions'))

    def extract_tags(self, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        return as_list(data.get('Tags')) or as_list(snapshot_data(data, 'tags'))

    @staticmethod
    def convert_tags(tags: Any) -> List[Dict[str, str]]:
        return [
            {'key': tag.get('Key') or tag.get('key'), 'value': tag.get('Value') or tag.get('value')}
            for tag in as_list(tags)
            if isinstance(tag, dict)
        ]

    def tags_for_api(self, tags: Any) -> Dict[str, Any]:
        """``{'tags': [...]}`` when there are tags, else an empty dict so the argument is omitted."""
        converted = self.convert_tags(tags)
        return {'tags': converted} if converted else {}

    # Helpers

    def asset_exists(self, asset_type: AssetType, asset_id: str) -> bool:
        """Whether the active store holds the asset; store errors count as absent."""
        try:
            return self.object_store.exists(self.bucket_name, asset_type.active_path(asset_id))
        except Exception as e:
            logger.warning(f"Could not check {asset_type.value} {asset_id} in active store: {str(e)}")
            return False

    def handle_deletion(self, asset_id: str, delete_func: Callable[[str], Any]) -> None:
        try:
            delete_func(asset_id)
            logger.info(f"Deleted existing {self.asset_type.value} {asset_id} before restore")
        except Exception as e:
            if is_not_found_error(e):
                logger.debug(f"No existing {self.asset_type.value} {asset_id} to delete")
                return
            logger.error(
                f"Failed to delete existing {self.asset_type.value} {asset_id} before restore: {str(e)}",
                extra={'context': {'asset_type': self.asset_type.value, 'asset_id': asset_id}}
            )
            raise

    def log_restore_operation(self, asset_id: str, details: Dict[str, Any]) -> None:
        logger.info(
            f"Restoring {self.asset_type.value} {asset_id}",
            extra={'context': {'asset_id': asset_id, 'asset_type': self.asset_type.value, **details}}
        )

    def missing_dependency(self, asset_id: str, message: str, **details: Any) -> ValidationResult:
        return ValidationResult(
            validator='dependencies',
            passed=False,
            severity='warning',
            message=message,
            details={'assetId': asset_id, **details}
        )
