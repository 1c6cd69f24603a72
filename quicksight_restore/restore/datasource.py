"""
Restore strategy for data sources.
"""

from typing import Any, Dict, List

from ..models.asset_types import AssetType
from ..models.deployment import ValidationResult
from .base import BaseAssetRestoreStrategy


class DatasourceRestoreStrategy(BaseAssetRestoreStrategy):
    """Data sources are leaves of the dependency graph."""

    asset_type = AssetType.DATASOURCE

    def delete_existing(self, asset_id: str) -> None:
        self.handle_deletion(asset_id, self.platform.delete_data_source)

    def check_preconditions(self, asset_id: str, data: Dict[str, Any]) -> None:
        describe = self.describe_body(data)
        self.validate_required_data(asset_id, describe.get('Type'), 'datasource type')
        self.validate_required_data(asset_id, describe.get('DataSourceParameters'), 'datasource parameters')

    def restore(self, asset_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        describe = self.describe_body(data)
        name = self.extract_name(data)
        source_type = describe.get('Type')
        parameters = describe.get('DataSourceParameters')
        permissions = self.extract_permissions(data)
        tags = self.extract_tags(data)

        self.check_preconditions(asset_id, data)

        self.log_restore_operation(asset_id, {
            'name': name,
            'type': source_type,
            'has_credentials': bool(describe.get('Credentials')),
            'permission_count': len(permissions),
            'tag_count': len(tags),
        })

        return self.platform.create_data_source(
            data_source_id=asset_id,
            name=name,
            type=source_type,
            data_source_parameters=parameters,
            permissions=permissions,
            credentials=describe.get('Credentials'),
            vpc_connection_properties=describe.get('VpcConnectionProperties'),
            ssl_properties=describe.get('SslProperties'),
            **self.tags_for_api(tags)
        )

    def validate_dependencies(self, asset_id: str, data: Dict[str, Any]) -> List[ValidationResult]:
        source_type = self.describe_body(data).get('Type')
        if not source_type:
            return []
        return [ValidationResult(
            validator='dependencies',
            passed=True,
            severity='info',
            message=f"Datasource {asset_id} of type {source_type} has no dependencies",
            details={'assetId': asset_id, 'type': source_type}
        )]
