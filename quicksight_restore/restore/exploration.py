"""
Restore strategies for dashboards and analyses.
"""

import logging
from typing import Any, Dict, List

from ..models.asset_types import AssetType
from ..models.deployment import ValidationResult
from ..parsing.base import as_dict
from .base import BaseAssetRestoreStrategy, snapshot_data

logger = logging.getLogger(__name__)


class ExplorationRestoreStrategy(BaseAssetRestoreStrategy):
    """Shared definition handling; both kinds depend on datasets only."""

    def definition_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return as_dict(snapshot_data(data, 'definition'))

    def extract_definition(self, data: Dict[str, Any]) -> Any:
        return data.get('Definition') or self.definition_data(data).get('Definition')

    def extract_theme_arn(self, data: Dict[str, Any]) -> Any:
        return data.get('ThemeArn') or self.definition_data(data).get('ThemeArn')

    def check_preconditions(self, asset_id: str, data: Dict[str, Any]) -> None:
        self.validate_required_data(asset_id, self.extract_definition(data), f"{self.asset_type.value} definition")

    def validate_dependencies(self, asset_id: str, data: Dict[str, Any]) -> List[ValidationResult]:
        parser = self.parser_service.get_parser(self.asset_type)
        lineage = parser.extract_lineage(self.definition_data(data) or data)

        results = []
        for dataset_id in lineage.get('datasetIds', []):
            if not self.asset_exists(AssetType.DATASET, dataset_id):
                results.append(self.missing_dependency(
                    asset_id, f"Required dataset {dataset_id} not found", datasetId=dataset_id
                ))
        return results


class DashboardRestoreStrategy(ExplorationRestoreStrategy):

    asset_type = AssetType.DASHBOARD

    def delete_existing(self, asset_id: str) -> None:
        self.handle_deletion(asset_id, self.platform.delete_dashboard)

    def restore(self, asset_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        name = self.extract_name(data)
        definition = self.extract_definition(data)
        permissions = self.extract_permissions(data)
        tags = self.extract_tags(data)
        publish_options = (
            self.definition_data(data).get('DashboardPublishOptions')
            or data.get('dashboardPublishOptions')
        )

        self.check_preconditions(asset_id, data)

        self.log_restore_operation(asset_id, {
            'name': name,
            'has_publish_options': bool(publish_options),
            'permission_count': len(permissions),
            'tag_count': len(tags),
        })

        return self.platform.create_dashboard(
            dashboard_id=asset_id,
            name=name,
            definition=definition,
            permissions=permissions,
            theme_arn=self.extract_theme_arn(data),
            dashboard_publish_options=publish_options,
            **self.tags_for_api(tags)
        )


class AnalysisRestoreStrategy(ExplorationRestoreStrategy):

    asset_type = AssetType.ANALYSIS

    def delete_existing(self, asset_id: str) -> None:
        self.handle_deletion(asset_id, self.platform.delete_analysis)

    def restore(self, asset_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        name = self.extract_name(data)
        definition = self.extract_definition(data)
        permissions = self.extract_permissions(data)
        tags = self.extract_tags(data)

        self.check_preconditions(asset_id, data)

        self.log_restore_operation(asset_id, {
            'name': name,
            'permission_count': len(permissions),
            'tag_count': len(tags),
        })

        return self.platform.create_analysis(
            analysis_id=asset_id,
            name=name,
            definition=definition,
            permissions=permissions,
            theme_arn=self.extract_theme_arn(data),
            **self.tags_for_api(tags)
        )
