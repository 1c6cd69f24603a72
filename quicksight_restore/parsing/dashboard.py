"""
Parser for dashboard definitions.
"""

from typing import Any, Dict, Optional

from ..models.asset_export import AssetExportData
from ..models.asset_types import AssetType
from .base import as_dict, unwrap
from .exploration import ExplorationParser


class DashboardParser(ExplorationParser):
    """Dashboards add a published version, publish options and a source analysis."""

    asset_type = AssetType.DASHBOARD
    describe_key = 'Dashboard'
    id_key = 'DashboardId'

    def _kind_basic_metadata(self, list_data: Dict[str, Any], describe_data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'publishedVersionNumber': (
                list_data.get('PublishedVersionNumber')
                or describe_data.get('PublishedVersionNumber')
                or as_dict(describe_data.get('Version')).get('VersionNumber')
            )
        }

    def _describe_status(self, list_data: Dict[str, Any], describe_data: Dict[str, Any]) -> Optional[str]:
        return as_dict(describe_data.get('Version')).get('Status')

    def _source_analysis_arn(self, describe_data: Any) -> Optional[str]:
        describe = as_dict(unwrap(describe_data, self.describe_key))
        return as_dict(describe.get('Version')).get('SourceEntityArn')

    def _publish_options(self, definition_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return definition_data.get('DashboardPublishOptions')

    def extract_metadata(self, export: AssetExportData,
                         transformed: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        metadata = super().extract_metadata(export, transformed)
        published = as_dict(as_dict(transformed).get(self.asset_type.value)).get('publishedVersionNumber')
        if published is not None:
            metadata['publishedVersionNumber'] = published
        return metadata
