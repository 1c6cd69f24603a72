"""
Parser for data source descriptions.
"""

from typing import Any, Dict, Optional

from ..models.asset_export import AssetExportData
from ..models.asset_types import AssetType
from .base import BaseAssetParser, as_dict, unwrap


class DatasourceParser(BaseAssetParser):
    """Connection type and mode of a data source."""

    asset_type = AssetType.DATASOURCE

    def extract_definition(self, raw: Any) -> Any:
        return unwrap(raw, 'DataSource') or {}

    def parse_datasource_info(self, definition: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return {
            'type': definition.get('Type'),
            'status': definition.get('Status'),
        }

    def extract_metadata(self, export: AssetExportData,
                         transformed: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        list_data = as_dict(export.data('list'))
        describe_data = as_dict(unwrap(export.data('describe'), 'DataSource'))

        source_type = list_data.get('Type') or describe_data.get('Type')
        parameters = as_dict(describe_data.get('DataSourceParameters'))

        metadata = self.basic_metadata(list_data, describe_data, 'DataSourceId')
        metadata.update({
            'datasourceType': source_type,
            'sourceType': source_type,
            'connectionMode': 'FILE' if parameters.get('S3Parameters') else 'DIRECT',
        })
        return metadata
