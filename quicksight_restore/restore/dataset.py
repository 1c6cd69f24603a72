"""
Restore strategy for datasets, including composite datasets.
"""

import logging
from typing import Any, Dict, List

from ..models.asset_types import AssetType
from ..models.deployment import ValidationResult
from .base import BaseAssetRestoreStrategy

logger = logging.getLogger(__name__)

DEFAULT_IMPORT_MODE = 'SPICE'

# Describe key -> create/update keyword, sent when present
OPTIONAL_DATASET_FIELDS = (
    ('LogicalTableMap', 'logical_table_map'),
    ('ColumnGroups', 'column_groups'),
    ('FieldFolders', 'field_folders'),
    ('RowLevelPermissionDataSet', 'row_level_permission_data_set'),
    ('RowLevelPermissionTagConfiguration', 'row_level_permission_tag_configuration'),
    ('ColumnLevelPermissionRules', 'column_level_permission_rules'),
    ('DataSetUsageConfiguration', 'data_set_usage_configuration'),
)


def dataset_options(body: Dict[str, Any]) -> Dict[str, Any]:
    options = {kwarg: body.get(key) for key, kwarg in OPTIONAL_DATASET_FIELDS}
    options['import_mode'] = body.get('ImportMode') or DEFAULT_IMPORT_MODE
    return options


class DatasetRestoreStrategy(BaseAssetRestoreStrategy):
    """Datasets depend on data sources and, when composite, on other datasets."""

    asset_type = AssetType.DATASET

    @property
    def parser(self):
        return self.parser_service.get_parser(AssetType.DATASET)

    def delete_existing(self, asset_id: str) -> None:
        self.handle_deletion(asset_id, self.platform.delete_data_set)

    def check_preconditions(self, asset_id: str, data: Dict[str, Any]) -> None:
        self.validate_required_data(asset_id, self.describe_body(data).get('PhysicalTableMap'), 'PhysicalTableMap')

    def restore(self, asset_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        describe = self.describe_body(data)
        name = self.extract_name(data)
        permissions = self.extract_permissions(data)
        tags = self.extract_tags(data)

        self.check_preconditions(asset_id, data)

        options = dataset_options(describe)
        self.log_restore_operation(asset_id, {
            'name': name,
            'import_mode': options['import_mode'],
            'has_logical_table_map': bool(options['logical_table_map']),
            'permission_count': len(permissions),
            'tag_count': len(tags),
        })

        result = self.platform.create_data_set(
            data_set_id=asset_id,
            name=name,
            physical_table_map=describe['PhysicalTableMap'],
            permissions=permissions,
            **options,
            **self.tags_for_api(tags)
        )

        self.refresh_child_datasets(asset_id, describe)
        return result

    def refresh_child_datasets(self, parent_id: str, describe: Dict[str, Any]) -> None:
        """
        Re-save each child of a composite dataset unchanged.

        Updating a child regenerates the internal ids the restored parent
        points at. Failures are logged per child and never fail the restore.
        """
        child_ids = self.parser.extract_referenced_dataset_ids(describe)
        if not child_ids:
            return

        logger.info(f"Composite dataset {parent_id} restored, refreshing {len(child_ids)} child datasets")

        for child_id in child_ids:
            try:
                child = self.platform.describe_data_set(child_id)
                if not child:
                    logger.warning(f"Could not describe child dataset {child_id}, skipping refresh")
                    continue

                self.platform.update_data_set(
                    data_set_id=child_id,
                    name=child.get('Name'),
                    physical_table_map=child.get('PhysicalTableMap'),
                    **dataset_options(child)
                )
                logger.info(f"Refreshed child dataset {child_id}")
            except Exception as e:
                logger.error(
                    f"Failed to refresh child dataset {child_id}: {str(e)}",
                    extra={'context': {'parent_id': parent_id, 'child_id': child_id}}
                )

    def validate_dependencies(self, asset_id: str, data: Dict[str, Any]) -> List[ValidationResult]:
        describe = self.describe_body(data)
        results = []

        for datasource_id in self.parser.extract_datasource_ids(describe):
            if not self.asset_exists(AssetType.DATASOURCE, datasource_id):
                results.append(self.missing_dependency(
                    asset_id, f"Required datasource {datasource_id} not found", datasourceId=datasource_id
                ))

        for dataset_id in self.parser.extract_referenced_dataset_ids(describe):
            if not self.asset_exists(AssetType.DATASET, dataset_id):
                results.append(self.missing_dependency(
                    asset_id,
                    f"Required dataset {dataset_id} not found (composite dataset dependency)",
                    datasetId=dataset_id,
                    type='composite'
                ))

        return results
