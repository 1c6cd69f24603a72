"""
Parser for dataset descriptions.

Datasets have no separate definition call; the describe body (PhysicalTableMap,
LogicalTableMap, OutputColumns) is the definition.
"""

import logging
from typing import Any, Dict, List, Optional

from ..models.asset_export import AssetExportData
from ..models.asset_types import AssetType
from ..models.parsed_asset import CalculatedField, Field
from .base import BaseAssetParser, arn_suffix, as_dict, as_list, is_valid_field_name, unique, unwrap

logger = logging.getLogger(__name__)

DEFAULT_IMPORT_MODE = 'SPICE'

# Physical table source kinds carrying a DataSourceArn, in lookup order
PHYSICAL_SOURCES = ('RelationalTable', 'CustomSql', 'S3Source')


def _physical_columns(table: Dict[str, Any]) -> List[Dict[str, Any]]:
    relational = as_dict(table.get('RelationalTable'))
    if relational:
        return as_list(relational.get('Columns')) or as_list(relational.get('InputColumns'))
    custom_sql = as_dict(table.get('CustomSql'))
    if custom_sql:
        return as_list(custom_sql.get('Columns'))
    return as_list(as_dict(table.get('S3Source')).get('InputColumns'))


def _physical_table_type(table: Dict[str, Any]) -> str:
    if table.get('S3Source'):
        return 'S3'
    if table.get('RelationalTable'):
        return 'RELATIONAL'
    if table.get('CustomSql'):
        return 'CUSTOM_SQL'
    return 'UNKNOWN'


def _datasource_arn(table: Dict[str, Any]) -> Optional[str]:
    for source in PHYSICAL_SOURCES:
        arn = as_dict(table.get(source)).get('DataSourceArn')
        if arn:
            return arn
    return None


def _data_transforms(definition: Dict[str, Any]) -> List[Dict[str, Any]]:
    transforms = []
    for logical_table in as_dict(definition.get('LogicalTableMap')).values():
        for transform in as_list(as_dict(logical_table).get('DataTransforms')):
            if isinstance(transform, dict):
                transforms.append(transform)
    return transforms


class DatasetParser(BaseAssetParser):
    """Fields, calculated columns and datasource lineage of a dataset."""

    asset_type = AssetType.DATASET

    def extract_definition(self, raw: Any) -> Any:
        return unwrap(raw, 'DataSet') or {}

    def parse_fields(self, definition: Dict[str, Any]) -> List[Field]:
        output_fields = [
            Field(field_id=col['Name'], field_name=col['Name'], data_type=col.get('Type'))
            for col in as_list(definition.get('OutputColumns'))
            if isinstance(col, dict) and is_valid_field_name(col.get('Name'))
        ]
        if output_fields:
            return output_fields

        fields: List[Field] = []
        for table in as_dict(definition.get('PhysicalTableMap')).values():
            for col in _physical_columns(as_dict(table)):
                if isinstance(col, dict) and is_valid_field_name(col.get('Name')):
                    fields.append(Field(field_id=col['Name'], field_name=col['Name'], data_type=col.get('Type')))

        for transform in _data_transforms(definition):
            cast = as_dict(transform.get('CastColumnTypeOperation'))
            if is_valid_field_name(cast.get('ColumnName')):
                existing = self._find_field(fields, cast['ColumnName'])
                if existing is not None:
                    existing.data_type = cast.get('NewColumnType')

            rename = as_dict(transform.get('RenameColumnOperation'))
            if is_valid_field_name(rename.get('ColumnName')) and is_valid_field_name(rename.get('NewColumnName')):
                existing = self._find_field(fields, rename['ColumnName'])
                if existing is not None:
                    existing.field_id = rename['NewColumnName']
                    existing.field_name = rename['NewColumnName']

        return fields

    @staticmethod
    def _find_field(fields: List[Field], name: str) -> Optional[Field]:
        for f in fields:
            if f.field_name == name:
                return f
        return None

    def parse_calculated_fields(self, definition: Dict[str, Any]) -> List[CalculatedField]:
        calculated = []
        for transform in _data_transforms(definition):
            for col in as_list(as_dict(transform.get('CreateColumnsOperation')).get('Columns')):
                if isinstance(col, dict) and is_valid_field_name(col.get('ColumnName')) and col.get('Expression'):
                    calculated.append(CalculatedField(name=col['ColumnName'], expression=col['Expression']))
        return calculated

    def parse_datasource_info(self, definition: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return {
            'importMode': definition.get('ImportMode'),
            'datasourceArns': self.extract_datasource_arns(definition),
        }

    # Lineage

    def extract_datasource_arns(self, definition: Any) -> List[str]:
        tables = as_dict(as_dict(definition).get('PhysicalTableMap')).values()
        return unique(_datasource_arn(as_dict(table)) for table in tables)

    def extract_datasource_ids(self, raw: Any) -> List[str]:
        """Ids of the data sources a dataset reads from."""
        return [arn_suffix(arn) for arn in self.extract_datasource_arns(self.extract_definition(raw))]

    def extract_referenced_dataset_ids(self, raw: Any) -> List[str]:
        """
        Ids of datasets a composite dataset is built from.

        Join operands name sibling logical tables; those are resolved one
        level deep only.
        """
        definition = as_dict(self.extract_definition(raw))
        logical_tables = as_dict(definition.get('LogicalTableMap'))
        arns = []

        for table in logical_tables.values():
            source = as_dict(as_dict(table).get('Source'))
            arns.append(source.get('DataSetArn'))

            join = as_dict(source.get('JoinInstruction'))
            for operand in (join.get('LeftOperand'), join.get('RightOperand')):
                if operand:
                    operand_source = as_dict(as_dict(logical_tables.get(operand)).get('Source'))
                    arns.append(operand_source.get('DataSetArn'))

        for table in as_dict(definition.get('PhysicalTableMap')).values():
            arns.append(as_dict(table).get('DataSetArn'))

        return unique(arn_suffix(arn) for arn in arns if isinstance(arn, str))

    def extract_lineage(self, raw: Any) -> Optional[Dict[str, Any]]:
        """
        Datasource and table lineage of a dataset.

        Returns:
            Optional[Dict[str, Any]]: None when the dataset has neither
            datasource references nor physical tables
        """
        definition = as_dict(self.extract_definition(raw))
        if not definition:
            return None

        datasource_arns = []
        physical_tables = []
        for table_id, table in as_dict(definition.get('PhysicalTableMap')).items():
            table = as_dict(table)
            entry: Dict[str, Any] = {'tableId': table_id, 'type': _physical_table_type(table)}

            relational_arn = (
                as_dict(table.get('RelationalTable')).get('DataSourceArn')
                or as_dict(table.get('CustomSql')).get('DataSourceArn')
            )
            if relational_arn:
                entry['datasourceArn'] = relational_arn
                datasource_arns.append(relational_arn)
            elif table.get('S3Source'):
                s3_source = as_dict(table['S3Source'])
                entry['s3Source'] = {
                    'dataSourceArn': s3_source.get('DataSourceArn'),
                    'inputColumns': len(as_list(s3_source.get('InputColumns'))),
                }
                if s3_source.get('DataSourceArn'):
                    datasource_arns.append(s3_source['DataSourceArn'])

            physical_tables.append(entry)

        logical_tables = [
            {
                'tableId': table_id,
                'source': as_dict(table).get('Source'),
                'alias': as_dict(table).get('Alias'),
                'dataTransforms': len(as_list(as_dict(table).get('DataTransforms'))),
            }
            for table_id, table in as_dict(definition.get('LogicalTableMap')).items()
        ]

        datasource_arns = unique(datasource_arns)
        datasource_ids = unique(arn_suffix(arn) for arn in datasource_arns)
        if not datasource_ids and not physical_tables:
            return None

        return {
            'datasourceIds': datasource_ids,
            'datasourceArns': datasource_arns,
            'physicalTables': physical_tables,
            'logicalTables': logical_tables,
        }

    # Metadata

    @staticmethod
    def extract_refresh_data(refresh_schedules: Any = None, refresh_properties: Any = None) -> Dict[str, Any]:
        refresh_data: Dict[str, Any] = {
            'hasRefreshProperties': False,
            'refreshScheduleCount': 0,
        }
        if refresh_properties:
            refresh_data['hasRefreshProperties'] = True
            refresh_data['dataSetRefreshProperties'] = refresh_properties
        if refresh_schedules:
            refresh_data['refreshScheduleCount'] = len(refresh_schedules) if isinstance(refresh_schedules, list) else 0
            refresh_data['refreshSchedules'] = refresh_schedules
        return refresh_data

    def extract_metadata(self, export: AssetExportData,
                         transformed: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        list_data = as_dict(export.data('list'))
        describe_data = as_dict(unwrap(export.data('describe'), 'DataSet'))

        parsed = self.parse(describe_data) if describe_data else None
        fields = parsed.fields if parsed else []
        calculated_fields = parsed.calculated_fields if parsed else []

        metadata = self.basic_metadata(list_data, describe_data, 'DataSetId')
        metadata.update({
            'importMode': list_data.get('ImportMode') or describe_data.get('ImportMode'),
            'consumedSpiceCapacityInBytes': (
                list_data.get('ConsumedSpiceCapacityInBytes')
                or describe_data.get('ConsumedSpiceCapacityInBytes')
            ),
            'rowCount': as_dict(describe_data.get('RowLevelPermissionDataSet')).get('RowCount'),
            'fieldCount': len(fields),
            'datasourceArns': self.extract_datasource_arns(describe_data),
            'fields': [
                {
                    'fieldId': f.field_id,
                    'fieldName': f.field_name,
                    'name': f.field_name,
                    'dataType': f.data_type,
                    'type': f.data_type,
                }
                for f in fields
            ],
            'calculatedFields': [{'name': cf.name, 'expression': cf.expression} for cf in calculated_fields],
            'lineageData': self.extract_lineage(describe_data),
        })

        refresh_schedules = export.data('refreshSchedules')
        refresh_properties = export.data('dataSetRefreshProperties')
        if refresh_schedules or refresh_properties:
            metadata['refreshData'] = self.extract_refresh_data(refresh_schedules, refresh_properties)

        return metadata
