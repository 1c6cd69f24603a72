"""
Shared parsing for explorations (dashboards and analyses).

Both kinds carry the same definition shape: dataset declarations, sheets
with visuals, filter groups, parameters and calculated fields.
"""

import logging
from typing import Any, Dict, List, Optional

from ..models.asset_export import AssetExportData
from ..models.parsed_asset import (
    CalculatedField, DataSetInfo, Field, Filter, Parameter, ParsedAssetInfo, Sheet,
    Visual, VisualFieldMapping
)
from .base import BaseAssetParser, arn_suffix, as_dict, as_list, is_valid_field_name, unique, unwrap
from .visual_types import get_visual_data, get_visual_type

logger = logging.getLogger(__name__)

# Bound on nesting when walking field wells
MAX_FIELD_WALK_DEPTH = 64

FIELD_KINDS = (
    'CategoricalDimensionField',
    'NumericalDimensionField',
    'DateDimensionField',
    'CategoricalMeasureField',
    'NumericalMeasureField',
    'DateMeasureField',
)

AGGREGATED_FIELD_WELLS = (
    'BarChartAggregatedFieldWells',
    'LineChartAggregatedFieldWells',
    'PieChartAggregatedFieldWells',
    'TableAggregatedFieldWells',
    'PivotTableAggregatedFieldWells',
    'ScatterPlotCategoricallyAggregatedFieldWells',
    'ComboChartAggregatedFieldWells',
)

# Well name -> role; Values is read twice on purpose, once per role
FIELD_WELL_ROLES = (
    ('Category', 'category'),
    ('Values', 'value'),
    ('SmallMultiples', 'small-multiple'),
    ('Color', 'color'),
    ('Values', 'measure'),
    ('GroupBy', 'dimension'),
    ('Rows', 'row'),
    ('Columns', 'column'),
    ('LineValues', 'line-value'),
    ('BarValues', 'bar-value'),
)

X_AXIS_ROLES = frozenset({'category', 'dimension'})
Y_AXIS_ROLES = frozenset({'value', 'measure'})

PARAMETER_KINDS = (
    ('StringParameterDeclaration', 'String'),
    ('IntegerParameterDeclaration', 'Integer'),
    ('DecimalParameterDeclaration', 'Decimal'),
    ('DateTimeParameterDeclaration', 'DateTime'),
)

FILTER_KINDS = ('CategoryFilter', 'NumericRangeFilter', 'TimeRangeFilter')

DEFAULT_FIELD_DATA_TYPE = 'STRING'
DEFAULT_STATUS = 'CREATION_SUCCESSFUL'


def _field_object(container: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for kind in FIELD_KINDS:
        value = container.get(kind)
        if isinstance(value, dict):
            return value
    return None


def _visual_configuration(visual_data: Dict[str, Any]) -> Dict[str, Any]:
    return as_dict(visual_data.get('ChartConfiguration') or visual_data.get('Configuration'))


def resolve_display_name(field_obj: Dict[str, Any], column_name: str) -> str:
    """
    Human-readable label of a field in a visual.

    Later sources win: number-format prefix/suffix, a format column-name
    override, then the field label. A result that looks like the opaque
    FieldId falls back to the column name.
    """
    display_name = column_name
    format_config = as_dict(field_obj.get('FormatConfiguration'))

    number_format = as_dict(format_config.get('NumberDisplayFormatConfiguration'))
    prefix = number_format.get('Prefix') or ''
    suffix = number_format.get('Suffix') or ''
    if prefix or suffix:
        display_name = f"{prefix}{column_name}{suffix}".strip()

    if isinstance(format_config.get('ColumnName'), str) and format_config['ColumnName']:
        display_name = format_config['ColumnName']

    if isinstance(field_obj.get('Label'), str) and field_obj['Label']:
        display_name = field_obj['Label']

    field_id = field_obj.get('FieldId')
    if display_name == field_id or ('.' in display_name and '-' in display_name):
        logger.debug(f"Display name looked like a field id, reverting to column name: {column_name}")
        display_name = column_name

    return display_name


class ExplorationParser(BaseAssetParser):
    """Common parser for dashboard and analysis definitions."""

    describe_key: str = ''
    id_key: str = ''

    def extract_definition(self, raw: Any) -> Any:
        if not isinstance(raw, dict):
            return {}
        return raw.get('Definition') or raw or {}

    # Slots

    def parse_data_sets(self, definition: Dict[str, Any]) -> List[DataSetInfo]:
        return [
            DataSetInfo(
                identifier=decl.get('Identifier'),
                arn=decl.get('DataSetArn'),
                name=decl.get('DataSetName')
            )
            for decl in as_list(definition.get('DataSetIdentifierDeclarations'))
            if isinstance(decl, dict)
        ]

    def parse_calculated_fields(self, definition: Dict[str, Any]) -> List[CalculatedField]:
        return [
            CalculatedField(
                name=cf.get('Name'),
                expression=cf.get('Expression'),
                data_set_identifier=cf.get('DataSetIdentifier')
            )
            for cf in as_list(definition.get('CalculatedFields'))
            if isinstance(cf, dict)
        ]

    def parse_parameters(self, definition: Dict[str, Any]) -> List[Parameter]:
        parameters = []
        for decl in as_list(definition.get('ParameterDeclarations')):
            if not isinstance(decl, dict):
                continue
            for key, type_name in PARAMETER_KINDS:
                body = decl.get(key)
                if isinstance(body, dict):
                    static_values = as_list(as_dict(body.get('DefaultValues')).get('StaticValues'))
                    parameters.append(Parameter(
                        name=body.get('Name', decl.get('Name')),
                        type=type_name,
                        default_value=static_values[0] if static_values else None
                    ))
                    break
            else:
                parameters.append(Parameter(name=decl.get('Name'), type='Unknown'))
        return parameters

    def parse_filters(self, definition: Dict[str, Any]) -> List[Filter]:
        filters = []
        for group in as_list(definition.get('FilterGroups')):
            if not isinstance(group, dict):
                continue
            scope_config = as_dict(as_dict(group.get('Scope')).get('ScopeConfiguration'))
            scope = 'SELECTED_SHEETS' if scope_config.get('SelectedSheets') else 'ALL_VISUALS'

            for raw_filter in as_list(group.get('Filters')):
                if not isinstance(raw_filter, dict):
                    continue
                entry = Filter(
                    filter_id=raw_filter.get('FilterId') or group.get('FilterGroupId'),
                    scope=scope
                )
                for kind in FILTER_KINDS:
                    body = raw_filter.get(kind)
                    if isinstance(body, dict):
                        column = as_dict(body.get('Column'))
                        entry.filter_id = body.get('FilterId') or entry.filter_id
                        entry.name = column.get('ColumnName')
                        entry.data_set_identifier = column.get('DataSetIdentifier')
                        break
                filters.append(entry)
        return filters

    def parse_sheets(self, definition: Dict[str, Any]) -> List[Sheet]:
        sheets, _ = self._sheets_and_visuals(definition)
        return sheets

    def parse_visuals(self, definition: Dict[str, Any]) -> List[Visual]:
        _, visuals = self._sheets_and_visuals(definition)
        return visuals

    def parse_fields(self, definition: Dict[str, Any]) -> List[Field]:
        fields: List[Field] = []
        for sheet in as_list(definition.get('Sheets')):
            for visual in as_list(as_dict(sheet).get('Visuals')):
                if not isinstance(visual, dict):
                    continue
                visual_data = get_visual_data(visual)
                config = _visual_configuration(visual_data)
                wells = (
                    config.get('FieldWells')
                    or as_dict(visual_data.get('ConditionalFormatting')).get('ConditionalFormattingOptions')
                )
                if wells:
                    self._collect_fields(wells, fields, 0)
        return fields

    def parse_visual_field_mappings(self, definition: Dict[str, Any]) -> List[VisualFieldMapping]:
        mappings: List[VisualFieldMapping] = []
        for sheet in as_list(definition.get('Sheets')):
            sheet = as_dict(sheet)
            for visual in as_list(sheet.get('Visuals')):
                if not isinstance(visual, dict):
                    continue
                visual_type = get_visual_type(visual)
                visual_data = get_visual_data(visual, visual_type)
                config = _visual_configuration(visual_data)

                visual_mappings = self._mappings_from_field_wells(
                    as_dict(config.get('FieldWells')),
                    visual_id=visual_data.get('VisualId') or '',
                    visual_type=visual_type,
                    sheet_id=sheet.get('SheetId') or '',
                    sheet_name=sheet.get('Name')
                )

                x_label = as_dict(config.get('XAxisDisplayOptions')).get('AxisLabel')
                y_label = as_dict(config.get('YAxisDisplayOptions')).get('AxisLabel')
                for mapping in visual_mappings:
                    if x_label and mapping.field_role in X_AXIS_ROLES:
                        mapping.axis_label = x_label
                    elif y_label and mapping.field_role in Y_AXIS_ROLES:
                        mapping.axis_label = y_label

                mappings.extend(visual_mappings)
        return mappings

    # Helpers

    def _collect_fields(self, node: Any, fields: List[Field], depth: int) -> None:
        if depth > MAX_FIELD_WALK_DEPTH:
            return

        if isinstance(node, list):
            for item in node:
                self._collect_fields(item, fields, depth + 1)
            return

        if not isinstance(node, dict):
            return

        column_name = node.get('ColumnName')
        if is_valid_field_name(column_name):
            fields.append(Field(
                field_id=column_name,
                field_name=column_name,
                data_set_identifier=node.get('DataSetIdentifier')
            ))

        field_obj = _field_object(node)
        if field_obj is not None:
            column = as_dict(field_obj.get('Column'))
            if is_valid_field_name(column.get('ColumnName')):
                fields.append(Field(
                    field_id=column['ColumnName'],
                    field_name=column['ColumnName'],
                    data_set_identifier=column.get('DataSetIdentifier')
                ))

        for value in node.values():
            if isinstance(value, (dict, list)):
                self._collect_fields(value, fields, depth + 1)

    def _mappings_from_field_wells(self, field_wells: Dict[str, Any], visual_id: str, visual_type: str,
                                   sheet_id: str, sheet_name: Optional[str]) -> List[VisualFieldMapping]:
        if not field_wells:
            return []

        container = field_wells
        for key in AGGREGATED_FIELD_WELLS:
            if isinstance(field_wells.get(key), dict):
                container = field_wells[key]
                break

        mappings = []
        for well, role in FIELD_WELL_ROLES:
            for entry in as_list(container.get(well)):
                if not isinstance(entry, dict):
                    continue
                field_obj = _field_object(entry)
                if field_obj is None:
                    continue
                column = as_dict(field_obj.get('Column'))
                column_name = column.get('ColumnName')
                if not is_valid_field_name(column_name):
                    continue
                mappings.append(VisualFieldMapping(
                    field_id=column_name,
                    field_name=column_name,
                    display_name=resolve_display_name(field_obj, column_name),
                    visual_id=visual_id,
                    visual_type=visual_type,
                    sheet_id=sheet_id,
                    sheet_name=sheet_name,
                    data_set_identifier=column.get('DataSetIdentifier'),
                    field_role=role
                ))
        return mappings

    def _sheets_and_visuals(self, definition: Dict[str, Any]):
        sheets: List[Sheet] = []
        visuals: List[Visual] = []

        for raw_sheet in as_list(definition.get('Sheets')):
            raw_sheet = as_dict(raw_sheet)
            sheet_visuals = []
            raw_visuals = as_list(raw_sheet.get('Visuals'))
            for raw_visual in raw_visuals:
                if not isinstance(raw_visual, dict):
                    continue
                visual_type = get_visual_type(raw_visual)
                visual_data = get_visual_data(raw_visual, visual_type)
                title = self._visual_title(visual_data)
                sheet_visuals.append(Visual(
                    visual_id=visual_data.get('VisualId') or '',
                    type=visual_type,
                    title=title,
                    sheet_id=raw_sheet.get('SheetId'),
                    sheet_name=raw_sheet.get('Name'),
                    has_title=bool(title)
                ))

            sheets.append(Sheet(
                sheet_id=raw_sheet.get('SheetId') or '',
                name=raw_sheet.get('Name'),
                visual_count=len(raw_visuals),
                visuals=sheet_visuals
            ))
            visuals.extend(sheet_visuals)

        return sheets, visuals

    @staticmethod
    def _visual_title(visual_data: Dict[str, Any]) -> Optional[str]:
        title = as_dict(visual_data.get('Title'))
        plain_text = as_dict(title.get('FormatText')).get('PlainText')
        if title.get('Visibility') == 'VISIBLE' and plain_text:
            return plain_text
        return None

    # Metadata

    def extract_lineage(self, definition_data: Any, describe_data: Any = None) -> Dict[str, Any]:
        """
        Upstream references of an exploration.

        Args:
            definition_data: Definition snapshot payload
            describe_data: Describe snapshot payload

        Returns:
            Dict[str, Any]: ``datasetIds`` and, for dashboards, ``sourceAnalysisArn``;
            keys are omitted when there is nothing to report
        """
        lineage: Dict[str, Any] = {}

        source_arn = self._source_analysis_arn(describe_data)
        if source_arn:
            lineage['sourceAnalysisArn'] = source_arn

        definition = as_dict(self.extract_definition(definition_data))
        dataset_ids = unique(
            arn_suffix(decl['DataSetArn'])
            for decl in as_list(definition.get('DataSetIdentifierDeclarations'))
            if isinstance(decl, dict) and isinstance(decl.get('DataSetArn'), str)
        )
        if dataset_ids:
            lineage['datasetIds'] = dataset_ids

        return lineage

    def _source_analysis_arn(self, describe_data: Any) -> Optional[str]:
        return None

    def _publish_options(self, definition_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return None

    def extract_exploration_metadata(self, definition_data: Any, describe_data: Any = None) -> Dict[str, Any]:
        """Counts, sheets, fields and lineage derived from a definition snapshot."""
        try:
            parsed = self.parse(definition_data)
            definition_data = as_dict(definition_data)

            metadata: Dict[str, Any] = {
                'sheetCount': len(parsed.sheets),
                'visualCount': len(parsed.visuals),
                'datasetCount': len(parsed.data_sets),
                'sheets': [
                    {
                        'sheetId': sheet.sheet_id,
                        'name': sheet.name,
                        'visualCount': sheet.visual_count,
                        'visuals': [
                            {
                                'visualId': v.visual_id,
                                'type': v.type,
                                'title': v.title,
                                'hasTitle': v.has_title
                            }
                            for v in sheet.visuals
                        ]
                    }
                    for sheet in parsed.sheets
                ],
                'fields': self._fields_for_metadata(parsed),
                'calculatedFields': self._calculated_fields_for_metadata(parsed),
            }

            errors = self._definition_errors(definition_data)
            if errors:
                metadata['definitionErrors'] = errors

            lineage = self.extract_lineage(definition_data, describe_data)
            if lineage:
                metadata['lineageData'] = lineage

            if definition_data.get('ThemeArn'):
                metadata['themeArn'] = definition_data['ThemeArn']

            publish_options = self._publish_options(definition_data)
            if publish_options:
                metadata['dashboardPublishOptions'] = publish_options

            return metadata
        except Exception as e:
            logger.error(f"Failed to extract {self.asset_type.value} metadata: {str(e)}", exc_info=True)
            return {'sheetCount': 0, 'visualCount': 0, 'datasetCount': 0}

    def extract_metadata(self, export: AssetExportData,
                         transformed: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        list_data = as_dict(export.data('list'))
        describe_data = as_dict(unwrap(export.data('describe'), self.describe_key))
        definition_data = export.data('definition')

        metadata = self.basic_metadata(list_data, describe_data, self.id_key)
        metadata.update(self._kind_basic_metadata(list_data, describe_data))

        if not definition_data:
            metadata.update({
                'status': self._describe_status(list_data, describe_data),
                'sheetCount': 0,
                'visualCount': 0,
                'datasetCount': 0,
                'sheets': [],
            })
            return metadata

        exploration = self.extract_exploration_metadata(definition_data, describe_data)
        transformed_kind = as_dict(as_dict(transformed).get(self.asset_type.value))

        metadata.update(exploration)
        metadata['status'] = (
            transformed_kind.get('status')
            or self._describe_status(list_data, describe_data)
            or DEFAULT_STATUS
        )
        activity = as_dict(transformed).get('activity')
        if activity is not None:
            metadata['activity'] = activity
        return metadata

    def _kind_basic_metadata(self, list_data: Dict[str, Any], describe_data: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    def _describe_status(self, list_data: Dict[str, Any], describe_data: Dict[str, Any]) -> Optional[str]:
        return None

    @staticmethod
    def _definition_errors(definition_data: Dict[str, Any]) -> List[Dict[str, Any]]:
        errors = []
        for error in as_list(definition_data.get('Errors')):
            if not isinstance(error, dict):
                continue
            entry = {'type': error.get('Type'), 'message': error.get('Message')}
            if isinstance(error.get('ViolatedEntities'), list):
                entry['violatedEntities'] = [
                    {'path': as_dict(entity).get('Path')} for entity in error['ViolatedEntities']
                ]
            errors.append(entry)
        return errors

    @staticmethod
    def _fields_for_metadata(parsed: ParsedAssetInfo) -> List[Dict[str, Any]]:
        result = []
        for f in parsed.fields:
            data_set = parsed.find_data_set(f.data_set_identifier)
            result.append({
                'fieldId': f.field_id,
                'fieldName': f.field_name,
                'displayName': f.field_name,
                'dataType': f.data_type or DEFAULT_FIELD_DATA_TYPE,
                'sourceDatasetId': f.data_set_identifier,
                'sourceDatasetName': data_set.name if data_set else None,
                'columnName': f.field_name,
            })
        return result

    @staticmethod
    def _calculated_fields_for_metadata(parsed: ParsedAssetInfo) -> List[Dict[str, Any]]:
        result = []
        for cf in parsed.calculated_fields:
            data_set = parsed.find_data_set(cf.data_set_identifier)
            result.append({
                'fieldId': cf.name,
                'fieldName': cf.name,
                'displayName': cf.name,
                'dataType': DEFAULT_FIELD_DATA_TYPE,
                'expression': cf.expression,
                'sourceDatasetId': cf.data_set_identifier,
                'sourceDatasetName': data_set.name if data_set else None,
            })
        return result
