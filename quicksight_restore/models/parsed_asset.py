"""
Normalized structures produced by the definition parsers.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


@dataclass
class CalculatedField:
    name: str
    expression: str
    data_set_identifier: Optional[str] = None


@dataclass
class Field:
    """A column reference. Identity is (field_id, data_set_identifier)."""
    field_id: str
    field_name: str
    data_type: Optional[str] = None
    data_set_identifier: Optional[str] = None

    @property
    def identity(self) -> tuple:
        return (self.field_id, self.data_set_identifier or '')


@dataclass
class VisualFieldMapping:
    """Binds a column to a visual with a human-readable display name and role."""
    field_id: str
    field_name: str
    display_name: str
    visual_id: str = ''
    visual_type: str = ''
    sheet_id: str = ''
    sheet_name: Optional[str] = None
    data_set_identifier: Optional[str] = None
    field_role: Optional[str] = None
    axis_label: Optional[Any] = None


@dataclass
class DataSetInfo:
    identifier: str
    arn: Optional[str] = None
    name: Optional[str] = None


@dataclass
class Parameter:
    name: str
    type: str = 'Unknown'
    default_value: Any = None


@dataclass
class Filter:
    filter_id: str
    name: Optional[str] = None
    scope: Optional[str] = None
    data_set_identifier: Optional[str] = None


@dataclass
class Visual:
    visual_id: str
    type: str
    title: Optional[str] = None
    sheet_id: Optional[str] = None
    sheet_name: Optional[str] = None
    has_title: bool = False


@dataclass
class Sheet:
    sheet_id: str
    name: Optional[str] = None
    visual_count: int = 0
    visuals: List[Visual] = field(default_factory=list)


@dataclass
class ParsedAssetInfo:
    """Normalized semantic model of a single asset definition."""

    calculated_fields: List[CalculatedField] = field(default_factory=list)
    fields: List[Field] = field(default_factory=list)
    data_sets: List[DataSetInfo] = field(default_factory=list)
    parameters: List[Parameter] = field(default_factory=list)
    filters: List[Filter] = field(default_factory=list)
    sheets: List[Sheet] = field(default_factory=list)
    visuals: List[Visual] = field(default_factory=list)
    visual_field_mappings: List[VisualFieldMapping] = field(default_factory=list)
    datasource_info: Optional[Dict[str, Any]] = None

    def find_data_set(self, identifier: Optional[str]) -> Optional[DataSetInfo]:
        if not identifier:
            return None
        for data_set in self.data_sets:
            if data_set.identifier == identifier:
                return data_set
        return None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
