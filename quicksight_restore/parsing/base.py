"""
Base class and shared helpers for QuickSight definition parsers.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from ..models.asset_export import AssetExportData
from ..models.asset_types import AssetType
from ..models.parsed_asset import (
    CalculatedField, DataSetInfo, Field, Filter, Parameter, ParsedAssetInfo, Sheet,
    Visual, VisualFieldMapping
)
from .capabilities import CAPABILITIES, ParserCapabilities

logger = logging.getLogger(__name__)

INVALID_FIELD_NAMES = frozenset({'undefined', 'null'})


def is_valid_field_name(name: Any) -> bool:
    """A usable column name is a non-blank string other than 'undefined'/'null'."""
    return isinstance(name, str) and name.strip() != '' and name not in INVALID_FIELD_NAMES


def arn_suffix(arn: str) -> str:
    """Resource id at the end of an ARN, or the value itself when it has no '/'."""
    return arn.split('/')[-1] if '/' in arn else arn


def unique(values: Iterable[Any]) -> List[Any]:
    """Drop duplicates and falsy values, keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def unwrap(data: Any, key: str) -> Any:
    """Return ``data[key]`` when ``data`` wraps its body under ``key``."""
    if isinstance(data, dict) and isinstance(data.get(key), dict):
        return data[key]
    return data


def as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


class BaseAssetParser(ABC):
    """
    Turns one kind of raw definition document into a ParsedAssetInfo.

    ``parse`` never raises. Each capability slot is extracted independently,
    so a malformed section leaves only its own slot empty.
    """

    asset_type: AssetType

    @property
    def capabilities(self) -> ParserCapabilities:
        return CAPABILITIES[self.asset_type]

    def parse(self, raw: Any) -> ParsedAssetInfo:
        """
        Parse a raw definition.

        Args:
            raw: Definition document as returned by the describe APIs

        Returns:
            ParsedAssetInfo: Extracted model; empty when the document is unusable
        """
        result = ParsedAssetInfo()

        try:
            definition = self.extract_definition(raw)
        except Exception as e:
            logger.error(f"Error parsing {self.asset_type.value}: {str(e)}", exc_info=True)
            return result

        if not definition:
            logger.warning(f"No definition found for {self.asset_type.value}")
            return result

        caps = self.capabilities
        slots = [
            (caps.has_data_sets, 'data_sets', self.parse_data_sets),
            (caps.has_calculated_fields, 'calculated_fields', self.parse_calculated_fields),
            (caps.has_parameters, 'parameters', self.parse_parameters),
            (caps.has_filters, 'filters', self.parse_filters),
            (caps.has_sheets, 'sheets', self.parse_sheets),
            (caps.has_visuals, 'visuals', self.parse_visuals),
            (caps.has_visuals, 'visual_field_mappings', self.parse_visual_field_mappings),
            (caps.has_fields, 'fields', self.parse_fields),
            (caps.has_datasource_info, 'datasource_info', self.parse_datasource_info),
        ]

        for enabled, attribute, extractor in slots:
            if not enabled:
                continue
            try:
                value = extractor(definition)
                if attribute == 'fields':
                    value = self.deduplicate_fields(value)
                setattr(result, attribute, value)
            except Exception as e:
                logger.error(
                    f"Error parsing {attribute} of {self.asset_type.value}: {str(e)}",
                    exc_info=True,
                    extra={'context': {'asset_type': self.asset_type.value, 'slot': attribute}}
                )

        return result

    @abstractmethod
    def extract_definition(self, raw: Any) -> Any:
        """Locate the core definition inside a raw document."""
        pass

    @abstractmethod
    def extract_metadata(self, export: AssetExportData,
                         transformed: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Build the cache metadata record for an exported asset."""
        pass

    # Slot extractors; kinds override the ones their capabilities enable.

    def parse_data_sets(self, definition: Dict[str, Any]) -> List[DataSetInfo]:
        return []

    def parse_calculated_fields(self, definition: Dict[str, Any]) -> List[CalculatedField]:
        return []

    def parse_parameters(self, definition: Dict[str, Any]) -> List[Parameter]:
        return []

    def parse_filters(self, definition: Dict[str, Any]) -> List[Filter]:
        return []

    def parse_sheets(self, definition: Dict[str, Any]) -> List[Sheet]:
        return []

    def parse_visuals(self, definition: Dict[str, Any]) -> List[Visual]:
        return []

    def parse_visual_field_mappings(self, definition: Dict[str, Any]) -> List[VisualFieldMapping]:
        return []

    def parse_fields(self, definition: Dict[str, Any]) -> List[Field]:
        return []

    def parse_datasource_info(self, definition: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return None

    def deduplicate_fields(self, fields: List[Field]) -> List[Field]:
        """Drop invalid names and repeated (field_id, data_set_identifier) pairs."""
        seen = set()
        result = []
        for f in fields:
            if not is_valid_field_name(f.field_name):
                continue
            if f.identity in seen:
                continue
            seen.add(f.identity)
            result.append(f)
        return result

    @staticmethod
    def basic_metadata(list_data: Any, describe_data: Any, id_key: str) -> Dict[str, Any]:
        """Identity and timestamps, preferring the list snapshot over describe."""
        list_data = as_dict(list_data)
        describe_data = as_dict(describe_data)

        def pick(key: str) -> Any:
            return list_data.get(key) or describe_data.get(key)

        return {
            'assetId': pick(id_key),
            'name': pick('Name'),
            'arn': pick('Arn'),
            'createdTime': pick('CreatedTime'),
            'lastUpdatedTime': pick('LastUpdatedTime'),
        }
