"""
Per-kind descriptors of which structural facets a parser extracts.

The restore pipeline reads these to decide which dependency checks apply.
"""

from dataclasses import dataclass
from typing import Dict

from ..models.asset_types import AssetType


@dataclass(frozen=True)
class ParserCapabilities:
    """Structural facets extracted for an asset kind."""
    has_data_sets: bool = False
    has_calculated_fields: bool = False
    has_parameters: bool = False
    has_filters: bool = False
    has_sheets: bool = False
    has_visuals: bool = False
    has_fields: bool = False
    has_datasource_info: bool = False


EXPLORATION_CAPABILITIES = ParserCapabilities(
    has_data_sets=True,
    has_calculated_fields=True,
    has_parameters=True,
    has_filters=True,
    has_sheets=True,
    has_visuals=True,
    has_fields=True,
)

DATASET_CAPABILITIES = ParserCapabilities(
    has_calculated_fields=True,
    has_fields=True,
    has_datasource_info=True,
)

DATASOURCE_CAPABILITIES = ParserCapabilities(has_datasource_info=True)

NO_CAPABILITIES = ParserCapabilities()

CAPABILITIES: Dict[AssetType, ParserCapabilities] = {
    AssetType.DASHBOARD: EXPLORATION_CAPABILITIES,
    AssetType.ANALYSIS: EXPLORATION_CAPABILITIES,
    AssetType.DATASET: DATASET_CAPABILITIES,
    AssetType.DATASOURCE: DATASOURCE_CAPABILITIES,
    AssetType.FOLDER: NO_CAPABILITIES,
    AssetType.GROUP: NO_CAPABILITIES,
    AssetType.USER: NO_CAPABILITIES,
}
