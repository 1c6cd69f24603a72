"""
Parser registry routing parse and metadata requests to the per-kind parsers.
"""

import logging
from typing import Any, Dict, List, Optional

from ..models.asset_export import AssetExportData
from ..models.asset_types import AssetType
from ..models.deployment import EnrichmentStatus
from ..models.parsed_asset import ParsedAssetInfo
from .analysis import AnalysisParser
from .base import BaseAssetParser, unwrap
from .capabilities import ParserCapabilities
from .dashboard import DashboardParser
from .dataset import DatasetParser
from .datasource import DatasourceParser
from .organization import FolderParser, GroupParser, UserParser

logger = logging.getLogger(__name__)

EXPLORATION_TYPES = frozenset({AssetType.DASHBOARD, AssetType.ANALYSIS})


class AssetParserService:
    """
    Single entry point for parsing definitions and extracting cache metadata.

    Dispatch is keyed by AssetType; ``register_parser`` replaces an entry.
    """

    def __init__(self):
        self.parsers: Dict[AssetType, BaseAssetParser] = {
            AssetType.DASHBOARD: DashboardParser(),
            AssetType.ANALYSIS: AnalysisParser(),
            AssetType.DATASET: DatasetParser(),
            AssetType.DATASOURCE: DatasourceParser(),
            AssetType.FOLDER: FolderParser(),
            AssetType.GROUP: GroupParser(),
            AssetType.USER: UserParser(),
        }

    def get_parser(self, asset_type: AssetType) -> Optional[BaseAssetParser]:
        return self.parsers.get(AssetType.parse(asset_type))

    def register_parser(self, asset_type: AssetType, parser: BaseAssetParser) -> None:
        self.parsers[AssetType.parse(asset_type)] = parser

    def get_parser_capabilities(self, asset_type: AssetType) -> Optional[ParserCapabilities]:
        parser = self.get_parser(asset_type)
        return parser.capabilities if parser else None

    def get_supported_asset_types(self) -> List[AssetType]:
        return list(self.parsers.keys())

    def parse(self, asset_type: AssetType, raw: Any) -> ParsedAssetInfo:
        """
        Parse a raw definition with the parser registered for a kind.

        Args:
            asset_type: Kind of the definition
            raw: Definition document

        Returns:
            ParsedAssetInfo: Parsed model; empty when no parser is registered
        """
        parser = self.get_parser(asset_type)
        if parser is None:
            logger.error(f"Parser for {asset_type} not found")
            return ParsedAssetInfo()

        try:
            return parser.parse(raw)
        except Exception as e:
            logger.error(f"Error parsing {asset_type}: {str(e)}", exc_info=True)
            return ParsedAssetInfo()

    def parse_asset(self, asset_type: AssetType, export: AssetExportData) -> Optional[ParsedAssetInfo]:
        """Parse the snapshot that carries a kind's definition, if it has one."""
        try:
            asset_type = AssetType.parse(asset_type)
            definition_data = None

            if asset_type == AssetType.DATASET:
                definition_data = unwrap(export.data('describe'), 'DataSet')
            elif asset_type in EXPLORATION_TYPES:
                definition_data = export.data('definition')

            if not definition_data:
                logger.debug(f"No definition data found for {asset_type.value}")
                return None

            return self.parse(asset_type, definition_data)
        except Exception as e:
            logger.error(f"Error parsing asset {asset_type}: {str(e)}", exc_info=True)
            return None

    def extract_metadata(self, asset_type: AssetType, export: AssetExportData,
                         transformed: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """
        Build the cache metadata record for an exported asset.

        Returns:
            Optional[Dict[str, Any]]: Metadata, or None when the export has no
            snapshots or extraction fails
        """
        try:
            if export is None or export.is_empty:
                return None
            parser = self.get_parser(asset_type)
            if parser is None:
                return None
            return parser.extract_metadata(export, transformed)
        except Exception as e:
            logger.error(
                f"Failed to extract metadata for {asset_type}: {str(e)}",
                exc_info=True,
                extra={'context': {'asset_type': str(asset_type)}}
            )
            return None

    def determine_enrichment_status(self, export: AssetExportData,
                                    asset_type: Optional[AssetType] = None) -> EnrichmentStatus:
        """
        Classify how complete an export is.

        A permissions/tags-only export is a metadata update and must not
        downgrade a record that is already enriched.
        """
        has_describe = export.has('describe')
        has_definition = export.has('definition')

        if (export.has('permissions') or export.has('tags')) and not has_describe and not has_definition:
            return EnrichmentStatus.METADATA_UPDATE

        kind = AssetType.parse(asset_type) if asset_type else export.detect_asset_type()

        if kind in EXPLORATION_TYPES:
            if has_definition:
                return EnrichmentStatus.ENRICHED
            if has_describe:
                return EnrichmentStatus.PARTIAL
        elif kind == AssetType.FOLDER:
            if export.has('list'):
                return EnrichmentStatus.ENRICHED
        elif has_describe:
            return EnrichmentStatus.ENRICHED

        return EnrichmentStatus.SKELETON

    @staticmethod
    def extract_enrichment_timestamps(export: AssetExportData) -> Dict[str, Any]:
        """Capture time of every snapshot except the list one."""
        return {
            name: snapshot.timestamp
            for name, snapshot in export.api_responses.items()
            if name != 'list' and snapshot.timestamp is not None
        }
