"""
Parser for analysis definitions.
"""

from typing import Any, Dict, Optional

from ..models.asset_types import AssetType
from .exploration import ExplorationParser


class AnalysisParser(ExplorationParser):
    """Analyses share the exploration definition shape."""

    asset_type = AssetType.ANALYSIS
    describe_key = 'Analysis'
    id_key = 'AnalysisId'

    def _describe_status(self, list_data: Dict[str, Any], describe_data: Dict[str, Any]) -> Optional[str]:
        return list_data.get('Status') or describe_data.get('Status')
