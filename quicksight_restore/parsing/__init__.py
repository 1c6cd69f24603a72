"""
Definition parsers and metadata extraction for QuickSight assets.
"""

from .analysis import AnalysisParser
from .base import BaseAssetParser
from .capabilities import CAPABILITIES, ParserCapabilities
from .dashboard import DashboardParser
from .dataset import DatasetParser
from .datasource import DatasourceParser
from .exploration import ExplorationParser
from .organization import FolderParser, GroupParser, UserParser
from .service import AssetParserService

__all__ = [
    'AnalysisParser',
    'AssetParserService',
    'BaseAssetParser',
    'CAPABILITIES',
    'DashboardParser',
    'DatasetParser',
    'DatasourceParser',
    'ExplorationParser',
    'FolderParser',
    'GroupParser',
    'ParserCapabilities',
    'UserParser',
]
