"""
Per-kind strategies that recreate archived assets on the platform.
"""

from .base import BaseAssetRestoreStrategy
from .dataset import DatasetRestoreStrategy
from .datasource import DatasourceRestoreStrategy
from .exploration import AnalysisRestoreStrategy, DashboardRestoreStrategy
from .factory import RestoreStrategyFactory
from .unsupported import UnsupportedRestoreStrategy

__all__ = [
    'AnalysisRestoreStrategy',
    'BaseAssetRestoreStrategy',
    'DashboardRestoreStrategy',
    'DatasetRestoreStrategy',
    'DatasourceRestoreStrategy',
    'RestoreStrategyFactory',
    'UnsupportedRestoreStrategy',
]
