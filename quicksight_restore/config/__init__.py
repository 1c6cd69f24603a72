"""
Configuration loading for QuickSight restore operations.
"""

from .manager import ConfigurationManager

__all__ = ["ConfigurationManager"]
