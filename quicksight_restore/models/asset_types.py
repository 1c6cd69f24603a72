"""
Asset kinds handled by the restore toolkit and their storage path conventions.
"""

from enum import Enum
from typing import Union


class AssetType(Enum):
    """QuickSight asset kinds, always singular."""
    DASHBOARD = "dashboard"
    ANALYSIS = "analysis"
    DATASET = "dataset"
    DATASOURCE = "datasource"
    FOLDER = "folder"
    USER = "user"
    GROUP = "group"

    @classmethod
    def parse(cls, value: Union[str, 'AssetType']) -> 'AssetType':
        """
        Coerce a string such as ``"dashboard"`` or ``"DASHBOARD"`` to an AssetType.

        Args:
            value: Asset type name or member

        Returns:
            AssetType: Matching member

        Raises:
            ValueError: If the value names no known asset kind
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unknown asset type: {value}")

    @property
    def plural(self) -> str:
        """Plural form used in object store paths."""
        return PLURAL_FORMS[self]

    @property
    def is_collection(self) -> bool:
        """Collection kinds are stored together in a single organization document."""
        return self in COLLECTION_ASSET_TYPES

    def active_path(self, asset_id: str) -> str:
        """Object key of the live copy of an asset."""
        if self.is_collection:
            return f"assets/organization/{self.plural}.json"
        return f"assets/{self.plural}/{asset_id}.json"

    def archive_path(self, asset_id: str) -> str:
        """Object key of the archived copy of an asset."""
        if self.is_collection:
            return f"archived/organization/{self.plural}.json"
        return f"archived/{self.plural}/{asset_id}.json"


PLURAL_FORMS = {
    AssetType.DASHBOARD: "dashboards",
    AssetType.ANALYSIS: "analyses",
    AssetType.DATASET: "datasets",
    AssetType.DATASOURCE: "datasources",
    AssetType.FOLDER: "folders",
    AssetType.USER: "users",
    AssetType.GROUP: "groups",
}

COLLECTION_ASSET_TYPES = frozenset({AssetType.USER, AssetType.GROUP, AssetType.FOLDER})

# Kinds whose definitions come from a DescribeXDefinition call
DEFINITION_ASSET_TYPES = frozenset({AssetType.DASHBOARD, AssetType.ANALYSIS})

# Id key present in each kind's list payload
LIST_ID_KEYS = {
    'DashboardId': AssetType.DASHBOARD,
    'AnalysisId': AssetType.ANALYSIS,
    'DataSetId': AssetType.DATASET,
    'DataSourceId': AssetType.DATASOURCE,
    'FolderId': AssetType.FOLDER,
    'UserName': AssetType.USER,
    'GroupName': AssetType.GROUP,
}
