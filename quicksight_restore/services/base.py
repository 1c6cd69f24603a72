"""
Collaborator contracts used by the restore pipeline.

The pipeline itself performs no network I/O; every read and write goes
through one of these interfaces so that tests can substitute in-memory
implementations.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.asset_types import AssetType
from ..models.deployment import DeploymentResult


class ObjectStore(ABC):
    """JSON document store addressed by bucket and key."""

    @abstractmethod
    def exists(self, bucket: str, key: str) -> bool:
        """Return True when an object exists at the key."""
        pass

    @abstractmethod
    def get(self, bucket: str, key: str) -> Dict[str, Any]:
        """Read and decode a JSON document."""
        pass

    @abstractmethod
    def put(self, bucket: str, key: str, document: Any) -> None:
        """Encode and write a JSON document."""
        pass


class QuickSightPlatform(ABC):
    """Subset of the QuickSight API used to recreate assets.

    Keyword arguments are snake_case; implementations map them onto the
    service's request shape. ``tags`` is a list of ``{'key', 'value'}`` dicts.
    """

    @abstractmethod
    def create_dashboard(self, dashboard_id: str, name: str, definition: Dict[str, Any],
                         permissions: List[Dict[str, Any]], tags: Optional[List[Dict[str, str]]] = None,
                         theme_arn: Optional[str] = None,
                         dashboard_publish_options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    def create_analysis(self, analysis_id: str, name: str, definition: Dict[str, Any],
                        permissions: List[Dict[str, Any]], tags: Optional[List[Dict[str, str]]] = None,
                        theme_arn: Optional[str] = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    def create_data_set(self, data_set_id: str, name: str, physical_table_map: Dict[str, Any],
                        permissions: List[Dict[str, Any]], tags: Optional[List[Dict[str, str]]] = None,
                        **optional: Any) -> Dict[str, Any]:
        pass

    @abstractmethod
    def create_data_source(self, data_source_id: str, name: str, type: str,
                           data_source_parameters: Dict[str, Any], permissions: List[Dict[str, Any]],
                           tags: Optional[List[Dict[str, str]]] = None, **optional: Any) -> Dict[str, Any]:
        pass

    @abstractmethod
    def delete_dashboard(self, dashboard_id: str) -> None:
        pass

    @abstractmethod
    def delete_analysis(self, analysis_id: str) -> None:
        pass

    @abstractmethod
    def delete_data_set(self, data_set_id: str) -> None:
        pass

    @abstractmethod
    def delete_data_source(self, data_source_id: str) -> None:
        pass

    @abstractmethod
    def describe_data_set(self, data_set_id: str) -> Dict[str, Any]:
        """Return the ``DataSet`` body of a live dataset."""
        pass

    @abstractmethod
    def update_data_set(self, data_set_id: str, name: str, physical_table_map: Dict[str, Any],
                        **optional: Any) -> Dict[str, Any]:
        pass

    @abstractmethod
    def create_refresh_schedule(self, data_set_id: str, schedule: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    def put_data_set_refresh_properties(self, data_set_id: str,
                                        refresh_properties: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    def create_folder_membership(self, folder_id: str, member_id: str, member_type: str) -> Dict[str, Any]:
        pass


class AssetCache(ABC):
    """Per-kind index of restored assets."""

    @abstractmethod
    def replace_asset(self, asset_type: AssetType, asset_id: str, record: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def rebuild_cache_for_asset_type(self, asset_type: AssetType) -> None:
        pass


class DeploymentHistory(ABC):
    """Record of deployment outcomes keyed by deployment id."""

    @abstractmethod
    def save(self, result: DeploymentResult) -> None:
        pass

    @abstractmethod
    def get(self, deployment_id: str) -> Optional[DeploymentResult]:
        pass

    @abstractmethod
    def list(self, limit: Optional[int] = None) -> List[DeploymentResult]:
        """Most recent deployments first."""
        pass
