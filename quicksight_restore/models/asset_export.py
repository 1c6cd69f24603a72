"""
Envelope model for exported/archived QuickSight assets.

An exported asset is stored as::

    {
        "apiResponses": {
            "list": {"timestamp": "...", "data": {...}},
            "describe": {"timestamp": "...", "data": {...}},
            "definition": {"timestamp": "...", "data": {...}},
            "permissions": {"timestamp": "...", "data": [...]},
            "tags": {"timestamp": "...", "data": [...]}
        }
    }

A snapshot that is absent means the asset has not been enriched with that
API response yet; it is never treated as an empty payload.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .asset_types import AssetType, LIST_ID_KEYS


@dataclass
class ApiSnapshot:
    """A single captured API response."""

    timestamp: Optional[str]
    data: Any
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'ApiSnapshot':
        return cls(
            timestamp=raw.get('timestamp'),
            data=raw.get('data'),
            error=raw.get('error')
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {'timestamp': self.timestamp, 'data': self.data}
        if self.error is not None:
            result['error'] = self.error
        return result


@dataclass
class AssetExportData:
    """Named API-response snapshots captured for one asset."""

    api_responses: Dict[str, ApiSnapshot] = field(default_factory=dict)
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> 'AssetExportData':
        """
        Build an envelope from the archived JSON layout.

        Args:
            raw: Archived document (may be None or lack apiResponses)

        Returns:
            AssetExportData: Envelope; unknown top-level keys are kept in ``extras``
        """
        raw = raw or {}
        responses = {}
        for name, snapshot in (raw.get('apiResponses') or {}).items():
            if isinstance(snapshot, dict):
                responses[name] = ApiSnapshot.from_dict(snapshot)
        extras = {k: v for k, v in raw.items() if k != 'apiResponses'}
        return cls(api_responses=responses, extras=extras)

    def to_dict(self) -> Dict[str, Any]:
        result = dict(self.extras)
        result['apiResponses'] = {
            name: snapshot.to_dict() for name, snapshot in self.api_responses.items()
        }
        return result

    def snapshot(self, name: str) -> Optional[ApiSnapshot]:
        return self.api_responses.get(name)

    def data(self, name: str) -> Any:
        """Payload of a snapshot, or None when the snapshot was never captured."""
        snapshot = self.api_responses.get(name)
        return snapshot.data if snapshot is not None else None

    def has(self, name: str) -> bool:
        """True when the snapshot exists and carries a non-empty payload."""
        return bool(self.data(name))

    @property
    def is_empty(self) -> bool:
        return not self.api_responses

    def detect_asset_type(self) -> Optional[AssetType]:
        """Infer the asset kind from the id key of the list snapshot."""
        list_data = self.data('list')
        if not isinstance(list_data, dict):
            return None
        for key, asset_type in LIST_ID_KEYS.items():
            if key in list_data:
                return asset_type
        return None
