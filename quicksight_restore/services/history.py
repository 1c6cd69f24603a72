"""
In-process deployment history.
"""

import threading
from typing import Dict, List, Optional

from ..models.deployment import DeploymentResult
from .base import DeploymentHistory


class InMemoryDeploymentHistory(DeploymentHistory):
    """Thread-safe dict of results; entries live as long as the process."""

    def __init__(self):
        self._results: Dict[str, DeploymentResult] = {}
        self._lock = threading.Lock()

    def save(self, result: DeploymentResult) -> None:
        with self._lock:
            self._results[result.deployment_id] = result

    def get(self, deployment_id: str) -> Optional[DeploymentResult]:
        with self._lock:
            return self._results.get(deployment_id)

    def list(self, limit: Optional[int] = None) -> List[DeploymentResult]:
        with self._lock:
            results = sorted(self._results.values(), key=lambda r: r.start_time, reverse=True)
        return results[:limit] if limit is not None else results

    def __len__(self) -> int:
        return len(self._results)
