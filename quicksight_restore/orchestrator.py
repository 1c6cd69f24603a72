"""
Deployment coordinator for QuickSight restore operations.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .models.asset_types import AssetType
from .models.deployment import (
    DeploymentConfig, DeploymentItem, DeploymentManifest, DeploymentResult, DeploymentStatus,
    ValidationResult, new_deployment_id
)
from .models.exceptions import DeploymentError
from .services.archive_restore import ArchiveRestoreService
from .services.base import DeploymentHistory, ObjectStore
from .services.history import InMemoryDeploymentHistory
from .services.logging import ProgressTracker

# Items without a priority run last
DEFAULT_PRIORITY = 999

UNIMPLEMENTED_SOURCES = {
    's3': 'S3 source not yet implemented',
    'template': 'Template source not yet implemented',
    'external': 'External source not yet implemented',
}


class QuickSightRestoreOrchestrator:
    """Loads asset data, validates it and hands it to the deployment strategy."""

    def __init__(self, object_store: ObjectStore, bucket_name: str, restore_service: ArchiveRestoreService,
                 history: Optional[DeploymentHistory] = None, aws_account_id: Optional[str] = None,
                 aws_region: Optional[str] = None, max_workers: int = 4):
        """
        Initialize the coordinator.

        Args:
            object_store: Store holding archived and active asset documents
            bucket_name: Bucket of the asset documents
            restore_service: Strategy for the ``restore`` deployment type
            history: Deployment history store (in-memory when omitted)
            aws_account_id: Default target account
            aws_region: Default target region
            max_workers: Thread pool size for parallel manifests
        """
        self.object_store = object_store
        self.bucket_name = bucket_name
        self.history = history if history is not None else InMemoryDeploymentHistory()
        self.aws_account_id = aws_account_id
        self.aws_region = aws_region
        self.max_workers = max_workers
        self.logger = logging.getLogger(__name__)

        self.strategies: Dict[str, ArchiveRestoreService] = {}
        self.register_strategy(restore_service.deployment_type, restore_service)

    def register_strategy(self, deployment_type: str, strategy: ArchiveRestoreService) -> None:
        self.strategies[deployment_type] = strategy

    def get_strategy(self, deployment_type: str) -> ArchiveRestoreService:
        strategy = self.strategies.get(deployment_type)
        if strategy is None:
            raise DeploymentError(f"No strategy registered for deployment type: {deployment_type}")
        return strategy

    # Single asset

    def deploy_asset(self, asset_type: AssetType, asset_id: str, config: DeploymentConfig) -> DeploymentResult:
        """
        Deploy one asset.

        Never raises; failures come back as ``failed`` results. Every result
        is recorded in the history store under the coordinator's id.

        Args:
            asset_type: Kind of the asset
            asset_id: Source asset id
            config: Deployment configuration

        Returns:
            DeploymentResult: Outcome of the deployment
        """
        deployment_id = new_deployment_id('deploy')
        start_time = datetime.now(timezone.utc)

        self.logger.info(
            f"Starting deployment {deployment_id}",
            extra={'context': {
                'asset_type': str(asset_type),
                'asset_id': asset_id,
                'deployment_type': config.deployment_type,
                'source': config.source
            }}
        )

        validation_results: List[ValidationResult] = []
        try:
            asset_type = AssetType.parse(asset_type)
            strategy = self.get_strategy(config.deployment_type)
            data = self.load_asset_data(asset_type, asset_id, config)

            validation_results = strategy.validate(asset_type, asset_id, data, config)
            has_errors = any(r.is_blocking for r in validation_results)

            if has_errors and not config.options.validate_only:
                raise DeploymentError(self.format_validation_errors(validation_results))

            if config.options.dry_run:
                result = self._summary_result(
                    deployment_id, asset_type, asset_id, config, start_time, validation_results,
                    success=True, target_name=config.options.name or 'Dry Run', metadata={'dryRun': True}
                )
            elif config.options.validate_only:
                result = self._summary_result(
                    deployment_id, asset_type, asset_id, config, start_time, validation_results,
                    success=not has_errors, target_name=config.options.name or 'Validation Only',
                    metadata={'validateOnly': True}
                )
            else:
                result = strategy.deploy(asset_type, asset_id, data, config)
                result.metadata['restoreId'] = result.deployment_id
                result.deployment_id = deployment_id
                result.validation_results = validation_results + result.validation_results

                self.logger.info(
                    f"Deployment {deployment_id} finished with status {result.status.value}",
                    extra={'context': {
                        'target_id': result.target_id,
                        'duration_ms': result.duration_ms,
                        'error': result.error
                    }}
                )

        except Exception as e:
            self.logger.error(
                f"Deployment {deployment_id} failed: {str(e)}",
                extra={'context': {'asset_type': str(asset_type), 'asset_id': asset_id}}
            )
            result = DeploymentResult(
                deployment_id=deployment_id,
                success=False,
                deployment_type=config.deployment_type,
                asset_type=asset_type if isinstance(asset_type, AssetType) else None,
                source_id=asset_id,
                target_id=config.options.id or asset_id,
                target_name=config.options.name or 'Unknown',
                account_id=config.target.account_id or self.aws_account_id,
                region=config.target.region or self.aws_region,
                start_time=start_time,
                end_time=datetime.now(timezone.utc),
                status=DeploymentStatus.FAILED,
                validation_results=validation_results,
                error=getattr(e, 'message', None) or str(e) or 'Unknown error',
                metadata={} if isinstance(asset_type, AssetType) else {'requestedAssetType': str(asset_type)}
            )

        self.history.save(result)
        return result

    def load_asset_data(self, asset_type: AssetType, asset_id: str, config: DeploymentConfig) -> Dict[str, Any]:
        """
        Read an asset document from the configured source.

        Raises:
            DeploymentError: If the source is unsupported or holds no such asset
        """
        if config.source in UNIMPLEMENTED_SOURCES:
            raise DeploymentError(UNIMPLEMENTED_SOURCES[config.source])
        if config.source == 'archive':
            key = asset_type.archive_path(asset_id)
        elif config.source == 'active':
            key = asset_type.active_path(asset_id)
        else:
            raise DeploymentError(f"Unknown deployment source: {config.source}")

        data = None
        try:
            if self.object_store.exists(self.bucket_name, key):
                data = self.object_store.get(self.bucket_name, key)
                if asset_type.is_collection and isinstance(data, dict):
                    data = data.get(asset_id)
        except Exception as e:
            self.logger.error(f"Failed to load {config.source} asset {asset_type.value}/{asset_id}: {str(e)}")
            data = None

        if not data:
            raise DeploymentError(f"Asset {asset_type.value}/{asset_id} not found in source: {config.source}")

        self.logger.debug(f"Loaded {asset_type.value}/{asset_id} from {key}")
        return data

    @staticmethod
    def format_validation_errors(results: List[ValidationResult]) -> str:
        messages = [r.message for r in results if r.is_blocking and r.validator != 'overall']
        return f"Validation failed: {'; '.join(m for m in messages if m)}"

    def _summary_result(self, deployment_id: str, asset_type: AssetType, asset_id: str,
                        config: DeploymentConfig, start_time: datetime,
                        validation_results: List[ValidationResult], success: bool, target_name: str,
                        metadata: Dict[str, Any]) -> DeploymentResult:
        return DeploymentResult(
            deployment_id=deployment_id,
            success=success,
            deployment_type=config.deployment_type,
            asset_type=asset_type,
            source_id=asset_id,
            target_id=config.options.id or asset_id,
            target_name=target_name,
            account_id=config.target.account_id or self.aws_account_id,
            region=config.target.region or self.aws_region,
            start_time=start_time,
            end_time=datetime.now(timezone.utc),
            status=DeploymentStatus.COMPLETED if success else DeploymentStatus.FAILED,
            validation_results=validation_results,
            metadata=metadata
        )

    # Manifests

    def deploy_manifest(self, manifest: DeploymentManifest,
                        progress: Optional[ProgressTracker] = None) -> List[DeploymentResult]:
        """
        Deploy every item of a manifest in priority order.

        Args:
            manifest: Deployment manifest
            progress: Optional tracker updated once per finished item

        Returns:
            List[DeploymentResult]: One result per item that was attempted
        """
        items = self.sort_by_priority(manifest.deployments)
        self.logger.info(
            f"Starting manifest deployment of {len(items)} items",
            extra={'context': {
                'version': manifest.version,
                'parallel': manifest.parallel,
                'stop_on_error': manifest.stop_on_error,
                'rollback_on_error': manifest.rollback_on_error
            }}
        )

        if manifest.parallel:
            results = self._deploy_parallel(items, progress)
        else:
            results = self._deploy_sequential(items, manifest.stop_on_error, progress)

        if manifest.rollback_on_error and any(not r.success for r in results):
            self.rollback_deployments([r for r in results if r.success])

        return results

    def _deploy_sequential(self, items: List[DeploymentItem], stop_on_error: bool,
                           progress: Optional[ProgressTracker]) -> List[DeploymentResult]:
        results = []
        for item in items:
            result = self.deploy_asset(item.asset_type, item.asset_id, item.config)
            results.append(result)
            if progress:
                progress.update_progress(failed=0 if result.success else 1)

            if not result.success and stop_on_error:
                self.logger.warning("Stopping manifest deployment due to error")
                break
        return results

    def _deploy_parallel(self, items: List[DeploymentItem],
                         progress: Optional[ProgressTracker]) -> List[DeploymentResult]:
        results: List[Optional[DeploymentResult]] = [None] * len(items)

        with ThreadPoolExecutor(max_workers=max(1, self.max_workers)) as executor:
            futures = {
                executor.submit(self.deploy_asset, item.asset_type, item.asset_id, item.config): index
                for index, item in enumerate(items)
            }
            for future in as_completed(futures):
                index = futures[future]
                results[index] = future.result()
                if progress:
                    progress.update_progress(failed=0 if results[index].success else 1)

        return [r for r in results if r is not None]

    def rollback_deployments(self, results: List[DeploymentResult]) -> None:
        self.logger.info(f"Rolling back {len(results)} deployments")
        for result in results:
            try:
                self.get_strategy(result.deployment_type).rollback(result)
                self.history.save(result)
            except Exception as e:
                self.logger.error(f"Failed to roll back deployment {result.deployment_id}: {str(e)}")

    @staticmethod
    def sort_by_priority(items: List[DeploymentItem]) -> List[DeploymentItem]:
        return sorted(items, key=lambda item: item.priority if item.priority is not None else DEFAULT_PRIORITY)

    # History

    def get_deployment(self, deployment_id: str) -> Optional[DeploymentResult]:
        return self.history.get(deployment_id)

    def get_deployment_history(self, limit: Optional[int] = None) -> List[DeploymentResult]:
        return self.history.list(limit)
