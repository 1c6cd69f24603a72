"""
Restore of archived assets back into the live account.

A restore validates the archived document, recreates the asset through its
kind's strategy, re-activates the archived copy, refreshes the asset cache
and keeps a numbered backup of the archive that was restored.
"""

import copy
import json
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..models.asset_export import AssetExportData
from ..models.asset_types import AssetType
from ..models.deployment import (
    AssetTransformation, DeploymentConfig, DeploymentResult, DeploymentStatus, ValidationResult,
    new_deployment_id
)
from ..parsing.base import as_dict, as_list, unwrap
from ..parsing.service import AssetParserService
from ..restore.base import DESCRIBE_KEYS, snapshot_data
from ..restore.factory import RestoreStrategyFactory
from .asset_cache import parse_timestamp
from .base import AssetCache, ObjectStore, QuickSightPlatform
from .error_handler import classify_restore_error

logger = logging.getLogger(__name__)

ASSET_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')

# Highest numbered archive backup slot probed before the last slot is reused
MAX_ARCHIVE_BACKUPS = 100

NAME_FIELDS = ('DashboardName', 'AnalysisName', 'DataSetName', 'DataSourceName', 'FolderName', 'GroupName')

# apiResponses snapshot -> deploy data key
ARCHIVED_COMPONENTS = (
    ('dataSetRefreshProperties', 'DataSetRefreshProperties'),
    ('refreshSchedules', 'RefreshSchedules'),
    ('folderMemberships', 'FolderMemberships'),
    ('dashboardPublishOptions', 'dashboardPublishOptions'),
    ('sheetDefinitions', 'sheetDefinitions'),
    ('visualDefinitions', 'visualDefinitions'),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _set_path(data: Dict[str, Any], path: str, value: Any) -> None:
    keys = path.split('.')
    node = data
    for key in keys[:-1]:
        if not isinstance(node.get(key), dict):
            node[key] = {}
        node = node[key]
    node[keys[-1]] = value


def _get_path(data: Dict[str, Any], path: str) -> Any:
    node: Any = data
    for key in path.split('.'):
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


class ArchiveRestoreService:
    """Deployment type ``restore``: brings an archived asset back to life."""

    deployment_type = 'restore'

    def __init__(self, object_store: ObjectStore, platform: QuickSightPlatform, asset_cache: AssetCache,
                 bucket_name: str, aws_account_id: Optional[str] = None, aws_region: Optional[str] = None,
                 parser_service: Optional[AssetParserService] = None,
                 strategy_factory: Optional[RestoreStrategyFactory] = None):
        self.object_store = object_store
        self.platform = platform
        self.asset_cache = asset_cache
        self.bucket_name = bucket_name
        self.aws_account_id = aws_account_id
        self.aws_region = aws_region
        self.parser_service = parser_service or AssetParserService()
        self.strategy_factory = strategy_factory or RestoreStrategyFactory(
            platform, object_store, bucket_name, self.parser_service
        )

    # Validation

    def validate(self, asset_type: AssetType, asset_id: str, data: Optional[Dict[str, Any]],
                 config: DeploymentConfig) -> List[ValidationResult]:
        """
        Check that an archived asset can be restored.

        Args:
            asset_type: Kind of the asset
            asset_id: Archived asset id
            data: Archived document, or None when it was not found
            config: Deployment configuration

        Returns:
            List[ValidationResult]: Individual results followed by an ``overall`` summary
        """
        asset_type = AssetType.parse(asset_type)
        results: List[ValidationResult] = []

        if config.source != 'archive':
            results.append(ValidationResult(
                validator='source',
                passed=False,
                severity='error',
                message='Restore deployment requires source to be "archive"'
            ))

        if not data:
            results.append(ValidationResult(
                validator='asset-data',
                passed=False,
                severity='error',
                message=f"Asset {asset_type.value}/{asset_id} not found in archive"
            ))
            return results

        target_id = config.options.id or asset_id
        if not ASSET_ID_PATTERN.match(target_id):
            results.append(ValidationResult(
                validator='asset-id',
                passed=False,
                severity='error',
                message=f"Invalid asset ID: {target_id}"
            ))

        if not config.options.skip_if_exists and not config.options.overwrite_existing:
            if self.asset_exists(asset_type, target_id):
                results.append(ValidationResult(
                    validator='asset-exists',
                    passed=False,
                    severity='error',
                    message=(f"Asset {asset_type.value}/{target_id} already exists. "
                             f"Use skipIfExists or overwriteExisting option.")
                ))

        strategy = self.strategy_factory.get_strategy(asset_type)
        results.extend(strategy.validate(asset_id, data, config))

        error_count = sum(1 for r in results if r.is_blocking)
        if error_count == 0:
            message = 'Ready to restore' if not results else f"All {len(results)} validation(s) passed"
            results.append(ValidationResult(validator='overall', passed=True, severity='info', message=message))
        else:
            results.append(ValidationResult(
                validator='overall',
                passed=False,
                severity='error',
                message=f"{error_count} validation error(s) found - please fix before restoring"
            ))

        logger.info(
            f"Validated restore of {asset_type.value} {asset_id}: {error_count} error(s)",
            extra={'context': {
                'asset_type': asset_type.value,
                'asset_id': asset_id,
                'results': [(r.validator, r.passed, r.severity) for r in results]
            }}
        )
        return results

    # Deployment

    def deploy(self, asset_type: AssetType, asset_id: str, data: Dict[str, Any],
               config: DeploymentConfig) -> DeploymentResult:
        """
        Restore an archived asset.

        Never raises: every failure is captured on the returned result.

        Args:
            asset_type: Kind of the asset
            asset_id: Archived asset id
            data: Archived document
            config: Deployment configuration

        Returns:
            DeploymentResult: Outcome of the restore
        """
        asset_type = AssetType.parse(asset_type)
        start_time = _utcnow()
        deployment_id = new_deployment_id('restore')
        target_id = config.options.id or asset_id

        status = DeploymentStatus.DEPLOYING
        error = None
        target_arn = None
        backup_path = None
        warnings: List[str] = []
        metadata: Dict[str, Any] = {}
        deploy_data: Dict[str, Any] = {}

        try:
            logger.info(
                f"Starting restore for {asset_type.value} {asset_id}",
                extra={'context': {'target_id': target_id, 'data_keys': sorted((data or {}).keys())}}
            )

            deploy_data = self.apply_transformations(asset_type, data, config)

            if config.options.skip_if_exists and self.asset_exists(asset_type, target_id):
                logger.info(f"Skipping restore of {asset_type.value} {target_id}: asset already exists")
                warnings.append(f"Asset {asset_type.value}/{target_id} already exists, skipped")
                status = DeploymentStatus.SKIPPED
            else:
                strategy = self.strategy_factory.get_strategy(asset_type)
                strategy.check_preconditions(target_id, deploy_data)

                if config.options.overwrite_existing and self.asset_exists(asset_type, target_id):
                    metadata['existingBackupPath'] = self.backup_existing_asset(asset_type, target_id)

                strategy.delete_existing(target_id)
                restore_result = strategy.restore(target_id, deploy_data) or {}
                target_arn = restore_result.get('arn')
                logger.info(f"Platform restore succeeded for {asset_type.value} {target_id}",
                            extra={'context': {'arn': target_arn}})

                self.restore_additional_components(asset_type, target_id, deploy_data)
                self.copy_to_active(asset_type, asset_id, target_id, data)

                if not config.options.validate_only:
                    cache_warning = self.update_cache(asset_type, target_id, data, deploy_data, target_arn)
                    if cache_warning:
                        warnings.append(cache_warning)

                backup_path = self.create_archived_backup(asset_type, asset_id, data)
                status = DeploymentStatus.COMPLETED
                logger.info(f"Restored {asset_type.value} {asset_id} as {target_id}")

        except Exception as e:
            status = DeploymentStatus.FAILED
            error = classify_restore_error(e)
            logger.error(
                f"Failed to restore {asset_type.value} {asset_id}: {error}",
                exc_info=True,
                extra={'context': {
                    'asset_type': asset_type.value,
                    'asset_id': asset_id,
                    'target_id': target_id,
                    'error_type': type(e).__name__
                }}
            )

        metadata.update({
            'source': 'archive',
            'originalId': asset_id,
            'overwrite': config.options.overwrite_existing,
        })

        return DeploymentResult(
            deployment_id=deployment_id,
            success=status in (DeploymentStatus.COMPLETED, DeploymentStatus.SKIPPED),
            deployment_type=self.deployment_type,
            asset_type=asset_type,
            source_id=asset_id,
            target_id=target_id,
            target_name=config.options.name or deploy_data.get('Name') or as_dict(data).get('name') or 'Unknown',
            account_id=config.target.account_id or self.aws_account_id,
            region=config.target.region or self.aws_region,
            start_time=start_time,
            end_time=_utcnow(),
            status=status,
            target_arn=target_arn,
            backup_path=backup_path,
            transformations_applied=[t.type for t in config.options.transformations],
            error=error,
            warnings=warnings,
            metadata=metadata
        )

    def rollback(self, result: DeploymentResult) -> DeploymentResult:
        """Delete the asset a completed restore created and mark the result rolled back."""
        if result.status != DeploymentStatus.COMPLETED:
            logger.info(f"Nothing to roll back for {result.deployment_id} ({result.status.value})")
            return result

        try:
            strategy = self.strategy_factory.get_strategy(result.asset_type)
            strategy.delete_existing(result.target_id)
            result.status = DeploymentStatus.ROLLED_BACK
            result.success = False
            result.warnings.append(f"Rolled back {result.asset_type.value}/{result.target_id}")
            logger.info(f"Rolled back {result.asset_type.value} {result.target_id}")
        except Exception as e:
            message = f"Rollback of {result.asset_type.value}/{result.target_id} failed: {str(e)}"
            logger.error(message, exc_info=True)
            result.warnings.append(message)

        return result

    # Transformation

    def apply_transformations(self, asset_type: AssetType, data: Dict[str, Any],
                              config: DeploymentConfig) -> Dict[str, Any]:
        """
        Build the deploy data handed to the strategy.

        The describe body becomes the top level, archived components and
        overrides are layered on it, and the original ``apiResponses`` are
        re-attached untouched.
        """
        data = data or {}
        describe = snapshot_data(data, 'describe')
        if describe:
            result = copy.deepcopy(as_dict(unwrap(describe, DESCRIBE_KEYS[asset_type])))
        else:
            result = copy.deepcopy({k: v for k, v in data.items() if k != 'apiResponses'})

        self._extract_archived_components(data, result, config)
        self._apply_config_overrides(result, config)

        for transformation in config.options.transformations:
            self._apply_transformation(result, transformation)

        if config.options.variable_substitutions:
            result = self._apply_variable_substitutions(result, config.options.variable_substitutions)

        result.pop('archivedMetadata', None)
        result['apiResponses'] = data.get('apiResponses')
        return result

    def _extract_archived_components(self, data: Dict[str, Any], result: Dict[str, Any],
                                     config: DeploymentConfig) -> None:
        permissions = snapshot_data(data, 'permissions')
        if permissions:
            result['Permissions'] = permissions
            logger.debug(f"Found {len(as_list(permissions))} permissions in archived data")

        tags = snapshot_data(data, 'tags')
        if tags and not config.options.tags:
            result['Tags'] = tags
            logger.debug(f"Found {len(as_list(tags))} tags in archived data")

        for snapshot, key in ARCHIVED_COMPONENTS:
            value = snapshot_data(data, snapshot)
            if value:
                result[key] = value
                logger.debug(f"Found {snapshot} in archived data")

    @staticmethod
    def _apply_config_overrides(result: Dict[str, Any], config: DeploymentConfig) -> None:
        options = config.options
        if options.name:
            result['Name'] = options.name
            for name_field in NAME_FIELDS:
                if result.get(name_field):
                    result[name_field] = options.name

        if options.description is not None:
            result['Description'] = options.description

        if options.tags:
            result['Tags'] = [
                {'Key': t.get('key', t.get('Key')), 'Value': t.get('value', t.get('Value'))}
                for t in options.tags
            ]

    @staticmethod
    def _apply_transformation(result: Dict[str, Any], transformation: AssetTransformation) -> None:
        kind = (transformation.type or '').lower()
        if not transformation.field:
            logger.warning(f"Ignoring {kind or 'untyped'} transformation without a field")
            return

        if kind in ('rename', 'replace'):
            _set_path(result, transformation.field, transformation.value)
        elif kind == 'regex':
            current = _get_path(result, transformation.field)
            if isinstance(current, str) and transformation.pattern is not None:
                _set_path(result, transformation.field,
                          re.sub(transformation.pattern, transformation.replacement or '', current))
            else:
                logger.warning(f"Regex transformation skipped: {transformation.field} is not a string")
        else:
            logger.warning(f"Unknown transformation type: {transformation.type}")

    @staticmethod
    def _apply_variable_substitutions(result: Dict[str, Any], substitutions: Dict[str, str]) -> Dict[str, Any]:
        text = json.dumps(result, default=str)
        for variable, value in substitutions.items():
            # Escape the value so it stays valid inside a JSON string
            text = text.replace('${' + variable + '}', json.dumps(str(value))[1:-1])
        return json.loads(text)

    # Store operations

    def asset_exists(self, asset_type: AssetType, asset_id: str) -> bool:
        try:
            return self.object_store.exists(self.bucket_name, asset_type.active_path(asset_id))
        except Exception as e:
            logger.warning(f"Could not check whether {asset_type.value} {asset_id} exists: {str(e)}")
            return False

    def backup_existing_asset(self, asset_type: AssetType, asset_id: str) -> str:
        backup_path = f"backups/{asset_type.plural}/{asset_id}-{int(time.time() * 1000)}.json"
        document = self.object_store.get(self.bucket_name, asset_type.active_path(asset_id))
        self.object_store.put(self.bucket_name, backup_path, document)
        logger.info(f"Created backup of existing asset at {backup_path}")
        return backup_path

    def copy_to_active(self, asset_type: AssetType, original_id: str, target_id: str,
                       data: Dict[str, Any]) -> None:
        """Make the archived copy live again; the archive itself is kept."""
        active_path = asset_type.active_path(target_id)

        if asset_type.is_collection:
            collection: Dict[str, Any] = {}
            try:
                if self.object_store.exists(self.bucket_name, active_path):
                    collection = self.object_store.get(self.bucket_name, active_path) or {}
            except Exception as e:
                logger.warning(f"Could not read active {asset_type.plural} collection, starting empty: {str(e)}")
            collection[target_id] = data
            self.object_store.put(self.bucket_name, active_path, collection)
        else:
            archived = self.object_store.get(self.bucket_name, asset_type.archive_path(original_id))
            self.object_store.put(self.bucket_name, active_path, archived)

        logger.info(f"Copied {asset_type.value} {original_id} to {active_path}")

    def create_archived_backup(self, asset_type: AssetType, asset_id: str, data: Dict[str, Any]) -> str:
        """
        Write the archive just restored to the first free numbered slot.

        Returns:
            str: Key of ``archived/<plural>/<id>-previous-archive-<n>.json``
        """
        backup_number = MAX_ARCHIVE_BACKUPS
        for n in range(1, MAX_ARCHIVE_BACKUPS + 1):
            if not self.object_store.exists(self.bucket_name, self._archive_backup_path(asset_type, asset_id, n)):
                backup_number = n
                break
        else:
            logger.warning(f"All {MAX_ARCHIVE_BACKUPS} archive backup slots used for {asset_id}, reusing the last")

        backup_path = self._archive_backup_path(asset_type, asset_id, backup_number)
        self.object_store.put(self.bucket_name, backup_path, {
            **(data or {}),
            'backupMetadata': {
                'backupDate': _utcnow().isoformat(),
                'backupNumber': backup_number,
                'originalArchivePath': f"archived/{asset_type.plural}/{asset_id}.json",
            }
        })
        return backup_path

    @staticmethod
    def _archive_backup_path(asset_type: AssetType, asset_id: str, number: int) -> str:
        return f"archived/{asset_type.plural}/{asset_id}-previous-archive-{number}.json"

    # Post-create side effects

    def restore_additional_components(self, asset_type: AssetType, asset_id: str,
                                      deploy_data: Dict[str, Any]) -> None:
        """Refresh schedules, refresh properties and folder memberships; failures are skipped."""
        if asset_type == AssetType.DATASET:
            for schedule in as_list(deploy_data.get('RefreshSchedules')):
                try:
                    self.platform.create_refresh_schedule(asset_id, schedule)
                    logger.info(f"Created refresh schedule {as_dict(schedule).get('ScheduleId')} for dataset {asset_id}")
                except Exception as e:
                    logger.warning(f"Failed to create refresh schedule for dataset {asset_id}: {str(e)}")

            if deploy_data.get('DataSetRefreshProperties'):
                try:
                    self.platform.put_data_set_refresh_properties(asset_id, deploy_data['DataSetRefreshProperties'])
                    logger.info(f"Updated refresh properties for dataset {asset_id}")
                except Exception as e:
                    logger.warning(f"Failed to update refresh properties for dataset {asset_id}: {str(e)}")

        for membership in as_list(deploy_data.get('FolderMemberships')):
            folder_id = as_dict(membership).get('FolderId')
            try:
                self.platform.create_folder_membership(folder_id, asset_id, asset_type.value.upper())
                logger.info(f"Added {asset_type.value} {asset_id} to folder {folder_id}")
            except Exception as e:
                logger.warning(f"Failed to add {asset_type.value} {asset_id} to folder {folder_id}: {str(e)}")

    def update_cache(self, asset_type: AssetType, target_id: str, data: Dict[str, Any],
                     deploy_data: Dict[str, Any], arn: Optional[str]) -> Optional[str]:
        """
        Record the restored asset in the cache.

        Returns:
            Optional[str]: Warning message when the cache could not be updated
        """
        try:
            record = self.build_cache_record(asset_type, target_id, data, deploy_data, arn)
            self.asset_cache.replace_asset(asset_type, target_id, record)
        except Exception as e:
            logger.error(f"Failed to update cache for restored asset {asset_type.value}/{target_id}: {str(e)}",
                         exc_info=True)
            return f"Cache update failed: {str(e)}"

        try:
            self.asset_cache.rebuild_cache_for_asset_type(asset_type)
        except Exception as e:
            logger.warning(f"Failed to rebuild {asset_type.value} cache after restore: {str(e)}")
            return f"Cache rebuild failed: {str(e)}"

        return None

    def build_cache_record(self, asset_type: AssetType, target_id: str, data: Dict[str, Any],
                           deploy_data: Dict[str, Any], arn: Optional[str]) -> Dict[str, Any]:
        export = AssetExportData.from_dict(data)
        describe = as_dict(unwrap(export.data('describe'), DESCRIBE_KEYS[asset_type])) or {
            k: v for k, v in deploy_data.items() if k != 'apiResponses'
        }
        permissions = as_list(export.data('permissions')) or as_list(deploy_data.get('Permissions'))
        tags = as_list(export.data('tags')) or as_list(deploy_data.get('Tags'))

        parsed_metadata = self.parser_service.extract_metadata(asset_type, export) or {}
        enrichment_status = self.parser_service.determine_enrichment_status(export, asset_type)
        now = _utcnow()

        def timestamp(key: str) -> str:
            value = describe.get(key)
            return parse_timestamp(value).isoformat() if value else now.isoformat()

        return {
            'assetId': target_id,
            'assetType': asset_type.value,
            'assetName': (deploy_data.get('Name') or parsed_metadata.get('name')
                          or describe.get('Name') or target_id),
            'arn': arn or describe.get('Arn') or parsed_metadata.get('arn') or '',
            'status': 'ACTIVE',
            'enrichmentStatus': enrichment_status.value,
            'enrichmentTimestamps': self.parser_service.extract_enrichment_timestamps(export),
            'createdTime': timestamp('CreatedTime'),
            'lastUpdatedTime': timestamp('LastUpdatedTime'),
            'exportedAt': now.isoformat(),
            'exportFilePath': asset_type.active_path(target_id),
            'storageType': 'collection' if asset_type.is_collection else 'individual',
            'tags': [
                {'key': t.get('Key') or t.get('key'), 'value': t.get('Value') or t.get('value')}
                for t in tags if isinstance(t, dict)
            ],
            'permissions': [
                {'principal': p.get('Principal'), 'actions': p.get('Actions') or []}
                for p in permissions if isinstance(p, dict)
            ],
            'metadata': {
                **(parsed_metadata or describe),
                'hasPermissions': len(permissions) > 0,
                'hasTags': len(tags) > 0,
                'restoredAt': now.isoformat(),
            },
        }
