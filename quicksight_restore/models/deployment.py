"""
Data models for deployment (restore) configuration, validation and results.
"""

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from typing_extensions import Literal

from .asset_types import AssetType


Severity = Literal['error', 'warning', 'info']


class DeploymentStatus(Enum):
    """Lifecycle status of a single deployment."""
    PENDING = "pending"
    VALIDATING = "validating"
    DEPLOYING = "deploying"
    COMPLETED = "completed"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"
    SKIPPED = "skipped"


class EnrichmentStatus(Enum):
    """How much metadata has been captured for an exported asset."""
    SKELETON = "skeleton"
    PARTIAL = "partial"
    ENRICHED = "enriched"
    METADATA_UPDATE = "metadata-update"


@dataclass
class ValidationResult:
    """Outcome of one validator run before a deployment."""

    validator: str
    passed: bool
    severity: Severity
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    @property
    def is_blocking(self) -> bool:
        return not self.passed and self.severity == 'error'

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'validator': self.validator,
            'passed': self.passed,
            'message': self.message,
            'severity': self.severity
        }
        if self.details is not None:
            result['details'] = self.details
        return result


@dataclass
class AssetTransformation:
    """A field-level edit applied to archived data before it is deployed."""

    type: str
    field: str
    value: Any = None
    pattern: Optional[str] = None
    replacement: Optional[str] = None


@dataclass
class DeploymentTarget:
    account_id: Optional[str] = None
    region: Optional[str] = None
    namespace: str = "default"
    environment: Optional[str] = None


@dataclass
class DeploymentOptions:
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[Dict[str, str]]] = None
    skip_if_exists: bool = False
    overwrite_existing: bool = False
    validate_only: bool = False
    dry_run: bool = False
    transformations: List[AssetTransformation] = field(default_factory=list)
    variable_substitutions: Dict[str, str] = field(default_factory=dict)


@dataclass
class ValidationOptions:
    check_dependencies: bool = False


@dataclass
class DeploymentConfig:
    """Configuration for deploying a single asset."""

    deployment_type: str = "restore"
    source: str = "archive"
    target: DeploymentTarget = field(default_factory=DeploymentTarget)
    options: DeploymentOptions = field(default_factory=DeploymentOptions)
    validation: ValidationOptions = field(default_factory=ValidationOptions)

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> 'DeploymentConfig':
        """
        Build a configuration from a manifest entry.

        Both camelCase (``overwriteExisting``) and snake_case
        (``overwrite_existing``) keys are accepted.

        Args:
            raw: Configuration dictionary

        Returns:
            DeploymentConfig: Parsed configuration
        """
        raw = raw or {}
        target_raw = raw.get('target') or {}
        options_raw = raw.get('options') or {}
        validation_raw = raw.get('validation') or {}

        transformations = [
            AssetTransformation(
                type=t.get('type'),
                field=t.get('field'),
                value=t.get('value'),
                pattern=t.get('pattern'),
                replacement=t.get('replacement')
            )
            for t in _pick(options_raw, 'transformations', default=[]) or []
        ]

        options = DeploymentOptions(
            id=options_raw.get('id'),
            name=options_raw.get('name'),
            description=options_raw.get('description'),
            tags=options_raw.get('tags'),
            skip_if_exists=bool(_pick(options_raw, 'skipIfExists', 'skip_if_exists', default=False)),
            overwrite_existing=bool(_pick(options_raw, 'overwriteExisting', 'overwrite_existing', default=False)),
            validate_only=bool(_pick(options_raw, 'validateOnly', 'validate_only', default=False)),
            dry_run=bool(_pick(options_raw, 'dryRun', 'dry_run', default=False)),
            transformations=transformations,
            variable_substitutions=_pick(
                options_raw, 'variableSubstitutions', 'variable_substitutions', default={}) or {}
        )

        return cls(
            deployment_type=_pick(raw, 'deploymentType', 'deployment_type', default='restore'),
            source=raw.get('source', 'archive'),
            target=DeploymentTarget(
                account_id=_pick(target_raw, 'accountId', 'account_id'),
                region=target_raw.get('region'),
                namespace=target_raw.get('namespace', 'default'),
                environment=target_raw.get('environment')
            ),
            options=options,
            validation=ValidationOptions(
                check_dependencies=bool(
                    _pick(validation_raw, 'checkDependencies', 'check_dependencies', default=False))
            )
        )


@dataclass
class DeploymentResult:
    """Outcome record of one deployment."""

    deployment_id: str
    success: bool
    deployment_type: str
    asset_type: Optional[AssetType]
    source_id: str
    target_id: str
    target_name: str
    account_id: Optional[str]
    region: Optional[str]
    start_time: datetime
    end_time: datetime
    status: DeploymentStatus
    target_arn: Optional[str] = None
    backup_path: Optional[str] = None
    validation_results: List[ValidationResult] = field(default_factory=list)
    transformations_applied: List[str] = field(default_factory=list)
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() * 1000)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'deploymentId': self.deployment_id,
            'success': self.success,
            'deploymentType': self.deployment_type,
            'assetType': self.asset_type.value if self.asset_type else None,
            'sourceId': self.source_id,
            'targetId': self.target_id,
            'targetName': self.target_name,
            'targetArn': self.target_arn,
            'accountId': self.account_id,
            'region': self.region,
            'startTime': self.start_time.isoformat(),
            'endTime': self.end_time.isoformat(),
            'durationMs': self.duration_ms,
            'status': self.status.value,
            'backupPath': self.backup_path,
            'validationResults': [r.to_dict() for r in self.validation_results],
            'transformationsApplied': self.transformations_applied,
            'error': self.error,
            'warnings': self.warnings,
            'metadata': self.metadata
        }


@dataclass
class DeploymentItem:
    asset_type: AssetType
    asset_id: str
    config: DeploymentConfig = field(default_factory=DeploymentConfig)
    priority: Optional[int] = None
    dependencies: List[str] = field(default_factory=list)


@dataclass
class DeploymentManifest:
    """Batch of deployments with shared execution options."""

    version: str = "1.0"
    deployments: List[DeploymentItem] = field(default_factory=list)
    parallel: bool = False
    stop_on_error: bool = False
    rollback_on_error: bool = False

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'DeploymentManifest':
        options = raw.get('options') or {}
        deployments = []
        for item in raw.get('deployments') or []:
            deployments.append(DeploymentItem(
                asset_type=AssetType.parse(_pick(item, 'assetType', 'asset_type')),
                asset_id=_pick(item, 'assetId', 'asset_id'),
                config=DeploymentConfig.from_dict(item.get('config')),
                priority=item.get('priority'),
                dependencies=item.get('dependencies') or []
            ))
        return cls(
            version=str(raw.get('version', '1.0')),
            deployments=deployments,
            parallel=bool(options.get('parallel', False)),
            stop_on_error=bool(_pick(options, 'stopOnError', 'stop_on_error', default=False)),
            rollback_on_error=bool(_pick(options, 'rollbackOnError', 'rollback_on_error', default=False))
        )


def _pick(source: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key from ``keys``."""
    for key in keys:
        if key in source and source[key] is not None:
            return source[key]
    return default


_BASE36 = string.digits + string.ascii_lowercase


def new_deployment_id(prefix: str) -> str:
    """``<prefix>-<epoch ms>-<9 random base36 chars>``."""
    suffix = ''.join(random.choice(_BASE36) for _ in range(9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"
