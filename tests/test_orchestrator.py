"""
Tests for the deployment coordinator.
"""

import logging

import pytest

from quicksight_restore.models.asset_types import AssetType
from quicksight_restore.models.deployment import (
    DeploymentConfig, DeploymentManifest, DeploymentOptions, DeploymentStatus
)
from quicksight_restore.models.exceptions import DeploymentError
from quicksight_restore.orchestrator import QuickSightRestoreOrchestrator
from quicksight_restore.services.logging import ProgressTracker

from .fakes import ACCOUNT_ID, BUCKET, REGION, dashboard_archive, dataset_archive, datasource_archive


@pytest.fixture
def orchestrator(object_store, restore_service, history):
    return QuickSightRestoreOrchestrator(
        object_store=object_store,
        bucket_name=BUCKET,
        restore_service=restore_service,
        history=history,
        aws_account_id=ACCOUNT_ID,
        aws_region=REGION
    )


@pytest.fixture
def archived_assets(archive):
    archive(AssetType.DATASOURCE, 'warehouse', datasource_archive())
    archive(AssetType.DATASET, 'orders', dataset_archive())
    archive(AssetType.DASHBOARD, 'sales-dashboard', dashboard_archive())


def _manifest(*deployments, **options):
    return DeploymentManifest.from_dict({'version': '1.0', 'deployments': list(deployments), 'options': options})


class TestDeployAsset:

    def test_restore(self, orchestrator, archived_assets, history):
        result = orchestrator.deploy_asset(AssetType.DATASET, 'orders', DeploymentConfig())

        assert result.success
        assert result.status == DeploymentStatus.COMPLETED
        assert result.deployment_id.startswith('deploy-')
        assert result.metadata['restoreId'].startswith('restore-')
        assert result.validation_results[-1].validator == 'overall'
        assert orchestrator.get_deployment(result.deployment_id) is result

    def test_accepts_asset_type_names(self, orchestrator, archived_assets):
        result = orchestrator.deploy_asset('DATASOURCE', 'warehouse', DeploymentConfig())

        assert result.success
        assert result.asset_type == AssetType.DATASOURCE

    def test_dry_run(self, orchestrator, archived_assets, platform, object_store):
        config = DeploymentConfig(options=DeploymentOptions(dry_run=True))

        result = orchestrator.deploy_asset(AssetType.DATASET, 'orders', config)

        assert result.success
        assert result.status == DeploymentStatus.COMPLETED
        assert result.target_name == 'Dry Run'
        assert result.metadata == {'dryRun': True}
        assert platform.method_calls == []
        assert not object_store.exists(BUCKET, 'assets/datasets/orders.json')

    def test_validate_only_reports_errors(self, orchestrator, archived_assets, object_store, platform):
        object_store.put(BUCKET, 'assets/datasets/orders.json', {'live': True})
        config = DeploymentConfig(options=DeploymentOptions(validate_only=True))

        result = orchestrator.deploy_asset(AssetType.DATASET, 'orders', config)

        assert not result.success
        assert result.status == DeploymentStatus.FAILED
        assert result.target_name == 'Validation Only'
        assert result.metadata == {'validateOnly': True}
        assert 'asset-exists' in [r.validator for r in result.validation_results]
        platform.create_data_set.assert_not_called()

    def test_validate_only_success(self, orchestrator, archived_assets):
        config = DeploymentConfig(options=DeploymentOptions(validate_only=True, name='Orders'))

        result = orchestrator.deploy_asset(AssetType.DATASET, 'orders', config)

        assert result.success
        assert result.target_name == 'Orders'

    def test_blocking_validation_fails_deployment(self, orchestrator, archived_assets, object_store, platform):
        object_store.put(BUCKET, 'assets/datasets/orders.json', {'live': True})

        result = orchestrator.deploy_asset(AssetType.DATASET, 'orders', DeploymentConfig())

        assert result.status == DeploymentStatus.FAILED
        assert result.error.startswith('Validation failed: Asset dataset/orders already exists.')
        assert result.target_name == 'Unknown'
        assert [r.validator for r in result.validation_results if r.is_blocking] == ['asset-exists', 'overall']
        platform.create_data_set.assert_not_called()

    def test_active_source_cannot_be_restored(self, orchestrator, object_store):
        object_store.put(BUCKET, 'assets/datasets/orders.json', dataset_archive())

        result = orchestrator.deploy_asset(AssetType.DATASET, 'orders', DeploymentConfig(source='active'))

        assert result.error.startswith('Validation failed: Restore deployment requires source to be "archive"')
        assert result.validation_results[0].validator == 'source'

    def test_unknown_asset_type_is_a_failed_result(self, orchestrator, history, platform):
        result = orchestrator.deploy_asset('widget', 'w1', DeploymentConfig())

        assert not result.success
        assert result.status == DeploymentStatus.FAILED
        assert result.error == 'Unknown asset type: widget'
        assert result.asset_type is None
        assert result.metadata == {'requestedAssetType': 'widget'}
        assert result.to_dict()['assetType'] is None
        assert history.get(result.deployment_id) is result
        assert platform.method_calls == []

    def test_missing_asset(self, orchestrator):
        result = orchestrator.deploy_asset(AssetType.DATASET, 'missing', DeploymentConfig())

        assert not result.success
        assert result.error == 'Asset dataset/missing not found in source: archive'
        assert result.account_id == ACCOUNT_ID
        assert result.region == REGION

    @pytest.mark.parametrize('source, message', [
        ('s3', 'S3 source not yet implemented'),
        ('template', 'Template source not yet implemented'),
        ('external', 'External source not yet implemented'),
        ('ftp', 'Unknown deployment source: ftp'),
    ])
    def test_unavailable_sources(self, orchestrator, archived_assets, source, message):
        result = orchestrator.deploy_asset(AssetType.DATASET, 'orders', DeploymentConfig(source=source))

        assert result.status == DeploymentStatus.FAILED
        assert result.error == message

    def test_unknown_deployment_type(self, orchestrator, archived_assets):
        result = orchestrator.deploy_asset(AssetType.DATASET, 'orders', DeploymentConfig(deployment_type='template'))

        assert result.error == 'No strategy registered for deployment type: template'

    def test_target_overrides(self, orchestrator, archived_assets):
        config = DeploymentConfig.from_dict({'target': {'accountId': '999999999999', 'region': 'eu-west-1'}})

        result = orchestrator.deploy_asset(AssetType.DATASOURCE, 'warehouse', config)

        assert result.account_id == '999999999999'
        assert result.region == 'eu-west-1'

    def test_every_result_is_recorded(self, orchestrator, archived_assets, history):
        orchestrator.deploy_asset(AssetType.DATASET, 'orders', DeploymentConfig())
        orchestrator.deploy_asset(AssetType.DATASET, 'missing', DeploymentConfig())

        assert len(history) == 2
        assert len(orchestrator.get_deployment_history(limit=1)) == 1

    def test_injected_history_is_used_while_empty(self, object_store, restore_service, history, archived_assets):
        orchestrator = QuickSightRestoreOrchestrator(object_store, BUCKET, restore_service, history=history)

        assert orchestrator.history is history
        result = orchestrator.deploy_asset(AssetType.DATASOURCE, 'warehouse', DeploymentConfig())
        assert history.get(result.deployment_id) is result


class TestLoadAssetData:

    def test_collection_entry(self, orchestrator, object_store):
        object_store.put(BUCKET, 'archived/organization/folders.json', {
            'finance': {'FolderId': 'finance', 'Name': 'Finance'},
            'ops': {'FolderId': 'ops', 'Name': 'Ops'},
        })

        data = orchestrator.load_asset_data(AssetType.FOLDER, 'finance', DeploymentConfig())

        assert data == {'FolderId': 'finance', 'Name': 'Finance'}

    def test_missing_collection_entry(self, orchestrator, object_store):
        object_store.put(BUCKET, 'archived/organization/folders.json', {'ops': {'FolderId': 'ops'}})

        with pytest.raises(DeploymentError, match='Asset folder/finance not found in source: archive'):
            orchestrator.load_asset_data(AssetType.FOLDER, 'finance', DeploymentConfig())

    def test_active_source(self, orchestrator, object_store):
        object_store.put(BUCKET, 'assets/datasets/orders.json', {'live': True})

        data = orchestrator.load_asset_data(AssetType.DATASET, 'orders', DeploymentConfig(source='active'))

        assert data == {'live': True}


class TestDeployManifest:

    def test_priority_order(self, orchestrator, archived_assets):
        manifest = _manifest(
            {'assetType': 'dashboard', 'assetId': 'sales-dashboard'},
            {'assetType': 'dataset', 'assetId': 'orders', 'priority': 2},
            {'assetType': 'datasource', 'assetId': 'warehouse', 'priority': 1},
        )

        results = orchestrator.deploy_manifest(manifest)

        assert [r.source_id for r in results] == ['warehouse', 'orders', 'sales-dashboard']
        assert all(r.success for r in results)

    def test_continues_after_failure(self, orchestrator, archived_assets):
        manifest = _manifest(
            {'assetType': 'dataset', 'assetId': 'missing', 'priority': 1},
            {'assetType': 'dataset', 'assetId': 'orders', 'priority': 2},
        )

        results = orchestrator.deploy_manifest(manifest)

        assert [r.success for r in results] == [False, True]

    def test_stop_on_error(self, orchestrator, archived_assets):
        manifest = _manifest(
            {'assetType': 'dataset', 'assetId': 'missing', 'priority': 1},
            {'assetType': 'dataset', 'assetId': 'orders', 'priority': 2},
            stopOnError=True
        )

        results = orchestrator.deploy_manifest(manifest)

        assert len(results) == 1
        assert not results[0].success

    def test_parallel_keeps_input_order(self, orchestrator, archived_assets):
        manifest = _manifest(
            {'assetType': 'dashboard', 'assetId': 'sales-dashboard', 'priority': 3},
            {'assetType': 'datasource', 'assetId': 'warehouse', 'priority': 1},
            {'assetType': 'dataset', 'assetId': 'missing', 'priority': 2},
            parallel=True
        )

        results = orchestrator.deploy_manifest(manifest)

        assert [r.source_id for r in results] == ['warehouse', 'missing', 'sales-dashboard']
        assert [r.success for r in results] == [True, False, True]

    def test_rollback_on_error(self, orchestrator, archived_assets, platform, history):
        manifest = _manifest(
            {'assetType': 'datasource', 'assetId': 'warehouse', 'priority': 1},
            {'assetType': 'dataset', 'assetId': 'missing', 'priority': 2},
            rollbackOnError=True
        )

        results = orchestrator.deploy_manifest(manifest)

        assert results[0].status == DeploymentStatus.ROLLED_BACK
        assert not results[0].success
        assert platform.delete_data_source.call_count == 2
        assert history.get(results[0].deployment_id).status == DeploymentStatus.ROLLED_BACK

    def test_no_rollback_when_everything_succeeds(self, orchestrator, archived_assets, platform):
        manifest = _manifest({'assetType': 'datasource', 'assetId': 'warehouse'}, rollbackOnError=True)

        results = orchestrator.deploy_manifest(manifest)

        assert results[0].status == DeploymentStatus.COMPLETED
        assert platform.delete_data_source.call_count == 1

    def test_progress_is_reported(self, orchestrator, archived_assets):
        progress = ProgressTracker(logging.getLogger('test-progress'))
        progress.start_operation('restore', total_items=2)
        manifest = _manifest(
            {'assetType': 'dataset', 'assetId': 'orders'},
            {'assetType': 'dataset', 'assetId': 'missing'},
        )

        orchestrator.deploy_manifest(manifest, progress)

        assert progress.processed_items == 2
        assert progress.failed_items == 1


def test_sort_by_priority_puts_unprioritized_last():
    manifest = _manifest(
        {'assetType': 'dataset', 'assetId': 'a'},
        {'assetType': 'dataset', 'assetId': 'b', 'priority': 1000},
        {'assetType': 'dataset', 'assetId': 'c', 'priority': 5},
    )

    ordered = QuickSightRestoreOrchestrator.sort_by_priority(manifest.deployments)

    assert [i.asset_id for i in ordered] == ['c', 'a', 'b']
