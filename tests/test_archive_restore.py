"""
Tests for restoring archived assets.
"""

import pytest

from quicksight_restore.models.asset_types import AssetType
from quicksight_restore.models.deployment import (
    AssetTransformation, DeploymentConfig, DeploymentOptions, DeploymentStatus
)
from quicksight_restore.services.asset_cache import CACHE_METADATA_KEY, cache_key

from .fakes import ACCOUNT_ID, BUCKET, REGION, dashboard_archive, dataset_archive


def _config(**options):
    return DeploymentConfig(options=DeploymentOptions(**options))


@pytest.fixture
def archived_dataset(archive):
    return archive(AssetType.DATASET, 'orders', dataset_archive())


class TestValidate:

    def test_ready(self, restore_service, archived_dataset):
        results = restore_service.validate(AssetType.DATASET, 'orders', archived_dataset, DeploymentConfig())

        assert len(results) == 1
        assert results[0].validator == 'overall'
        assert results[0].passed
        assert results[0].message == 'Ready to restore'

    def test_source_must_be_archive(self, restore_service, archived_dataset):
        config = DeploymentConfig(source='active')

        results = restore_service.validate(AssetType.DATASET, 'orders', archived_dataset, config)

        assert results[0].validator == 'source'
        assert results[0].severity == 'error'
        assert results[0].message == 'Restore deployment requires source to be "archive"'
        assert results[-1].validator == 'overall'
        assert not results[-1].passed

    def test_missing_data(self, restore_service):
        results = restore_service.validate(AssetType.DATASET, 'orders', None, DeploymentConfig())

        assert [r.validator for r in results] == ['asset-data']
        assert results[0].message == 'Asset dataset/orders not found in archive'

    def test_invalid_target_id(self, restore_service, archived_dataset):
        results = restore_service.validate(
            AssetType.DATASET, 'orders', archived_dataset, _config(id='orders copy!')
        )

        assert 'asset-id' in [r.validator for r in results if r.is_blocking]

    def test_existing_asset_blocks_restore(self, restore_service, archived_dataset, object_store):
        object_store.put(BUCKET, 'assets/datasets/orders.json', {'live': True})

        results = restore_service.validate(AssetType.DATASET, 'orders', archived_dataset, DeploymentConfig())

        exists = [r for r in results if r.validator == 'asset-exists']
        assert len(exists) == 1
        assert 'Use skipIfExists or overwriteExisting option.' in exists[0].message
        assert results[-1].message == '1 validation error(s) found - please fix before restoring'

    @pytest.mark.parametrize('option', ['skip_if_exists', 'overwrite_existing'])
    def test_existing_asset_allowed_with_option(self, restore_service, archived_dataset, object_store, option):
        object_store.put(BUCKET, 'assets/datasets/orders.json', {'live': True})

        results = restore_service.validate(
            AssetType.DATASET, 'orders', archived_dataset, _config(**{option: True})
        )

        assert not any(r.is_blocking for r in results)

    def test_dependency_warnings_do_not_block(self, restore_service, archived_dataset):
        config = DeploymentConfig.from_dict({'validation': {'checkDependencies': True}})

        results = restore_service.validate(AssetType.DATASET, 'orders', archived_dataset, config)

        assert [r.validator for r in results] == ['dependencies', 'overall']
        assert results[-1].passed
        assert results[-1].message == 'All 1 validation(s) passed'


class TestDeploy:

    def test_restores_dataset(self, restore_service, archived_dataset, platform, object_store):
        result = restore_service.deploy(AssetType.DATASET, 'orders', archived_dataset, DeploymentConfig())

        assert result.success
        assert result.status == DeploymentStatus.COMPLETED
        assert result.deployment_id.startswith('restore-')
        assert result.target_id == 'orders'
        assert result.target_name == 'Orders'
        assert result.target_arn.endswith(':data_set/restored')
        assert result.account_id == ACCOUNT_ID
        assert result.region == REGION
        assert result.metadata == {'source': 'archive', 'originalId': 'orders', 'overwrite': False}
        platform.delete_data_set.assert_called_once_with('orders')

        # Archive is kept and a live copy is made
        assert object_store.exists(BUCKET, 'archived/datasets/orders.json')
        assert object_store.get(BUCKET, 'assets/datasets/orders.json') == archived_dataset

    def test_restores_additional_components(self, restore_service, archived_dataset, platform):
        restore_service.deploy(AssetType.DATASET, 'orders', archived_dataset, DeploymentConfig())

        schedules = [c.args[1]['ScheduleId'] for c in platform.create_refresh_schedule.call_args_list]
        assert schedules == ['daily', 'weekly']
        platform.create_folder_membership.assert_called_once_with('finance', 'orders', 'DATASET')

    def test_component_failures_are_isolated(self, restore_service, archived_dataset, platform):
        platform.create_refresh_schedule.side_effect = [Exception('schedule rejected'), None]
        platform.create_folder_membership.side_effect = Exception('folder missing')

        result = restore_service.deploy(AssetType.DATASET, 'orders', archived_dataset, DeploymentConfig())

        assert result.success
        assert result.status == DeploymentStatus.COMPLETED
        assert platform.create_refresh_schedule.call_count == 2
        assert platform.create_folder_membership.call_count == 1

    def test_updates_cache(self, restore_service, archived_dataset, object_store):
        restore_service.deploy(AssetType.DATASET, 'orders', archived_dataset, DeploymentConfig())

        records = object_store.get(BUCKET, cache_key(AssetType.DATASET))
        assert len(records) == 1
        record = records[0]
        assert record['assetId'] == 'orders'
        assert record['assetName'] == 'Orders'
        assert record['status'] == 'ACTIVE'
        assert record['exportFilePath'] == 'assets/datasets/orders.json'
        assert record['storageType'] == 'individual'
        assert record['metadata']['hasPermissions'] is False
        assert object_store.get(BUCKET, CACHE_METADATA_KEY)['assetCounts'] == {'datasets': 1}

    def test_cache_failure_is_a_warning(self, restore_service, archived_dataset, monkeypatch):
        def fail(*args, **kwargs):
            raise RuntimeError('cache offline')

        monkeypatch.setattr(restore_service.asset_cache, 'replace_asset', fail)

        result = restore_service.deploy(AssetType.DATASET, 'orders', archived_dataset, DeploymentConfig())

        assert result.success
        assert result.warnings == ['Cache update failed: cache offline']

    def test_validate_only_leaves_cache_untouched(self, restore_service, archived_dataset, object_store):
        restore_service.deploy(AssetType.DATASET, 'orders', archived_dataset, _config(validate_only=True))

        assert not object_store.exists(BUCKET, cache_key(AssetType.DATASET))

    def test_sequential_restores_number_backups(self, restore_service, archived_dataset, object_store):
        first = restore_service.deploy(AssetType.DATASET, 'orders', archived_dataset, DeploymentConfig())
        second = restore_service.deploy(AssetType.DATASET, 'orders', archived_dataset, DeploymentConfig())

        assert first.backup_path == 'archived/datasets/orders-previous-archive-1.json'
        assert second.backup_path == 'archived/datasets/orders-previous-archive-2.json'
        backup = object_store.get(BUCKET, second.backup_path)
        assert backup['backupMetadata']['backupNumber'] == 2
        assert backup['backupMetadata']['originalArchivePath'] == 'archived/datasets/orders.json'
        assert backup['apiResponses'] == archived_dataset['apiResponses']

    def test_backup_slots_exhausted(self, restore_service, archived_dataset, object_store):
        for n in range(1, 101):
            object_store.put(BUCKET, f"archived/datasets/orders-previous-archive-{n}.json", {})

        path = restore_service.create_archived_backup(AssetType.DATASET, 'orders', archived_dataset)

        assert path == 'archived/datasets/orders-previous-archive-100.json'
        assert object_store.get(BUCKET, path)['backupMetadata']['backupNumber'] == 100

    def test_skip_if_exists(self, restore_service, archived_dataset, platform, object_store):
        object_store.put(BUCKET, 'assets/datasets/orders.json', {'live': True})

        result = restore_service.deploy(AssetType.DATASET, 'orders', archived_dataset, _config(skip_if_exists=True))

        assert result.success
        assert result.status == DeploymentStatus.SKIPPED
        assert result.warnings == ['Asset dataset/orders already exists, skipped']
        platform.create_data_set.assert_not_called()
        assert object_store.get(BUCKET, 'assets/datasets/orders.json') == {'live': True}

    def test_overwrite_backs_up_live_copy(self, restore_service, archived_dataset, object_store):
        object_store.put(BUCKET, 'assets/datasets/orders.json', {'live': True})

        result = restore_service.deploy(
            AssetType.DATASET, 'orders', archived_dataset, _config(overwrite_existing=True)
        )

        backup_path = result.metadata['existingBackupPath']
        assert backup_path.startswith('backups/datasets/orders-')
        assert object_store.get(BUCKET, backup_path) == {'live': True}
        assert result.metadata['overwrite'] is True
        assert object_store.get(BUCKET, 'assets/datasets/orders.json') == archived_dataset

    def test_restore_under_new_id(self, restore_service, archived_dataset, platform, object_store):
        result = restore_service.deploy(
            AssetType.DATASET, 'orders', archived_dataset, _config(id='orders-copy', name='Orders Copy')
        )

        assert result.target_id == 'orders-copy'
        assert result.target_name == 'Orders Copy'
        kwargs = platform.create_data_set.call_args.kwargs
        assert kwargs['data_set_id'] == 'orders-copy'
        assert kwargs['name'] == 'Orders Copy'
        assert object_store.exists(BUCKET, 'assets/datasets/orders-copy.json')
        assert result.backup_path == 'archived/datasets/orders-previous-archive-1.json'

    def test_missing_precondition_fails(self, restore_service, archive, platform, object_store):
        data = dataset_archive()
        del data['apiResponses']['describe']['data']['DataSet']['PhysicalTableMap']
        archive(AssetType.DATASET, 'orders', data)

        result = restore_service.deploy(AssetType.DATASET, 'orders', data, DeploymentConfig())

        assert not result.success
        assert result.status == DeploymentStatus.FAILED
        assert result.error == 'No PhysicalTableMap found for dataset orders'
        platform.delete_data_set.assert_not_called()
        platform.create_data_set.assert_not_called()
        assert not object_store.exists(BUCKET, 'assets/datasets/orders.json')
        assert result.backup_path is None

    def test_overwrite_keeps_live_dataset_when_archive_is_unusable(self, restore_service, platform,
                                                                   object_store):
        data = dataset_archive()
        del data['apiResponses']['describe']['data']['DataSet']['PhysicalTableMap']
        object_store.put(BUCKET, 'assets/datasets/orders.json', {'live': True})

        result = restore_service.deploy(AssetType.DATASET, 'orders', data, _config(overwrite_existing=True))

        assert result.status == DeploymentStatus.FAILED
        assert result.error == 'No PhysicalTableMap found for dataset orders'
        assert platform.method_calls == []
        assert object_store.keys('backups/') == []
        assert object_store.get(BUCKET, 'assets/datasets/orders.json') == {'live': True}

    def test_overwrite_keeps_live_dashboard_without_definition(self, restore_service, platform, object_store):
        data = dashboard_archive()
        del data['apiResponses']['definition']['data']['Definition']
        object_store.put(BUCKET, 'assets/dashboards/sales-dashboard.json', {'live': True})

        result = restore_service.deploy(
            AssetType.DASHBOARD, 'sales-dashboard', data, _config(overwrite_existing=True)
        )

        assert result.error == 'No dashboard definition found for dashboard sales-dashboard'
        platform.delete_dashboard.assert_not_called()
        assert object_store.keys('backups/') == []

    def test_date_errors_are_explained(self, restore_service, archived_dataset, platform):
        platform.create_data_set.side_effect = Exception(
            "Invalid type for parameter CreatedTime, value: 2024-01-01, "
            "type: <class 'str'>, valid types: <class 'datetime.datetime'>"
        )

        result = restore_service.deploy(AssetType.DATASET, 'orders', archived_dataset, DeploymentConfig())

        assert result.status == DeploymentStatus.FAILED
        assert result.error.startswith('Date parsing error during restore: Invalid type for parameter')
        assert result.error.endswith('This may be due to invalid date formats in the archived data.')

    def test_unsupported_kind_fails(self, restore_service, archive):
        data = archive(AssetType.GROUP, 'analysts', {'GroupName': 'analysts'})

        result = restore_service.deploy(AssetType.GROUP, 'analysts', data, DeploymentConfig())

        assert result.status == DeploymentStatus.FAILED
        assert result.error == 'Restore not implemented for asset type group'


class TestRollback:

    def test_rolls_back_completed_restore(self, restore_service, archived_dataset, platform):
        result = restore_service.deploy(AssetType.DATASET, 'orders', archived_dataset, DeploymentConfig())

        restore_service.rollback(result)

        assert result.status == DeploymentStatus.ROLLED_BACK
        assert not result.success
        assert platform.delete_data_set.call_count == 2
        assert result.warnings[-1] == 'Rolled back dataset/orders'

    def test_ignores_incomplete_results(self, restore_service, archived_dataset, platform):
        platform.create_data_set.side_effect = Exception('boom')
        result = restore_service.deploy(AssetType.DATASET, 'orders', archived_dataset, DeploymentConfig())

        restore_service.rollback(result)

        assert result.status == DeploymentStatus.FAILED
        assert platform.delete_data_set.call_count == 1

    def test_rollback_failure_is_recorded(self, restore_service, archived_dataset, platform):
        result = restore_service.deploy(AssetType.DATASET, 'orders', archived_dataset, DeploymentConfig())
        platform.delete_data_set.side_effect = Exception('locked')

        restore_service.rollback(result)

        assert result.status == DeploymentStatus.COMPLETED
        assert result.warnings[-1] == 'Rollback of dataset/orders failed: locked'


class TestTransformations:

    def test_describe_body_becomes_top_level(self, restore_service):
        data = dataset_archive()

        result = restore_service.apply_transformations(AssetType.DATASET, data, DeploymentConfig())

        assert result['DataSetId'] == 'orders'
        assert result['Name'] == 'Orders'
        assert [s['ScheduleId'] for s in result['RefreshSchedules']] == ['daily', 'weekly']
        assert result['FolderMemberships'] == [{'FolderId': 'finance'}]
        assert 'Permissions' not in result
        assert result['apiResponses'] == data['apiResponses']

    def test_archived_tags_and_override_tags(self, restore_service):
        archived = restore_service.apply_transformations(AssetType.DASHBOARD, dashboard_archive(), DeploymentConfig())
        overridden = restore_service.apply_transformations(
            AssetType.DASHBOARD, dashboard_archive(), _config(tags=[{'key': 'env', 'value': 'prod'}])
        )

        assert archived['Tags'] == [{'Key': 'team', 'Value': 'finance'}]
        assert overridden['Tags'] == [{'Key': 'env', 'Value': 'prod'}]

    def test_overrides_and_field_edits(self, restore_service):
        config = _config(
            name='Orders',
            description='Restored copy',
            transformations=[
                AssetTransformation(type='regex', field='Name', pattern='^Orders$', replacement='Orders (restored)'),
                AssetTransformation(type='rename', field='LogicalTableMap.orders-logical.Alias', value='orders_v2'),
                AssetTransformation(type='replace', field='Extra.Owner', value='analytics'),
                AssetTransformation(type='shuffle', field='Name'),
            ]
        )

        result = restore_service.apply_transformations(AssetType.DATASET, dataset_archive(), config)

        assert result['Name'] == 'Orders (restored)'
        assert result['Description'] == 'Restored copy'
        assert result['LogicalTableMap']['orders-logical']['Alias'] == 'orders_v2'
        assert result['Extra'] == {'Owner': 'analytics'}

    def test_variable_substitution_keeps_valid_json(self, restore_service):
        config = _config(name='Orders ${env}', variable_substitutions={'env': 'eu "west"'})

        result = restore_service.apply_transformations(AssetType.DATASET, dataset_archive(), config)

        assert result['Name'] == 'Orders eu "west"'

    def test_transformations_are_recorded(self, restore_service, archived_dataset):
        config = DeploymentConfig.from_dict({'options': {
            'transformations': [{'type': 'replace', 'field': 'Name', 'value': 'Orders'}]
        }})

        result = restore_service.deploy(AssetType.DATASET, 'orders', archived_dataset, config)

        assert result.transformations_applied == ['replace']
