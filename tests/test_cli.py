"""
Tests for the command-line interface.
"""

import argparse
import json
import logging

import pytest
import yaml

from quicksight_restore import cli
from quicksight_restore.models.asset_types import AssetType
from quicksight_restore.models.config import RestoreConfig
from quicksight_restore.orchestrator import QuickSightRestoreOrchestrator

from .fakes import ACCOUNT_ID, BUCKET, REGION, dashboard_archive, dataset_archive


@pytest.fixture(autouse=True)
def root_handlers():
    """main() attaches console handlers to the root logger; drop them after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    yield
    root.handlers[:] = handlers


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text(yaml.dump({
        'aws': {'region': REGION, 'account_id': ACCOUNT_ID},
        's3': {'bucket_name': BUCKET},
        'restore': {'check_dependencies': False},
        'logging': {'level': 'INFO', 'file_path': str(tmp_path / 'logs' / 'restore.log')},
    }), encoding='utf-8')
    return str(path)


@pytest.fixture
def orchestrator(object_store, restore_service, archive, monkeypatch):
    archive(AssetType.DATASET, 'orders', dataset_archive())
    archive(AssetType.DASHBOARD, 'sales-dashboard', dashboard_archive())
    orchestrator = QuickSightRestoreOrchestrator(object_store, BUCKET, restore_service,
                                                 aws_account_id=ACCOUNT_ID, aws_region=REGION)
    monkeypatch.setattr(cli, 'build_orchestrator', lambda config_manager, config: orchestrator)
    return orchestrator


def _reports(directory):
    return sorted(directory.glob('restore_report_*.json'))


class TestArguments:

    def test_config_is_required(self, capsys):
        assert cli.main(['--asset-type', 'dashboard', '--asset-id', 'sales']) == 2
        assert '--config' in capsys.readouterr().err

    def test_config_must_exist(self, tmp_path):
        with pytest.raises(argparse.ArgumentTypeError, match='does not exist'):
            cli.validate_config_file(str(tmp_path / 'missing.yaml'))

    def test_config_must_be_yaml_or_json(self, tmp_path):
        path = tmp_path / 'config.ini'
        path.write_text('[aws]', encoding='utf-8')

        with pytest.raises(argparse.ArgumentTypeError, match='must be YAML or JSON'):
            cli.validate_config_file(str(path))

    def test_asset_type_argument(self):
        assert cli.asset_type_argument('DataSet') == AssetType.DATASET
        with pytest.raises(argparse.ArgumentTypeError, match='Unknown asset type: theme'):
            cli.asset_type_argument('theme')

    def test_deployment_config_from_flags(self, config_file):
        args = cli.create_argument_parser().parse_args([
            '--config', config_file, '--mode', 'validate', '-t', 'dataset', '-i', 'orders',
            '--target-id', 'orders-copy', '--name', 'Orders Copy', '--overwrite', '--check-dependencies'
        ])
        config = RestoreConfig(s3_bucket_name=BUCKET, aws_region=REGION, aws_account_id=ACCOUNT_ID,
                               check_dependencies=False)

        deployment = cli.build_deployment_config(args, config)

        assert deployment.source == 'archive'
        assert deployment.target.account_id == ACCOUNT_ID
        assert deployment.options.id == 'orders-copy'
        assert deployment.options.name == 'Orders Copy'
        assert deployment.options.overwrite_existing is True
        assert deployment.options.skip_if_exists is False
        assert deployment.options.validate_only is True
        assert deployment.options.dry_run is False
        assert deployment.validation.check_dependencies is True


class TestExecution:

    def test_single_restore(self, config_file, orchestrator, tmp_path, capsys, platform):
        exit_code = cli.main([
            '--config', config_file, '-t', 'dataset', '-i', 'orders', '--output-dir', str(tmp_path / 'reports')
        ])

        assert exit_code == 0
        platform.create_data_set.assert_called_once()
        assert 'dataset orders -> orders [completed]' in capsys.readouterr().out

        reports = _reports(tmp_path / 'reports')
        assert len(reports) == 1
        report = json.loads(reports[0].read_text(encoding='utf-8'))
        assert report['summary']['successful_deployments'] == 1
        assert report['deployments'][0]['sourceId'] == 'orders'

    def test_dry_run_changes_nothing(self, config_file, orchestrator, tmp_path, platform):
        exit_code = cli.main([
            '--config', config_file, '-t', 'dataset', '-i', 'orders', '--dry-run', '-o', str(tmp_path)
        ])

        assert exit_code == 0
        assert platform.method_calls == []

    def test_failed_restore(self, config_file, orchestrator, tmp_path):
        exit_code = cli.main(['--config', config_file, '-t', 'dataset', '-i', 'missing', '-o', str(tmp_path)])

        assert exit_code == 1

    def test_partial_manifest_failure(self, config_file, orchestrator, tmp_path, capsys):
        manifest = tmp_path / 'manifest.yaml'
        manifest.write_text(yaml.dump({'deployments': [
            {'assetType': 'dataset', 'assetId': 'orders', 'priority': 1},
            {'assetType': 'dataset', 'assetId': 'missing', 'priority': 2},
        ]}), encoding='utf-8')

        exit_code = cli.main(['--config', config_file, '--manifest', str(manifest), '-o', str(tmp_path)])

        assert exit_code == 2
        assert '1 of 2 restores failed' in capsys.readouterr().out
        assert len(_reports(tmp_path)) == 1

    def test_validate_mode_on_manifest(self, config_file, orchestrator, tmp_path, platform):
        manifest = tmp_path / 'manifest.yaml'
        manifest.write_text(yaml.dump({'deployments': [{'assetType': 'dataset', 'assetId': 'orders'}]}),
                            encoding='utf-8')

        exit_code = cli.main([
            '--config', config_file, '--mode', 'validate', '--manifest', str(manifest), '-o', str(tmp_path)
        ])

        assert exit_code == 0
        platform.create_data_set.assert_not_called()

    def test_asset_selection_required(self, config_file, orchestrator, capsys):
        assert cli.main(['--config', config_file, '-t', 'dataset']) == 1
        assert 'Either --manifest or both --asset-type and --asset-id are required' in capsys.readouterr().err

    def test_inspect(self, config_file, orchestrator, capsys, platform):
        exit_code = cli.main(['--config', config_file, '--mode', 'inspect', '-t', 'dashboard',
                              '-i', 'sales-dashboard'])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output['assetType'] == 'dashboard'
        assert output['assetId'] == 'sales-dashboard'
        assert output['parsed'] is not None
        assert platform.method_calls == []

    def test_invalid_config(self, tmp_path, capsys):
        path = tmp_path / 'config.yaml'
        path.write_text(yaml.dump({'aws': {'region': REGION, 'account_id': '1'}, 's3': {'bucket_name': BUCKET}}),
                        encoding='utf-8')

        assert cli.main(['--config', str(path), '-t', 'dataset', '-i', 'orders']) == 1
        err = capsys.readouterr().err
        assert 'AWS account ID must be a 12-digit number' in err
        assert '  - Review the configuration file for syntax errors' in err
