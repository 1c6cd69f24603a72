"""
Command-line interface for QuickSight Restore Tool.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config.manager import ConfigurationManager
from .models.asset_export import AssetExportData
from .models.asset_types import AssetType
from .models.config import RestoreConfig
from .models.deployment import (
    DeploymentConfig, DeploymentOptions, DeploymentResult,
    DeploymentTarget, ValidationOptions
)
from .models.exceptions import (
    ConfigurationError,
    AWSCredentialsError,
    QuickSightRestoreError
)
from .orchestrator import QuickSightRestoreOrchestrator
from .services.archive_restore import ArchiveRestoreService
from .services.asset_cache import ObjectStoreAssetCache
from .services.error_handler import ErrorHandler, RetryConfig
from .services.logging import LoggingService
from .services.quicksight_client import QuickSightPlatformClient
from .services.s3_store import S3ObjectStore


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """
    Setup logging configuration based on verbosity level.

    Args:
        verbose: Enable verbose (DEBUG) logging
        log_file: Optional log file path
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=[]
    )

    # stderr keeps stdout clean for inspect output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(log_format))
    logging.getLogger().addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(log_format))
        logging.getLogger().addHandler(file_handler)


def validate_config_file(config_path: str) -> str:
    """
    Validate that the configuration file exists and is readable.

    Raises:
        argparse.ArgumentTypeError: If file doesn't exist or isn't readable
    """
    path = Path(config_path)

    if not path.exists():
        raise argparse.ArgumentTypeError(f"Configuration file does not exist: {config_path}")

    if not path.is_file():
        raise argparse.ArgumentTypeError(f"Configuration path is not a file: {config_path}")

    if path.suffix.lower() not in ['.yaml', '.yml', '.json']:
        raise argparse.ArgumentTypeError(f"Configuration file must be YAML or JSON: {config_path}")

    try:
        with open(path, 'r') as f:
            f.read(1)
    except PermissionError:
        raise argparse.ArgumentTypeError(f"Configuration file is not readable: {config_path}")
    except OSError as e:
        raise argparse.ArgumentTypeError(f"Error accessing configuration file: {e}")

    return str(path.absolute())


def asset_type_argument(value: str) -> AssetType:
    try:
        return AssetType.parse(value)
    except ValueError:
        choices = ', '.join(t.value for t in AssetType)
        raise argparse.ArgumentTypeError(f"Unknown asset type: {value} (expected one of: {choices})")


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        argparse.ArgumentParser: Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog='quicksight-restore',
        description='QuickSight Restore Tool - Restore archived QuickSight assets from S3',
        epilog='''
Examples:
  %(prog)s --config config.yaml --asset-type dashboard --asset-id sales-dashboard
  %(prog)s --config config.yaml --asset-type dataset --asset-id orders --overwrite
  %(prog)s --config config.yaml --mode validate --asset-type analysis --asset-id q3-review
  %(prog)s --config config.yaml --manifest restore-manifest.yaml --output-dir ./reports
  %(prog)s --config config.yaml --mode inspect --asset-type dashboard --asset-id sales-dashboard
        ''',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '--config', '-c',
        type=validate_config_file,
        required=True,
        help='Path to configuration file (YAML or JSON format)'
    )

    parser.add_argument(
        '--mode', '-m',
        choices=['restore', 'validate', 'inspect'],
        default='restore',
        help='restore (default), validate without deploying, or inspect an archived asset'
    )

    # Asset selection
    parser.add_argument(
        '--asset-type', '-t',
        type=asset_type_argument,
        help='Kind of the archived asset (dashboard, analysis, dataset, datasource, ...)'
    )

    parser.add_argument(
        '--asset-id', '-i',
        type=str,
        help='Id of the archived asset'
    )

    parser.add_argument(
        '--manifest',
        type=str,
        help='Deployment manifest (YAML or JSON) listing several assets to restore'
    )

    # Deployment options
    parser.add_argument(
        '--target-id',
        type=str,
        help='Restore under a different asset id'
    )

    parser.add_argument(
        '--name',
        type=str,
        help='Restore under a different display name'
    )

    parser.add_argument(
        '--overwrite',
        action='store_true',
        help='Delete and replace an asset that already exists in the account'
    )

    parser.add_argument(
        '--skip-if-exists',
        action='store_true',
        help='Skip the restore when the asset already exists'
    )

    parser.add_argument(
        '--check-dependencies',
        action='store_true',
        help='Warn about data sources and datasets the asset depends on that are missing'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Validate and report what would be restored without making any changes'
    )

    # Output options
    parser.add_argument(
        '--output-dir', '-o',
        type=str,
        help='Output directory for deployment reports (default: current directory)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose (DEBUG) logging'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Path to log file (logs to console only if not specified)'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    return parser


def build_deployment_config(args: argparse.Namespace, config: RestoreConfig) -> DeploymentConfig:
    """Deployment configuration for a single asset from the CLI flags and config defaults."""
    return DeploymentConfig(
        deployment_type='restore',
        source='archive',
        target=DeploymentTarget(
            account_id=config.aws_account_id,
            region=config.aws_region,
            namespace=config.namespace
        ),
        options=DeploymentOptions(
            id=args.target_id,
            name=args.name,
            overwrite_existing=args.overwrite or config.overwrite_existing,
            skip_if_exists=args.skip_if_exists or config.skip_if_exists,
            validate_only=args.mode == 'validate',
            dry_run=args.dry_run
        ),
        validation=ValidationOptions(
            check_dependencies=args.check_dependencies or config.check_dependencies
        )
    )


def build_orchestrator(config_manager: ConfigurationManager,
                       config: RestoreConfig) -> QuickSightRestoreOrchestrator:
    """Wire the AWS-backed collaborators into a deployment coordinator."""
    logger = logging.getLogger(__name__)
    retry_config = RetryConfig(
        max_attempts=config.max_retries + 1,
        base_delay=config.base_delay,
        max_delay=config.max_delay
    )
    error_handler = ErrorHandler(logger)

    object_store = S3ObjectStore(config_manager.get_s3_client(config), retry_config, error_handler)
    platform = QuickSightPlatformClient(
        config_manager.get_quicksight_client(config), config.aws_account_id, retry_config, error_handler
    )
    asset_cache = ObjectStoreAssetCache(object_store, config.s3_bucket_name)

    restore_service = ArchiveRestoreService(
        object_store=object_store,
        platform=platform,
        asset_cache=asset_cache,
        bucket_name=config.s3_bucket_name,
        aws_account_id=config.aws_account_id,
        aws_region=config.aws_region
    )

    return QuickSightRestoreOrchestrator(
        object_store=object_store,
        bucket_name=config.s3_bucket_name,
        restore_service=restore_service,
        aws_account_id=config.aws_account_id,
        aws_region=config.aws_region,
        max_workers=config.max_workers
    )


def inspect_asset(orchestrator: QuickSightRestoreOrchestrator, asset_type: AssetType, asset_id: str) -> int:
    """Print the parsed definition and cache metadata of an archived asset."""
    restore_service = orchestrator.get_strategy('restore')
    data = orchestrator.load_asset_data(asset_type, asset_id, DeploymentConfig(source='archive'))
    export = AssetExportData.from_dict(data)
    parser_service = restore_service.parser_service

    parsed = parser_service.parse_asset(asset_type, export)
    output = {
        'assetType': asset_type.value,
        'assetId': asset_id,
        'enrichmentStatus': parser_service.determine_enrichment_status(export, asset_type).value,
        'metadata': parser_service.extract_metadata(asset_type, export),
        'parsed': parsed.to_dict() if parsed else None
    }
    print(json.dumps(output, indent=2, default=str))
    return 0


def print_summary(results: List[DeploymentResult]) -> None:
    print("\n" + "=" * 60)
    print("RESTORE COMPLETED")
    print("=" * 60)

    for result in results:
        marker = "✓" if result.success else "✗"
        kind = result.asset_type.value if result.asset_type else "unknown"
        line = f"{marker} {kind} {result.source_id} -> {result.target_id} [{result.status.value}]"
        if result.error:
            line += f": {result.error}"
        print(line)
        for warning in result.warnings:
            print(f"    ⚠ {warning}")


def print_remediation(error: Exception) -> None:
    print("Suggested steps:", file=sys.stderr)
    for step in ErrorHandler().get_error_remediation_steps(error):
        print(f"  - {step}", file=sys.stderr)


def execute_restore(args: argparse.Namespace) -> int:
    """
    Execute the requested operation based on CLI arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        int: Exit code (0 ok, 1 error, 2 partial failure, 130 interrupted)
    """
    logger = logging.getLogger(__name__)
    logging_service = None

    try:
        config_manager = ConfigurationManager()
        config = config_manager.load_config(args.config)
        logging_service = LoggingService(config)

        if not args.manifest and not (args.asset_type and args.asset_id):
            raise ConfigurationError("Either --manifest or both --asset-type and --asset-id are required")
        if args.mode == 'inspect' and args.manifest:
            raise ConfigurationError("--mode inspect works on a single asset, not a manifest")

        orchestrator = build_orchestrator(config_manager, config)

        if args.mode == 'inspect':
            return inspect_asset(orchestrator, args.asset_type, args.asset_id)

        if args.manifest:
            manifest = config_manager.load_manifest(args.manifest)
            if args.mode == 'validate' or args.dry_run:
                for item in manifest.deployments:
                    item.config.options.validate_only = args.mode == 'validate'
                    item.config.options.dry_run = args.dry_run or item.config.options.dry_run
            logging_service.start_batch('manifest restore', len(manifest.deployments))
            results = orchestrator.deploy_manifest(manifest, logging_service.progress_tracker)
            logging_service.complete_batch()
        else:
            logger.info(f"Executing {args.mode} for {args.asset_type.value} {args.asset_id}")
            deployment_config = build_deployment_config(args, config)
            results = [orchestrator.deploy_asset(args.asset_type, args.asset_id, deployment_config)]

        output_dir = Path(args.output_dir) if args.output_dir else Path.cwd()
        report = logging_service.generate_deployment_report(results)
        timestamp = results[0].start_time.strftime('%Y%m%d_%H%M%S') if results else 'empty'
        report_path = logging_service.save_deployment_report(
            report, str(output_dir / f"restore_report_{timestamp}.json")
        )
        logger.info(f"Deployment report saved to: {report_path}")

        print_summary(results)

        failed = [r for r in results if not r.success]
        if not failed:
            return 0
        if len(failed) < len(results):
            print(f"⚠ {len(failed)} of {len(results)} restores failed")
            return 2
        return 1

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"Configuration Error: {e}", file=sys.stderr)
        print("Please check your configuration file and arguments and try again.", file=sys.stderr)
        print_remediation(e)
        return 1

    except AWSCredentialsError as e:
        logger.error(f"AWS credentials error: {e}")
        print(f"AWS Credentials Error: {e}", file=sys.stderr)
        print("Please check your AWS credentials and permissions.", file=sys.stderr)
        print_remediation(e)
        return 1

    except QuickSightRestoreError as e:
        logger.error(f"Restore error: {e}")
        print(f"Restore Error: {e}", file=sys.stderr)
        print_remediation(e)
        return 1

    except KeyboardInterrupt:
        logger.warning("Restore interrupted by user")
        print("\nRestore interrupted by user", file=sys.stderr)
        return 130

    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        print(f"Unexpected Error: {e}", file=sys.stderr)
        print("Please check the logs for more details.", file=sys.stderr)
        return 1

    finally:
        if logging_service is not None:
            logging_service.close()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI application.

    Returns:
        int: Exit code
    """
    parser = create_argument_parser()

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return e.code

    setup_logging(verbose=args.verbose, log_file=args.log_file)

    return execute_restore(args)


if __name__ == '__main__':
    sys.exit(main())
