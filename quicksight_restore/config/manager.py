"""
Configuration management for QuickSight restore operations.
"""

import json
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import boto3
from botocore.exceptions import NoCredentialsError

from ..models.config import RestoreConfig
from ..models.deployment import DeploymentManifest
from ..models.exceptions import ConfigurationError, AWSCredentialsError


def _read_document(path: str) -> Any:
    """Read a YAML or JSON file, choosing the parser by extension."""
    document_file = Path(path)

    if not document_file.exists():
        raise ConfigurationError(f"File not found: {path}")

    with open(document_file, 'r', encoding='utf-8') as f:
        if document_file.suffix.lower() in ['.yaml', '.yml']:
            return yaml.safe_load(f)
        if document_file.suffix.lower() == '.json':
            return json.load(f)

    raise ConfigurationError(
        f"Unsupported file format: {document_file.suffix}. "
        "Supported formats: .yaml, .yml, .json"
    )


class ConfigurationManager:
    """Manages configuration loading, validation, and AWS client initialization."""

    def __init__(self):
        self._config: Optional[RestoreConfig] = None
        self._aws_session: Optional[boto3.Session] = None

    def load_config(self, config_path: str) -> RestoreConfig:
        """
        Load configuration from YAML or JSON file.

        Args:
            config_path: Path to configuration file

        Returns:
            RestoreConfig: Loaded and validated configuration

        Raises:
            ConfigurationError: If configuration is invalid or cannot be loaded
        """
        try:
            config_data = _read_document(config_path)
            if not isinstance(config_data, dict):
                raise ConfigurationError("Configuration file must contain a mapping")

            flat_config = self._flatten_config(config_data)
            config = RestoreConfig(**flat_config)
            self.validate_config(config)

            self._config = config
            return self._config

        except ConfigurationError:
            raise
        except yaml.YAMLError as e:
            raise ConfigurationError(f"YAML parsing error: {str(e)}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"JSON parsing error: {str(e)}")
        except TypeError as e:
            raise ConfigurationError(f"Configuration structure error: {str(e)}")
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {str(e)}")

    def _flatten_config(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Flatten nested configuration dictionary to match RestoreConfig fields.

        Args:
            config_data: Nested configuration dictionary

        Returns:
            Dict[str, Any]: Flattened configuration dictionary
        """
        flat_config = {}

        aws_config = config_data.get('aws') or {}
        flat_config['aws_region'] = aws_config.get('region')
        flat_config['aws_account_id'] = aws_config.get('account_id')
        flat_config['identity_region'] = aws_config.get('identity_region')
        flat_config['aws_access_key_id'] = aws_config.get('access_key_id')
        flat_config['aws_secret_access_key'] = aws_config.get('secret_access_key')
        flat_config['aws_session_token'] = aws_config.get('session_token')

        # Account ids written without quotes in YAML load as integers
        if flat_config['aws_account_id'] is not None:
            flat_config['aws_account_id'] = str(flat_config['aws_account_id'])

        s3_config = config_data.get('s3') or {}
        flat_config['s3_bucket_name'] = s3_config.get('bucket_name')

        restore_config = config_data.get('restore') or {}
        flat_config['namespace'] = restore_config.get('namespace')
        flat_config['check_dependencies'] = restore_config.get('check_dependencies')
        flat_config['overwrite_existing'] = restore_config.get('overwrite_existing')
        flat_config['skip_if_exists'] = restore_config.get('skip_if_exists')
        flat_config['parallel'] = restore_config.get('parallel')
        flat_config['stop_on_error'] = restore_config.get('stop_on_error')
        flat_config['max_workers'] = restore_config.get('max_workers')

        retry_config = config_data.get('retry') or {}
        flat_config['max_retries'] = retry_config.get('max_retries')
        flat_config['base_delay'] = retry_config.get('base_delay')
        flat_config['max_delay'] = retry_config.get('max_delay')

        logging_config = config_data.get('logging') or {}
        flat_config['logging_level'] = logging_config.get('level')
        flat_config['logging_file_path'] = logging_config.get('file_path')

        # Unset values fall back to the dataclass defaults
        return {k: v for k, v in flat_config.items() if v is not None}

    def validate_config(self, config: RestoreConfig) -> bool:
        """
        Validate configuration settings.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        validation_errors = config.validate()
        if validation_errors:
            raise ConfigurationError(
                "Configuration validation failed:\n" +
                "\n".join(f"- {error}" for error in validation_errors),
                context={'errors': validation_errors}
            )
        return True

    def load_manifest(self, manifest_path: str) -> DeploymentManifest:
        """
        Load a deployment manifest from YAML or JSON.

        Args:
            manifest_path: Path to the manifest file

        Returns:
            DeploymentManifest: Parsed manifest

        Raises:
            ConfigurationError: If the manifest cannot be read or is malformed
        """
        try:
            raw = _read_document(manifest_path)
            if not isinstance(raw, dict):
                raise ConfigurationError("Manifest must contain a mapping")
            if not raw.get('deployments'):
                raise ConfigurationError("Manifest contains no deployments")
            return DeploymentManifest.from_dict(raw)

        except ConfigurationError:
            raise
        except yaml.YAMLError as e:
            raise ConfigurationError(f"YAML parsing error: {str(e)}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"JSON parsing error: {str(e)}")
        except (ValueError, TypeError, AttributeError) as e:
            raise ConfigurationError(f"Invalid manifest: {str(e)}")

    def _resolve(self, config: Optional[RestoreConfig]) -> RestoreConfig:
        if config is None:
            if self._config is None:
                raise ConfigurationError("No configuration loaded")
            config = self._config
        return config

    def get_aws_credentials(self, config: Optional[RestoreConfig] = None) -> Dict[str, Any]:
        """
        Get AWS credentials dictionary for boto3 client initialization.

        Args:
            config: Configuration to use (uses loaded config if None)

        Returns:
            Dict[str, Any]: AWS credentials and region configuration
        """
        config = self._resolve(config)

        credentials = {
            'region_name': config.aws_region
        }

        if config.aws_access_key_id and config.aws_secret_access_key:
            credentials['aws_access_key_id'] = config.aws_access_key_id
            credentials['aws_secret_access_key'] = config.aws_secret_access_key

            if config.aws_session_token:
                credentials['aws_session_token'] = config.aws_session_token

        return credentials

    def create_aws_session(self, config: Optional[RestoreConfig] = None) -> boto3.Session:
        """
        Create AWS session with configured credentials.

        Raises:
            ConfigurationError: If configuration is not loaded
            AWSCredentialsError: If session creation fails
        """
        config = self._resolve(config)

        try:
            credentials = self.get_aws_credentials(config)
            self._aws_session = boto3.Session(**credentials)
            return self._aws_session

        except NoCredentialsError as e:
            raise AWSCredentialsError(f"AWS credentials not found: {str(e)}")
        except Exception as e:
            raise AWSCredentialsError(f"Failed to create AWS session: {str(e)}")

    def get_quicksight_client(self, config: Optional[RestoreConfig] = None):
        """
        Get configured QuickSight client.

        Assets are restored in ``aws_region``; ``identity_region`` only
        matters for user and group calls, which restores do not make.
        """
        session = self.create_aws_session(config)
        try:
            return session.client('quicksight')
        except Exception as e:
            raise AWSCredentialsError(f"Failed to create QuickSight client: {str(e)}")

    def get_s3_client(self, config: Optional[RestoreConfig] = None):
        session = self.create_aws_session(config)
        return session.client('s3')

    def create_sample_config(self, output_path: str) -> None:
        """
        Create a sample configuration file.

        Args:
            output_path: Path where to create the sample configuration
        """
        sample_config = {
            'aws': {
                'region': 'us-east-1',
                'account_id': '123456789012',
            },
            's3': {
                'bucket_name': 'my-quicksight-assets'
            },
            'restore': {
                'namespace': 'default',
                'check_dependencies': True,
                'overwrite_existing': False,
                'skip_if_exists': False,
                'parallel': False,
                'stop_on_error': False,
                'max_workers': 4
            },
            'retry': {
                'max_retries': 3,
                'base_delay': 1.0,
                'max_delay': 60.0
            },
            'logging': {
                'level': 'INFO',
                'file_path': './logs/restore.log'
            }
        }

        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, 'w', encoding='utf-8') as f:
            yaml.dump(sample_config, f, default_flow_style=False, indent=2)

    @property
    def config(self) -> Optional[RestoreConfig]:
        """Get the currently loaded configuration."""
        return self._config

    @property
    def aws_session(self) -> Optional[boto3.Session]:
        """Get the current AWS session."""
        return self._aws_session
