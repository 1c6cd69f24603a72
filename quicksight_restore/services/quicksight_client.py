"""
boto3-backed implementation of the QuickSight platform calls used by restores.
"""

import logging
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .base import QuickSightPlatform
from .error_handler import ErrorHandler, RetryConfig

logger = logging.getLogger(__name__)

# snake_case keyword -> request member, for the optional create/update members
REQUEST_MEMBERS = {
    'theme_arn': 'ThemeArn',
    'dashboard_publish_options': 'DashboardPublishOptions',
    'logical_table_map': 'LogicalTableMap',
    'import_mode': 'ImportMode',
    'column_groups': 'ColumnGroups',
    'field_folders': 'FieldFolders',
    'row_level_permission_data_set': 'RowLevelPermissionDataSet',
    'row_level_permission_tag_configuration': 'RowLevelPermissionTagConfiguration',
    'column_level_permission_rules': 'ColumnLevelPermissionRules',
    'data_set_usage_configuration': 'DataSetUsageConfiguration',
    'credentials': 'Credentials',
    'vpc_connection_properties': 'VpcConnectionProperties',
    'ssl_properties': 'SslProperties',
}


def to_request_members(optional: Dict[str, Any]) -> Dict[str, Any]:
    """Map optional snake_case keywords onto request members, dropping unset ones."""
    members = {}
    for key, value in optional.items():
        if value is None:
            continue
        if key not in REQUEST_MEMBERS:
            raise TypeError(f"Unexpected argument: {key}")
        members[REQUEST_MEMBERS[key]] = value
    return members


def to_api_tags(tags: Optional[List[Dict[str, str]]]) -> List[Dict[str, str]]:
    return [{'Key': tag['key'], 'Value': tag['value']} for tag in tags or []]


class QuickSightPlatformClient(QuickSightPlatform):
    """
    Calls the QuickSight API for one account.

    Every call is retried on throttling and transient errors. Client errors
    surface as the toolkit's exceptions; a missing resource raises
    AssetNotFoundError.
    """

    def __init__(self, quicksight_client: Any, aws_account_id: str,
                 retry_config: Optional[RetryConfig] = None, error_handler: Optional[ErrorHandler] = None):
        self.client = quicksight_client
        self.aws_account_id = aws_account_id
        self.retry_config = retry_config or RetryConfig()
        self.error_handler = error_handler or ErrorHandler(logger)

    def _call(self, operation: str, **params: Any) -> Dict[str, Any]:
        method = getattr(self.client, operation)
        call = self.error_handler.create_retry_decorator(self.retry_config, operation, 'quicksight')(method)
        try:
            return call(AwsAccountId=self.aws_account_id, **params)
        except (ClientError, BotoCoreError) as e:
            self.error_handler.handle_api_error(e, operation, 'quicksight')
            raise

    @staticmethod
    def _created(response: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'arn': response.get('Arn'),
            'status': response.get('CreationStatus') or response.get('Status'),
            'request_id': response.get('RequestId'),
        }

    def _with_access(self, params: Dict[str, Any], permissions: Optional[List[Dict[str, Any]]],
                     tags: Optional[List[Dict[str, str]]]) -> Dict[str, Any]:
        # Both lists have a minimum length of one in the request model
        if permissions:
            params['Permissions'] = permissions
        if tags:
            params['Tags'] = to_api_tags(tags)
        return params

    # Creation

    def create_dashboard(self, dashboard_id: str, name: str, definition: Dict[str, Any],
                         permissions: List[Dict[str, Any]], tags: Optional[List[Dict[str, str]]] = None,
                         theme_arn: Optional[str] = None,
                         dashboard_publish_options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        params = {
            'DashboardId': dashboard_id,
            'Name': name,
            'Definition': definition,
            **to_request_members({
                'theme_arn': theme_arn,
                'dashboard_publish_options': dashboard_publish_options,
            }),
        }
        return self._created(self._call('create_dashboard', **self._with_access(params, permissions, tags)))

    def create_analysis(self, analysis_id: str, name: str, definition: Dict[str, Any],
                        permissions: List[Dict[str, Any]], tags: Optional[List[Dict[str, str]]] = None,
                        theme_arn: Optional[str] = None) -> Dict[str, Any]:
        params = {
            'AnalysisId': analysis_id,
            'Name': name,
            'Definition': definition,
            **to_request_members({'theme_arn': theme_arn}),
        }
        return self._created(self._call('create_analysis', **self._with_access(params, permissions, tags)))

    def create_data_set(self, data_set_id: str, name: str, physical_table_map: Dict[str, Any],
                        permissions: List[Dict[str, Any]], tags: Optional[List[Dict[str, str]]] = None,
                        **optional: Any) -> Dict[str, Any]:
        params = {
            'DataSetId': data_set_id,
            'Name': name,
            'PhysicalTableMap': physical_table_map,
            **to_request_members(optional),
        }
        response = self._call('create_data_set', **self._with_access(params, permissions, tags))
        result = self._created(response)
        result['ingestion_arn'] = response.get('IngestionArn')
        return result

    def create_data_source(self, data_source_id: str, name: str, type: str,
                           data_source_parameters: Dict[str, Any], permissions: List[Dict[str, Any]],
                           tags: Optional[List[Dict[str, str]]] = None, **optional: Any) -> Dict[str, Any]:
        params = {
            'DataSourceId': data_source_id,
            'Name': name,
            'Type': type,
            'DataSourceParameters': data_source_parameters,
            **to_request_members(optional),
        }
        return self._created(self._call('create_data_source', **self._with_access(params, permissions, tags)))

    # Deletion

    def delete_dashboard(self, dashboard_id: str) -> None:
        self._call('delete_dashboard', DashboardId=dashboard_id)

    def delete_analysis(self, analysis_id: str) -> None:
        self._call('delete_analysis', AnalysisId=analysis_id, ForceDeleteWithoutRecovery=True)

    def delete_data_set(self, data_set_id: str) -> None:
        self._call('delete_data_set', DataSetId=data_set_id)

    def delete_data_source(self, data_source_id: str) -> None:
        self._call('delete_data_source', DataSourceId=data_source_id)

    # Dataset maintenance

    def describe_data_set(self, data_set_id: str) -> Dict[str, Any]:
        return self._call('describe_data_set', DataSetId=data_set_id).get('DataSet') or {}

    def update_data_set(self, data_set_id: str, name: str, physical_table_map: Dict[str, Any],
                        **optional: Any) -> Dict[str, Any]:
        params = {
            'DataSetId': data_set_id,
            'Name': name,
            'PhysicalTableMap': physical_table_map,
            **to_request_members(optional),
        }
        return self._created(self._call('update_data_set', **params))

    def create_refresh_schedule(self, data_set_id: str, schedule: Dict[str, Any]) -> Dict[str, Any]:
        return self._created(self._call('create_refresh_schedule', DataSetId=data_set_id, Schedule=schedule))

    def put_data_set_refresh_properties(self, data_set_id: str,
                                        refresh_properties: Dict[str, Any]) -> Dict[str, Any]:
        return self._call(
            'put_data_set_refresh_properties',
            DataSetId=data_set_id,
            DataSetRefreshProperties=refresh_properties
        )

    def create_folder_membership(self, folder_id: str, member_id: str, member_type: str) -> Dict[str, Any]:
        return self._call(
            'create_folder_membership',
            FolderId=folder_id,
            MemberId=member_id,
            MemberType=member_type
        )
