"""
Parsers for organizational assets: folders, groups and users.

These kinds have no definition to parse; only their metadata is extracted.
"""

from typing import Any, Dict, Optional

from ..models.asset_export import AssetExportData
from ..models.asset_types import AssetType
from .base import BaseAssetParser, arn_suffix, as_dict, as_list, unwrap


class OrganizationParser(BaseAssetParser):
    """Pass-through definition handling shared by the organizational kinds."""

    def extract_definition(self, raw: Any) -> Any:
        return raw

    @staticmethod
    def members(export: AssetExportData) -> list:
        return as_list(export.data('members'))


class FolderParser(OrganizationParser):

    asset_type = AssetType.FOLDER

    def extract_metadata(self, export: AssetExportData,
                         transformed: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        list_data = as_dict(export.data('list'))
        describe_data = as_dict(unwrap(export.data('describe'), 'Folder'))
        members = self.members(export)

        def pick(key: str) -> Any:
            return describe_data.get(key) or list_data.get(key)

        folder_path = as_list(pick('FolderPath'))
        parent = folder_path[-1] if folder_path else None

        return {
            'assetId': pick('FolderId'),
            'name': pick('Name') or '',
            'arn': pick('Arn'),
            'createdTime': pick('CreatedTime'),
            'lastUpdatedTime': pick('LastUpdatedTime'),
            'folderPath': folder_path,
            'parentId': arn_suffix(parent) if isinstance(parent, str) else None,
            'memberCount': len(members),
            'members': members,
        }


class GroupParser(OrganizationParser):

    asset_type = AssetType.GROUP

    def extract_metadata(self, export: AssetExportData,
                         transformed: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        list_data = as_dict(export.data('list'))
        group = as_dict(as_dict(export.data('describe')).get('Group'))
        members = self.members(export)

        def pick(key: str) -> Any:
            return list_data.get(key) or group.get(key)

        return {
            'assetId': pick('GroupName'),
            'name': pick('GroupName'),
            'arn': pick('Arn'),
            'description': pick('Description'),
            'principalId': pick('PrincipalId'),
            'memberCount': len(members),
            'members': [
                {
                    'memberName': as_dict(member).get('MemberName'),
                    'arn': as_dict(member).get('Arn'),
                    'email': as_dict(member).get('Email'),
                }
                for member in members
            ],
        }


class UserParser(OrganizationParser):

    asset_type = AssetType.USER

    def extract_metadata(self, export: AssetExportData,
                         transformed: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        user = as_dict(as_dict(export.data('describe')).get('User'))
        # List data wins over the describe body
        source = {**user, **as_dict(export.data('list'))}

        active = source.get('Active')
        return {
            'assetId': source.get('UserName'),
            'name': source.get('UserName'),
            'arn': source.get('Arn'),
            'email': source.get('Email'),
            'role': source.get('Role'),
            'active': True if active is None else active,
            'principalId': source.get('PrincipalId'),
        }
