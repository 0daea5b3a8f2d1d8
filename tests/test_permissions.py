"""
Permission Catalog Tests
"""

import pytest

from rbac.errors import UnknownPermissionError
from rbac.permissions import (
    ALL_PERMISSIONS,
    PERMISSIONS,
    Category,
    Permission,
    exists,
    get_permission_info,
    parse_permission,
    permissions_in_category,
)


class TestCatalog:
    """Closed catalog with metadata for every member."""

    def test_every_permission_has_info(self):
        assert set(PERMISSIONS) == set(Permission)

    def test_info_matches_key(self):
        for permission, info in PERMISSIONS.items():
            assert info.permission == permission
            assert info.name
            assert isinstance(info.category, Category)

    def test_catalog_is_read_only(self):
        with pytest.raises(TypeError):
            PERMISSIONS[Permission.CONTENT_VIEW] = None

    def test_all_permissions(self):
        assert ALL_PERMISSIONS == frozenset(Permission)

    def test_values_are_lower_snake_case(self):
        for permission in Permission:
            assert permission.value == permission.value.lower()
            assert " " not in permission.value


class TestLookups:

    def test_exists_enum(self):
        assert exists(Permission.DOCUMENT_APPROVE)

    def test_exists_string(self):
        assert exists("document_approve")
        assert not exists("document_shred")

    def test_parse_permission(self):
        assert parse_permission("leave_view") is Permission.LEAVE_VIEW
        assert parse_permission(Permission.LEAVE_VIEW) is Permission.LEAVE_VIEW

    def test_parse_unknown(self):
        with pytest.raises(UnknownPermissionError) as exc_info:
            parse_permission("document_shred")
        assert exc_info.value.permission == "document_shred"

    def test_get_permission_info(self):
        info = get_permission_info(Permission.MANAGE_EXPENSE)
        assert info.category == Category.EXPENSE

    def test_permissions_in_category(self):
        leave = permissions_in_category(Category.LEAVE)
        assert Permission.LEAVE_APPROVE in leave
        assert Permission.ATTENDANCE_VIEW not in leave

    def test_every_category_is_used(self):
        for category in Category:
            assert permissions_in_category(category), category
