"""
Menu Filtering Tests
"""

from rbac.menu import DEFAULT_MENU, MenuItem, filter_menu
from rbac.permissions import Permission
from rbac.roles import Role, RoleCategory


def _keys(items):
    keys = []
    for item in items:
        keys.append(item.key)
        keys.extend(_keys(item.children))
    return keys


class TestFilterMenu:
    """Visibility and path resolution."""

    def test_branch_user_menu(self, classifier, profile_factory):
        user = profile_factory(Role.USER, "P1", "B1")
        keys = _keys(filter_menu(DEFAULT_MENU, user, classifier))

        assert "reports" in keys
        assert "leave" in keys
        assert "overview" not in keys
        assert "dashboard" not in keys
        assert "users" not in keys
        assert "developer" not in keys

    def test_paths_resolved_under_branch_prefix(self, classifier, branch_manager):
        items = {i.key: i for i in filter_menu(DEFAULT_MENU, branch_manager, classifier)}
        assert items["dashboard"].path == "/P1/B1/dashboard"
        assert items["reports"].path == "/P1/B1/reports"

    def test_executive_sees_executive_entries(self, classifier, executive):
        items = {i.key: i for i in filter_menu(DEFAULT_MENU, executive, classifier)}
        assert items["overview"].path == "/overview"
        assert "settings" in items
        assert "developer" not in items

    def test_developer_sees_everything(self, classifier, developer):
        keys = _keys(filter_menu(DEFAULT_MENU, developer, classifier))
        assert set(_keys(DEFAULT_MENU)) == set(keys)

    def test_empty_group_dropped(self, classifier, profile_factory):
        guest = profile_factory(Role.GUEST)
        keys = _keys(filter_menu(DEFAULT_MENU, guest, classifier))
        assert "account" not in keys
        assert "hr" not in keys

    def test_group_keeps_only_visible_children(self, classifier, profile_factory):
        user = profile_factory(Role.USER, "P1", "B1")
        hr = next(i for i in filter_menu(DEFAULT_MENU, user, classifier) if i.key == "hr")
        assert [c.key for c in hr.children] == ["employees", "attendance", "leave"]
        assert hr.path is None

    def test_route_denial_hides_entry(self, classifier, profile_factory):
        # Holds the permission but the users page is not open at branch level
        lead = profile_factory(Role.LEAD, "P1", "B1", permission_overrides={Permission.USER_VIEW})
        menu = (MenuItem("users", "Users", "users", any_permissions=(Permission.USER_VIEW,)),)
        assert filter_menu(menu, lead, classifier) == []

    def test_any_permission_entry(self, classifier, profile_factory):
        manager = profile_factory(Role.PROVINCE_MANAGER, "P1")
        menu = (MenuItem("expense", "Expenses", "account/expense",
                         any_permissions=(Permission.VIEW_EXPENSE, Permission.MANAGE_EXPENSE)),)
        result = filter_menu(menu, manager, classifier)
        assert [i.path for i in result] == ["/P1/account/expense"]

    def test_all_permissions_entry(self, classifier, profile_factory):
        user = profile_factory(Role.USER, "P1", "B1")
        menu = (MenuItem("leave", "Leave", "hr/leave",
                         all_permissions=(Permission.LEAVE_VIEW, Permission.LEAVE_APPROVE)),)
        assert filter_menu(menu, user, classifier) == []

    def test_category_entry(self, classifier, profile_factory):
        manager = profile_factory(Role.GENERAL_MANAGER)
        menu = (MenuItem("settings", "Settings", "settings", category=RoleCategory.GENERAL_MANAGER),)
        assert [i.path for i in filter_menu(menu, manager, classifier)] == ["/settings"]

    def test_source_menu_unchanged(self, classifier, branch_manager):
        filter_menu(DEFAULT_MENU, branch_manager, classifier)
        assert all(item.path is None for item in DEFAULT_MENU)
