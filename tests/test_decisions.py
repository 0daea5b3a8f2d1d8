"""
Access Decision Engine Tests
"""

import pytest

from rbac.decisions import AccessDecisionEngine, AccessLayer, layer_of
from rbac.errors import ConfigurationError, UnknownPermissionError
from rbac.permissions import ALL_PERMISSIONS, Permission
from rbac.profile import UserProfile
from rbac.roles import Role, RoleCategory


# =============================================================================
# ACCESS LAYERS
# =============================================================================

class TestAccessLayer:

    @pytest.mark.parametrize("role,layer", [
        (Role.DEVELOPER, AccessLayer.EXECUTIVE),
        (Role.GENERAL_MANAGER, AccessLayer.EXECUTIVE),
        (Role.PROVINCE_ADMIN, AccessLayer.PROVINCE),
        (Role.PROVINCE_MANAGER, AccessLayer.PROVINCE),
        (Role.BRANCH_MANAGER, AccessLayer.BRANCH),
        (Role.USER, AccessLayer.BRANCH),
        (Role.PENDING, AccessLayer.GUEST),
        (Role.GUEST, AccessLayer.GUEST),
    ])
    def test_layer_of(self, role, layer):
        assert layer_of(role) == layer

    def test_every_role_has_a_layer(self):
        for role in Role:
            assert isinstance(layer_of(role), AccessLayer)

    def test_satisfies(self):
        assert AccessLayer.EXECUTIVE.satisfies(AccessLayer.BRANCH)
        assert AccessLayer.BRANCH.satisfies(AccessLayer.BRANCH)
        assert not AccessLayer.BRANCH.satisfies(AccessLayer.PROVINCE)
        assert not AccessLayer.GUEST.satisfies(AccessLayer.BRANCH)


# =============================================================================
# PERMISSIONS
# =============================================================================

class TestPermissionChecks:
    """Role permissions plus overrides."""

    def test_role_permission(self, engine):
        profile = UserProfile(role=Role.BRANCH_MANAGER)
        assert engine.has_permission(profile, Permission.DOCUMENT_APPROVE)
        assert engine.has_permission(profile, "document_review")  # inherited from lead

    def test_missing_permission(self, engine):
        profile = UserProfile(role=Role.USER)
        assert not engine.has_permission(profile, Permission.DOCUMENT_APPROVE)

    def test_override_adds_permission(self, engine):
        profile = UserProfile(role=Role.USER, permission_overrides={Permission.DOCUMENT_APPROVE})
        assert engine.has_permission(profile, Permission.DOCUMENT_APPROVE)

    def test_effective_permissions_union(self, engine):
        profile = UserProfile(role=Role.GUEST, permission_overrides={Permission.LEAVE_VIEW})
        assert engine.effective_permissions(profile) == {Permission.CONTENT_VIEW, Permission.LEAVE_VIEW}

    def test_executive_has_everything(self, engine, executive):
        assert engine.effective_permissions(executive) == ALL_PERMISSIONS

    def test_unknown_permission_rejected(self, engine):
        with pytest.raises(UnknownPermissionError):
            engine.has_permission(UserProfile(), "fly_to_moon")


class TestEmptyPermissionLists:
    """``all`` of nothing holds, ``any`` of nothing does not."""

    @pytest.mark.parametrize("role", list(Role))
    def test_has_all_empty_is_true(self, engine, role):
        assert engine.has_all_permissions(UserProfile(role=role), []) is True

    @pytest.mark.parametrize("role", list(Role))
    def test_has_any_empty_is_false(self, engine, role):
        assert engine.has_any_permission(UserProfile(role=role), []) is False

    def test_has_any(self, engine):
        profile = UserProfile(role=Role.USER)
        assert engine.has_any_permission(profile, [Permission.DOCUMENT_APPROVE, Permission.LEAVE_VIEW])
        assert not engine.has_any_permission(profile, [Permission.DOCUMENT_APPROVE])

    def test_has_all(self, engine):
        profile = UserProfile(role=Role.USER)
        assert engine.has_all_permissions(profile, [Permission.LEAVE_VIEW, Permission.LEAVE_CREATE])
        assert not engine.has_all_permissions(profile, [Permission.LEAVE_VIEW, Permission.LEAVE_APPROVE])


# =============================================================================
# ROLES
# =============================================================================

class TestRoleChecks:

    def test_has_role_privilege(self, engine, branch_manager):
        assert engine.has_role_privilege(branch_manager, Role.LEAD)
        assert engine.has_role_privilege(branch_manager, "branch_manager")
        assert not engine.has_role_privilege(branch_manager, Role.PROVINCE_MANAGER)

    def test_is_in_category(self, engine, branch_manager):
        assert engine.is_in_category(branch_manager, RoleCategory.BRANCH_STAFF)
        assert not engine.is_in_category(branch_manager, RoleCategory.PROVINCE_MANAGER)

    def test_unknown_category_raises_configuration_error(self, engine, branch_manager):
        with pytest.raises(ConfigurationError):
            engine.is_in_category(branch_manager, "nope")


class TestShouldHideFromView:
    """Developers are invisible to everyone else."""

    def test_developer_hidden_from_executive(self, engine, executive, developer):
        assert engine.should_hide_from_view(executive, developer)

    def test_developer_visible_to_developer(self, engine, developer):
        other = UserProfile(uid="dev-2", role=Role.DEVELOPER)
        assert not engine.should_hide_from_view(developer, other)

    @pytest.mark.parametrize("role", [r for r in Role if r != Role.DEVELOPER])
    def test_developer_hidden_from_every_other_role(self, engine, role):
        assert engine.should_hide_from_view(UserProfile(role=role), Role.DEVELOPER)

    @pytest.mark.parametrize("role", [r for r in Role if r != Role.DEVELOPER])
    def test_non_developers_never_hidden(self, engine, role):
        viewer = UserProfile(role=Role.GUEST)
        assert not engine.should_hide_from_view(viewer, UserProfile(role=role))

    def test_role_string_target(self, engine, executive):
        assert engine.should_hide_from_view(executive, "developer")
        assert not engine.should_hide_from_view(executive, "user")

    def test_anonymous_viewer(self, engine):
        assert engine.should_hide_from_view(None, Role.DEVELOPER)
        assert not engine.should_hide_from_view(None, Role.USER)

    def test_no_target(self, engine, executive):
        assert not engine.should_hide_from_view(executive, None)


# =============================================================================
# CONTEXT
# =============================================================================

class TestAccessContext:
    """Per-user snapshot."""

    def test_snapshot_contents(self, engine, branch_manager):
        ctx = engine.context_for(branch_manager)
        assert ctx.role == Role.BRANCH_MANAGER
        assert ctx.layer == AccessLayer.BRANCH
        assert ctx.provinces == {"P1"}
        assert ctx.branches == {"B1"}
        assert ctx.permissions == engine.effective_permissions(branch_manager)

    def test_checks_match_engine(self, engine, branch_manager):
        ctx = engine.context_for(branch_manager)
        for permission in Permission:
            assert ctx.has_permission(permission) == engine.has_permission(branch_manager, permission)
        assert ctx.has_any_permission([]) is False
        assert ctx.has_all_permissions([]) is True

    def test_geography(self, engine, branch_manager):
        ctx = engine.context_for(branch_manager)
        assert ctx.has_province_access("P1")
        assert not ctx.has_province_access("P2")
        assert ctx.has_branch_access("B1")
        assert not ctx.has_branch_access("B2")

    def test_has_role(self, engine, branch_manager):
        ctx = engine.context_for(branch_manager)
        assert ctx.has_role(Role.LEAD, "branch_manager")
        assert not ctx.has_role(Role.LEAD)

    def test_role_checks(self, engine, branch_manager):
        ctx = engine.context_for(branch_manager)
        assert ctx.has_role_privilege(Role.USER)
        assert ctx.is_in_category("lead")

    def test_should_hide(self, engine, branch_manager, developer):
        assert engine.context_for(branch_manager).should_hide(developer)

    def test_to_dict(self, engine, branch_manager):
        data = engine.context_for(branch_manager).to_dict()
        assert data["layer"] == "branch"
        assert data["provinces"] == ["P1"]
        assert "document_approve" in data["permissions"]

    def test_default_engine(self):
        engine = AccessDecisionEngine()
        assert engine.has_permission(UserProfile(role=Role.USER), Permission.LEAVE_VIEW)
