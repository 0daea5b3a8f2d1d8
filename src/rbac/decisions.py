"""
Access Decision Engine

Answers "does this user hold this permission", "is this role privileged
enough" and "should this user be hidden from that viewer". Pure functions
over an immutable ``UserProfile``; safe to call concurrently.

``AccessContext`` is the per-user snapshot handed to UI code:

    ctx = engine.context_for(profile)
    if ctx.has_permission(Permission.DOCUMENT_APPROVE):
        ...
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Union

from .geography import GeographicScopeResolver
from .permissions import Permission, parse_permission
from .profile import UserProfile
from .roles import Role, RoleCategory, RoleLike, RoleRegistry, coerce_role, get_role_registry


class AccessLayer(int, Enum):
    """
    Coarse routing layer of a role.

    Lower value = more privileged, matching role ranks.
    """
    EXECUTIVE = 0
    PROVINCE = 1
    BRANCH = 2
    GUEST = 3

    def satisfies(self, required: "AccessLayer") -> bool:
        """True if this layer is at or above ``required``."""
        return self.value <= required.value


ROLE_LAYERS = {
    Role.DEVELOPER: AccessLayer.EXECUTIVE,
    Role.SUPER_ADMIN: AccessLayer.EXECUTIVE,
    Role.EXECUTIVE: AccessLayer.EXECUTIVE,
    Role.PRIVILEGE: AccessLayer.EXECUTIVE,
    Role.GENERAL_MANAGER: AccessLayer.EXECUTIVE,
    Role.PROVINCE_ADMIN: AccessLayer.PROVINCE,
    Role.PROVINCE_MANAGER: AccessLayer.PROVINCE,
    Role.BRANCH_MANAGER: AccessLayer.BRANCH,
    Role.LEAD: AccessLayer.BRANCH,
    Role.USER: AccessLayer.BRANCH,
    Role.PENDING: AccessLayer.GUEST,
    Role.GUEST: AccessLayer.GUEST,
}


def layer_of(role: RoleLike) -> AccessLayer:
    """Access layer of a role."""
    return ROLE_LAYERS[coerce_role(role)]


PermissionLike = Union[Permission, str]
HideTarget = Union[UserProfile, Role, str, None]


@dataclass(frozen=True)
class AccessContext:
    """
    Everything UI code needs to know about the signed-in user.

    Built by ``AccessDecisionEngine.context_for``; never mutated. A profile
    change produces a new context.
    """

    profile: UserProfile
    permissions: FrozenSet[Permission]
    layer: AccessLayer
    provinces: FrozenSet[str]
    branches: FrozenSet[str]
    engine: "AccessDecisionEngine"

    @property
    def role(self) -> Role:
        return self.profile.role

    # =========================================================================
    # Permission Checks
    # =========================================================================

    def has_permission(self, permission: PermissionLike) -> bool:
        return parse_permission(permission) in self.permissions

    def has_any_permission(self, permissions: Iterable[PermissionLike]) -> bool:
        return any(self.has_permission(p) for p in permissions)

    def has_all_permissions(self, permissions: Iterable[PermissionLike]) -> bool:
        return all(self.has_permission(p) for p in permissions)

    # =========================================================================
    # Role Checks
    # =========================================================================

    def has_role(self, *roles: RoleLike) -> bool:
        """Exact match against any of the given roles."""
        return self.role in {coerce_role(r) for r in roles}

    def has_role_privilege(self, required_role: RoleLike) -> bool:
        return self.engine.has_role_privilege(self.profile, required_role)

    def is_in_category(self, category: Union[RoleCategory, str]) -> bool:
        return self.engine.is_in_category(self.profile, category)

    # =========================================================================
    # Geography
    # =========================================================================

    def has_province_access(self, province_id: Optional[str]) -> bool:
        return province_id in self.provinces

    def has_branch_access(self, branch_id: Optional[str]) -> bool:
        return branch_id in self.branches

    def should_hide(self, target: HideTarget) -> bool:
        """Whether ``target`` is hidden from this user in user lists."""
        return self.engine.should_hide_from_view(self.profile, target)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            **self.profile.to_dict(),
            "layer": self.layer.name.lower(),
            "permissions": sorted(p.value for p in self.permissions),
            "provinces": sorted(self.provinces),
            "branches": sorted(self.branches),
        }


class AccessDecisionEngine:
    """Permission, privilege and visibility decisions."""

    def __init__(
        self,
        registry: Optional[RoleRegistry] = None,
        resolver: Optional[GeographicScopeResolver] = None,
    ):
        self.registry = registry or get_role_registry()
        self.resolver = resolver or GeographicScopeResolver(registry=self.registry)

    # =========================================================================
    # Permissions
    # =========================================================================

    def effective_permissions(self, profile: UserProfile) -> FrozenSet[Permission]:
        """Role permissions plus the profile's explicit overrides."""
        return self.registry.effective_permissions(profile.role) | profile.permission_overrides

    def has_permission(self, profile: UserProfile, permission: PermissionLike) -> bool:
        return parse_permission(permission) in self.effective_permissions(profile)

    def has_any_permission(self, profile: UserProfile, permissions: Iterable[PermissionLike]) -> bool:
        """True if at least one is held. An empty list is never satisfied."""
        held = self.effective_permissions(profile)
        return any(parse_permission(p) in held for p in permissions)

    def has_all_permissions(self, profile: UserProfile, permissions: Iterable[PermissionLike]) -> bool:
        """True if every one is held. An empty list is always satisfied."""
        held = self.effective_permissions(profile)
        return all(parse_permission(p) in held for p in permissions)

    # =========================================================================
    # Roles
    # =========================================================================

    def has_role_privilege(self, profile: UserProfile, required_role: RoleLike) -> bool:
        return self.registry.is_at_least_as_privileged(profile.role, required_role)

    def is_in_category(self, profile: UserProfile, category: Union[RoleCategory, str]) -> bool:
        return self.registry.is_in_category(profile.role, category)

    def should_hide_from_view(self, viewer: Optional[UserProfile], target: HideTarget) -> bool:
        """
        Developers are invisible to non-developers.

        Evaluated before any other rendering decision about a user row.
        """
        if target is None:
            return False
        target_role = target.role if isinstance(target, UserProfile) else coerce_role(target)
        if not self.registry.is_in_category(target_role, RoleCategory.DEVELOPER):
            return False
        if viewer is None:
            return True
        return not self.registry.is_in_category(viewer.role, RoleCategory.DEVELOPER)

    # =========================================================================
    # Snapshot
    # =========================================================================

    def context_for(self, profile: UserProfile) -> AccessContext:
        return AccessContext(
            profile=profile,
            permissions=self.effective_permissions(profile),
            layer=layer_of(profile.role),
            provinces=self.resolver.allowed_provinces(profile),
            branches=self.resolver.allowed_branches(profile),
            engine=self,
        )
