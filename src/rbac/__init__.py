"""
Role-Based Access Control (RBAC) for a multi-branch organization.

12 roles in one privilege hierarchy, four access layers:

    Executive   developer, super_admin, executive, privilege, general_manager
    Province    province_admin, province_manager
    Branch      branch_manager, lead, user
    Guest       pending, guest

Every decision is a pure function of an immutable ``UserProfile``; the
``SessionProvider`` is the only stateful piece.

Usage:
    from rbac import AccessDecisionEngine, Permission, RouteClassifier, normalize_profile

    profile = normalize_profile(record)
    engine = AccessDecisionEngine()
    if engine.has_permission(profile, Permission.DOCUMENT_APPROVE):
        ...

    decision = RouteClassifier(engine=engine).decide("/P1/B1/dashboard", profile)
"""

from .errors import (
    AccessControlError,
    ConfigurationError,
    RoleHierarchyCycleError,
    SessionError,
    UnknownPermissionError,
    UnknownRoleCategoryError,
    UnknownRoleError,
)
from .permissions import (
    ALL_PERMISSIONS,
    PERMISSIONS,
    Category,
    Permission,
    PermissionInfo,
    exists,
    get_permission_info,
    parse_permission,
    permissions_in_category,
)
from .roles import (
    Role,
    RoleCategory,
    RoleRegistry,
    coerce_category,
    coerce_role,
    get_role_registry,
)
from .profile import UserProfile, default_profile_record, normalize_profile
from .geography import GeographicScopeResolver, GeographyDirectory
from .decisions import AccessContext, AccessDecisionEngine, AccessLayer, layer_of
from .routing import (
    Allow,
    Redirect,
    RouteClassifier,
    RouteDecision,
    RouteRequirement,
    RouteRule,
    ScopeKind,
)
from .menu import DEFAULT_MENU, MenuItem, filter_menu
from .handlers import HandlerSlot
from .session import (
    Identity,
    IdentityProvider,
    ProfileStore,
    SessionProvider,
    SessionState,
    Subscription,
)

__all__ = [
    # Errors
    "AccessControlError",
    "ConfigurationError",
    "RoleHierarchyCycleError",
    "SessionError",
    "UnknownPermissionError",
    "UnknownRoleCategoryError",
    "UnknownRoleError",

    # Permissions
    "ALL_PERMISSIONS",
    "PERMISSIONS",
    "Category",
    "Permission",
    "PermissionInfo",
    "exists",
    "get_permission_info",
    "parse_permission",
    "permissions_in_category",

    # Roles
    "Role",
    "RoleCategory",
    "RoleRegistry",
    "coerce_category",
    "coerce_role",
    "get_role_registry",

    # Profiles
    "UserProfile",
    "default_profile_record",
    "normalize_profile",

    # Geography
    "GeographicScopeResolver",
    "GeographyDirectory",

    # Decisions
    "AccessContext",
    "AccessDecisionEngine",
    "AccessLayer",
    "layer_of",

    # Routing
    "Allow",
    "Redirect",
    "RouteClassifier",
    "RouteDecision",
    "RouteRequirement",
    "RouteRule",
    "ScopeKind",

    # Menu
    "DEFAULT_MENU",
    "MenuItem",
    "filter_menu",

    # Session
    "HandlerSlot",
    "Identity",
    "IdentityProvider",
    "ProfileStore",
    "SessionProvider",
    "SessionState",
    "Subscription",
]
