"""
Role Definitions and Role Registry

12 roles organized in one privilege hierarchy (lower rank = more privilege):

    EXECUTIVE LAYER
    ├── developer         (rank 0)  - Platform developers
    ├── super_admin       (rank 1)  - System administrators
    ├── executive         (rank 2)  - Company executives
    ├── privilege         (rank 2)  - Same tier as executive (renamed role)
    └── general_manager   (rank 3)  - Head-office management

    PROVINCE LAYER
    ├── province_admin    (rank 4)  - Province administration, user approval
    └── province_manager  (rank 5)  - Province operations

    BRANCH LAYER
    ├── branch_manager    (rank 6)  - Branch operations
    ├── lead              (rank 7)  - Document reviewers
    └── user              (rank 8)  - Branch staff

    GUEST LAYER
    ├── pending           (rank 9)  - Awaiting approval
    └── guest             (rank 10) - Visitors, new sign-ups

Ranks are derived from the position of a role's tier in ``ROLE_TIERS``;
there is no second numeric table to keep in sync.
"""

import logging
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import (
    ConfigurationError,
    RoleHierarchyCycleError,
    UnknownRoleCategoryError,
    UnknownRoleError,
)
from .permissions import ALL_PERMISSIONS, Permission, parse_permission

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """
    All roles in the system.

    Naming convention: UPPER_SNAKE_CASE for enum, lower_snake_case for value.
    """

    # =========================================================================
    # EXECUTIVE LAYER
    # =========================================================================

    DEVELOPER = "developer"
    """Platform developers. Hidden from everyone else's user lists."""

    SUPER_ADMIN = "super_admin"
    """System administrator. Full access."""

    EXECUTIVE = "executive"
    """Company executive. Full access, lands on the overview."""

    PRIVILEGE = "privilege"
    """Newer name of the executive role; shares its tier."""

    GENERAL_MANAGER = "general_manager"
    """Head-office manager. All provinces."""

    # =========================================================================
    # PROVINCE LAYER
    # =========================================================================

    PROVINCE_ADMIN = "province_admin"
    """Province administrator. Approves users and assigns roles."""

    PROVINCE_MANAGER = "province_manager"
    """Province manager."""

    # =========================================================================
    # BRANCH LAYER
    # =========================================================================

    BRANCH_MANAGER = "branch_manager"
    """Branch manager."""

    LEAD = "lead"
    """Document reviewer within a branch."""

    USER = "user"
    """Branch staff."""

    # =========================================================================
    # GUEST LAYER
    # =========================================================================

    PENDING = "pending"
    """Signed up and waiting for approval."""

    GUEST = "guest"
    """Lowest privilege. Default for newly provisioned profiles."""


class RoleCategory(str, Enum):
    """
    Named groups of roles used by feature and route checks.

    A category says "at least this kind of role" without listing every
    qualifying role at each call site.
    """
    DEVELOPER = "developer"
    SUPER_ADMIN = "super_admin"
    EXECUTIVE = "executive"
    PRIVILEGE = "privilege"
    GENERAL_MANAGER = "general_manager"
    PROVINCE_ADMIN = "province_admin"
    PROVINCE_MANAGER = "province_manager"
    BRANCH_MANAGER = "branch_manager"
    BRANCH_STAFF = "branch_staff"
    LEAD = "lead"
    USER = "user"
    GUEST = "guest"


RoleLike = Union[Role, str]


def coerce_role(value: RoleLike) -> Role:
    """
    Resolve a role identifier.

    Raises:
        UnknownRoleError: If the identifier is not in the closed role set
    """
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        raise UnknownRoleError(value) from None


def coerce_category(value: Union[RoleCategory, str]) -> RoleCategory:
    """Resolve a role category identifier, raising ``UnknownRoleCategoryError``."""
    if isinstance(value, RoleCategory):
        return value
    try:
        return RoleCategory(value)
    except ValueError:
        raise UnknownRoleCategoryError(value) from None


# =============================================================================
# HIERARCHY
# =============================================================================

# Index in this tuple is the rank. EXECUTIVE and PRIVILEGE share a tier:
# the two names exist side by side in persisted data and which one is
# authoritative is still undecided.
ROLE_TIERS: Tuple[Tuple[Role, ...], ...] = (
    (Role.DEVELOPER,),
    (Role.SUPER_ADMIN,),
    (Role.EXECUTIVE, Role.PRIVILEGE),
    (Role.GENERAL_MANAGER,),
    (Role.PROVINCE_ADMIN,),
    (Role.PROVINCE_MANAGER,),
    (Role.BRANCH_MANAGER,),
    (Role.LEAD,),
    (Role.USER,),
    (Role.PENDING,),
    (Role.GUEST,),
)

# Role -> roles whose permissions it inherits (one level down).
ROLE_INHERITANCE: Mapping[Role, Tuple[Role, ...]] = MappingProxyType({
    Role.DEVELOPER: (Role.SUPER_ADMIN,),
    Role.SUPER_ADMIN: (Role.EXECUTIVE, Role.PRIVILEGE),
    Role.EXECUTIVE: (Role.GENERAL_MANAGER, Role.PROVINCE_ADMIN),
    Role.PRIVILEGE: (Role.GENERAL_MANAGER, Role.PROVINCE_ADMIN),
    # General manager sits above province admin in rank but inherits from
    # province manager only; user administration stays with province admins.
    Role.GENERAL_MANAGER: (Role.PROVINCE_MANAGER,),
    Role.PROVINCE_ADMIN: (Role.PROVINCE_MANAGER,),
    Role.PROVINCE_MANAGER: (Role.BRANCH_MANAGER,),
    Role.BRANCH_MANAGER: (Role.LEAD,),
    Role.LEAD: (Role.USER,),
    Role.USER: (Role.GUEST,),
    Role.PENDING: (Role.GUEST,),
    Role.GUEST: (),
})


# =============================================================================
# ROLE -> OWN PERMISSIONS (inherited ones are added by the registry)
# =============================================================================

_P = Permission

OWN_PERMISSIONS: Mapping[Role, FrozenSet[Permission]] = MappingProxyType({
    # -------------------------------------------------------------------------
    # Executive layer: everything
    # -------------------------------------------------------------------------
    Role.DEVELOPER: ALL_PERMISSIONS,
    Role.SUPER_ADMIN: ALL_PERMISSIONS,
    Role.EXECUTIVE: ALL_PERMISSIONS,
    Role.PRIVILEGE: ALL_PERMISSIONS,

    # -------------------------------------------------------------------------
    # GENERAL_MANAGER: strategy and content
    # -------------------------------------------------------------------------
    Role.GENERAL_MANAGER: frozenset({
        _P.CONTENT_EDIT,
        _P.CONTENT_CREATE,
        _P.TASK_ASSIGN,
        _P.REPORT_CREATE,
        _P.SYSTEM_SETTINGS_VIEW,
    }),

    # -------------------------------------------------------------------------
    # PROVINCE_ADMIN: user approval and destructive operations
    # -------------------------------------------------------------------------
    Role.PROVINCE_ADMIN: frozenset({
        _P.USER_EDIT,
        _P.USER_CREATE,
        _P.USER_ROLE_EDIT,
        _P.USER_INVITE,
        _P.DATA_DELETE,
        _P.CONTENT_DELETE,
        _P.CONTENT_PUBLISH,
        _P.SYSTEM_LOGS_VIEW,
        _P.DOCUMENT_DELETE,
        _P.LEAVE_EDIT,
        _P.VIEW_USERS,
        _P.VIEW_ROLES,
    }),

    # -------------------------------------------------------------------------
    # PROVINCE_MANAGER: province operations and accounting
    # -------------------------------------------------------------------------
    Role.PROVINCE_MANAGER: frozenset({
        _P.DATA_EXPORT,
        _P.DATA_IMPORT,
        _P.PROVINCE_MANAGE,
        _P.PROVINCE_REPORTS_VIEW,
        _P.PROVINCE_ANALYTICS_VIEW,
        _P.EMPLOYEE_DELETE,
        _P.HR_REPORTS_CREATE,
        _P.HR_SETTINGS_EDIT,
        _P.MANAGE_ACCOUNTS,
        _P.VIEW_SETTINGS,
        _P.MANAGE_INCOME,
        _P.MANAGE_EXPENSE,
        _P.MANAGE_SETTINGS,
    }),

    # -------------------------------------------------------------------------
    # BRANCH_MANAGER: branch operations, approvals, HR management
    # -------------------------------------------------------------------------
    Role.BRANCH_MANAGER: frozenset({
        _P.DATA_EDIT,
        _P.DATA_CREATE,
        _P.DOCUMENT_APPROVE,
        _P.DOCUMENT_REJECT,
        _P.USER_VIEW,
        _P.BRANCH_MANAGE,
        _P.BRANCH_REPORTS_VIEW,
        _P.BRANCH_ANALYTICS_VIEW,
        _P.EMPLOYEE_EDIT,
        _P.EMPLOYEE_CREATE,
        _P.LEAVE_APPROVE,
        _P.LEAVE_REJECT,
        _P.ATTENDANCE_EDIT,
        _P.ATTENDANCE_IMPORT,
        _P.HR_REPORTS_VIEW,
        _P.HR_SETTINGS_VIEW,
        _P.VIEW_REPORTS,
        _P.MANAGE_REPORTS,
        _P.VIEW_ACCOUNTS,
    }),

    # -------------------------------------------------------------------------
    # LEAD: document review
    # -------------------------------------------------------------------------
    Role.LEAD: frozenset({
        _P.DOCUMENT_REVIEW,
        _P.DOCUMENT_EDIT,
    }),

    # -------------------------------------------------------------------------
    # USER: day-to-day branch work
    # -------------------------------------------------------------------------
    Role.USER: frozenset({
        _P.DATA_VIEW,
        _P.REPORT_VIEW,
        _P.TASK_COMPLETE,
        _P.DOCUMENT_VIEW,
        _P.DOCUMENT_CREATE,
        _P.EMPLOYEE_VIEW,
        _P.LEAVE_VIEW,
        _P.LEAVE_CREATE,
        _P.ATTENDANCE_VIEW,
        _P.ATTENDANCE_CREATE,
    }),

    # -------------------------------------------------------------------------
    # Guest layer: public content only
    # -------------------------------------------------------------------------
    Role.PENDING: frozenset(),
    Role.GUEST: frozenset({
        _P.CONTENT_VIEW,
    }),
})


# =============================================================================
# ROLE CATEGORIES
# =============================================================================

_EXECUTIVES = frozenset({Role.DEVELOPER, Role.SUPER_ADMIN, Role.EXECUTIVE, Role.PRIVILEGE})

ROLE_CATEGORIES: Mapping[RoleCategory, FrozenSet[Role]] = MappingProxyType({
    RoleCategory.DEVELOPER: frozenset({Role.DEVELOPER}),
    RoleCategory.SUPER_ADMIN: frozenset({Role.SUPER_ADMIN, Role.DEVELOPER}),
    RoleCategory.EXECUTIVE: _EXECUTIVES,
    RoleCategory.PRIVILEGE: _EXECUTIVES,
    RoleCategory.GENERAL_MANAGER: _EXECUTIVES | {Role.GENERAL_MANAGER},
    RoleCategory.PROVINCE_ADMIN: _EXECUTIVES | {
        Role.GENERAL_MANAGER,
        Role.PROVINCE_ADMIN,
    },
    RoleCategory.PROVINCE_MANAGER: _EXECUTIVES | {
        Role.GENERAL_MANAGER,
        Role.PROVINCE_ADMIN,
        Role.PROVINCE_MANAGER,
    },
    RoleCategory.BRANCH_MANAGER: _EXECUTIVES | {
        Role.GENERAL_MANAGER,
        Role.PROVINCE_ADMIN,
        Role.PROVINCE_MANAGER,
        Role.BRANCH_MANAGER,
    },
    RoleCategory.BRANCH_STAFF: _EXECUTIVES | {
        Role.GENERAL_MANAGER,
        Role.PROVINCE_ADMIN,
        Role.PROVINCE_MANAGER,
        Role.BRANCH_MANAGER,
        Role.LEAD,
        Role.USER,
    },
    RoleCategory.LEAD: _EXECUTIVES | {
        Role.GENERAL_MANAGER,
        Role.PROVINCE_ADMIN,
        Role.PROVINCE_MANAGER,
        Role.BRANCH_MANAGER,
        Role.LEAD,
    },
    RoleCategory.USER: _EXECUTIVES | {
        Role.GENERAL_MANAGER,
        Role.PROVINCE_ADMIN,
        Role.PROVINCE_MANAGER,
        Role.BRANCH_MANAGER,
        Role.LEAD,
        Role.USER,
    },
    RoleCategory.GUEST: frozenset(Role),
})


ROLE_DISPLAY_NAMES: Mapping[Role, str] = MappingProxyType({
    Role.DEVELOPER: "Developer",
    Role.SUPER_ADMIN: "System Administrator",
    Role.EXECUTIVE: "Executive",
    Role.PRIVILEGE: "Privileged User",
    Role.GENERAL_MANAGER: "General Manager",
    Role.PROVINCE_ADMIN: "Province Administrator",
    Role.PROVINCE_MANAGER: "Province Manager",
    Role.BRANCH_MANAGER: "Branch Manager",
    Role.LEAD: "Team Lead",
    Role.USER: "Standard User",
    Role.PENDING: "Pending Approval",
    Role.GUEST: "Guest",
})


# =============================================================================
# ROLE REGISTRY
# =============================================================================

class RoleRegistry:
    """
    Rank lookups, categories and cumulative permission table.

    All tables are built and validated in ``__init__``; after that the
    registry is read-only and safe to share between concurrent callers.

    Raises (at construction):
        UnknownRoleError: A table references a role outside ``Role``
        UnknownPermissionError: A table references an unknown permission
        RoleHierarchyCycleError: The inheritance graph has a cycle
        ConfigurationError: A role is missing from, or repeated in, the tiers
    """

    def __init__(
        self,
        tiers: Sequence[Iterable[RoleLike]] = ROLE_TIERS,
        inheritance: Mapping[RoleLike, Iterable[RoleLike]] = ROLE_INHERITANCE,
        own_permissions: Mapping[RoleLike, Iterable[Union[Permission, str]]] = OWN_PERMISSIONS,
        categories: Mapping[RoleCategory, Iterable[RoleLike]] = ROLE_CATEGORIES,
    ):
        self._ranks = self._build_ranks(tiers)
        self._parents = self._build_inheritance(inheritance)
        self._own = self._build_own_permissions(own_permissions)
        self._categories: Dict[RoleCategory, FrozenSet[Role]] = {
            coerce_category(category): frozenset(coerce_role(r) for r in roles)
            for category, roles in categories.items()
        }

        self._check_acyclic()
        self._effective = self._build_effective_permissions()

        logger.debug(
            "Role registry built: %d roles, %d tiers",
            len(self._ranks), len(tiers),
        )

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @staticmethod
    def _build_ranks(tiers: Sequence[Iterable[RoleLike]]) -> Dict[Role, int]:
        ranks: Dict[Role, int] = {}
        for rank, tier in enumerate(tiers):
            for value in tier:
                role = coerce_role(value)
                if role in ranks:
                    raise ConfigurationError(
                        f"Role {role.value!r} appears in more than one tier"
                    )
                ranks[role] = rank

        missing = [role.value for role in Role if role not in ranks]
        if missing:
            raise ConfigurationError(f"Roles missing from hierarchy: {missing}")
        return ranks

    @staticmethod
    def _build_inheritance(
        inheritance: Mapping[RoleLike, Iterable[RoleLike]],
    ) -> Dict[Role, Tuple[Role, ...]]:
        parents: Dict[Role, Tuple[Role, ...]] = {role: () for role in Role}
        for child, inherited in inheritance.items():
            parents[coerce_role(child)] = tuple(coerce_role(p) for p in inherited)
        return parents

    @staticmethod
    def _build_own_permissions(
        own_permissions: Mapping[RoleLike, Iterable[Union[Permission, str]]],
    ) -> Dict[Role, FrozenSet[Permission]]:
        own: Dict[Role, FrozenSet[Permission]] = {role: frozenset() for role in Role}
        for role, permissions in own_permissions.items():
            own[coerce_role(role)] = frozenset(parse_permission(p) for p in permissions)
        return own

    def _check_acyclic(self) -> None:
        """Depth-first search over the inheritance graph."""
        visiting, done = set(), set()

        def visit(role: Role, path: List[Role]) -> None:
            visiting.add(role)
            path.append(role)
            for parent in self._parents[role]:
                if parent in visiting:
                    start = path.index(parent)
                    cycle = path[start:] + [parent]
                    logger.critical("Role inheritance cycle: %s", [r.value for r in cycle])
                    raise RoleHierarchyCycleError(cycle)
                if parent not in done:
                    visit(parent, path)
            path.pop()
            visiting.discard(role)
            done.add(role)

        for role in self.ordered_roles():
            if role not in done:
                visit(role, [])

    def _build_effective_permissions(self) -> Dict[Role, FrozenSet[Permission]]:
        effective: Dict[Role, FrozenSet[Permission]] = {}

        def resolve(role: Role) -> FrozenSet[Permission]:
            if role not in effective:
                permissions = set(self._own[role])
                for parent in self._parents[role]:
                    permissions |= resolve(parent)
                effective[role] = frozenset(permissions)
            return effective[role]

        for role in Role:
            resolve(role)
        return effective

    # -------------------------------------------------------------------------
    # Ranks
    # -------------------------------------------------------------------------

    def rank_of(self, role: RoleLike) -> int:
        """Privilege rank of a role (lower = more privileged)."""
        return self._ranks[coerce_role(role)]

    def is_at_least_as_privileged(self, role: RoleLike, required_role: RoleLike) -> bool:
        """True iff ``role`` ranks at or above ``required_role``."""
        return self.rank_of(role) <= self.rank_of(required_role)

    def ordered_roles(self) -> Tuple[Role, ...]:
        """All roles, most privileged first."""
        return tuple(sorted(Role, key=lambda r: (self._ranks[r], list(Role).index(r))))

    # -------------------------------------------------------------------------
    # Permissions
    # -------------------------------------------------------------------------

    def effective_permissions(self, role: RoleLike) -> FrozenSet[Permission]:
        """Own permissions plus everything inherited, transitively."""
        return self._effective[coerce_role(role)]

    def inherited_roles(self, role: RoleLike) -> FrozenSet[Role]:
        """Every role whose permissions ``role`` inherits, transitively."""
        seen: set = set()
        stack = list(self._parents[coerce_role(role)])
        while stack:
            parent = stack.pop()
            if parent not in seen:
                seen.add(parent)
                stack.extend(self._parents[parent])
        return frozenset(seen)

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def is_in_category(self, role: RoleLike, category: Union[RoleCategory, str]) -> bool:
        """True iff the role is listed in the category."""
        return coerce_role(role) in self.roles_in_category(category)

    def roles_in_category(self, category: Union[RoleCategory, str]) -> FrozenSet[Role]:
        return self._categories.get(coerce_category(category), frozenset())

    def floor_of(self, category: Union[RoleCategory, str]) -> Optional[Role]:
        """Least privileged role of a category (the category's privilege floor)."""
        members = self.roles_in_category(category)
        if not members:
            return None
        return max(members, key=lambda r: (self._ranks[r], list(Role).index(r)))

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    @staticmethod
    def display_name(role: RoleLike) -> str:
        return ROLE_DISPLAY_NAMES[coerce_role(role)]


@lru_cache
def get_role_registry() -> RoleRegistry:
    """Get the shared registry built from the default tables."""
    return RoleRegistry()
