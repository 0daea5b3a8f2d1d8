"""
Geographic Scope Resolution

Decides which provinces and branches a user may act within.

    - Roles at or above general_manager: every known province and branch
    - Province-layer roles: their provinces and every branch inside them
    - Everyone else: home province/branch plus explicit grants

The home province and home branch are always part of a user's scope, even
when an administrator leaves them out of the explicit lists.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

from .profile import UserProfile
from .roles import Role, RoleRegistry, get_role_registry

logger = logging.getLogger(__name__)

# Roles whose branch reach covers every branch of their allowed provinces.
PROVINCE_SCOPED_ROLES = frozenset({Role.PROVINCE_ADMIN, Role.PROVINCE_MANAGER})

# Least privileged role with unrestricted geography.
UNRESTRICTED_FLOOR = Role.GENERAL_MANAGER


@dataclass(frozen=True)
class GeographyDirectory:
    """
    Known provinces and their branches.

    Branch codes are unique across provinces.
    """

    branches_by_province: Mapping[str, FrozenSet[str]] = field(default_factory=dict)

    def __post_init__(self):
        frozen = {
            str(province): frozenset(str(b) for b in branches)
            for province, branches in self.branches_by_province.items()
        }
        province_of: Dict[str, str] = {}
        for province, branches in frozen.items():
            for branch in branches:
                if branch in province_of:
                    raise ValueError(
                        f"Branch {branch!r} listed under both "
                        f"{province_of[branch]!r} and {province!r}"
                    )
                province_of[branch] = province
        object.__setattr__(self, "branches_by_province", MappingProxyType(frozen))
        object.__setattr__(self, "_province_of", MappingProxyType(province_of))

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Iterable[str]]]) -> "GeographyDirectory":
        return cls(dict(data or {}))

    @property
    def provinces(self) -> FrozenSet[str]:
        return frozenset(self.branches_by_province)

    @property
    def branches(self) -> FrozenSet[str]:
        return frozenset(self._province_of)

    def branches_in(self, province_id: str) -> FrozenSet[str]:
        return self.branches_by_province.get(province_id, frozenset())

    def province_of(self, branch_id: str) -> Optional[str]:
        """Province a branch belongs to, or None if the branch is unknown."""
        return self._province_of.get(branch_id)


class GeographicScopeResolver:
    """Resolves a profile's allowed provinces and branches."""

    def __init__(
        self,
        directory: Optional[GeographyDirectory] = None,
        registry: Optional[RoleRegistry] = None,
    ):
        self.directory = directory or GeographyDirectory()
        self.registry = registry or get_role_registry()

    def is_unrestricted(self, profile: UserProfile) -> bool:
        """True if the role reaches every province regardless of explicit lists."""
        return self.registry.is_at_least_as_privileged(profile.role, UNRESTRICTED_FLOOR)

    # =========================================================================
    # Provinces
    # =========================================================================

    def allowed_provinces(self, profile: UserProfile) -> FrozenSet[str]:
        if self.is_unrestricted(profile):
            return self.directory.provinces

        provinces = set(profile.allowed_provinces)
        if profile.home_province:
            provinces.add(profile.home_province)
        return frozenset(provinces)

    def has_province_access(self, profile: UserProfile, province_id: Optional[str]) -> bool:
        if not province_id:
            return False
        return province_id in self.allowed_provinces(profile)

    # =========================================================================
    # Branches
    # =========================================================================

    def allowed_branches(self, profile: UserProfile) -> FrozenSet[str]:
        if self.is_unrestricted(profile):
            return self.directory.branches

        provinces = self.allowed_provinces(profile)
        branches = set()

        for branch in profile.allowed_branches:
            owner = self.directory.province_of(branch)
            if owner is None or owner in provinces:
                branches.add(branch)
            else:
                logger.debug(
                    "Profile %s: branch %s ignored, province %s not allowed",
                    profile.uid, branch, owner,
                )

        if profile.role in PROVINCE_SCOPED_ROLES:
            for province in provinces:
                branches |= self.directory.branches_in(province)

        if profile.home_branch:
            branches.add(profile.home_branch)
        return frozenset(branches)

    def has_branch_access(self, profile: UserProfile, branch_id: Optional[str]) -> bool:
        if not branch_id:
            return False
        return branch_id in self.allowed_branches(profile)

    # =========================================================================
    # Defaults
    # =========================================================================

    def default_province(self, profile: UserProfile) -> Optional[str]:
        """Home province, else the only allowed province, else None."""
        if profile.home_province:
            return profile.home_province
        provinces = self.allowed_provinces(profile)
        if len(provinces) == 1:
            return next(iter(provinces))
        return None

    def default_branch(self, profile: UserProfile) -> Optional[str]:
        """Home branch, else the only allowed branch, else None."""
        if profile.home_branch:
            return profile.home_branch
        branches = self.allowed_branches(profile)
        if len(branches) == 1:
            return next(iter(branches))
        return None
