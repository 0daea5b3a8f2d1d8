"""
User Profile

``UserProfile`` is the authorization-relevant part of a persisted user
record. Persisted records have accumulated several schema generations:

    rbac.*      current location (highest precedence)
    auth.*      previous location
    top level   original location

``normalize_profile`` resolves that precedence exactly once, when a record
is loaded. Everything downstream reads the canonical ``UserProfile`` only.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence

from .permissions import Permission, exists, parse_permission
from .roles import Role, RoleLike, coerce_role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserProfile:
    """
    Immutable, point-in-time copy of a user's authorization data.

    Authorization defaults are the most restrictive ones: lowest-privilege
    role, no permission overrides, no geographic reach. ``is_profile_complete``
    defaults to True so a hand-built value is judged by its role alone;
    ``normalize_profile`` derives it from the stored record instead.
    """

    uid: str = ""
    """Identity provider user id."""

    role: Role = Role.GUEST
    """User's role."""

    email: Optional[str] = None
    display_name: Optional[str] = None

    permission_overrides: FrozenSet[Permission] = field(default_factory=frozenset)
    """Permissions granted on top of the role's defaults."""

    home_province: Optional[str] = None
    home_branch: Optional[str] = None

    allowed_provinces: FrozenSet[str] = field(default_factory=frozenset)
    """Provinces granted explicitly, in addition to the home province."""

    allowed_branches: FrozenSet[str] = field(default_factory=frozenset)
    """Branches granted explicitly, in addition to the home branch."""

    is_profile_complete: bool = True

    def __post_init__(self):
        object.__setattr__(self, "role", coerce_role(self.role))
        object.__setattr__(
            self,
            "permission_overrides",
            frozenset(parse_permission(p) for p in self.permission_overrides),
        )
        object.__setattr__(self, "allowed_provinces", frozenset(self.allowed_provinces))
        object.__setattr__(self, "allowed_branches", frozenset(self.allowed_branches))
        object.__setattr__(self, "home_province", self.home_province or None)
        object.__setattr__(self, "home_branch", self.home_branch or None)

    def with_changes(self, **changes: Any) -> "UserProfile":
        """Copy of this profile with some fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to dictionary for logging and API responses."""
        return {
            "uid": self.uid,
            "role": self.role.value,
            "email": self.email,
            "display_name": self.display_name,
            "permission_overrides": sorted(p.value for p in self.permission_overrides),
            "home_province": self.home_province,
            "home_branch": self.home_branch,
            "allowed_provinces": sorted(self.allowed_provinces),
            "allowed_branches": sorted(self.allowed_branches),
            "is_profile_complete": self.is_profile_complete,
        }


# =============================================================================
# NORMALIZATION
# =============================================================================

# Keys per field, in order of preference within one location.
_FIELD_KEYS: Dict[str, Sequence[str]] = {
    "role": ("role",),
    "permissions": ("permissions",),
    "home_province": ("homeProvince", "provinceId", "province"),
    "home_branch": ("homeBranch", "employeeInfo.branch", "branchCode", "branch"),
    "allowed_provinces": ("allowedProvinces", "accessibleProvinceIds"),
    "allowed_branches": ("allowedBranches", "accessibleBranches"),
    "is_profile_complete": ("isProfileComplete",),
    "email": ("email",),
    "display_name": ("displayName",),
}


def _get_path(source: Mapping[str, Any], dotted: str) -> Any:
    value: Any = source
    for part in dotted.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _locations(record: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    nested = [record.get("rbac"), record.get("auth")]
    return [loc for loc in nested if isinstance(loc, Mapping)] + [record]


def _resolve(record: Mapping[str, Any], field_name: str) -> Any:
    for location in _locations(record):
        for key in _FIELD_KEYS[field_name]:
            value = _get_path(location, key)
            if not _is_blank(value):
                return value
    return None


def _as_strings(value: Any) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset({value}) if value else frozenset()
    if isinstance(value, Mapping):
        # {"P1": true, "P2": false} style maps
        return frozenset(str(k) for k, v in value.items() if v)
    if isinstance(value, Iterable):
        return frozenset(str(v) for v in value if v)
    return frozenset()


def _as_role(value: Any, uid: str, default_role: Role) -> Role:
    if value is None:
        return default_role
    try:
        return coerce_role(str(value).strip().lower())
    except ValueError:
        logger.warning(
            "Profile %s has unknown role %r; using %s",
            uid, value, default_role.value,
        )
        return default_role


def _as_permissions(value: Any, uid: str) -> FrozenSet[Permission]:
    known = set()
    for item in _as_strings(value):
        if exists(item):
            known.add(parse_permission(item))
        else:
            logger.warning("Profile %s: dropping unknown permission override %r", uid, item)
    return frozenset(known)


def normalize_profile(
    record: Optional[Mapping[str, Any]],
    uid: Optional[str] = None,
    default_role: RoleLike = Role.GUEST,
) -> UserProfile:
    """
    Build the canonical profile from a raw persisted record.

    Missing or malformed fields resolve to the most restrictive value; this
    never raises for bad data. Unknown roles fall back to ``default_role``
    and unknown permission overrides are dropped, both with a warning.

    Args:
        record: Raw document from the profile store (may be None)
        uid: User id if the record does not carry one
        default_role: Role used when the record has none or an unknown one

    Returns:
        UserProfile
    """
    record = record or {}
    fallback_role = coerce_role(default_role)
    user_id = str(record.get("uid") or uid or "")

    complete = _resolve(record, "is_profile_complete")
    if complete is None:
        complete = bool(record.get("firstName") and record.get("lastName"))

    home_province = _resolve(record, "home_province")
    home_branch = _resolve(record, "home_branch")

    return UserProfile(
        uid=user_id,
        role=_as_role(_resolve(record, "role"), user_id, fallback_role),
        email=_resolve(record, "email"),
        display_name=_resolve(record, "display_name"),
        permission_overrides=_as_permissions(_resolve(record, "permissions"), user_id),
        home_province=str(home_province) if home_province is not None else None,
        home_branch=str(home_branch) if home_branch is not None else None,
        allowed_provinces=_as_strings(_resolve(record, "allowed_provinces")),
        allowed_branches=_as_strings(_resolve(record, "allowed_branches")),
        is_profile_complete=bool(complete),
    )


def default_profile_record(
    uid: str,
    email: Optional[str] = None,
    display_name: Optional[str] = None,
    role: RoleLike = Role.GUEST,
) -> Dict[str, Any]:
    """
    Initial record for a user signing in for the first time.

    Lowest-privilege role, incomplete profile, no geographic scope.
    """
    now = datetime.now(timezone.utc)
    return {
        "uid": uid,
        "firstName": "",
        "lastName": "",
        "email": email,
        "displayName": display_name,
        "role": coerce_role(role).value,
        "requestedType": "employee",
        "isProfileComplete": False,
        "provinceId": "",
        "accessibleProvinceIds": [],
        "permissions": [],
        "employeeInfo": {
            "branch": "",
            "employeeCode": "",
            "department": "",
        },
        "createdAt": now,
        "updatedAt": now,
    }
