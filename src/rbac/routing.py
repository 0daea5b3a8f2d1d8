"""
Route Classification and Redirects

Application paths follow a 4-layer structure:

    Executive:       /{module}/...
    Province:        /{provinceId}/{module}/...
    Branch:          /{provinceId}/{branchCode}/{module}/...
    Guest/special:   /visitor/..., /pending, /complete-profile

A request is resolved in three steps:

    1. classify   strip the geographic prefix and find the matching rule
    2. authorize  check stage, layer, category, permissions and geography
    3. decide     Allow, or Redirect to the user's home path

Denial is a normal outcome returned as ``Redirect``; nothing here raises
for an unauthorized request. Paths that match no rule are allowed; only
routes listed in the table are guarded.

Usage:
    classifier = RouteClassifier()
    decision = classifier.decide("/P1/B1/dashboard", profile)
    if isinstance(decision, Redirect):
        navigate(decision.path)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from .decisions import AccessDecisionEngine, AccessLayer, layer_of
from .permissions import Permission
from .profile import UserProfile
from .roles import Role, RoleCategory

logger = logging.getLogger(__name__)


PENDING_PATH = "/pending"
COMPLETE_PROFILE_PATH = "/complete-profile"
VISITOR_PATH = "/visitor/dashboard"
LANDING = "landing"
DASHBOARD = "dashboard"
OVERVIEW_PATH = "/overview"


class ScopeKind(str, Enum):
    """Geographic prefix depth a rule applies to."""
    NONE = "none"
    PROVINCE = "province"
    BRANCH = "branch"


class ProfileStage(str, Enum):
    """Where a user is in the onboarding flow."""
    INCOMPLETE = "incomplete"  # Must fill in the profile first
    PENDING = "pending"        # Waiting for approval
    ACTIVE = "active"


ALL_STAGES = frozenset(ProfileStage)
ACTIVE_ONLY = frozenset({ProfileStage.ACTIVE})

# Layer implied by the geographic prefix of a path.
_SCOPE_LAYERS = {
    ScopeKind.NONE: AccessLayer.EXECUTIVE,
    ScopeKind.PROVINCE: AccessLayer.PROVINCE,
    ScopeKind.BRANCH: AccessLayer.BRANCH,
}


def stage_of(profile: UserProfile) -> ProfileStage:
    if not profile.is_profile_complete:
        return ProfileStage.INCOMPLETE
    if profile.role == Role.PENDING:
        return ProfileStage.PENDING
    return ProfileStage.ACTIVE


def _split(path: str) -> List[str]:
    path = path.split("?", 1)[0].split("#", 1)[0]
    return [segment for segment in path.split("/") if segment]


@dataclass(frozen=True)
class RouteRule:
    """
    Access requirement of one route template.

    ``layer=None`` means no layer requirement (public page).
    """
    template: str
    scope: ScopeKind = ScopeKind.NONE
    layer: Optional[AccessLayer] = None
    category: Optional[RoleCategory] = None
    permissions: Tuple[Permission, ...] = ()
    stages: FrozenSet[ProfileStage] = ACTIVE_ONLY

    @property
    def segments(self) -> Tuple[str, ...]:
        return tuple(_split(self.template))

    @property
    def is_geography_scoped(self) -> bool:
        return self.scope != ScopeKind.NONE

    def matches(self, segments: Sequence[str]) -> bool:
        own = self.segments
        if not own:
            return not segments
        return tuple(segments[:len(own)]) == own


def module_rules(
    template: str,
    minimum: AccessLayer = AccessLayer.BRANCH,
    category: Optional[RoleCategory] = None,
    permissions: Iterable[Permission] = (),
    scopes: Iterable[ScopeKind] = (ScopeKind.NONE, ScopeKind.PROVINCE, ScopeKind.BRANCH),
) -> List[RouteRule]:
    """
    Rules for one module mounted at every layer.

    The required layer is the stricter of the module minimum and the layer
    implied by the prefix: root-level module paths are executive pages.
    """
    rules = []
    for scope in scopes:
        layer = AccessLayer(min(minimum.value, _SCOPE_LAYERS[scope].value))
        rules.append(RouteRule(
            template=template,
            scope=scope,
            layer=layer,
            category=category,
            permissions=tuple(permissions),
        ))
    return rules


_P = Permission

DEFAULT_ROUTES: Tuple[RouteRule, ...] = tuple([
    # Public
    RouteRule("", stages=ALL_STAGES),
    RouteRule("about", stages=ALL_STAGES),
    RouteRule("auth", stages=ALL_STAGES),
    RouteRule("login", stages=ALL_STAGES),
    RouteRule("register", stages=ALL_STAGES),
    RouteRule("forgot-password", stages=ALL_STAGES),
    RouteRule("role-check", stages=ALL_STAGES),
    RouteRule("not-found", stages=ALL_STAGES),
    RouteRule("logout", stages=ALL_STAGES),

    # Onboarding
    RouteRule(PENDING_PATH, stages=frozenset({ProfileStage.PENDING})),
    RouteRule(COMPLETE_PROFILE_PATH, stages=frozenset({ProfileStage.INCOMPLETE})),

    # Personal pages, any approved user
    RouteRule(VISITOR_PATH, layer=AccessLayer.GUEST),
    RouteRule("profile", layer=AccessLayer.GUEST),
    RouteRule("change-password", layer=AccessLayer.GUEST),
    RouteRule("calendar", layer=AccessLayer.GUEST),
    RouteRule("notifications", layer=AccessLayer.GUEST),

    # Landing pages exist at every depth for branch staff and above
    RouteRule(LANDING, ScopeKind.NONE, AccessLayer.BRANCH),
    RouteRule(LANDING, ScopeKind.PROVINCE, AccessLayer.BRANCH),
    RouteRule(LANDING, ScopeKind.BRANCH, AccessLayer.BRANCH),

    # Dashboards
    RouteRule(OVERVIEW_PATH, layer=AccessLayer.EXECUTIVE, category=RoleCategory.EXECUTIVE),
    RouteRule(DASHBOARD, ScopeKind.NONE, AccessLayer.EXECUTIVE, RoleCategory.GENERAL_MANAGER),
    RouteRule(DASHBOARD, ScopeKind.PROVINCE, AccessLayer.PROVINCE, RoleCategory.PROVINCE_MANAGER),
    RouteRule(DASHBOARD, ScopeKind.BRANCH, AccessLayer.BRANCH, RoleCategory.LEAD),
]
    # Business modules
    + module_rules("account", permissions=[_P.VIEW_ACCOUNTS])
    + module_rules("credit", permissions=[_P.VIEW_ACCOUNTS])
    + module_rules("reports", permissions=[_P.REPORT_VIEW])
    + module_rules("sales", permissions=[_P.DOCUMENT_VIEW])
    + module_rules("service", permissions=[_P.DOCUMENT_VIEW])
    + module_rules("warehouse", permissions=[_P.DOCUMENT_VIEW])
    + module_rules("hr", permissions=[_P.EMPLOYEE_VIEW])
    + module_rules("hr/attendance", permissions=[_P.ATTENDANCE_VIEW])
    + module_rules("hr/leave", permissions=[_P.LEAVE_VIEW])

    # Administration
    + module_rules(
        "users",
        category=RoleCategory.PROVINCE_ADMIN,
        permissions=[_P.USER_VIEW],
        scopes=(ScopeKind.NONE, ScopeKind.PROVINCE),
    )
    + module_rules(
        "admin",
        category=RoleCategory.PROVINCE_ADMIN,
        permissions=[_P.VIEW_USERS],
        scopes=(ScopeKind.NONE, ScopeKind.PROVINCE),
    )
    + module_rules("settings", category=RoleCategory.GENERAL_MANAGER, scopes=(ScopeKind.NONE,))
    + module_rules(
        "special-settings",
        category=RoleCategory.SUPER_ADMIN,
        permissions=[_P.SPECIAL_SETTINGS_VIEW],
        scopes=(ScopeKind.NONE,),
    )
    + module_rules("executive", category=RoleCategory.EXECUTIVE, scopes=(ScopeKind.NONE,))
    + module_rules("developer", category=RoleCategory.DEVELOPER, scopes=(ScopeKind.NONE,))
)


# =============================================================================
# RESULTS
# =============================================================================

@dataclass(frozen=True)
class RouteRequirement:
    """Outcome of classifying a path."""
    path: str
    rule: Optional[RouteRule]
    canonical: str
    scope: ScopeKind = ScopeKind.NONE
    province: Optional[str] = None
    branch: Optional[str] = None

    @property
    def layer(self) -> Optional[AccessLayer]:
        return self.rule.layer if self.rule else None

    @property
    def is_recognized(self) -> bool:
        return self.rule is not None


@dataclass(frozen=True)
class Allow:
    path: str


@dataclass(frozen=True)
class Redirect:
    path: str
    reason: str = field(default="", compare=False)


RouteDecision = Union[Allow, Redirect]


# =============================================================================
# CLASSIFIER
# =============================================================================

class RouteClassifier:
    """Classifies paths, authorizes them and computes redirects."""

    def __init__(
        self,
        rules: Iterable[RouteRule] = DEFAULT_ROUTES,
        engine: Optional[AccessDecisionEngine] = None,
    ):
        self.engine = engine or AccessDecisionEngine()
        self.rules = tuple(rules)
        self._by_scope: Dict[ScopeKind, List[RouteRule]] = {scope: [] for scope in ScopeKind}
        for rule in self.rules:
            self._by_scope[rule.scope].append(rule)
        # Longest template first so "hr/leave" wins over "hr"
        for rules_in_scope in self._by_scope.values():
            rules_in_scope.sort(key=lambda r: len(r.segments), reverse=True)
        self.roots: FrozenSet[str] = frozenset(r.segments[0] for r in self.rules if r.segments)

        clashes = self.roots & (self.directory.provinces | self.directory.branches)
        if clashes:
            logger.warning("Geography ids shadowed by route names: %s", sorted(clashes))

    @property
    def resolver(self):
        return self.engine.resolver

    @property
    def directory(self):
        return self.engine.resolver.directory

    # -------------------------------------------------------------------------
    # 1. Classify
    # -------------------------------------------------------------------------

    def _match(self, segments: Sequence[str], scope: ScopeKind) -> Optional[RouteRule]:
        for rule in self._by_scope[scope]:
            if rule.matches(segments):
                return rule
        return None

    def classify(self, path: str) -> RouteRequirement:
        """
        Strip the geographic prefix and find the rule for the rest.

        Leading segments that are not route names are read as province, then
        branch. A geography-prefixed path with no rule at its own depth falls
        back to the root-level rule for the same template.
        """
        rest = _split(path)
        province = branch = None
        if rest and rest[0] not in self.roots:
            province, rest = rest[0], rest[1:]
            if rest and rest[0] not in self.roots:
                branch, rest = rest[0], rest[1:]

        if branch:
            scope = ScopeKind.BRANCH
        elif province:
            scope = ScopeKind.PROVINCE
        else:
            scope = ScopeKind.NONE

        rule = self._match(rest, scope)
        if rule is None and scope != ScopeKind.NONE and rest:
            rule = self._match(rest, ScopeKind.NONE)

        return RouteRequirement(
            path=path,
            rule=rule,
            canonical="/".join(rest),
            scope=scope,
            province=province,
            branch=branch,
        )

    # -------------------------------------------------------------------------
    # 2. Authorize
    # -------------------------------------------------------------------------

    def denial_reason(self, requirement: RouteRequirement, profile: UserProfile) -> Optional[str]:
        """Why ``profile`` may not open the route, or None if it may."""
        rule = requirement.rule
        if rule is None:
            return None

        stage = stage_of(profile)
        if stage not in rule.stages:
            return f"stage {stage.value} not admitted"

        if rule.layer is not None and not layer_of(profile.role).satisfies(rule.layer):
            return f"layer {rule.layer.name.lower()} required"

        if rule.category is not None and not self.engine.is_in_category(profile, rule.category):
            return f"category {rule.category.value} required"

        if not self.engine.has_all_permissions(profile, rule.permissions):
            return "missing permissions"

        if requirement.province is not None:
            if not self.resolver.has_province_access(profile, requirement.province):
                return f"province {requirement.province} out of scope"

        if requirement.branch is not None:
            if not self.resolver.has_branch_access(profile, requirement.branch):
                return f"branch {requirement.branch} out of scope"
            owner = self.directory.province_of(requirement.branch)
            if owner is not None and owner != requirement.province:
                return f"branch {requirement.branch} belongs to {owner}"

        return None

    def authorize(self, path: str, profile: UserProfile) -> bool:
        return self.denial_reason(self.classify(path), profile) is None

    # -------------------------------------------------------------------------
    # 3. Decide
    # -------------------------------------------------------------------------

    def decide(self, path: str, profile: UserProfile) -> RouteDecision:
        requirement = self.classify(path)
        reason = self.denial_reason(requirement, profile)
        if reason is None:
            return Allow(path)

        target = self.home_path_for(profile)
        logger.info(
            "Route denied: uid=%s role=%s path=%s reason=%s redirect=%s",
            profile.uid, profile.role.value, path, reason, target,
        )
        return Redirect(target, reason=reason)

    # -------------------------------------------------------------------------
    # Home paths
    # -------------------------------------------------------------------------

    def _is_segment(self, value: Optional[str]) -> bool:
        """True if ``value`` reads back as one non-route path segment."""
        return bool(value) and _split(value) == [value] and value not in self.roots

    def _usable_province(self, profile: UserProfile) -> Optional[str]:
        province = profile.home_province
        return province if self._is_segment(province) else None

    def _usable_branch(self, profile: UserProfile, province: Optional[str]) -> Optional[str]:
        branch = profile.home_branch
        if not province or not self._is_segment(branch):
            return None
        owner = self.directory.province_of(branch)
        if owner is not None and owner != province:
            return None
        return branch

    def home_path_for(self, profile: UserProfile) -> str:
        """
        Landing path for a profile.

        Always a path that ``authorize`` accepts for the same profile.
        """
        stage = stage_of(profile)
        if stage == ProfileStage.INCOMPLETE:
            return COMPLETE_PROFILE_PATH
        if stage == ProfileStage.PENDING:
            return PENDING_PATH

        role = profile.role
        if role == Role.GUEST:
            return VISITOR_PATH
        if role in (Role.DEVELOPER, Role.EXECUTIVE, Role.PRIVILEGE):
            return OVERVIEW_PATH
        if role in (Role.SUPER_ADMIN, Role.GENERAL_MANAGER):
            return f"/{DASHBOARD}"

        province = self._usable_province(profile)
        if layer_of(role) == AccessLayer.PROVINCE:
            return f"/{province}/{DASHBOARD}" if province else f"/{LANDING}"

        branch = self._usable_branch(profile, province)
        if province and branch:
            suffix = DASHBOARD if role in (Role.BRANCH_MANAGER, Role.LEAD) else LANDING
            return f"/{province}/{branch}/{suffix}"
        if province:
            return f"/{province}/{LANDING}"
        return f"/{LANDING}"

    def route_prefix(self, profile: UserProfile) -> str:
        """Path prefix of the user's layer: "/", "/{p}/" or "/{p}/{b}/"."""
        layer = layer_of(profile.role)
        if layer in (AccessLayer.EXECUTIVE, AccessLayer.GUEST):
            return "/"
        province = self._usable_province(profile)
        if not province:
            return "/"
        if layer == AccessLayer.PROVINCE:
            return f"/{province}/"
        branch = self._usable_branch(profile, province)
        return f"/{province}/{branch}/" if branch else f"/{province}/"

    def path_for(self, profile: UserProfile, template: str) -> str:
        """Build a module path under the user's route prefix."""
        return self.route_prefix(profile) + template.strip("/")
