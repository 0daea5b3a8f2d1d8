"""
Access Control Errors

Configuration errors (unknown roles, unknown permissions, cyclic role
inheritance) are raised while the static tables are built and are meant to
stop the process at startup. Route denials are never exceptions; they are
returned as redirects by the route classifier.
"""

from typing import Sequence


class AccessControlError(Exception):
    """Base class for all access-control errors."""
    pass


# =============================================================================
# STARTUP / CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(AccessControlError):
    """Raised when the static role/permission tables are invalid."""
    pass


class UnknownRoleError(ConfigurationError, ValueError):
    """A role identifier outside the closed role set was encountered."""

    def __init__(self, role: object):
        self.role = role
        super().__init__(f"Unknown role: {role!r}")


class UnknownRoleCategoryError(ConfigurationError, ValueError):
    """A role category identifier outside the category set was encountered."""

    def __init__(self, category: object):
        self.category = category
        super().__init__(f"Unknown role category: {category!r}")


class UnknownPermissionError(ConfigurationError, ValueError):
    """A permission identifier outside the permission catalog was encountered."""

    def __init__(self, permission: object):
        self.permission = permission
        super().__init__(f"Unknown permission: {permission!r}")


class RoleHierarchyCycleError(ConfigurationError):
    """The role inheritance graph contains a cycle."""

    def __init__(self, cycle: Sequence[object]):
        self.cycle = tuple(cycle)
        path = " -> ".join(str(getattr(r, "value", r)) for r in self.cycle)
        super().__init__(f"Role inheritance cycle detected: {path}")


# =============================================================================
# SESSION ERRORS
# =============================================================================

class SessionError(AccessControlError):
    """
    Raised by the session provider.

    Covers misuse (e.g. updating a profile with nobody signed in) and wraps
    failures of the external identity provider or profile store. The
    original exception is always chained as ``__cause__``.
    """
    pass
