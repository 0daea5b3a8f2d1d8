"""Pytest configuration and fixtures for test suite."""

import os
import sys
from pathlib import Path

import pytest

# Set test environment BEFORE any other imports
os.environ.setdefault("RBAC_ENVIRONMENT", "test")

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from rbac.decisions import AccessDecisionEngine
from rbac.geography import GeographicScopeResolver, GeographyDirectory
from rbac.profile import UserProfile
from rbac.roles import Role
from rbac.routing import RouteClassifier


# =============================================================================
# GEOGRAPHY
# =============================================================================

BRANCHES_BY_PROVINCE = {
    "P1": ["B1", "B2"],
    "P2": ["B3", "B4"],
    "P3": ["B5"],
}


@pytest.fixture
def directory():
    """Three provinces, five branches."""
    return GeographyDirectory.from_mapping(BRANCHES_BY_PROVINCE)


@pytest.fixture
def resolver(directory):
    return GeographicScopeResolver(directory=directory)


@pytest.fixture
def engine(resolver):
    return AccessDecisionEngine(resolver=resolver)


@pytest.fixture
def classifier(engine):
    return RouteClassifier(engine=engine)


# =============================================================================
# PROFILES
# =============================================================================

def make_profile(role=Role.USER, province=None, branch=None, **kwargs):
    """Complete profile with the given role and home location."""
    return UserProfile(
        uid=kwargs.pop("uid", f"uid-{Role(role).value}"),
        role=role,
        home_province=province,
        home_branch=branch,
        **kwargs,
    )


@pytest.fixture
def profile_factory():
    """``make_profile`` for tests that build several profiles."""
    return make_profile


@pytest.fixture
def branch_manager():
    """Branch manager of P1/B1."""
    return make_profile(Role.BRANCH_MANAGER, "P1", "B1")


@pytest.fixture
def executive():
    return make_profile(Role.EXECUTIVE)


@pytest.fixture
def developer():
    return make_profile(Role.DEVELOPER)
