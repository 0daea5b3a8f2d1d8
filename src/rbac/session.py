"""
Session / Profile Provider

The only stateful component. Drives one user session through:

    UNAUTHENTICATED -> AUTHENTICATING -> PROFILE_LOADING -> READY
                                      -> PROFILE_MISSING -> READY
    any step -> ERROR

The identity provider and the profile store are external; they are reached
only through the ``IdentityProvider`` and ``ProfileStore`` ports so the
provider can be driven by fakes in tests.

Concurrency rules:
    - Transitions are serialized by an ``asyncio.Lock``.
    - A session holds exactly one profile subscription. It is torn down
      before a new sign-in or on sign-out.
    - Every sign-in/sign-out bumps a generation counter; notifications that
      arrive from an older generation are discarded.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from config.logging_config import get_logger, role_var, user_id_var
from config.settings import AccessControlSettings, get_settings

from .decisions import AccessContext, AccessDecisionEngine
from .errors import SessionError
from .geography import GeographicScopeResolver
from .handlers import HandlerSlot
from .profile import UserProfile, default_profile_record, normalize_profile

logger = get_logger(__name__, component="session")


# =============================================================================
# PORTS
# =============================================================================

@dataclass(frozen=True)
class Identity:
    """An authenticated identity as returned by the identity provider."""
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class Subscription(ABC):
    """Handle for a live profile listener."""

    @abstractmethod
    def unsubscribe(self) -> None:
        ...


class IdentityProvider(ABC):
    """Authenticates users."""

    @abstractmethod
    async def sign_in(self, **credentials: Any) -> Identity:
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        ...


ChangeCallback = Callable[[Optional[Mapping[str, Any]]], None]
ErrorCallback = Callable[[Exception], None]


class ProfileStore(ABC):
    """Persisted user records, keyed by uid."""

    @abstractmethod
    async def fetch(self, uid: str) -> Optional[Mapping[str, Any]]:
        """Raw record, or None if the user has no record yet."""

    @abstractmethod
    async def update(self, uid: str, changes: Mapping[str, Any]) -> None:
        ...

    @abstractmethod
    async def subscribe(
        self,
        uid: str,
        on_change: ChangeCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        """
        Listen for changes to one record.

        ``on_change`` receives the new raw record (None if it was deleted).
        """


# =============================================================================
# PROVIDER
# =============================================================================

class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    PROFILE_LOADING = "profile_loading"
    PROFILE_MISSING = "profile_missing"
    READY = "ready"
    ERROR = "error"


class SessionProvider:
    """
    Holds the signed-in user's profile and access context.

    Usage:
        provider = SessionProvider(identity_provider, store)
        await provider.sign_in(email="a@b.c", password="...")
        if provider.context.has_permission(Permission.REPORT_VIEW):
            ...
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        store: ProfileStore,
        engine: Optional[AccessDecisionEngine] = None,
        settings: Optional[AccessControlSettings] = None,
        loading: Optional[HandlerSlot] = None,
    ):
        self.identity_provider = identity_provider
        self.store = store
        self.settings = settings or get_settings()
        self.engine = engine or AccessDecisionEngine(
            resolver=GeographicScopeResolver(directory=self.settings.geography())
        )
        self.loading = loading or HandlerSlot("loading")

        self.state = SessionState.UNAUTHENTICATED
        self.identity: Optional[Identity] = None
        self.profile: Optional[UserProfile] = None
        self.context: Optional[AccessContext] = None
        self.current_province: Optional[str] = None
        self.error: Optional[BaseException] = None

        self._record: Optional[Dict[str, Any]] = None
        self._subscription: Optional[Subscription] = None
        self._generation = 0
        self._lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self.state == SessionState.READY

    # =========================================================================
    # Sign in / out
    # =========================================================================

    async def sign_in(self, **credentials: Any) -> UserProfile:
        """
        Authenticate, load (or provision) the profile and subscribe to it.

        Raises:
            SessionError: Authentication, profile fetch or subscription failed
        """
        async with self._lock:
            self._teardown()
            generation = self._generation
            self.state = SessionState.AUTHENTICATING

            try:
                identity = await self.identity_provider.sign_in(**credentials)
            except Exception as e:
                raise self._fail(e, "Sign-in failed") from e

            self.identity = identity
            user_id_var.set(identity.uid)
            logger.info(f"Signed in: uid={identity.uid}")

            await self._load()

            try:
                self._subscription = await self.store.subscribe(
                    identity.uid,
                    on_change=lambda record: self._on_change(generation, record),
                    on_error=lambda error: self._on_error(generation, error),
                )
            except Exception as e:
                raise self._fail(e, "Profile subscription failed") from e

            return self.profile

    async def sign_out(self) -> None:
        async with self._lock:
            uid = self.identity.uid if self.identity else None
            self._teardown()
            try:
                await self.identity_provider.sign_out()
            except Exception as e:
                raise self._fail(e, "Sign-out failed") from e
            logger.info(f"Signed out: uid={uid}")

    # =========================================================================
    # Profile
    # =========================================================================

    async def refresh(self) -> Optional[UserProfile]:
        """Re-read the profile from the store. Keeps the current one if the record is gone."""
        async with self._lock:
            identity = self._require_identity()
            await self.loading.invoke(True)
            try:
                record = await self.store.fetch(identity.uid)
            except Exception as e:
                raise self._fail(e, "Profile refresh failed") from e
            finally:
                await self.loading.invoke(False)

            if record is not None:
                self._apply(record)
            return self.profile

    async def update_profile(self, changes: Mapping[str, Any]) -> UserProfile:
        """
        Write ``changes`` to the store and apply them locally.

        The subscription delivers the authoritative record afterwards.
        """
        async with self._lock:
            identity = self._require_identity()
            payload = {**changes, "updatedAt": datetime.now(timezone.utc)}
            try:
                await self.store.update(identity.uid, payload)
            except Exception as e:
                raise self._fail(e, "Profile update failed") from e

            self._apply({**(self._record or {}), **payload})
            return self.profile

    async def switch_province(self, province_id: str) -> None:
        """
        Change the province the user is working in.

        Raises:
            SessionError: No session, or the province is outside the user's scope
        """
        self._require_identity()
        if not self.context.has_province_access(province_id):
            raise SessionError(f"No access to province {province_id}")
        self.current_province = province_id
        logger.debug(f"Switched province: {province_id}")

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_identity(self) -> Identity:
        if self.identity is None or self.state != SessionState.READY:
            raise SessionError("No user signed in")
        return self.identity

    async def _load(self) -> None:
        # Only called by sign_in while it holds self._lock
        identity = self.identity
        self.state = SessionState.PROFILE_LOADING
        await self.loading.invoke(True)
        try:
            record = await self.store.fetch(identity.uid)
        except Exception as e:
            raise self._fail(e, "Profile fetch failed") from e
        finally:
            await self.loading.invoke(False)

        if record is None:
            self.state = SessionState.PROFILE_MISSING
            logger.info(f"No profile for uid={identity.uid}; provisioning default")
            record = self._default_record()

        self._apply(record)

    def _default_record(self) -> Dict[str, Any]:
        identity = self.identity
        return default_profile_record(
            identity.uid,
            email=identity.email,
            display_name=identity.display_name,
            role=self.settings.default_role,
        )

    def _apply(self, record: Mapping[str, Any]) -> None:
        profile = normalize_profile(
            record,
            uid=self.identity.uid,
            default_role=self.settings.default_role,
        )
        context = self.engine.context_for(profile)

        if self.current_province not in context.provinces:
            self.current_province = self.engine.resolver.default_province(profile)

        self._record = dict(record)
        self.profile = profile
        self.context = context
        self.error = None
        self.state = SessionState.READY
        role_var.set(profile.role.value)

    def _on_change(self, generation: int, record: Optional[Mapping[str, Any]]) -> None:
        if generation != self._generation or self.identity is None:
            logger.debug("Ignoring profile change from stale subscription")
            return
        if self.state == SessionState.ERROR:
            return
        self._apply(record if record is not None else self._default_record())
        logger.debug(f"Profile updated: role={self.profile.role.value}")

    def _on_error(self, generation: int, error: Exception) -> None:
        if generation != self._generation:
            logger.debug("Ignoring error from stale subscription")
            return
        self._fail(error, "Profile subscription error")

    def _fail(self, error: BaseException, message: str) -> SessionError:
        """Enter ERROR: expose the cause and drop the snapshot."""
        self._unsubscribe()
        self.state = SessionState.ERROR
        self.error = error
        self.profile = None
        self.context = None
        self._record = None
        logger.error(f"{message}: {error}", exc_info=error)
        return SessionError(message)

    def _unsubscribe(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.unsubscribe()

    def _teardown(self) -> None:
        self._generation += 1
        self._unsubscribe()
        self.state = SessionState.UNAUTHENTICATED
        self.identity = None
        self.profile = None
        self.context = None
        self.current_province = None
        self.error = None
        self._record = None
        user_id_var.set(None)
        role_var.set(None)
