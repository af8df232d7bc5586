"""
Session/profile manager.

Tracks the signed-in account and its profile for the lifetime of the running
application. One instance is created per process (see
`modelshare.dependencies`) and passed to every consumer.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from modelshare.auth import AuthClient, Unsubscribe
from modelshare.helpers import DataHelpers
from modelshare.types import Account, Profile

logger = logging.getLogger(__name__)

DEFAULT_INIT_TIMEOUT_SECONDS = 5.0
NO_USER_ERROR = "No user logged in"


class SessionState(enum.Enum):
    INITIALIZING = "initializing"
    AUTHENTICATED_WITH_PROFILE = "authenticated-with-profile"
    AUTHENTICATED_WITHOUT_PROFILE = "authenticated-without-profile"
    UNAUTHENTICATED = "unauthenticated"


class ResolutionKind(enum.Enum):
    FOUND = "found"
    CREATED_FALLBACK = "created-fallback"
    FAILED = "failed"


@dataclass
class ProfileResolution:
    kind: ResolutionKind
    profile: Optional[Profile] = None
    error: Optional[str] = None


@dataclass
class SessionResult:
    success: bool
    error: Optional[str] = None
    profile: Optional[Profile] = None

    def as_dict(self) -> dict:
        return {
            "success": self.success,
            "error": self.error,
            "profile": self.profile.as_dict() if self.profile else None,
        }


def default_username(account: Account) -> str:
    """Local part of the account email, or "user" when there is none."""
    local_part = (account.email or "").split("@")[0]
    return local_part or "user"


def resolve_profile(helpers: DataHelpers, account: Account) -> ProfileResolution:
    """Fetch the account's profile, creating a default one once if that fails."""
    fetched = helpers.get_profile(account.uid)
    if fetched.profile is not None:
        return ProfileResolution(ResolutionKind.FOUND, profile=fetched.profile)

    logger.warning(
        "Profile for %s unavailable (%s), creating one", account.uid, fetched.error
    )
    created = helpers.ensure_profile(account.uid, default_username(account))
    if created.profile is not None:
        return ProfileResolution(ResolutionKind.CREATED_FALLBACK, profile=created.profile)
    return ProfileResolution(ResolutionKind.FAILED, error=created.error)


class SessionManager:
    """Owns the current account/profile pair and the session operations."""

    def __init__(
        self,
        auth: AuthClient,
        helpers: DataHelpers,
        *,
        init_timeout_seconds: float = DEFAULT_INIT_TIMEOUT_SECONDS,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
        thread_factory: Callable[..., threading.Thread] = threading.Thread,
    ):
        self.auth = auth
        self.helpers = helpers
        self.init_timeout_seconds = init_timeout_seconds
        self._timer_factory = timer_factory
        self._thread_factory = thread_factory

        self._lock = threading.RLock()
        self._ready = threading.Event()
        self._user: Optional[Account] = None
        self._profile: Optional[Profile] = None
        self._state = SessionState.INITIALIZING
        self._loading = True
        self._unsubscribe: Optional[Unsubscribe] = None
        self._init_timer: Optional[threading.Timer] = None
        # login/signup in flight; they attach the profile themselves.
        self._operations_in_flight = 0

    # State

    @property
    def user(self) -> Optional[Account]:
        return self._user

    @property
    def profile(self) -> Optional[Profile]:
        return self._profile

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def status(self) -> dict:
        with self._lock:
            return {
                "user": self._user is not None,
                "profile": self._profile is not None,
                "loading": self._loading,
                "user_id": self._user.uid if self._user else None,
                "state": self._state.value,
            }

    def _apply(
        self,
        user: Optional[Account],
        profile: Optional[Profile],
        *,
        loading: bool = False,
    ) -> None:
        with self._lock:
            self._user = user
            self._profile = profile
            self._loading = loading
            if user is None:
                self._state = SessionState.UNAUTHENTICATED
            elif profile is None:
                self._state = SessionState.AUTHENTICATED_WITHOUT_PROFILE
            else:
                self._state = SessionState.AUTHENTICATED_WITH_PROFILE
            if not loading:
                self._ready.set()
        logger.info("Session state: %s", self._state.value)

    # Lifecycle

    def start(self) -> None:
        """Subscribe to auth events and arm the initialization deadline."""
        with self._lock:
            if self._unsubscribe is not None:
                return
            self._init_timer = self._timer_factory(
                self.init_timeout_seconds, self._force_ready
            )
            self._init_timer.daemon = True
            self._init_timer.start()
        self._unsubscribe = self.auth.on_auth_state_changed(self._on_auth_state_changed)

    def close(self) -> None:
        with self._lock:
            timer, self._init_timer = self._init_timer, None
            unsubscribe, self._unsubscribe = self._unsubscribe, None
        if timer is not None:
            timer.cancel()
        if unsubscribe is not None:
            unsubscribe()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._ready.wait(timeout)

    def _force_ready(self) -> None:
        with self._lock:
            if self._state is not SessionState.INITIALIZING:
                return
            logger.warning(
                "Session still initializing after %.1fs, forcing it to settle",
                self.init_timeout_seconds,
            )
            self._state = (
                SessionState.AUTHENTICATED_WITHOUT_PROFILE
                if self._user is not None
                else SessionState.UNAUTHENTICATED
            )
            self._loading = False
            self._ready.set()

    def _on_auth_state_changed(self, account: Optional[Account]) -> None:
        logger.info("Auth state changed: %s", "SIGNED_IN" if account else "SIGNED_OUT")
        if account is None:
            self._apply(None, None)
            return

        with self._lock:
            self._user = account
            self._loading = True
            if self._operations_in_flight:
                return
        # The notifying thread only records the account; resolution runs apart.
        self._thread_factory(
            target=self._resolve_in_background,
            args=(account,),
            name=f"profile-resolver-{account.uid}",
            daemon=True,
        ).start()

    def _resolve_in_background(self, account: Account) -> None:
        resolution = resolve_profile(self.helpers, account)
        if resolution.kind is ResolutionKind.FAILED:
            logger.error(
                "Could not create profile for %s: %s", account.uid, resolution.error
            )
        with self._lock:
            # A later event may have replaced the account while we resolved.
            if self._user is None or self._user.uid != account.uid:
                logger.info("Dropping stale profile resolution for %s", account.uid)
                return
            self._apply(account, resolution.profile)

    def _begin_operation(self) -> None:
        with self._lock:
            self._operations_in_flight += 1
            self._loading = True

    def _end_operation(self) -> None:
        with self._lock:
            self._operations_in_flight -= 1

    # Operations

    def login(self, email: str, password: str) -> SessionResult:
        self._begin_operation()
        try:
            signed_in = self.helpers.sign_in(email, password)
            if signed_in.error or signed_in.user is None:
                logger.info("Login failed: %s", signed_in.error)
                self._set_loading(False)
                return SessionResult(success=False, error=signed_in.error)

            resolution = resolve_profile(self.helpers, signed_in.user)
            if resolution.kind is ResolutionKind.FAILED:
                logger.error(
                    "Could not create profile for %s: %s",
                    signed_in.user.uid,
                    resolution.error,
                )
            self._apply(signed_in.user, resolution.profile)
            logger.info("Login successful, user: %s", signed_in.user.uid)
            return SessionResult(success=True, profile=resolution.profile)
        except Exception as e:
            logger.error("Login error: %s", e)
            self._set_loading(False)
            return SessionResult(success=False, error=str(e))
        finally:
            self._end_operation()

    def signup(self, email: str, password: str, username: str) -> SessionResult:
        self._begin_operation()
        try:
            created = self.helpers.sign_up(email, password, username)
            if created.error or created.user is None:
                logger.info("Signup failed: %s", created.error)
                self._set_loading(False)
                return SessionResult(success=False, error=created.error)

            fetched = self.helpers.get_profile(created.user.uid)
            self._apply(created.user, fetched.profile)
            logger.info("Signup successful, user: %s", created.user.uid)
            return SessionResult(success=True, profile=fetched.profile)
        except Exception as e:
            logger.error("Signup error: %s", e)
            self._set_loading(False)
            return SessionResult(success=False, error=str(e))
        finally:
            self._end_operation()

    def logout(self) -> SessionResult:
        with self._lock:
            self._loading = True
        try:
            signed_out = self.helpers.sign_out()
            if signed_out.error:
                self._set_loading(False)
                return SessionResult(success=False, error=signed_out.error)
            self._apply(None, None)
            return SessionResult(success=True)
        except Exception as e:
            logger.error("Logout error: %s", e)
            self._set_loading(False)
            return SessionResult(success=False, error=str(e))

    def refresh_profile(self) -> SessionResult:
        user = self._user
        if user is None:
            return SessionResult(success=False, error=NO_USER_ERROR)
        try:
            fetched = self.helpers.get_profile(user.uid)
            if fetched.error:
                logger.info("Profile refresh error: %s", fetched.error)
                return SessionResult(success=False, error=fetched.error)
            self._apply(user, fetched.profile)
            return SessionResult(success=True, profile=fetched.profile)
        except Exception as e:
            logger.error("Profile refresh error: %s", e)
            return SessionResult(success=False, error=str(e))

    def create_profile(self) -> SessionResult:
        user = self._user
        if user is None:
            return SessionResult(success=False, error=NO_USER_ERROR)
        try:
            ensured = self.helpers.ensure_profile(user.uid, default_username(user))
            if ensured.error:
                logger.info("Manual profile creation failed: %s", ensured.error)
                return SessionResult(success=False, error=ensured.error)
            if ensured.profile is None:
                return SessionResult(success=False, error="Failed to create profile")
            self._apply(user, ensured.profile)
            return SessionResult(success=True, profile=ensured.profile)
        except Exception as e:
            logger.error("Manual profile creation error: %s", e)
            return SessionResult(success=False, error=str(e))

    def refresh_auth(self) -> SessionResult:
        """Re-read the auth client's current account and re-sync the profile."""
        with self._lock:
            self._loading = True
        try:
            current = self.auth.current_user
            if current is None:
                self._apply(None, None)
                return SessionResult(success=True)
            fetched = self.helpers.get_profile(current.uid)
            self._apply(current, fetched.profile)
            return SessionResult(success=True, profile=fetched.profile)
        except Exception as e:
            logger.error("Auth refresh error: %s", e)
            self._set_loading(False)
            return SessionResult(success=False, error=str(e))

    def _set_loading(self, loading: bool) -> None:
        with self._lock:
            self._loading = loading
