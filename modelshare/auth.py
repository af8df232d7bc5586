"""
Auth abstraction: Firebase Identity Toolkit (REST) and an in-memory test implementation.

Both clients keep the currently signed-in account and notify registered
listeners on every session transition. Registering a listener delivers the
current account right away and returns a callable that cancels the
registration.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import uuid
from typing import Callable, Optional, Protocol

import requests

from modelshare.types import Account

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds
MIN_PASSWORD_LENGTH = 6

AuthStateListener = Callable[[Optional[Account]], None]
Unsubscribe = Callable[[], None]


class AuthError(Exception):
    """Raised by auth clients; the message is the service's own error text."""


class AuthClient(Protocol):
    """Operations the session layer needs from the auth service."""

    @property
    def current_user(self) -> Optional[Account]:
        ...

    def sign_up(self, email: str, password: str) -> Account:
        ...

    def sign_in(self, email: str, password: str) -> Account:
        ...

    def sign_out(self) -> None:
        ...

    def on_auth_state_changed(self, listener: AuthStateListener) -> Unsubscribe:
        ...


class _AuthStateNotifier:
    """Shared listener bookkeeping for the auth clients."""

    def __init__(self):
        self._current_user: Optional[Account] = None
        self._listeners: dict[int, AuthStateListener] = {}
        self._next_listener_id = 0
        self._listener_lock = threading.Lock()

    @property
    def current_user(self) -> Optional[Account]:
        return self._current_user

    def on_auth_state_changed(self, listener: AuthStateListener) -> Unsubscribe:
        with self._listener_lock:
            listener_id = self._next_listener_id
            self._next_listener_id += 1
            self._listeners[listener_id] = listener

        def unsubscribe() -> None:
            with self._listener_lock:
                self._listeners.pop(listener_id, None)

        self._deliver(listener, self._current_user)
        return unsubscribe

    def _set_current_user(self, user: Optional[Account]) -> None:
        self._current_user = user
        with self._listener_lock:
            listeners = list(self._listeners.values())
        for listener in listeners:
            self._deliver(listener, user)

    @staticmethod
    def _deliver(listener: AuthStateListener, user: Optional[Account]) -> None:
        try:
            listener(user)
        except Exception:
            logger.exception("Auth state listener failed")


class InMemoryAuthClient(_AuthStateNotifier):
    """Account registry kept in process memory, for development and tests."""

    def __init__(self):
        super().__init__()
        self.accounts: dict[str, tuple[str, str]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _hash(password: str) -> str:
        return hashlib.sha256(password.encode("utf-8")).hexdigest()

    def sign_up(self, email: str, password: str) -> Account:
        email = (email or "").strip().lower()
        if not email or "@" not in email:
            raise AuthError("INVALID_EMAIL")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(
                "WEAK_PASSWORD : Password should be at least 6 characters"
            )
        with self._lock:
            if email in self.accounts:
                raise AuthError("EMAIL_EXISTS")
            uid = uuid.uuid4().hex[:28]
            self.accounts[email] = (uid, self._hash(password))
        account = Account(uid=uid, email=email)
        self._set_current_user(account)
        return account

    def sign_in(self, email: str, password: str) -> Account:
        email = (email or "").strip().lower()
        with self._lock:
            entry = self.accounts.get(email)
        if entry is None or entry[1] != self._hash(password or ""):
            raise AuthError("INVALID_LOGIN_CREDENTIALS")
        account = Account(uid=entry[0], email=email)
        self._set_current_user(account)
        return account

    def sign_out(self) -> None:
        self._set_current_user(None)


class FirebaseAuthClient(_AuthStateNotifier):
    """
    Email/password accounts through the Firebase Identity Toolkit REST API.

    If a refresh token is supplied the previous session is resumed on
    construction, so the first listener sees the stored account.
    """

    IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
    SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

    def __init__(
        self,
        api_key: str,
        *,
        refresh_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        super().__init__()
        if not api_key:
            raise ValueError("FIREBASE_API_KEY is required for FirebaseAuthClient")
        self.api_key = api_key
        self._session = session or requests.Session()
        if refresh_token:
            try:
                self._current_user = self._resume(refresh_token)
                logger.info("Resumed stored session for %s", self._current_user.uid)
            except (AuthError, requests.RequestException) as e:
                logger.warning("Could not resume stored session: %s", e)

    def _post(self, url: str, payload: dict, *, form: bool = False) -> dict:
        kwargs = {"data": payload} if form else {"json": payload}
        response = self._session.post(
            url, params={"key": self.api_key}, timeout=REQUEST_TIMEOUT, **kwargs
        )
        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code >= 400:
            message = (body.get("error") or {}).get("message")
            if message:
                raise AuthError(message)
            response.raise_for_status()
        return body

    def _account_from_response(self, body: dict) -> Account:
        return Account(
            uid=body["localId"],
            email=body.get("email"),
            id_token=body.get("idToken"),
            refresh_token=body.get("refreshToken"),
        )

    def _resume(self, refresh_token: str) -> Account:
        tokens = self._post(
            self.SECURE_TOKEN_URL,
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            form=True,
        )
        lookup = self._post(
            f"{self.IDENTITY_TOOLKIT_URL}/accounts:lookup",
            {"idToken": tokens["id_token"]},
        )
        users = lookup.get("users") or [{}]
        return Account(
            uid=tokens["user_id"],
            email=users[0].get("email"),
            id_token=tokens["id_token"],
            refresh_token=tokens.get("refresh_token", refresh_token),
        )

    def sign_up(self, email: str, password: str) -> Account:
        body = self._post(
            f"{self.IDENTITY_TOOLKIT_URL}/accounts:signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        account = self._account_from_response(body)
        self._set_current_user(account)
        return account

    def sign_in(self, email: str, password: str) -> Account:
        body = self._post(
            f"{self.IDENTITY_TOOLKIT_URL}/accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        account = self._account_from_response(body)
        self._set_current_user(account)
        return account

    def sign_out(self) -> None:
        # Identity Toolkit sessions are token based; dropping them ends the session.
        self._set_current_user(None)
