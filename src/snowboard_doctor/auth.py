"""
Identity provider boundary.

`IdentityProvider` is what the resolver talks to. `SupabaseAuth` implements it
against a Supabase GoTrue instance with Google as the federated provider.
Sign-in is a redirect flow: the visitor opens the authorization URL, the
provider redirects to `redirect_to#access_token=...`, and that callback URL is
handed back through `complete_federated_sign_in`.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable, Optional, Protocol
from urllib.parse import parse_qs, urlencode, urlsplit

from snowboard_doctor.config import Settings, load_config, save_config
from snowboard_doctor.errors import AuthError
from snowboard_doctor.models.identity import AuthSession
from snowboard_doctor.transport.http import HttpClient

logger = logging.getLogger("snowboard_doctor.auth")


class AuthChangeEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


AuthChangeCallback = Callable[[AuthChangeEvent, Optional[AuthSession]], None]


class Subscription:
    """Handle for one auth-change listener. `unsubscribe()` is safe to call repeatedly."""

    def __init__(self, remove: Callable[[], None]):
        self._remove: Optional[Callable[[], None]] = remove

    @property
    def active(self) -> bool:
        return self._remove is not None

    def unsubscribe(self) -> None:
        remove, self._remove = self._remove, None
        if remove is not None:
            remove()


class AuthChangeChannel:
    def __init__(self) -> None:
        self._callbacks: list[AuthChangeCallback] = []

    def subscribe(self, callback: AuthChangeCallback) -> Subscription:
        self._callbacks.append(callback)

        def remove() -> None:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass
        return Subscription(remove)

    def publish(self, event: AuthChangeEvent, session: Optional[AuthSession]) -> None:
        for callback in list(self._callbacks):
            try:
                callback(event, session)
            except Exception:
                logger.exception(f"Auth change listener failed on {event.value}")

    def __len__(self) -> int:
        return len(self._callbacks)


class IdentityProvider(Protocol):
    async def check_existing_session(self) -> Optional[AuthSession]: ...

    def subscribe(self, callback: AuthChangeCallback) -> Subscription: ...

    async def start_federated_sign_in(self, redirect_to: str) -> str: ...

    async def complete_federated_sign_in(self, callback_url: str) -> AuthSession: ...

    async def sign_out(self) -> None: ...


class SessionStore(Protocol):
    def load(self) -> Optional[AuthSession]: ...

    def save(self, session: AuthSession) -> None: ...

    def clear(self) -> None: ...


class ConfigFileSessionStore:
    """Keeps the provider session under `auth_session` in the CLI config file."""

    KEY = "auth_session"

    def load(self) -> Optional[AuthSession]:
        raw = load_config().get(self.KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return AuthSession.model_validate(raw)
        except ValueError:
            logger.warning("Ignoring malformed stored auth session")
            return None

    def save(self, session: AuthSession) -> None:
        save_config({**load_config(), self.KEY: session.model_dump()})

    def clear(self) -> None:
        cfg = load_config()
        if cfg.pop(self.KEY, None) is not None:
            save_config(cfg)


def parse_callback_url(callback_url: str) -> AuthSession:
    """Read tokens from an implicit-flow redirect (`...#access_token=...`)."""
    parts = urlsplit(callback_url)
    params = parse_qs(parts.fragment or parts.query)
    if "error" in params:
        desc = params.get("error_description", params["error"])[0]
        raise AuthError(f"Sign-in was rejected: {desc}", code="sign_in_rejected")
    access_token = params.get("access_token", [None])[0]
    if not access_token:
        raise AuthError("Redirect URL carries no access_token", code="invalid_callback")
    expires_at: Optional[int] = None
    try:
        if "expires_at" in params:
            expires_at = int(params["expires_at"][0])
        elif "expires_in" in params:
            expires_at = int(time.time()) + int(params["expires_in"][0])
    except ValueError:
        raise AuthError("Redirect URL carries a malformed expiry", code="invalid_callback")
    return AuthSession(
        access_token=access_token,
        refresh_token=params.get("refresh_token", [None])[0],
        token_type=params.get("token_type", ["bearer"])[0],
        expires_at=expires_at,
    )


class SupabaseAuth:
    def __init__(
        self,
        settings: Settings,
        store: Optional[SessionStore] = None,
        http: Optional[HttpClient] = None,
    ):
        self._settings = settings
        self._store = store or ConfigFileSessionStore()
        self._http = http or HttpClient(
            base_url=f"{settings.supabase_url.rstrip('/')}/auth/v1",
            headers={"apikey": settings.supabase_anon_key},
        )
        self._changes = AuthChangeChannel()

    def _ensure_configured(self) -> None:
        if not self._settings.has_identity_provider:
            raise AuthError("Identity provider is not configured", code="not_configured")

    def subscribe(self, callback: AuthChangeCallback) -> Subscription:
        return self._changes.subscribe(callback)

    async def _fetch_user(self, session: AuthSession) -> AuthSession:
        self._http.set_token(session.access_token)
        user: dict[str, Any] = await self._http.get("/user")
        metadata = user.get("user_metadata") or {}
        return session.model_copy(update={
            "user_id": user.get("id"),
            "email": user.get("email"),
            "display_name": metadata.get("full_name") or metadata.get("name"),
        })

    async def check_existing_session(self) -> Optional[AuthSession]:
        """Return the stored session if the provider still accepts it."""
        if not self._settings.has_identity_provider:
            return None
        session = self._store.load()
        if session is None:
            return None
        if session.expires_at is not None and session.expires_at <= time.time():
            logger.info("Stored session expired")
            self._store.clear()
            return None
        try:
            return await self._fetch_user(session)
        except Exception as e:
            raise AuthError(f"Failed to check existing session: {e}")

    async def start_federated_sign_in(self, redirect_to: str) -> str:
        """Build the Google authorization URL. Nothing is sent until the visitor opens it."""
        self._ensure_configured()
        query = urlencode({"provider": "google", "redirect_to": redirect_to})
        return f"{self._http.base_url}/authorize?{query}"

    async def complete_federated_sign_in(self, callback_url: str) -> AuthSession:
        self._ensure_configured()
        session = parse_callback_url(callback_url)
        try:
            session = await self._fetch_user(session)
        except Exception as e:
            raise AuthError(f"Failed to complete sign-in: {e}")
        self._store.save(session)
        self._changes.publish(AuthChangeEvent.SIGNED_IN, session)
        return session

    async def sign_out(self) -> None:
        session = self._store.load()
        try:
            if session is not None and self._settings.has_identity_provider:
                self._http.set_token(session.access_token)
                await self._http.post("/logout")
        except Exception as e:
            raise AuthError(f"Failed to sign out: {e}")
        finally:
            self._http.set_token(None)
        self._store.clear()
        self._changes.publish(AuthChangeEvent.SIGNED_OUT, None)

    async def close(self) -> None:
        await self._http.close()
