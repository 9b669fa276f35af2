"""
Identity resolver. Decides who is chatting and which session token keys the conversation.

LOADING -> UNAUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED
                           -> GUEST_ENTRY    -> AUTHENTICATED
AUTHENTICATED -> UNAUTHENTICATED on sign-out.

Provider failures are logged and leave the state where it was; the visitor can
try again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from snowboard_doctor.auth import AuthChangeEvent, IdentityProvider, Subscription
from snowboard_doctor.fingerprint import EnvironmentSignals, generate_session_id
from snowboard_doctor.models.identity import AuthSession, Identity, IdentityKind

logger = logging.getLogger("snowboard_doctor.identity")

SignalsFactory = Callable[[], Awaitable[EnvironmentSignals]]


class AuthState(str, Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    GUEST_ENTRY = "guest_entry"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class SessionContext:
    identity: Identity
    session_token: str


def _verified_identity(session: AuthSession) -> Optional[Identity]:
    if not session.email:
        return None
    return Identity(kind=IdentityKind.VERIFIED, email=session.email, display_name=session.display_name)


class IdentityResolver:
    def __init__(
        self,
        provider: IdentityProvider,
        signals: SignalsFactory,
        redirect_url: str = "",
    ):
        self._provider = provider
        self._signals = signals
        self._redirect_url = redirect_url
        self._state = AuthState.LOADING
        self._context: Optional[SessionContext] = None
        self._subscription: Optional[Subscription] = None
        self._listeners: list[Callable[[AuthState], None]] = []

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def context(self) -> Optional[SessionContext]:
        return self._context if self._state == AuthState.AUTHENTICATED else None

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def add_listener(self, listener: Callable[[AuthState], None]) -> Callable[[], None]:
        """Called with the new state on every transition. Returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass
        return remove

    def _transition(self, state: AuthState) -> None:
        if state == self._state:
            return
        logger.debug(f"Auth state {self._state.value} -> {state.value}")
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _authenticate(self, context: SessionContext) -> None:
        self._context = context
        self._transition(AuthState.AUTHENTICATED)

    def _clear(self) -> None:
        self._context = None
        self._transition(AuthState.UNAUTHENTICATED)

    def start(self) -> None:
        """Create the single auth-change subscription."""
        if self._subscription is None:
            self._subscription = self._provider.subscribe(self._on_auth_change)

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()

    def _on_auth_change(self, event: AuthChangeEvent, session: Optional[AuthSession]) -> None:
        if event == AuthChangeEvent.SIGNED_IN and session is not None:
            identity = _verified_identity(session)
            if identity is not None:
                self._authenticate(SessionContext(identity=identity, session_token=identity.email))
        elif event == AuthChangeEvent.SIGNED_OUT:
            if self._context is None or not self._context.identity.is_guest:
                self._clear()

    async def resolve_identity(self) -> Optional[SessionContext]:
        """Look for an existing verified session; fall through to the sign-in options."""
        self.start()
        if self._state != AuthState.LOADING:
            return self.context
        try:
            session = await self._provider.check_existing_session()
        except Exception as e:
            logger.error(f"Error checking existing session: {e}")
            session = None
        identity = _verified_identity(session) if session is not None else None
        if identity is not None:
            self._authenticate(SessionContext(identity=identity, session_token=identity.email))
        else:
            self._clear()
        return self.context

    async def begin_federated_sign_in(self, redirect_to: Optional[str] = None) -> Optional[str]:
        """Return the authorization URL the visitor must open, or None on provider error."""
        try:
            url = await self._provider.start_federated_sign_in(redirect_to or self._redirect_url)
        except Exception as e:
            logger.error(f"Error signing in: {e}")
            return None
        self._transition(AuthState.AUTHENTICATING)
        return url

    async def complete_federated_sign_in(self, callback_url: str) -> Optional[SessionContext]:
        try:
            await self._provider.complete_federated_sign_in(callback_url)
        except Exception as e:
            logger.error(f"Error signing in: {e}")
            return None
        # The provider's SIGNED_IN event normally lands first; re-check in case it did not.
        if self._state != AuthState.AUTHENTICATED:
            try:
                session = await self._provider.check_existing_session()
            except Exception as e:
                logger.error(f"Error checking existing session: {e}")
                return None
            identity = _verified_identity(session) if session is not None else None
            if identity is not None:
                self._authenticate(SessionContext(identity=identity, session_token=identity.email))
        return self.context

    def begin_guest_entry(self) -> None:
        if self._state == AuthState.UNAUTHENTICATED:
            self._transition(AuthState.GUEST_ENTRY)

    def cancel(self) -> None:
        """Back out of the Google or guest path to the sign-in options."""
        if self._state in (AuthState.GUEST_ENTRY, AuthState.AUTHENTICATING):
            self._transition(AuthState.UNAUTHENTICATED)

    async def sign_in_as_guest(self, email: str, display_name: Optional[str] = None) -> Optional[SessionContext]:
        if not email.strip():
            return None
        identity = Identity(
            kind=IdentityKind.GUEST,
            email=email.strip(),
            display_name=(display_name or "").strip() or None,
        )
        token = generate_session_id(await self._signals())
        self._authenticate(SessionContext(identity=identity, session_token=token))
        return self.context

    async def sign_out(self) -> None:
        context = self._context
        if context is None:
            return
        if context.identity.is_guest:
            self._clear()
            return
        try:
            await self._provider.sign_out()
        except Exception as e:
            logger.error(f"Error signing out: {e}")
            return
        self._clear()
