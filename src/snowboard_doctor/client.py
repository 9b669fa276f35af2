"""
AsyncSnowboardDoctor / SnowboardDoctor — main SDK clients.
"""

import asyncio
from typing import Any, Optional

import httpx

from snowboard_doctor.auth import IdentityProvider, SupabaseAuth
from snowboard_doctor.chat import ConversationChannel, WebhookEndpoint
from snowboard_doctor.config import Settings, load_settings
from snowboard_doctor.errors import AuthError
from snowboard_doctor.fingerprint import EnvironmentSignals, collect_environment_signals
from snowboard_doctor.identity import IdentityResolver, SessionContext
from snowboard_doctor.models.message import Message
from snowboard_doctor.transport.http import HttpClient


class AsyncSnowboardDoctor:
    """Async client (primary)."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        provider: Optional[IdentityProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **overrides: Any,
    ):
        self.settings = settings or load_settings(**overrides)
        self.http = HttpClient(timeout=None, transport=transport)
        self._ip_http = HttpClient(timeout=5.0, transport=transport)
        self.provider = provider or SupabaseAuth(self.settings)
        self.identity = IdentityResolver(
            self.provider, self._collect_signals, redirect_url=self.settings.redirect_url,
        )
        self.endpoint = WebhookEndpoint(
            self.http,
            self.settings.webhook_url,
            self.settings.webhook_username,
            self.settings.webhook_password,
        )
        self._channel: Optional[ConversationChannel] = None
        self._channel_token: Optional[str] = None

    async def _collect_signals(self) -> EnvironmentSignals:
        return await collect_environment_signals(
            resolve_ip=self.settings.resolve_public_ip,
            ip_echo_url=self.settings.ip_echo_url,
            http=self._ip_http,
        )

    @property
    def context(self) -> Optional[SessionContext]:
        return self.identity.context

    async def start(self) -> Optional[SessionContext]:
        """Subscribe to auth changes and resolve any existing session."""
        return await self.identity.resolve_identity()

    async def sign_in_as_guest(self, email: str, display_name: Optional[str] = None) -> Optional[SessionContext]:
        return await self.identity.sign_in_as_guest(email, display_name)

    async def sign_out(self) -> None:
        await self.identity.sign_out()
        self._channel = None
        self._channel_token = None

    def channel(self) -> ConversationChannel:
        """Conversation for the current identity. A new identity gets a fresh log."""
        context = self.identity.context
        if context is None:
            raise AuthError("Not signed in. Resolve an identity first.", code="unauthenticated")
        if self._channel is None or self._channel_token != context.session_token:
            self._channel = ConversationChannel(self.endpoint, context.session_token)
            self._channel_token = context.session_token
        return self._channel

    async def send(self, text: str) -> Optional[Message]:
        """Submit one message on the current channel and return the reply."""
        return await self.channel().submit(text)

    async def close(self) -> None:
        self.identity.close()
        await self.http.close()
        await self._ip_http.close()
        if isinstance(self.provider, SupabaseAuth):
            await self.provider.close()


class SnowboardDoctor:
    """Sync wrapper around AsyncSnowboardDoctor. Runs the event loop internally."""

    def __init__(self, **kwargs: Any):
        self._loop = asyncio.new_event_loop()
        self._async = AsyncSnowboardDoctor(**kwargs)

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def identity(self) -> IdentityResolver:
        return self._async.identity

    @property
    def context(self) -> Optional[SessionContext]:
        return self._async.context

    def start(self) -> Optional[SessionContext]:
        return self._run(self._async.start())

    def sign_in_as_guest(self, email: str, display_name: Optional[str] = None) -> Optional[SessionContext]:
        return self._run(self._async.sign_in_as_guest(email, display_name))

    def sign_out(self) -> None:
        self._run(self._async.sign_out())

    def channel(self) -> ConversationChannel:
        return self._async.channel()

    def send(self, text: str) -> Optional[Message]:
        return self._run(self._async.send(text))

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()
