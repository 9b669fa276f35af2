import httpx
import pytest

from snowboard_doctor import AsyncSnowboardDoctor, AuthError, AuthState, SnowboardDoctor
from snowboard_doctor.models.identity import AuthSession


def webhook(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"output": "Stance width should match your shoulders."})


class TestAsyncClient:
    @pytest.mark.asyncio
    async def test_guest_conversation(self, settings, provider):
        client = AsyncSnowboardDoctor(settings=settings, provider=provider,
                                      transport=httpx.MockTransport(webhook))
        assert await client.start() is None
        assert client.identity.state == AuthState.UNAUTHENTICATED

        await client.sign_in_as_guest("rider@example.com", "Rider")
        reply = await client.send("How wide should my stance be?")

        assert reply.content == "Stance width should match your shoulders."
        assert client.channel().session_token == client.context.session_token
        await client.close()
        assert not client.identity.subscribed

    @pytest.mark.asyncio
    async def test_channel_requires_identity(self, settings, provider):
        client = AsyncSnowboardDoctor(settings=settings, provider=provider,
                                      transport=httpx.MockTransport(webhook))
        await client.start()
        with pytest.raises(AuthError):
            client.channel()
        await client.close()

    @pytest.mark.asyncio
    async def test_sign_out_starts_fresh_conversation(self, settings, provider):
        provider.session = AuthSession(access_token="tok", email="rider@example.com")
        client = AsyncSnowboardDoctor(settings=settings, provider=provider,
                                      transport=httpx.MockTransport(webhook))
        await client.start()
        await client.send("hello")
        assert len(client.channel().messages) == 2

        await client.sign_out()
        assert provider.sign_out_calls == 1
        await client.sign_in_as_guest("friend@example.com")

        assert client.channel().messages == ()
        assert client.channel().session_token != "rider@example.com"
        await client.close()


def test_sync_client(settings, provider):
    client = SnowboardDoctor(settings=settings, provider=provider, transport=httpx.MockTransport(webhook))
    client.start()
    client.sign_in_as_guest("rider@example.com")

    reply = client.send("hello")

    assert reply.content == "Stance width should match your shoulders."
    assert client.context.identity.email == "rider@example.com"
    client.close()
