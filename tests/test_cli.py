import json

import httpx
import pytest
from click.testing import CliRunner

from snowboard_doctor.auth import ConfigFileSessionStore
from snowboard_doctor.cli.main import main
from snowboard_doctor.client import AsyncSnowboardDoctor
from snowboard_doctor.models.identity import AuthSession


@pytest.fixture
def webhook_calls():
    return []


@pytest.fixture
def cli_client(monkeypatch, settings, provider, webhook_calls):
    def handler(request: httpx.Request) -> httpx.Response:
        webhook_calls.append(json.loads(request.content))
        return httpx.Response(200, json={"output": "Try a stiffer board for carving."})

    def factory():
        return AsyncSnowboardDoctor(settings=settings, provider=provider,
                                    transport=httpx.MockTransport(handler))

    monkeypatch.setattr("snowboard_doctor.cli.main._get_client", factory)
    return factory


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_status_signed_out():
    result = CliRunner().invoke(main, ["status"])
    assert result.exit_code == 0
    assert "Not signed in" in result.output


def test_status_signed_in():
    ConfigFileSessionStore().save(AuthSession(access_token="tok", email="rider@example.com"))
    result = CliRunner().invoke(main, ["status"])
    assert "rider@example.com" in result.output


def test_send_as_guest_json(cli_client, webhook_calls):
    result = CliRunner().invoke(main, ["send", "carving tips?", "--email", "rider@example.com", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert [m["content"] for m in payload["messages"]] == ["carving tips?", "Try a stiffer board for carving."]
    assert webhook_calls == [{"chatInput": "carving tips?", "sessionId": payload["session_id"]}]


def test_send_verified_uses_email_as_session(cli_client, provider, webhook_calls):
    provider.session = AuthSession(access_token="tok", email="rider@example.com")
    result = CliRunner().invoke(main, ["send", "hello"])

    assert result.exit_code == 0, result.output
    assert "Try a stiffer board for carving." in result.output
    assert webhook_calls[0]["sessionId"] == "rider@example.com"


def test_send_requires_identity(cli_client, webhook_calls):
    result = CliRunner().invoke(main, ["send", "hello"])
    assert result.exit_code == 1
    assert "Not signed in" in result.output
    assert webhook_calls == []


def test_interactive_guest_chat(cli_client, provider, webhook_calls):
    keystrokes = "\n".join(["2", "rider@example.com", "Rider", "   ", "hello", "/signout", "q"]) + "\n"
    result = CliRunner().invoke(main, ["chat"], input=keystrokes)

    assert result.exit_code == 0, result.output
    assert "Signed in as Rider" in result.output
    assert "Try a stiffer board for carving." in result.output
    assert [c["chatInput"] for c in webhook_calls] == ["hello"]
    assert provider.sign_out_calls == 0


def test_interactive_back_out_of_guest_entry(cli_client, webhook_calls):
    result = CliRunner().invoke(main, ["chat"], input="2\n\nq\n")
    assert result.exit_code == 0, result.output
    assert webhook_calls == []


def test_logout_verified(cli_client, provider):
    provider.session = AuthSession(access_token="tok", email="rider@example.com")
    result = CliRunner().invoke(main, ["logout"])
    assert result.exit_code == 0, result.output
    assert provider.sign_out_calls == 1
    assert "Signed out" in result.output
