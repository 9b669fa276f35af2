import pytest

from snowboard_doctor.auth import AuthChangeChannel, AuthChangeEvent
from snowboard_doctor.config import Settings
from snowboard_doctor.errors import AuthError
from snowboard_doctor.fingerprint import EnvironmentSignals
from snowboard_doctor.models.identity import AuthSession

WEBHOOK_URL = "https://hooks.test/webhook/snowboard"


class FakeProvider:
    """In-memory identity provider that records outbound calls."""

    def __init__(self, session=None):
        self.session = session
        self.changes = AuthChangeChannel()
        self.sign_out_calls = 0
        self.redirects = []
        self.fail_check = False
        self.fail_sign_in = False
        self.fail_sign_out = False

    async def check_existing_session(self):
        if self.fail_check:
            raise AuthError("provider unreachable")
        return self.session

    def subscribe(self, callback):
        return self.changes.subscribe(callback)

    async def start_federated_sign_in(self, redirect_to):
        if self.fail_sign_in:
            raise AuthError("provider unreachable")
        self.redirects.append(redirect_to)
        return f"https://id.test/authorize?provider=google&redirect_to={redirect_to}"

    async def complete_federated_sign_in(self, callback_url):
        if "access_token=" not in callback_url:
            raise AuthError("Redirect URL carries no access_token", code="invalid_callback")
        self.session = AuthSession(access_token="tok", email="rider@example.com", display_name="Rider")
        self.changes.publish(AuthChangeEvent.SIGNED_IN, self.session)
        return self.session

    async def sign_out(self):
        self.sign_out_calls += 1
        if self.fail_sign_out:
            raise AuthError("Failed to sign out")
        self.session = None
        self.changes.publish(AuthChangeEvent.SIGNED_OUT, None)


SIGNALS = EnvironmentSignals(user_agent="snowboard-doctor/0.1.0 (Linux)", screen="80x24",
                             timezone="Europe/Zurich", language="en-US")


async def fixed_signals():
    return SIGNALS


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def settings():
    return Settings(webhook_url=WEBHOOK_URL, resolve_public_ip=False)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setattr("snowboard_doctor.config.CONFIG_FILE", tmp_path / "config.json")
    for field in Settings.model_fields:
        monkeypatch.delenv(f"SNOWBOARD_DOCTOR_{field.upper()}", raising=False)
    return tmp_path / "config.json"


@pytest.fixture
def signals():
    return fixed_signals
