"""Basic unit tests for the snowboard-doctor package."""

from snowboard_doctor import (
    AsyncSnowboardDoctor,
    SnowboardDoctor,
    SnowboardDoctorError,
    AuthError,
    HttpError,
    ConfigError,
    Author,
    IdentityKind,
    __version__,
)


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert SnowboardDoctor is not None
    assert AsyncSnowboardDoctor is not None


def test_error_hierarchy():
    assert issubclass(AuthError, SnowboardDoctorError)
    assert issubclass(HttpError, SnowboardDoctorError)
    assert issubclass(ConfigError, SnowboardDoctorError)


def test_error_attributes():
    err = SnowboardDoctorError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    http_err = HttpError("HTTP 500: boom", status_code=500)
    assert http_err.code == "http_error"
    assert http_err.status_code == 500
    assert http_err.details == {"status_code": 500}

    auth_err = AuthError("nope", code="not_configured")
    assert auth_err.code == "not_configured"


def test_enum_values():
    assert Author.USER == "user"
    assert Author.ASSISTANT == "assistant"
    assert IdentityKind.GUEST == "guest"
    assert IdentityKind.VERIFIED == "verified"
