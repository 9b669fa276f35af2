"""
Snowboard Doctor error types.
"""

from typing import Any, Optional


class SnowboardDoctorError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class AuthError(SnowboardDoctorError):
    def __init__(self, message: str, code: str = "auth_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class HttpError(SnowboardDoctorError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__("http_error", message, {"status_code": status_code} if status_code else None)
        self.status_code = status_code


class ConfigError(SnowboardDoctorError):
    def __init__(self, message: str):
        super().__init__("config_error", message)
