"""
snowboard-doctor — terminal client for the Snowboard Doctor assistant.

Signs the visitor in (Google via Supabase, or a local guest identity) and
relays chat turns to the Snowboard Doctor webhook.
"""

from snowboard_doctor._version import __version__
from snowboard_doctor.client import SnowboardDoctor, AsyncSnowboardDoctor
from snowboard_doctor.auth import AuthChangeEvent, SupabaseAuth
from snowboard_doctor.chat import ConversationChannel, WebhookEndpoint
from snowboard_doctor.config import Settings, load_settings
from snowboard_doctor.identity import AuthState, IdentityResolver, SessionContext
from snowboard_doctor.errors import SnowboardDoctorError, AuthError, HttpError, ConfigError
from snowboard_doctor.models import Author, Identity, IdentityKind, Message, Notification

__all__ = [
    "__version__",
    "SnowboardDoctor",
    "AsyncSnowboardDoctor",
    "AuthChangeEvent",
    "SupabaseAuth",
    "ConversationChannel",
    "WebhookEndpoint",
    "Settings",
    "load_settings",
    "AuthState",
    "IdentityResolver",
    "SessionContext",
    "SnowboardDoctorError",
    "AuthError",
    "HttpError",
    "ConfigError",
    "Author",
    "Identity",
    "IdentityKind",
    "Message",
    "Notification",
]
