"""
Identity models: who is chatting and the provider session backing them.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class IdentityKind(str, Enum):
    VERIFIED = "verified"
    GUEST = "guest"


class Identity(BaseModel):
    kind: IdentityKind
    email: str
    display_name: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def is_guest(self) -> bool:
        return self.kind == IdentityKind.GUEST


class AuthSession(BaseModel):
    """Provider session as persisted between runs."""
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_at: Optional[int] = None  # unix seconds
    user_id: Optional[str] = None
    email: Optional[str] = None
    display_name: Optional[str] = None
