from snowboard_doctor.models.identity import AuthSession, Identity, IdentityKind
from snowboard_doctor.models.message import Author, ConversationState, Message, Notification

__all__ = [
    "AuthSession",
    "Identity",
    "IdentityKind",
    "Author",
    "ConversationState",
    "Message",
    "Notification",
]
