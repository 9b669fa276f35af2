"""
Conversation channel: owns the message log and relays each user message to the webhook.

One request at a time: `submit` is ignored while a reply is pending. Every
accepted submit ends with exactly one assistant message, either the parsed
reply or a fixed apology when the request fails.
"""

import logging
import time
from typing import Any, Callable, Optional

from snowboard_doctor.models.message import Author, ConversationState, Message, Notification
from snowboard_doctor.response import FALLBACK_REPLY, classify_response, extract_reply
from snowboard_doctor.transport.http import HttpClient, basic_auth_header

logger = logging.getLogger("snowboard_doctor.chat")

ERROR_REPLY = "Sorry, I encountered an error. Please try again."
CONNECTION_ERROR = Notification(
    title="Connection Error",
    description="Failed to send message. Please try again.",
    variant="destructive",
)

MessageListener = Callable[[Message], None]
NotificationListener = Callable[[Notification], None]


class WebhookEndpoint:
    """POST target for chat turns: `{chatInput, sessionId}` with Basic auth."""

    def __init__(self, http: HttpClient, url: str, username: str, password: str):
        self._http = http
        self._url = url
        self._authorization = basic_auth_header(username, password)

    @property
    def url(self) -> str:
        return self._url

    async def send(self, chat_input: str, session_id: str) -> str:
        return await self._http.post_text(
            self._url,
            {"chatInput": chat_input, "sessionId": session_id},
            headers={"Authorization": self._authorization},
        )


class ConversationChannel:
    def __init__(self, endpoint: WebhookEndpoint, session_token: str, fallback_reply: str = FALLBACK_REPLY):
        self._endpoint = endpoint
        self._session_token = session_token
        self._fallback_reply = fallback_reply
        self._state = ConversationState()
        self._last_id = 0
        self._message_listeners: list[MessageListener] = []
        self._notification_listeners: list[NotificationListener] = []
        self.input_buffer = ""

    @property
    def session_token(self) -> str:
        return self._session_token

    @property
    def pending(self) -> bool:
        return self._state.pending

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._state.messages)

    @property
    def state(self) -> ConversationState:
        return self._state.model_copy(deep=True)

    def add_listener(self, listener: MessageListener) -> Callable[[], None]:
        """Called with each appended message, in append order. Returns a remover."""
        return self._add(self._message_listeners, listener)

    def add_notification_listener(self, listener: NotificationListener) -> Callable[[], None]:
        return self._add(self._notification_listeners, listener)

    @staticmethod
    def _add(listeners: list[Any], listener: Any) -> Callable[[], None]:
        listeners.append(listener)

        def remove() -> None:
            try:
                listeners.remove(listener)
            except ValueError:
                pass
        return remove

    def _next_id(self) -> str:
        # Millisecond clock, bumped when two messages land in the same tick.
        self._last_id = max(time.time_ns() // 1_000_000, self._last_id + 1)
        return str(self._last_id)

    def _append(self, content: str, author: Author) -> Message:
        message = Message(id=self._next_id(), content=content, author=author)
        self._state.messages.append(message)
        for listener in list(self._message_listeners):
            listener(message)
        return message

    def _notify(self, notification: Notification) -> None:
        for listener in list(self._notification_listeners):
            try:
                listener(notification)
            except Exception:
                logger.exception(f"Notification listener failed on {notification.title!r}")

    async def submit(self, text: Optional[str] = None) -> Optional[Message]:
        """Send `text` (or the input buffer). Returns the assistant reply, or None if ignored."""
        if text is None:
            text = self.input_buffer
        if not text.strip() or self._state.pending:
            return None

        self._state.pending = True
        try:
            user_message = self._append(text.strip(), Author.USER)
            self.input_buffer = ""
            try:
                body = await self._endpoint.send(user_message.content, self._session_token)
                reply = extract_reply(classify_response(body), self._fallback_reply)
            except Exception as e:
                logger.error(f"Error sending message: {e}")
                self._notify(CONNECTION_ERROR)
                reply = ERROR_REPLY
            return self._append(reply, Author.ASSISTANT)
        finally:
            self._state.pending = False
