"""
Session fingerprinting for guest visitors.

A guest has no account handle, so the conversation is keyed by a token derived
from the local environment plus the creation time. Tokens are not secret and
not guaranteed unique: two runs with identical signals in the same millisecond
collide.
"""

import base64
import hashlib
import locale
import logging
import os
import platform
import shutil
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from snowboard_doctor.config import DEFAULT_IP_ECHO_URL
from snowboard_doctor.transport.http import USER_AGENT, HttpClient

logger = logging.getLogger("snowboard_doctor.fingerprint")

SESSION_ID_LENGTH = 32


class EnvironmentSignals(BaseModel):
    user_agent: str
    screen: str
    timezone: str
    language: str = ""
    public_ip: Optional[str] = None

    def fingerprint(self, timestamp_ms: int) -> str:
        parts = [self.user_agent, self.screen, self.timezone, self.language]
        if self.public_ip:
            parts.append(self.public_ip)
        parts.append(str(timestamp_ms))
        return "-".join(parts)


def generate_session_id(
    signals: EnvironmentSignals,
    timestamp_ms: Optional[int] = None,
    length: int = SESSION_ID_LENGTH,
) -> str:
    """Derive a fixed-width session token from environment signals.

    Same signals and timestamp give the same token. The fingerprint is hashed
    before encoding so that every signal, the trailing timestamp included,
    affects the truncated prefix.
    """
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    digest = hashlib.sha256(signals.fingerprint(timestamp_ms).encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")[:length]


def local_timezone_name() -> str:
    """Best-effort IANA zone name (e.g. "Europe/Zurich")."""
    tz = os.environ.get("TZ")
    if tz:
        return tz.lstrip(":")
    localtime = Path("/etc/localtime")
    try:
        target = str(localtime.resolve())
        if "zoneinfo/" in target:
            return target.split("zoneinfo/", 1)[1]
    except OSError:
        pass
    return datetime.now().astimezone().tzname() or "UTC"


def _language() -> str:
    lang = locale.getlocale()[0]
    if lang:
        return lang.replace("_", "-")
    return os.environ.get("LANG", "").split(".")[0].replace("_", "-")


async def fetch_public_ip(http: HttpClient, url: str = DEFAULT_IP_ECHO_URL) -> Optional[str]:
    """Ask an IP echo service for our public address. None on any failure."""
    try:
        data = await http.get(url, authenticated=False)
    except Exception as e:
        logger.warning(f"Public IP lookup failed, continuing without it: {e}")
        return None
    ip = data.get("ip") if isinstance(data, dict) else None
    return ip if isinstance(ip, str) and ip else None


async def collect_environment_signals(
    resolve_ip: bool = True,
    ip_echo_url: str = DEFAULT_IP_ECHO_URL,
    http: Optional[HttpClient] = None,
) -> EnvironmentSignals:
    size = shutil.get_terminal_size()
    public_ip = None
    if resolve_ip:
        client = http or HttpClient(timeout=5.0)
        try:
            public_ip = await fetch_public_ip(client, ip_echo_url)
        finally:
            if http is None:
                await client.close()
    return EnvironmentSignals(
        user_agent=f"{USER_AGENT} ({platform.platform()})",
        screen=f"{size.columns}x{size.lines}",
        timezone=local_timezone_name(),
        language=_language(),
        public_ip=public_ip,
    )
