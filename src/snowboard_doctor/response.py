"""
Webhook reply parsing.

The webhook answers in one of two shapes:
- an HTML wrapper (`<iframe srcdoc="...">`) whose srcdoc attribute holds the reply
- a JSON object `{"output": "..."}` (or a list of such items)

`classify_response` maps any body onto a shape; `extract_reply` turns a shape into
display text.
"""

import html
import json
import re
from dataclasses import dataclass
from typing import Optional, Union

FALLBACK_REPLY = "I received your message!"

_SRCDOC_RE = re.compile(r'srcdoc="([^"]+)"')


@dataclass(frozen=True)
class EmbeddedDocument:
    raw: str
    srcdoc: Optional[str]


@dataclass(frozen=True)
class Structured:
    output: str


@dataclass(frozen=True)
class Unrecognized:
    raw: str


ResponseShape = Union[EmbeddedDocument, Structured, Unrecognized]


def _structured_output(data: object) -> Optional[str]:
    if isinstance(data, list) and data:
        data = data[0]
    if isinstance(data, dict) and isinstance(data.get("output"), str):
        return data["output"]
    return None


def classify_response(body: Union[bytes, str]) -> ResponseShape:
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")

    try:
        output = _structured_output(json.loads(body))
    except ValueError:
        output = None
    if output is not None:
        return Structured(output=output)

    if "<iframe" in body and "srcdoc=" in body:
        match = _SRCDOC_RE.search(body)
        return EmbeddedDocument(raw=body, srcdoc=html.unescape(match.group(1)) if match else None)

    return Unrecognized(raw=body)


def extract_reply(shape: ResponseShape, fallback: str = FALLBACK_REPLY) -> str:
    if isinstance(shape, Structured):
        text = shape.output
    elif isinstance(shape, EmbeddedDocument):
        text = shape.srcdoc or ""
    else:
        text = ""
    return text if text.strip() else fallback
