# routerdesk/infra/llm/base.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional

ROLES = ("user", "assistant", "system")

@dataclass
class ChatMessage:
    role: str   # "user" | "assistant" | "system"
    content: str = ""

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Unknown message role: {self.role!r}")

    def to_wire(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content or ""}


@dataclass
class StreamEvent:
    type: str               # "delta" | "done"
    text: str = ""


# ---------- Errors ----------
class ChatError(Exception):
    """Base for every failure the chat layer surfaces."""


class TransportError(ChatError):
    """Network, DNS or TLS failure, before or during the body read."""


class ProtocolError(ChatError):
    """Server answered, but not with a readable success stream."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(ChatError):
    """A single data: line could not be parsed. Never leaves the decoder."""


class SessionBusyError(ChatError):
    """A stream is already active on this handle."""
