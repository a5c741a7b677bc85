# routerdesk/core/transcript.py
from __future__ import annotations
from typing import Iterable, Iterator, List, Optional
from routerdesk.infra.llm.base import ChatMessage


class Transcript:
    """
    Ordered conversation handed to a chat session.

    Callers only append. A session may add one empty assistant placeholder
    at the tail, replace its content while streaming, and drop it again if
    the request fails before anything arrived.
    """

    def __init__(self, messages: Optional[Iterable[ChatMessage]] = None):
        self._messages: List[ChatMessage] = list(messages or [])

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(list(self._messages))

    def __getitem__(self, index: int) -> ChatMessage:
        return self._messages[index]

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    @property
    def last(self) -> Optional[ChatMessage]:
        return self._messages[-1] if self._messages else None

    def append(self, role: str, content: str) -> ChatMessage:
        msg = ChatMessage(role=role, content=content)
        self._messages.append(msg)
        return msg

    def add_user(self, text: str) -> ChatMessage:
        return self.append("user", text)

    def add_system(self, text: str) -> ChatMessage:
        return self.append("system", text)

    def has_placeholder(self) -> bool:
        last = self.last
        return last is not None and last.role == "assistant" and not last.content

    # ---- session-only mutators ----
    def begin_assistant(self) -> ChatMessage:
        if self.has_placeholder():
            raise RuntimeError("Transcript already ends with an empty assistant message")
        return self.append("assistant", "")

    def replace_last_content(self, content: str) -> None:
        last = self.last
        if last is None or last.role != "assistant":
            raise RuntimeError("No assistant message to update")
        last.content = content

    def discard_placeholder(self) -> bool:
        if self.has_placeholder():
            self._messages.pop()
            return True
        return False

    def clear(self) -> None:
        self._messages.clear()

    def request_messages(self) -> List[ChatMessage]:
        """What goes to the router: everything but a trailing empty placeholder."""
        if self.has_placeholder():
            return self._messages[:-1]
        return list(self._messages)
