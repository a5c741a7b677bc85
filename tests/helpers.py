"""Stand-ins for the router's HTTP layer used across the test modules."""
import json
import threading
from typing import List, Optional

import requests

from routerdesk.infra.llm.base import ChatMessage


def frame(text: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"content": text}}]}) + "\n"


HELLO_STREAM = (frame("Hel") + "\n" + frame("lo") + "\n" + "data: [DONE]\n\n").encode("utf-8")


class FakeResponse:
    """Enough of requests.Response for StreamingChatSession."""

    def __init__(self, chunks: List[bytes], fail_after: Optional[int] = None):
        self.chunks = list(chunks)
        self.fail_after = fail_after
        self.raw = object()
        self.closed = False

    def iter_content(self, chunk_size=None):
        for i, chunk in enumerate(self.chunks):
            if self.fail_after is not None and i >= self.fail_after:
                raise requests.ConnectionError("connection reset by peer")
            yield chunk

    def close(self):
        self.closed = True


class BlockingResponse(FakeResponse):
    """Delivers the first chunk, then waits until released or closed."""

    def __init__(self, chunks: List[bytes]):
        super().__init__(chunks)
        self.release = threading.Event()

    def iter_content(self, chunk_size=None):
        yield self.chunks[0]
        self.release.wait(5)
        if self.closed:
            raise ValueError("I/O operation on closed file.")
        for chunk in self.chunks[1:]:
            yield chunk

    def close(self):
        self.closed = True
        self.release.set()


class FakeClient:
    """RouterClient double: hands out canned responses or raises."""

    base_url = "http://router.test"

    def __init__(self, response=None, error: Optional[Exception] = None, catalog=None, providers=None):
        self.response = response
        self.error = error
        self.catalog = catalog or []
        self.providers = providers or []
        self.calls: List[dict] = []

    def open_chat_stream(self, *, model: str, messages: List[ChatMessage]):
        self.calls.append({"model": model, "messages": [m.to_wire() for m in messages]})
        if self.error is not None:
            raise self.error
        return self.response

    def list_models(self):
        if self.error is not None:
            raise self.error
        return list(self.catalog)

    def list_providers(self):
        if self.error is not None:
            raise self.error
        return list(self.providers)

    def close(self):
        self.closed = True


def split_at(data: bytes, *points: int) -> List[bytes]:
    edges = [0, *points, len(data)]
    return [data[a:b] for a, b in zip(edges, edges[1:])]
