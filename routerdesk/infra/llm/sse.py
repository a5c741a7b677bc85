# routerdesk/infra/llm/sse.py
from __future__ import annotations
import codecs, json, logging
from typing import Any, List, Optional
from .base import StreamEvent, DecodeError

log = logging.getLogger("chat.sse")

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def extract_delta(frame: Any) -> str:
    """Return choices[0].delta.content from an OpenAI-style chunk, or ""."""
    if not isinstance(frame, dict):
        return ""
    choices = frame.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    delta = first.get("delta") if isinstance(first, dict) else None
    content = delta.get("content") if isinstance(delta, dict) else None
    return content if isinstance(content, str) else ""


def parse_line(line: str) -> Optional[StreamEvent]:
    """
    Decode one line of the stream.

    Returns None for blank / non-data lines and for frames without content,
    a "done" event for the [DONE] sentinel, and a "delta" event otherwise.
    Raises DecodeError when the payload is not JSON.
    """
    trimmed = line.strip()
    if not trimmed.startswith(DATA_PREFIX):
        return None
    payload = trimmed[len(DATA_PREFIX):]
    if payload == DONE_SENTINEL:
        return StreamEvent(type="done")
    try:
        frame = json.loads(payload)
    except ValueError as exc:
        raise DecodeError(str(exc)) from exc
    text = extract_delta(frame)
    if not text:
        return None
    return StreamEvent(type="delta", text=text)


class SSEDecoder:
    """
    Incremental decoder for newline-delimited `data:` frames.

    Bytes go through an incremental UTF-8 decoder, so a multi-byte character
    may straddle two reads; text is split on newlines and the unterminated
    tail is carried into the next feed().
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""
        self.skipped = 0   # malformed lines dropped so far

    def feed(self, chunk: bytes) -> List[StreamEvent]:
        self._buffer += self._decoder.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        return self._process(lines)

    def flush(self) -> List[StreamEvent]:
        """Decode whatever is left once the body has ended."""
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return self._process([tail]) if tail.strip() else []

    def reset(self) -> None:
        self._decoder.reset()
        self._buffer = ""

    def _process(self, lines: List[str]) -> List[StreamEvent]:
        events: List[StreamEvent] = []
        for line in lines:
            try:
                ev = parse_line(line)
            except DecodeError as exc:
                # partial frames are routine on chunked transports
                self.skipped += 1
                log.debug("Skipping undecodable frame (%s): %.80r", exc, line)
                continue
            if ev is None:
                continue
            events.append(ev)
            if ev.type == "done":
                # [DONE] ends this chunk; anything after it is dropped
                self._buffer = ""
                break
        return events
