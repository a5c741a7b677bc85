# routerdesk/core/chat_session.py
"""
One streamed chat-completion exchange.

A StreamingChatSession appends an empty assistant message to the transcript,
opens the stream, and keeps that message equal to everything received so
far. Progress is handed back as an iterator of accumulated strings, so a UI
only ever needs the latest value it was given.

    Idle -> Sending -> Streaming -> Completed | Failed | Cancelled

stop() is the only method meant to be called from another thread.
"""
from __future__ import annotations
import logging, threading
from enum import Enum
from typing import Callable, Iterator, List, Optional
import requests

from routerdesk.infra.llm.base import ChatError, ProtocolError, SessionBusyError, StreamEvent, TransportError
from routerdesk.infra.llm.router_client import RouterClient
from routerdesk.infra.llm.sse import SSEDecoder
from .transcript import Transcript

log = logging.getLogger("chat")


class SessionState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.FAILED, SessionState.CANCELLED)

    @property
    def active(self) -> bool:
        return self in (SessionState.SENDING, SessionState.STREAMING)


StateCallback = Callable[["StreamingChatSession", SessionState], None]


class StreamingChatSession:
    def __init__(self, client: RouterClient, *, on_state: Optional[StateCallback] = None,
                 chunk_size: Optional[int] = None):
        self._client = client
        self._on_state = on_state
        self._chunk_size = chunk_size   # None: hand over bytes as they arrive
        self._lock = threading.Lock()
        self._response: Optional[requests.Response] = None
        self.state = SessionState.IDLE
        self.model_id: Optional[str] = None
        self.transcript: Optional[Transcript] = None
        self.content = ""
        self.error: Optional[ChatError] = None

    # ---------- API ----------
    def start(self, model_id: str, transcript: Transcript) -> Iterator[str]:
        """
        Validate, add the assistant placeholder, and return the stream.

        The request itself goes out on first iteration, so the returned
        iterator can be handed to a worker thread.
        """
        if not model_id or not model_id.strip():
            raise ValueError("model_id is required")
        last = transcript.last
        if last is None or last.role != "user" or not last.content.strip():
            raise ValueError("Transcript must end with a non-empty user message")
        with self._lock:
            if self.state is not SessionState.IDLE:
                raise RuntimeError(f"Session already used (state={self.state.value})")
            self.model_id = model_id
            self.transcript = transcript
            transcript.begin_assistant()
            self._set_state(SessionState.SENDING)
        try:
            self._notify(SessionState.SENDING)
        except Exception as exc:
            self._fail(ChatError(f"{type(exc).__name__}: {exc}"))
            raise
        return self._run()

    def run(self, model_id: str, transcript: Transcript) -> str:
        """Blocking form of start(): drain the stream, return the final content."""
        for _ in self.start(model_id, transcript):
            pass
        return self.content

    def stop(self) -> bool:
        """
        Cancel while sending or streaming. Partial content stays in the transcript.

        While SENDING there is no response to close yet: the state flips at
        once, but the worker stays blocked in requests.post until headers
        arrive or the client timeout expires, and only then returns without
        reading. A Qt broker running this session reports busy until then.
        """
        with self._lock:
            if not self.state.active:
                return False
            self._set_state(SessionState.CANCELLED)
            resp, self._response = self._response, None
        if resp is not None:
            # unblocks a pending read on the worker
            resp.close()
        log.info("Stream cancelled after %d chars", len(self.content))
        self._notify(SessionState.CANCELLED)
        return True

    @property
    def loading(self) -> bool:
        return self.state.active

    # ---------- internals ----------
    def _set_state(self, state: SessionState) -> None:
        # caller holds the lock
        log.debug("session %s -> %s", self.state.value, state.value)
        self.state = state

    def _notify(self, state: SessionState) -> None:
        if self._on_state:
            self._on_state(self, state)

    def _fail(self, error: ChatError) -> None:
        with self._lock:
            if self.state.terminal:
                return
            self.error = error
            self._set_state(SessionState.FAILED)
            self._response = None
            self.transcript.discard_placeholder()
        log.warning("Stream failed: %s", error)
        self._notify(SessionState.FAILED)

    def _apply(self, events: List[StreamEvent]) -> Optional[str]:
        """Fold decoded events into the accumulator. Returns the new value, or None if unchanged."""
        changed = False
        with self._lock:
            if self.state is not SessionState.STREAMING:
                return None
            for ev in events:
                if ev.type == "delta" and ev.text:
                    self.content += ev.text
                    changed = True
            if changed:
                self.transcript.replace_last_content(self.content)
        return self.content if changed else None

    def _run(self) -> Iterator[str]:
        resp: Optional[requests.Response] = None
        try:
            if self.state is not SessionState.SENDING:
                return
            try:
                resp = self._client.open_chat_stream(
                    model=self.model_id,
                    messages=self.transcript.request_messages(),
                )
            except (TransportError, ProtocolError) as exc:
                if self.state is SessionState.CANCELLED:
                    return
                self._fail(exc)
                raise

            with self._lock:
                if self.state is not SessionState.SENDING:
                    return
                self._response = resp
                self._set_state(SessionState.STREAMING)
            self._notify(SessionState.STREAMING)

            decoder = SSEDecoder()
            try:
                for chunk in resp.iter_content(chunk_size=self._chunk_size):
                    if self.state is not SessionState.STREAMING:
                        return
                    if not chunk:
                        continue
                    value = self._apply(decoder.feed(chunk))
                    if value is not None:
                        yield value
                if self.state is not SessionState.STREAMING:
                    return
                value = self._apply(decoder.flush())
                if value is not None:
                    yield value
            except (requests.RequestException, OSError) as exc:
                if self.state is SessionState.CANCELLED:
                    return
                err = TransportError(str(exc) or type(exc).__name__)
                self._fail(err)
                raise err from exc
            except (ValueError, AttributeError):
                # reading a response closed under us by stop()
                if self.state is SessionState.CANCELLED:
                    return
                raise

            with self._lock:
                if self.state is not SessionState.STREAMING:
                    return
                self._response = None
                self._set_state(SessionState.COMPLETED)
            if decoder.skipped:
                log.debug("Skipped %d undecodable frames", decoder.skipped)
            log.info("Stream completed: model=%s chars=%d", self.model_id, len(self.content))
            self._notify(SessionState.COMPLETED)
        except GeneratorExit:
            # consumer walked away mid-stream
            self.stop()
            raise
        except Exception as exc:
            # every exit leaves a terminal state, or the handle stays loading forever
            if not self.state.terminal:
                err = exc if isinstance(exc, ChatError) else ChatError(f"{type(exc).__name__}: {exc}")
                self._fail(err)
            raise
        finally:
            if resp is not None:
                resp.close()


class SessionHandle:
    """
    The one in-flight session a chat widget may own.

    begin() refuses a second session while the first is still sending or
    streaming; once it reaches a terminal state the slot is free again.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._session: Optional[StreamingChatSession] = None

    @property
    def session(self) -> Optional[StreamingChatSession]:
        return self._session

    @property
    def loading(self) -> bool:
        s = self._session
        return s is not None and s.loading

    def begin(self, session: StreamingChatSession) -> StreamingChatSession:
        with self._lock:
            if self.loading:
                raise SessionBusyError("A response is still streaming")
            self._session = session
        return session

    def stop(self) -> bool:
        s = self._session
        return s.stop() if s is not None else False
