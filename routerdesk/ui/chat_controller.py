# routerdesk/ui/chat_controller.py
from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional
from PyQt6.QtCore import QObject, Qt, pyqtSignal

from routerdesk.core.catalog import unique_names, pick_default
from routerdesk.core.chat_session import SessionHandle, SessionState, StreamingChatSession
from routerdesk.core.model_ranking import RankingScheme, DEFAULT_SCHEME
from routerdesk.core.transcript import Transcript
from routerdesk.infra.llm.base import ChatError
from routerdesk.infra.llm.router_client import RouterClient
from routerdesk.infra.llm.thread_broker import ThreadBroker

log = logging.getLogger("chat.ui")


class ChatController(QObject):
    """
    Glue between a chat tester view and the router.

    Responsibilities:
    - Own the transcript and the model picker's ranked choices.
    - Start / stop streamed replies via ThreadBroker, one at a time.
    - Tell the view what changed; the view never touches the session.
    """

    transcript_changed = pyqtSignal()
    content_updated    = pyqtSignal(str)    # full assistant text so far
    loading_changed    = pyqtSignal(bool)
    error_changed      = pyqtSignal(str)    # "" clears
    stream_finished    = pyqtSignal(str)    # SessionState value
    models_changed     = pyqtSignal(list)   # ranked model ids

    def __init__(self, client: RouterClient, *, model_name: Optional[str] = None,
                 scheme: RankingScheme = DEFAULT_SCHEME, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._client = client
        self._scheme = scheme
        self._model_name = model_name
        self._models: List[str] = []
        self._error = ""

        self.transcript = Transcript()
        self._handle = SessionHandle()
        self._ticket = -1

        self.broker = ThreadBroker(self)
        self.broker.job_token.connect(self._on_job_token, Qt.ConnectionType.QueuedConnection)
        self.broker.job_error.connect(self._on_job_error, Qt.ConnectionType.QueuedConnection)
        self.broker.job_finished.connect(self._on_job_finished, Qt.ConnectionType.QueuedConnection)

    # ---------- Models ----------
    def models(self) -> List[str]:
        return list(self._models)

    def model_name(self) -> Optional[str]:
        return self._model_name

    def set_model_name(self, model_name: str) -> None:
        """Takes effect on the next send; an active stream keeps its model."""
        self._model_name = model_name

    def set_catalog(self, entries: Iterable[Dict]) -> List[str]:
        self._models = unique_names(entries, self._scheme)
        self._model_name = pick_default(self._models, self._model_name)
        self.models_changed.emit(self.models())
        return self.models()

    def load_models(self) -> List[str]:
        try:
            entries = self._client.list_models()
        except ChatError as exc:
            log.warning("Model catalog unavailable: %s", exc)
            entries = []
        return self.set_catalog(entries)

    # ---------- Chat ----------
    @property
    def loading(self) -> bool:
        return self.broker.is_busy() or self._handle.loading

    @property
    def error(self) -> str:
        return self._error

    @property
    def last_state(self) -> Optional[SessionState]:
        s = self._handle.session
        return s.state if s is not None else None

    def can_send(self, text: str) -> bool:
        return bool(self._model_name) and bool((text or "").strip()) and not self.loading

    def send(self, text: str) -> bool:
        if not self.can_send(text):
            return False
        self._set_error("")
        self.transcript.add_user(text)
        session = self._handle.begin(StreamingChatSession(self._client))
        stream = session.start(self._model_name, self.transcript)
        self._ticket = self.broker.submit(stream, session.stop)
        self.transcript_changed.emit()
        self.loading_changed.emit(True)
        return True

    def stop(self) -> None:
        self.broker.stop_active()

    def reset(self) -> None:
        """New conversation. Ignored while a reply is streaming."""
        if self.loading:
            return
        self.transcript.clear()
        self._set_error("")
        self.transcript_changed.emit()

    def shutdown(self) -> None:
        self.broker.shutdown()

    # ---------- Slots ----------
    def _set_error(self, message: str) -> None:
        if message != self._error:
            self._error = message
            self.error_changed.emit(message)

    def _on_job_token(self, ticket: int, value: str):
        if ticket != self._ticket:
            return
        self.content_updated.emit(value)
        self.transcript_changed.emit()

    def _on_job_error(self, ticket: int, message: str):
        if ticket == self._ticket:
            self._set_error(message or "Request failed")

    def _on_job_finished(self, ticket: int, status: str):
        if ticket != self._ticket:
            return
        self._ticket = -1
        state = self.last_state
        self.transcript_changed.emit()
        self.loading_changed.emit(False)
        self.stream_finished.emit(state.value if state else status)
