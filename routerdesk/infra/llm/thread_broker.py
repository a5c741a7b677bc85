# routerdesk/infra/llm/thread_broker.py
from __future__ import annotations
from dataclasses import dataclass
from itertools import count
from typing import Callable, Iterator, Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal, Qt

from .base import ChatError, SessionBusyError


# ---------- Public types ----------
StopFn = Callable[[], bool]

@dataclass(slots=True)
class Job:
    ticket: int
    stream: Iterator[str]   # yields the accumulated text, not increments
    stop:   StopFn


# ---------- Worker ----------
class _Worker(QObject):
    token    = pyqtSignal(int, str)     # (ticket, accumulated text)
    finished = pyqtSignal(int, str)     # (ticket, status) status: "ok"|"cancelled"|"error"
    error    = pyqtSignal(int, str)     # (ticket, message)

    def __init__(self, job: Job):
        super().__init__()
        self._job = job
        self._should_stop = False

    def stop(self):  # called from the GUI thread
        self._should_stop = True
        self._job.stop()

    def run(self):
        ticket = self._job.ticket
        status = "ok"
        try:
            for value in self._job.stream:
                if self._should_stop:
                    break
                self.token.emit(ticket, str(value))
        except ChatError as exc:
            status = "error"
            self.error.emit(ticket, str(exc))
        except Exception as exc:
            status = "error"
            self.error.emit(ticket, f"{type(exc).__name__}: {exc}")
        finally:
            if self._should_stop and status == "ok":
                status = "cancelled"
            self.finished.emit(ticket, status)


# ---------- Broker ----------
class ThreadBroker(QObject):
    """
    Runs at most one stream at a time on a worker QThread.
    submit() while a stream is active raises SessionBusyError.
    """
    job_started  = pyqtSignal(int)          # ticket
    job_token    = pyqtSignal(int, str)     # (ticket, accumulated text)
    job_finished = pyqtSignal(int, str)     # (ticket, status)
    job_error    = pyqtSignal(int, str)     # (ticket, message)
    busy_changed = pyqtSignal(bool)

    def __init__(self, parent: QObject | None = None):
        super().__init__(parent)
        self._tickets = count(1)
        self._thread: Optional[QThread] = None
        self._worker: Optional[_Worker] = None
        self._active_ticket: int = -1

    # -------- API --------
    def submit(self, stream: Iterator[str], stop: StopFn) -> int:
        if self.is_busy():
            raise SessionBusyError("A stream is already running")
        ticket = next(self._tickets)
        self._start(Job(ticket, stream, stop))
        return ticket

    def stop_active(self) -> None:
        # cooperative: the worker finishes on its own and emits job_finished
        if self._worker:
            self._worker.stop()

    def is_busy(self) -> bool:
        return self._active_ticket != -1

    def active_ticket(self) -> int:
        return self._active_ticket

    def shutdown(self) -> None:
        """Stop and join the worker; for app exit."""
        self.stop_active()
        self._cleanup()

    # -------- internals --------
    def _start(self, job: Job):
        self._active_ticket = job.ticket

        self._thread = QThread()
        self._worker = _Worker(job)
        self._worker.moveToThread(self._thread)

        # bubble up signals
        self._worker.token.connect(self.job_token, Qt.ConnectionType.QueuedConnection)
        self._worker.finished.connect(self._on_worker_finished, Qt.ConnectionType.QueuedConnection)
        self._worker.error.connect(self.job_error, Qt.ConnectionType.QueuedConnection)

        self._thread.started.connect(self._worker.run)
        self._thread.start()
        self.job_started.emit(job.ticket)
        self.busy_changed.emit(True)

    def _cleanup(self):
        if self._thread:
            self._thread.quit()
            self._thread.wait()
            self._thread.deleteLater()
            self._thread = None
        if self._worker:
            self._worker.deleteLater()
            self._worker = None
        self._active_ticket = -1

    def _on_worker_finished(self, ticket: int, status: str):
        if ticket != self._active_ticket:
            return
        self._cleanup()
        self.job_finished.emit(ticket, status)
        self.busy_changed.emit(False)
