"""
background.py
One-shot background task used for fire-and-forget contract calls, so neither
the frame loop nor the key handlers ever wait on the wallet.

    PENDING ──start/delay──▶ RUNNING ──▶ DONE | FAILED
       └──cancel()──▶ CANCELLED
"""

import threading
from enum import Enum
from typing import Any, Callable, Optional


class TaskState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class BackgroundAction:
    def __init__(
        self,
        name: str,
        fn: Callable,
        delay: float = 0.0,
        failure: Optional[Callable[[Any], Optional[BaseException]]] = None,
    ):
        """
        `failure` inspects a returned result and gives back the error it
        carries, if any. A task whose result carries an error ends FAILED.
        """
        self.name = name
        self.delay = delay
        self._failure = failure
        self.state = TaskState.PENDING
        self.result = None
        self.error: Optional[BaseException] = None
        self._fn = fn
        self._timer: Optional[threading.Timer] = None
        self._finished = threading.Event()
        self._lock = threading.Lock()

    def start(self) -> "BackgroundAction":
        if self._timer is not None:
            raise RuntimeError(f"{self.name} already started")
        self._timer = threading.Timer(self.delay, self._run)
        self._timer.daemon = True
        self._timer.start()
        return self

    def cancel(self) -> bool:
        """Cancel before the task runs. Returns False once it has started."""
        with self._lock:
            if self.state is not TaskState.PENDING:
                return False
            self.state = TaskState.CANCELLED
        if self._timer is not None:
            self._timer.cancel()
        self._finished.set()
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._finished.wait(timeout)

    @property
    def finished(self) -> bool:
        return self._finished.is_set()

    def _run(self):
        with self._lock:
            if self.state is not TaskState.PENDING:
                return
            self.state = TaskState.RUNNING
        try:
            self.result = self._fn()
            error = self._failure(self.result) if self._failure else None
            if error is not None:
                raise error
            self.state = TaskState.DONE
        except Exception as exc:
            self.error = exc
            self.state = TaskState.FAILED
            print(f"[chain] background {self.name} failed: {exc}")
        finally:
            self._finished.set()
