"""Shutdown and hand-off primitives shared by the background workers."""

import enum
import logging
import queue
import threading
from typing import Any, Callable, List, Optional

from .errors import ForqError

logger = logging.getLogger(__name__)


class WorkerState(enum.Enum):
    CREATED = "created"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class ShutdownSignal:
    """One-shot broadcast observable by every loop without blocking the signaler."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()

    def fire(self) -> bool:
        """Fire the signal. Returns True only for the call that fired it."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        return self._event.wait(timeout)


class BackgroundWorker:
    """
    Base for the async consumer and producer.

    Subclasses list their loop callables in ``_loops()``. Each loop runs in
    its own daemon thread and must return once the shutdown signal fires
    (after draining its inputs) or once an input queue is closed.
    """

    def __init__(self, errors: "queue.Queue[ForqError]", poll_interval: float = 0.1):
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self._errors = errors
        self._poll_interval = poll_interval
        self._shutdown = ShutdownSignal()
        self._done = threading.Event()
        self._lock = threading.Lock()
        self._started = False
        self._active = 0
        self._threads: List[threading.Thread] = []

    def _loops(self) -> List[Callable[[], None]]:
        raise NotImplementedError

    @property
    def state(self) -> WorkerState:
        if self._done.is_set():
            return WorkerState.STOPPED
        if not self._started:
            return WorkerState.CREATED
        return WorkerState.STOPPING if self._shutdown.is_set() else WorkerState.RUNNING

    def start(self) -> None:
        """Launch the loop threads."""
        name = type(self).__name__
        with self._lock:
            if self._started:
                raise RuntimeError(f"{name} already started")
            self._started = True
            loops = self._loops()
            self._active = len(loops)
            self._threads = [
                threading.Thread(
                    target=self._run, args=(loop,), name=f"{name}.{loop.__name__}", daemon=True
                )
                for loop in loops
            ]
            for thread in self._threads:
                thread.start()
        logger.debug("%s started %d loop(s)", name, len(loops))

    def _run(self, loop: Callable[[], None]) -> None:
        try:
            loop()
        finally:
            with self._lock:
                self._active -= 1
                if self._active == 0:
                    self._done.set()
                    logger.debug("%s stopped", type(self).__name__)

    def stop(self) -> None:
        """Request shutdown. Idempotent and never blocks."""
        if self._shutdown.fire():
            logger.debug("%s stop requested", type(self).__name__)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every loop has exited, including when called before start().

        Returns False if ``timeout`` elapsed first.
        """
        return self._done.wait(timeout)

    def close(self) -> None:
        self.stop()
        self.wait()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _send(self, channel: "queue.Queue[Any]", item: Any) -> bool:
        """
        Blocking send, abandoned if shutdown fires while the channel is full.

        Returns False when the item was not delivered.
        """
        while True:
            try:
                channel.put(item, timeout=self._poll_interval)
                return True
            except queue.Full:
                if self._shutdown.is_set():
                    return False

    def _send_nowait(self, channel: "queue.Queue[Any]", item: Any) -> bool:
        """Non-blocking send that drops the item when the channel is full."""
        try:
            channel.put_nowait(item)
            return True
        except queue.Full:
            return False

    def _report(self, err: ForqError, draining: bool) -> None:
        if draining:
            if not self._send_nowait(self._errors, err):
                logger.debug("%s dropped error while draining: %r", type(self).__name__, err)
        elif not self._send(self._errors, err):
            logger.debug("%s abandoned error on shutdown: %r", type(self).__name__, err)
