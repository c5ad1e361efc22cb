import logging
import queue
from typing import Callable, List, Optional

from ._worker import BackgroundWorker
from .api import CLOSE, NewMessage, QueuedMessage
from .client import BaseClient
from .errors import ForqError

logger = logging.getLogger(__name__)

PRODUCE_MESSAGE_PATH = "/api/v1/queues/{queue}/messages"


class Producer(BaseClient):
    """Blocking Forq producer."""

    def produce(self, message: NewMessage, queue_name: str) -> None:
        """
        Produce a message.

        Args:
            message: Message to produce
            queue_name: Destination queue name
        """
        self._request(
            "POST", PRODUCE_MESSAGE_PATH.format(queue=queue_name), message.to_json()
        )


class AsyncProducer(BackgroundWorker):
    """
    Background producer fed through an application-owned queue.

    Each QueuedMessage taken from ``productions`` is produced once and any
    failure is put on ``errors``. On stop() everything already waiting on
    ``productions`` is still produced before wait() returns. Putting CLOSE on
    ``productions`` ends the loop without stop().
    """

    def __init__(
        self,
        producer: Producer,
        productions: "queue.Queue[Optional[QueuedMessage]]",
        errors: "queue.Queue[ForqError]",
        poll_interval: float = 0.1,
    ):
        super().__init__(errors, poll_interval=poll_interval)
        self._producer = producer
        self._productions = productions

    def _loops(self) -> List[Callable[[], None]]:
        return [self._produce_loop]

    def _produce(self, item: QueuedMessage, draining: bool) -> None:
        try:
            self._producer.produce(item.message, item.queue_name)
        except ForqError as e:
            self._report(e, draining)

    def _produce_loop(self) -> None:
        while not self._shutdown.is_set():
            try:
                item = self._productions.get(timeout=self._poll_interval)
            except queue.Empty:
                continue
            if item is CLOSE:
                logger.debug("production channel closed, produce loop exiting")
                return
            self._produce(item, draining=False)
        self._drain_productions()

    def _drain_productions(self) -> None:
        drained = 0
        while True:
            try:
                item = self._productions.get_nowait()
            except queue.Empty:
                break
            if item is CLOSE:
                break
            self._produce(item, draining=True)
            drained += 1
        logger.debug("drained %d production(s)", drained)
