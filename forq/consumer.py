import logging
import queue
from typing import Callable, List, Optional

import requests

from ._worker import BackgroundWorker
from .api import CLOSE, Message
from .client import BaseClient, Timeout
from .errors import ConfigurationError, ForqError, TransportError

logger = logging.getLogger(__name__)

CONSUME_MESSAGE_PATH = "/api/v1/queues/{queue}/messages"
ACK_MESSAGE_PATH = "/api/v1/queues/{queue}/messages/{id}/ack"
NACK_MESSAGE_PATH = "/api/v1/queues/{queue}/messages/{id}/nack"

# The server holds an empty consume request open for up to this long before
# answering 204. Request timeouts must cover it plus the buffer.
LONG_POLLING_MAX_DURATION = 30
LONG_POLLING_BUFFER = 5


class Consumer(BaseClient):
    """Blocking Forq consumer: one HTTP round trip per call."""

    def __init__(
        self,
        base_url: str,
        auth_secret: str,
        timeout: Timeout = LONG_POLLING_MAX_DURATION + LONG_POLLING_BUFFER,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Forq consumer.

        Args:
            base_url: Base URL of Forq server
            auth_secret: Shared secret sent in the X-API-Key header
            timeout: Request timeout in seconds, or a (connect, read) tuple.
                The read timeout must be None/0 (disabled) or cover the
                server's long polling duration plus a buffer.
            session: Optional requests session

        Raises:
            ConfigurationError: timeout is shorter than a long poll
        """
        read_timeout = timeout[1] if isinstance(timeout, tuple) else timeout
        if read_timeout and read_timeout < LONG_POLLING_MAX_DURATION + LONG_POLLING_BUFFER:
            raise ConfigurationError(
                f"request timeout must be disabled or at least "
                f"{LONG_POLLING_MAX_DURATION + LONG_POLLING_BUFFER} seconds "
                f"({LONG_POLLING_MAX_DURATION}s long polling + "
                f"{LONG_POLLING_BUFFER}s buffer), got {timeout}"
            )
        super().__init__(base_url, auth_secret, timeout=timeout, session=session)

    def consume_one(self, queue_name: str) -> Optional[Message]:
        """
        Long-poll a queue for one message.

        Returns:
            The message, or None if none arrived within the long polling window
        """
        resp = self._request(
            "GET", CONSUME_MESSAGE_PATH.format(queue=queue_name), ok_statuses=(200, 204)
        )
        if resp.status_code == 204:
            return None
        try:
            return Message.from_json(resp.json())
        except (ValueError, KeyError, TypeError) as e:
            raise TransportError(f"failed to decode message response: {e}") from e

    def ack(self, queue_name: str, message_id: str) -> None:
        """Acknowledge a message, removing it from the queue."""
        self._request("POST", ACK_MESSAGE_PATH.format(queue=queue_name, id=message_id))

    def nack(self, queue_name: str, message_id: str) -> None:
        """Reject a message, returning it to the queue for redelivery."""
        self._request("POST", NACK_MESSAGE_PATH.format(queue=queue_name, id=message_id))


class AsyncConsumer(BackgroundWorker):
    """
    Background consumer wired between application-owned queues and a Consumer.

    One thread long-polls ``queue_name`` and puts each Message on
    ``messages``. A second thread takes message ids from ``acks`` and
    ``nacks`` and settles them on the server. Failures from either thread
    are put on ``errors``.

    On stop() the polling thread exits after its in-flight call, and every
    id already waiting on ``acks``/``nacks`` is still sent before wait()
    returns. Putting CLOSE on ``acks`` or ``nacks`` ends the settling thread
    without draining.

    Example:
        messages, acks, nacks, errors = (queue.Queue() for _ in range(4))
        with AsyncConsumer(Consumer(url, secret), "emails", messages, acks, nacks, errors):
            msg = messages.get()
            ...
            acks.put(msg.id)
    """

    def __init__(
        self,
        consumer: Consumer,
        queue_name: str,
        messages: "queue.Queue[Message]",
        acks: "queue.Queue[Optional[str]]",
        nacks: "queue.Queue[Optional[str]]",
        errors: "queue.Queue[ForqError]",
        poll_interval: float = 0.1,
    ):
        super().__init__(errors, poll_interval=poll_interval)
        self._consumer = consumer
        self._queue_name = queue_name
        self._messages = messages
        self._acks = acks
        self._nacks = nacks

    def _loops(self) -> List[Callable[[], None]]:
        return [self._consume_loop, self._ack_nack_loop]

    def _consume_loop(self) -> None:
        while not self._shutdown.is_set():
            try:
                msg = self._consumer.consume_one(self._queue_name)
            except ForqError as e:
                if not self._send(self._errors, e):
                    break
                continue
            # None means the long poll came back empty
            if msg is not None and not self._send(self._messages, msg):
                # not acked, so the server will redeliver it
                logger.debug("undelivered message %s left for redelivery", msg.id)
                break
        logger.debug("consume loop for %s exited", self._queue_name)

    def _settlers(self):
        return ((self._acks, self._consumer.ack), (self._nacks, self._consumer.nack))

    def _settle(self, settle: Callable[[str, str], None], message_id: str, draining: bool) -> None:
        try:
            settle(self._queue_name, message_id)
        except ForqError as e:
            self._report(e, draining)

    def _ack_nack_loop(self) -> None:
        while not self._shutdown.is_set():
            served = False
            for channel, settle in self._settlers():
                try:
                    message_id = channel.get_nowait()
                except queue.Empty:
                    continue
                if message_id is CLOSE:
                    logger.debug("ack/nack channel closed, ack/nack loop exiting")
                    return
                self._settle(settle, message_id, draining=False)
                served = True
            if not served:
                self._shutdown.wait(self._poll_interval)
        self._drain_acks_and_nacks()

    def _drain_acks_and_nacks(self) -> None:
        drained = 0
        served = True
        while served:
            served = False
            for channel, settle in self._settlers():
                try:
                    message_id = channel.get_nowait()
                except queue.Empty:
                    continue
                if message_id is CLOSE:
                    continue
                self._settle(settle, message_id, draining=True)
                drained += 1
                served = True
        logger.debug("drained %d ack/nack request(s) for %s", drained, self._queue_name)
