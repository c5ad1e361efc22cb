"""
Forq Python Client

HTTP client for the Forq message queue, with background workers that move
messages, acks and errors through application-owned ``queue.Queue`` objects.

Example:
    import queue
    from forq import AsyncConsumer, Consumer, NewMessage, Producer

    producer = Producer("http://localhost:8080", "secret")
    producer.produce(NewMessage("hello"), "emails")

    messages, acks, nacks, errors = (queue.Queue() for _ in range(4))
    consumer = AsyncConsumer(
        Consumer("http://localhost:8080", "secret"),
        "emails", messages, acks, nacks, errors,
    )
    consumer.start()

    msg = messages.get()
    print(f"Processing {msg.id}")
    # ... do work ...
    acks.put(msg.id)

    consumer.close()
"""

__version__ = "0.1.0"

from ._worker import WorkerState
from .api import CLOSE, Message, NewMessage, QueuedMessage
from .consumer import AsyncConsumer, Consumer
from .errors import ConfigurationError, ForqError, ForqServerError, TransportError
from .producer import AsyncProducer, Producer

__all__ = [
    "AsyncConsumer",
    "AsyncProducer",
    "CLOSE",
    "ConfigurationError",
    "Consumer",
    "ForqError",
    "ForqServerError",
    "Message",
    "NewMessage",
    "Producer",
    "QueuedMessage",
    "TransportError",
    "WorkerState",
]
