import threading
import time
from unittest.mock import Mock

import pytest
import requests

from forq import ForqServerError


class FakeConsumer:
    """In-memory stand-in for forq.Consumer.

    ``responses`` are returned by consume_one in order (exceptions are
    raised); once exhausted consume_one behaves like an empty long poll.
    """

    def __init__(self, responses=(), fail_ids=(), block_first_settle=False):
        self._responses = list(responses)
        self._fail_ids = set(fail_ids)
        self.consume_calls = 0
        self.acked = []
        self.nacked = []
        self.settle_entered = threading.Event()
        self.release = threading.Event()
        if not block_first_settle:
            self.release.set()

    def consume_one(self, queue_name):
        self.consume_calls += 1
        if not self._responses:
            time.sleep(0.01)
            return None
        r = self._responses.pop(0)
        if isinstance(r, Exception):
            raise r
        return r

    def _settle(self, bucket, message_id):
        self.settle_entered.set()
        self.release.wait()
        bucket.append(message_id)
        if message_id in self._fail_ids:
            raise ForqServerError("not_found.message", 404)

    def ack(self, queue_name, message_id):
        self._settle(self.acked, message_id)

    def nack(self, queue_name, message_id):
        self._settle(self.nacked, message_id)


class FakeProducer:
    """In-memory stand-in for forq.Producer."""

    def __init__(self, fail_contents=(), block_first=False):
        self._fail_contents = set(fail_contents)
        self.produced = []
        self.entered = threading.Event()
        self.release = threading.Event()
        if not block_first:
            self.release.set()

    def produce(self, message, queue_name):
        self.entered.set()
        self.release.wait()
        self.produced.append((queue_name, message.content))
        if message.content in self._fail_contents:
            raise ForqServerError("bad_request.body.content.exceeds_limit", 400)


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture
def wait_for():
    return _wait_for


@pytest.fixture
def fake_consumer():
    return FakeConsumer


@pytest.fixture
def fake_producer():
    return FakeProducer


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def make_response():
    def _make(status_code, body=None):
        resp = Mock()
        resp.status_code = status_code
        if body is None:
            resp.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        else:
            resp.json.return_value = body
        return resp
    return _make
