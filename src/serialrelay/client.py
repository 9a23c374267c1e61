"""
A connected websocket client, as seen by the broadcaster.
"""
import logging
from queue import Empty, Full, Queue

from websockets.exceptions import ConnectionClosed

from serialrelay.broadcaster import DeliveryError
from serialrelay.support.async_loop import AsyncLoop

logger = logging.getLogger(__name__)


class ClientSession(AsyncLoop):
    """
    Sends messages to one client from its own thread, so a slow client only delays itself.

    deliver() queues the message and returns immediately. When the queue is full, or the
    session is closed, delivery fails with DeliveryError. A send failure on the sender thread
    is reported to on_failure(session, error).

    :param connection: the websocket connection, providing send(text), close() and remote_address
    :param on_failure: called with the session and the exception when sending fails
    :param max_pending: how many messages may wait for this client before it is considered dead
    """

    def __init__(self, connection, on_failure=None, max_pending=256, poll_interval=0.5):
        super().__init__(name="client %s" % (getattr(connection, 'remote_address', None),))
        self.connection = connection
        self.on_failure = on_failure
        self.poll_interval = poll_interval
        self._outbox = Queue(max_pending)

    def deliver(self, text):
        if not self.running():
            raise DeliveryError("session closed")
        try:
            self._outbox.put_nowait(text)
        except Full:
            raise DeliveryError("%d messages pending" % self._outbox.maxsize)

    @property
    def pending(self) -> int:
        return self._outbox.qsize()

    def loop(self):
        try:
            text = self._outbox.get(timeout=self.poll_interval)
        except Empty:
            return
        try:
            self.connection.send(text)
        except ConnectionClosed as e:
            self.stop(wait=False)
            if self.on_failure is not None:
                self.on_failure(self, e)

    def shutdown(self):
        self.connection.close()

    def close(self):
        """ stops sending; the connection is closed from the sender thread. """
        self.stop(wait=False)

    def __str__(self):
        return self.name
