"""
Fan-out of status and device messages to every connected client.
"""
import logging
import threading
from collections import namedtuple

from serialrelay.support.async_loop import AsyncLoop
from serialrelay.support.events import QueuedEventSource

logger = logging.getLogger(__name__)

DEVICE = "device"
STATUS = "status"


class Message(namedtuple('Message', ['text', 'source'])):
    """ A line of text to broadcast, tagged with where it came from. Only the text is sent to clients. """
    __slots__ = ()

    def __new__(cls, text, source=STATUS):
        return super().__new__(cls, text, source)


class DeliveryError(Exception):
    """ A message could not be delivered to a client. """


class ClientSet:
    """
    The set of connected clients. Safe to use from several threads; it has its own
    lock so client churn never waits on the serial connection.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._clients = set()

    def add(self, client):
        with self._lock:
            self._clients.add(client)

    def remove(self, client) -> bool:
        """
        :return: True if the client was a member.
        """
        with self._lock:
            if client in self._clients:
                self._clients.remove(client)
                return True
            return False

    def snapshot(self) -> tuple:
        with self._lock:
            return tuple(self._clients)

    def __contains__(self, client):
        with self._lock:
            return client in self._clients

    def __len__(self):
        with self._lock:
            return len(self._clients)


class Broadcaster(AsyncLoop):
    """
    Delivers published messages to every client in the client set, one message at a time and
    in the order they were published.

    Clients must provide deliver(text), which raises DeliveryError when the message cannot be
    handed over, and close(). A client that fails is removed from the set and closed; the
    remaining clients still receive the message.
    """

    def __init__(self, clients: ClientSet, poll_interval=0.5):
        super().__init__(name="broadcaster")
        self.clients = clients
        self.poll_interval = poll_interval
        self.messages = QueuedEventSource()
        self.messages += self.dispatch

    def publish(self, text, source=STATUS):
        """ queues a message for delivery. Never blocks. """
        self.messages.fire(Message(text, source))

    def loop(self):
        self.messages.publish_next(self.poll_interval)

    def dispatch(self, message: Message):
        logger.debug("broadcast [%s] %s" % (message.source, message.text))
        for client in self.clients.snapshot():
            if client not in self.clients:
                continue
            try:
                client.deliver(message.text)
            except DeliveryError as e:
                logger.warning("unable to deliver message to %s, removing client: %s" % (client, e))
                self.drop(client)

    def drop(self, client):
        """ removes the client from the set and closes it. """
        if self.clients.remove(client):
            client.close()

    def flush(self):
        """ delivers all queued messages on the calling thread. """
        self.messages.publish()
