"""
Writes client commands to the device, one at a time and in the order they were submitted.
"""
import logging
from queue import Empty, Queue

from serial import SerialException

from serialrelay import messages
from serialrelay.support.async_loop import AsyncLoop

logger = logging.getLogger(__name__)


class OutboundWriter(AsyncLoop):
    """
    A single consumer of the command queue. Each write holds the connection manager's lease,
    so the port cannot be closed or replaced while it is being written.

    Commands submitted while no connection is open are dropped and reported; they are not
    kept for a later connection.

    :param delimiter: the terminator the router appends to each command. It is left out of
        the "sent" confirmation.
    """

    def __init__(self, manager, publish, encoding='utf-8', poll_interval=0.5, delimiter='\n'):
        super().__init__(name="writer")
        self.manager = manager
        self.publish = publish
        self.delimiter = delimiter
        self.encoding = encoding
        self.poll_interval = poll_interval
        self.requests = Queue()

    def submit(self, request: str):
        """ queues a request, already terminated by the delimiter, for writing. """
        self.requests.put(request)

    def loop(self):
        try:
            request = self.requests.get(timeout=self.poll_interval)
        except Empty:
            return
        self.write(request)

    def write(self, request: str) -> bool:
        """
        Writes the request to the open conduit and reports the outcome.
        :return: True if the request was written.
        """
        with self.manager.lease() as conduit:
            if conduit is None:
                logger.info("not connected, dropping %r" % request)
                self.publish(messages.NOT_CONNECTED)
                return False
            try:
                conduit.output.write(request.encode(self.encoding))
            except (SerialException, OSError) as e:
                logger.warning("write to %s failed: %s" % (conduit, e))
                self.publish(messages.WRITE_FAILED % e)
                return False
        self.publish(messages.SENT % self._without_delimiter(request))
        return True

    def _without_delimiter(self, request):
        if self.delimiter and request.endswith(self.delimiter):
            return request[:-len(self.delimiter)]
        return request
