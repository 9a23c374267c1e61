"""
Drains the open serial conduit and broadcasts each line the device sends.
"""
import logging

from serial import SerialException

from serialrelay import messages
from serialrelay.broadcaster import DEVICE
from serialrelay.protocol.framer import LineFramer
from serialrelay.support.async_loop import AsyncLoop

logger = logging.getLogger(__name__)


class InboundReader(AsyncLoop):
    """
    Reads from one conduit until it fails or is replaced.

    Each read returns up to read_size bytes, or fewer when the port's read timeout elapses.
    The bytes go through the framer and each completed line is published with the source
    "device". A read error is published as a status line and reported to on_failure; the
    reader then stops. It never reopens the connection itself.

    :param conduit: the conduit to read from
    :param publish: publish(text, source=...) for each line
    :param is_current: is_current(conduit) tells if the conduit is still the installed one
    :param on_failure: on_failure(conduit, error) is called when a read fails
    """

    def __init__(self, conduit, publish, is_current, on_failure, framer=None, read_size=128):
        super().__init__(name="reader %s" % (conduit,))
        self.conduit = conduit
        self.publish = publish
        self.is_current = is_current
        self.on_failure = on_failure
        self.framer = framer or LineFramer()
        self.read_size = read_size

    @classmethod
    def for_manager(cls, conduit, manager, **kwargs):
        """ creates a reader that reports to the given connection manager. """
        return cls(conduit, manager.publish, manager.is_current, manager.read_failed, **kwargs)

    def loop(self):
        if not self.is_current(self.conduit):
            logger.debug("%s superseded, stopping" % (self.conduit,))
            self.stop(wait=False)
            return
        try:
            data = self.conduit.input.read(self.read_size)
        except (SerialException, OSError, TypeError, AttributeError) as e:
            # closing the port from another thread surfaces as an error in the pending read
            self.stop(wait=False)
            if self.is_current(self.conduit):
                self.publish(messages.READ_FAILED % e)
                self.on_failure(self.conduit, e)
            return
        for line in self.framer.feed(data):
            self.publish(line, source=DEVICE)

    def shutdown(self):
        if self.framer.pending:
            logger.debug("discarding unterminated text from %s: %r" % (self.conduit, self.framer.pending))
        self.framer.reset()
