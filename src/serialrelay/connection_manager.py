"""
Owns the single serial connection: its settings, the open conduit and the reader that drains
it. Every replacement or use of the conduit happens under one lock, so readers and writers
never see a conduit opened with stale settings.

The connection is maintained by a SupervisingLoop running on a background thread. While no
connection is open it retries opening it at a fixed period. While a connection is open it
waits for the reader to report a read failure, and then reconnects after the same period.
"""
import logging
import threading
import time
from contextlib import contextmanager
from enum import Enum

from serial import SerialException

from serialrelay import messages
from serialrelay.connector.base import ConnectorConnectedEvent, ConnectorDisconnectedEvent, ConnectorError
from serialrelay.connector.serialconn import SerialConnector
from serialrelay.reader import InboundReader
from serialrelay.settings import ConnectionSettings
from serialrelay.support.async_loop import AsyncLoop
from serialrelay.support.events import EventSource

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    UNCONFIGURED = "unconfigured"
    OPENING = "opening"
    OPEN = "open"
    CLOSING = "closing"


class ConnectionManager:
    """
    Opens, closes and reopens the serial connection described by the current settings.

    Status lines are reported through publish(text). Connector events (ConnectorConnectedEvent
    and ConnectorDisconnectedEvent) are propagated to the listeners on events.

    :param connector: the connector that opens the serial port
    :param publish: a callable receiving each status line
    :param retry_period: seconds to wait between automatic attempts to open the connection
    :param release_delay: seconds to wait after closing the port, before opening it again,
        so the operating system releases the device
    :param reader_factory: creates the reader for a newly opened conduit. Called with the
        conduit and the manager.
    """

    def __init__(self, connector: SerialConnector, publish, retry_period=5.0, release_delay=1.0,
                 reader_factory=None, sleep=time.sleep):
        self.connector = connector
        self.publish = publish
        self.retry_period = retry_period
        self.release_delay = release_delay
        self.reader_factory = reader_factory or InboundReader.for_manager
        self.sleep = sleep
        self.events = EventSource()
        connector.events.add(self._connector_events)

        self._lock = threading.RLock()
        self._settings = connector.settings
        self._state = ConnectionState.UNCONFIGURED
        self._conduit = None
        self._reader = None
        self._failed_conduit = None
        self._read_failed = threading.Event()

    def _connector_events(self, *args, **kwargs):
        """ propagates connector events to the external events handler """
        self.events.fire(*args, **kwargs)

    @property
    def settings(self) -> ConnectionSettings:
        with self._lock:
            return self._settings

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._conduit is not None

    @property
    def reader(self):
        with self._lock:
            return self._reader

    def configure(self, settings: ConnectionSettings) -> bool:
        """
        Applies new settings. When they differ from the current settings, the connection is
        reopened with them; otherwise nothing changes.
        :return: True if the settings changed.
        """
        with self._lock:
            if settings == self._settings:
                self.publish(messages.SETTINGS_UNCHANGED)
                return False
            self._settings = settings
            logger.info("settings changed to %s" % (settings,))
            self.publish(messages.SETTINGS_CHANGED % (settings.port, settings.baud_rate))
            self._reconnect()
            return True

    def release(self, reason, port=None) -> bool:
        """
        Forgets the current settings and closes the connection.
        :param reason: the status line explaining why.
        :param port: when given, the settings are only released while they still name this port.
        :return: True if the settings were released.
        """
        with self._lock:
            if port is not None and self._settings.port != port:
                logger.debug("not releasing %s, settings now name %s" % (port, self._settings.port))
                return False
            logger.info("releasing %s" % (self._settings,))
            self._settings = ConnectionSettings.unconfigured()
            self.publish(reason)
            self._close()
            return True

    def reconnect(self):
        """ closes any open connection, waits for the device to be released and opens it again. """
        with self._lock:
            self._reconnect()

    def _reconnect(self):
        self._close()
        self.sleep(self.release_delay)
        self._open()

    def open(self) -> bool:
        """
        Opens the connection with the current settings, unless it is already open.
        :return: True if a connection is open on return.
        """
        with self._lock:
            if self._conduit is not None:
                return True
            return self._open()

    def close(self):
        with self._lock:
            self._close()

    def _open(self):
        settings = self._settings
        if not settings.configured:
            self._state = ConnectionState.UNCONFIGURED
            self.publish(messages.NO_PORT_SELECTED)
            return False

        self._state = ConnectionState.OPENING
        self.connector.settings = settings
        try:
            conduit = self.connector.connect()
        except ConnectorError as e:
            self._state = ConnectionState.UNCONFIGURED
            logger.debug("unable to open %s" % (settings,), exc_info=True)
            self.publish(messages.OPEN_FAILED % (settings.port, e))
            return False

        self._conduit = conduit
        self._failed_conduit = None
        self._read_failed.clear()
        self._reader = self.reader_factory(conduit, self)
        self._reader.start()
        self._state = ConnectionState.OPEN
        logger.info("device connected: %s" % (settings,))
        self.publish(messages.CONNECTED % (settings.port, settings.baud_rate))
        return True

    def _close(self):
        """ closes the conduit. Errors closing are logged and otherwise ignored. """
        reader, self._reader = self._reader, None
        if reader is not None:
            reader.stop(wait=False)
        if self._conduit is None:
            return False
        self._state = ConnectionState.CLOSING
        self._conduit = None
        try:
            self.connector.disconnect()
        except (SerialException, OSError) as e:
            logger.warning("error closing serial port %s: %s" % (self.connector.settings, e))
        self._state = ConnectionState.UNCONFIGURED
        logger.info("device disconnected: %s" % (self.connector.settings,))
        return True

    def is_current(self, conduit) -> bool:
        """ determines if the given conduit is the one presently installed. """
        with self._lock:
            return conduit is not None and conduit is self._conduit

    @contextmanager
    def lease(self):
        """
        Holds the connection lock for the duration of the block, yielding the open conduit or None.
        The conduit cannot be replaced or closed while the lease is held.
        """
        with self._lock:
            yield self._conduit

    def read_failed(self, conduit, error):
        """
        Called by the reader when reading from its conduit fails. Ignored if the conduit
        has already been replaced.
        """
        with self._lock:
            if conduit is not self._conduit:
                return
            self._failed_conduit = conduit
            self._read_failed.set()
        logger.warning("read from %s failed: %s" % (conduit, error))

    def supervise(self, stop_event: threading.Event, poll_interval=0.5):
        """
        Runs one step of the supervising loop.
        Without a connection, waits the retry period and tries to open it.
        With a connection, waits up to poll_interval for a read failure; once one is reported,
        waits the retry period and reconnects, unless the failed connection was replaced meanwhile.
        """
        if not self.connected:
            if stop_event.wait(self.retry_period):
                return
            if self.settings.configured:
                self.open()
            return

        if not self._read_failed.wait(poll_interval):
            return
        if stop_event.wait(self.retry_period):
            return
        with self._lock:
            failed, self._failed_conduit = self._failed_conduit, None
            self._read_failed.clear()
            if failed is not None and failed is self._conduit:
                logger.info("reconnecting to %s after read failure" % (self._settings,))
                self._reconnect()


class SupervisingLoop(AsyncLoop):
    """
    maintains the connection as a background thread.
    """

    def __init__(self, manager: ConnectionManager, poll_interval=0.5):
        super().__init__(name="supervisor")
        self.manager = manager
        self.poll_interval = poll_interval

    def startup(self):
        if self.manager.settings.configured:
            self.manager.open()

    def loop(self):
        self.manager.supervise(self.stop_event, self.poll_interval)


def log_connection_events(event):
    if isinstance(event, ConnectorConnectedEvent):
        logger.debug("connector connected: %s" % (event.connector.endpoint,))
    elif isinstance(event, ConnectorDisconnectedEvent):
        logger.debug("connector disconnected: %s" % (event.connector.endpoint,))
    else:
        logger.warning("Unknown event %s " % event)
