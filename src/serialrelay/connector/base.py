"""
Connectors open conduits. A connector knows how to reach one endpoint, holds the conduit while
connected and notifies its listeners as it connects and disconnects.
"""
import logging
from abc import ABC, abstractmethod

from serialrelay.conduit.base import Conduit
from serialrelay.support.events import EventSource

logger = logging.getLogger(__name__)


class ConnectorError(Exception):
    """ The endpoint could not be reached, or the connection to it failed. """


class ConnectionNotAvailableError(ConnectorError):
    """ No attempt to connect can be made, e.g. because no port is configured. """


class ConnectorEvent:
    def __init__(self, connector):
        self.connector = connector

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, self.connector.endpoint)


class ConnectorConnectedEvent(ConnectorEvent):
    pass


class ConnectorDisconnectedEvent(ConnectorEvent):
    pass


class Connector(ABC):
    """
    Connects to an endpoint and holds the open conduit until disconnected.

    Subclasses describe the endpoint: endpoint names it, _available() decides whether an attempt
    can be made and _open_conduit() makes the attempt. Listeners added to events receive a
    ConnectorConnectedEvent after each successful connect() and a ConnectorDisconnectedEvent
    after each disconnect() of an open conduit.
    """

    def __init__(self):
        self.events = EventSource()
        self._conduit = None

    @property
    @abstractmethod
    def endpoint(self):
        """ what this connector connects to """

    @abstractmethod
    def _available(self) -> bool:
        """ decides if a connection attempt can be made. Only asked while disconnected. """

    @abstractmethod
    def _open_conduit(self) -> Conduit:
        """ opens a new conduit to the endpoint. Raises ConnectorError when that fails. """

    @property
    def connected(self) -> bool:
        conduit = self._conduit
        return conduit is not None and conduit.open

    def connect(self) -> Conduit:
        """
        Opens a conduit to the endpoint, unless one is already open.
        :return: the open conduit
        :raises ConnectionNotAvailableError: when no attempt can be made
        :raises ConnectorError: when the attempt fails
        """
        if self.connected:
            return self._conduit
        if not self._available():
            raise ConnectionNotAvailableError("%s is not available" % (self.endpoint,))
        self._conduit = self._open_conduit()
        self.events.fire(ConnectorConnectedEvent(self))
        return self._conduit

    def disconnect(self):
        """
        Closes the conduit. Listeners are notified even when closing raises.
        """
        conduit, self._conduit = self._conduit, None
        if conduit is None:
            return
        try:
            conduit.close()
        finally:
            self.events.fire(ConnectorDisconnectedEvent(self))
