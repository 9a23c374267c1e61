"""
Watches the serial ports present on this machine and tells clients when the list changes.
"""
import json
import logging

from serialrelay import messages
from serialrelay.conduit.discovery import ResourceAvailableEvent, ResourceUnavailableEvent
from serialrelay.conduit.serial_conduit import SerialDiscovery
from serialrelay.support.async_loop import AsyncLoop

logger = logging.getLogger(__name__)


class PortMonitor(AsyncLoop):
    """
    Polls the port discovery. Whenever the set of ports changes, the new list is broadcast
    twice: as a readable line and as a JSON array of port names.

    If the configured port disappears, the connection manager forgets its settings. If the
    configured port reappears while nothing is connected, it is opened straight away rather
    than waiting for the supervising loop.
    """

    def __init__(self, manager, publish, discovery=None, poll_interval=2.0, announce_changes=True):
        super().__init__(name="port monitor")
        self.manager = manager
        self.publish = publish
        self.discovery = discovery or SerialDiscovery()
        self.poll_interval = poll_interval
        self.announce_changes = announce_changes
        self.discovery.listeners += self._port_event

    def startup(self):
        self.poll()

    def loop(self):
        if not self.stop_event.wait(self.poll_interval):
            self.poll()

    def poll(self):
        """ updates the known ports and reacts to any change. """
        events = self.discovery.update()
        if events and self.announce_changes:
            self.announce()
        return events

    @property
    def ports(self) -> list:
        return self.discovery.keys

    def announce(self):
        """ broadcasts the ports known at the last poll. """
        ports = self.ports
        self.publish(messages.PORT_LIST % (", ".join(ports) or "none"))
        self.publish(json.dumps(ports))

    def _port_event(self, event):
        port = self.manager.settings.port
        if not port or event.key != port:
            return
        if isinstance(event, ResourceUnavailableEvent):
            logger.info("configured port %s removed" % port)
            self.manager.release(messages.PORT_GONE % port, port)
        elif isinstance(event, ResourceAvailableEvent) and not self.manager.connected:
            logger.info("configured port %s attached" % port)
            self.manager.open()
