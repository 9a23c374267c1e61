import logging

import serial
from serial import SerialException

from serialrelay.conduit.serial_conduit import SerialConduit
from serialrelay.connector.base import Connector, ConnectorError
from serialrelay.settings import ConnectionSettings

logger = logging.getLogger(__name__)


class SerialConnector(Connector):
    """
    Opens the serial port named by the current settings, at their baud rate.

    The connection manager replaces settings while the connector is disconnected. Failures to open
    the port, from pyserial or the operating system, are raised as ConnectorError.

    :param settings: the initial settings. Unconfigured when not given.
    :param serial_factory: opens a port, given the port name or pyserial URL and the keyword
        arguments baudrate and timeout.
    :param read_timeout: seconds a single read waits for data
    """

    def __init__(self, settings: ConnectionSettings=None, serial_factory=serial.serial_for_url, read_timeout=0.1):
        super().__init__()
        self.settings = settings or ConnectionSettings.unconfigured()
        self.serial_factory = serial_factory
        self.read_timeout = read_timeout

    @property
    def endpoint(self):
        return self.settings

    def _available(self):
        return self.settings.configured

    def _open_conduit(self):
        settings = self.settings
        try:
            port = self.serial_factory(settings.port, baudrate=settings.baud_rate, timeout=self.read_timeout)
        except (SerialException, OSError, ValueError) as e:
            logger.warning("error opening serial port %s: %s" % (settings, e))
            raise ConnectorError(str(e)) from e
        logger.info("opened serial port %s" % (settings,))
        return SerialConduit(port)
