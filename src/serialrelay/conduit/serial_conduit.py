"""
Serial ports as conduits, and discovery of the serial ports on this machine.
"""
import logging

import serial
from serial.tools import list_ports

from serialrelay.conduit.base import Conduit
from serialrelay.conduit.discovery import PolledResourceDiscovery

logger = logging.getLogger(__name__)


def _skip_flush(*args, **kwargs):
    pass


class SerialConduit(Conduit):
    """
    A conduit over an open pyserial port, which serves as both input and output.

    The port's flush() is replaced with a no-op, since flushing a port whose device has been
    unplugged can block indefinitely.
    """

    def __init__(self, serial_port: serial.Serial):
        self.serial_port = serial_port
        serial_port.flush = _skip_flush

    @property
    def input(self):
        return self.serial_port

    @property
    def output(self):
        return self.serial_port

    @property
    def open(self) -> bool:
        return self.serial_port.is_open

    def close(self):
        """ closes the port, first waking any reader blocked in read(). """
        port = self.serial_port
        if port.is_open and hasattr(port, 'cancel_read'):
            port.cancel_read()
        port.close()

    def __str__(self):
        return "serial port %s" % (self.serial_port.port,)


def serial_port_info():
    """ the ListPortInfo of every serial port on this machine, as a tuple """
    return tuple(list_ports.comports())


def serial_ports():
    """ the device names of the serial ports on this machine, such as COM3 or /dev/ttyUSB0 """
    return [info.device for info in serial_port_info()]


class SerialDiscovery(PolledResourceDiscovery):
    """ Polls the serial ports on this machine. Ports are keyed by device name. """

    def _fetch_ports(self):
        return serial_port_info()

    def _fetch_available(self):
        return {info.device: info for info in self._fetch_ports()}

    def _same_device(self, current, previous):
        return current.device == previous.device
