"""
Connection settings for the serial device.
"""
from collections import namedtuple


class ConnectionSettings(namedtuple('ConnectionSettings', ['port', 'baud_rate'])):
    """
    An immutable snapshot of the port and baud rate the relay attaches to.
    Settings are replaced as a whole, never changed in place.
    An empty port means the relay is not configured.
    """
    __slots__ = ()

    def __new__(cls, port='', baud_rate=0):
        return super().__new__(cls, port or '', int(baud_rate or 0))

    @classmethod
    def unconfigured(cls):
        return cls()

    @property
    def configured(self) -> bool:
        """
        >>> ConnectionSettings('COM3', 9600).configured
        True
        >>> ConnectionSettings().configured
        False
        """
        return bool(self.port)

    def __str__(self):
        return "%s@%d" % (self.port, self.baud_rate) if self.configured else "<unconfigured>"
