"""
A conduit is an open two-way byte channel to a device.
"""
from abc import ABC, abstractmethod


class Conduit(ABC):
    """
    An open channel to a device. Bytes are read from input and written to output. For a serial
    port both are the port itself.

    A closed conduit is not reopened; each connection gets a new conduit.
    """

    @property
    @abstractmethod
    def input(self):
        """ the stream the device's bytes are read from, with read(size) """

    @property
    @abstractmethod
    def output(self):
        """ the stream bytes for the device are written to, with write(data) """

    @property
    @abstractmethod
    def open(self) -> bool:
        """ False once the channel has been closed or lost """

    @abstractmethod
    def close(self):
        """ closes the channel. A read blocked on input returns or fails. """
