import unittest
from unittest.mock import Mock

from hamcrest import assert_that, calling, instance_of, is_, raises
from serial import SerialException

from serialrelay.conduit.serial_conduit import SerialConduit
from serialrelay.connector.base import ConnectionNotAvailableError, ConnectorError
from serialrelay.connector.serialconn import SerialConnector
from serialrelay.settings import ConnectionSettings


class SerialConnectorTest(unittest.TestCase):

    def setUp(self):
        self.ser = Mock()
        self.ser.is_open = True
        self.factory = Mock(return_value=self.ser)

    def test_unconfigured_by_default(self):
        sut = SerialConnector(serial_factory=self.factory)
        assert_that(sut.settings, is_(ConnectionSettings()))
        assert_that(calling(sut.connect), raises(ConnectionNotAvailableError))
        self.factory.assert_not_called()

    def test_endpoint_is_settings(self):
        settings = ConnectionSettings("COM3", 9600)
        sut = SerialConnector(settings, self.factory)
        assert_that(sut.endpoint, is_(settings))
        assert_that(sut.connected, is_(False))

    def test_connect_opens_port_with_settings(self):
        sut = SerialConnector(ConnectionSettings("COM3", 9600), self.factory, read_timeout=0.2)
        conduit = sut.connect()
        self.factory.assert_called_once_with("COM3", baudrate=9600, timeout=0.2)
        assert_that(conduit, is_(instance_of(SerialConduit)))
        assert_that(conduit.serial_port, is_(self.ser))

    def test_connect_failure_is_connector_error(self):
        self.factory.side_effect = SerialException("could not open port COM9")
        sut = SerialConnector(ConnectionSettings("COM9", 9600), self.factory)
        assert_that(calling(sut.connect), raises(ConnectorError, "could not open port COM9"))
        assert_that(sut.connected, is_(False))

    def test_invalid_baud_rate_is_connector_error(self):
        self.factory.side_effect = ValueError("Not a valid baudrate: -1")
        sut = SerialConnector(ConnectionSettings("COM9", 1), self.factory)
        assert_that(calling(sut.connect), raises(ConnectorError))

    def test_disconnect_closes_port(self):
        sut = SerialConnector(ConnectionSettings("COM3", 9600), self.factory)
        sut.connect()
        sut.disconnect()
        self.ser.close.assert_called_once()
        assert_that(sut.connected, is_(False))
