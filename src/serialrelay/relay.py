"""
The relay application: wires the serial connection, the broadcaster and the websocket server
together, and provides the command line entry point.

The module level values below are the tunables. They are overridden by the relay.*.cfg
configuration files beside this module (see serialrelay.config.config), and then by the
command line.
"""
import argparse
import logging
import sys
import time
from functools import partial

import serial
from configobj import ConfigObjError

from serialrelay.broadcaster import Broadcaster, ClientSet
from serialrelay.conduit.serial_conduit import serial_ports
from serialrelay.config.config import configure_module
from serialrelay.connection_manager import ConnectionManager, SupervisingLoop, log_connection_events
from serialrelay.connector.serialconn import SerialConnector
from serialrelay.port_monitor import PortMonitor
from serialrelay.reader import InboundReader
from serialrelay.router import CommandRouter
from serialrelay.server import RelayServer
from serialrelay.settings import ConnectionSettings
from serialrelay.writer import OutboundWriter

logger = logging.getLogger(__name__)

address = ':8080'
path = '/serialmonitor'
port = ''
baud_rate = 0
retry_period = 5.0
release_delay = 1.0
read_size = 128
read_timeout = 0.1
port_poll_interval = 2.0
client_queue_size = 256
report_unrecognized = True
announce_ports = True


class SerialRelay:
    """
    One serial device shared by any number of websocket clients.

    Values not given are taken from the module tunables when the relay is created.

    :param settings: the connection settings to start with. Unconfigured when not given;
        clients then choose the port.
    :param serial_factory: opens a serial port, see SerialConnector
    :param discovery: the port discovery polled by the port monitor
    """

    def __init__(self, address=None, path=None, settings=None, serial_factory=serial.serial_for_url,
                 discovery=None, sleep=time.sleep):
        module = sys.modules[__name__]
        self.clients = ClientSet()
        self.broadcaster = Broadcaster(self.clients)
        publish = self.broadcaster.publish

        self.connector = SerialConnector(settings, serial_factory, module.read_timeout)
        self.manager = ConnectionManager(self.connector, publish, module.retry_period, module.release_delay,
                                         reader_factory=partial(InboundReader.for_manager, read_size=module.read_size),
                                         sleep=sleep)
        self.manager.events += log_connection_events
        self.supervisor = SupervisingLoop(self.manager)
        self.writer = OutboundWriter(self.manager, publish)
        self.router = CommandRouter(self.manager, self.writer, publish,
                                    report_unrecognized=module.report_unrecognized)
        self.port_monitor = PortMonitor(self.manager, publish, discovery, module.port_poll_interval,
                                        module.announce_ports)
        self.server = RelayServer(address or module.address, path or module.path, self.clients, self.router.route,
                                  on_failure=self._client_failed, on_connect=self._client_connected,
                                  client_queue_size=module.client_queue_size)

    def _client_failed(self, session, error):
        logger.warning("send to %s failed: %s" % (session, error))
        self.broadcaster.drop(session)

    def _client_connected(self, session):
        if self.port_monitor.announce_changes:
            self.port_monitor.announce()

    def start(self):
        """
        Starts the server and the background loops.
        :raises OSError: when the server cannot listen on its address
        """
        self.server.start()
        self.broadcaster.start()
        self.writer.start()
        self.port_monitor.start()
        self.supervisor.start()

    def stop(self):
        self.server.stop()
        self.supervisor.stop()
        self.port_monitor.stop()
        self.writer.stop()
        self.manager.close()
        self.broadcaster.stop()

    def serve_forever(self):
        self.server.serve_forever()


def parse_args(argv):
    parser = argparse.ArgumentParser(prog='serial-relay',
                                     description='Relays a serial port to websocket clients.')
    parser.add_argument('--address', help='the host:port to listen on (default %s)' % address)
    parser.add_argument('--path', help='the websocket path (default %s)' % path)
    parser.add_argument('--config', action='append', default=[], metavar='FILE',
                        help='an additional configuration file. May be repeated.')
    parser.add_argument('--port', help='the serial port to open at startup')
    parser.add_argument('--baud', type=int, help='the baud rate for --port')
    parser.add_argument('--list-ports', action='store_true', help='list the serial ports and exit')
    parser.add_argument('-v', '--verbose', action='store_true', help='log debug messages')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    if args.list_ports:
        for name in serial_ports():
            print(name)
        return 0

    try:
        configure_module(sys.modules[__name__], extra_files=args.config)
    except (ConfigObjError, IOError) as e:
        logger.critical("invalid configuration: %s" % e)
        sys.exit(1)

    settings = ConnectionSettings(args.port or port, args.baud or baud_rate)
    relay = SerialRelay(args.address, args.path, settings)
    try:
        relay.start()
    except OSError as e:
        logger.critical("unable to listen on %s: %s" % (relay.server.address, e))
        sys.exit(1)
    try:
        relay.serve_forever()
    except KeyboardInterrupt:
        logger.info("interrupted, shutting down")
    finally:
        relay.stop()
    return 0


if __name__ == '__main__':  # pragma no cover
    sys.exit(main())
