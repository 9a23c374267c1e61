"""
The websocket endpoint clients connect to.

Each connection is served on its own thread by websockets' synchronous server. Messages from a
client are routed in the order they arrive; messages to a client go through its ClientSession.
"""
import logging
import threading
from http import HTTPStatus

from websockets.exceptions import ConnectionClosedError
from websockets.sync.server import serve

from serialrelay.broadcaster import ClientSet
from serialrelay.client import ClientSession

logger = logging.getLogger(__name__)


def parse_address(address):
    """
    Splits a listen address of the form host:port. An empty host listens on all interfaces.

    >>> parse_address(":8080")
    ('', 8080)
    >>> parse_address("127.0.0.1:9000")
    ('127.0.0.1', 9000)
    >>> parse_address("[::1]:9000")
    ('::1', 9000)
    """
    host, sep, port = str(address).rpartition(':')
    if not sep or not port.isdigit():
        raise ValueError("invalid listen address %r, expected host:port" % (address,))
    if host.startswith('[') and host.endswith(']'):
        host = host[1:-1]
    return host, int(port)


class RelayServer:
    """
    Accepts websocket clients on a single path and feeds their messages to the router.

    :param address: the listen address, host:port
    :param path: the only request path accepted for the upgrade
    :param clients: the client set shared with the broadcaster
    :param route: called with each message received from a client
    :param on_failure: called with a session and the error when sending to it fails
    :param on_connect: called with each new session once it is registered
    """

    def __init__(self, address, path, clients: ClientSet, route, on_failure=None, on_connect=None,
                 client_queue_size=256):
        self.address = address
        self.path = path
        self.clients = clients
        self.route = route
        self.on_failure = on_failure
        self.on_connect = on_connect
        self.client_queue_size = client_queue_size
        self._server = None
        self._thread = None

    @property
    def port(self):
        """ the port the server is bound to, once started """
        return self._server.socket.getsockname()[1] if self._server else None

    def start(self):
        """
        Binds the listening socket and serves on a background thread.
        Raises OSError when the address cannot be bound.
        """
        if self._server is not None:
            return
        host, port = parse_address(self.address)
        self._server = serve(self.handle, host, port, process_request=self._check_path)
        logger.info("listening on ws://%s:%d%s" % (host or '0.0.0.0', self.port, self.path))
        self._thread = threading.Thread(target=self._server.serve_forever, name="server", daemon=True)
        self._thread.start()

    def serve_forever(self):
        """ blocks until the server is shut down. """
        if self._thread is not None:
            self._thread.join()

    def stop(self):
        server, self._server = self._server, None
        if server is not None:
            server.shutdown()
        for session in self.clients.snapshot():
            if self.clients.remove(session):
                session.close()

    def _check_path(self, connection, request):
        if request.path.split('?', 1)[0] != self.path:
            logger.info("rejecting connection to %s" % request.path)
            return connection.respond(HTTPStatus.NOT_FOUND, "Not found\n")
        return None

    def handle(self, connection):
        """ serves one client connection until it closes. """
        session = ClientSession(connection, self.on_failure, self.client_queue_size)
        session.start()
        self.clients.add(session)
        logger.info("client connected: %s" % (connection.remote_address,))
        try:
            if self.on_connect is not None:
                self.on_connect(session)
            for message in connection:
                self.route(message)
            logger.info("client disconnected: %s" % (connection.remote_address,))
        except ConnectionClosedError as e:
            logger.warning("error reading from client %s: %s" % (connection.remote_address, e))
        finally:
            self.clients.remove(session)
            session.close()
