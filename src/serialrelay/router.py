"""
Decodes the JSON messages sent by clients and acts on them.

Two shapes are recognised, checked in this order:

- reconfigure: {"port": "<name>", "baudRate": "<digits>"}
- command:     {"command": "<text>"}
"""
import json
import logging
from collections import namedtuple

from serialrelay import messages
from serialrelay.settings import ConnectionSettings

logger = logging.getLogger(__name__)

PORT = "port"
BAUD_RATE = "baudRate"
COMMAND = "command"

ReconfigureRequest = namedtuple('ReconfigureRequest', ['settings'])
CommandRequest = namedtuple('CommandRequest', ['command'])


class PayloadError(ValueError):
    """ A client message that cannot be acted upon. """

    def __init__(self, *problems):
        super().__init__(*problems)
        self.problems = problems

    def __str__(self):
        return " ".join(str(p) for p in self.problems)


class MalformedPayloadError(PayloadError):
    """ The message is not a JSON object. """


class FieldTypeError(PayloadError):
    """ One or more fields have the wrong type. The problems are the status lines to report. """


class BaudRateConversionError(PayloadError):
    """ The baud rate is not a positive integer. """


class UnrecognizedPayloadError(PayloadError):
    """ The message is a JSON object matching neither the reconfigure nor the command shape. """


def decode_request(payload):
    """
    Decodes a client message into a ReconfigureRequest or a CommandRequest.
    :param payload: the message text (or UTF-8 bytes)
    :raises PayloadError: when the message cannot be decoded
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode('utf-8')
        except UnicodeDecodeError as e:
            raise MalformedPayloadError("message is not UTF-8: %s" % e) from e
    try:
        message = json.loads(payload)
    except ValueError as e:
        raise MalformedPayloadError("message is not JSON: %s" % e) from e
    if not isinstance(message, dict):
        raise MalformedPayloadError("message is not a JSON object: %r" % (message,))

    if PORT in message and BAUD_RATE in message:
        return ReconfigureRequest(_decode_settings(message[PORT], message[BAUD_RATE]))
    if COMMAND in message:
        command = message[COMMAND]
        if not isinstance(command, str):
            raise FieldTypeError(messages.INVALID_COMMAND_TYPE)
        return CommandRequest(command)
    raise UnrecognizedPayloadError("no %s/%s or %s in %s" % (PORT, BAUD_RATE, COMMAND, sorted(message)))


def _decode_settings(port, baud_rate):
    problems = []
    if not isinstance(port, str):
        problems.append(messages.INVALID_PORT_TYPE)
    if not isinstance(baud_rate, str):
        problems.append(messages.INVALID_BAUD_RATE_TYPE)
    if problems:
        raise FieldTypeError(*problems)
    return ConnectionSettings(port, parse_baud_rate(baud_rate))


def parse_baud_rate(value: str) -> int:
    """
    Converts a string of decimal digits to a positive baud rate.

    >>> parse_baud_rate("9600")
    9600
    """
    if not value.isdecimal():
        raise BaudRateConversionError(messages.INVALID_BAUD_RATE)
    value = int(value)
    if value <= 0:
        raise BaudRateConversionError(messages.INVALID_BAUD_RATE)
    return value


class CommandRouter:
    """
    Routes decoded client messages: reconfigure requests to the connection manager, commands
    to the outbound writer. Problems are reported as status lines; a message that is not a
    JSON object is only logged. Nothing here closes the client's session.

    :param report_unrecognized: when True, a JSON object matching neither shape is reported
        to clients; otherwise it is only logged.
    """

    def __init__(self, manager, writer, publish, delimiter='\n', report_unrecognized=True):
        self.manager = manager
        self.writer = writer
        self.publish = publish
        self.delimiter = delimiter
        self.report_unrecognized = report_unrecognized

    def route(self, payload):
        """
        Acts on one client message.
        :return: the decoded request, or None when the message was rejected.
        """
        try:
            request = decode_request(payload)
        except MalformedPayloadError as e:
            logger.warning("dropping client message: %s" % e)
            return None
        except UnrecognizedPayloadError as e:
            logger.warning("unrecognized client message: %s" % e)
            if self.report_unrecognized:
                self.publish(messages.UNRECOGNIZED_MESSAGE)
            return None
        except PayloadError as e:
            logger.info("invalid client message: %s" % e)
            for problem in e.problems:
                self.publish(problem)
            return None

        if isinstance(request, ReconfigureRequest):
            self.manager.configure(request.settings)
        else:
            self.writer.submit(request.command + self.delimiter)
        return request
