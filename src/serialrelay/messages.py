"""
The plain-text status lines broadcast to clients.
"""

SETTINGS_CHANGED = "Settings changed: port %s, baud rate %d"
SETTINGS_UNCHANGED = "Port and baud rate settings are unchanged."
NO_PORT_SELECTED = "No port selected."
OPEN_FAILED = "Error: unable to open serial port %s (%s). Check the settings and reconnect to the port."
CONNECTED = "Connected to serial port %s at %d baud."
READ_FAILED = "Error reading from serial port: %s"
NOT_CONNECTED = "Error: port is not open. Message not sent."
SENT = "Sent to serial port: %s"
WRITE_FAILED = "Error writing to serial port: %s"
INVALID_PORT_TYPE = "Error: invalid data type for port."
INVALID_BAUD_RATE_TYPE = "Error: invalid data type for baud rate."
INVALID_BAUD_RATE = "Error converting baud rate."
INVALID_COMMAND_TYPE = "Error: invalid data type for command."
UNRECOGNIZED_MESSAGE = "Error: unrecognized message, expected port and baudRate, or command."
PORT_LIST = "Available ports: %s"
PORT_GONE = "Port %s is no longer available. Settings reset."
