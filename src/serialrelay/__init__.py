"""
Relays a serial port to any number of websocket clients.

Lines received from the device are broadcast to every client as text. Clients send JSON:
{"port": ..., "baudRate": ...} reconnects the device with new settings, and {"command": ...}
writes the command, followed by a newline, to the device. Status lines describing what
happened are broadcast to every client.

The pieces:

- connection_manager: owns the one serial connection and keeps it open
- reader and writer: move data from and to the device
- broadcaster and client: fan messages out to the connected clients
- router: decodes client messages
- port_monitor: watches the ports attached to the machine
- server: the websocket endpoint
- relay: wires everything together; the command line entry point
"""
