"""
A conduit is a bi-directional channel to the device: an input stream, an output stream
and an open/closed state. The serial conduit wraps a pyserial port; discovery watches
the serial ports available on this machine.
"""
