"""
The connector knows how to open a conduit to the device for a given set of connection
settings. It translates failures of the physical layer into ConnectorError.
"""
