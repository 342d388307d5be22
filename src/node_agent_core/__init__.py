"""
Node Agent Core — sense/control client agent for a single device.

Registers with the host, validates local sensors and controllers against the
host's declared configuration, then periodically reports sensor readings and
applies the control actions the host sends back.
"""
