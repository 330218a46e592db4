from enum import IntEnum


class PortNum(IntEnum):
    """Application port numbers carried in field 1 of a decrypted Data message."""

    TEXT_MESSAGE = 1
    POSITION = 3
    NODEINFO = 4
    ROUTING = 5
    ADMIN = 32
    REPLY = 33
    TELEMETRY = 67
    TRACEROUTE = 68
    NEIGHBORINFO = 70
    ATAK_FORWARDER = 71
    MAP_REPORT = 72
    STORE_FORWARD = 73


KNOWN_PORTNUMS = frozenset(int(p) for p in PortNum)


def portnum_label(portnum: int) -> str:
    """Human readable name for a port number, `PORT_<n>` when unknown."""
    try:
        return PortNum(portnum).name
    except ValueError:
        return f"PORT_{portnum}"
