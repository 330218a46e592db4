PORTNUM_TAG = 0x08  # field 1, varint
PAYLOAD_TAG = 0x12  # field 2, length-delimited

# Single-byte varints only.
MAX_SHORT_VARINT = 0x7F


def build_data_message(portnum: int, payload: bytes) -> bytes:
    """ Encode a minimal Data message: portnum then payload. """
    if not 1 <= portnum <= MAX_SHORT_VARINT:
        raise ValueError(f"portnum must be between 1 and {MAX_SHORT_VARINT}, got {portnum}")
    if len(payload) > MAX_SHORT_VARINT:
        raise ValueError(f"payload must be at most {MAX_SHORT_VARINT} bytes, got {len(payload)}")
    return bytes([PORTNUM_TAG, portnum, PAYLOAD_TAG, len(payload)]) + bytes(payload)
