from typing import Optional, Union

from mesh_brute.algorithm.wire import PAYLOAD_TAG, PORTNUM_TAG
from mesh_brute.models.search import Extraction
from mesh_brute.portnums import PortNum


def extract(data: bytes) -> Extraction:
    """
    Pull the portnum and the first length-delimited payload out of a
    decrypted Data message.

    Not a protobuf decoder: it looks for the first payload tag after the
    portnum, reads a one-byte length and takes that many bytes if they are
    all there. Trailing or unrelated bytes are ignored.
    """
    if len(data) < 2 or data[0] != PORTNUM_TAG:
        return Extraction()

    portnum = data[1]
    tag_offset = data.find(PAYLOAD_TAG, 2)
    if tag_offset == -1 or tag_offset + 1 >= len(data):
        return Extraction(portnum=portnum)

    length = data[tag_offset + 1]
    start = tag_offset + 2
    end = start + length
    if length == 0 or end > len(data):
        return Extraction(portnum=portnum)

    return Extraction(portnum=portnum, payload=bytes(data[start:end]))


def decode_payload(portnum: Optional[int], payload: Optional[bytes]) -> Union[str, bytes, None]:
    """Text messages come back as str when they are valid UTF-8, everything else as bytes."""
    if payload is None:
        return None
    if portnum == PortNum.TEXT_MESSAGE:
        try:
            return payload.decode("utf-8")
        except UnicodeDecodeError:
            return payload
    return payload
