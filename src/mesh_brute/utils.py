import base64
from typing import List, Literal, TypeAlias, Union

CiphertextFormat: TypeAlias = Union[Literal[
    "b64",
    "b64_urlsafe",
    "hex",
    "raw"
], str]

CIPHERTEXT_FORMATS = ("b64", "b64_urlsafe", "hex", "raw")


def _as_bytes(
    data: Union[str, bytes, bytearray, memoryview],
    *,
    encoding: str = "utf-8",
) -> bytes:
    """Normalize values to type bytes."""
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return data.encode(encoding)
    raise TypeError(f"Cannot convert {type(data).__name__} to bytes")


def b64_encode(
    data: Union[str, bytes, bytearray, memoryview],
    *,
    urlsafe: bool = False,
    text_encoding: str = "utf-8",
) -> str:
    """Accepts str/bytes/etc and return a base64 string (standard or URL-safe)."""
    raw = _as_bytes(data, encoding=text_encoding)
    fn = base64.urlsafe_b64encode if urlsafe else base64.b64encode
    return fn(raw).decode("ascii")


def b64_decode(b64_text: Union[str, bytes], *, urlsafe: bool = False) -> bytes:
    """Decodes standard or URL-safe b64. Tolerates missing '=' padding and surrounding whitespace."""
    text = _as_bytes(b64_text).strip()
    missing = len(text) % 4
    if missing:
        text += b"=" * (4 - missing)

    if urlsafe:
        return base64.urlsafe_b64decode(text)
    return base64.b64decode(text, validate=True)


def decode_ciphertext(data: Union[str, bytes], format: CiphertextFormat) -> bytes:
    """Decode ciphertext given on the command line or read from a file."""
    if format == "b64":
        return b64_decode(data)
    elif format == "b64_urlsafe":
        return b64_decode(data, urlsafe=True)
    elif format == "hex":
        text = _as_bytes(data).decode("ascii")
        return bytes.fromhex("".join(text.split()))
    elif format == "raw":
        return _as_bytes(data)
    else:
        raise ValueError(f"Invalid ciphertext format: {format}")


def encode_ciphertext(data: bytes, format: CiphertextFormat) -> Union[str, bytes]:
    if format == "b64":
        return b64_encode(data)
    elif format == "b64_urlsafe":
        return b64_encode(data, urlsafe=True)
    elif format == "hex":
        return data.hex()
    elif format == "raw":
        return data
    else:
        raise ValueError(f"Invalid ciphertext format: {format}")


def load_ciphertext(file_path: str, format: CiphertextFormat) -> bytes:
    """Load the ciphertext from a file."""
    with open(file_path, "rb") as f:
        data = f.read()
    return decode_ciphertext(data, format)


def parse_u32(text: str) -> int:
    """Parse a packet id or node number: decimal, 0x-hex, or a !xxxxxxxx node id."""
    text = text.strip()
    if text.startswith("!"):
        value = int(text[1:], 16)
    else:
        value = int(text, 0)
    if not 0 <= value <= 0xFFFFFFFF:
        raise ValueError(f"{text} does not fit in 32 bits")
    return value


def format_node_id(node: int) -> str:
    return f"!{node:08x}"


def format_hex_dump(data: bytes, bytes_per_line: int = 16) -> List[str]:
    """ Offset, hex and ASCII columns, one line per `bytes_per_line` bytes. """
    lines = []
    for i in range(0, len(data), bytes_per_line):
        chunk = data[i:i + bytes_per_line]
        hex_part = " ".join(f"{b:02X}" for b in chunk)
        ascii_part = "".join(chr(b) if 0x20 <= b < 0x7f else "." for b in chunk)
        lines.append(f"{i:04X}  {hex_part.ljust(bytes_per_line * 3 - 1)}  {ascii_part}")
    return lines
