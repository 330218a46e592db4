from typing import Iterator, List, Optional, Tuple

KEY_SIZE = 16

# Meshtastic default channel key. Simple PSKs (1..10) reuse it with the
# last byte replaced by the PSK index.
DEFAULT_PSK_TEMPLATE = bytes([
    0xd4, 0xf1, 0xbb, 0x3a, 0x20, 0x29, 0x07, 0x59,
    0xf0, 0xbc, 0xff, 0xab, 0xcf, 0x4e, 0x69, 0x01,
])
SIMPLE_PSK_RANGE = range(1, 11)


def key_space_size(depth: int) -> int:
    return 256 ** depth


class KeySpace:
    """
    Lazy cursor over every `depth`-byte candidate key in ascending order.

    Index i maps to i.to_bytes(depth, "little"), so byte 0 is the least
    significant byte of the counter. Only the next index is kept; the space
    is never materialized. `start`/`stop` restrict the cursor to a sub-range
    of indices. Exhausted cursors stay exhausted, make a new one to restart.
    """

    def __init__(self, depth: int, start: int = 0, stop: Optional[int] = None):
        if depth < 1:
            raise ValueError(f"depth must be at least 1, got {depth}")
        size = key_space_size(depth)
        if stop is None:
            stop = size
        if not 0 <= start <= stop <= size:
            raise ValueError(f"invalid key range [{start}, {stop}) for depth {depth}")
        self.depth = depth
        self.start = start
        self.stop = stop
        self._next_index = start

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        if self._next_index >= self.stop:
            raise StopIteration
        candidate = self._next_index.to_bytes(self.depth, "little")
        self._next_index += 1
        return candidate

    def __len__(self) -> int:
        return self.stop - self._next_index

    def take(self, count: int) -> List[bytes]:
        """Pull up to `count` candidates. Empty once the range is exhausted."""
        end = min(self._next_index + count, self.stop)
        depth = self.depth
        candidates = [i.to_bytes(depth, "little") for i in range(self._next_index, end)]
        self._next_index = end
        return candidates


def partition(depth: int, parts: int) -> List[Tuple[int, int]]:
    """Split the key space into `parts` disjoint, contiguous index ranges."""
    if parts < 1:
        raise ValueError(f"parts must be at least 1, got {parts}")
    size = key_space_size(depth)
    parts = min(parts, size)
    step, extra = divmod(size, parts)

    ranges = []
    start = 0
    for n in range(parts):
        stop = start + step + (1 if n < extra else 0)
        ranges.append((start, stop))
        start = stop
    return ranges


def pad_key(candidate: bytes, size: int = KEY_SIZE) -> bytes:
    """ Right-pad a short key with zero bytes to the cipher key size. """
    if len(candidate) > size:
        raise ValueError(f"key is {len(candidate)} bytes, longer than {size}")
    return bytes(candidate).ljust(size, b"\x00")


def expand_key(candidate: bytes, simple_psk: bool = False) -> bytes:
    """Turn a short candidate into the 16-byte AES key."""
    if simple_psk and len(candidate) == 1 and candidate[0] in SIMPLE_PSK_RANGE:
        return DEFAULT_PSK_TEMPLATE[:-1] + bytes(candidate)
    return pad_key(candidate)
