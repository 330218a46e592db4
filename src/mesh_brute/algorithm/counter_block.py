import struct

COUNTER_BLOCK_SIZE = 16
INITIAL_COUNTER = 1

# packetId (u32 LE) | 4 zero bytes | fromNode (u32 LE) | counter (u32 LE)
_LAYOUT = struct.Struct("<I4xII")


def build_counter_block(packet_id: int, from_node: int) -> bytes:
    """
    Build the 16-byte initial AES-CTR counter block for a packet.

    bytes 0-3:   packet id, little endian
    bytes 4-7:   zero (high half of the 64-bit packet id)
    bytes 8-11:  sending node number, little endian
    bytes 12-15: block counter, starts at 1
    """
    if not 0 <= packet_id <= 0xFFFFFFFF:
        raise ValueError(f"packet_id out of u32 range: {packet_id}")
    if not 0 <= from_node <= 0xFFFFFFFF:
        raise ValueError(f"from_node out of u32 range: {from_node}")
    return _LAYOUT.pack(packet_id, from_node, INITIAL_COUNTER)
