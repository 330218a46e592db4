import pytest
from mesh_brute.algorithm.counter_block import build_counter_block


class TestBuildCounterBlock:
    """Test suite for the AES-CTR counter block layout"""

    def test_layout(self):
        """Packet id, zero word, node number, then counter 1, all little endian"""
        block = build_counter_block(100, 200)
        assert block == bytes.fromhex("64000000" "00000000" "c8000000" "01000000")

    def test_length(self):
        assert len(build_counter_block(0xDEADBEEF, 0x12345678)) == 16

    def test_byte_order(self):
        """Least significant byte first for both identifiers"""
        block = build_counter_block(0x11223344, 0xAABBCCDD)
        assert block[0:4] == bytes([0x44, 0x33, 0x22, 0x11])
        assert block[4:8] == bytes(4)
        assert block[8:12] == bytes([0xDD, 0xCC, 0xBB, 0xAA])
        assert block[12:16] == bytes([1, 0, 0, 0])

    def test_deterministic(self):
        """Same inputs always give the same block"""
        assert build_counter_block(42, 7) == build_counter_block(42, 7)

    def test_max_values(self):
        block = build_counter_block(0xFFFFFFFF, 0xFFFFFFFF)
        assert block[:4] == b"\xff" * 4
        assert block[8:12] == b"\xff" * 4

    @pytest.mark.parametrize("packet_id, from_node", [(-1, 0), (0, -1), (2 ** 32, 0), (0, 2 ** 32)])
    def test_out_of_range(self, packet_id, from_node):
        with pytest.raises(ValueError):
            build_counter_block(packet_id, from_node)
