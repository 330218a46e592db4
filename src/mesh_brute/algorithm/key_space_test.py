import pytest
from mesh_brute.algorithm.key_space import (
    DEFAULT_PSK_TEMPLATE,
    KeySpace,
    expand_key,
    key_space_size,
    pad_key,
    partition,
)


class TestKeySpace:
    """Test suite for the lazy candidate key cursor"""

    def test_depth_one_order(self):
        """Depth 1 walks 0x00 through 0xff in order"""
        keys = list(KeySpace(1))
        assert len(keys) == 256
        assert keys[0] == b"\x00"
        assert keys[0x2A] == b"\x2a"
        assert keys[-1] == b"\xff"

    def test_depth_two_complete(self):
        """Every 2-byte key appears exactly once"""
        keys = list(KeySpace(2))
        assert len(keys) == 65536
        assert len(set(keys)) == 65536
        assert all(len(k) == 2 for k in keys)
        assert {int.from_bytes(k, "little") for k in keys} == set(range(65536))

    def test_least_significant_byte_first(self):
        """Byte 0 counts fastest"""
        keys = KeySpace(2).take(258)
        assert keys[1] == b"\x01\x00"
        assert keys[255] == b"\xff\x00"
        assert keys[256] == b"\x00\x01"
        assert keys[257] == b"\x01\x01"

    def test_depth_four_is_lazy(self):
        """A 2^32 space is usable without building it"""
        space = KeySpace(4)
        assert len(space) == 2 ** 32
        assert next(space) == b"\x00\x00\x00\x00"
        assert len(space) == 2 ** 32 - 1

    def test_depth_four_last_key(self):
        space = KeySpace(4, start=2 ** 32 - 1)
        assert list(space) == [b"\xff\xff\xff\xff"]

    def test_take_chunks(self):
        space = KeySpace(1)
        assert len(space.take(100)) == 100
        assert len(space.take(100)) == 100
        assert len(space.take(100)) == 56
        assert space.take(100) == []

    def test_not_rewindable(self):
        """Exhausted cursors stay exhausted; a new cursor starts over"""
        space = KeySpace(1)
        list(space)
        assert list(space) == []
        assert next(KeySpace(1)) == b"\x00"

    def test_sub_range(self):
        keys = list(KeySpace(1, start=10, stop=13))
        assert keys == [b"\x0a", b"\x0b", b"\x0c"]

    @pytest.mark.parametrize("depth, start, stop", [(0, 0, None), (1, 5, 4), (1, 0, 257), (1, -1, None)])
    def test_invalid(self, depth, start, stop):
        with pytest.raises(ValueError):
            KeySpace(depth, start, stop)


class TestPartition:
    """Test suite for splitting the key space between workers"""

    @pytest.mark.parametrize("depth, parts", [(1, 1), (1, 3), (2, 7), (3, 8), (1, 1000)])
    def test_covers_space_without_overlap(self, depth, parts):
        ranges = partition(depth, parts)
        assert ranges[0][0] == 0
        assert ranges[-1][1] == key_space_size(depth)
        for (_, stop), (start, _) in zip(ranges, ranges[1:]):
            assert stop == start
        assert all(start < stop for start, stop in ranges)

    def test_even_split(self):
        assert partition(1, 4) == [(0, 64), (64, 128), (128, 192), (192, 256)]

    def test_invalid_parts(self):
        with pytest.raises(ValueError):
            partition(1, 0)


class TestKeyPadding:
    """Test suite for short key to AES key expansion"""

    @pytest.mark.parametrize("length", [1, 2, 3, 4, 15, 16])
    def test_pad_key_length(self, length):
        candidate = bytes(range(1, length + 1))
        key = pad_key(candidate)
        assert len(key) == 16
        assert key[:length] == candidate
        assert key[length:] == bytes(16 - length)

    def test_pad_key_too_long(self):
        with pytest.raises(ValueError):
            pad_key(bytes(17))

    def test_expand_key_defaults_to_zero_padding(self):
        assert expand_key(b"\x01") == b"\x01" + bytes(15)

    def test_expand_simple_psk(self):
        """Simple PSK indexes replace the last byte of the default key"""
        key = expand_key(b"\x05", simple_psk=True)
        assert key[:15] == DEFAULT_PSK_TEMPLATE[:15]
        assert key[15] == 5

    @pytest.mark.parametrize("candidate", [b"\x00", b"\x0b", b"\x2a", b"\x01\x00"])
    def test_expand_simple_psk_only_for_one_to_ten(self, candidate):
        assert expand_key(candidate, simple_psk=True) == pad_key(candidate)
