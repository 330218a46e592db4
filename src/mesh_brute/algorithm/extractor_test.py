from mesh_brute.algorithm.extractor import decode_payload, extract
from mesh_brute.algorithm.wire import build_data_message


class TestExtract:
    """Test suite for the single-field payload scan"""

    def test_text_payload(self):
        extraction = extract(bytes([0x08, 0x01, 0x12, 0x03, 0x41, 0x42, 0x43]))
        assert extraction.portnum == 1
        assert extraction.payload == b"ABC"

    def test_trailing_bytes_ignored(self):
        extraction = extract(bytes([0x08, 0x43, 0x12, 0x02, 0x10, 0x20, 0x99, 0x98]))
        assert extraction.portnum == 0x43
        assert extraction.payload == bytes([0x10, 0x20])

    def test_payload_tag_not_right_after_portnum(self):
        """The scan skips unrelated bytes before the payload tag"""
        extraction = extract(bytes([0x08, 0x04, 0x18, 0x05, 0x12, 0x01, 0x7A]))
        assert extraction.payload == b"\x7a"

    def test_no_payload_tag(self):
        extraction = extract(bytes([0x08, 0x03, 0x18, 0x05]))
        assert extraction.portnum == 3
        assert extraction.payload is None

    def test_zero_length(self):
        extraction = extract(bytes([0x08, 0x01, 0x12, 0x00, 0x41]))
        assert extraction.portnum == 1
        assert extraction.payload is None

    def test_length_out_of_bounds(self):
        extraction = extract(bytes([0x08, 0x01, 0x12, 0x09, 0x41, 0x42]))
        assert extraction.portnum == 1
        assert extraction.payload is None

    def test_tag_at_end(self):
        assert extract(bytes([0x08, 0x01, 0x12])).payload is None

    def test_only_first_tag_is_used(self):
        extraction = extract(bytes([0x08, 0x01, 0x12, 0x09, 0x12, 0x01, 0x41]))
        assert extraction.payload is None

    def test_not_a_data_message(self):
        extraction = extract(b"plain text")
        assert extraction.portnum is None
        assert extraction.payload is None

    def test_built_message(self):
        extraction = extract(build_data_message(67, b"\x0d\x01\x02"))
        assert extraction.portnum == 67
        assert extraction.payload == b"\x0d\x01\x02"


class TestDecodePayload:

    def test_text_message_decodes(self):
        assert decode_payload(1, b"ABC") == "ABC"

    def test_text_message_utf8(self):
        assert decode_payload(1, "héllo".encode("utf-8")) == "héllo"

    def test_invalid_utf8_falls_back_to_bytes(self):
        assert decode_payload(1, b"\xff\xfe") == b"\xff\xfe"

    def test_other_ports_stay_bytes(self):
        assert decode_payload(3, b"ABC") == b"ABC"

    def test_none(self):
        assert decode_payload(1, None) is None
