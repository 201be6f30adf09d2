import io
import random

import pytest

from bitsio import EOF, BitAccumulator, BitsIOFile, open_bit_file
from huffman import build_huffman_tree, generate_huffman_codes, tree_size


def write_bits(path, bits, buffer_size=1 << 20):
    with open_bit_file(path, "w", buffer_size) as bfile:
        for bit in bits:
            bfile.write_bit(bit)


def read_all_bits(path, buffer_size=1 << 20):
    out = []
    with open_bit_file(path, "r", buffer_size) as bfile:
        while True:
            bit = bfile.read_bit()
            if bit == EOF:
                return out
            out.append(bit)


# accumulator on its own

def test_accumulator_packs_eight_bits_high_first():
    acc = BitAccumulator()
    results = [acc.push(b) for b in (1, 0, 1, 1, 0, 0, 1, 0)]
    assert results[:7] == [None] * 7
    assert results[7] == 0b10110010
    assert acc == BitAccumulator()


def test_accumulator_pads_partial_byte_on_the_right():
    acc = BitAccumulator()
    for b in (1, 0, 1):
        acc.push(b)
    assert acc.nbits == 3
    assert acc.padded() == 0b10100000
    assert BitAccumulator().padded() is None


def test_accumulator_unpacks_from_high_bit():
    acc = BitAccumulator(nbits=8)
    assert acc.exhausted
    acc.load(0b10110010)
    bits = [acc.pop() for _ in range(8)]
    assert bits == [1, 0, 1, 1, 0, 0, 1, 0]
    assert acc.exhausted


# files

def test_three_bits_make_one_padded_byte(tmp_path):
    path = tmp_path / "out.bits"
    write_bits(path, [1, 0, 1])
    assert path.read_bytes() == bytes([0b10100000])


def test_full_byte(tmp_path):
    path = tmp_path / "out.bits"
    write_bits(path, [1, 0, 1, 1, 0, 0, 1, 0])
    assert path.read_bytes() == bytes([0b10110010])


def test_no_bits_no_bytes(tmp_path):
    path = tmp_path / "out.bits"
    write_bits(path, [])
    assert path.read_bytes() == b""
    assert read_all_bits(path) == []


def test_bits_round_trip_with_partial_last_byte(tmp_path):
    rng = random.Random(1)
    bits = [rng.randrange(2) for _ in range(1003)]
    path = tmp_path / "out.bits"
    write_bits(path, bits)
    assert path.stat().st_size == 126
    back = read_all_bits(path)
    assert back[:len(bits)] == bits
    assert back[len(bits):] == [0] * 5  # padding is indistinguishable from data


def test_small_buffers_do_not_change_the_bits(tmp_path):
    rng = random.Random(2)
    bits = [rng.randrange(2) for _ in range(777)]
    path = tmp_path / "out.bits"
    write_bits(path, bits, buffer_size=3)
    assert read_all_bits(path, buffer_size=5)[:len(bits)] == bits
    assert path.read_bytes() == _pack(bits)


def _pack(bits):
    padded = bits + [0] * (-len(bits) % 8)
    return bytes(int("".join(map(str, padded[i:i + 8])), 2) for i in range(0, len(padded), 8))


def test_payload_byte_equal_to_old_empty_marker_is_data(tmp_path):
    # 0b11111110 was the "no bits written" marker; here it is just a payload byte
    path = tmp_path / "out.bits"
    write_bits(path, [1, 1, 1, 1, 1, 1, 1, 0, 1])
    assert path.read_bytes() == bytes([0xFE, 0x80])
    assert read_all_bits(path)[:9] == [1, 1, 1, 1, 1, 1, 1, 0, 1]


def test_read_past_end_keeps_returning_eof(tmp_path):
    path = tmp_path / "in.bits"
    path.write_bytes(bytes([0xA0]))
    with open_bit_file(path, "r") as bfile:
        assert [bfile.read_bit() for _ in range(8)] == [1, 0, 1, 0, 0, 0, 0, 0]
        assert bfile.read_bit() == EOF
        assert bfile.read_bit() == EOF


def test_num_bytes_counts_complete_bytes(tmp_path):
    path = tmp_path / "out.bits"
    bfile = open_bit_file(path, "w")
    for bit in (1, 0, 1):
        bfile.write_bit(bit)
    assert bfile.num_bytes() == 0
    for bit in (0, 0, 0, 0, 0):
        bfile.write_bit(bit)
    assert bfile.num_bytes() == 1
    bfile.write_bit(1)
    assert bfile.num_bytes() == 1
    bfile.close()

    rfile = open_bit_file(path, "r")
    assert rfile.num_bytes() == 0
    rfile.read_bit()
    assert rfile.num_bytes() == 1
    rfile.close()


def test_write_bit_returns_bit_and_rejects_non_bits(tmp_path):
    with open_bit_file(tmp_path / "out.bits", "w") as bfile:
        assert bfile.write_bit(1) == 1
        assert bfile.write_bit(0) == 0
        with pytest.raises(ValueError):
            bfile.write_bit(2)


def test_open_write_refuses_existing_file(tmp_path):
    path = tmp_path / "exists.bits"
    path.write_bytes(b"keep me")
    assert open_bit_file(path, "w") is None
    assert path.read_bytes() == b"keep me"


def test_open_read_missing_file(tmp_path):
    assert open_bit_file(tmp_path / "missing.bits", "r") is None


def test_open_rejects_unknown_mode(tmp_path):
    with pytest.raises(ValueError):
        open_bit_file(tmp_path / "x.bits", "a")


def test_double_close_is_an_error(tmp_path):
    bfile = open_bit_file(tmp_path / "out.bits", "w")
    bfile.close()
    with pytest.raises(ValueError):
        bfile.close()


def test_mode_mismatch_is_an_error(tmp_path):
    with open_bit_file(tmp_path / "out.bits", "w") as bfile:
        with pytest.raises(ValueError):
            bfile.read_bit()
        with pytest.raises(ValueError):
            bfile.read_offset()
    with open_bit_file(tmp_path / "out.bits", "r") as bfile:
        with pytest.raises(ValueError):
            bfile.write_bit(1)
        with pytest.raises(ValueError):
            bfile.write_tree(None)


def test_context_manager_flushes_partial_byte_on_error(tmp_path):
    path = tmp_path / "out.bits"
    with pytest.raises(RuntimeError):
        with open_bit_file(path, "w") as bfile:
            bfile.write_bit(1)
            bfile.write_bit(1)
            raise RuntimeError("boom")
    assert bfile.closed
    assert path.read_bytes() == bytes([0b11000000])


def test_offset_round_trip(tmp_path):
    path = tmp_path / "size.bin"
    with open_bit_file(path, "w") as bfile:
        assert bfile.write_offset(300) == 8
    assert path.read_bytes() == (300).to_bytes(8, "big")
    with open_bit_file(path, "r") as bfile:
        assert bfile.read_offset() == 300
        assert bfile.read_offset() == EOF


def test_offset_extremes(tmp_path):
    path = tmp_path / "size.bin"
    with open_bit_file(path, "w") as bfile:
        bfile.write_offset(0)
        bfile.write_offset(2 ** 64 - 1)
        with pytest.raises(ValueError):
            bfile.write_offset(2 ** 64)
        with pytest.raises(ValueError):
            bfile.write_offset(-1)
    with open_bit_file(path, "r") as bfile:
        assert bfile.read_offset() == 0
        assert bfile.read_offset() == 2 ** 64 - 1


def test_short_offset_is_eof(tmp_path):
    path = tmp_path / "short.bin"
    path.write_bytes(b"\x00\x00\x01")
    with open_bit_file(path, "r") as bfile:
        assert bfile.read_offset() == EOF


def test_tree_offset_and_bits_share_one_file(tmp_path):
    data = b"abracadabra"
    root = build_huffman_tree(data)
    codes = generate_huffman_codes(root)
    path = tmp_path / "packed.bin"

    with open_bit_file(path, "w", buffer_size=4) as bfile:
        assert bfile.write_tree(root) == tree_size(root)
        bfile.write_offset(len(data))
        for byte in data:
            for ch in codes[byte]:
                bfile.write_bit(int(ch))

    with open_bit_file(path, "r", buffer_size=4) as bfile:
        back = bfile.read_tree()
        assert generate_huffman_codes(back) == codes
        assert bfile.read_offset() == len(data)
        out = bytearray()
        for _ in range(len(data)):
            node = back
            while not node.is_leaf:
                node = node.left if bfile.read_bit() else node.right
            out.append(node.symbol)
    assert bytes(out) == data


def test_wraps_any_binary_file_object():
    raw = io.BytesIO()
    bfile = BitsIOFile(raw, "w", owns_file=False)
    for bit in (0, 1, 1):
        bfile.write_bit(bit)
    bfile.close()
    assert not raw.closed
    assert raw.getvalue() == bytes([0b01100000])

    raw.seek(0)
    with BitsIOFile(raw, "r", owns_file=False) as reader:
        assert [reader.read_bit() for _ in range(8)] == [0, 1, 1, 0, 0, 0, 0, 0]
        assert reader.read_bit() == EOF
    assert not raw.closed


def test_close_closes_an_owned_file_object():
    raw = io.BytesIO()
    BitsIOFile(raw, "w").close()
    assert raw.closed
