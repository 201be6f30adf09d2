"""
File compression on top of the bit layer.

A compressed file holds the serialized tree, the original size as an 8-byte
big-endian integer, then the packed codes of every input byte. Decoding reads
the tree back, then walks it one bit at a time until exactly `size` symbols
have been produced, which also skips the zero padding of the last byte.
"""

import os
from dataclasses import dataclass
from typing import BinaryIO, Dict, Optional, Tuple

from bitsio import BUF_SIZE, EOF, BitsIOFile, open_bit_file
from frequency import CHUNK_SIZE, compute_freq
from huffman import HuffmanNode, build_tree_from_frequencies, generate_huffman_codes


class DecodeError(ValueError):
    pass


@dataclass
class CodecStats:
    original_bytes: int
    compressed_bytes: int
    payload_bytes: int # packed code bytes, headers excluded

    @property
    def ratio(self) -> float:
        if self.original_bytes == 0:
            return 0.0
        return self.compressed_bytes / self.original_bytes


def fsize(filename) -> int:
    """Size of filename in bytes, or -1 if it cannot be stat'ed."""
    try:
        return os.stat(filename).st_size
    except OSError:
        return -1


def code_bits(codes: Dict[int, str]) -> Dict[int, tuple]:
    # '101' -> (1, 0, 1) once per symbol instead of once per input byte
    return {symbol: tuple(1 if ch == '1' else 0 for ch in code) for symbol, code in codes.items()}


def format_code_table(tree: Optional[HuffmanNode]) -> str:
    codes = generate_huffman_codes(tree)
    return "\n".join(f"{symbol}\t{codes[symbol]}" for symbol in sorted(codes))


def _discard(path) -> None:
    # a failed run must not leave a half-written output behind
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


def _encode(src: BinaryIO, bfile: BitsIOFile) -> Tuple[int, int]:
    """Write tree, size and codes of everything in src to bfile and close it."""
    table = compute_freq(src)
    size = sum(f.count for f in table)
    src.seek(0)
    tree = build_tree_from_frequencies(table)
    bits = code_bits(generate_huffman_codes(tree))

    with bfile:
        bfile.write_tree(tree)
        bfile.write_offset(size)
        while True:
            chunk = src.read(CHUNK_SIZE)
            if not chunk:
                break
            for byte in chunk:
                for bit in bits[byte]:
                    bfile.write_bit(bit)
        # the padded final byte is only written on close
        payload = bfile.num_bytes() + (1 if bfile.acc.nbits else 0)
    return size, payload


def _decode(bfile: BitsIOFile, dst: BinaryIO) -> Tuple[int, int]:
    with bfile:
        tree = bfile.read_tree()
        size = bfile.read_offset()
        if size == EOF:
            raise DecodeError("missing original size header")
        if size and tree is None:
            raise DecodeError("empty tree for non-empty payload")

        out = bytearray()
        for done in range(size):
            node = tree
            while not node.is_leaf:
                bit = bfile.read_bit()
                if bit == EOF:
                    raise DecodeError(f"payload ends after {done} of {size} bytes")
                node = node.left if bit else node.right
            out.append(node.symbol)
            if len(out) >= CHUNK_SIZE:
                dst.write(out)
                out.clear()
        dst.write(out)
        payload = bfile.num_bytes()
    return size, payload


def compress_stream(src: BinaryIO, dst: BinaryIO, buffer_size: int = BUF_SIZE) -> CodecStats:
    """Compress seekable src into dst. Both streams stay open."""
    start = dst.tell()
    size, payload = _encode(src, BitsIOFile(dst, "w", buffer_size, owns_file=False))
    return CodecStats(size, dst.tell() - start, payload)


def decompress_stream(src: BinaryIO, dst: BinaryIO, buffer_size: int = BUF_SIZE) -> CodecStats:
    start = src.tell()
    size, payload = _decode(BitsIOFile(src, "r", buffer_size, owns_file=False), dst)
    # the reader buffers ahead, so src.tell() is past what was used
    return CodecStats(size, src.seek(0, os.SEEK_END) - start, payload)


def compress_file(src, dst, buffer_size: int = BUF_SIZE) -> CodecStats:
    if fsize(src) < 0:
        raise FileNotFoundError(f"cannot read {src}")

    with open(src, "rb") as fp:
        bfile = open_bit_file(dst, "w", buffer_size)
        if bfile is None:
            raise FileExistsError(f"cannot create {dst} (it may already exist)")
        try:
            size, payload = _encode(fp, bfile)
        except BaseException:
            _discard(dst)
            raise

    return CodecStats(size, fsize(dst), payload)


def decompress_file(src, dst, buffer_size: int = BUF_SIZE) -> CodecStats:
    bfile = open_bit_file(src, "r", buffer_size)
    if bfile is None:
        raise FileNotFoundError(f"cannot read {src}")

    try:
        fp = open(dst, "xb")
    except BaseException:
        bfile.close()
        raise
    try:
        with fp:
            size, payload = _decode(bfile, fp)
    except BaseException:
        _discard(dst)
        raise

    return CodecStats(size, fsize(src), payload)
