"""
Bit-level reading and writing of compressed files.

Writing: each bit is shifted into the low end of a pending byte. After eight
bits the byte is complete and goes to an in-memory buffer, which is written to
the file whenever it fills up. When the file is closed, a partial byte holding
k < 8 bits is left-justified, its low 8-k bits padded with zeros, and written
as the last byte of the file.

Reading mirrors this: a fresh byte starts with 0 of 8 bits consumed, every
read returns the high bit and shifts the byte left by one, and once all eight
bits are consumed the next byte is fetched from the buffer (refilled from the
file when exhausted). The reader cannot tell padding from payload in the final
byte; callers store the number of symbols up front and stop after that many.
End of data is reported only when the file itself has no more bytes, payload
bytes are never inspected for a marker value.

Header data (the serialized tree and the 8-byte original size) goes through
the same byte buffer but bypasses the bit accumulator, so it must be written
before the first bit and read before the first bit.
"""

from dataclasses import dataclass
from typing import Optional

from huffman import HuffmanNode, tree_size
from treecodec import tree_deserialize, tree_serialize

BUF_SIZE = 1 << 20
EOF = -1
OFFSET_BYTES = 8 # width of the original-size header


@dataclass
class BitAccumulator:
    """The single byte bits are packed into or unpacked from."""
    byte: int = 0
    nbits: int = 0 # bits written so far, or bits consumed so far when reading

    def push(self, bit: int) -> Optional[int]:
        """Shift bit in at the low end. Returns the finished byte after the 8th bit."""
        self.byte = ((self.byte << 1) | bit) & 0xFF
        self.nbits += 1
        if self.nbits < 8:
            return None
        full = self.byte
        self.byte = 0
        self.nbits = 0
        return full

    def padded(self) -> Optional[int]:
        """The pending bits left-justified and zero padded, or None if nothing is pending."""
        if self.nbits == 0:
            return None
        return (self.byte << (8 - self.nbits)) & 0xFF

    @property
    def exhausted(self) -> bool:
        return self.nbits >= 8

    def load(self, byte: int) -> None:
        self.byte = byte & 0xFF
        self.nbits = 0

    def pop(self) -> int:
        bit = self.byte >> 7
        self.byte = (self.byte << 1) & 0xFF
        self.nbits += 1
        return bit


class BitsIOFile:
    def __init__(self, fp, mode: str, buffer_size: int = BUF_SIZE, owns_file: bool = True):
        if mode not in ("r", "w"):
            raise ValueError(f"mode must be 'r' or 'w', not {mode!r}")
        self.fp = fp
        self.owns_file = owns_file # close() also closes fp
        self.mode = mode
        self.count = 0 # packed bytes read/written
        self.acc = BitAccumulator()
        self.buffer_size = buffer_size
        self.buf = bytearray()
        self.index = 0
        self.closed = False
        if mode == "r":
            # nothing left in the current byte, nothing left in the buffer:
            # the first read_bit goes straight to the file
            self.acc.nbits = 8
            self.buf = b""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if not self.closed:
            self.close()
        return False

    def num_bytes(self) -> int:
        return self.count

    # byte layer

    def _fill_buf(self) -> bool:
        data = self.fp.read(self.buffer_size)
        if not data:
            return False
        self.buf = data
        self.index = 0
        return True

    def _flush_buf(self) -> None:
        if self.buf:
            self.fp.write(self.buf)
            self.buf = bytearray()

    def _put_byte(self, byte: int) -> None:
        if len(self.buf) >= self.buffer_size:
            self._flush_buf()
        self.buf.append(byte)

    def _get_byte(self) -> int:
        if self.index >= len(self.buf):
            if not self._fill_buf():
                return EOF
        byte = self.buf[self.index]
        self.index += 1
        return byte

    def write(self, data: bytes) -> int:
        """Append raw bytes, skipping the bit accumulator."""
        self._require("w")
        for byte in data:
            self._put_byte(byte)
        return len(data)

    def read(self, n: int = 1) -> bytes:
        """Read up to n raw bytes, skipping the bit accumulator."""
        self._require("r")
        out = bytearray()
        while len(out) < n:
            byte = self._get_byte()
            if byte == EOF:
                break
            out.append(byte)
        return bytes(out)

    # bit layer

    def write_bit(self, bit: int) -> int:
        if bit not in (0, 1):
            raise ValueError(f"bit must be 0 or 1, not {bit!r}")
        self._require("w")
        full = self.acc.push(bit)
        if full is not None:
            self._put_byte(full)
            self.count += 1
        return bit

    def read_bit(self) -> int:
        """Return the next bit, or EOF when the file has no more bytes."""
        self._require("r")
        if self.acc.exhausted:
            byte = self._get_byte()
            if byte == EOF:
                return EOF
            self.acc.load(byte)
            self.count += 1
        return self.acc.pop()

    def close(self) -> None:
        if self.closed:
            raise ValueError("bit file already closed")
        try:
            if self.mode == "w":
                self._flush_buf()
                last = self.acc.padded()
                if last is not None:
                    self.fp.write(bytes([last]))
                    self.acc = BitAccumulator()
        finally:
            self.closed = True
            if self.owns_file:
                self.fp.close()
            else:
                self.fp.flush()

    # headers

    def write_offset(self, size: int) -> int:
        """Write size as 8 bytes, most significant first."""
        if not 0 <= size < 1 << (8 * OFFSET_BYTES):
            raise ValueError(f"offset {size} does not fit in {OFFSET_BYTES} bytes")
        return self.write(size.to_bytes(OFFSET_BYTES, "big"))

    def read_offset(self) -> int:
        """Read an 8-byte big-endian size, or EOF if fewer than 8 bytes remain."""
        data = self.read(OFFSET_BYTES)
        if len(data) < OFFSET_BYTES:
            return EOF
        return int.from_bytes(data, "big")

    def write_tree(self, tree: Optional[HuffmanNode]) -> int:
        self._require("w")
        tree_serialize(tree, self)
        return tree_size(tree)

    def read_tree(self) -> Optional[HuffmanNode]:
        self._require("r")
        return tree_deserialize(self)

    def _require(self, mode: str) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed bit file")
        if self.mode != mode:
            raise ValueError(f"bit file opened with mode {self.mode!r}")


def open_bit_file(name, mode: str, buffer_size: int = BUF_SIZE) -> Optional[BitsIOFile]:
    """
    Open name for bit writing ("w", the file must not exist yet) or bit
    reading ("r"). Returns None if the file cannot be opened.
    """
    if mode not in ("r", "w"):
        raise ValueError(f"mode must be 'r' or 'w', not {mode!r}")
    try:
        fp = open(name, "xb" if mode == "w" else "rb")
    except OSError:
        return None
    return BitsIOFile(fp, mode, buffer_size)
