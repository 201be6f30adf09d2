"""
Text form of a Huffman tree.

Only the leaves are stored, as '#' followed by one "<count> <symbol>," record
per leaf in left-to-right order, followed by '#':

    #1 98,4 97,#

Rebuilding a tree queues those leaves and replays the same merge used to build
the original. The merge order depends only on (count, symbol) pairs, so the
rebuilt tree has the same shape and therefore the same codes.
"""

import io
from typing import BinaryIO, Optional

from huffman import HuffmanNode, iter_leaves, merge_nodes
from pqueue import PriorityQueue

DELIMITER = b"#"
MAX_SYMBOL = 255


class TreeFormatError(ValueError):
    pass


def tree_serialize(tree: Optional[HuffmanNode], fp: BinaryIO) -> int:
    """Write tree to fp and return the number of bytes written. None writes '##'."""
    records = b"".join(
        b"%d %d," % (leaf.frequency, leaf.symbol) for leaf in iter_leaves(tree)
    )
    out = DELIMITER + records + DELIMITER
    fp.write(out)
    return len(out)


class _Scanner:
    # one-byte lookahead over a binary stream

    def __init__(self, fp: BinaryIO):
        self.fp = fp
        self.pending = b""

    def getc(self) -> bytes:
        if self.pending:
            c, self.pending = self.pending, b""
            return c
        return self.fp.read(1)

    def ungetc(self, c: bytes) -> None:
        self.pending = c

    def expect(self, want: bytes, what: str) -> None:
        c = self.getc()
        if not c:
            raise TreeFormatError(f"unexpected end of input, wanted {what}")
        if c != want:
            raise TreeFormatError(f"expected {what}, found {c!r}")

    def integer(self, what: str) -> int:
        digits = b""
        c = self.getc()
        if c == b"-":
            digits, c = c, self.getc()
        while c and c.isdigit():
            digits += c
            c = self.getc()
        if c:
            self.ungetc(c)
        if digits in (b"", b"-"):
            if not c:
                raise TreeFormatError(f"unexpected end of input, wanted {what}")
            raise TreeFormatError(f"expected {what}, found {c!r}")
        return int(digits)


def tree_deserialize(fp: BinaryIO) -> Optional[HuffmanNode]:
    """
    Read a tree written by tree_serialize from fp.

    Returns None for the empty tree '##'. Raises TreeFormatError when the
    delimiters or a record are malformed or the input ends early.
    """
    scanner = _Scanner(fp)
    first = scanner.getc()
    if first != DELIMITER:
        raise TreeFormatError("serialized tree must start with '#'")

    priority_queue = PriorityQueue()
    while True:
        c = scanner.getc()
        if c == DELIMITER:
            break
        if not c:
            raise TreeFormatError("unexpected end of input, wanted '#'")
        scanner.ungetc(c)

        count = scanner.integer("a count")
        scanner.expect(b" ", "' '")
        symbol = scanner.integer("a symbol")
        scanner.expect(b",", "','")

        if count < 0:
            raise TreeFormatError(f"negative count {count}")
        if not 0 <= symbol <= MAX_SYMBOL:
            raise TreeFormatError(f"symbol {symbol} is not a byte value")
        if not priority_queue.enqueue(HuffmanNode(symbol, count)):
            raise TreeFormatError(f"more than {priority_queue.capacity} leaves")

    return merge_nodes(priority_queue)


def tree_to_bytes(tree: Optional[HuffmanNode]) -> bytes:
    buf = io.BytesIO()
    tree_serialize(tree, buf)
    return buf.getvalue()


def tree_from_bytes(data: bytes) -> Optional[HuffmanNode]:
    return tree_deserialize(io.BytesIO(data))
