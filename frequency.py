from collections import Counter
from dataclasses import dataclass
from typing import BinaryIO, List, Union

NUMBER_OF_CHARS = 256 # every possible byte value
CHUNK_SIZE = 1 << 20 # read 1 MiB of input at a time


@dataclass
class Frequency: # a symbol and how many times it was seen
    symbol: int
    count: int = 0


def new_table() -> List[Frequency]: # 256 zeroed entries, entry i holds symbol i
    return [Frequency(symbol, 0) for symbol in range(NUMBER_OF_CHARS)]


def compute_freq(source: Union[str, BinaryIO]) -> List[Frequency]:
    """
    Count every byte of source in a single pass.

    source may be a path or an already opened binary file object; a path is
    opened and closed here, a file object is read from its current position
    and left open for the caller.
    """
    if isinstance(source, (str, bytes)) or hasattr(source, "__fspath__"):
        with open(source, "rb") as fp:
            return compute_freq(fp)

    counts: Counter = Counter()
    while True:
        chunk = source.read(CHUNK_SIZE)
        if not chunk:
            break
        counts.update(chunk) # bytes iterate as ints

    table = new_table()
    for symbol, count in counts.items():
        table[symbol].count = count
    return table


def table_from_bytes(data: bytes) -> List[Frequency]:
    table = new_table()
    for symbol, count in Counter(data).items():
        table[symbol].count = count
    return table


def nonzero(table: List[Frequency]) -> List[Frequency]:
    return [f for f in table if f.count > 0]
