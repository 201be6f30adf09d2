from typing import Dict, Iterator, List, Optional

from frequency import Frequency, compute_freq, table_from_bytes
from pqueue import PriorityQueue

SENTINEL_SYMBOL = 0
SENTINEL_COUNT = 0 # below any real frequency, so the sentinel always merges first

class HuffmanNode: # Node for Huffman tree
    def __init__(self, symbol, frequency, left=None, right=None):
        self.symbol = symbol    # byte or None for internal nodes
        self.frequency = frequency
        self.left = left
        self.right = right
        # smallest symbol in this subtree, the heap tie-break
        self.low = symbol if symbol is not None else min(left.low, right.low)

    @property
    def is_leaf(self) -> bool:
        return self.symbol is not None

    @property
    def is_sentinel(self) -> bool:
        return self.is_leaf and self.frequency == SENTINEL_COUNT

    def key(self):
        return (self.frequency, self.low)

    def __lt__(self, other):
        return self.key() < other.key() # allows the heap to order by frequency, then symbol

    def __repr__(self):
        if self.is_leaf:
            return f"HuffmanNode(symbol={self.symbol}, frequency={self.frequency})"
        return f"HuffmanNode(frequency={self.frequency})"


def new_leaf(freq: Frequency) -> HuffmanNode:
    return HuffmanNode(freq.symbol, freq.count)

def new_internal(left: HuffmanNode, right: HuffmanNode) -> HuffmanNode:
    return HuffmanNode(None, left.frequency + right.frequency, left, right)

def new_sentinel() -> HuffmanNode:
    return HuffmanNode(SENTINEL_SYMBOL, SENTINEL_COUNT)


def create_tree_nodes(table: List[Frequency], priority_queue: PriorityQueue) -> int:
    """
    Enqueue a leaf for every symbol that occurred at least once.
    Symbols with a zero count get no node. Returns the number of leaves queued.
    """
    created = 0
    for freq in table:
        if freq.count > 0:
            priority_queue.enqueue(new_leaf(freq))
            created += 1
    return created


def merge_nodes(priority_queue: PriorityQueue) -> Optional[HuffmanNode]:
    """
    Greedily combine the two least frequent nodes until one root remains.

    The first node dequeued becomes the left child, the second the right child.
    A queue holding a single leaf gets a sentinel partner first so the tree
    always has a real split; an empty queue yields None.
    """
    if priority_queue.size() == 1:
        priority_queue.enqueue(new_sentinel())

    while priority_queue.size() > 1:
        left = priority_queue.dequeue()
        right = priority_queue.dequeue()
        priority_queue.enqueue(new_internal(left, right))

    return priority_queue.dequeue()


def build_tree_from_frequencies(table: List[Frequency]) -> Optional[HuffmanNode]:
    priority_queue = PriorityQueue()
    create_tree_nodes(table, priority_queue)
    return merge_nodes(priority_queue)


def build_huffman_tree(data: bytes) -> Optional[HuffmanNode]:
    return build_tree_from_frequencies(table_from_bytes(data))


def huffman_build_tree(filename) -> Optional[HuffmanNode]:
    """
    Build the Huffman tree for the contents of the named file.
    Returns None if the file cannot be read or is empty.
    """
    try:
        table = compute_freq(filename)
    except OSError:
        return None
    return build_tree_from_frequencies(table)


def huffman_find(tree: HuffmanNode, encoding: str) -> int:
    """
    Walk encoding from the root ('1' goes left, '0' goes right) and return the
    symbol at the leaf reached, or -1 if the encoding holds anything but
    '0' and '1', the walk falls off the tree, or it stops on an internal node.
    """
    node = tree
    if node is None:
        return -1
    for ch in encoding:
        if ch not in "01":
            return -1
        node = node.left if ch == "1" else node.right
        if node is None:
            return -1
    if not node.is_leaf:
        return -1
    return node.symbol


def tree_size(tree: Optional[HuffmanNode]) -> int:
    if tree is None:
        return 0
    return tree_size(tree.left) + tree_size(tree.right) + 1


def tree_free(tree: Optional[HuffmanNode]) -> None: # detach every subtree, children first
    if tree is None:
        return
    tree_free(tree.left)
    tree_free(tree.right)
    tree.left = tree.right = None


def tree_is_leaf(node: HuffmanNode) -> bool:
    return node is not None and node.is_leaf


def iter_leaves(tree: Optional[HuffmanNode]) -> Iterator[HuffmanNode]: # left to right
    if tree is None:
        return
    if tree.is_leaf:
        yield tree
        return
    yield from iter_leaves(tree.left)
    yield from iter_leaves(tree.right)


def symbol_label(symbol: int) -> str:
    if 0x21 <= symbol <= 0x7E:
        return repr(chr(symbol))
    return str(symbol)


def tree_print(tree: Optional[HuffmanNode]) -> str:
    """
    Render the tree one node per line, children indented two columns deeper.
    Leaves look like L/<symbol>/<frequency>/<depth>, internal nodes like
    I/<frequency>/<depth>; a leaf's indent is drawn with '-'. Visible ASCII
    symbols are shown quoted ('a'), every other byte as its decimal value.
    """
    lines: List[str] = []

    def print_indent(node, depth, indent):
        if node is None:
            return
        if node.is_leaf:
            lines.append("-" * indent + f"L/{symbol_label(node.symbol)}/{node.frequency}/{depth}")
        else:
            lines.append(" " * indent + f"I/{node.frequency}/{depth}")
        print_indent(node.left, depth + 1, indent + 2)
        print_indent(node.right, depth + 1, indent + 2)

    print_indent(tree, 0, 0)
    return "\n".join(lines)


def generate_huffman_codes(root: Optional[HuffmanNode]) -> Dict[int, str]: # root: root of the Huffman tree
    codes = {}
    def generate_codes_helper(node, current_code): # recursive helper function to traverse the tree and generate codes
        if node is None:
            return

        # Leaf node -> assign code, the sentinel never gets one
        if node.is_leaf:
            if not node.is_sentinel:
                codes[node.symbol] = current_code
            return

        generate_codes_helper(node.left, current_code + '1')
        generate_codes_helper(node.right, current_code + '0')

    generate_codes_helper(root, '')
    return codes # return the mapping of symbols to their corresponding Huffman codes
