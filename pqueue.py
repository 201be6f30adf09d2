"""
Bounded binary min-heap of Huffman tree nodes.

Nodes are ordered by frequency, ties broken by symbol (an internal node
competes with the smallest symbol it contains). Subtrees held by the queue
never share a symbol, so this is a total order: the sequence of dequeues is
fully determined by the set of nodes, whatever order they were enqueued in.
"""

from typing import List, Optional

MAXSIZE = 256 # one slot per possible byte symbol


def _left_child(i: int) -> int:
    return (i << 1) + 1

def _right_child(i: int) -> int:
    return (i << 1) + 2

def _parent(i: int) -> int:
    return (i - 1) >> 1


class PriorityQueue:
    def __init__(self, capacity: int = MAXSIZE):
        self.capacity = capacity
        self.queue: List = [] # heap array, queue[0] is the minimum

    def __len__(self) -> int:
        return len(self.queue)

    def size(self) -> int:
        return len(self.queue)

    def is_empty(self) -> bool:
        return not self.queue

    def enqueue(self, node) -> bool:
        """Add node and sift it up. Returns False (and drops nothing) when full."""
        if len(self.queue) >= self.capacity:
            return False
        self.queue.append(node)
        self._bubble_up(len(self.queue) - 1)
        return True

    def dequeue(self):
        """Remove and return the smallest node, or None if the queue is empty."""
        if not self.queue:
            return None
        arr = self.queue
        top = arr[0]
        last = arr.pop()
        if arr:
            arr[0] = last
            self._bubble_down(0)
        return top

    def peek(self):
        return self.queue[0] if self.queue else None

    def clear(self) -> None: # releases every node still held
        self.queue = []

    def print_queue(self) -> str:
        return ", ".join(_label(n) for n in self.queue)

    def _bubble_up(self, i: int) -> None:
        arr = self.queue
        src = arr[i]
        while i > 0:
            parent = _parent(i)
            if not src < arr[parent]:
                break
            arr[i] = arr[parent]
            i = parent
        arr[i] = src

    def _bubble_down(self, i: int) -> None:
        arr = self.queue
        end = len(arr)
        src = arr[i]
        left = _left_child(i)
        while left < end:
            smaller = left
            right = _right_child(i)
            if right < end and arr[right] < arr[left]:
                smaller = right
            if not arr[smaller] < src:
                break
            arr[i] = arr[smaller]
            i = smaller
            left = _left_child(i)
        arr[i] = src


def _label(node) -> str:
    if node.symbol is None:
        return f"*{node.frequency}"
    return f"{node.symbol}:{node.frequency}"
