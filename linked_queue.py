from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Tuple, Union

from models import QueueStatus, _Node

logger = logging.getLogger(__name__)

Text = Union[str, bytes, bytearray, memoryview]


def _copy_value(text: Text) -> bytes:
    """
    Own copy of text as bytes. Non-text input is a caller error:
    TypeError for other types, ValueError for a str that is not valid UTF-8.
    """
    if isinstance(text, str):
        try:
            return text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ValueError(f"text is not encodable as UTF-8: {e.reason}") from e
    if isinstance(text, (bytes, bytearray, memoryview)):
        return memoryview(text).tobytes()
    raise TypeError(f"expected str or bytes-like text, got {type(text).__name__}")


def _new_node(value: bytes, next_node: Optional[_Node] = None) -> _Node:
    return _Node(value=value, next=next_node)


class StringQueue:
    """
    Singly linked queue of byte strings.
    insert_head / insert_tail / remove_head / size: O(1)
    reverse: O(n), sort: O(n log n), both rewire the existing nodes in place.

    Each node holds its own copy of the inserted text; tail is only a
    shortcut into the chain, clear() always walks from head.
    """

    def __init__(self) -> None:
        self._head: Optional[_Node] = None
        self._tail: Optional[_Node] = None
        self._size: int = 0

    # -------------------------
    # insertion
    # -------------------------
    def _allocate(self, text: Text) -> Optional[_Node]:
        try:
            node = _new_node(b"")
        except MemoryError:
            logger.warning("node allocation failed")
            return None
        try:
            node.value = _copy_value(text)
        except MemoryError:
            # node is dropped here, nothing has been linked yet
            logger.warning("value allocation failed (%d bytes)", len(text))
            return None
        return node

    def insert_head(self, text: Text) -> QueueStatus:
        node = self._allocate(text)
        if node is None:
            return QueueStatus.ALLOCATION_FAILED

        node.next = self._head
        self._head = node
        if self._tail is None:
            self._tail = node
        self._size += 1
        return QueueStatus.SUCCESS

    def insert_tail(self, text: Text) -> QueueStatus:
        node = self._allocate(text)
        if node is None:
            return QueueStatus.ALLOCATION_FAILED

        if self._tail is None:
            self._head = node
        else:
            self._tail.next = node
        self._tail = node
        self._size += 1
        return QueueStatus.SUCCESS

    # -------------------------
    # removal / query
    # -------------------------
    def remove_head(self) -> Optional[bytes]:
        if self._head is None:
            return None
        node = self._head
        self._head = node.next
        if self._head is None:
            self._tail = None
        node.next = None
        self._size -= 1
        return node.value

    def peek(self) -> Optional[bytes]:
        return None if self._head is None else self._head.value

    def size(self) -> int:
        return self._size

    def is_empty(self) -> bool:
        return self._size == 0

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[bytes]:
        node = self._head
        while node is not None:
            yield node.value
            node = node.next

    def values(self) -> List[bytes]:
        return list(self)

    def clear(self) -> None:
        """
        Release every node, walking from head.
        """
        while self._head is not None:
            node = self._head
            self._head = node.next
            node.next = None
        self._tail = None
        self._size = 0

    # -------------------------
    # in-place rearrangement
    # -------------------------
    def reverse(self) -> None:
        if self._head is None or self._head.next is None:
            return

        prev: Optional[_Node] = None
        node = self._head
        self._tail = node
        while node is not None:
            following = node.next
            node.next = prev
            prev = node
            node = following
        self._head = prev
        logger.debug("reversed %d nodes", self._size)

    def sort(self) -> None:
        """
        Ascending byte-wise merge sort over the links.

        Ties go to the right-hand run: equal values do NOT keep their
        insertion order.
        """
        if self._head is None or self._head.next is None:
            return

        self._head = _merge_sort(self._head)

        tail = self._head
        while tail.next is not None:
            tail = tail.next
        self._tail = tail
        logger.debug("sorted %d nodes", self._size)

    # -------------------------
    # checks
    # -------------------------
    def check_invariants(self) -> None:
        if self._size == 0:
            if self._head is not None or self._tail is not None:
                raise AssertionError("empty queue with dangling head/tail")
            return
        if self._head is None or self._tail is None:
            raise AssertionError(f"size {self._size} but head/tail missing")

        count = 1
        node = self._head
        while node.next is not None:
            node = node.next
            count += 1
        if count != self._size:
            raise AssertionError(f"size {self._size} but {count} nodes reachable")
        if node is not self._tail:
            raise AssertionError("tail is not the last reachable node")


def _split(head: _Node) -> Tuple[_Node, _Node]:
    # slow/fast walk: the left run keeps ceil(n/2) nodes
    slow = head
    fast = head.next
    while fast is not None and fast.next is not None:
        slow = slow.next
        fast = fast.next.next
    mid = slow.next
    slow.next = None
    return head, mid


def _merge(left: Optional[_Node], right: Optional[_Node]) -> Optional[_Node]:
    head: Optional[_Node] = None
    last: Optional[_Node] = None

    while left is not None and right is not None:
        # strict <, so the right run wins on equality
        if left.value < right.value:
            taken, left = left, left.next
        else:
            taken, right = right, right.next
        if last is None:
            head = taken
        else:
            last.next = taken
        last = taken

    rest = left if left is not None else right
    if last is None:
        return rest
    last.next = rest
    return head


def _merge_sort(head: Optional[_Node]) -> Optional[_Node]:
    # recursion depth is log2(n)
    if head is None or head.next is None:
        return head
    left, right = _split(head)
    return _merge(_merge_sort(left), _merge_sort(right))


# -------------------------
# handle-style API (None is an absent queue)
# -------------------------
def q_new() -> Optional[StringQueue]:
    try:
        return StringQueue()
    except MemoryError:
        logger.warning("queue allocation failed")
        return None


def q_free(q: Optional[StringQueue]) -> None:
    if q is None:
        return
    q.clear()


def insert_head(q: Optional[StringQueue], s: Text) -> QueueStatus:
    if q is None:
        return QueueStatus.QUEUE_ABSENT
    return q.insert_head(s)


def insert_tail(q: Optional[StringQueue], s: Text) -> QueueStatus:
    if q is None:
        return QueueStatus.QUEUE_ABSENT
    return q.insert_tail(s)


def remove_head_into(q: Optional[StringQueue], sp: Optional[bytearray], bufsize: int) -> QueueStatus:
    """
    Remove the head element. If sp is given, copy at most bufsize - 1 bytes
    of the removed value into it followed by a 0 terminator; longer values
    are cut silently. bufsize == 0 writes nothing.
    """
    if q is None:
        return QueueStatus.QUEUE_ABSENT
    if q.is_empty():
        return QueueStatus.QUEUE_EMPTY
    if sp is not None and len(sp) < bufsize:
        raise ValueError(f"buffer holds {len(sp)} bytes, bufsize is {bufsize}")

    value = q.remove_head()
    if sp is not None and bufsize > 0:
        n = min(len(value), bufsize - 1)
        sp[0:n] = value[:n]
        sp[n] = 0
    return QueueStatus.SUCCESS


def q_insert_head(q: Optional[StringQueue], s: Text) -> bool:
    return insert_head(q, s).ok


def q_insert_tail(q: Optional[StringQueue], s: Text) -> bool:
    return insert_tail(q, s).ok


def q_remove_head(q: Optional[StringQueue], sp: Optional[bytearray], bufsize: int) -> bool:
    return remove_head_into(q, sp, bufsize).ok


def q_size(q: Optional[StringQueue]) -> int:
    if q is None:
        return 0
    return q.size()


def q_reverse(q: Optional[StringQueue]) -> None:
    if q is None:
        return
    q.reverse()


def q_sort(q: Optional[StringQueue]) -> None:
    if q is None:
        return
    q.sort()
