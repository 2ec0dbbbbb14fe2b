from typing import Generic, List, Optional, TypeVar
from dataclasses import dataclass

from .base import PriorityQueue
from .errors import EmptyQueueError, FullQueueError, PriorityRangeError
from .handles import Handle, HandleTable


T = TypeVar("T")


@dataclass
class HeapItem(Generic[T]):
    priority: int
    value: T
    handle: Handle

    def __lt__(self, other):
        return self.priority < other.priority


class IndexedMinHeap(PriorityQueue[T]):
    """Binary min-heap with handles that follow their entry through swaps.

    |------------------------|----------|
    | is_empty / peek_min    | O(1)     |
    | insert                 | O(log n) |
    | decrease / increase    | O(log n) |
    | extract_min            | O(log n) |
    | clear                  | O(n)     |
    |------------------------|----------|

    With ``capacity=None`` the heap grows on demand; otherwise insert
    raises FullQueueError once ``capacity`` entries are stored.
    """

    DEFAULT_PRIORITY_BITS = 32

    def __init__(self, capacity: Optional[int] = None,
                 priority_bits: int = DEFAULT_PRIORITY_BITS):
        if capacity is not None and capacity < 0:
            raise ValueError(f"capacity must be non-negative, got {capacity}")
        if priority_bits <= 0:
            raise ValueError(f"priority_bits must be positive, got {priority_bits}")
        self.heap: List[HeapItem[T]] = []
        self.handles = HandleTable()
        self.priority_bits = priority_bits
        self._capacity = capacity
        self._priority_limit = 1 << priority_bits

    @property
    def capacity(self):
        return self._capacity

    def _check_priority(self, priority):
        if (isinstance(priority, bool) or not isinstance(priority, int)
                or not 0 <= priority < self._priority_limit):
            raise PriorityRangeError(priority, self.priority_bits)

    def _parent(self, i: int):
        return (i - 1) // 2

    def _left(self, i: int):
        return 2 * i + 1

    def _right(self, i: int):
        return 2 * i + 2

    def _swap(self, i: int, j: int):
        self.heap[i], self.heap[j] = self.heap[j], self.heap[i]
        self.handles.rebind(self.heap[i].handle, i)
        self.handles.rebind(self.heap[j].handle, j)

    def _sift_up(self, i: int):
        while i > 0:
            parent = self._parent(i)
            if self.heap[i] < self.heap[parent]:
                self._swap(i, parent)
                i = parent
            else:
                break

    def _sift_down(self, i: int):
        size = len(self.heap)
        while True:
            smallest = i
            left = self._left(i)
            right = self._right(i)

            if left < size and self.heap[left] < self.heap[smallest]:
                smallest = left
            if right < size and self.heap[right] < self.heap[smallest]:
                smallest = right

            if smallest == i:
                break
            self._swap(i, smallest)
            i = smallest

    def size(self):
        return len(self.heap)

    def __len__(self):
        return len(self.heap)

    def __contains__(self, handle):
        return self.handles.is_live(handle)

    def is_empty(self):
        return len(self.heap) == 0

    def is_full(self):
        return self._capacity is not None and len(self.heap) >= self._capacity

    def peek_min(self) -> T:
        """Return the value with the smallest priority without removing it.

        The stored object itself is returned, not a copy; mutating it
        changes the entry held by the queue.
        """
        if not self.heap:
            raise EmptyQueueError("peek_min")
        return self.heap[0].value

    def peek_min_priority(self) -> int:
        if not self.heap:
            raise EmptyQueueError("peek_min_priority")
        return self.heap[0].priority

    def insert(self, priority: int, value: T) -> Handle:
        self._check_priority(priority)
        if self.is_full():
            raise FullQueueError(self._capacity)

        index = len(self.heap)
        handle = self.handles.allocate(index)
        self.heap.append(HeapItem(priority=priority, value=value, handle=handle))
        self._sift_up(index)
        return handle

    def extract_min_item(self) -> HeapItem[T]:
        """Remove the root entry and return it; its handle is freed."""
        if not self.heap:
            raise EmptyQueueError("extract_min")

        last = len(self.heap) - 1
        if last > 0:
            self._swap(0, last)
        min_item = self.heap.pop()
        self.handles.free(min_item.handle)

        if len(self.heap) > 1:
            self._sift_down(0)
        return min_item

    def extract_min(self) -> T:
        return self.extract_min_item().value

    def priority_of(self, handle: Handle) -> int:
        return self.heap[self.handles.locate(handle)].priority

    def value_of(self, handle: Handle) -> T:
        return self.heap[self.handles.locate(handle)].value

    def decrease_priority(self, handle: Handle, new_priority: int):
        """Lower the priority value of a live entry and sift it up.

        A new priority that is not smaller than the current one is ignored.
        """
        index = self.handles.locate(handle)
        self._check_priority(new_priority)
        item = self.heap[index]
        if new_priority >= item.priority:
            return
        item.priority = new_priority
        self._sift_up(index)

    def increase_priority(self, handle: Handle, new_priority: int):
        """Raise the priority value of a live entry and sift it down.

        A new priority that is not greater than the current one is ignored.
        """
        index = self.handles.locate(handle)
        self._check_priority(new_priority)
        item = self.heap[index]
        if new_priority <= item.priority:
            return
        item.priority = new_priority
        self._sift_down(index)

    def clear(self):
        """Drop every entry and invalidate all outstanding handles."""
        self.heap.clear()
        self.handles.clear()
