from .errors import (
    PriorityQueueError,
    EmptyQueueError,
    FullQueueError,
    InvalidHandleError,
    PriorityRangeError,
)
from .handles import Handle, HandleTable
from .base import PriorityQueue
from .indexed_heap import IndexedMinHeap, HeapItem

__all__ = [
    'PriorityQueueError', 'EmptyQueueError', 'FullQueueError',
    'InvalidHandleError', 'PriorityRangeError',
    'Handle', 'HandleTable', 'PriorityQueue', 'IndexedMinHeap', 'HeapItem',
]
