class PriorityQueueError(Exception):
    """Base class for every failure raised by the queue."""


class EmptyQueueError(PriorityQueueError, IndexError):
    def __init__(self, operation: str = "peek_min"):
        super().__init__(f"{operation} on an empty priority queue")
        self.operation = operation


class FullQueueError(PriorityQueueError, OverflowError):
    def __init__(self, capacity: int):
        super().__init__(f"priority queue is full (capacity {capacity})")
        self.capacity = capacity


class InvalidHandleError(PriorityQueueError, LookupError):
    """The handle was extracted, cleared, issued by another queue or malformed."""

    def __init__(self, handle):
        super().__init__(f"invalid handle: {handle!s}")
        self.handle = handle


class PriorityRangeError(PriorityQueueError, ValueError):
    def __init__(self, priority, bits: int):
        super().__init__(
            f"priority {priority!r} is not an unsigned {bits}-bit integer"
        )
        self.priority = priority
        self.bits = bits
