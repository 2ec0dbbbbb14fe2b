from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from .handles import Handle


T = TypeVar("T")


class PriorityQueue(ABC, Generic[T]):
    """
    Minimum-priority queue whose entries can be re-prioritised
    through the handle returned by insert.

    Priorities are unsigned integers; a smaller number is served first.
    """

    @abstractmethod
    def is_empty(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def peek_min(self) -> T:
        raise NotImplementedError

    @abstractmethod
    def insert(self, priority: int, value: T) -> Handle:
        raise NotImplementedError

    @abstractmethod
    def decrease_priority(self, handle: Handle, new_priority: int):
        raise NotImplementedError

    @abstractmethod
    def increase_priority(self, handle: Handle, new_priority: int):
        raise NotImplementedError

    @abstractmethod
    def extract_min(self) -> T:
        raise NotImplementedError
