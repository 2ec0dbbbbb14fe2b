import itertools
import re
from dataclasses import dataclass
from typing import List

from .errors import InvalidHandleError


_owner_ids = itertools.count(1)
_HANDLE_TEXT = re.compile(r"([0-9]+):([0-9]+):([0-9]+)")


@dataclass(frozen=True)
class Handle:
    """Opaque reference to a queue entry, returned by insert.

    A handle stays valid across any number of internal swaps and becomes
    invalid once its entry is extracted or the queue is cleared.
    """
    owner: int
    slot: int
    generation: int

    def __str__(self):
        return f"{self.owner}:{self.slot}:{self.generation}"

    @classmethod
    def parse(cls, text: str) -> "Handle":
        """Rebuild a handle from its ``owner:slot:generation`` text form."""
        match = _HANDLE_TEXT.fullmatch(text) if isinstance(text, str) else None
        if match is None:
            raise InvalidHandleError(text)
        owner, slot, generation = (int(group) for group in match.groups())
        if owner < 1:
            raise InvalidHandleError(text)
        return cls(owner=owner, slot=slot, generation=generation)


@dataclass
class _Slot:
    generation: int = 0
    index: int = -1  # -1 while the slot is free


class HandleTable:
    """Maps handles to the current heap index of their entry."""

    def __init__(self):
        self.owner = next(_owner_ids)
        self._slots: List[_Slot] = []
        self._free: List[int] = []
        self._live = 0

    def __len__(self):
        return self._live

    def _slot(self, handle) -> _Slot:
        if not isinstance(handle, Handle) or handle.owner != self.owner:
            raise InvalidHandleError(handle)
        if not 0 <= handle.slot < len(self._slots):
            raise InvalidHandleError(handle)
        slot = self._slots[handle.slot]
        if slot.index < 0 or slot.generation != handle.generation:
            raise InvalidHandleError(handle)
        return slot

    def allocate(self, index: int) -> Handle:
        if self._free:
            slot_id = self._free.pop()
            slot = self._slots[slot_id]
        else:
            slot_id = len(self._slots)
            slot = _Slot()
            self._slots.append(slot)
        slot.index = index
        self._live += 1
        return Handle(owner=self.owner, slot=slot_id, generation=slot.generation)

    def is_live(self, handle) -> bool:
        try:
            self._slot(handle)
        except InvalidHandleError:
            return False
        return True

    def locate(self, handle: Handle) -> int:
        return self._slot(handle).index

    def rebind(self, handle: Handle, index: int):
        # Only called from swaps, on handles of entries currently in the heap.
        self._slots[handle.slot].index = index

    def free(self, handle: Handle):
        slot = self._slot(handle)
        slot.index = -1
        slot.generation += 1
        self._free.append(handle.slot)
        self._live -= 1

    def clear(self):
        """Invalidate every live handle; slots are kept for reuse."""
        for slot in self._slots:
            if slot.index >= 0:
                slot.index = -1
                slot.generation += 1
        self._free = list(range(len(self._slots) - 1, -1, -1))
        self._live = 0
