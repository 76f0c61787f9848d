# ABOUTME: Implements an array-backed binary max-heap keyed by numeric priority.
# ABOUTME: Used to rank operands by wrong-answer frequency and other priority orderings.

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real
from typing import Generic, Iterable, List, Optional, Tuple, TypeVar

from src.common.errors import InvalidPriority, NegativePriority

T = TypeVar("T")


@dataclass
class HeapEntry(Generic[T]):
    value: T
    priority: float


def _validate_priority(priority: object) -> float:
    if isinstance(priority, bool) or not isinstance(priority, Real):
        raise InvalidPriority(f"Priority must be a finite number, got {priority!r}")
    if not math.isfinite(priority):
        raise InvalidPriority(f"Priority must be a finite number, got {priority!r}")
    if priority < 0:
        raise NegativePriority(f"Priority must be non-negative, got {priority!r}")
    return priority


class MaxHeap(Generic[T]):
    """
    Binary max-heap over a dense list.

    Layout:
    - children of index i live at 2i+1 and 2i+2
    - parent of index i lives at (i-1)//2
    - every entry's priority is <= its parent's

    Insert and extract_max are O(log n); peek, size and is_empty are O(1).
    Equal priorities come out in no particular order. Not safe for
    concurrent mutation.
    """

    def __init__(self) -> None:
        self._entries: List[HeapEntry[T]] = []

    def insert(self, value: T, priority: float) -> None:
        """Add ``value``; raises InvalidPriority/NegativePriority without mutating."""
        checked = _validate_priority(priority)
        self._entries.append(HeapEntry(value, checked))
        self._sift_up(len(self._entries) - 1)

    def extract_max(self) -> Optional[T]:
        """Remove and return the highest-priority value, or None when empty."""
        if not self._entries:
            return None
        return self._pop_entry().value

    def peek(self) -> Optional[T]:
        return self._entries[0].value if self._entries else None

    def peek_priority(self) -> Optional[float]:
        return self._entries[0].priority if self._entries else None

    def size(self) -> int:
        return len(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries = []

    def build_from_pairs(self, pairs: Iterable[Tuple[T, float]]) -> None:
        """
        Replace the contents with a heap built from (value, priority) pairs.

        Every priority is validated before anything is touched, so a bad pair
        leaves the current contents intact. Heapify runs bottom-up in O(n).
        """
        entries = [HeapEntry(value, _validate_priority(priority)) for value, priority in pairs]
        self._entries = entries
        for index in range(len(entries) // 2 - 1, -1, -1):
            self._sift_down(index)

    def to_sorted_values(self) -> List[T]:
        """Values by descending priority; drains a copy, never this heap."""
        scratch: MaxHeap[T] = MaxHeap()
        scratch.build_from_pairs((entry.value, entry.priority) for entry in self._entries)
        ordered: List[T] = []
        while not scratch.is_empty():
            ordered.append(scratch._pop_entry().value)
        return ordered

    def to_unordered_values(self) -> List[T]:
        """Values in storage order (not priority order)."""
        return [entry.value for entry in self._entries]

    def _pop_entry(self) -> HeapEntry[T]:
        top = self._entries[0]
        last = self._entries.pop()
        if self._entries:
            self._entries[0] = last
            self._sift_down(0)
        return top

    def _sift_up(self, index: int) -> None:
        entries = self._entries
        while index > 0:
            parent = (index - 1) // 2
            if entries[index].priority <= entries[parent].priority:
                break
            entries[index], entries[parent] = entries[parent], entries[index]
            index = parent

    def _sift_down(self, index: int) -> None:
        entries = self._entries
        size = len(entries)
        while True:
            left = 2 * index + 1
            right = left + 1
            largest = index
            if left < size and entries[left].priority > entries[largest].priority:
                largest = left
            if right < size and entries[right].priority > entries[largest].priority:
                largest = right
            if largest == index:
                return
            entries[index], entries[largest] = entries[largest], entries[index]
            index = largest

    def _is_valid_heap(self) -> bool:
        return all(
            self._entries[i].priority <= self._entries[(i - 1) // 2].priority
            for i in range(1, len(self._entries))
        )
