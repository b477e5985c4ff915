"""
Endow Buffer Writer

Growable byte buffer with a cursor, used to assemble archives of compiled
module output. Backed by a numpy uint8 array; capacity doubles on growth.

Seeking past the written length extends it (the gap reads as zero bytes),
so a header can be reserved and filled in after the body is written.
"""

from __future__ import annotations

from typing import Optional, Union

import numpy as np

BytesLike = Union[bytes, bytearray, memoryview, np.ndarray]


class BufferWriter:
    """Growable byte buffer with a write cursor."""

    def __init__(self, capacity: int = 16):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._data = np.zeros(capacity, dtype=np.uint8)
        self._index = 0
        self._length = 0
        self._capacity = capacity

    @property
    def length(self) -> int:
        return self._length

    @property
    def index(self) -> int:
        return self._index

    @index.setter
    def index(self, index: int) -> None:
        self.seek(index)

    @property
    def capacity(self) -> int:
        return self._capacity

    def ensure_can_seek(self, required: int) -> None:
        capacity = self._capacity
        while capacity < required:
            capacity *= 2
        if capacity == self._capacity:
            return
        data = np.zeros(capacity, dtype=np.uint8)
        data[:self._length] = self._data[:self._length]
        self._data = data
        self._capacity = capacity

    def seek(self, index: int) -> None:
        if index < 0:
            raise IndexError(f"Cannot seek to negative index {index}")
        self.ensure_can_seek(index)
        self._index = index
        self._length = max(self._index, self._length)

    def ensure_can_write(self, size: int) -> None:
        self.ensure_can_seek(self._index + size)

    def write(self, data: BytesLike) -> None:
        array = np.frombuffer(bytes(data), dtype=np.uint8)
        self.ensure_can_write(len(array))
        self._data[self._index:self._index + len(array)] = array
        self._advance(len(array))

    def write_copy(self, start: int, end: int) -> None:
        """Copy bytes ``[start, end)`` already in the buffer to the cursor."""
        size = end - start
        self.ensure_can_write(size)
        # copy first: source and destination ranges may overlap
        self._data[self._index:self._index + size] = self._data[start:end].copy()
        self._advance(size)

    def write_uint8(self, value: int) -> None:
        self.ensure_can_write(1)
        self._data[self._index] = value & 0xFF
        self._advance(1)

    def write_uint16_le(self, value: int) -> None:
        self.ensure_can_write(2)
        index = self._index
        self._data[index] = value & 0xFF
        self._data[index + 1] = (value >> 8) & 0xFF
        self._advance(2)

    def write_uint32_le(self, value: int) -> None:
        self.ensure_can_write(4)
        index = self._index
        for shift in range(4):
            self._data[index + shift] = (value >> (8 * shift)) & 0xFF
        self._advance(4)

    def subarray(self, begin: int = 0, end: Optional[int] = None) -> np.ndarray:
        """View of the written bytes; shares memory with the buffer until it grows."""
        return self._data[:self._length][begin:end]

    def slice(self, begin: int = 0, end: Optional[int] = None) -> np.ndarray:
        return self.subarray(begin, end).copy()

    def to_bytes(self) -> bytes:
        return self.subarray().tobytes()

    def _advance(self, size: int) -> None:
        self._index += size
        self._length = max(self._index, self._length)
