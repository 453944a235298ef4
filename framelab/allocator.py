"""A segregated free-list memory allocator working on a simulated heap.

Free blocks carry a header word, links to the previous and next free
blocks, and a footer word. Allocated blocks keep only the header and
footer around their payload. Free blocks are kept in nineteen
address-ordered lists, each holding a band of block sizes. A search takes
the first block that fits, starting from the list for the requested size.
Freed blocks are coalesced with free neighbours at once.
"""

from __future__ import annotations

import mmap
import struct
import sys
from typing import Iterator, List, Optional, TextIO

__all__ = ["OutOfMemoryError", "MemoryHeap", "Allocator", "find_list"]

WSIZE = 8
DSIZE = 2 * WSIZE
QSIZE = 4 * WSIZE
MAX_CHUNK_SIZE = 32768
INITIAL_CHUNK_SIZE = 8224
EMPTY_BLOCK_SIZE = QSIZE
LIST_COUNT = 19
LIST_SIZES = (
    23, 32, 80, 88, 128, 144, 176, 464, 528, 1734,
    4088, 4111, 5573, 8206, 11152, 15472, 19528, 23961, 28437,
)

DEFAULT_MAX_HEAP = 20 * (1 << 20)
DEFAULT_BASE = 0x10000

_WORD = struct.Struct("<Q")
_SIZE_MASK = ~(DSIZE - 1)
_EPILOGUE = 1


class OutOfMemoryError(MemoryError):
    """The simulated heap cannot grow any further."""


def _pack(size: int, alloc: int) -> int:
    return size | alloc


def _align16(size: int) -> int:
    return (size | 15) + 1 if size & 15 else size


def find_list(size: int) -> int:
    """Return the index of the free list that holds blocks of ``size`` bytes."""
    if size <= LIST_SIZES[0]:
        return 0
    for index in range(LIST_COUNT - 1, -1, -1):
        if size >= LIST_SIZES[index]:
            return index
    return LIST_COUNT - 1


class MemoryHeap:
    """A contiguous, growable byte region addressed from ``base``."""

    def __init__(self, max_size: int = DEFAULT_MAX_HEAP, base: int = DEFAULT_BASE) -> None:
        if base <= 0 or base % 16:
            raise ValueError(f"heap base must be a positive multiple of 16, got {base:#x}")
        if max_size < 0:
            raise ValueError(f"maximum heap size must not be negative, got {max_size}")
        self._base = base
        self._max_size = max_size
        self._data = bytearray()

    def sbrk(self, increment: int) -> int:
        """Grow the heap by ``increment`` bytes and return the old break address."""
        if increment < 0:
            raise ValueError(f"heap cannot shrink (increment {increment})")
        if len(self._data) + increment > self._max_size:
            raise OutOfMemoryError(
                f"cannot grow heap by {increment} bytes: "
                f"{len(self._data)} of {self._max_size} already in use"
            )
        old_break = self._base + len(self._data)
        self._data.extend(bytes(increment))
        return old_break

    def heap_lo(self) -> int:
        """Address of the first heap byte."""
        return self._base

    def heap_hi(self) -> int:
        """Address of the last heap byte."""
        return self._base + len(self._data) - 1

    def heapsize(self) -> int:
        """Current heap size in bytes."""
        return len(self._data)

    def pagesize(self) -> int:
        """System page size in bytes."""
        return mmap.PAGESIZE

    def _offset(self, address: int, size: int) -> int:
        offset = address - self._base
        if size < 0 or offset < 0 or offset + size > len(self._data):
            raise IndexError(
                f"access of {size} bytes at {address:#x} is outside the heap "
                f"[{self._base:#x}, {self._base + len(self._data):#x})"
            )
        return offset

    def read(self, address: int, size: int) -> bytes:
        """Return ``size`` bytes starting at ``address``."""
        offset = self._offset(address, size)
        return bytes(self._data[offset : offset + size])

    def write(self, address: int, data: bytes) -> None:
        """Store ``data`` starting at ``address``."""
        data = bytes(data)
        offset = self._offset(address, len(data))
        self._data[offset : offset + len(data)] = data

    def _get_word(self, address: int) -> int:
        return _WORD.unpack_from(self._data, self._offset(address, WSIZE))[0]

    def _set_word(self, address: int, value: int) -> None:
        _WORD.pack_into(self._data, self._offset(address, WSIZE), value)


class Allocator:
    """malloc/free/realloc over a :class:`MemoryHeap`.

    Pointers are heap addresses of payloads; ``None`` stands for NULL.
    """

    def __init__(self, heap: Optional[MemoryHeap] = None, stream: Optional[TextIO] = None) -> None:
        self.heap = heap if heap is not None else MemoryHeap()
        self._stream = stream
        self._chunk_size = INITIAL_CHUNK_SIZE
        self._direction = 0
        self._heads: List[int] = []
        self._init_heap()

    # -- word-level access -------------------------------------------------

    def _get(self, address: int) -> int:
        return self.heap._get_word(address)

    def _put(self, address: int, value: int) -> None:
        self.heap._set_word(address, value)

    def _size(self, bp: int) -> int:
        return self._get(bp) & _SIZE_MASK

    def _alloc(self, bp: int) -> int:
        return self._get(bp) & 1

    def _set_header(self, bp: int, value: int) -> None:
        self._put(bp, value)

    def _prev(self, bp: int) -> int:
        return self._get(bp + WSIZE)

    def _set_prev(self, bp: int, value: int) -> None:
        self._put(bp + WSIZE, value)

    def _next(self, bp: int) -> int:
        return self._get(bp + 2 * WSIZE)

    def _set_next(self, bp: int, value: int) -> None:
        self._put(bp + 2 * WSIZE, value)

    def _set_footer(self, bp: int) -> None:
        self._put(bp + self._size(bp) - WSIZE, self._get(bp))

    def _next_block(self, bp: int) -> int:
        return bp + self._size(bp)

    def _prev_block(self, bp: int) -> int:
        return bp - (self._get(bp - WSIZE) & _SIZE_MASK)

    # -- heap set-up -------------------------------------------------------

    def _init_heap(self) -> None:
        pt = self.heap.sbrk(6 * WSIZE + LIST_COUNT * EMPTY_BLOCK_SIZE)
        for _ in range(LIST_COUNT):
            self._set_prev(pt, 0)
            self._set_next(pt, 0)
            self._set_header(pt, _pack(EMPTY_BLOCK_SIZE, 0))
            self._set_footer(pt)
            self._heads.append(pt)
            pt += EMPTY_BLOCK_SIZE
        pt += WSIZE
        self._set_prev(pt, 0)
        self._set_next(pt, 0)
        self._set_header(pt, _pack(EMPTY_BLOCK_SIZE, 1))
        self._set_footer(pt)
        pt += EMPTY_BLOCK_SIZE
        self._set_header(pt, _EPILOGUE)

    @property
    def _first_block(self) -> int:
        return self.heap.heap_lo() + 5 * WSIZE + LIST_COUNT * EMPTY_BLOCK_SIZE

    # -- free lists --------------------------------------------------------

    def _list_insert(self, bp: int, list_no: int) -> None:
        pos = self._heads[list_no]
        while self._next(pos) and self._next(pos) < bp:
            pos = self._next(pos)
        following = self._next(pos)
        if following:
            self._set_prev(following, bp)
        self._set_next(bp, following)
        self._set_next(pos, bp)
        self._set_prev(bp, pos)

    def _list_remove(self, bp: int) -> None:
        prev, following = self._prev(bp), self._next(bp)
        if prev:
            self._set_next(prev, following)
        if following:
            self._set_prev(following, prev)
        self._set_prev(bp, 0)
        self._set_next(bp, 0)

    def _free_list(self, list_no: int) -> Iterator[int]:
        bp = self._next(self._heads[list_no])
        while bp:
            yield bp
            bp = self._next(bp)

    def _relocate_free_segment(self, bp: int, size: int, search_from: int) -> None:
        self._set_header(bp, size)
        self._set_footer(bp)
        index = search_from
        while index > 0 and size < LIST_SIZES[index]:
            index -= 1
        self._list_insert(bp, index)

    # -- block management --------------------------------------------------

    def _coalesce(self, bp: int) -> int:
        prev_alloc = self._alloc(self._prev_block(bp))
        next_alloc = self._alloc(self._next_block(bp))
        size = self._size(bp)
        if prev_alloc and next_alloc:
            return bp
        if prev_alloc:
            size += self._size(self._next_block(bp))
            self._list_remove(bp)
            self._list_remove(self._next_block(bp))
        elif next_alloc:
            size += self._size(self._prev_block(bp))
            self._list_remove(bp)
            self._list_remove(self._prev_block(bp))
            bp = self._prev_block(bp)
        else:
            size += self._size(self._prev_block(bp)) + self._size(self._next_block(bp))
            self._list_remove(bp)
            self._list_remove(self._prev_block(bp))
            self._list_remove(self._next_block(bp))
            bp = self._prev_block(bp)
        self._relocate_free_segment(bp, size, LIST_COUNT - 1)
        return bp

    def _extend_heap(self, words: int) -> int:
        size = (words + 1) * WSIZE if words % 2 else words * WSIZE
        bp = self.heap.sbrk(size) - WSIZE
        self._set_header(bp, _pack(size, 0))
        self._set_footer(bp)
        self._list_insert(bp, find_list(size))
        self._set_header(self._next_block(bp), _EPILOGUE)
        return self._coalesce(bp)

    def _find_fit(self, asize: int, list_no: int) -> Optional[int]:
        for bp in self._free_list(list_no):
            if not self._alloc(bp) and asize <= self._size(bp):
                return bp
        return None

    def _place(self, bp: int, asize: int, free_size: int, list_no: int, direction: int) -> int:
        """Carve ``asize`` bytes out of block ``bp`` and return the allocated block."""
        if free_size - asize <= EMPTY_BLOCK_SIZE:
            asize = free_size
        if not self._alloc(bp):
            self._list_remove(bp)
        if direction == -1:
            direction = self._direction
        if direction == 0:
            self._set_header(bp, _pack(asize, 1))
            self._set_footer(bp)
            if free_size > asize:
                self._relocate_free_segment(self._next_block(bp), free_size - asize, list_no)
        else:
            remainder = bp
            end = bp + free_size
            self._put(end - WSIZE, _pack(asize, 1))
            bp = end - asize
            self._set_header(bp, _pack(asize, 1))
            if free_size > asize:
                self._relocate_free_segment(remainder, free_size - asize, list_no)
        self._direction ^= 1
        return bp

    # -- public interface --------------------------------------------------

    def malloc(self, size: int) -> Optional[int]:
        """Allocate ``size`` bytes and return the payload address; None for size 0."""
        if size < 0:
            raise ValueError(f"allocation size must not be negative, got {size}")
        if size == 0:
            return None
        asize = _align16(size + DSIZE)
        for list_no in range(find_list(asize), LIST_COUNT):
            bp = self._find_fit(asize, list_no)
            if bp is not None:
                return self._place(bp, asize, self._size(bp), list_no, -1) + WSIZE
        if asize > self._chunk_size:
            self._chunk_size = min(MAX_CHUNK_SIZE, self._chunk_size * 2)
        extend_size = max(asize, self._chunk_size)
        bp = self._extend_heap(extend_size // WSIZE)
        return self._place(bp, asize, self._size(bp), LIST_COUNT - 1, -1) + WSIZE

    def free(self, ptr: Optional[int]) -> None:
        """Release a block returned by :meth:`malloc` or :meth:`realloc`."""
        if ptr is None:
            return
        bp = ptr - WSIZE
        self._set_header(bp, self._size(bp))
        self._set_footer(bp)
        self._set_next(bp, 0)
        self._set_prev(bp, 0)
        self._list_insert(bp, find_list(self._size(bp)))
        self._coalesce(bp)

    def realloc(self, ptr: Optional[int], size: int) -> Optional[int]:
        """Resize a block, keeping its contents up to the smaller of the two sizes."""
        if size < 0:
            raise ValueError(f"allocation size must not be negative, got {size}")
        if size == 0:
            self.free(ptr)
            return None
        if ptr is None:
            return self.malloc(size)
        bp = ptr - WSIZE
        asize = _align16(size + DSIZE)
        following = self._next_block(bp)
        if not self._alloc(following):
            self._list_remove(following)
            self._set_header(bp, _pack(self._size(bp) + self._size(following), 1))
            self._set_footer(bp)
        if self._size(bp) >= asize:
            return self._place(bp, asize, self._size(bp), LIST_COUNT - 1, 0) + WSIZE
        new_ptr = self.malloc(size)
        keep = min(self._size(bp) - DSIZE, size)
        self.heap.write(new_ptr, self.heap.read(ptr, keep))
        self.free(ptr)
        return new_ptr

    def _error(self, message: str) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        print(f"Error: {message}", file=stream)

    def _heap_blocks(self) -> Iterator[int]:
        limit = self.heap.heap_hi() - WSIZE
        bp = self._first_block
        while bp < limit:
            yield bp
            size = self._size(bp)
            if size == 0:
                return
            bp += size

    def check(self) -> bool:
        """Check the heap for consistency, reporting problems; True if consistent."""
        start = self._first_block
        in_heap = set(self._heap_blocks())
        for list_no in range(LIST_COUNT):
            for nbp in self._free_list(list_no):
                size = self._size(nbp)
                if self._alloc(nbp):
                    self._error(f"Block {nbp:#x} sized {size} in free list {list_no} is allocated")
                    return False
                too_small = list_no != 0 and size < LIST_SIZES[list_no]
                too_big = list_no != LIST_COUNT - 1 and size >= LIST_SIZES[list_no + 1]
                if too_small or too_big:
                    self._error(
                        f"Block {nbp:#x} sized {size} stored free list for size "
                        f"{LIST_SIZES[list_no]}"
                    )
                    return False
                if nbp not in in_heap:
                    self._error(
                        f"Block {nbp:#x} sized {size} in free list {list_no} could not be "
                        "found in contiguity list"
                    )
                    return False
        consistent = True
        prologue = self._get(start - WSIZE)
        if prologue != _pack(EMPTY_BLOCK_SIZE, 1):
            self._error(f"Illegal prologue {start - WSIZE:#x}: {prologue}")
            consistent = False
        limit = self.heap.heap_hi() - WSIZE
        bp = start
        while bp < limit:
            size = self._size(bp)
            if (bp + WSIZE) & 0xF:
                self._error(
                    f"Block {bp:#x}, sized {size}, alloc:{self._alloc(bp)} not aligned to 16B"
                )
                return False
            if size == 0:
                self._error(f"Block {bp:#x} has size 0")
                return False
            if not self._alloc(bp):
                list_no = find_list(size)
                if bp not in set(self._free_list(list_no)):
                    self._error(f"Block {bp:#x}, sized {size} could not be found in list {list_no}")
                    return False
            bp += size
        epilogue = self._get(bp)
        if epilogue != _EPILOGUE:
            self._error(f"Illegal epilogue {bp:#x}: {epilogue}")
            consistent = False
        return consistent