"""
Lock-guarded singly linked list of discovery candidates.

Every traversal that may remove entries goes through `CandidateList.traverse()`,
which holds the list's lock for the entire pass and hands out a cursor. The
cursor tracks both the current node and its predecessor, so removing the
current entry relinks the list in one step and iteration never skips or
revisits a node.
"""
import asyncio
from collections.abc import AsyncIterator, Iterable, Iterator
from contextlib import asynccontextmanager
from typing import Optional

import structlog

from ..models.scan import Candidate

logger = structlog.get_logger(__name__)


class _Node:
    __slots__ = ("candidate", "next")

    def __init__(self, candidate: Candidate, next: Optional["_Node"] = None):
        self.candidate = candidate
        self.next = next


class CandidateCursor:
    """
    Forward cursor over a `CandidateList`, valid only inside `traverse()`.

    `remove_current()` unlinks the current node and moves the cursor to its
    successor while the predecessor stays the same. Iterating a cursor with
    `for` yields each remaining candidate once, including when the loop body
    removes the candidate it was just given.
    """

    def __init__(self, owner: "CandidateList", prev: Optional[_Node], node: Optional[_Node], index: int = 0):
        self._owner = owner
        self._prev = prev
        self._node = node
        self._index = index
        self._valid = True

    def _check(self) -> None:
        if not self._valid:
            raise RuntimeError("Cursor used outside of its traverse() block")

    @property
    def current(self) -> Optional[Candidate]:
        self._check()
        return self._node.candidate if self._node is not None else None

    @property
    def index(self) -> int:
        """Position of the current node in the list as it is now."""
        self._check()
        return self._index

    @property
    def exhausted(self) -> bool:
        self._check()
        return self._node is None

    def advance(self) -> bool:
        """Step to the next node. Returns False once the end is reached."""
        self._check()
        if self._node is None:
            return False
        self._prev, self._node = self._node, self._node.next
        self._index += 1
        return self._node is not None

    def remove_current(self) -> Candidate:
        """Unlink the current node; the cursor then points at its successor."""
        self._check()
        node = self._node
        if node is None:
            raise IndexError("remove_current() on an exhausted cursor")
        successor = node.next
        if self._prev is None:
            self._owner._head = successor
        else:
            self._prev.next = successor
        node.next = None
        self._node = successor
        self._owner._size -= 1
        return node.candidate

    def following(self) -> "CandidateCursor":
        """A new cursor starting right after the current node, for inner loops."""
        self._check()
        if self._node is None:
            raise IndexError("following() on an exhausted cursor")
        child = CandidateCursor(self._owner, self._node, self._node.next, self._index + 1)
        self._owner._cursors.append(child)
        return child

    def __iter__(self) -> Iterator[Candidate]:
        while True:
            self._check()
            node = self._node
            if node is None:
                return
            yield node.candidate
            # Only step forward if the body did not already remove this node.
            if self._node is node:
                self.advance()

    def _invalidate(self) -> None:
        self._valid = False
        self._prev = None
        self._node = None


class CandidateList:
    """
    Ordered collection of `Candidate`s shared between scan stages.

    One `asyncio.Lock` guards the whole list. Use as an async context manager
    to guarantee the list is drained on every exit path::

        async with CandidateList(raw) as candidates:
            await remove_duplicates(candidates)
    """

    def __init__(self, candidates: Iterable[Candidate] = ()):
        self._head: Optional[_Node] = None
        self._size = 0
        self._lock = asyncio.Lock()
        self._cursors: list[CandidateCursor] = []
        tail: Optional[_Node] = None
        for candidate in candidates:
            node = _Node(candidate)
            if tail is None:
                self._head = node
            else:
                tail.next = node
            tail = node
            self._size += 1

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._head is not None

    def __repr__(self) -> str:
        return f"<CandidateList size={self._size}>"

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def snapshot(self) -> list[Candidate]:
        """Copy of the current contents. Has no await point, so it never sees a torn list."""
        out = []
        node = self._head
        while node is not None:
            out.append(node.candidate)
            node = node.next
        return out

    def first(self) -> Optional[Candidate]:
        return self._head.candidate if self._head is not None else None

    @asynccontextmanager
    async def traverse(self) -> AsyncIterator[CandidateCursor]:
        """Hold the lock for a whole pass and yield a cursor at the head."""
        async with self._lock:
            cursor = CandidateCursor(self, None, self._head)
            self._cursors.append(cursor)
            try:
                yield cursor
            finally:
                for c in self._cursors:
                    c._invalidate()
                self._cursors.clear()

    async def append(self, candidate: Candidate) -> None:
        async with self._lock:
            node = _Node(candidate)
            if self._head is None:
                self._head = node
            else:
                tail = self._head
                while tail.next is not None:
                    tail = tail.next
                tail.next = node
            self._size += 1

    async def remove_at(self, index: int) -> Candidate:
        """Remove and return the candidate at `index`.

        Raises IndexError if `index` is out of range, including on an empty list.
        """
        if index < 0:
            raise IndexError("CandidateList index out of range")
        async with self.traverse() as cursor:
            for _ in range(index):
                if not cursor.advance():
                    break
            if cursor.exhausted:
                raise IndexError("CandidateList index out of range")
            return cursor.remove_current()

    async def drain(self) -> list[Candidate]:
        """Remove every entry, head first, and return them in order."""
        removed = []
        async with self.traverse() as cursor:
            while not cursor.exhausted:
                removed.append(cursor.remove_current())
        if removed:
            logger.debug("Candidate list drained", count=len(removed))
        return removed

    async def aclose(self) -> None:
        await self.drain()

    async def __aenter__(self) -> "CandidateList":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.aclose()
