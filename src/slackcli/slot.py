"""Single-assignment result holder shared between threads.

A :class:`ResultSlot` starts empty and accepts exactly one value. The
first :meth:`~ResultSlot.offer` commits; every later offer is discarded
and reports ``False``. Readers block on :meth:`~ResultSlot.wait` with a
timeout.

Used for the "first of N completes" race between the tunnel output
readers, and as the outcome holder of the callback listener.
"""

from __future__ import annotations

import threading
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ResultSlot(Generic[T]):
    """Thread-safe write-once slot.

    Example::

        slot: ResultSlot[str] = ResultSlot()
        slot.offer("https://a.trycloudflare.com")   # True
        slot.offer("https://b.trycloudflare.com")   # False, ignored
        slot.wait(1.0)                              # True
        slot.value                                  # "https://a.trycloudflare.com"
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._filled = threading.Event()
        self._value: Optional[T] = None

    def offer(self, value: T) -> bool:
        """Commit *value* if the slot is still empty.

        Returns:
            ``True`` if this call filled the slot, ``False`` if it was
            already filled.
        """
        with self._lock:
            if self._filled.is_set():
                return False
            self._value = value
            self._filled.set()
            return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the slot is filled or *timeout* seconds elapse."""
        return self._filled.wait(timeout)

    @property
    def is_filled(self) -> bool:
        return self._filled.is_set()

    @property
    def value(self) -> Optional[T]:
        """The committed value, or ``None`` while the slot is empty."""
        return self._value
