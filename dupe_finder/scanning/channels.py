"""
Point-to-point channels between pipeline stages.

A channel with capacity N > 0 is a bounded FIFO: `put` blocks once N items
are waiting. A channel with capacity 0 is a rendezvous: `put` returns only
after a consumer has taken the item, so a producer can never run ahead of
the stage it feeds.

Every blocking call wakes up every `config.POLL_INTERVAL` seconds to check
the shared cancel token and raises ScanCancelled once it is set.
"""
import queue
import threading
from typing import Any, Optional, Tuple

from .. import config
from ..exceptions import ScanCancelled


class ChannelClosed(Exception):
    """Raised by `get` once the channel is closed and empty, or by `put` after close."""
    pass


class Channel:
    def __init__(self,
                 capacity: int = 0,
                 cancel: Optional[threading.Event] = None,
                 name: str = "channel"):
        if capacity < 0:
            raise ValueError(f"Channel capacity must be >= 0, got {capacity}")
        self.capacity = capacity
        self.name = name
        self.cancel = cancel if cancel is not None else threading.Event()
        # A rendezvous still needs one slot to hand the item over
        self._queue: "queue.Queue[Tuple[Any, Optional[threading.Event]]]" = queue.Queue(maxsize=max(capacity, 1))
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def qsize(self) -> int:
        return self._queue.qsize()

    def put(self, item: Any):
        if self.closed:
            raise ChannelClosed(f"put on closed channel '{self.name}'")

        taken = threading.Event() if self.capacity == 0 else None
        entry = (item, taken)
        while True:
            self._check_cancel()
            try:
                self._queue.put(entry, timeout=config.POLL_INTERVAL)
                break
            except queue.Full:
                continue

        if taken is not None:
            while not taken.wait(config.POLL_INTERVAL):
                self._check_cancel()

    def get(self) -> Any:
        while True:
            self._check_cancel()
            try:
                item, taken = self._queue.get(timeout=config.POLL_INTERVAL)
            except queue.Empty:
                if self.closed and self._queue.empty():
                    raise ChannelClosed(f"channel '{self.name}' closed")
                continue

            # Cancelled while waiting: the item is dropped, not delivered
            self._check_cancel()
            if taken is not None:
                taken.set()
            return item

    def close(self):
        """No more puts. Consumers still receive what is buffered."""
        self._closed.set()

    def drain(self) -> int:
        """Discards everything still buffered. Returns the number of items dropped."""
        dropped = 0
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return dropped
            dropped += 1

    def _check_cancel(self):
        if self.cancel.is_set():
            raise ScanCancelled(f"Scan cancelled while waiting on '{self.name}'")
