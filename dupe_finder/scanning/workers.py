import logging
import threading
from typing import Callable, List, Optional

from .. import config
from ..exceptions import HashIOError, ScanCancelled
from ..models import FileRecord
from .channels import Channel, ChannelClosed
from .hasher import FileHasher

ErrorHandler = Callable[[BaseException], None]


class HashWorkerPool:
    """
    Fixed-size pool of hashing threads.

    Records enter through a bounded input channel (`submit` blocks when it is
    full) and leave, fingerprinted, through a single output channel. Workers
    race independently, so records may leave in a different order than they
    were submitted.
    """

    def __init__(self,
                 hasher: FileHasher,
                 output: Channel,
                 workers: int = config.HASH_WORKERS,
                 queue_size: int = config.FILE_QUEUE_SIZE,
                 cancel: Optional[threading.Event] = None,
                 on_error: Optional[ErrorHandler] = None,
                 on_failure: Optional[ErrorHandler] = None):
        """
        Args:
            on_error: Called with a HashIOError when the skip policy is in
                      effect; the record is dropped and the worker goes on.
                      When None, hash errors are fatal.
            on_failure: Called with any fatal error. Defaults to remembering
                        the error in `self.failure` and setting the cancel token.
        """
        if workers < 1:
            raise ValueError(f"Need at least one hash worker, got {workers}")

        self.hasher = hasher
        self.output = output
        self.workers = workers
        self.cancel = cancel if cancel is not None else output.cancel
        self.input = Channel(queue_size, self.cancel, name="files")
        self.on_error = on_error
        self.on_failure = on_failure or self._default_failure
        self.failure: Optional[BaseException] = None
        self._threads: List[threading.Thread] = []

    def start(self):
        if self._threads:
            raise RuntimeError("HashWorkerPool already started")
        for i in range(self.workers):
            t = threading.Thread(target=self._work, name=f"hash-worker-{i}", daemon=True)
            t.start()
            self._threads.append(t)

    def submit(self, record: FileRecord):
        self.input.put(record)

    def close(self):
        """Workers finish whatever is queued, then exit."""
        self.input.close()

    def join(self):
        for t in self._threads:
            t.join()

    def _work(self):
        while True:
            try:
                record = self.input.get()
            except (ChannelClosed, ScanCancelled):
                return

            try:
                record.hash = self.hasher.fingerprint(record.path)
            except HashIOError as e:
                if self.on_error is None:
                    self.on_failure(e)
                    return
                self.on_error(e)
                continue
            except Exception as e:
                self.on_failure(e)
                return

            try:
                self.output.put(record)
            except (ChannelClosed, ScanCancelled):
                return

    def _default_failure(self, exc: BaseException):
        if self.failure is None:
            self.failure = exc
        logging.error(f"Hash worker failed: {exc}")
        self.cancel.set()
