import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .. import config
from ..exceptions import DupeFinderError, ScanCancelled
from ..models import DirectoryRecord, ErrorPolicy, FileRecord, ScanSummary
from .channels import Channel, ChannelClosed
from .filesystem import TreeWalker
from .hasher import FileHasher
from .metadata import MetadataProbe
from .workers import HashWorkerPool

Action = Callable[[Any], None]
ErrorHandler = Callable[[BaseException], None]


def _noop(_record):
    pass


class Stage:
    """
    Single-consumer loop: take a record from `source`, run `action` on it and,
    unless the stage is terminal (`sink` is None), forward the same record.
    """

    def __init__(self,
                 name: str,
                 source: Channel,
                 action: Optional[Action] = None,
                 sink: Optional[Channel] = None,
                 on_start: Optional[Callable[[], None]] = None,
                 on_stop: Optional[Callable[[], None]] = None,
                 on_error: Optional[ErrorHandler] = None,
                 on_failure: Optional[ErrorHandler] = None):
        self.name = name
        self.source = source
        self.action = action or _noop
        self.sink = sink
        self.on_start = on_start
        self.on_stop = on_stop
        self.on_error = on_error
        self.on_failure = on_failure or self._default_failure
        self.failure: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None

    def start(self):
        self._thread = threading.Thread(target=self._run, name=f"stage-{self.name}", daemon=True)
        self._thread.start()

    def join(self):
        if self._thread is not None:
            self._thread.join()

    def _run(self):
        try:
            if self.on_start:
                self.on_start()
            self._loop()
        except ScanCancelled:
            pass
        except Exception as e:
            self.on_failure(e)
        finally:
            if self.on_stop:
                try:
                    self.on_stop()
                except Exception as e:
                    self.on_failure(e)

    def _loop(self):
        while True:
            try:
                record = self.source.get()
            except ChannelClosed:
                return

            try:
                self.action(record)
            except DupeFinderError as e:
                if self.on_error is None:
                    raise
                self.on_error(e)
                continue

            if self.sink is not None:
                self.sink.put(record)

    def _default_failure(self, exc: BaseException):
        if self.failure is None:
            self.failure = exc
        logging.error(f"Stage '{self.name}' failed: {exc}")
        self.source.cancel.set()


class ScanPipeline:
    """
    Wires one scan run together:

        TreeWalker --dirs--> directory stage
                   --files (bounded)--> HashWorkerPool --> display stage --> persistence stage

    The walk runs on the calling thread. Every other hop is a rendezvous
    channel, so the slowest stage sets the pace.
    """

    def __init__(self,
                 hasher: Optional[FileHasher] = None,
                 probe: Optional[MetadataProbe] = None,
                 display: Optional[Action] = None,
                 sink: Optional[Any] = None,
                 report_directory: Optional[Action] = None,
                 workers: int = config.HASH_WORKERS,
                 queue_size: int = config.FILE_QUEUE_SIZE,
                 error_policy: ErrorPolicy = ErrorPolicy.ABORT,
                 include_root: bool = False,
                 cancel: Optional[threading.Event] = None):
        """
        Args:
            sink: Persistence sink. Must provide `store(record)`; `open()` and
                  `close()` are called on the persistence thread when present.
                  None consumes records without storing them.
        """
        self.hasher = hasher or FileHasher()
        self.probe = probe or MetadataProbe()
        self.display = display
        self.sink = sink
        self.report_directory = report_directory
        self.workers = workers
        self.queue_size = queue_size
        self.error_policy = ErrorPolicy(error_policy)
        self.include_root = include_root
        self.cancel = cancel if cancel is not None else threading.Event()

        self._lock = threading.Lock()
        self._failure: Optional[BaseException] = None
        self._summary: Optional[ScanSummary] = None

    def run(self, root: Union[str, Path], host: str) -> ScanSummary:
        """
        Scans `root` and pushes every record through the stages.

        Returns the summary once every stage has drained. Under the abort
        policy the first error cancels all stages and is raised after they
        have stopped; an external cancel raises ScanCancelled.
        """
        summary = ScanSummary(root=Path(root))
        self._summary = summary
        self._failure = None
        skip = self.error_policy is ErrorPolicy.SKIP
        on_error = self._skip if skip else None

        directories = Channel(0, self.cancel, name="directories")
        hashed = Channel(0, self.cancel, name="hashed")
        results = Channel(0, self.cancel, name="results")

        pool = HashWorkerPool(
            self.hasher, hashed,
            workers=self.workers,
            queue_size=self.queue_size,
            cancel=self.cancel,
            on_error=on_error,
            on_failure=self._fail,
        )
        directory_stage = Stage("directories", directories, self.report_directory,
                                on_failure=self._fail)
        display_stage = Stage("display", hashed, self.display, sink=results,
                              on_failure=self._fail)
        persistence_stage = Stage(
            "persistence", results, self._store,
            on_start=getattr(self.sink, "open", None),
            on_stop=getattr(self.sink, "close", None),
            on_error=on_error,
            on_failure=self._fail,
        )
        walker = TreeWalker(host, probe=self.probe, include_root=self.include_root, cancel=self.cancel)

        def on_file(record: FileRecord):
            summary.files_discovered += 1
            pool.submit(record)

        def on_directory(record: DirectoryRecord):
            summary.directories += 1
            directories.put(record)

        for stage in (directory_stage, persistence_stage, display_stage):
            stage.start()
        pool.start()

        logging.info(f"Scanning {root} ({self.workers} hash workers, policy={self.error_policy.value})")
        try:
            walker.walk(root, on_file, on_directory, on_error=on_error)
        except ScanCancelled:
            pass
        except KeyboardInterrupt:
            self.cancel.set()
            raise
        except Exception as e:
            self._fail(e)
        finally:
            self._shutdown(pool, directory_stage, display_stage, persistence_stage,
                           directories, hashed, results)

        if self._failure is not None:
            summary.error = self._failure
            raise self._failure
        if self.cancel.is_set():
            summary.error = ScanCancelled()
            raise summary.error

        logging.info(
            f"Scan complete. {summary.files_stored} files ({summary.bytes_stored} bytes), "
            f"{summary.directories} directories, {len(summary.issues)} skipped."
        )
        return summary

    def _store(self, record: FileRecord):
        if self.sink is not None:
            self.sink.store(record)
        self._summary.files_stored += 1
        self._summary.bytes_stored += record.size

    def _shutdown(self, pool: HashWorkerPool, directory_stage: Stage, display_stage: Stage,
                  persistence_stage: Stage, directories: Channel, hashed: Channel, results: Channel):
        # Close each hop only after everything feeding it has stopped
        pool.close()
        pool.join()
        hashed.close()
        display_stage.join()
        results.close()
        persistence_stage.join()
        directories.close()
        directory_stage.join()

        dropped = sum(ch.drain() for ch in (directories, pool.input, hashed, results))
        if dropped:
            logging.debug(f"Discarded {dropped} in-flight records after cancel")

    def _skip(self, exc: BaseException):
        logging.warning(f"Skipping: {exc}")
        self._summary.add_issue(exc)

    def _fail(self, exc: BaseException):
        with self._lock:
            if self._failure is not None:
                return
            self._failure = exc
        self.cancel.set()
        logging.error(f"Aborting scan: {exc}")
