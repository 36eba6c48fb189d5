import logging
import threading
from typing import Optional

from .config import ScanOptions
from .database.sink import SQLitePersistenceSink
from .models import ScanSummary
from .reporting import ConsoleReporter
from .scanning.hasher import FileHasher
from .scanning.pipeline import ScanPipeline

class DupeFinderApp:
    def __init__(self, options: ScanOptions, cancel: Optional[threading.Event] = None):
        self.options = options
        self.cancel = cancel if cancel is not None else threading.Event()

    def scan(self) -> ScanSummary:
        """
        Executes one scan:
        1. Walk the tree (directories to the console, files to the hash pool)
        2. Hash (bounded queue, fixed worker count)
        3. Display
        4. Persist (skipped when no sink is configured)
        """
        opts = self.options
        reporter = ConsoleReporter(
            show_files=opts.show_files,
            show_dirs=opts.show_dirs,
            progress=opts.progress,
        )
        sink = SQLitePersistenceSink(opts.sink) if opts.sink is not None else None
        if sink is None:
            logging.info("Persistence disabled; records are displayed only.")

        pipeline = ScanPipeline(
            hasher=FileHasher(),
            display=reporter.show_file,
            sink=sink,
            report_directory=reporter.show_directory,
            workers=opts.workers,
            queue_size=opts.queue_size,
            error_policy=opts.error_policy,
            include_root=opts.include_root,
            cancel=self.cancel,
        )

        try:
            return pipeline.run(opts.root, opts.host)
        finally:
            reporter.close()
