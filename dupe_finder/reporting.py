import csv
import logging
import sys
import threading
from typing import Optional, TextIO

from tqdm import tqdm

from .database.ops import DBOperations
from .models import DirectoryRecord, FileRecord
from . import config


class ConsoleReporter:
    """
    Renders scan records on the console.

    File and directory records arrive from two different stage threads;
    writes are serialized so their lines never interleave.
    """

    def __init__(self,
                 show_files: bool = False,
                 show_dirs: bool = True,
                 progress: bool = False,
                 stream: Optional[TextIO] = None):
        self.show_files = show_files
        self.show_dirs = show_dirs
        self.stream = stream
        self._lock = threading.Lock()
        self._bar = tqdm(desc="Hashed", unit=" files") if progress else None

    def show_file(self, record: FileRecord):
        if self._bar is not None:
            self._bar.update(1)
        if self.show_files:
            self._write(format_file(record))

    def show_directory(self, record: DirectoryRecord):
        if self.show_dirs:
            self._write(f"Folder : {record.name}")

    def close(self):
        if self._bar is not None:
            self._bar.close()
            self._bar = None

    def _write(self, text: str):
        out = self.stream or sys.stdout
        with self._lock:
            if self._bar is not None:
                tqdm.write(text, file=out)
            else:
                print(text, file=out)


def format_file(record: FileRecord) -> str:
    fmt = config.TIMESTAMP_FORMAT
    return (
        f"File : {record.path}\n"
        f" Name: {record.name}\n"
        f" Extension: {record.ext}\n"
        f" Size: {record.size}\n"
        f" Hash: {record.hash}\n"
        f" ATIME: {record.accessed.strftime(fmt)}\n"
        f" CTIME: {record.changed.strftime(fmt)}\n"
        f" MTIME: {record.modified.strftime(fmt)}\n"
        f" BTIME: {record.birth.strftime(fmt)}\n"
    )


class DuplicateReportGenerator:
    def __init__(self, db_ops: DBOperations):
        self.db = db_ops

    def generate_duplicate_report(self, output_csv: str, host: Optional[str] = None) -> int:
        """
        Writes one CSV row per copy of every duplicated file.
        Returns the number of duplicate groups found.
        """
        logging.info(f"Generating duplicate report -> {output_csv}")
        groups = self.db.find_duplicate_groups(host=host)

        headers = ["Hash", "Size", "Copies", "Host", "Path"]
        wasted = 0

        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(headers)

            for group in groups:
                wasted += group.wasted_bytes
                for row_host, path in group.locations:
                    writer.writerow([group.hash, group.size, group.copies, row_host, path])

        logging.info(f"Report complete. {len(groups)} duplicate groups, {wasted} bytes reclaimable.")
        return len(groups)
