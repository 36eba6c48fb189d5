import argparse
import json
import socket
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

from dupe_finder.config import SinkConfig
from dupe_finder.database.sink import SQLitePersistenceSink
from dupe_finder.scanning.pipeline import ScanPipeline


def run_once(src: Path, workers: int, queue_size: int, db_dir: Optional[Path]) -> float:
    db_path: Optional[Path] = None
    sink = None
    try:
        if db_dir:
            db_dir.mkdir(parents=True, exist_ok=True)
            db_path = db_dir / f"bench_{uuid.uuid4().hex}.db"
            sink = SQLitePersistenceSink(SinkConfig(db_path=db_path))

        pipeline = ScanPipeline(sink=sink, workers=workers, queue_size=queue_size)
        t0 = time.perf_counter()
        pipeline.run(src, socket.gethostname())
        return time.perf_counter() - t0
    finally:
        if db_path:
            for leftover in (db_path, Path(f"{db_path}-wal"), Path(f"{db_path}-shm")):
                try:
                    leftover.unlink()
                except FileNotFoundError:
                    pass


def benchmark(src: Path, workers: Iterable[int], queue_size: int, repeats: int, db_dir: Optional[Path], out_file: Path):
    worker_list = list(workers)
    results = []
    for w in worker_list:
        warm_avg: Optional[float] = None
        times: List[float] = [run_once(src, w, queue_size, db_dir) for _ in range(repeats)]
        cold = times[0]
        warm_runs = times[1:]
        if warm_runs:
            warm_avg = sum(warm_runs) / len(warm_runs)
            print(f"{w} workers: {cold:.2f}s (cold), avg warm over {len(warm_runs)} runs: {warm_avg:.2f}s")
        else:
            print(f"{w} workers: {cold:.2f}s (single run)")
        results.append(
            {
                "workers": w,
                "times": times,
                "cold": cold,
                "warm_avg": warm_avg,
            }
        )

    out_file.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "timestamp": datetime.now().isoformat(),
        "src": str(src),
        "queue_size": queue_size,
        "repeats": repeats,
        "workers": worker_list,
        "results": results,
    }
    out_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    print(f"Wrote results to {out_file}")


def parse_args():
    p = argparse.ArgumentParser(description="Benchmark the scan pipeline with different hash worker counts.")
    p.add_argument("src", type=Path, help="Root to scan")
    p.add_argument("--workers", type=int, nargs="+", default=[1, 2, 3, 4, 8], help="Worker counts to test")
    p.add_argument("--queue-size", type=int, default=3, help="Bounded file queue capacity")
    p.add_argument("--repeats", type=int, default=3, help="Runs per worker; first is treated as cold")
    p.add_argument("--db-dir", type=Path, default=None, help="Directory for a per-run temp SQLite DB (omit to skip persistence)")
    p.add_argument("--output", type=Path, default=Path("bench_scan_results.json"), help="Path to write JSON results")
    return p.parse_args()


def main():
    args = parse_args()
    benchmark(args.src, args.workers, args.queue_size, args.repeats, args.db_dir, args.output)


if __name__ == "__main__":
    main()
