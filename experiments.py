"""
Benchmark of the bit-file codec

Two experiments over synthetic inputs, each repeated --runs times:

  exp1_buffer    compress_file / decompress_file with different bit-buffer sizes
  exp2_backend   the same input through real files and through BytesIO streams

Outputs (in --outdir):
  - metrics.csv     (one row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --size_kb 1024 --buffers 64,4096,1048576
  python experiments.py --outdir results --datasets text,single --no_plots
"""

from __future__ import annotations

import argparse
import csv
import io
import random
import statistics
import tempfile
import time
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Dict, List, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from bitsio import BUF_SIZE
from codec import CodecStats, compress_file, compress_stream, decompress_file, decompress_stream

BACKENDS = ("file", "memory")
DEFAULT_BUFFERS = "16,256,4096,65536,1048576"

WORDS = ("the", "of", "and", "to", "in", "is", "bit", "tree", "code", "file",
         "buffer", "symbol", "huffman", "frequency", "compress")
DATASETS = ("random", "skewed", "text", "single")


def elapsed_ms(start: int) -> float:
    return (time.perf_counter_ns() - start) / 1_000_000.0


# Inputs

def make_data(kind: str, size: int, seed: int) -> bytes:
    """size bytes of one of the DATASETS kinds, reproducible from seed."""
    rng = random.Random(seed)
    if kind == "random":
        return bytes(rng.getrandbits(8) for _ in range(size))
    if kind == "skewed":
        # weight 1/(rank+1) over the whole byte range
        weights = [1.0 / (rank + 1) for rank in range(256)]
        return bytes(rng.choices(range(256), weights=weights, k=size))
    if kind == "text":
        out = bytearray()
        while len(out) < size:
            out += rng.choice(WORDS).encode("ascii")
            out += b"\n" if rng.random() < 0.1 else b" "
        return bytes(out[:size])
    if kind == "single":
        return b"a" * size
    raise ValueError(f"unknown dataset {kind!r} (known: {', '.join(DATASETS)})")


# Runs

@dataclass
class MetricRow:
    exp_name: str
    dataset: str
    run_id: int
    backend: str  # "file" or "memory"
    buffer_size: int
    original_bytes: int
    compressed_bytes: int
    payload_bytes: int

    compress_ms: float
    decompress_ms: float
    ratio: float
    bits_per_symbol: float
    round_trip_ok: int  # 1 or 0


def run_file(data: bytes, buffer_size: int) -> Tuple[CodecStats, float, float, bytes]:
    with tempfile.TemporaryDirectory() as tmp:
        src = Path(tmp) / "input.bin"
        packed = Path(tmp) / "input.he"
        restored = Path(tmp) / "input.de"
        src.write_bytes(data)

        start = time.perf_counter_ns()
        stats = compress_file(src, packed, buffer_size)
        compress_ms = elapsed_ms(start)

        start = time.perf_counter_ns()
        decompress_file(packed, restored, buffer_size)
        decompress_ms = elapsed_ms(start)

        return stats, compress_ms, decompress_ms, restored.read_bytes()


def run_memory(data: bytes, buffer_size: int) -> Tuple[CodecStats, float, float, bytes]:
    packed = io.BytesIO()
    restored = io.BytesIO()

    start = time.perf_counter_ns()
    stats = compress_stream(io.BytesIO(data), packed, buffer_size)
    compress_ms = elapsed_ms(start)

    packed.seek(0)
    start = time.perf_counter_ns()
    decompress_stream(packed, restored, buffer_size)
    decompress_ms = elapsed_ms(start)

    return stats, compress_ms, decompress_ms, restored.getvalue()


def run_one(data: bytes, backend: str, buffer_size: int) -> MetricRow:
    if backend == "file":
        stats, compress_ms, decompress_ms, restored = run_file(data, buffer_size)
    elif backend == "memory":
        stats, compress_ms, decompress_ms, restored = run_memory(data, buffer_size)
    else:
        raise ValueError(f"backend must be one of {BACKENDS}")

    return MetricRow(
        exp_name="",
        dataset="",
        run_id=0,
        backend=backend,
        buffer_size=buffer_size,
        original_bytes=stats.original_bytes,
        compressed_bytes=stats.compressed_bytes,
        payload_bytes=stats.payload_bytes,
        compress_ms=compress_ms,
        decompress_ms=decompress_ms,
        ratio=stats.ratio,
        bits_per_symbol=8 * stats.payload_bytes / max(1, len(data)),
        round_trip_ok=1 if restored == data else 0,
    )


# CSV output

def write_metrics(path: Path, rows: List[MetricRow]) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=[fld.name for fld in fields(MetricRow)])
        w.writeheader()
        w.writerows(asdict(r) for r in rows)


SUMMARY_METRICS = ("compress_ms", "decompress_ms", "ratio", "bits_per_symbol")

def summarize(rows: List[MetricRow]) -> List[Dict[str, object]]:
    """One dict per (experiment, dataset, backend, buffer) with mean and stdev of each metric."""
    groups: Dict[Tuple[str, str, str, int], List[MetricRow]] = {}
    for r in rows:
        groups.setdefault((r.exp_name, r.dataset, r.backend, r.buffer_size), []).append(r)

    out = []
    for (exp_name, dataset, backend, buffer_size), items in sorted(groups.items()):
        entry: Dict[str, object] = {
            "exp_name": exp_name,
            "dataset": dataset,
            "backend": backend,
            "buffer_size": buffer_size,
            "n_runs": len(items),
        }
        for m in SUMMARY_METRICS:
            vals = [getattr(x, m) for x in items]
            entry[f"{m}_mean"] = statistics.mean(vals)
            entry[f"{m}_stdev"] = statistics.stdev(vals) if len(vals) > 1 else 0.0
        entry["round_trip_ok_rate"] = sum(x.round_trip_ok for x in items) / len(items)
        out.append(entry)
    return out


def write_summary(path: Path, summary: List[Dict[str, object]]) -> None:
    if not summary:
        path.write_text("", encoding="utf-8")
        return
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=list(summary[0]))
        w.writeheader()
        w.writerows(summary)


# Plotting

def plot_buffers(summary: List[Dict[str, object]], outdir: Path) -> None:
    entries = [s for s in summary if s["exp_name"] == "exp1_buffer"]
    if not entries:
        return

    for metric, ylabel in (("compress_ms", "Compress Time (ms)"), ("decompress_ms", "Decompress Time (ms)")):
        plt.figure()
        for dataset in sorted({s["dataset"] for s in entries}):
            points = sorted((s["buffer_size"], s[f"{metric}_mean"]) for s in entries if s["dataset"] == dataset)
            plt.plot([p[0] for p in points], [p[1] for p in points], marker="o", label=dataset)
        plt.xscale("log", base=2)
        plt.xlabel("Bit Buffer Size (bytes)")
        plt.ylabel(ylabel)
        plt.title(f"Experiment 1: {ylabel} vs Buffer Size")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / f"exp1_{metric}.png", dpi=200)
        plt.close()


def plot_backends(summary: List[Dict[str, object]], outdir: Path) -> None:
    entries = [s for s in summary if s["exp_name"] == "exp2_backend"]
    if not entries:
        return

    datasets = sorted({s["dataset"] for s in entries})
    width = 0.8 / len(BACKENDS)
    for metric, ylabel in (("compress_ms", "Compress Time (ms)"), ("decompress_ms", "Decompress Time (ms)")):
        plt.figure()
        for i, backend in enumerate(BACKENDS):
            means = {s["dataset"]: s[f"{metric}_mean"] for s in entries if s["backend"] == backend}
            xs = [d + i * width for d in range(len(datasets))]
            plt.bar(xs, [means.get(d, float("nan")) for d in datasets], width=width, label=backend)
        plt.xticks([d + width * (len(BACKENDS) - 1) / 2 for d in range(len(datasets))], datasets)
        plt.ylabel(ylabel)
        plt.title(f"Experiment 2: {ylabel} by Backend")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / f"exp2_{metric}.png", dpi=200)
        plt.close()


# Main

def parse_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def main(argv: List[str] = None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--size_kb", type=int, default=256, help="Input size in KB")
    ap.add_argument("--datasets", type=str, default=",".join(DATASETS), help="Comma-separated input kinds")
    ap.add_argument("--buffers", type=str, default=DEFAULT_BUFFERS, help="Comma-separated bit-buffer sizes for experiment 1")
    ap.add_argument("--no_exp1", action="store_true", help="Skip the buffer size experiment")
    ap.add_argument("--no_exp2", action="store_true", help="Skip the backend experiment")
    ap.add_argument("--no_plots", action="store_true", help="Only write the CSV files")
    args = ap.parse_args(argv)

    datasets = parse_list(args.datasets)
    buffers = [int(b) for b in parse_list(args.buffers)]
    size = max(1, args.size_kb) * 1024
    outdir = Path(args.outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    configs: List[Tuple[str, str, int]] = []
    if not args.no_exp1:
        configs += [("exp1_buffer", "file", b) for b in buffers]
    if not args.no_exp2:
        configs += [("exp2_backend", backend, BUF_SIZE) for backend in BACKENDS]

    rows: List[MetricRow] = []
    for dataset in datasets:
        for run_id in range(1, args.runs + 1):
            data = make_data(dataset, size, args.seed + run_id)
            for exp_name, backend, buffer_size in configs:
                row = run_one(data, backend, buffer_size)
                row.exp_name = exp_name
                row.dataset = dataset
                row.run_id = run_id
                rows.append(row)
        print(f"{dataset}: done")

    summary = summarize(rows)
    write_metrics(outdir / "metrics.csv", rows)
    write_summary(outdir / "summary.csv", summary)
    if not args.no_plots:
        plot_buffers(summary, outdir)
        plot_backends(summary, outdir)

    ok_rate = sum(r.round_trip_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {outdir / 'metrics.csv'}")
    print(f"Round-trip success across all runs: {ok_rate:.3f}")
    return 0 if ok_rate == 1.0 or not rows else 1


if __name__ == "__main__":
    raise SystemExit(main())
