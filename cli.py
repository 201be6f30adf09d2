"""
huffio command line.

  huffio compress   INPUT OUTPUT     write OUTPUT as the Huffman-compressed INPUT
  huffio decompress INPUT OUTPUT     restore a file written by compress
  huffio tree       INPUT            print the Huffman tree built for INPUT
  huffio table      INPUT            print the code of every symbol in INPUT
  huffio bench      INPUT [INPUT..]  round-trip each file, report times and ratio

OUTPUT files must not exist yet.
"""

import argparse
import filecmp
import os
import sys
import time
from pathlib import Path
from typing import List, Optional

from codec import compress_file, decompress_file, format_code_table
from huffman import huffman_build_tree, tree_print


def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def error(message: str) -> int:
    print(f"huffio: {message}", file=sys.stderr)
    return 1


def cmd_compress(args) -> int:
    stats = compress_file(args.input, args.output)
    if args.verbose:
        print(f"{args.input}: {stats.original_bytes} -> {stats.compressed_bytes} bytes (ratio {stats.ratio:.2f})")
    return 0

def cmd_decompress(args) -> int:
    stats = decompress_file(args.input, args.output)
    if args.verbose:
        print(f"{args.input}: {stats.compressed_bytes} -> {stats.original_bytes} bytes")
    return 0

def cmd_tree(args) -> int:
    if not os.path.isfile(args.input):
        return error(f"cannot read {args.input}")
    tree = huffman_build_tree(args.input)
    if tree is None:
        return error(f"{args.input} is empty")
    print(tree_print(tree))
    return 0

def cmd_table(args) -> int:
    if not os.path.isfile(args.input):
        return error(f"cannot read {args.input}")
    print(format_code_table(huffman_build_tree(args.input)))
    return 0


def cmd_bench(args) -> int:
    status = 0
    for name in args.inputs:
        compressed = Path(name + ".he")
        decompressed = Path(name + ".de")
        if compressed.exists() or decompressed.exists():
            status = error(f"{name}: {compressed} or {decompressed} already exists")
            continue
        try:
            t0 = time.perf_counter_ns()
            stats = compress_file(name, compressed)
            t1 = time.perf_counter_ns()
            decompress_file(compressed, decompressed)
            t2 = time.perf_counter_ns()

            same = filecmp.cmp(name, decompressed, shallow=False)
            print(f"{name}")
            print(f"  compress   {ns_to_ms(t1 - t0):.3f} ms")
            print(f"  decompress {ns_to_ms(t2 - t1):.3f} ms")
            print(f"  ratio      {stats.ratio:.2f}")
            if not same:
                status = error(f"{name}: round-trip output differs from input")
        except (OSError, ValueError) as exc:
            status = error(f"{name}: {exc}")
        finally:
            compressed.unlink(missing_ok=True)
            decompressed.unlink(missing_ok=True)
    return status


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="huffio", description="Huffman file compressor")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("compress", help="compress INPUT into OUTPUT")
    p.add_argument("input")
    p.add_argument("output")
    p.add_argument("-v", "--verbose", action="store_true", help="print sizes and ratio")
    p.set_defaults(func=cmd_compress)

    p = sub.add_parser("decompress", help="decompress INPUT into OUTPUT")
    p.add_argument("input")
    p.add_argument("output")
    p.add_argument("-v", "--verbose", action="store_true", help="print sizes")
    p.set_defaults(func=cmd_decompress)

    p = sub.add_parser("tree", help="print the Huffman tree of INPUT")
    p.add_argument("input")
    p.set_defaults(func=cmd_tree)

    p = sub.add_parser("table", help="print the code table of INPUT")
    p.add_argument("input")
    p.set_defaults(func=cmd_table)

    p = sub.add_parser("bench", help="round-trip files and report timing and ratio")
    p.add_argument("inputs", nargs="+")
    p.set_defaults(func=cmd_bench)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (OSError, ValueError) as exc:
        return error(str(exc))


if __name__ == "__main__":
    raise SystemExit(main())
