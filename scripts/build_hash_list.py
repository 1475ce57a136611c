from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

# Ensure local src is importable when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from hashsweep.utils.hashing import hash_file


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build a hash list from sample files")
    parser.add_argument("--samples", required=True, help="directory of known-bad samples")
    parser.add_argument("--output", default="virus_md5_hashes/samples.md5")
    parser.add_argument("--algorithm", default="md5")
    return parser.parse_args(argv)


def collect_digests(samples_dir: Path, algorithm: str) -> List[str]:
    digests = set()
    for dirpath, _dirnames, filenames in os.walk(samples_dir):
        for name in filenames:
            path = Path(dirpath) / name
            try:
                digests.add(hash_file(path, algorithm))
            except OSError as exc:
                print(f"skipped {path}: {exc}")
    return sorted(digests)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    samples_dir = Path(args.samples)
    if not samples_dir.is_dir():
        print(f"samples directory not found: {samples_dir}")
        return

    digests = collect_digests(samples_dir, args.algorithm)
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text("".join(f"{d}\n" for d in digests), encoding="utf-8")
    print(f"hash_list_saved={output_path} count={len(digests)}")


if __name__ == "__main__":
    main()
