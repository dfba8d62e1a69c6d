#!/usr/bin/env python3
"""Merge the FCC ULS amateur .dat extracts into one callsign-ordered file.

Reads ``AM.dat``, ``CO.dat``, ``EN.dat`` and ``HD.dat`` from a directory
(the weekly ``l_amat.zip`` download, unzipped), joins them on the Unique
System Identifier, drops licenses that have expired or been cancelled, and
writes one pipe-delimited line per callsign to stdout.

Usage
-----
    uls-merge /path/to/l_amat > fcc.dat
    uls-merge --as-of 2024-01-31 --format csv ./l_amat > fcc.csv

Optional ``uls_merge.yaml`` (or ``--config``/``ULS_MERGE_CONFIG``):

```yaml
data_dir: ./l_amat
encoding: latin-1
as_of: 2024-01-31
output_format: dat
files:
  HD: HD.dat
```

Progress and errors are logged to stderr; the exit status is 1 on any
fatal condition.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from uls_common.config import Settings, load_settings, parse_as_of
from uls_common.errors import UlsError
from uls_common.output import OUTPUT_FORMATS, records_to_frame, render, summarize_by_status
from uls_common.pipeline import run

LOGGER = logging.getLogger("uls_merge")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Merge FCC ULS amateur .dat files into one callsign-ordered extract.",
    )
    parser.add_argument(
        "directory",
        nargs="?",
        type=Path,
        help="Directory holding AM.dat, CO.dat, EN.dat and HD.dat (default: config data_dir, else current directory)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to YAML config (default: $ULS_MERGE_CONFIG, else uls_merge.yaml if present)",
    )
    parser.add_argument(
        "--as-of",
        help="Reference date YYYY-MM-DD for expiry/cancellation filtering (default: today, UTC)",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        help="Output format (default: dat)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug detail, including every skipped record.",
    )
    return parser


def resolve_settings(args: argparse.Namespace) -> Settings:
    """Config file settings with command line overrides applied."""

    settings = load_settings(args.config)
    if args.directory is not None:
        settings.data_dir = args.directory
    if args.as_of:
        settings.as_of = parse_as_of(args.as_of)
    if args.output_format:
        settings.output_format = args.output_format
    return settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        settings = resolve_settings(args)
        result = run(settings)
    except UlsError as exc:
        LOGGER.error("%s", exc)
        return 1

    # Write bytes in the input encoding so the extract round-trips.
    sys.stdout.flush()
    sys.stdout.buffer.write(render(result.records, settings.output_format).encode(settings.encoding))
    sys.stdout.buffer.flush()

    LOGGER.info("Wrote %d records", len(result.records))
    LOGGER.info("Summary:\n%s", summarize_by_status(records_to_frame(result.records)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
