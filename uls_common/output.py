from __future__ import annotations

import logging
from typing import Dict, Iterable, List

import polars as pl

from .merge import MergedRecord
from .schema import MERGED_SCHEMA
from .strings import callsign_sort_key

LOGGER = logging.getLogger(__name__)

OUTPUT_FORMATS = ("dat", "csv")


def sort_by_callsign(records: Iterable[MergedRecord]) -> List[MergedRecord]:
    """
    Order records by callsign sort order.

    When several records share a callsign only the first one seen is kept;
    the rest are dropped without any attempt to merge them.
    """

    by_call: Dict[str, MergedRecord] = {}
    for rec in records:
        kept = by_call.get(rec.callsign)
        if kept is not None:
            LOGGER.warning(
                "Callsign %s appears under IDs %s and %s; keeping %s",
                rec.callsign,
                kept.key,
                rec.key,
                kept.key,
            )
            continue
        by_call[rec.callsign] = rec
    return [by_call[call] for call in sorted(by_call, key=callsign_sort_key)]


def format_dat(records: Iterable[MergedRecord]) -> str:
    """One pipe-delimited line per record, each newline-terminated."""

    return "".join(f"{rec.to_line()}\n" for rec in records)


def records_to_frame(records: Iterable[MergedRecord]) -> pl.DataFrame:
    """Merged records as a string-typed Polars frame in merged-schema column order."""

    rows = [rec.values for rec in records]
    data = {name: [row[pos] for row in rows] for pos, name in enumerate(MERGED_SCHEMA.fields)}
    return pl.DataFrame(data, schema={name: pl.Utf8 for name in MERGED_SCHEMA.fields})


def format_csv(records: Iterable[MergedRecord]) -> str:
    return records_to_frame(records).write_csv(include_header=True)


def summarize_by_status(frame: pl.DataFrame) -> pl.DataFrame:
    """Record counts per license status (empty status means no HD record merged)."""

    if frame.height == 0:
        return pl.DataFrame({"LICENSE_STATUS": [], "records": []})
    return (
        frame.group_by("LICENSE_STATUS")
        .agg(pl.len().alias("records"))
        .sort("LICENSE_STATUS")
    )


def render(records: List[MergedRecord], output_format: str = "dat") -> str:
    if output_format == "dat":
        return format_dat(records)
    if output_format == "csv":
        return format_csv(records)
    raise ValueError(f"Unknown output format '{output_format}'; expected one of: {', '.join(OUTPUT_FORMATS)}")
