"""
Load, filter, merge and order the four ULS extracts.

The loads are independent and run on a small thread pool; everything after
them is sequential because CO, EN and HD can only annotate records that AM
has already created.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from .config import Settings
from .errors import DateFormatError, SourceFileError
from .filters import ExclusionSets, compute_exclusions, filter_records
from .merge import MergedRecord, MergedStore
from .output import sort_by_callsign
from .records import DatFile, load_dat_file
from .schema import MERGE_KINDS, get_schema

LOGGER = logging.getLogger(__name__)


@dataclass
class MergeResult:
    records: List[MergedRecord]
    store: MergedStore
    exclusions: ExclusionSets
    reference_date: date


def load_sources(settings: Settings) -> Dict[str, DatFile]:
    """Load every merge input concurrently; the first failure is re-raised."""

    with ThreadPoolExecutor(max_workers=len(MERGE_KINDS), thread_name_prefix="dat-load") as pool:
        futures = {
            kind: pool.submit(load_dat_file, settings.source_path(kind), get_schema(kind), settings.encoding)
            for kind in MERGE_KINDS
        }
        # result() re-raises the worker's exception in this thread.
        return {kind: futures[kind].result() for kind in MERGE_KINDS}


def _source_error(dat_file: DatFile, exc: DateFormatError) -> SourceFileError:
    return SourceFileError(f"Error while processing file {dat_file.source}: {exc}", path=dat_file.source)


def merge_sources(sources: Dict[str, DatFile], today: date) -> MergeResult:
    """Filter, merge, validate and sort already-loaded sources."""

    try:
        exclusions = compute_exclusions(sources["HD"], today)
    except DateFormatError as exc:
        raise _source_error(sources["HD"], exc) from exc

    store = MergedStore()
    for kind in MERGE_KINDS:
        try:
            merged = store.merge_all(filter_records(sources[kind], exclusions))
        except DateFormatError as exc:
            raise _source_error(sources[kind], exc) from exc
        LOGGER.info(
            "Merged %d of %d %s records (%d skipped: unknown ID)",
            merged,
            len(sources[kind]),
            kind,
            store.stats.skipped.get(kind, 0),
        )

    store.drop_uncalled()
    records = sort_by_callsign(store.values())
    return MergeResult(records=records, store=store, exclusions=exclusions, reference_date=today)


def run(settings: Settings, today: Optional[date] = None) -> MergeResult:
    """Full run; *today* falls back to ``settings.as_of`` and then the UTC date."""

    if today is None:
        today = settings.as_of or datetime.now(timezone.utc).date()
    LOGGER.info("Reading ULS extracts from %s", settings.data_dir)
    return merge_sources(load_sources(settings), today)
