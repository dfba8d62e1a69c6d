from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import FrozenSet, Iterable, Iterator

from .errors import DateFormatError
from .records import DatRecord
from .strings import date_string, transform_date

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExclusionSets:
    """Identifiers whose license expired or was cancelled before the reference date."""

    expired: FrozenSet[str] = frozenset()
    cancelled: FrozenSet[str] = frozenset()

    def __contains__(self, key: object) -> bool:
        return key in self.expired or key in self.cancelled

    def __len__(self) -> int:
        return len(self.expired | self.cancelled)


def _before(record: DatRecord, name: str, reference: str) -> bool:
    us_date = record[name]
    if not us_date:
        return False
    try:
        # ISO dates compare correctly as strings.
        return transform_date(us_date) < reference
    except DateFormatError as exc:
        raise DateFormatError(f"{exc} in {name} of {record.kind} record {record.key}: {record.to_line()}") from exc


def compute_exclusions(hd_records: Iterable[DatRecord], today: date) -> ExclusionSets:
    """
    Scan HD records once and collect expired and cancelled identifiers.

    A date equal to *today* does not exclude; only strictly earlier ones do.
    """

    reference = date_string(today)
    expired = set()
    cancelled = set()
    for record in hd_records:
        if _before(record, "EXPIRED_DATE", reference):
            expired.add(record.key)
        if _before(record, "CANCELLATION_DATE", reference):
            cancelled.add(record.key)

    LOGGER.info(
        "Excluding %d expired and %d cancelled IDs (reference date %s)",
        len(expired),
        len(cancelled),
        reference,
    )
    return ExclusionSets(frozenset(expired), frozenset(cancelled))


def filter_records(records: Iterable[DatRecord], exclusions: ExclusionSets) -> Iterator[DatRecord]:
    """Yield the records whose identifier is in neither exclusion set."""

    return (record for record in records if record.key not in exclusions)
