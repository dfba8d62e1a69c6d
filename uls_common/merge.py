"""
Fold AM, CO, EN and HD records into one keyed store of merged records.

Each source kind has one rule in ``MERGE_RULES``:

==== ============== =========================================
kind missing ID     callsign check
==== ============== =========================================
AM   create record  none (AM is authoritative and overwrites)
CO   fatal          fatal on mismatch
EN   skip           fatal on mismatch
HD   skip           fatal on mismatch
==== ============== =========================================

Only AM may create entries, so AM records must be merged first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Mapping, MutableMapping, Tuple

from .errors import CallsignMismatchError, DateFormatError, MissingJoinTargetError
from .records import DELIMITER, DatRecord
from .schema import AM_SCHEMA, CO_SCHEMA, EN_SCHEMA, HD_SCHEMA, MERGED_SCHEMA, FieldSchema
from .strings import transform_date

LOGGER = logging.getLogger(__name__)


class MissingKeyPolicy(Enum):
    CREATE = "create"
    FAIL = "fail"
    SKIP = "skip"


class MergedRecord:
    """Mutable output record; fields are addressed by merged-schema name."""

    __slots__ = ("_values",)

    def __init__(self, key: str) -> None:
        self._values: List[str] = [""] * MERGED_SCHEMA.n_fields
        self["ID"] = key

    def __getitem__(self, name: str) -> str:
        return self._values[MERGED_SCHEMA.index(name)]

    def __setitem__(self, name: str, value: str) -> None:
        self._values[MERGED_SCHEMA.index(name)] = value

    @property
    def key(self) -> str:
        return self["ID"]

    @property
    def callsign(self) -> str:
        return self["CALLSIGN"]

    @property
    def values(self) -> Tuple[str, ...]:
        return tuple(self._values)

    def to_line(self) -> str:
        return DELIMITER.join(self._values)

    def __repr__(self) -> str:
        return f"MergedRecord(ID={self.key!r}, CALLSIGN={self.callsign!r})"


@dataclass(frozen=True)
class MergeRule:
    """How one source kind updates the store."""

    schema: FieldSchema
    on_missing: MissingKeyPolicy
    copies: Mapping[str, str]  # merged field -> source field
    check_callsign: bool = True

    @property
    def kind(self) -> str:
        return self.schema.name

    def apply(self, source: DatRecord, target: MergedRecord) -> None:
        for merged_name, source_name in self.copies.items():
            value = source[source_name]
            if source_name in self.schema.date_fields:
                # Empty dates keep whatever is already stored.
                if value:
                    try:
                        target[merged_name] = transform_date(value)
                    except DateFormatError as exc:
                        raise DateFormatError(
                            f"{exc} in {source_name} of {self.kind} record {source.key}: {source.to_line()}"
                        ) from exc
            else:
                target[merged_name] = value


def _same_name(names: Iterable[str]) -> Dict[str, str]:
    return {name: name for name in names}


MERGE_RULES: Mapping[str, MergeRule] = {
    "AM": MergeRule(
        AM_SCHEMA,
        MissingKeyPolicy.CREATE,
        _same_name(
            (
                "CALLSIGN",
                "OPERATOR_CLASS",
                "GROUP_CODE",
                "REGION_CODE",
                "TRUSTEE_CALLSIGN",
                "TRUSTEE_INDICATOR",
                "SYSTEMATIC_CALLSIGN_CHANGE",
                "VANITY_CALLSIGN_CHANGE",
                "VANITY_RELATIONSHIP",
                "PREVIOUS_CALLSIGN",
                "PREVIOUS_OPERATOR_CLASS",
                "TRUSTEE_NAME",
            )
        ),
        check_callsign=False,
    ),
    "CO": MergeRule(
        CO_SCHEMA,
        MissingKeyPolicy.FAIL,
        {
            "COMMENT_DATE": "COMMENT_DATE",
            "DESCRIPTION": "DESCRIPTION",
            "CO_STATUS_CODE": "STATUS_CODE",
            "CO_STATUS_DATE": "STATUS_DATE",
        },
    ),
    "EN": MergeRule(
        EN_SCHEMA,
        MissingKeyPolicy.SKIP,
        {
            **_same_name(
                (
                    "ENTITY_NAME",
                    "FIRST_NAME",
                    "MIDDLE_INITIAL",
                    "LAST_NAME",
                    "SUFFIX",
                    "PHONE",
                    "FAX",
                    "EMAIL",
                    "STREET_ADDRESS",
                    "CITY",
                    "STATE",
                    "ZIP_CODE",
                    "PO_BOX",
                    "ATTENTION_LINE",
                    "FRN",
                    "APPLICANT_TYPE_CODE",
                    "APPLICANT_TYPE_CODE_OTHER",
                    "LINKED_ID",
                    "LINKED_CALLSIGN",
                )
            ),
            "EN_STATUS_CODE": "STATUS_CODE",
            "EN_STATUS_DATE": "STATUS_DATE",
        },
    ),
    "HD": MergeRule(
        HD_SCHEMA,
        MissingKeyPolicy.SKIP,
        _same_name(
            (
                "LICENSE_STATUS",
                "RADIO_SERVICE_CODE",
                "GRANT_DATE",
                "EXPIRED_DATE",
                "CANCELLATION_DATE",
                "ELIGIBILITY_RULE_NUM",
                "REVOKED",
                "CONVICTED",
                "ADJUDGED",
                "EFFECTIVE_DATE",
                "LAST_ACTION_DATE",
                "LICENSEE_NAME_CHANGE",
            )
        ),
    ),
}


@dataclass
class MergeStats:
    merged: Dict[str, int] = field(default_factory=dict)
    skipped: Dict[str, int] = field(default_factory=dict)

    def count(self, kind: str, *, skipped: bool = False) -> None:
        bucket = self.skipped if skipped else self.merged
        bucket[kind] = bucket.get(kind, 0) + 1


class MergedStore(MutableMapping[str, MergedRecord]):
    """Identifier -> merged record, built by successive merge passes."""

    def __init__(self) -> None:
        self._records: Dict[str, MergedRecord] = {}
        self.stats = MergeStats()

    def __getitem__(self, key: str) -> MergedRecord:
        return self._records[key]

    def __setitem__(self, key: str, record: MergedRecord) -> None:
        if record.key != key:
            raise ValueError(f"Record ID {record.key} stored under key {key}")
        self._records[key] = record

    def __delitem__(self, key: str) -> None:
        del self._records[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def merge(self, record: DatRecord) -> bool:
        """
        Merge one source record according to its kind's rule.

        Returns False when the record was skipped because its identifier is
        unknown (tolerated for EN and HD only).
        """

        try:
            rule = MERGE_RULES[record.kind]
        except KeyError:
            raise ValueError(f"No merge rule for {record.kind} records") from None

        key = record.key
        target = self._records.get(key)

        if target is None:
            if rule.on_missing is MissingKeyPolicy.CREATE:
                target = MergedRecord(key)
                self._records[key] = target
            elif rule.on_missing is MissingKeyPolicy.FAIL:
                raise MissingJoinTargetError(rule.kind, key)
            else:
                LOGGER.debug("%s key %s not in merged store; skipping", rule.kind, key)
                self.stats.count(rule.kind, skipped=True)
                return False

        if rule.check_callsign and target.callsign != record.callsign:
            raise CallsignMismatchError(rule.kind, key, record.callsign, target.callsign)

        rule.apply(record, target)
        self.stats.count(rule.kind)
        return True

    def merge_all(self, records: Iterable[DatRecord]) -> int:
        """Merge a stream of records; returns how many were merged."""

        return sum(1 for record in records if self.merge(record))

    def drop_uncalled(self) -> List[str]:
        """Remove records that never received a callsign; returns their IDs."""

        dropped = [key for key, rec in self._records.items() if not rec.callsign]
        for key in dropped:
            del self._records[key]
        if dropped:
            LOGGER.info("Dropped %d merged records with no callsign", len(dropped))
        return dropped
