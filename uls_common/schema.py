from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Sequence, Tuple


@dataclass(frozen=True)
class FieldSchema:
    """Named, ordered field layout for one kind of .dat record."""

    name: str
    fields: Tuple[str, ...]
    date_fields: Tuple[str, ...] = ()
    _positions: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if len(set(self.fields)) != len(self.fields):
            raise ValueError(f"Duplicate field names in schema {self.name}")
        unknown = [f for f in self.date_fields if f not in self.fields]
        if unknown:
            raise ValueError(f"Date fields not in schema {self.name}: {', '.join(unknown)}")
        object.__setattr__(self, "_positions", {name: pos for pos, name in enumerate(self.fields)})

    @property
    def n_fields(self) -> int:
        return len(self.fields)

    def index(self, name: str) -> int:
        """Position of *name*; unknown names are a programming error."""

        try:
            return self._positions[name]
        except KeyError:
            raise KeyError(f"Unknown field '{name}' in schema {self.name}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._positions


# Field layouts follow the public access database definitions published with
# the ULS weekly extracts. Every layout starts with RECORD_TYPE and ID.

AM_FIELDS: Tuple[str, ...] = (
    "RECORD_TYPE",
    "ID",
    "ULS_NUMBER",
    "EBF_NUMBER",
    "CALLSIGN",
    "OPERATOR_CLASS",
    "GROUP_CODE",
    "REGION_CODE",
    "TRUSTEE_CALLSIGN",
    "TRUSTEE_INDICATOR",
    "PHYSICIAN_CERTIFICATION",
    "VE_SIGNATURE",
    "SYSTEMATIC_CALLSIGN_CHANGE",
    "VANITY_CALLSIGN_CHANGE",
    "VANITY_RELATIONSHIP",
    "PREVIOUS_CALLSIGN",
    "PREVIOUS_OPERATOR_CLASS",
    "TRUSTEE_NAME",
)

CO_FIELDS: Tuple[str, ...] = (
    "RECORD_TYPE",
    "ID",
    "ULS_NUMBER",
    "CALLSIGN",
    "COMMENT_DATE",
    "DESCRIPTION",
    "STATUS_CODE",
    "STATUS_DATE",
)

EN_FIELDS: Tuple[str, ...] = (
    "RECORD_TYPE",
    "ID",
    "ULS_NUMBER",
    "EBF_NUMBER",
    "CALLSIGN",
    "ENTITY_TYPE",
    "LICENSE_ID",
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
    "SGIN",
    "FRN",
    "APPLICANT_TYPE_CODE",
    "APPLICANT_TYPE_CODE_OTHER",
    "STATUS_CODE",
    "STATUS_DATE",
    "LICENSE_TYPE_37",
    "LINKED_ID",
    "LINKED_CALLSIGN",
)

HD_FIELDS: Tuple[str, ...] = (
    "RECORD_TYPE",
    "ID",
    "ULS_NUMBER",
    "EBF_NUMBER",
    "CALLSIGN",
    "LICENSE_STATUS",
    "RADIO_SERVICE_CODE",
    "GRANT_DATE",
    "EXPIRED_DATE",
    "CANCELLATION_DATE",
    "ELIGIBILITY_RULE_NUM",
    "RESERVED_1",
    "ALIEN",
    "ALIEN_GOVERNMENT",
    "ALIEN_CORPORATION",
    "ALIEN_OFFICER",
    "ALIEN_CONTROL",
    "REVOKED",
    "CONVICTED",
    "ADJUDGED",
    "RESERVED_2",
    "COMMON_CARRIER",
    "NON_COMMON_CARRIER",
    "PRIVATE_COMM",
    "FIXED",
    "MOBILE",
    "RADIOLOCATION",
    "SATELLITE",
    "DEVELOPMENTAL_STA_DEMONSTRATION",
    "INTERCONNECTED_SERVICE",
    "CERTIFIER_FIRST_NAME",
    "CERTIFIER_MIDDLE_INITIAL",
    "CERTIFIER_LAST_NAME",
    "CERTIFIER_SUFFIX",
    "CERTIFIER_TITLE",
    "FEMALE",
    "BLACK_AFRICAN_AMERICAN",
    "NATIVE_AMERICAN",
    "HAWAIIAN",
    "ASIAN",
    "WHITE",
    "HISPANIC",
    "EFFECTIVE_DATE",
    "LAST_ACTION_DATE",
    "AUCTION_ID",
    "BROADCAST_SERVICES_REGULATORY_STATUS",
    "BAND_MANAGER_REGULATORY_STATUS",
    "BROADCAST_SERVICES_SERVICE_TYPE",
    "ALIEN_RULING",
    "LICENSEE_NAME_CHANGE",
    "WHITESPACE_INDICATOR",
    "REQUIREMENT_CHOICE",
    "REQUIREMENT_ANSWER",
    "DISCONTINUED_SERVICE",
    "REGULATORY_COMPLIANCE",
    "ELIGIBILITY_900_MHZ",
    "TRANSITION_PLAN_900_MHZ",
    "RETURN_SPECTRUM_900_MHZ",
    "PAYMENT_900_MHZ",
)

HS_FIELDS: Tuple[str, ...] = (
    "RECORD_TYPE",
    "ID",
    "ULS_NUMBER",
    "CALLSIGN",
    "LOG_DATE",
    "CODE",
)

LA_FIELDS: Tuple[str, ...] = (
    "RECORD_TYPE",
    "ID",
    "CALLSIGN",
    "ATTACHMENT_CODE",
    "ATTACHMENT_DESCRIPTION",
    "ATTACHMENT_DATE",
    "ATTACHMENT_FILENAME",
    "ACTION_PERFORMED",
)

SC_FIELDS: Tuple[str, ...] = (
    "RECORD_TYPE",
    "ID",
    "ULS_NUMBER",
    "EBF_NUMBER",
    "CALLSIGN",
    "SPECIAL_CONDITION_TYPE",
    "SPECIAL_CONDITION_CODE",
    "STATUS_CODE",
    "STATUS_DATE",
)

SF_FIELDS: Tuple[str, ...] = (
    "RECORD_TYPE",
    "ID",
    "ULS_NUMBER",
    "EBF_NUMBER",
    "CALLSIGN",
    "LICENSE_FREEFORM_TYPE",
    "UNIQUE_LICENSE_FREEFORM_ID",
    "SEQUENCE_NUMBER",
    "LICENSE_FREEFORM_CONDITION",
    "STATUS_CODE",
    "STATUS_DATE",
)

# Output layout. Names repeat the source field names except where two sources
# share a name, in which case the source kind is the prefix (CO_, EN_).
MERGED_FIELDS: Tuple[str, ...] = (
    "ID",
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
    "COMMENT_DATE",
    "DESCRIPTION",
    "CO_STATUS_CODE",
    "CO_STATUS_DATE",
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
    "EN_STATUS_CODE",
    "EN_STATUS_DATE",
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
    "LINKED_ID",
    "LINKED_CALLSIGN",
)


def _build_schemas() -> Dict[str, FieldSchema]:
    """Build the immutable schema catalog keyed by record type."""

    return {
        "AM": FieldSchema("AM", AM_FIELDS),
        "CO": FieldSchema("CO", CO_FIELDS, date_fields=("COMMENT_DATE", "STATUS_DATE")),
        "EN": FieldSchema("EN", EN_FIELDS, date_fields=("STATUS_DATE",)),
        "HD": FieldSchema(
            "HD",
            HD_FIELDS,
            date_fields=(
                "GRANT_DATE",
                "EXPIRED_DATE",
                "CANCELLATION_DATE",
                "EFFECTIVE_DATE",
                "LAST_ACTION_DATE",
            ),
        ),
        "HS": FieldSchema("HS", HS_FIELDS, date_fields=("LOG_DATE",)),
        "LA": FieldSchema("LA", LA_FIELDS, date_fields=("ATTACHMENT_DATE",)),
        "SC": FieldSchema("SC", SC_FIELDS, date_fields=("STATUS_DATE",)),
        "SF": FieldSchema("SF", SF_FIELDS, date_fields=("STATUS_DATE",)),
        "MERGED": FieldSchema(
            "MERGED",
            MERGED_FIELDS,
            date_fields=(
                "COMMENT_DATE",
                "CO_STATUS_DATE",
                "EN_STATUS_DATE",
                "GRANT_DATE",
                "EXPIRED_DATE",
                "CANCELLATION_DATE",
                "EFFECTIVE_DATE",
                "LAST_ACTION_DATE",
            ),
        ),
    }


SCHEMAS: Mapping[str, FieldSchema] = _build_schemas()

AM_SCHEMA = SCHEMAS["AM"]
CO_SCHEMA = SCHEMAS["CO"]
EN_SCHEMA = SCHEMAS["EN"]
HD_SCHEMA = SCHEMAS["HD"]
MERGED_SCHEMA = SCHEMAS["MERGED"]

# Kinds folded into the merged store, in merge order.
MERGE_KINDS: Sequence[str] = ("AM", "CO", "EN", "HD")
DEFAULT_FILE_NAMES: Mapping[str, str] = {kind: f"{kind}.dat" for kind in MERGE_KINDS}


def get_schema(kind: str) -> FieldSchema:
    """Look up a schema by record type (case-insensitive)."""

    try:
        return SCHEMAS[kind.upper()]
    except KeyError:
        raise KeyError(f"Unknown record kind '{kind}'; expected one of: {', '.join(SCHEMAS)}") from None
