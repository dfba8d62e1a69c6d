"""
Shared ULS .dat parsing, merging and ordering helpers used by the
``uls_merge`` command line tool.
"""

from .schema import (  # noqa: F401
    DEFAULT_FILE_NAMES,
    MERGE_KINDS,
    MERGED_SCHEMA,
    SCHEMAS,
    FieldSchema,
    get_schema,
)

from .errors import (  # noqa: F401
    CallsignMismatchError,
    ConfigError,
    DateFormatError,
    JoinError,
    MissingJoinTargetError,
    RecordFormatError,
    SourceFileError,
    UlsError,
)

from .strings import (  # noqa: F401
    callsign_cmp,
    callsign_sort_key,
    compare_calls,
    transform_date,
)

from .records import DatFile, DatRecord, load_dat_file  # noqa: F401
from .merge import MERGE_RULES, MergedRecord, MergedStore  # noqa: F401
from .filters import ExclusionSets, compute_exclusions, filter_records  # noqa: F401
from .output import format_dat, records_to_frame, sort_by_callsign, summarize_by_status  # noqa: F401
from .config import Settings, load_config, load_settings  # noqa: F401
from .pipeline import MergeResult, load_sources, merge_sources, run  # noqa: F401

__all__ = [
    "DEFAULT_FILE_NAMES",
    "MERGE_KINDS",
    "MERGED_SCHEMA",
    "SCHEMAS",
    "FieldSchema",
    "get_schema",
    "CallsignMismatchError",
    "ConfigError",
    "DateFormatError",
    "JoinError",
    "MissingJoinTargetError",
    "RecordFormatError",
    "SourceFileError",
    "UlsError",
    "callsign_cmp",
    "callsign_sort_key",
    "compare_calls",
    "transform_date",
    "DatFile",
    "DatRecord",
    "load_dat_file",
    "MERGE_RULES",
    "MergedRecord",
    "MergedStore",
    "ExclusionSets",
    "compute_exclusions",
    "filter_records",
    "format_dat",
    "records_to_frame",
    "sort_by_callsign",
    "summarize_by_status",
    "Settings",
    "load_config",
    "load_settings",
    "MergeResult",
    "load_sources",
    "merge_sources",
    "run",
]
