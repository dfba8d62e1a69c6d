"""Exceptions raised while loading and merging ULS extracts.

Everything here is fatal for a run; tolerated inconsistencies (annotation
records pointing at unknown identifiers) are skipped and counted instead of
raised.
"""

from __future__ import annotations


class UlsError(Exception):
    """Root of the merge tool's exception hierarchy."""


class RecordFormatError(UlsError, ValueError):
    """A logical line does not match its schema (empty, wrong field count)."""


class DateFormatError(RecordFormatError):
    """A date field is not in the fixed 10-character MM/DD/YYYY layout."""


class SourceFileError(UlsError):
    """An input file is missing, unreadable, a directory, or malformed."""

    def __init__(self, message: str, path: object = None) -> None:
        super().__init__(message)
        self.path = path


class JoinError(UlsError):
    """Records from different extracts cannot be reconciled."""


class MissingJoinTargetError(JoinError, KeyError):
    """A record kind that must reference a known identifier did not."""

    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"{kind} key {key} not present in merged store")
        self.kind = kind
        self.key = key

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0])


class CallsignMismatchError(JoinError):
    """An annotation record disagrees with the callsign already merged."""

    def __init__(self, kind: str, key: str, incoming: str, existing: str) -> None:
        super().__init__(
            f"{kind} callsign {incoming} does not match callsign {existing} "
            f"already merged for ID {key}"
        )
        self.kind = kind
        self.key = key
        self.incoming = incoming
        self.existing = existing


class ConfigError(UlsError, ValueError):
    """Raised when the YAML configuration is invalid."""
