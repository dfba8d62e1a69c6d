"""
Typed .dat records and the source file loader.

A ULS .dat file holds one pipe-delimited record per logical line. The FCC
occasionally embeds a raw newline inside a field, so a logical line may span
several physical lines; the loader stitches those back together and keeps an
``<LF>`` marker where each break was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Tuple, Union

from .errors import RecordFormatError, SourceFileError
from .schema import FieldSchema
from .strings import remove_char, remove_peripheral_spaces, split_string, to_lines, to_upper

LOGGER = logging.getLogger(__name__)

DELIMITER = "|"
LINE_BREAK_MARKER = "<LF>"
DEFAULT_ENCODING = "latin-1"


@dataclass(frozen=True)
class DatRecord:
    """One parsed line; values are upper-cased and in schema order."""

    schema: FieldSchema
    values: Tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.values) != self.schema.n_fields:
            raise RecordFormatError(
                f"{self.schema.name} record needs {self.schema.n_fields} fields; got {len(self.values)}"
            )

    @classmethod
    def parse(cls, schema: FieldSchema, line: str) -> "DatRecord":
        """Parse one logical line against *schema*."""

        if not line:
            raise RecordFormatError(f"Empty {schema.name} record string")

        fields = split_string(to_upper(line), DELIMITER)

        # A delimiter-terminated line carries an unwritten empty final field.
        if line.endswith(DELIMITER):
            fields.append("")

        if len(fields) != schema.n_fields:
            raise RecordFormatError(
                f"Incorrect number of fields in {schema.name} record string: {line}; "
                f"should be {schema.n_fields}; found {len(fields)}"
            )
        return cls(schema, tuple(fields))

    def __getitem__(self, key: Union[str, int]) -> str:
        if isinstance(key, str):
            return self.values[self.schema.index(key)]
        if not 0 <= key < len(self.values):
            raise IndexError(f"Field index {key} out of range for schema {self.schema.name}")
        return self.values[key]

    @property
    def kind(self) -> str:
        return self.schema.name

    @property
    def key(self) -> str:
        return self["ID"]

    @property
    def callsign(self) -> str:
        return self["CALLSIGN"]

    def to_line(self) -> str:
        return DELIMITER.join(self.values)

    def __str__(self) -> str:
        return self.to_line()


def iter_logical_lines(text: str, n_fields: int) -> Iterator[str]:
    """
    Yield logical records from raw file contents.

    Physical lines are appended to the current record (joined by the
    ``<LF>`` marker) until it holds ``n_fields - 1`` delimiters or the input
    runs out. Yielded text is trimmed of surrounding whitespace.
    """

    lines = to_lines(remove_char(text, "\r"))
    needed = n_fields - 1
    n = 0
    while n < len(lines):
        record = lines[n]
        while record.count(DELIMITER) < needed and n < len(lines) - 1:
            n += 1
            record += LINE_BREAK_MARKER + lines[n]
        yield remove_peripheral_spaces(record)
        n += 1


@dataclass(frozen=True)
class DatFile:
    """All records of one .dat file, in file order."""

    schema: FieldSchema
    records: Tuple[DatRecord, ...]
    source: str = "<memory>"

    @classmethod
    def from_text(cls, schema: FieldSchema, text: str, source: str = "<memory>") -> "DatFile":
        """Parse every logical line; any bad line aborts the whole file."""

        parsed: List[DatRecord] = []
        for logical in iter_logical_lines(text, schema.n_fields):
            try:
                parsed.append(DatRecord.parse(schema, logical))
            except RecordFormatError as exc:
                raise SourceFileError(
                    f"Error while processing file {source}: {exc}", path=source
                ) from exc
        return cls(schema, tuple(parsed), source)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[DatRecord]:
        return iter(self.records)

    def __getitem__(self, index: int) -> DatRecord:
        return self.records[index]


def read_file(path: Path, encoding: str = DEFAULT_ENCODING) -> str:
    """Read a whole file as text; missing files and directories are fatal."""

    if not path.exists():
        raise SourceFileError(f"Cannot open file: {path}", path=path)
    if path.is_dir():
        raise SourceFileError(f"{path} is a directory", path=path)
    try:
        return path.read_bytes().decode(encoding)
    except OSError as exc:
        raise SourceFileError(f"Unable to read file: {path} ({exc})", path=path) from exc
    except UnicodeDecodeError as exc:
        raise SourceFileError(f"Cannot decode {path} as {encoding}: {exc}", path=path) from exc


def load_dat_file(path: Path, schema: FieldSchema, encoding: str = DEFAULT_ENCODING) -> DatFile:
    """Read and parse one .dat file."""

    text = read_file(path, encoding)
    dat_file = DatFile.from_text(schema, text, source=str(path))
    LOGGER.info("Loaded %d %s records from %s", len(dat_file), schema.name, path)
    return dat_file
