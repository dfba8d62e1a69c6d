from pathlib import Path
from typing import Callable, Dict, Iterable

import pytest

from uls_common.schema import get_schema


def build_line(kind: str, **fields: str) -> str:
    """Pipe-delimited line for *kind* with the named fields set, others empty."""

    schema = get_schema(kind)
    values = [""] * schema.n_fields
    values[0] = kind
    for name, value in fields.items():
        values[schema.index(name)] = value
    return "|".join(values)


@pytest.fixture
def dat_line() -> Callable[..., str]:
    return build_line


@pytest.fixture
def write_extracts(tmp_path) -> Callable[[Dict[str, Iterable[str]]], Path]:
    """Write AM/CO/EN/HD.dat files (missing kinds become empty files)."""

    def _write(lines_by_kind: Dict[str, Iterable[str]]) -> Path:
        for kind in ("AM", "CO", "EN", "HD"):
            lines = list(lines_by_kind.get(kind, []))
            text = "".join(f"{line}\r\n" for line in lines)
            (tmp_path / f"{kind}.dat").write_bytes(text.encode("latin-1"))
        return tmp_path

    return _write
