from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .errors import ConfigError
from .output import OUTPUT_FORMATS
from .records import DEFAULT_ENCODING
from .schema import DEFAULT_FILE_NAMES, MERGE_KINDS

CONFIG_ENV_KEY = "ULS_MERGE_CONFIG"
DEFAULT_CONFIG_PATH = Path("uls_merge.yaml")


@dataclass
class Settings:
    """Run settings; every field has a usable default."""

    data_dir: Path = Path(".")
    encoding: str = DEFAULT_ENCODING
    as_of: Optional[date] = None
    output_format: str = "dat"
    files: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_FILE_NAMES))

    def source_path(self, kind: str) -> Path:
        return self.data_dir / self.files[kind]


def _resolve_path(base: Path, value: str) -> Path:
    return (base / value).expanduser().resolve()


def parse_as_of(value: object) -> Optional[date]:
    """Accept a YAML date, an ISO YYYY-MM-DD string, or nothing."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ConfigError(f"as_of must be a YYYY-MM-DD date, got {value!r}") from exc


def _parse_files(raw: object) -> Dict[str, str]:
    files = dict(DEFAULT_FILE_NAMES)
    if raw is None:
        return files
    if not isinstance(raw, Mapping):
        raise ConfigError("`files` must map record kinds to file names")
    for kind, name in raw.items():
        kind_str = str(kind).upper()
        if kind_str not in MERGE_KINDS:
            raise ConfigError(f"Unknown record kind in `files`: {kind}; expected one of: {', '.join(MERGE_KINDS)}")
        files[kind_str] = str(name)
    return files


def load_config(path: Path) -> Settings:
    """Load and normalise the YAML configuration file."""

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration file {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping of settings")

    output_format = str(raw.get("output_format", "dat")).lower()
    if output_format not in OUTPUT_FORMATS:
        raise ConfigError(f"output_format must be one of: {', '.join(OUTPUT_FORMATS)}")

    return Settings(
        data_dir=_resolve_path(path.parent, str(raw.get("data_dir", "."))),
        encoding=str(raw.get("encoding", DEFAULT_ENCODING)),
        as_of=parse_as_of(raw.get("as_of")),
        output_format=output_format,
        files=_parse_files(raw.get("files")),
    )


def discover_config(explicit: Optional[Path] = None) -> Optional[Path]:
    """
    Pick the config file to use: an explicit path, then the path named by
    ``ULS_MERGE_CONFIG``, then ``uls_merge.yaml`` if it exists. None means run
    on defaults.
    """

    if explicit is not None:
        return explicit
    env_value = os.environ.get(CONFIG_ENV_KEY)
    if env_value:
        return Path(env_value)
    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH
    return None


def load_settings(explicit: Optional[Path] = None) -> Settings:
    config_path = discover_config(explicit)
    if config_path is None:
        return Settings()
    return load_config(config_path)
