from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load YAML config/ingest.yml
- Validate against the bundled JSON schema (ingest_schema.json)
- Apply defaults (reader.format=csv, encoding=utf-8-sig, delimiter=",")
"""

__all__ = [
    "ConfigError",
    "DatabaseConfig",
    "ReaderConfig",
    "IngestConfig",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("ingest_schema.json")
DEFAULT_CONFIG_PATH = Path("config/ingest.yml")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback; environment variables take precedence."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ReaderConfig:
    format: str = "csv"
    encoding: str = "utf-8-sig"
    delimiter: str = ","
    sheet_name: str | int = 0

    def factory_options(self) -> dict[str, Any]:
        """Keyword options for record_reader_factory for the configured format."""
        if self.format == "excel":
            return {"sheet_name": self.sheet_name}
        return {"encoding": self.encoding, "delimiter": self.delimiter}


@dataclass(frozen=True)
class IngestConfig:
    source_directory: str
    account_number: str
    reader: ReaderConfig
    database: DatabaseConfig

    def with_account(self, account_number: str) -> IngestConfig:
        return replace(self, account_number=account_number)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the config
            data fails schema validation (missing required keys, wrong types, extra keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> IngestConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    reader_raw = data.get("reader") or {}
    defaults = ReaderConfig()
    reader = ReaderConfig(
        format=reader_raw.get("format", defaults.format),
        encoding=reader_raw.get("encoding", defaults.encoding),
        delimiter=reader_raw.get("delimiter", defaults.delimiter),
        sheet_name=reader_raw.get("sheet_name", defaults.sheet_name),
    )
    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return IngestConfig(
        source_directory=data["source_directory"],
        account_number=data["upload"]["account_number"],
        reader=reader,
        database=db,
    )
