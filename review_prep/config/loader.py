from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..services.extractor import DEFAULT_STRATEGY
from ..services.risk_report import DEFAULT_EXAMPLE_LIMIT, DEFAULT_THRESHOLD

"""Config loader for the command line front end.

Responsibilities:
- Load an optional YAML file (config/prep.yml by default)
- Validate it against config_schema.json (shipped next to this module)
- Apply defaults for every key that is absent

The pipeline itself takes plain arguments; only the CLI reads this file.
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/prep.yml")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class PrepConfig:
    strategy: str = DEFAULT_STRATEGY
    threshold: float = DEFAULT_THRESHOLD
    output_directory: str = "."
    report_example_limit: int = DEFAULT_EXAMPLE_LIMIT
    error_log_directory: str = "./logs"


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: if the schema file is missing or not valid JSON, or the
            config data violates it (unknown keys, wrong types, bad ranges)
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


def load_config(path: Path = DEFAULT_CONFIG_PATH, *, required: bool = False) -> PrepConfig:
    """Load configuration from `path`.

    A missing file yields defaults unless `required` is set (the user passed
    --config explicitly).
    """
    if not path.exists():
        if required:
            raise ConfigError(f"config file not found: {path}")
        return PrepConfig()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    defaults = PrepConfig()
    return PrepConfig(
        strategy=data.get("strategy", defaults.strategy),
        threshold=float(data.get("threshold", defaults.threshold)),
        output_directory=data.get("output_directory", defaults.output_directory),
        report_example_limit=data.get("report_example_limit", defaults.report_example_limit),
        error_log_directory=data.get("error_log_directory", defaults.error_log_directory),
    )
