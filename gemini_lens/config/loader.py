from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from gemini_lens.logging.activity_log import DEFAULT_LOG_CAPACITY
from gemini_lens.models.job_config import DEFAULT_BASELINE_PROMPT

"""Config loader.

Responsibilities:
- Load the optional YAML file (``config/lens.yml`` by default)
- Validate it against the bundled JSON schema (unknown keys are rejected)
- Apply defaults for everything left out
- Resolve the API key from the environment (never from the YAML file)
"""

SCHEMA_PATH = Path(__file__).with_name("schema.json")
DEFAULT_CONFIG_PATH = Path("config/lens.yml")

DEFAULT_MODEL = "gemini-2.5-flash-image"
DEFAULT_ARCHIVE_NAME = "gemini-products.zip"
DEFAULT_ARCHIVE_FOLDER = "gemini-generated-images"
DEFAULT_EDITED_FILE_NAME = "edited-gemini-lens.png"

# Checked in order; the first non-empty value wins
API_KEY_ENV_VARS = ("GOOGLE_API_KEY", "GEMINI_API_KEY", "API_KEY")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class LensConfig:
    model: str = DEFAULT_MODEL
    baseline_prompt: str = DEFAULT_BASELINE_PROMPT
    log_capacity: int = DEFAULT_LOG_CAPACITY
    archive_name: str = DEFAULT_ARCHIVE_NAME
    archive_folder: str = DEFAULT_ARCHIVE_FOLDER
    edited_file_name: str = DEFAULT_EDITED_FILE_NAME


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or if
            the data fails validation (wrong types, unknown keys, ...)
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


def load_config(path: Path | None = None) -> LensConfig:
    """Load configuration from ``path``.

    With ``path=None`` the default location is tried and silently skipped
    when absent. An explicitly given path must exist.
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return LensConfig()
        path = DEFAULT_CONFIG_PATH
    elif not path.exists():
        raise ConfigError(f"config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    return LensConfig(
        model=data.get("model", DEFAULT_MODEL),
        baseline_prompt=data.get("baseline_prompt", DEFAULT_BASELINE_PROMPT),
        log_capacity=data.get("log_capacity", DEFAULT_LOG_CAPACITY),
        archive_name=data.get("archive_name", DEFAULT_ARCHIVE_NAME),
        archive_folder=data.get("archive_folder", DEFAULT_ARCHIVE_FOLDER),
        edited_file_name=data.get("edited_file_name", DEFAULT_EDITED_FILE_NAME),
    )


def resolve_api_key(environ: dict[str, str] | None = None) -> str | None:
    env = os.environ if environ is None else environ
    for name in API_KEY_ENV_VARS:
        value = (env.get(name) or "").strip()
        if value:
            return value
    return None
