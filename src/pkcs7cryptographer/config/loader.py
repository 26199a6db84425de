"""Configuration file loading and schema validation.

Lifecycle::

    from pkcs7cryptographer.config import load_settings

    settings = load_settings("/etc/pkcs7crypt/config.yaml")
    settings.issuance.validity_days

YAML (``.yaml`` / ``.yml``) and JSON files are supported.  String
values of the form ``${VAR}`` or ``${VAR:-default}`` are replaced with
environment variables before validation, so substituted values are
checked against the enums in the bundled ``schema.json``.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator, ValidationError

from pkcs7cryptographer.config.settings import CryptographerSettings, build_settings

log = logging.getLogger(__name__)

_ENV_RE = re.compile(
    r"^\$\{([^}:]+?)(?::-(.*))?\}$",
    re.DOTALL,
)

_SCHEMA_PATH = Path(__file__).parent / "schema.json"
_VALIDATOR = Draft202012Validator(json.loads(_SCHEMA_PATH.read_text(encoding="utf-8")))

_EXCLUSIVE_FLAGS = frozenset({"no_attributes", "no_capabilities"})


# ---------------------------------------------------------------------------
# Validation error collector
# ---------------------------------------------------------------------------


class ConfigValidationError(Exception):
    """Raised when validation finds one or more problems."""

    def __init__(self, errors: list[str]) -> None:
        """Store *errors* and build a human-readable message."""
        self.errors = errors
        body = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Configuration validation failed:\n{body}")


# ---------------------------------------------------------------------------
# Environment variable resolution
# ---------------------------------------------------------------------------


def _resolve_value(value: str, path: str) -> str:
    """Replace ``${VAR}`` or ``${VAR:-default}`` with env var value."""
    match = _ENV_RE.match(value)
    if match is None:
        return value
    var_name = match.group(1)
    fallback = match.group(2)
    resolved = os.environ.get(var_name)
    if resolved is not None:
        return resolved
    if fallback is not None:
        return fallback
    raise ConfigValidationError(
        [
            f"Environment variable '${{{var_name}}}' referenced "
            f"at '{path}' is not set and has no default",
        ],
    )


def _resolve_env_vars(
    data: Any,  # noqa: ANN401
    path: str = "",
) -> None:
    """Walk *data* in-place and resolve ``${VAR}``/``${VAR:-default}`` strings."""
    if isinstance(data, dict):
        for key in data:
            child_path = f"{path}.{key}" if path else key
            if isinstance(data[key], str):
                data[key] = _resolve_value(data[key], child_path)
            elif isinstance(data[key], (dict, list)):
                _resolve_env_vars(data[key], child_path)
    elif isinstance(data, list):
        for idx, item in enumerate(data):
            child_path = f"{path}[{idx}]"
            if isinstance(item, str):
                data[idx] = _resolve_value(item, child_path)
            elif isinstance(item, (dict, list)):
                _resolve_env_vars(item, child_path)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _error_path(error: ValidationError) -> str:
    path = ""
    for part in error.absolute_path:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path


def additional_checks(data: dict) -> list[str]:
    """Cross-field rules the JSON schema cannot express."""
    errors: list[str] = []
    signing = data.get("signing")
    flags = signing.get("flags") if isinstance(signing, dict) else None
    if not isinstance(flags, list) or not all(isinstance(f, str) for f in flags):
        return errors
    if _EXCLUSIVE_FLAGS <= set(flags):
        errors.append("signing.flags: no_attributes and no_capabilities are mutually exclusive")
    return errors


def validate(data: dict) -> list[str]:
    """Return every problem found in raw config *data* (empty if valid).

    The bundled ``schema.json`` covers section names, enums and types;
    :func:`additional_checks` adds the cross-field rules.
    """
    errors = []
    for error in sorted(_VALIDATOR.iter_errors(data), key=_error_path):
        path = _error_path(error)
        errors.append(f"{path}: {error.message}" if path else error.message)
    errors.extend(additional_checks(data))
    return errors


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Top-level configuration in {path} must be a mapping"
        raise ConfigValidationError([msg])
    return data


def settings_from_dict(data: dict) -> CryptographerSettings:
    """Resolve env vars, validate and build settings from a raw dict."""
    _resolve_env_vars(data)
    errors = validate(data)
    if errors:
        raise ConfigValidationError(errors)
    return build_settings(data)


def load_settings(config_file: str | Path) -> CryptographerSettings:
    """Load, validate and build settings from a YAML or JSON file.

    Raises
    ------
    FileNotFoundError
        If *config_file* does not exist.
    ConfigValidationError
        If the file content is invalid.

    """
    path = Path(config_file)
    try:
        data = _read_file(path)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        msg = f"Could not parse {path}: {exc}"
        raise ConfigValidationError([msg]) from exc
    settings = settings_from_dict(data)
    log.debug("Loaded configuration from %s", path)
    return settings
