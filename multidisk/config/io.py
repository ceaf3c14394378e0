"""Config I/O utilities."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ConfigurationError, ValidationError
from .models import MultiDiskConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MULTIDISK_CONFIG"


def get_config_path(config_path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    if config_path:
        return Path(config_path)
    override = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(override)
    return None


def _read_mapping(path: Path) -> Dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file: {exc}", file_path=str(path)) from exc

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(raw)
        else:
            data = yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(
            f"Config file is not valid {path.suffix.lstrip('.') or 'yaml'}: {exc}",
            error_code="CONFIG_PARSE_ERROR",
            file_path=str(path),
        ) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("Config root must be a mapping", file_path=str(path))
    return data


def _merge(base: Dict[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            current = merged.get(key)
            merged[key] = _merge(current if isinstance(current, dict) else {}, value)
        else:
            merged[key] = value
    return merged


def validate_config(payload: Mapping[str, Any]) -> MultiDiskConfig:
    try:
        return MultiDiskConfig.model_validate(dict(payload))
    except PydanticValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        field_name = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ValidationError(
            f"Invalid configuration: {first.get('msg', exc)}",
            field_name=field_name,
            details={"errors": len(exc.errors())},
        ) from exc


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> MultiDiskConfig:
    """Load, merge and validate the run configuration.

    Without an explicit path or ``MULTIDISK_CONFIG`` the defaults are used.
    ``overrides`` (typically CLI flags) win over file values; ``None`` values
    are ignored so unset flags keep the file setting.
    """
    path = get_config_path(config_path)
    data: Dict[str, Any] = {}
    if path is not None:
        if not path.exists():
            raise ConfigurationError("Config file not found", file_path=str(path))
        data = _read_mapping(path)
        logger.debug("Loaded config from %s", path)

    if overrides:
        data = _merge(data, overrides)

    return validate_config(data)


def save_config(config: MultiDiskConfig, config_path: Union[str, Path]) -> Path:
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = config.model_dump(by_alias=True)
    if path.suffix.lower() == ".json":
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    else:
        path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
    return path
