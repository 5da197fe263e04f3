"""YAML configuration loading."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigurationError, NotificationErrorCodes
from .models import NotifyConfig


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read notification config: {path}",
            cause=e,
            code=NotificationErrorCodes.CONFIG_READ_ERROR,
        ) from e
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse notification config: {path}",
            cause=e,
            code=NotificationErrorCodes.CONFIG_PARSE_ERROR,
        ) from e
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Notification config must be a mapping: {path}",
            code=NotificationErrorCodes.CONFIG_PARSE_ERROR,
        )
    return data


def apply_secrets(data: dict[str, Any], secrets: Mapping[str, str]) -> dict[str, Any]:
    """Set credentials by dotted path, e.g. ``{"pushover.app_token": "..."}``.

    Intermediate sections are created as needed, so a secret alone can
    enable an adapter section that the file leaves out.
    """
    for key_path, value in secrets.items():
        *sections, leaf = key_path.split(".")
        node = data
        for section in sections:
            if not isinstance(node.get(section), dict):
                node[section] = {}
            node = node[section]
        node[leaf] = value
    return data


def load(path: Path, secrets: Mapping[str, str] | None = None) -> NotifyConfig:
    """Load NotifyConfig from a YAML file.

    Credentials are usually kept out of the file and passed as ``secrets``
    (see ``apply_secrets``); they are applied before validation.

    Raises:
        ConfigurationError: with code CONFIG_READ_ERROR, CONFIG_PARSE_ERROR or
            CONFIG_VALIDATION_ERROR.
    """
    data = _read_yaml(path)
    if secrets:
        apply_secrets(data, secrets)
    try:
        return NotifyConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid notification config {path}: {e}",
            cause=e,
            code=NotificationErrorCodes.CONFIG_VALIDATION_ERROR,
        ) from e
