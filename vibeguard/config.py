"""Optional YAML configuration for a scan."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

import yaml

from .errors import ConfigurationError
from .severity import Severity
from .utils.fileio import read_yaml_file

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILES = (".vibeguard.yml", ".vibeguard.yaml")
OUTPUT_FORMATS = ("table", "json")


@dataclass(frozen=True)
class RuleConfig:
    """Per-rule switches: enable flag, severity override and path excludes."""

    enabled: bool = True
    severity: Optional[Severity] = None
    exclude: Tuple[str, ...] = ()


@dataclass(frozen=True)
class VibeGuardConfig:
    rules: Dict[str, RuleConfig] = field(default_factory=dict)
    exclude: Tuple[str, ...] = ()
    include: Tuple[str, ...] = ()
    output_format: str = "table"

    def rule(self, name: str) -> RuleConfig:
        return self.rules.get(name, RuleConfig())

    def is_enabled(self, name: str) -> bool:
        return self.rule(name).enabled


def _string_list(value: Any, key: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"'{key}' must be a list of glob strings")
    return tuple(value)


def _parse_rule(name: str, raw: Any) -> RuleConfig:
    if raw is None:
        return RuleConfig()
    if isinstance(raw, bool):
        return RuleConfig(enabled=raw)
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Configuration for rule '{name}' must be a mapping")

    enabled = raw.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ConfigurationError(f"'rules.{name}.enabled' must be true or false")

    severity = None
    if raw.get("severity") is not None:
        try:
            severity = Severity.parse(raw["severity"])
        except ValueError as exc:
            raise ConfigurationError(f"'rules.{name}.severity': {exc}") from exc

    return RuleConfig(
        enabled=enabled,
        severity=severity,
        exclude=_string_list(raw.get("exclude"), f"rules.{name}.exclude"),
    )


def parse_config(data: Any) -> VibeGuardConfig:
    """Build a ``VibeGuardConfig`` from an already parsed YAML document."""

    if data is None:
        return VibeGuardConfig()
    if not isinstance(data, Mapping):
        raise ConfigurationError("Configuration root must be a mapping")

    raw_rules = data.get("rules") or {}
    if not isinstance(raw_rules, Mapping):
        raise ConfigurationError("'rules' must be a mapping of rule name to settings")
    rules = {str(name): _parse_rule(str(name), raw) for name, raw in raw_rules.items()}

    output_format = str(data.get("output_format") or "table").lower()
    if output_format not in OUTPUT_FORMATS:
        raise ConfigurationError(
            f"'output_format' must be one of: {', '.join(OUTPUT_FORMATS)} (got {output_format!r})"
        )

    return VibeGuardConfig(
        rules=rules,
        exclude=_string_list(data.get("exclude"), "exclude"),
        include=_string_list(data.get("include"), "include"),
        output_format=output_format,
    )


def load_config(path: Optional[Union[str, Path]] = None) -> VibeGuardConfig:
    """Load configuration from ``path`` or from a default file in the working directory.

    An explicit path must exist. Without one, the first of ``.vibeguard.yml``
    and ``.vibeguard.yaml`` found is used, falling back to defaults.
    """

    if path is not None:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigurationError(f"Configuration file not found: {config_path}")
    else:
        config_path = next((Path(name) for name in DEFAULT_CONFIG_FILES if Path(name).is_file()), None)
        if config_path is None:
            return VibeGuardConfig()

    logger.debug("Loading configuration from %s", config_path)
    try:
        data = read_yaml_file(config_path)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Could not read {config_path}: {exc.strerror or exc}") from exc
    return parse_config(data)
