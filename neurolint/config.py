from __future__ import annotations

"""
Engine configuration: input ceiling, timeout, default layer selection and
disabled rules.

Values come from (lowest to highest precedence) the defaults below, a
[tool.neurolint] table in pyproject.toml, and NEUROLINT_* environment
variables. Configuration never changes what a rule detects; it only decides
whether the call runs and which rules are reported.
"""

import logging
import os
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, FrozenSet, List, Mapping, Optional, Sequence, Union

from neurolint.errors import ConfigError
from neurolint.layers.base import Rule
from neurolint.layers.registry import all_rules

logger = logging.getLogger(__name__)

DEFAULT_MAX_INPUT_BYTES = 10 * 1024 * 1024
DEFAULT_TIMEOUT_SECONDS = 30.0

ENV_MAX_INPUT_BYTES = "NEUROLINT_MAX_INPUT_BYTES"
ENV_TIMEOUT = "NEUROLINT_TIMEOUT"
ENV_DISABLED_RULES = "NEUROLINT_DISABLED_RULES"


@dataclass(frozen=True)
class Config:
    """
    Engine configuration.

    timeout_seconds=None disables the wall-clock budget. default_layers is
    used when a caller passes no layer selection.
    """

    max_input_bytes: int = DEFAULT_MAX_INPUT_BYTES
    timeout_seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS
    default_layers: Union[str, Sequence[int]] = "auto"
    disabled_rules: FrozenSet[str] = field(default_factory=frozenset)


def get_default_config() -> Config:
    """Return the built-in defaults, without reading files or the environment."""
    return Config()


def get_enabled_rules(config: Config | None = None) -> List[Rule]:
    """
    Return every registered rule that the config does not disable.

    Rules are listed in layer order, then in each layer's table order.
    """
    if config is None:
        config = get_default_config()
    return [rule for rule_id, rule in all_rules().items() if rule_id not in config.disabled_rules]


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        try:
            result = int(value.strip())
        except ValueError:
            raise ConfigError(f"{key} must be an integer, got {value!r}") from None
    else:
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    if result <= 0:
        raise ConfigError(f"{key} must be positive, got {result}")
    return result


def _as_timeout(key: str, value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number of seconds, got {value!r}")
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("", "none", "off", "0"):
            return None
        try:
            value = float(text)
        except ValueError:
            raise ConfigError(f"{key} must be a number of seconds, got {value!r}") from None
    if not isinstance(value, (int, float)):
        raise ConfigError(f"{key} must be a number of seconds, got {value!r}")
    return float(value) if value > 0 else None


def _as_layers(key: str, value: Any) -> Union[str, tuple[int, ...]]:
    if isinstance(value, str):
        # Parsed and validated by the selector when a call uses it.
        return value
    if isinstance(value, (list, tuple)) and all(isinstance(v, int) and not isinstance(v, bool) for v in value):
        return tuple(value)
    raise ConfigError(f'{key} must be "auto", a comma-separated string or a list of integers')


def _as_rules(key: str, value: Any) -> FrozenSet[str]:
    if isinstance(value, str):
        return frozenset(part.strip() for part in value.split(",") if part.strip())
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return frozenset(value)
    raise ConfigError(f"{key} must be a list of rule names")


_CONVERTERS = {
    "max_input_bytes": _as_int,
    "timeout_seconds": _as_timeout,
    "default_layers": _as_layers,
    "disabled_rules": _as_rules,
}


def config_from_mapping(values: Mapping[str, Any], base: Config | None = None) -> Config:
    """
    Build a Config from a mapping such as a [tool.neurolint] table.

    Keys may use dashes or underscores. Unknown keys raise ConfigError.
    """
    known = {f.name for f in fields(Config)}
    updates: dict[str, Any] = {}
    for raw_key, value in values.items():
        key = raw_key.replace("-", "_")
        if key not in known:
            raise ConfigError(f"Unknown configuration key: {raw_key}")
        updates[key] = _CONVERTERS[key](raw_key, value)
    return replace(base or get_default_config(), **updates)


def apply_env_overrides(config: Config, environ: Mapping[str, str] | None = None) -> Config:
    env = os.environ if environ is None else environ
    updates: dict[str, Any] = {}
    if env.get(ENV_MAX_INPUT_BYTES):
        updates["max_input_bytes"] = _as_int(ENV_MAX_INPUT_BYTES, env[ENV_MAX_INPUT_BYTES])
    if ENV_TIMEOUT in env:
        updates["timeout_seconds"] = _as_timeout(ENV_TIMEOUT, env[ENV_TIMEOUT])
    if env.get(ENV_DISABLED_RULES):
        updates["disabled_rules"] = _as_rules(ENV_DISABLED_RULES, env[ENV_DISABLED_RULES])
    return replace(config, **updates) if updates else config


def load_config(path: Path | None = None, environ: Mapping[str, str] | None = None) -> Config:
    """
    Load configuration from a pyproject.toml (if given and present) plus the
    environment.

    A file without a [tool.neurolint] table yields the defaults. Malformed TOML
    raises ConfigError.
    """
    config = get_default_config()
    if path is not None and path.is_file():
        try:
            with path.open("rb") as fh:
                data = tomllib.load(fh)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Could not parse {path}: {exc}") from exc
        table = data.get("tool", {}).get("neurolint")
        if table is not None:
            if not isinstance(table, dict):
                raise ConfigError(f"[tool.neurolint] in {path} must be a table")
            config = config_from_mapping(table, config)
            logger.debug("Loaded configuration from %s", path)
    return apply_env_overrides(config, environ)
