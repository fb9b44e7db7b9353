"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. config/config.yaml  -- static defaults checked into the repo
                            (tokenizer denylist, default query limit, ...)
  2. .env file           -- local overrides, read through Settings
  3. Environment vars    -- ``SVL_*``, read through Settings

Settings field defaults sit underneath the YAML and only fill keys it
leaves out; a Settings value that was actually set (environment, .env or
an explicit constructor argument) overrides the YAML.
"""

from pathlib import Path

import yaml

from verborum.config.settings import Settings
from verborum.utils.errors import ConfigurationError

# Settings field -> (config section, key).
_SETTINGS_KEYS: dict[str, tuple[str, str]] = {
    "app_env": ("app", "env"),
    "corpus_index_url": ("corpus", "index_url"),
    "max_concurrent_requests": ("fetch", "max_concurrent_requests"),
    "request_timeout": ("fetch", "timeout"),
    "user_agent": ("fetch", "user_agent"),
    "db_path": ("storage", "db_path"),
    "persist_batch_size": ("storage", "batch_size"),
    "persist_replace_existing": ("storage", "replace_existing"),
    "ordered_fold": ("aggregation", "ordered_fold"),
    "tokenizer_mode": ("tokenizer", "mode"),
    "log_level": ("logging", "level"),
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file is not
            an error; Settings defaults then stand alone.
        settings: Pre-built Settings (tests pass their own); built from the
            environment when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                yaml_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
    else:
        yaml_config = {}

    if not isinstance(yaml_config, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping at the top level")

    settings = settings or Settings()
    defaults: dict = {}
    explicit: dict = {}
    for field_name, (section, key) in _SETTINGS_KEYS.items():
        layer = explicit if field_name in settings.model_fields_set else defaults
        layer.setdefault(section, {})[key] = getattr(settings, field_name)

    # Settings defaults < YAML < values set through the environment or .env.
    _deep_merge(defaults, yaml_config)
    _deep_merge(defaults, explicit)
    return defaults


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
