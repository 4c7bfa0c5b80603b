"""Global configuration for intake-flow.

Configuration lives in ``$INTAKE_FLOW_HOME/config.yaml`` (default
``~/.config/intake-flow/config.yaml``). Store path resolution order:
explicit argument, ``INTAKE_FLOW_STORE``, the global config file, then
``./intake-store``.
"""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel

from intake_flow.core.errors import ConfigurationError

HOME_ENV_VAR = "INTAKE_FLOW_HOME"
STORE_ENV_VAR = "INTAKE_FLOW_STORE"
DEFAULT_STORE_DIRNAME = "intake-store"


class GlobalConfig(BaseModel):
    """Contents of the global config file."""

    default_store_path: str | None = None
    template_schema_path: str | None = None
    assignment_schema_path: str | None = None


def get_intake_flow_home() -> Path:
    """Get the intake-flow configuration directory."""
    env_home = os.environ.get(HOME_ENV_VAR)
    if env_home:
        return Path(env_home)
    return Path.home() / ".config" / "intake-flow"


def get_config_path() -> Path:
    return get_intake_flow_home() / "config.yaml"


def load_global_config() -> GlobalConfig:
    """Load the global config file; a missing file yields defaults."""
    config_path = get_config_path()
    if not config_path.exists():
        return GlobalConfig()

    with open(config_path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    return GlobalConfig.model_validate(data)


def get_store_path(explicit: Path | str | None = None) -> Path:
    """Resolve the template store directory."""
    if explicit:
        return Path(explicit)

    env_path = os.environ.get(STORE_ENV_VAR)
    if env_path:
        return Path(env_path)

    global_config = load_global_config()
    if global_config.default_store_path:
        return Path(global_config.default_store_path)

    return Path(DEFAULT_STORE_DIRNAME)
