"""Runtime configuration: where editors keep their config, and how long a snapshot stays fresh."""

import os
from dataclasses import dataclass
from pathlib import Path

CONFIG_ROOT_ENV_VAR = "VSCODE_SEARCH_PROVIDER_CONFIG_ROOT"
STALENESS_ENV_VAR = "VSCODE_SEARCH_PROVIDER_STALENESS"

# Long enough for one interactive search session to reuse a snapshot,
# short enough that a new session after idling sees new workspaces.
DEFAULT_STALENESS = 5.0  # seconds


@dataclass
class ProviderConfig:
    config_root: Path
    staleness: float = DEFAULT_STALENESS


def default_config_root() -> Path:
    """The user configuration directory, following the XDG base directory spec."""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home and Path(xdg_config_home).is_absolute():
        return Path(xdg_config_home)
    return Path.home() / ".config"


def get_provider_config(
    config_root: Path | None = None,
    staleness: float | None = None,
) -> ProviderConfig:
    """
    Build the provider configuration.

    Args:
        config_root: The user config root. If None, uses the environment variable
                     VSCODE_SEARCH_PROVIDER_CONFIG_ROOT, falling back to XDG_CONFIG_HOME
                     and finally ~/.config.
        staleness: Freshness window in seconds. If None, uses the environment variable
                   VSCODE_SEARCH_PROVIDER_STALENESS, falling back to DEFAULT_STALENESS.

    Raises:
        ValueError: If the staleness window is not a positive number.
    """
    if config_root is None:
        env_root = os.environ.get(CONFIG_ROOT_ENV_VAR)
        config_root = Path(env_root).expanduser() if env_root else default_config_root()

    if staleness is None:
        env_staleness = os.environ.get(STALENESS_ENV_VAR)
        try:
            staleness = float(env_staleness) if env_staleness else DEFAULT_STALENESS
        except ValueError:
            raise ValueError(f"Invalid {STALENESS_ENV_VAR}: {env_staleness!r}") from None

    if staleness <= 0:
        raise ValueError(f"Staleness window must be positive, got {staleness}")

    return ProviderConfig(config_root=config_root, staleness=staleness)
