"""
Installer configuration.

Settings are read from an optional YAML file (``~/.insthugo.yaml`` unless a
path is given). Every key is optional:

    base_dir: /opt/tools         # parent of the application directory
    app_dir: .caddy              # application directory name
    timeout: 30                  # HTTP timeout in seconds
    download_url: https://mirror.example.com/hugo/v0.15
    release_file: ./hugo-0.16.json
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from insthugo.core.directory import DEFAULT_APP_DIR
from insthugo.core.download import DEFAULT_TIMEOUT
from insthugo.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".insthugo.yaml"

_KNOWN_KEYS = {"base_dir", "app_dir", "timeout", "download_url", "release_file"}


@dataclass(frozen=True)
class InstallerConfig:
    """Resolved installer settings."""

    base_dir: Optional[Path] = None
    """Parent of the application directory; None means the user's home"""

    app_dir: str = DEFAULT_APP_DIR
    """Name of the application directory under base_dir"""

    timeout: float = DEFAULT_TIMEOUT
    """HTTP connect/read timeout in seconds"""

    download_url: Optional[str] = None
    """Mirror replacing the GitHub release download location"""

    release_file: Optional[Path] = None
    """Release metadata JSON replacing the embedded Hugo release"""

    def __post_init__(self):
        if not self.app_dir or Path(self.app_dir).name != self.app_dir:
            raise ConfigError(f"app_dir must be a plain directory name: {self.app_dir!r}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")

    def with_overrides(self, **overrides: Any) -> "InstallerConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    @classmethod
    def from_dict(cls, data: Dict[str, Any], relative_to: Optional[Path] = None):
        """
        Build a configuration from parsed YAML.

        Relative ``base_dir`` and ``release_file`` values are resolved against
        ``relative_to`` (the directory of the config file).

        Raises:
            ConfigError: If a value has the wrong type
        """
        unknown = set(data) - _KNOWN_KEYS
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")

        kwargs: Dict[str, Any] = {}

        for key in ("base_dir", "release_file"):
            if data.get(key) is not None:
                path = Path(str(data[key])).expanduser()
                if relative_to is not None and not path.is_absolute():
                    path = relative_to / path
                kwargs[key] = path

        if data.get("app_dir") is not None:
            kwargs["app_dir"] = str(data["app_dir"])

        if data.get("download_url") is not None:
            kwargs["download_url"] = str(data["download_url"])

        if data.get("timeout") is not None:
            timeout = data["timeout"]
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise ConfigError(f"timeout must be a number, got {timeout!r}")
            kwargs["timeout"] = float(timeout)

        return cls(**kwargs)


def default_config_path(home: Path) -> Path:
    return home / CONFIG_FILENAME


def load_config(config_file: Optional[Path], required: bool = False) -> InstallerConfig:
    """
    Load installer configuration from a YAML file.

    Args:
        config_file: Path to YAML configuration file (None for defaults)
        required: If True, raise error if file doesn't exist

    Returns:
        InstallerConfig (defaults if the file doesn't exist and isn't required)

    Raises:
        ConfigError: If the file is required and missing, or is not valid YAML
    """
    if config_file is None:
        return InstallerConfig()

    config_file = Path(config_file)
    if not config_file.exists():
        if required:
            raise ConfigError(f"Configuration file not found: {config_file}")
        logger.debug(f"Config file not found (optional): {config_file}")
        return InstallerConfig()

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {config_file}: {e}") from e

    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping: {config_file}")

    return InstallerConfig.from_dict(data, relative_to=config_file.parent)
