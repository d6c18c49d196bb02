"""
Layered settings for the sccache bootstrap.

Settings are resolved in order, later layers winning:
1. Built-in defaults
2. Optional YAML file (buildcachekit.yaml in the project root, or --config)
3. Environment variables
4. Command-line overrides

Credentials are only read from the environment, never from the YAML file.

Example buildcachekit.yaml:
    version: v0.10.0
    install_dir: target/sccache
    lock: false
    bucket: my-sccache-bucket
    key_prefix: sccache/
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .caching.installer import DEFAULT_INSTALL_DIR
from .caching.release import SCCACHE_VERSION
from .caching.remote import Secret
from .core.environment import Environment
from .core.exceptions import SettingsError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "buildcachekit.yaml"

YAML_KEYS = {"version", "install_dir", "lock", "bucket", "key_prefix"}

# Environment variable -> settings attribute
ENV_OVERRIDES = {
    "SCCACHE_INSTALL_DIR": "install_dir",
    "SCCACHE_BUCKET": "bucket",
    "SCCACHE_KEY_PREFIX": "key_prefix",
    "GITHUB_WORKSPACE": "workspace_dir",
    "R2_ACCOUNT_ID": "account_id",
}


@dataclass
class BootstrapSettings:
    """
    Resolved bootstrap settings.

    Attributes:
        project_root: Directory relative paths are resolved against
        version: sccache release tag
        install_dir: Directory holding the sccache binary
        lock: Serialize installs into install_dir with a file lock
        account_id: R2 account identifier (enables remote caching)
        access_key_id: R2 access key id
        secret_access_key: R2 secret access key
        bucket: Bucket override
        key_prefix: Key prefix override
        workspace_dir: Base directory override
    """

    project_root: Path = field(default_factory=Path.cwd)
    version: str = SCCACHE_VERSION
    install_dir: Path = DEFAULT_INSTALL_DIR
    lock: bool = False
    account_id: Optional[str] = None
    access_key_id: Secret = field(default_factory=Secret)
    secret_access_key: Secret = field(default_factory=Secret)
    bucket: Optional[str] = None
    key_prefix: Optional[str] = None
    workspace_dir: Optional[str] = None

    @property
    def resolved_install_dir(self) -> Path:
        install_dir = Path(self.install_dir)
        if install_dir.is_absolute():
            return install_dir
        return Path(self.project_root) / install_dir


def load_yaml_settings(config_file: Path, required: bool = False) -> Dict[str, Any]:
    """
    Load and validate a YAML settings file.

    Args:
        config_file: Path to the YAML file
        required: If True, a missing file is an error

    Returns:
        Settings dictionary (empty if the file is absent and not required)

    Raises:
        SettingsError: If the file is missing (when required) or invalid
    """
    if not config_file.exists():
        if required:
            raise SettingsError(f"Configuration file not found: {config_file}")
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in {config_file}: {e}") from e

    data = data or {}
    if not isinstance(data, dict):
        raise SettingsError(f"{config_file} must contain a mapping at top level")

    unknown = set(data) - YAML_KEYS
    if unknown:
        logger.warning(
            f"Ignoring unknown keys in {config_file}: {', '.join(sorted(unknown))}"
        )

    settings = {key: value for key, value in data.items() if key in YAML_KEYS}

    if "lock" in settings and not isinstance(settings["lock"], bool):
        raise SettingsError(f"'lock' in {config_file} must be true or false")
    for key in YAML_KEYS - {"lock"}:
        if key in settings and settings[key] is not None:
            settings[key] = str(settings[key])

    return settings


def load_settings(
    env: Environment,
    project_root: Optional[Path] = None,
    config_file: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> BootstrapSettings:
    """
    Resolve settings from all layers.

    Args:
        env: Process environment
        project_root: Project root (default: current directory)
        config_file: Explicit YAML file; must exist when given
        overrides: Command-line overrides, None values are ignored

    Raises:
        SettingsError: If the YAML file is invalid
    """
    project_root = Path(project_root) if project_root else Path.cwd()
    settings = BootstrapSettings(project_root=project_root)

    if config_file is not None:
        file_settings = load_yaml_settings(Path(config_file), required=True)
    else:
        file_settings = load_yaml_settings(project_root / DEFAULT_CONFIG_FILE)
    _apply(settings, file_settings)

    _apply(
        settings,
        {
            attribute: env.get_nonempty(name)
            for name, attribute in ENV_OVERRIDES.items()
        },
    )
    settings.access_key_id = Secret(env.get_nonempty("R2_ACCESS_KEY_ID"))
    settings.secret_access_key = Secret(env.get_nonempty("R2_SECRET_ACCESS_KEY"))

    _apply(settings, overrides or {})

    logger.debug(
        f"Resolved settings: version={settings.version} "
        f"install_dir={settings.resolved_install_dir} lock={settings.lock} "
        f"remote={'on' if settings.account_id else 'off'}"
    )
    return settings


def _apply(settings: BootstrapSettings, values: Dict[str, Any]) -> None:
    for key, value in values.items():
        if value is None:
            continue
        if key == "install_dir":
            value = Path(value)
        setattr(settings, key, value)
