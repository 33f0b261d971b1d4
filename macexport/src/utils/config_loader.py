import os
from dataclasses import dataclass, field
from pathlib import Path
import toml
from typing import Dict, Any, List, Optional

TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class ExportSettings:
    """Effective export configuration after config file and environment"""

    export_method: Optional[str] = None
    profiles_dirs: List[Path] = field(default_factory=list)
    keychain: Optional[str] = None
    verbose: bool = False


def get_config_path() -> Path:
    """Return the path to the configuration file."""
    env_path = os.environ.get("MACEXPORT_CONFIG")
    if env_path:
        return Path(env_path)
    return Path.home() / ".macexport" / "config.toml"


def load_config() -> Dict[str, Any]:
    """Load configuration from TOML file."""
    config_path = get_config_path()
    if not config_path.exists():
        return {}

    try:
        return toml.load(config_path)
    except Exception as e:
        raise ValueError(f"Failed to load config: {e}")


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUE_VALUES


def get_export_settings() -> ExportSettings:
    """Get export settings from config, overridden by environment variables."""
    export_config = load_config().get("export", {})

    settings = ExportSettings(
        export_method=export_config.get("export_method"),
        profiles_dirs=[Path(d).expanduser() for d in export_config.get("profiles_dirs", [])],
        keychain=export_config.get("keychain"),
        verbose=_as_bool(export_config.get("verbose", False)),
    )

    env_method = os.environ.get("MACEXPORT_EXPORT_METHOD")
    if env_method:
        settings.export_method = env_method

    env_profiles_dir = os.environ.get("MACEXPORT_PROFILES_DIR")
    if env_profiles_dir:
        settings.profiles_dirs = [
            Path(d).expanduser() for d in env_profiles_dir.split(os.pathsep) if d
        ]

    env_keychain = os.environ.get("MACEXPORT_KEYCHAIN")
    if env_keychain:
        settings.keychain = env_keychain

    env_verbose = os.environ.get("MACEXPORT_VERBOSE")
    if env_verbose:
        settings.verbose = _as_bool(env_verbose)

    return settings
