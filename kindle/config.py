"""
Config system - layered settings for the lifecycle coordinator.

Merge precedence (later overrides earlier):
1. Dataclass defaults
2. Config files (YAML / JSON)
3. .env file (prefixed keys only)
4. Environment variables (prefixed keys only)
5. Manual overrides
"""

from typing import Any, Dict, Optional, Type, get_type_hints, get_origin, get_args
from dataclasses import dataclass, field, fields, MISSING
from glob import glob
from pathlib import Path
import logging
import os
import json

import yaml
from dotenv import dotenv_values

from .faults import ConfigInvalidFault

logger = logging.getLogger("kindle.config")

LATE_SETUP_POLICIES = ("ignore", "warn", "run", "raise")


@dataclass
class Settings:
    """
    Coordinator settings.

    Attributes:
        auto_start: Default for apps that do not set auto_start themselves
        auto_end: Default for apps that do not set auto_end themselves
        late_setup: What setup() does after an app initialized
            ("ignore", "warn", "run" or "raise")
        strict_locks: Raise on unlock() without a matching lock()
        apps: Initial config per app name
    """
    auto_start: bool = True
    auto_end: bool = True
    late_setup: str = "warn"
    strict_locks: bool = False
    apps: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self):
        if self.late_setup not in LATE_SETUP_POLICIES:
            raise ConfigInvalidFault(
                "late_setup",
                f"expected one of {', '.join(LATE_SETUP_POLICIES)}, got {self.late_setup!r}",
            )
        for name, data in self.apps.items():
            if not isinstance(data, dict):
                raise ConfigInvalidFault(f"apps.{name}", "expected a mapping")

    def app_config(self, name: Optional[str]) -> Dict[str, Any]:
        """Copy of the initial config for an app (empty if unknown)."""
        if name is None:
            return {}
        return dict(self.apps.get(name, {}))


class SettingsLoader:
    """
    Loads and merges settings from multiple sources.
    """

    def __init__(self, env_prefix: str = "KINDLE_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[list[str]] = None,
        env_prefix: str = "KINDLE_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> "SettingsLoader":
        """
        Load settings data from every source.

        Args:
            paths: Config file paths (glob patterns supported)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)

        Returns:
            Loader holding the merged data
        """
        loader = cls(env_prefix=env_prefix)

        for pattern in paths or []:
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_from_files(self, pattern: str):
        """Load config from JSON or YAML files."""
        matches = sorted(glob(pattern))
        if not matches:
            logger.debug(f"No config files match '{pattern}'")

        for path_str in matches:
            path = Path(path_str)

            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)

    def _load_json_file(self, path: Path):
        with open(path) as f:
            data = json.load(f)
            self._merge_file_data(path, data)

    def _load_yaml_file(self, path: Path):
        with open(path) as f:
            data = yaml.safe_load(f)
            if data:
                self._merge_file_data(path, data)

    def _merge_file_data(self, path: Path, data: Any):
        if not isinstance(data, dict):
            raise ConfigInvalidFault(str(path), "top-level value must be a mapping")
        self._merge_dict(self.config_data, data)

    def _load_env_file(self, path: str):
        """Load prefixed keys from a .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return

        for key, value in dotenv_values(env_path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert KINDLE_APPS__BILLING__REGION to nested dict."""
        key = key[len(self.env_prefix):]

        # Double underscore separates nesting levels
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes", "1"):
            return True
        if value.lower() in ("false", "no", "0"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current = self.config_data

        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current

    def build(self, settings_class: Type[Settings] = Settings) -> Settings:
        """Instantiate the settings dataclass with type validation."""
        hints = get_type_hints(settings_class)
        kwargs = {}

        for field_info in fields(settings_class):
            name = field_info.name

            if name in self.config_data:
                value = self.config_data[name]
                if not self._check_type(value, hints[name]):
                    raise ConfigInvalidFault(
                        name,
                        f"expected {getattr(hints[name], '__name__', hints[name])}, "
                        f"got {type(value).__name__}",
                    )
                kwargs[name] = value
            elif field_info.default is MISSING and field_info.default_factory is MISSING:
                raise ConfigInvalidFault(name, "required setting not provided")

        unknown = set(self.config_data) - {f.name for f in fields(settings_class)}
        if unknown:
            logger.warning(f"Ignoring unknown settings: {', '.join(sorted(unknown))}")

        return settings_class(**kwargs)

    def _check_type(self, value: Any, expected_type: Any) -> bool:
        """Basic type checking."""
        origin = get_origin(expected_type)
        if origin is not None:
            args = get_args(expected_type)
            if origin is dict:
                return isinstance(value, dict) and all(isinstance(k, str) for k in value)
            if args and type(None) in args:
                return value is None or self._check_type(value, args[0])
            return isinstance(value, origin)

        if expected_type is bool:
            return isinstance(value, bool)

        try:
            return isinstance(value, expected_type)
        except TypeError:
            return True

    def to_dict(self) -> dict:
        return self.config_data.copy()


def load_settings(
    paths: Optional[list[str]] = None,
    env_prefix: str = "KINDLE_",
    env_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Settings:
    """
    Load coordinator settings.

    Example:
        settings = load_settings(["config/kindle.yaml"], env_file=".env")
        coordinator = Coordinator(settings=settings)

    Raises:
        ConfigInvalidFault: If a value has the wrong type or is out of range
    """
    loader = SettingsLoader.load(
        paths=paths,
        env_prefix=env_prefix,
        env_file=env_file,
        overrides=overrides,
    )
    return loader.build()
