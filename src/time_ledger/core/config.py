"""Configuration management for Time Ledger."""

import copy
import secrets
from pathlib import Path
from typing import Any, Optional

import yaml  # type: ignore[import-untyped]
from jsonschema import ValidationError, validate  # type: ignore[import-untyped]

from time_ledger.core.timezone import is_valid_timezone


class ConfigManager:
    """Manage application configuration."""

    DEFAULT_CONFIG = {
        "version": "1.0",
        "database": {
            "url": None,
            "echo": False,
        },
        "defaults": {
            "user_id": 1,
            "timezone": "UTC",
            "working_hours": 8,
            "share_duration_days": 7,
        },
        "sharing": {
            "token_bytes": 8,
            "max_token_attempts": 3,
        },
        "logging": {
            "level": "WARNING",
            "file": None,
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        },
        "api": {
            "host": "localhost",
            "port": 8000,
            "workers": 1,
            "log_level": "info",
            "access_log": True,
            "authentication": {
                "enabled": True,
                "token_expiry_hours": 24,
                "secret_key": None,
            },
            "cors": {
                "enabled": True,
                "origins": ["http://localhost:3000", "http://localhost:5173"],
            },
        },
    }

    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "version": {"type": "string"},
            "database": {
                "type": "object",
                "properties": {
                    "url": {"type": ["string", "null"]},
                    "echo": {"type": "boolean"},
                },
            },
            "defaults": {
                "type": "object",
                "properties": {
                    "user_id": {"type": "integer", "minimum": 1},
                    "timezone": {"type": "string"},
                    "working_hours": {"type": "integer", "minimum": 1, "maximum": 24},
                    "share_duration_days": {"type": "integer", "minimum": 0},
                },
            },
            "sharing": {
                "type": "object",
                "properties": {
                    "token_bytes": {"type": "integer", "minimum": 8, "maximum": 64},
                    "max_token_attempts": {"type": "integer", "minimum": 1, "maximum": 10},
                },
            },
            "logging": {
                "type": "object",
                "properties": {
                    "level": {
                        "type": "string",
                        "enum": ["DEBUG", "INFO", "WARNING", "ERROR"],
                    },
                    "file": {"type": ["string", "null"]},
                    "format": {"type": "string"},
                },
            },
            "api": {
                "type": "object",
                "properties": {
                    "host": {"type": "string"},
                    "port": {"type": "integer", "minimum": 1, "maximum": 65535},
                    "workers": {"type": "integer", "minimum": 1, "maximum": 16},
                    "log_level": {"type": "string"},
                    "access_log": {"type": "boolean"},
                    "authentication": {
                        "type": "object",
                        "properties": {
                            "enabled": {"type": "boolean"},
                            "token_expiry_hours": {
                                "type": "integer",
                                "minimum": 1,
                                "maximum": 8760,
                            },
                            "secret_key": {"type": ["string", "null"]},
                        },
                    },
                    "cors": {
                        "type": "object",
                        "properties": {
                            "enabled": {"type": "boolean"},
                            "origins": {
                                "type": "array",
                                "items": {"type": "string"},
                            },
                        },
                    },
                },
            },
        },
        "required": ["version"],
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to config file. Defaults to ~/.time-ledger/config.yml
        """
        if config_path is None:
            config_path = Path.home() / ".time-ledger" / "config.yml"
        self.config_path = config_path
        self._config: dict[str, Any] = {}
        self._load_or_create()

    def _load_or_create(self) -> None:
        """Load existing config or create default."""
        if self.config_path.exists():
            with open(self.config_path, encoding="utf-8") as f:
                loaded_config = yaml.safe_load(f) or {}
            self._config = self._merge_with_defaults(loaded_config)
            try:
                self.validate()
            except ValueError as e:
                backup_path = self.config_path.with_suffix(".yml.backup")
                self.config_path.rename(backup_path)
                self._config = copy.deepcopy(self.DEFAULT_CONFIG)
                self.save()
                raise ValueError(
                    f"Config validation failed, backed up to {backup_path}. "
                    f"Using defaults. Error: {e}"
                )
        else:
            self._config = copy.deepcopy(self.DEFAULT_CONFIG)
            self.save()

    def _merge_with_defaults(self, config: dict[str, Any]) -> dict[str, Any]:
        """Merge config with defaults to ensure all keys exist."""
        result = copy.deepcopy(self.DEFAULT_CONFIG)
        self._deep_merge(result, config)
        return result

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> None:
        """Deep merge override into base dictionary (in-place)."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., 'sharing.token_bytes')
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get('sharing.token_bytes')
            8
            >>> config.get('nonexistent.key', 'default')
            'default'
        """
        value: Any = self._config
        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
            if value is None:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key: Configuration key in dot notation
            value: Value to set

        Raises:
            ValueError: If configuration is invalid after setting. The previous
                value is kept.
        """
        previous = copy.deepcopy(self._config)
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value
        try:
            self.validate()
        except ValueError:
            self._config = previous
            raise
        self.save()

    def validate(self) -> bool:
        """Validate configuration against schema.

        Raises:
            ValueError: If configuration is invalid
        """
        try:
            validate(instance=self._config, schema=self.CONFIG_SCHEMA)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e.message}")
        tz_name = self.get("defaults.timezone")
        if tz_name is not None and not is_valid_timezone(tz_name):
            raise ValueError(f"Invalid configuration: unknown timezone {tz_name!r}")
        return True

    def save(self) -> None:
        """Save configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self._config, f, default_flow_style=False, sort_keys=False, allow_unicode=True
            )

    def reset(self) -> None:
        """Reset to default configuration."""
        self._config = copy.deepcopy(self.DEFAULT_CONFIG)
        self.save()

    def to_dict(self) -> dict[str, Any]:
        """Get full configuration as dictionary."""
        return copy.deepcopy(self._config)

    def get_all_keys(self, prefix: str = "") -> list[str]:
        """Get all configuration keys in dot notation.

        Example:
            >>> config.get_all_keys()
            ['version', 'database.url', 'database.echo', ...]
        """
        keys = []
        config = self._config if not prefix else self.get(prefix, {})

        if isinstance(config, dict):
            for key, value in config.items():
                full_key = f"{prefix}.{key}" if prefix else key
                if isinstance(value, dict):
                    keys.extend(self.get_all_keys(full_key))
                else:
                    keys.append(full_key)
        return keys

    def database_url(self) -> str:
        """SQLAlchemy URL of the ledger database.

        Without an explicit ``database.url`` the database is a SQLite file
        next to the config file.
        """
        url: Optional[str] = self.get("database.url")
        if url:
            return url
        return f"sqlite:///{self.config_path.parent / 'ledger.db'}"

    def settings_defaults(self) -> dict[str, Any]:
        """Values used for user settings created on first read.

        Raises:
            ValueError: If the configured timezone is not a known IANA name
        """
        tz_name = self.get("defaults.timezone", "UTC")
        if not is_valid_timezone(tz_name):
            raise ValueError(f"Invalid configuration: unknown timezone {tz_name!r}")
        return {
            "timezone": tz_name,
            "working_hours": self.get("defaults.working_hours", 8),
            "share_duration_days": self.get("defaults.share_duration_days", 7),
        }

    def ensure_api_secret_key(self) -> str:
        """Ensure API secret key exists, generate if needed.

        Returns:
            The API secret key
        """
        secret_key: Optional[str] = self.get("api.authentication.secret_key")
        if not secret_key:
            secret_key = secrets.token_urlsafe(32)
            self.set("api.authentication.secret_key", secret_key)
        return secret_key
