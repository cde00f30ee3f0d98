"""Tests for configuration manager and logging setup."""

import logging
import tempfile
from pathlib import Path

import pytest  # type: ignore[import-not-found]
import yaml  # type: ignore[import-untyped]

from time_ledger.core.config import ConfigManager
from time_ledger.core.logs import setup_logging


@pytest.fixture
def temp_config_path():
    """Create a temporary config file path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "config.yml"


class TestConfigManager:
    """Test ConfigManager."""

    def test_initialization_creates_default_config(self, temp_config_path: Path) -> None:
        """Test that initialization creates default configuration."""
        assert not temp_config_path.exists()

        config = ConfigManager(temp_config_path)

        assert temp_config_path.exists()
        assert config.get("version") == "1.0"
        assert config.get("defaults.timezone") == "UTC"
        assert config.get("sharing.token_bytes") == 8

    def test_merge_with_defaults(self, temp_config_path: Path) -> None:
        """Test that partial config is merged with defaults."""
        with open(temp_config_path, "w") as f:
            yaml.dump({"version": "1.0", "defaults": {"timezone": "Europe/Paris"}}, f)

        config = ConfigManager(temp_config_path)

        # Custom value
        assert config.get("defaults.timezone") == "Europe/Paris"

        # Default values should still be present
        assert config.get("defaults.working_hours") == 8
        assert config.get("logging.level") == "WARNING"

    def test_get_nonexistent_key_returns_default(self, temp_config_path: Path) -> None:
        """Test getting nonexistent key returns default."""
        config = ConfigManager(temp_config_path)

        assert config.get("nonexistent.key") is None
        assert config.get("nonexistent.key", "default") == "default"
        assert config.get("database.url", "fallback") == "fallback"

    def test_set_value_persists(self, temp_config_path: Path) -> None:
        """Test setting configuration values."""
        config = ConfigManager(temp_config_path)
        config.set("defaults.share_duration_days", 30)

        assert config.get("defaults.share_duration_days") == 30
        assert ConfigManager(temp_config_path).get("defaults.share_duration_days") == 30

    def test_invalid_set_keeps_previous_value(self, temp_config_path: Path) -> None:
        """Test that invalid values raise and are not kept."""
        config = ConfigManager(temp_config_path)

        with pytest.raises(ValueError, match="Invalid configuration"):
            config.set("sharing.token_bytes", 4)

        assert config.get("sharing.token_bytes") == 8

    def test_log_level_validation(self, temp_config_path: Path) -> None:
        """Test log level enum validation."""
        config = ConfigManager(temp_config_path)

        for level in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            config.set("logging.level", level)
            assert config.get("logging.level") == level

        with pytest.raises(ValueError):
            config.set("logging.level", "TRACE")

    def test_working_hours_range(self, temp_config_path: Path) -> None:
        """Test default working hours range validation."""
        config = ConfigManager(temp_config_path)
        config.set("defaults.working_hours", 24)

        with pytest.raises(ValueError):
            config.set("defaults.working_hours", 25)

    def test_reset_to_defaults(self, temp_config_path: Path) -> None:
        """Test resetting configuration to defaults."""
        config = ConfigManager(temp_config_path)
        config.set("api.port", 9000)

        config.reset()

        assert config.get("api.port") == 8000

    def test_to_dict_is_a_copy(self, temp_config_path: Path) -> None:
        """Test converting config to dictionary."""
        config = ConfigManager(temp_config_path)

        config_dict = config.to_dict()
        config_dict["version"] = "9.9"

        assert config.get("version") == "1.0"

    def test_get_all_keys(self, temp_config_path: Path) -> None:
        """Test getting all configuration keys."""
        keys = ConfigManager(temp_config_path).get_all_keys()

        assert "version" in keys
        assert "database.echo" in keys
        assert "defaults.share_duration_days" in keys
        assert "api.authentication.enabled" in keys

    def test_corrupted_config_creates_backup(self, temp_config_path: Path) -> None:
        """Test that corrupted config is backed up and defaults used."""
        with open(temp_config_path, "w") as f:
            yaml.dump({"version": "1.0", "api": {"port": 700000}}, f)

        backup_path = temp_config_path.with_suffix(".yml.backup")

        with pytest.raises(ValueError, match="Config validation failed"):
            ConfigManager(temp_config_path)

        assert backup_path.exists()
        with open(temp_config_path) as f:
            assert yaml.safe_load(f)["api"]["port"] == 8000

    def test_database_url_defaults_next_to_config(self, temp_config_path: Path) -> None:
        """Test the default database is a SQLite file beside the config."""
        config = ConfigManager(temp_config_path)

        assert config.database_url() == f"sqlite:///{temp_config_path.parent / 'ledger.db'}"

        config.set("database.url", "sqlite://")
        assert config.database_url() == "sqlite://"

    def test_settings_defaults(self, temp_config_path: Path) -> None:
        """Test configured defaults for new user settings."""
        config = ConfigManager(temp_config_path)
        config.set("defaults.timezone", "Asia/Tokyo")

        assert config.settings_defaults() == {
            "timezone": "Asia/Tokyo",
            "working_hours": 8,
            "share_duration_days": 7,
        }

    def test_unknown_default_timezone_is_rejected(self, temp_config_path: Path) -> None:
        """Test a default timezone must be a known IANA name."""
        config = ConfigManager(temp_config_path)

        with pytest.raises(ValueError, match="unknown timezone"):
            config.set("defaults.timezone", "Europe/Berln")

        assert config.get("defaults.timezone") == "UTC"

    def test_config_file_with_unknown_timezone(self, temp_config_path: Path) -> None:
        """Test a file with an unknown timezone is backed up and replaced."""
        with open(temp_config_path, "w") as f:
            yaml.dump({"version": "1.0", "defaults": {"timezone": "Mars/Base"}}, f)

        with pytest.raises(ValueError, match="unknown timezone"):
            ConfigManager(temp_config_path)

        assert temp_config_path.with_suffix(".yml.backup").exists()
        assert ConfigManager(temp_config_path).settings_defaults()["timezone"] == "UTC"

    def test_ensure_api_secret_key(self, temp_config_path: Path) -> None:
        """Test a secret key is generated once and kept."""
        config = ConfigManager(temp_config_path)

        key = config.ensure_api_secret_key()

        assert key
        assert config.ensure_api_secret_key() == key
        assert ConfigManager(temp_config_path).get("api.authentication.secret_key") == key


class TestSetupLogging:
    """Test setup_logging."""

    @pytest.fixture(autouse=True)
    def restore_logger(self):
        """Remove handlers installed by a test."""
        logger = logging.getLogger("time_ledger")
        level = logger.level
        yield
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(level)

    def test_level_from_config(self, temp_config_path: Path) -> None:
        """Test the configured level is applied."""
        config = ConfigManager(temp_config_path)
        config.set("logging.level", "DEBUG")

        logger = setup_logging(config)

        assert logger.name == "time_ledger"
        assert logger.level == logging.DEBUG

    def test_repeated_setup_does_not_stack_handlers(self) -> None:
        """Test calling setup twice keeps one set of handlers."""
        setup_logging()
        logger = setup_logging()

        assert len(logger.handlers) == 1

    def test_log_file(self, temp_config_path: Path) -> None:
        """Test messages are written to the configured file."""
        log_file = temp_config_path.parent / "logs" / "ledger.log"
        config = ConfigManager(temp_config_path)
        config.set("logging.file", str(log_file))
        config.set("logging.level", "INFO")

        logger = setup_logging(config)
        logging.getLogger("time_ledger.core.tracker").info("hello ledger")
        for handler in logger.handlers:
            handler.flush()

        assert "hello ledger" in log_file.read_text()
