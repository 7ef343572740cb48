"""
Unit tests for settings loading (ledger_kernel/config.py).

Verifies:
- Defaults, YAML files and environment overrides resolve in order
- Unknown keys and wrong value types are rejected
"""

import pytest
import yaml

from ledger_kernel.config import (
    ENV_CONFIG_PATH,
    ENV_DATABASE_URL,
    ENV_LOG_LEVEL,
    LedgerSettings,
    load_settings,
    load_yaml_file,
    parse_settings,
)


def _write_yaml(path, data) -> str:
    path.write_text(yaml.safe_dump(data))
    return str(path)


class TestLedgerSettings:
    """Dataclass defaults and validation."""

    def test_defaults(self):
        settings = LedgerSettings()
        assert settings.database_url == "sqlite://"
        assert settings.create_tables is True
        assert settings.log_level == "INFO"

    def test_invalid_log_level(self):
        with pytest.raises(ValueError, match="log_level"):
            LedgerSettings(log_level="LOUD")

    def test_invalid_pool_size(self):
        with pytest.raises(ValueError, match="pool_size"):
            LedgerSettings(pool_size=0)


class TestParseSettings:
    """Mapping -> LedgerSettings."""

    def test_flat_mapping(self):
        settings = parse_settings({"database_url": "sqlite:///ledger.db", "echo": True})
        assert settings.database_url == "sqlite:///ledger.db"
        assert settings.echo is True

    def test_ledger_wrapper_key(self):
        settings = parse_settings({"ledger": {"pool_size": 5}})
        assert settings.pool_size == 5

    def test_log_level_upper_cased(self):
        assert parse_settings({"log_level": "debug"}).log_level == "DEBUG"

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="Unknown ledger settings: colour"):
            parse_settings({"colour": "blue"})

    def test_wrong_type_rejected(self):
        with pytest.raises(ValueError, match="pool_size must be int"):
            parse_settings({"pool_size": "20"})

    def test_bool_is_not_an_integer(self):
        with pytest.raises(ValueError, match="max_overflow must be an integer"):
            parse_settings({"max_overflow": True})


class TestLoadSettings:
    """File and environment resolution."""

    def test_no_file_no_env_gives_defaults(self):
        assert load_settings(environ={}) == LedgerSettings()

    def test_yaml_file(self, tmp_path):
        path = _write_yaml(
            tmp_path / "ledger.yaml",
            {"ledger": {"database_url": "sqlite:///a.db", "create_tables": False}},
        )
        settings = load_settings(path, environ={})
        assert settings.database_url == "sqlite:///a.db"
        assert settings.create_tables is False

    def test_config_path_from_environment(self, tmp_path):
        path = _write_yaml(tmp_path / "ledger.yaml", {"log_level": "WARNING"})
        settings = load_settings(environ={ENV_CONFIG_PATH: path})
        assert settings.log_level == "WARNING"

    def test_environment_overrides_file(self, tmp_path):
        path = _write_yaml(
            tmp_path / "ledger.yaml",
            {"database_url": "sqlite:///a.db", "log_level": "ERROR"},
        )
        settings = load_settings(
            path,
            environ={ENV_DATABASE_URL: "sqlite:///b.db", ENV_LOG_LEVEL: "debug"},
        )
        assert settings.database_url == "sqlite:///b.db"
        assert settings.log_level == "DEBUG"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(path, environ={}) == LedgerSettings()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml", environ={})

    def test_non_mapping_document_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="expected a mapping"):
            load_yaml_file(path)
