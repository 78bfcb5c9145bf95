"""
Tests for the configuration system.
"""

import pytest
import yaml


class TestConfigValue:
    """Tests for single configuration values."""

    def test_default(self):
        """Unset values return their default."""
        from ttlmemo.config import get_config

        assert get_config().signature.threshold.get() == 100
        assert get_config().signature.algorithm.get() == "sha1"
        assert get_config().store.single_flight.get() is True

    def test_env_overrides(self, monkeypatch):
        """TTLMEMO_* environment variables win and are coerced."""
        from ttlmemo.config import get_config

        monkeypatch.setenv("TTLMEMO_SIGNATURE_THRESHOLD", "64")
        monkeypatch.setenv("TTLMEMO_SINGLE_FLIGHT", "no")

        assert get_config().signature.threshold.get() == 64
        assert get_config().store.single_flight.get() is False

    def test_validator_rejects(self):
        """Invalid runtime values raise ConfigValidationError."""
        from ttlmemo.config import ConfigValidationError, get_config_manager

        with pytest.raises(ConfigValidationError):
            get_config_manager().set("signature.algorithm", "rot13")
        with pytest.raises(ConfigValidationError):
            get_config_manager().set("observability.log_format", "xml")

    def test_bad_env_value(self, monkeypatch):
        """An unparseable or unaccepted environment value names its variable."""
        from ttlmemo.config import ConfigValidationError, get_config

        monkeypatch.setenv("TTLMEMO_SIGNATURE_THRESHOLD", "many")
        monkeypatch.setenv("TTLMEMO_LOG_LEVEL", "loud")
        monkeypatch.setenv("TTLMEMO_SINGLE_FLIGHT", "maybe")

        with pytest.raises(ConfigValidationError, match="TTLMEMO_SIGNATURE_THRESHOLD"):
            get_config().signature.threshold.get()
        with pytest.raises(ConfigValidationError, match="TTLMEMO_LOG_LEVEL"):
            get_config().observability.log_level.get()
        with pytest.raises(ConfigValidationError, match="TTLMEMO_SINGLE_FLIGHT"):
            get_config().store.single_flight.get()

    def test_false_override_sticks(self):
        """A runtime False is not mistaken for 'unset'."""
        from ttlmemo.config import get_config_manager

        get_config_manager().set("store.single_flight", False)
        assert get_config_manager().get("store.single_flight") is False


class TestConfigManager:
    """Tests for the configuration manager."""

    def test_singleton(self):
        """ConfigManager is a process-wide singleton."""
        from ttlmemo.config import ConfigManager, get_config_manager

        assert ConfigManager() is get_config_manager()

    def test_load_yaml(self, tmp_path):
        """Values load from a YAML file."""
        from ttlmemo.config import get_config_manager

        path = tmp_path / "ttlmemo.yaml"
        path.write_text(yaml.dump({
            "signature": {"threshold": 32, "algorithm": "sha256"},
            "observability": {"log_level": "debug"},
        }))

        manager = get_config_manager()
        manager.load_from_file(path)

        assert manager.get("signature.threshold") == 32
        assert manager.get("signature.algorithm") == "sha256"
        assert manager.get("observability.log_level") == "debug"

    def test_missing_file(self, tmp_path):
        """Loading a missing file raises ConfigError."""
        from ttlmemo.config import ConfigError, get_config_manager

        with pytest.raises(ConfigError):
            get_config_manager().load_from_file(tmp_path / "absent.yaml")

    def test_unknown_key(self, tmp_path):
        """Unknown keys in a file are reported with their path."""
        from ttlmemo.config import ConfigError, get_config_manager

        path = tmp_path / "bad.yaml"
        path.write_text("signature:\n  thresold: 5\n")

        with pytest.raises(ConfigError, match="signature.thresold"):
            get_config_manager().load_from_file(path)

    def test_non_mapping_root(self, tmp_path):
        """A YAML list at the root is rejected."""
        from ttlmemo.config import ConfigError, get_config_manager

        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ConfigError):
            get_config_manager().load_from_file(path)

    def test_load_defaults(self, tmp_path, monkeypatch):
        """load_defaults picks up ./ttlmemo.yaml."""
        from ttlmemo.config import get_config_manager

        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        (tmp_path / "ttlmemo.yaml").write_text("store:\n  single_flight: false\n")

        loaded = get_config_manager().load_defaults()
        assert [p.name for p in loaded] == ["ttlmemo.yaml"]
        assert get_config_manager().get("store.single_flight") is False


    def test_empty_file(self, tmp_path):
        """An empty file changes nothing."""
        from ttlmemo.config import get_config_manager

        path = tmp_path / "empty.yaml"
        path.write_text("")

        get_config_manager().load_from_file(path)
        assert get_config_manager().get("signature.threshold") == 100

    def test_section_given_a_scalar(self, tmp_path):
        """A scalar where a section belongs is rejected."""
        from ttlmemo.config import ConfigError, get_config_manager

        path = tmp_path / "flat.yaml"
        path.write_text("signature: 5\n")

        with pytest.raises(ConfigError, match="signature"):
            get_config_manager().load_from_file(path)

    def test_file_value_checked(self, tmp_path):
        """Values from a file go through the same checks as set()."""
        from ttlmemo.config import ConfigValidationError, get_config_manager

        path = tmp_path / "bad.yaml"
        path.write_text("signature:\n  threshold: -3\n")

        with pytest.raises(ConfigValidationError):
            get_config_manager().load_from_file(path)

    def test_env_beats_file(self, tmp_path, monkeypatch):
        """TTLMEMO_* variables win over loaded files."""
        from ttlmemo.config import get_config_manager

        path = tmp_path / "ttlmemo.yaml"
        path.write_text("observability:\n  log_format: text\n")
        get_config_manager().load_from_file(path)
        monkeypatch.setenv("TTLMEMO_LOG_FORMAT", "JSON")

        assert get_config_manager().get("observability.log_format") == "json"

    def test_invalid_path(self):
        """Unknown dotted paths raise ConfigError."""
        from ttlmemo.config import ConfigError, get_config_manager

        with pytest.raises(ConfigError):
            get_config_manager().get("signature.nope")
        with pytest.raises(ConfigError):
            get_config_manager().set("signature", 1)

    def test_reset(self):
        """reset drops runtime overrides."""
        from ttlmemo.config import get_config_manager

        manager = get_config_manager()
        manager.set("signature.salt", "node-7")
        manager.reset()

        assert manager.get("signature.salt") == ""
