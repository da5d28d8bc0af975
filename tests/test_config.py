# extsync Config Tests
# Tests for configuration loading and validation

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from extsync.config.defaults import DEFAULT_CONFIG, generate_default_config, get_default_config
from extsync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    save_config,
    validate_config_file,
)
from extsync.config.schema import EditorConfig, ExtsyncConfig, RemoteBackend, SyncConfig


class TestExtsyncConfig:
    """Tests for ExtsyncConfig schema."""

    def test_minimal_config(self, temp_dir: Path):
        """Only the remote path is required."""
        config = ExtsyncConfig(remote={"path": str(temp_dir)})

        assert config.remote.path == str(temp_dir)
        assert config.remote.backend == RemoteBackend.DIRECTORY
        assert config.sync.poll_interval == 60
        assert config.editor.name == "code"

    def test_full_config(self, sample_config: dict):
        config = ExtsyncConfig.model_validate(sample_config)

        assert config.sync.startup_delay == 0
        assert config.output.log_file is None
        assert config.instance.registry_file.endswith("instances.yaml")

    def test_remote_required(self):
        with pytest.raises(ValidationError):
            ExtsyncConfig()

    def test_paths_expanded(self, temp_home: Path):
        config = ExtsyncConfig(remote={"path": "~/remote"}, state_file="~/state.yaml")

        assert config.remote.path == str(temp_home / "remote")
        assert config.state_file == str(temp_home / "state.yaml")

    def test_backend_enum(self):
        assert RemoteBackend.DIRECTORY.value == "directory"
        assert RemoteBackend.GIT.value == "git"

    def test_unknown_backend(self, temp_dir: Path):
        with pytest.raises(ValidationError):
            ExtsyncConfig(remote={"path": str(temp_dir), "backend": "s3"})


class TestSyncConfig:
    """Tests for SyncConfig schema."""

    def test_defaults(self):
        config = SyncConfig()
        assert config.poll_interval == 60
        assert config.startup_delay == 10
        assert config.collaborator_timeout == 120
        assert config.notify is True

    def test_poll_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            SyncConfig(poll_interval=0)

    def test_timeout_zero_allowed(self):
        assert SyncConfig(collaborator_timeout=0).collaborator_timeout == 0


class TestEditorConfig:
    """Tests for EditorConfig schema."""

    def test_configured_settings_dir(self, temp_dir: Path):
        config = EditorConfig(settings_dir=str(temp_dir))
        assert config.get_settings_dir() == temp_dir

    def test_platform_default_settings_dir(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr("extsync.config.schema.get_default_settings_dir", lambda name: temp_dir / name)
        config = EditorConfig(name="codium")
        assert config.get_settings_dir() == temp_dir / "codium"

    def test_default_commands(self):
        config = EditorConfig()
        assert config.list_command == ["{editor}", "--list-extensions"]
        assert "{id}" in config.install_command
        assert "{id}" in config.uninstall_command


class TestConfigLoader:
    """Tests for configuration loading."""

    def test_load_config(self, config_file: Path, sample_config: dict):
        config = load_config(config_file)
        assert config.remote.path == sample_config["remote"]["path"]

    def test_load_missing(self, temp_dir: Path):
        with pytest.raises(FileNotFoundError, match="extsync config init"):
            load_config(temp_dir / "missing.yaml")

    def test_partial_sections_merged_with_defaults(self, temp_dir: Path):
        path = temp_dir / "config.yaml"
        path.write_text(
            yaml.dump({"remote": {"path": str(temp_dir)}, "sync": {"poll_interval": 5}}),
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.sync.poll_interval == 5
        assert config.sync.startup_delay == 10
        assert config.editor.settings_files == DEFAULT_CONFIG["editor"]["settings_files"]

    def test_invalid_values(self, temp_dir: Path):
        path = temp_dir / "config.yaml"
        path.write_text(yaml.dump({"remote": {"path": "x"}, "sync": {"poll_interval": -1}}), encoding="utf-8")

        with pytest.raises(ValidationError):
            load_config(path)

    def test_save_and_reload(self, temp_dir: Path, sample_config: dict):
        sample_config["output"]["log_file"] = str(temp_dir / "sync.log")
        config = ExtsyncConfig.model_validate(sample_config)
        path = save_config(config, temp_dir / "saved" / "config.yaml")

        assert load_config(path) == config

    def test_env_override(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("EXTSYNC_CONFIG", str(temp_dir / "custom.yaml"))
        assert get_config_path() == temp_dir / "custom.yaml"

    def test_default_path(self, temp_home: Path):
        assert get_config_path() == temp_home / ".config" / "extsync" / "config.yaml"


class TestEnsureConfigExists:
    """Tests for ensure_config_exists."""

    def test_creates_default(self, temp_dir: Path):
        path = temp_dir / "new" / "config.yaml"

        result, created = ensure_config_exists(path)

        assert created is True
        assert result == path
        assert load_config(path).remote.backend == RemoteBackend.DIRECTORY

    def test_keeps_existing(self, config_file: Path):
        before = config_file.read_text(encoding="utf-8")

        _, created = ensure_config_exists(config_file)

        assert created is False
        assert config_file.read_text(encoding="utf-8") == before


class TestValidateConfigFile:
    """Tests for validate_config_file."""

    def test_valid(self, config_file: Path):
        assert validate_config_file(config_file) == (True, [])

    def test_missing_file(self, temp_dir: Path):
        valid, errors = validate_config_file(temp_dir / "missing.yaml")
        assert valid is False
        assert "not found" in errors[0]

    def test_empty_file(self, temp_dir: Path):
        path = temp_dir / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert validate_config_file(path) == (False, ["Configuration file is empty"])

    def test_invalid_yaml(self, temp_dir: Path):
        path = temp_dir / "config.yaml"
        path.write_text("remote: [unclosed\n", encoding="utf-8")

        valid, errors = validate_config_file(path)

        assert valid is False
        assert errors[0].startswith("Invalid YAML syntax")

    def test_missing_remote_section(self, temp_dir: Path):
        path = temp_dir / "config.yaml"
        path.write_text(yaml.dump({"sync": {"poll_interval": 30}}), encoding="utf-8")

        valid, errors = validate_config_file(path)

        assert valid is False
        assert "Missing 'remote' section" in errors

    def test_field_errors_located(self, temp_dir: Path):
        path = temp_dir / "config.yaml"
        path.write_text(yaml.dump({"remote": {"path": "x"}, "sync": {"poll_interval": 0}}), encoding="utf-8")

        valid, errors = validate_config_file(path)

        assert valid is False
        assert any(error.startswith("sync -> poll_interval") for error in errors)


class TestDefaults:
    """Tests for default configuration."""

    def test_get_default_config_is_copy(self):
        config = get_default_config()
        config["sync"]["poll_interval"] = 1
        assert DEFAULT_CONFIG["sync"]["poll_interval"] == 60

    def test_generated_yaml_is_valid(self):
        content = generate_default_config()
        assert content.startswith("# extsync")
        data = yaml.safe_load(content)
        assert data == DEFAULT_CONFIG
        ExtsyncConfig.model_validate(data)
