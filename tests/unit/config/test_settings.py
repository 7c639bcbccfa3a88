# tests/unit/config/test_settings.py - v2
"""Tests for config/settings.py - typed Settings and validation rules."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from sosharness.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_default_tool(self):
        s = Settings(_env_file=None)
        assert s.report_command == "sosreport"
        assert s.report_name_prefix == "sosreport"

    def test_default_namespaces(self):
        s = Settings(_env_file=None)
        assert s.default_namespace == "default"
        assert s.backup_namespace == "sosutils"

    def test_default_interactive_input(self):
        s = Settings(_env_file=None)
        assert s.interactive_input == "\ntester\n123\n\n"

    def test_checksum_suffixes_list(self):
        s = Settings(_env_file=None, checksum_suffixes=" .md5 , .sha256,")
        assert s.checksum_suffixes_list == [".md5", ".sha256"]


class TestSettingsPaths:
    def test_backup_root_defaults_under_root(self, tmp_path: Path):
        s = Settings(_env_file=None, storage_root=tmp_path)
        assert s.resolved_backup_root == tmp_path.resolve() / "backup"

    def test_backup_root_override(self, tmp_path: Path):
        s = Settings(_env_file=None, storage_root=tmp_path, backup_root=tmp_path / "bk")
        assert s.resolved_backup_root == (tmp_path / "bk").resolve()


class TestSettingsValidation:
    def test_namespace_with_whitespace(self):
        with pytest.raises(ValidationError, match="whitespace"):
            Settings(_env_file=None, default_namespace="my ns")

    def test_empty_backup_namespace(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, backup_namespace="")

    def test_empty_report_command(self):
        with pytest.raises(ConfigurationError, match="REPORT_COMMAND"):
            Settings(_env_file=None, report_command="  ")

    def test_prefix_with_slash(self):
        with pytest.raises(ConfigurationError, match="REPORT_NAME_PREFIX"):
            Settings(_env_file=None, report_name_prefix="var/sosreport")

    def test_multiple_errors_joined(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(_env_file=None, report_command="", report_marker="")
        assert "REPORT_COMMAND" in str(exc_info.value)
        assert "REPORT_MARKER" in str(exc_info.value)


class TestLoadSettings:
    def test_overrides(self, tmp_path: Path):
        s = load_settings(_env_file=None, storage_root=tmp_path, log_level="DEBUG")
        assert s.storage_root == tmp_path
        assert s.log_level == "DEBUG"

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SOSHARNESS_REPORT_COMMAND", "/usr/sbin/sos report")
        s = load_settings(_env_file=None)
        assert s.report_command == "/usr/sbin/sos report"

    def test_env_file(self, tmp_path: Path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "SOSHARNESS_BACKUP_NAMESPACE=mytests\n"
            "SOSHARNESS_LOG_FORMAT=json\n"
        )
        s = Settings(_env_file=str(env_file))
        assert s.backup_namespace == "mytests"
        assert s.log_format == "json"
