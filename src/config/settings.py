# src/config/settings.py - v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for the harness storage root, the report tool
invocation and logging. Every field can be set through an environment
variable prefixed with ``SOSHARNESS_`` (e.g. ``SOSHARNESS_STORAGE_ROOT``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sosharness.storage import layout


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Harness settings loaded from .env file and environment."""

    model_config = SettingsConfigDict(
        env_prefix="SOSHARNESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Storage ===
    storage_root: Path = Path("~/.sosharness")
    backup_root: Path | None = None

    # === Namespaces ===
    backup_namespace: str = "sosutils"
    default_namespace: str = "default"

    # === Report tool ===
    report_command: str = "sosreport"
    report_name_prefix: str = "sosreport"
    report_marker: str = "Your sosreport has been generated and saved in:"
    checksum_suffixes: str = ".md5,.sha256"
    # blank line to continue, then name and case id, then confirm
    interactive_input: str = "\ntester\n123\n\n"
    stream_output: bool = True

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("backup_namespace", "default_namespace")
    @classmethod
    def validate_namespace(cls, v: str) -> str:  # noqa: N805
        """Namespaces end up as path components and DB fields."""
        if not v or any(ch.isspace() for ch in v):
            raise ValueError("namespace must be non-empty and contain no whitespace")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if not self.report_command.strip():
            errors.append("REPORT_COMMAND must not be empty")

        if not self.report_name_prefix.strip():
            errors.append("REPORT_NAME_PREFIX must not be empty")

        if "/" in self.report_name_prefix:
            errors.append("REPORT_NAME_PREFIX must be a bare file name prefix")

        if not self.report_marker.strip():
            errors.append("REPORT_MARKER must not be empty")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def checksum_suffixes_list(self) -> list[str]:
        """Parse comma-separated checksum side file suffixes."""
        return [s.strip() for s in self.checksum_suffixes.split(",") if s.strip()]

    @property
    def resolved_root(self) -> Path:
        """Absolute harness root directory."""
        return self.storage_root.expanduser().resolve()

    @property
    def resolved_backup_root(self) -> Path:
        """Absolute backup directory (defaults to <root>/backup)."""
        if self.backup_root is not None:
            return self.backup_root.expanduser().resolve()
        return layout.backup_dir(self.resolved_root)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-run config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
