"""Configuration management for vcs-runner."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DIALECTS = {"git": "git", "hg": "hg", "mercurial": "hg"}


class VcsRunnerSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    git_path: str = Field(default="git", validation_alias="VCS_GIT_PATH")
    hg_path: str = Field(default="hg", validation_alias="VCS_HG_PATH")
    vcs_type: str | None = Field(default=None, validation_alias="VCS_TYPE")
    repository_path: Path = Field(default=Path("."), validation_alias="VCS_REPOSITORY_PATH")
    max_processes: int | None = Field(default=None, validation_alias="VCS_MAX_PROCESSES")
    process_timeout: float | None = Field(default=None, validation_alias="VCS_PROCESS_TIMEOUT")
    poll_interval: float = Field(default=0.05, validation_alias="VCS_POLL_INTERVAL")
    text_editor: str | None = Field(default=None, validation_alias="VCS_TEXT_EDITOR")
    terminal: str | None = Field(default=None, validation_alias="VCS_TERMINAL")
    log_level: str = Field(default="INFO", validation_alias="VCS_LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError("VCS_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG")
        return normalized

    @field_validator("vcs_type", mode="before")
    @classmethod
    def _normalize_vcs_type(cls, value):
        if value is None or str(value).strip() == "" or str(value).strip().lower() == "auto":
            return None
        normalized = str(value).strip().lower()
        if normalized not in _DIALECTS:
            raise ValueError("VCS_TYPE must be one of git, hg, auto")
        return _DIALECTS[normalized]

    @field_validator("max_processes", "process_timeout", "text_editor", "terminal", mode="before")
    @classmethod
    def _blank_as_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("max_processes")
    @classmethod
    def _validate_max_processes(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("VCS_MAX_PROCESSES must be >= 1")
        return value

    @field_validator("process_timeout", "poll_interval")
    @classmethod
    def _validate_positive(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError("timeouts and poll intervals must be > 0")
        return value


@lru_cache(maxsize=1)
def get_settings() -> VcsRunnerSettings:
    """Return cached settings instance."""

    settings = VcsRunnerSettings()
    settings.repository_path = settings.repository_path.expanduser().resolve()
    return settings


__all__ = ["VcsRunnerSettings", "get_settings"]
