"""Settings management for stickyforms with environment variable override support."""

import json
import logging
import os
import stat
import tempfile
import threading
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

VALID_ENVIRONMENTS = ("development", "staging", "production")


class N8nSettings(BaseModel):
    """Where the workflow service and the execution backend live."""

    base_url: str = Field(default="http://localhost:5678", description="n8n instance URL")
    api_key: Optional[str] = Field(default=None, description="n8n public API key (X-N8N-API-KEY)")
    backend_url: str = Field(
        default="http://localhost:3001",
        description="Backend that relays /api/n8n/workflows/:id/execute to n8n",
    )
    timeout: float = Field(default=30.0, description="HTTP timeout in seconds")

    @field_validator("base_url", "backend_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an http(s) URL and drop the trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid URL: {v}. Must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Invalid timeout: {v}. Must be greater than 0")
        return v


class FormSettings(BaseModel):
    """Submission payload configuration."""

    source_tag: str = Field(default="dynamic-form", description="Value of _system.source in payloads")
    environment: str = Field(default="development")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is known."""
        if v not in VALID_ENVIRONMENTS:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {', '.join(VALID_ENVIRONMENTS)}")
        return v


class CacheSettings(BaseModel):
    """Metadata cache configuration."""

    max_entries: int = Field(default=256, description="Workflows whose parsed metadata is kept in memory")

    @field_validator("max_entries")
    @classmethod
    def validate_max_entries(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Invalid max_entries: {v}. Must be at least 1")
        return v


class StickyFormsSettings(BaseModel):
    """Main settings configuration."""

    version: str = Field(default="1.0.0")
    n8n: N8nSettings = Field(default_factory=N8nSettings)
    forms: FormSettings = Field(default_factory=FormSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)


class SettingsManager:
    """Manages stickyforms settings with environment variable override support."""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = settings_path or Path.home() / ".stickyforms" / "settings.json"
        self._settings: Optional[StickyFormsSettings] = None
        # Lock for thread-safe load-modify-save operations
        self._lock = threading.Lock()

    def load(self) -> StickyFormsSettings:
        """Load settings with environment variable overrides.

        Overrides are applied to a copy, so they are re-evaluated on every call
        and never written back by save().
        """
        settings = self._load_base().model_copy(deep=True)
        self._apply_env_overrides(settings)
        return settings

    def _load_base(self) -> StickyFormsSettings:
        if self._settings is None:
            self._settings = self._load_from_file()
            self._validate_permissions(self._settings)
        return self._settings

    def reload(self) -> StickyFormsSettings:
        """Force reload settings from file."""
        self._settings = None
        return self.load()

    def _load_from_file(self) -> StickyFormsSettings:
        """Load settings from file or return defaults."""
        if not self.settings_path.exists():
            return StickyFormsSettings()
        try:
            with open(self.settings_path, encoding="utf-8") as f:
                data = json.load(f)
            return StickyFormsSettings(**data)
        except Exception as e:
            # If file is corrupted, use defaults
            logger.warning(f"Failed to load settings from {self.settings_path} ({e}); using defaults")
            return StickyFormsSettings()

    def _apply_env_overrides(self, settings: StickyFormsSettings) -> None:
        """Apply environment variable overrides.

        Invalid values are logged and ignored so a bad variable never prevents
        the settings from loading.
        """
        overrides = {
            "STICKYFORMS_N8N_URL": (settings.n8n, "base_url"),
            "STICKYFORMS_BACKEND_URL": (settings.n8n, "backend_url"),
            "STICKYFORMS_N8N_API_KEY": (settings.n8n, "api_key"),
            "STICKYFORMS_ENVIRONMENT": (settings.forms, "environment"),
        }
        for env_name, (section, field_name) in overrides.items():
            env_value = os.getenv(env_name)
            if env_value is None:
                continue
            try:
                validated = type(section).model_validate({**section.model_dump(), field_name: env_value})
            except ValueError as e:
                logger.warning(f"Invalid {env_name}: {env_value} ({e}). Keeping {getattr(section, field_name)!r}")
                continue
            setattr(section, field_name, getattr(validated, field_name))

    def save(self, settings: Optional[StickyFormsSettings] = None) -> None:
        """Save settings to file with atomic operations and secure permissions."""
        if settings is None:
            settings = self._load_base()

        self.settings_path.parent.mkdir(parents=True, exist_ok=True)

        # Atomic write pattern: write to temp file, then replace
        temp_fd, temp_path = tempfile.mkstemp(dir=self.settings_path.parent, prefix=".settings.", suffix=".tmp")

        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                json.dump(settings.model_dump(), f, indent=2)

            os.replace(temp_path, self.settings_path)

            # Owner read/write only: the file may hold the n8n API key
            os.chmod(self.settings_path, stat.S_IRUSR | stat.S_IWUSR)  # 0o600

            self._settings = None

        except Exception:
            Path(temp_path).unlink(missing_ok=True)
            raise

    def set_value(self, dotted_key: str, value: str) -> None:
        """Set a single setting such as ``n8n.base_url`` and persist it.

        Raises:
            SettingsError: If the key is unknown or the value is invalid
        """
        from stickyforms.core.exceptions import SettingsError

        section_name, _, field_name = dotted_key.partition(".")
        with self._lock:
            settings = self._load_base()
            section = getattr(settings, section_name, None)
            if not isinstance(section, BaseModel) or field_name not in type(section).model_fields:
                raise SettingsError(f"Unknown setting: {dotted_key}")
            try:
                validated = type(section).model_validate({**section.model_dump(), field_name: value})
            except ValueError as e:
                raise SettingsError(f"Invalid value for {dotted_key}: {e}") from e
            setattr(section, field_name, getattr(validated, field_name))
            self.save(settings)

    @staticmethod
    def mask_value(value: Optional[str]) -> Optional[str]:
        """Mask a secret for display (show first 3 chars + ***)."""
        if value is None:
            return None
        if len(value) <= 3:
            return "***"
        return value[:3] + "***"

    def _validate_permissions(self, settings: StickyFormsSettings) -> None:
        """Warn when a settings file holding an API key is group/world readable."""
        if not self.settings_path.exists() or not settings.n8n.api_key:
            return

        try:
            mode = stat.S_IMODE(os.stat(self.settings_path).st_mode)
        except OSError as e:
            logger.debug(f"Permission validation failed: {e}")
            return

        if mode & (stat.S_IROTH | stat.S_IRGRP):
            logger.warning(
                f"Settings file {self.settings_path} contains an API key "
                f"but has insecure permissions {oct(mode)}. "
                f"Run: chmod 600 {self.settings_path}"
            )
