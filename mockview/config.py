"""
Configuration management using Pydantic Settings.

Loads configuration from:
1. ~/.config/mockview/config.yaml (user config)
2. ./mockview.yaml (project-local config)
3. Environment variables (override)
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExtractionSettings(BaseModel):
    """Resume upload validation configuration."""

    max_file_size: int = Field(default=10 * 1024 * 1024, gt=0, description="Maximum accepted upload size (bytes)")
    accepted_media_types: List[str] = Field(
        default_factory=lambda: ["application/pdf"],
        description="Media types accepted for upload"
    )
    accepted_extension: str = Field(default=".pdf", description="Required filename extension")


class LocalWorkerSettings(BaseModel):
    """Local pypdf strategy configuration."""

    enabled: bool = Field(default=True, description="Register the local strategy")
    priority: int = Field(default=100, description="Strategy priority (higher runs first)")
    worker_path: Optional[Path] = Field(
        default=None,
        description="Optional bundled asset that must exist for the local strategy to run"
    )


class RemoteWorkerSettings(BaseModel):
    """Remote Tika strategy configuration."""

    enabled: bool = Field(default=True, description="Register the remote strategy")
    priority: int = Field(default=80, description="Strategy priority (higher runs first)")
    base_url: str = Field(default="http://localhost:9998", description="Apache Tika server URL")
    timeout: float = Field(default=30.0, gt=0, description="Overall deadline per attempt (seconds)")
    probe_timeout: float = Field(default=5.0, gt=0, description="Availability probe deadline (seconds)")
    max_retries: int = Field(default=2, ge=1, description="Attempts before giving up")
    backoff_base: float = Field(default=1.0, ge=0, description="First retry delay (seconds)")
    backoff_cap: float = Field(default=5.0, ge=0, description="Maximum retry delay (seconds)")


class LLMSettings(BaseModel):
    """LLM configuration for the interviewer (OpenAI-compatible API)."""

    base_url: str = Field(default="https://api.openai.com/v1", description="Chat completions API base URL")
    model: str = Field(default="gpt-4o-mini", description="Model used for questions and feedback")
    api_key: Optional[str] = Field(default=None, description="API key (falls back to OPENAI_API_KEY)")
    max_retries: int = Field(default=3, ge=1, description="Maximum retry attempts for LLM calls")
    timeout: int = Field(default=120, description="Timeout in seconds for LLM calls")


class MockviewSettings(BaseSettings):
    """Main Mockview configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MOCKVIEW_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    index_db: Path = Field(
        default_factory=lambda: Path.home() / ".local/share/mockview/sessions.db",
        description="SQLite database path for interview sessions"
    )

    # Subsystem settings
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    local_worker: LocalWorkerSettings = Field(default_factory=LocalWorkerSettings)
    remote_worker: RemoteWorkerSettings = Field(default_factory=RemoteWorkerSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file path")

    def ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        self.index_db.parent.mkdir(parents=True, exist_ok=True)

    @classmethod
    def load_from_yaml(cls, yaml_path: Path) -> "MockviewSettings":
        """Load configuration from YAML file."""
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            config_dict = yaml.safe_load(f) or {}

        return cls(**config_dict)

    @classmethod
    def load(cls) -> "MockviewSettings":
        """
        Load configuration with precedence:
        1. Project-local ./mockview.yaml
        2. User config ~/.config/mockview/config.yaml
        3. Environment variables
        4. Defaults
        """
        config = cls()

        user_config = Path.home() / ".config/mockview/config.yaml"
        if user_config.exists():
            config = cls.load_from_yaml(user_config)

        local_config = Path.cwd() / "mockview.yaml"
        if local_config.exists():
            with open(local_config) as f:
                local_dict = yaml.safe_load(f) or {}
            # Shallow merge: a local section replaces the whole user section
            config = cls(**{**config.model_dump(), **local_dict})

        return config

    def save_to_yaml(self, yaml_path: Path) -> None:
        """Save current configuration to YAML file."""
        yaml_path.parent.mkdir(parents=True, exist_ok=True)
        with open(yaml_path, "w") as f:
            yaml.dump(
                self.model_dump(mode="json", exclude_none=True),
                f,
                default_flow_style=False,
                sort_keys=False,
            )


def get_config() -> MockviewSettings:
    """Convenience function to get current configuration."""
    return MockviewSettings.load()
