"""
Centralized settings, fixture paths and provider credentials for DockMaster.
"""
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file (src/dockmaster/config)
    return Path(__file__).resolve().parent.parent.parent.parent


def get_data_dir() -> Path:
    """Directory holding the packaged reference fixtures."""
    return Path(__file__).resolve().parent.parent / 'data'


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_list(name: str, default: list[str]) -> list[str]:
    value = os.environ.get(name)
    if not value:
        return list(default)
    return [part.strip() for part in value.split(',') if part.strip()]


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path
    data_dir: Path

    # Reference fixtures
    customers_file: Path
    vessels_file: Path
    diagnostics_file: Path
    scenarios_file: Path
    outreach_file: Path
    marina_file: Path

    # Provider credentials (optional until a request needs them)
    openai_api_key: Optional[str] = None
    openai_model: str = 'gpt-5-mini'
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = 'claude-sonnet-4-5'
    anthropic_max_tokens: int = 2048

    # Upstream error bodies are cut to this many characters in a 502
    error_detail_limit: int = 500

    # Logging / HTTP
    log_level: str = 'INFO'
    log_json: bool = True
    cors_origins: list[str] = field(default_factory=lambda: ['*'])

    @classmethod
    def load(cls, project_root: Optional[Path] = None, data_dir: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and the environment."""
        root = project_root or get_project_root()
        data = data_dir or get_data_dir()

        return cls(
            project_root=root,
            data_dir=data,
            customers_file=data / 'customers.json',
            vessels_file=data / 'vessels.csv',
            diagnostics_file=data / 'diagnostics.json',
            scenarios_file=data / 'scenarios.json',
            outreach_file=data / 'outreach.json',
            marina_file=data / 'marina.json',
            openai_api_key=os.environ.get('OPENAI_API_KEY') or None,
            openai_model=os.environ.get('OPENAI_MODEL', 'gpt-5-mini'),
            anthropic_api_key=os.environ.get('ANTHROPIC_API_KEY') or None,
            anthropic_model=os.environ.get('ANTHROPIC_MODEL', 'claude-sonnet-4-5'),
            anthropic_max_tokens=int(os.environ.get('ANTHROPIC_MAX_TOKENS', '2048')),
            log_level=os.environ.get('DOCKMASTER_LOG_LEVEL', 'INFO').upper(),
            log_json=_env_bool('DOCKMASTER_LOG_JSON', True),
            cors_origins=_env_list('DOCKMASTER_CORS_ORIGINS', ['*']),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
