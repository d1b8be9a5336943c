import os
import json
from pathlib import Path
from typing import Literal
from pydantic import BaseModel, Field, field_validator, model_validator

APP_NAME = "dreamsong"

# XDG Paths - Explicit XDG resolution so ~/.config/ is used even on macOS
CONFIG_DIR = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config")) / APP_NAME
SETTINGS_FILE = CONFIG_DIR / "settings.json"

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash-preview-05-20"
DEFAULT_IMAGE_PLACEHOLDER = "https://placehold.co/150x150/374151/9CA3AF?text=Image+Not+Found"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class Settings(BaseModel):
    # Gemini; an empty key is a legal anonymous credential
    gemini_api_key: str = Field(default="")
    gemini_model: str = Field(default=DEFAULT_GEMINI_MODEL)
    gemini_base_url: str = Field(default=DEFAULT_GEMINI_BASE_URL)

    # Presentation
    theme: Literal["light", "dark"] = Field(default="dark")
    image_dir: str | None = Field(default=None)
    image_placeholder: str = Field(default=DEFAULT_IMAGE_PLACEHOLDER)

    log_level: LogLevel = Field(default="WARNING")

    @field_validator("gemini_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"gemini_base_url must be an http(s) URL, got '{v}'")
        return v.rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @model_validator(mode='before')
    @classmethod
    def fill_from_env(cls, data: dict) -> dict:
        """Env vars override all file-based values (highest precedence layer)."""
        env_map = {
            "gemini_api_key": "GEMINI_API_KEY",
            "gemini_model": "GEMINI_MODEL",
            "gemini_base_url": "DREAMSONG_GEMINI_BASE_URL",
            "theme": "DREAMSONG_THEME",
            "image_dir": "DREAMSONG_IMAGE_DIR",
            "image_placeholder": "DREAMSONG_IMAGE_PLACEHOLDER",
            "log_level": "DREAMSONG_LOG_LEVEL",
        }

        for field, env_var in env_map.items():
            val = os.getenv(env_var)
            if val:
                data[field] = val
        return data


def find_project_config() -> Path | None:
    """Return .dreamsong/settings.json in cwd if it exists, else None."""
    candidate = Path.cwd() / ".dreamsong" / "settings.json"
    return candidate if candidate.is_file() else None


def load_config() -> Settings:
    data: dict = {}

    # Layer 1: User config (~/.config/dreamsong/settings.json)
    if SETTINGS_FILE.exists():
        with open(SETTINGS_FILE, "r") as f:
            try:
                data = json.load(f)
            except Exception as e:
                print(f"Error loading settings.json: {e}. Using defaults.")

    # Layer 2: Project config (<cwd>/.dreamsong/settings.json), shallow merge
    project_config = find_project_config()
    if project_config is not None:
        with open(project_config, "r") as f:
            try:
                data |= json.load(f)
            except Exception as e:
                print(f"Error loading project config {project_config}: {e}. Skipping.")

    # Layer 3: Env vars (handled by fill_from_env model_validator)
    return Settings.model_validate(data)


# Resolved project config path (None when no .dreamsong/settings.json in cwd)
project_config_path: Path | None = find_project_config()

# Lazy settings singleton, loaded on first access, not at import time.
_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the global Settings instance, creating it on first call."""
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def __getattr__(name: str):
    """Lazy module attribute: ``from dreamsong.config import settings`` works without import-time side effects."""
    if name == "settings":
        return get_settings()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
