import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from joindots.models.enums import Difficulty

load_dotenv()

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "settings.yaml"


class AdvisorySettings(BaseModel):
    enabled: bool = False
    model: str = "gpt-4o"
    temperature: float = 0.2
    timeout_seconds: float = Field(default=20.0, gt=0)

class GameSettings(BaseModel):
    default_difficulty: Difficulty = Difficulty.STANDARD

class LoggingSettings(BaseModel):
    level: str = "INFO"

class Settings(BaseModel):
    advisory: AdvisorySettings = Field(default_factory=AdvisorySettings)
    game: GameSettings = Field(default_factory=GameSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def config_path() -> Path:
    return Path(os.getenv("JOINDOTS_CONFIG", DEFAULT_CONFIG_PATH))


def read_config(path: Optional[Path] = None) -> Dict[str, Any]:
    with open(path or config_path(), "r") as f:
        return yaml.safe_load(f) or {}


def load_settings(path: Optional[Path] = None) -> Settings:
    """YAML file first, then JOINDOTS_* environment overrides."""
    data = read_config(path)
    data.pop("models", None)  # owned by the model registry
    settings = Settings(**data)

    if os.getenv("JOINDOTS_ADVISORY_ENABLED") is not None:
        settings.advisory.enabled = _env_flag(os.environ["JOINDOTS_ADVISORY_ENABLED"])
    if os.getenv("JOINDOTS_ADVISORY_MODEL"):
        settings.advisory.model = os.environ["JOINDOTS_ADVISORY_MODEL"]
    if os.getenv("JOINDOTS_LOG_LEVEL"):
        settings.logging.level = os.environ["JOINDOTS_LOG_LEVEL"]
    return settings
