from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from joindots.core.settings import read_config


class ModelConfig(BaseModel):
    provider: str
    label: str
    context: Optional[int] = None
    pricing: Optional[Dict[str, float]] = None  # USD per 1M tokens, informational
    model_id: Optional[str] = None  # Optional override
    api_config: Optional[Dict[str, Any]] = None  # Optional API-specific config
    structured_output_method: Optional[str] = None  # e.g. "function_calling"


class ModelRegistry:
    """Advisory models declared under `models:` in the settings file."""

    def __init__(self, config_path: Optional[Path] = None):
        data = read_config(config_path)
        self.models: Dict[str, ModelConfig] = {
            key: ModelConfig(**val) for key, val in (data.get("models") or {}).items()
        }

    def get(self, model_key: str) -> Optional[ModelConfig]:
        return self.models.get(model_key)

    def summaries(self) -> List[Dict[str, Any]]:
        return [
            {"id": key, "provider": cfg.provider, "label": cfg.label, "context": cfg.context, "pricing": cfg.pricing}
            for key, cfg in sorted(self.models.items())
        ]


# Singleton instance
registry = ModelRegistry()
