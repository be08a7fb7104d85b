"""
Advisory model providers

Each provider knows how to build its LangChain chat model and how that model
should be bound to the advisory reply schema. `get_structured_llm` is the
single entry point used by the advisor.
"""

from abc import ABC, abstractmethod
import logging
import os
from typing import Optional, Type

from langchain_anthropic import ChatAnthropic
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_mistralai import ChatMistralAI
from langchain_openai import ChatOpenAI
from pydantic import BaseModel

from joindots.core.model_registry import registry

logger = logging.getLogger(__name__)


class AdvisoryProvider(ABC):
    """Builds a chat model and binds it to a reply schema."""

    # Some endpoints only honour tool calling for structured output
    structured_output_method: Optional[str] = None

    @abstractmethod
    def chat_model(self, model_id: str, config: dict, temperature: float):
        pass

    def structured(self, model_id: str, config: dict, temperature: float,
                   schema: Type[BaseModel], method: Optional[str] = None):
        """Chat model bound to `schema`; replies come back as {raw, parsed, parsing_error}."""
        llm = self.chat_model(model_id, config, temperature)
        method = method or self.structured_output_method
        if method:
            return llm.with_structured_output(schema, method=method, include_raw=True)
        return llm.with_structured_output(schema, include_raw=True)


class OpenAIProvider(AdvisoryProvider):
    def chat_model(self, model_id: str, config: dict, temperature: float):
        # base_url lets OpenAI-compatible local servers stand in
        return ChatOpenAI(model=model_id, temperature=temperature, base_url=config.get("base_url"))


class AnthropicProvider(AdvisoryProvider):
    def chat_model(self, model_id: str, config: dict, temperature: float):
        return ChatAnthropic(model=model_id, temperature=temperature)


class GoogleProvider(AdvisoryProvider):
    def chat_model(self, model_id: str, config: dict, temperature: float):
        return ChatGoogleGenerativeAI(model=model_id, temperature=temperature)


class DeepSeekProvider(AdvisoryProvider):
    structured_output_method = "function_calling"

    def chat_model(self, model_id: str, config: dict, temperature: float):
        return ChatOpenAI(
            model=model_id,
            temperature=temperature,
            api_key=os.getenv("DEEPSEEK_API_KEY"),
            base_url=config.get("base_url", "https://api.deepseek.com"),
        )


class MistralProvider(AdvisoryProvider):
    def chat_model(self, model_id: str, config: dict, temperature: float):
        return ChatMistralAI(model=model_id, temperature=temperature, api_key=os.getenv("MISTRAL_API_KEY"))


PROVIDERS = {
    "openai": OpenAIProvider(),
    "anthropic": AnthropicProvider(),
    "google": GoogleProvider(),
    "deepseek": DeepSeekProvider(),
    "mistral": MistralProvider(),
}

# Name fragments used when a model key is not in the registry
_NAME_HINTS = [
    ("gpt", "openai"),
    ("claude", "anthropic"),
    ("gemini", "google"),
    ("deepseek", "deepseek"),
    ("mistral", "mistral"),
    ("ministral", "mistral"),
]


def resolve_provider(model_key: str):
    """
    Returns (provider_key, api_model_name, api_config) for a model key.
    Unknown keys are matched on their name.
    """
    config = registry.get(model_key)
    if config:
        return config.provider, config.model_id or model_key, config.api_config or {}

    for hint, provider_key in _NAME_HINTS:
        if hint in model_key:
            logger.warning("Model %s is not in the registry, guessing provider %s", model_key, provider_key)
            return provider_key, model_key, {}
    raise ValueError(f"Unknown model: {model_key}")


def _provider(provider_key: str) -> AdvisoryProvider:
    provider = PROVIDERS.get(provider_key)
    if not provider:
        raise ValueError(f"Unsupported provider: {provider_key}")
    return provider


def structured_output_method(model_key: str) -> Optional[str]:
    """Per-model override from the registry, else the provider default."""
    config = registry.get(model_key)
    if config and config.structured_output_method:
        return config.structured_output_method
    provider_key, _, _ = resolve_provider(model_key)
    return _provider(provider_key).structured_output_method


def get_structured_llm(model_key: str, schema: Type[BaseModel], temperature: float = 0.2):
    provider_key, api_model_name, api_config = resolve_provider(model_key)
    return _provider(provider_key).structured(
        api_model_name, api_config, temperature, schema, method=structured_output_method(model_key)
    )
