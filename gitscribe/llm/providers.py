"""Provider Types - supported OpenAI-compatible backends and their defaults."""

from enum import Enum

from gitscribe.llm.base import ConfigurationError


class ProviderType(str, Enum):
    """Kind of OpenAI-compatible endpoint a profile points at."""
    OPENAI = "openai"
    AZURE = "azure"
    CUSTOM = "custom"


OPENAI_BASE_URL = "https://api.openai.com/v1"

# Azure needs a resource/deployment URL and custom endpoints bring their own,
# so only OpenAI has a fixed default.
DEFAULT_BASE_URLS = {
    ProviderType.OPENAI: OPENAI_BASE_URL,
    ProviderType.AZURE: "",
    ProviderType.CUSTOM: "",
}

# Suggestions shown to the user, never used to reject a model name
DEFAULT_MODELS = {
    ProviderType.OPENAI: ["gpt-4", "gpt-4-turbo", "gpt-4o", "gpt-4o-mini", "gpt-3.5-turbo"],
    ProviderType.AZURE: ["gpt-4", "gpt-35-turbo"],
    ProviderType.CUSTOM: [],
}

PROVIDER_NAMES = [p.value for p in ProviderType]


def parse_provider(value) -> ProviderType:
    """Turn 'openai' / ProviderType.OPENAI into a ProviderType."""
    try:
        return ProviderType(value)
    except ValueError:
        raise ConfigurationError(
            "type",
            f"unknown provider '{value}', use one of: {', '.join(PROVIDER_NAMES)}"
        )


def is_valid_provider(provider_type) -> bool:
    try:
        ProviderType(provider_type)
    except ValueError:
        return False
    return True


def default_base_url(provider_type) -> str:
    if not is_valid_provider(provider_type):
        return ""
    return DEFAULT_BASE_URLS[ProviderType(provider_type)]


def default_models(provider_type) -> list[str]:
    if not is_valid_provider(provider_type):
        return []
    return list(DEFAULT_MODELS[ProviderType(provider_type)])


def is_valid_model(provider_type, model: str) -> bool:
    """Any non-empty model name is accepted; deployments name their own."""
    return bool(model)
