"""LLM Client Package"""

from gitscribe.llm.base import (
    LLMError,
    ConfigurationError,
    GenerationError,
    TransportError,
    APIError,
    RequestError,
    NoResponseError,
    EmptyResultError,
    ParseError,
    OperationError,
    PRContent,
    clean_branch_name,
    strip_code_fence,
)
from gitscribe.llm.client import OpenAICompatClient
from gitscribe.llm.providers import (
    ProviderType,
    PROVIDER_NAMES,
    default_base_url,
    default_models,
    is_valid_model,
    is_valid_provider,
    parse_provider,
)


def get_client(api_key: str, base_url: str, model: str, timeout: float | None = None) -> OpenAICompatClient:
    """Get a client for a resolved (api_key, base_url, model) triple."""
    return OpenAICompatClient(api_key=api_key, base_url=base_url, model=model, timeout=timeout)


__all__ = [
    "LLMError",
    "ConfigurationError",
    "GenerationError",
    "TransportError",
    "APIError",
    "RequestError",
    "NoResponseError",
    "EmptyResultError",
    "ParseError",
    "OperationError",
    "PRContent",
    "clean_branch_name",
    "strip_code_fence",
    "OpenAICompatClient",
    "get_client",
    "ProviderType",
    "PROVIDER_NAMES",
    "default_base_url",
    "default_models",
    "is_valid_model",
    "is_valid_provider",
    "parse_provider",
]
