from __future__ import annotations

from hunkwise_core.providers.base import BaseProvider, ProviderError


def get_provider(config: dict) -> BaseProvider:
    """Instantiate the configured provider with the configured retry policy."""
    name = config.get("provider")
    options = {
        "max_retries": config.get("max_retries", 2),
        "retry_delay": config.get("retry_delay", 1.0),
        "max_tokens": config.get("max_tokens", 4096),
    }
    if name == "anthropic":
        from hunkwise_core.providers.anthropic import AnthropicProvider

        return AnthropicProvider(api_key=config["anthropic_api_key"], **options)
    if name == "openai":
        from hunkwise_core.providers.openai import OpenAIProvider

        return OpenAIProvider(api_key=config["openai_api_key"], **options)
    if name == "openrouter":
        from hunkwise_core.providers.openai import OpenRouterProvider

        return OpenRouterProvider(api_key=config["openrouter_api_key"], **options)
    raise ValueError(f"Unknown model provider: {name!r}. Choose 'anthropic', 'openai' or 'openrouter'.")


__all__ = ["BaseProvider", "ProviderError", "get_provider"]
