from __future__ import annotations

from hunkwise_core.models import ProviderResponse, TokenUsage
from hunkwise_core.providers.base import BaseProvider, ProviderError


class AnthropicProvider(BaseProvider):
    NAME = "anthropic"
    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    TEMPERATURE = 0.3

    def __init__(self, api_key: str, **kwargs):
        super().__init__(**kwargs)
        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. Install it with: pip install anthropic"
            )
        self._sdk = anthropic
        self.client = anthropic.Anthropic(api_key=api_key, max_retries=0)

    def _call_api(self, prompt: str, model: str) -> ProviderResponse:
        from anthropic.types import TextBlock

        try:
            response = self.client.messages.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.TEMPERATURE,
                max_tokens=self.max_tokens,
            )
        except self._sdk.APIStatusError as e:
            raise ProviderError(f"Anthropic API returned {e.status_code}: {e.message}", e.status_code) from e
        except self._sdk.APIConnectionError as e:
            raise ProviderError(f"Anthropic network error: {e}") from e

        text = "".join(block.text for block in response.content if isinstance(block, TextBlock)).strip()
        usage = None
        if getattr(response, "usage", None) is not None:
            usage = TokenUsage(input=response.usage.input_tokens, output=response.usage.output_tokens)
        return ProviderResponse(text=text, usage=usage)
