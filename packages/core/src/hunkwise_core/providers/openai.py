from __future__ import annotations

try:
    import openai as _openai
except ImportError:
    _openai = None  # type: ignore[assignment]

from hunkwise_core.models import ProviderResponse, TokenUsage
from hunkwise_core.providers.base import BaseProvider, ProviderError


class OpenAIProvider(BaseProvider):
    NAME = "openai"
    DEFAULT_MODEL = "gpt-4o"
    # Slightly lower than Anthropic's to keep the JSON output stable.
    TEMPERATURE = 0.2
    BASE_URL: str | None = None

    def __init__(self, api_key: str, **kwargs):
        super().__init__(**kwargs)
        if _openai is None:
            raise ImportError("The 'openai' package is required for this provider. Install it with: pip install openai")
        self.client = _openai.OpenAI(api_key=api_key, base_url=self.BASE_URL, max_retries=0)

    def _request_options(self) -> dict:
        return {}

    def _call_api(self, prompt: str, model: str) -> ProviderResponse:
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.TEMPERATURE,
                max_tokens=self.max_tokens,
                **self._request_options(),
            )
        except _openai.APIStatusError as e:
            raise ProviderError(f"{self.NAME} API returned {e.status_code}: {e.message}", e.status_code) from e
        except _openai.APIConnectionError as e:
            raise ProviderError(f"{self.NAME} network error: {e}") from e

        if not response.choices:
            raise ProviderError(f"{self.NAME} returned no choices")
        text = (response.choices[0].message.content or "").strip()

        usage = None
        cost = None
        if getattr(response, "usage", None) is not None:
            usage = TokenUsage(input=response.usage.prompt_tokens or 0, output=response.usage.completion_tokens or 0)
            cost = getattr(response.usage, "cost", None)
        return ProviderResponse(text=text, usage=usage, cost=cost)


class OpenRouterProvider(OpenAIProvider):
    """OpenRouter speaks the chat-completions protocol, so it reuses the OpenAI SDK."""

    NAME = "openrouter"
    DEFAULT_MODEL = "anthropic/claude-sonnet-4"
    BASE_URL = "https://openrouter.ai/api/v1"

    def _request_options(self) -> dict:
        # Ask OpenRouter to include the billed cost in the usage block.
        return {"extra_body": {"usage": {"include": True}}}
