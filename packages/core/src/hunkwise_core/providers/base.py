"""Base provider implementing the Template Method pattern.

All providers share the same request algorithm:
    send() → _call_api()   ← only this differs per provider
           → retry on transient failures with a fixed delay
           → ProviderError on anything that is not recovered

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return a ProviderResponse

SDK clients are created with their own retries disabled so the policy here
is the only one in effect.
"""

from __future__ import annotations

import logging
import re
import time
from abc import ABC, abstractmethod

from hunkwise_core.models import ProviderResponse

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_MAX_TOKENS = 4096

_TRANSIENT_MESSAGE_RE = re.compile(r"network|timeout|timed out|econnreset|connection reset", re.IGNORECASE)


class ProviderError(Exception):
    """A failed model call; ``status_code`` is the HTTP status when there was one."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def transient(self) -> bool:
        return is_transient(self)


def is_transient(error: BaseException) -> bool:
    """True for HTTP 5xx, HTTP 429 and network-level failures."""
    status = getattr(error, "status_code", None)
    if isinstance(status, int) and (status == 429 or 500 <= status < 600):
        return True
    return bool(_TRANSIENT_MESSAGE_RE.search(str(error)))


class BaseProvider(ABC):
    NAME: str = "base"
    DEFAULT_MODEL: str = ""
    TEMPERATURE: float = 0.3

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ):
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.max_tokens = max_tokens

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def send(self, prompt: str, model: str | None = None) -> ProviderResponse:
        """Send one prompt, retrying transient failures.

        Makes at most ``max_retries + 1`` attempts. Non-transient errors are
        raised on the first failure.
        """
        model = model or self.DEFAULT_MODEL
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return self._call_api(prompt, model)
            except Exception as e:
                error = e if isinstance(e, ProviderError) else ProviderError(str(e), getattr(e, "status_code", None))
                if not error.transient:
                    logger.error("%s API error (not retryable): %s", self.__class__.__name__, error)
                    raise error from e
                if attempt == attempts:
                    logger.error(
                        "%s API failed after %d attempts: %s",
                        self.__class__.__name__,
                        attempts,
                        error,
                    )
                    raise error from e
                logger.warning(
                    "%s API error (attempt %d/%d): %s. Retrying in %ss...",
                    self.__class__.__name__,
                    attempt,
                    attempts,
                    error,
                    self.retry_delay,
                )
                time.sleep(self.retry_delay)
        raise ProviderError("unreachable")  # pragma: no cover

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, prompt: str, model: str) -> ProviderResponse:
        """Make a single API call and return the response.

        It should raise on failure; send() handles classification, retries
        and logging.
        """
