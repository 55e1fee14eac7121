# bundlereco/domain/services/llm_client.py

from __future__ import annotations
import asyncio
import logging
from time import monotonic as _now
from typing import Optional, Protocol

from openai import AsyncOpenAI, OpenAIError

from bundlereco.core.config import Settings
from bundlereco.core.errors import ProviderError

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    """Text completion capability. Raises ProviderError on any failure."""

    async def complete(self, prompt: str, *, system: str, max_tokens: int, temperature: float) -> str:
        ...


class OpenAICompletionClient:
    """
    Chat-completion client used by the generative path.
    - single attempt: the heuristic fallback is the retry strategy
    - bounded by settings.openai_timeout_s; a timeout is a ProviderError
    - returns raw text, interpretation belongs to the parser
    """

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.model = settings.OPENAI_RECO_MODEL
        self.timeout_s = settings.openai_timeout_s
        self._api_key = settings.OPENAI_API_KEY
        self._client = client

    @property
    def available(self) -> bool:
        return bool(self._api_key) or self._client is not None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._api_key:
                raise ProviderError("OPENAI_API_KEY is not configured")
            self._client = AsyncOpenAI(api_key=self._api_key, max_retries=0, timeout=self.timeout_s)
        return self._client

    async def complete(self, prompt: str, *, system: str, max_tokens: int, temperature: float) -> str:
        client = self._get_client()
        t0 = _now()
        try:
            resp = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system},
                        {"role": "user", "content": prompt},
                    ],
                    max_tokens=max_tokens,
                    temperature=temperature,
                    response_format={"type": "json_object"},
                ),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as e:
            raise ProviderError(f"LLM call timed out after {self.timeout_s}s") from e
        except OpenAIError as e:
            raise ProviderError(f"LLM call failed: {e}") from e

        dt = _now() - t0
        # Best-effort usage logging
        u = getattr(resp, "usage", None)
        logger.info(
            "LLM call model=%s duration=%.3fs tokens(prompt=%s, completion=%s)",
            getattr(resp, "model", self.model), dt,
            getattr(u, "prompt_tokens", None), getattr(u, "completion_tokens", None),
        )
        if not resp.choices:
            raise ProviderError("LLM returned no choices")
        return resp.choices[0].message.content or ""
