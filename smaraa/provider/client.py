"""Thin SDK wrapper for the external embedding and generation provider.

Embeddings always go to OpenAI. Generation goes to OpenAI chat completions
or Anthropic messages depending on ``PROVIDER_GENERATION_BACKEND``.

SDK imports are deferred to method calls (lazy loading) to avoid import-time
failures when API keys are not configured. Retries, timeouts and circuit
breaking are applied one level up by ``ProviderGuard``; this class performs
exactly one network call per method invocation.
"""

import logging
from typing import Any

from smaraa.provider.config import ProviderConfig
from smaraa.resilience.guard import NonRetryableProviderError

logger = logging.getLogger(__name__)

# HTTP statuses that retrying will not fix
_NON_RETRYABLE_STATUS = {400, 401, 403, 404, 422}


def _raise_if_non_retryable(exc: Exception) -> None:
    status_code = getattr(exc, "status_code", None)
    if status_code in _NON_RETRYABLE_STATUS:
        raise NonRetryableProviderError(f"{type(exc).__name__}: {exc}") from exc


class ProviderClient:
    """Unified client for embedding and generation calls.

    Args:
        config: Provider configuration with API keys and model names.
    """

    def __init__(self, config: ProviderConfig | None = None) -> None:
        self._config = config or ProviderConfig()
        self._openai_client: Any = None
        self._anthropic_client: Any = None

    @property
    def config(self) -> ProviderConfig:
        return self._config

    def _get_openai_client(self) -> Any:
        """Lazy-initialize OpenAI async client."""
        if self._openai_client is None:
            import openai

            api_key = self._config.openai_api_key
            self._openai_client = openai.AsyncOpenAI(
                api_key=api_key.get_secret_value() if api_key else None,
                max_retries=0,
            )
        return self._openai_client

    def _get_anthropic_client(self) -> Any:
        """Lazy-initialize Anthropic async client."""
        if self._anthropic_client is None:
            import anthropic

            api_key = self._config.anthropic_api_key
            self._anthropic_client = anthropic.AsyncAnthropic(
                api_key=api_key.get_secret_value() if api_key else None,
                max_retries=0,
            )
        return self._anthropic_client

    async def embed_texts(self, model: str, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts in one request, preserving input order.

        Args:
            model: Embedding model name (e.g. text-embedding-3-small).
            texts: Non-empty texts.

        Returns:
            One vector per input text, in input order.
        """
        client = self._get_openai_client()
        try:
            response = await client.embeddings.create(model=model, input=texts)
        except Exception as e:
            _raise_if_non_retryable(e)
            raise

        # The API reports an index per item; do not rely on response order.
        ordered = sorted(response.data, key=lambda item: item.index)
        if len(ordered) != len(texts):
            raise ValueError(
                f"Provider returned {len(ordered)} embeddings for {len(texts)} inputs"
            )
        return [list(item.embedding) for item in ordered]

    async def generate(self, system: str, prompt: str) -> str:
        """Run one generation call and return the raw text response.

        OpenAI is asked for a JSON object; Anthropic is asked via the prompt.
        """
        if self._config.generation_backend == "anthropic":
            return await self._generate_anthropic(system, prompt)
        return await self._generate_openai(system, prompt)

    async def _generate_openai(self, system: str, prompt: str) -> str:
        client = self._get_openai_client()
        try:
            response = await client.chat.completions.create(
                model=self._config.openai_generation_model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._config.generation_temperature,
                max_tokens=self._config.generation_max_tokens,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            _raise_if_non_retryable(e)
            raise
        return response.choices[0].message.content or ""

    async def _generate_anthropic(self, system: str, prompt: str) -> str:
        client = self._get_anthropic_client()
        try:
            response = await client.messages.create(
                model=self._config.anthropic_generation_model,
                max_tokens=self._config.generation_max_tokens,
                temperature=self._config.generation_temperature,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            _raise_if_non_retryable(e)
            raise

        parts = [block.text for block in response.content if block.type == "text"]
        if not parts:
            logger.warning("Anthropic response contained no text block")
        return "".join(parts)

    async def close(self) -> None:
        """Clean up SDK clients."""
        if self._openai_client is not None:
            await self._openai_client.close()
            self._openai_client = None
        if self._anthropic_client is not None:
            await self._anthropic_client.close()
            self._anthropic_client = None
