"""Generation providers: one backend per model, each with its own tuning and retry policy.

Every provider exposes ``generate(prompt, objects_count) -> raw text`` and signals
failures with the ProviderFailure hierarchy:

- RateLimited: upstream throttling (HTTP 429, or ``error.code == 429`` in the body)
- ProviderError: any other upstream failure, including timeouts
- EmptyResponse: the call succeeded but produced no text

Retryable failures (429 and 503) are retried inside a single call with
exponential backoff; the timeout budget covers the call including its retries.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from mockjson.core.config import Settings
from mockjson.services.exceptions import (
    EmptyResponse,
    ProviderError,
    ProviderFailure,
    RateLimited,
)
from mockjson.services.generation.prompt_builder import build_instruction_prompt

logger = structlog.get_logger()


def compute_timeout_ms(
    objects_count: int,
    base_ms: int = 6000,
    per_item_ms: int = 200,
    cap_ms: int = 9000,
) -> int:
    """Timeout budget for one provider call; larger requests get longer, up to cap_ms."""
    return min(base_ms + per_item_ms * max(objects_count, 0), cap_ms)


class GenerationProvider(ABC):
    """A single generation backend."""

    name: str

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        objects_count: int,
        metadata: Optional[dict[str, Any]] = None,
    ) -> str:
        """Generate raw text for ``objects_count`` records.

        Raises:
            RateLimited, ProviderError, EmptyResponse
        """


@dataclass(frozen=True)
class ModelProfile:
    """Generation parameters for one model."""

    model: str
    temperature: float = 0.7
    tokens_per_item: int = 250
    max_output_tokens: int = 8192
    top_p: Optional[float] = None
    top_k: Optional[int] = None

    def generation_config(self, objects_count: int) -> dict[str, Any]:
        config: dict[str, Any] = {
            "temperature": self.temperature,
            "maxOutputTokens": min(self.max_output_tokens, objects_count * self.tokens_per_item),
        }
        if self.top_p is not None:
            config["topP"] = self.top_p
        if self.top_k is not None:
            config["topK"] = self.top_k
        return config


# Fastest first; the experimental model has the tightest quota and output ceiling
MODEL_PROFILES: dict[str, ModelProfile] = {
    "gemini-2.0-flash-exp": ModelProfile(
        model="gemini-2.0-flash-exp",
        tokens_per_item=200,
        max_output_tokens=4096,
        top_p=0.8,
        top_k=40,
    ),
    "gemini-1.5-flash": ModelProfile(model="gemini-1.5-flash"),
    "gemini-1.5-pro": ModelProfile(model="gemini-1.5-pro"),
}


def profile_for(model: str) -> ModelProfile:
    """Return the tuning for a known model, or defaults for an unknown one."""
    return MODEL_PROFILES.get(model) or ModelProfile(model=model)


def _body_error_code(response: httpx.Response) -> Optional[int]:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        code = payload["error"].get("code")
        if isinstance(code, int):
            return code
    return None


def _extract_text(payload: Any) -> str:
    """Pull ``candidates[0].content.parts[0].text`` out of a generateContent response."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return ""
    return text if isinstance(text, str) else ""


def _log_retry(retry_state) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.info(
        "generation.provider_retry",
        provider=getattr(exc, "provider", None),
        attempt=retry_state.attempt_number,
        error=str(exc),
    )


class GeminiProvider(GenerationProvider):
    """Google Gemini generateContent endpoint for a single model.

    Args:
        profile: Model name and generation parameters
        api_key: Gemini API key
        base_url: API root (default: public v1beta endpoint)
        max_attempts: Attempts per call for retryable failures (429, 503)
        retry_base_delay: Seconds before the first retry; doubles each attempt
        timeout_base_ms / timeout_per_item_ms / timeout_cap_ms: Timeout budget parameters
        transport: Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        profile: ModelProfile,
        api_key: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        max_attempts: int = 3,
        retry_base_delay: float = 0.5,
        timeout_base_ms: int = 6000,
        timeout_per_item_ms: int = 200,
        timeout_cap_ms: int = 9000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.profile = profile
        self.name = profile.model
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        self.timeout_base_ms = timeout_base_ms
        self.timeout_per_item_ms = timeout_per_item_ms
        self.timeout_cap_ms = timeout_cap_ms
        self._transport = transport

    def timeout_ms(self, objects_count: int) -> int:
        return compute_timeout_ms(
            objects_count,
            base_ms=self.timeout_base_ms,
            per_item_ms=self.timeout_per_item_ms,
            cap_ms=self.timeout_cap_ms,
        )

    async def generate(
        self,
        prompt: str,
        objects_count: int,
        metadata: Optional[dict[str, Any]] = None,
    ) -> str:
        if not self.api_key:
            raise ProviderError("GEMINI_API_KEY not configured", provider=self.name)

        instruction = build_instruction_prompt(prompt, objects_count, metadata)
        timeout_ms = self.timeout_ms(objects_count)

        try:
            return await asyncio.wait_for(
                self._generate_with_retry(instruction, objects_count),
                timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError as e:
            raise ProviderError(
                f"{self.name} timed out after {timeout_ms}ms", provider=self.name
            ) from e

    async def _generate_with_retry(self, instruction: str, objects_count: int) -> str:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.retry_base_delay, max=10),
            retry=retry_if_exception(
                lambda e: isinstance(e, ProviderFailure) and e.retryable
            ),
            before_sleep=_log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._call_once(instruction, objects_count)
        raise ProviderError(f"{self.name} made no attempts", provider=self.name)

    async def _call_once(self, instruction: str, objects_count: int) -> str:
        url = f"{self.base_url}/models/{self.profile.model}:generateContent"
        body = {
            "contents": [{"parts": [{"text": instruction}]}],
            "generationConfig": self.profile.generation_config(objects_count),
        }

        async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
            try:
                response = await client.post(url, params={"key": self.api_key}, json=body)
            except httpx.HTTPError as e:
                raise ProviderError(f"{self.name} request failed: {e}", provider=self.name) from e

        if response.status_code != 200:
            if response.status_code == 429 or _body_error_code(response) == 429:
                raise RateLimited(f"{self.name} rate limited", provider=self.name)
            raise ProviderError(
                f"{self.name} error: {response.status_code} - {response.text[:200]}",
                provider=self.name,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError(
                f"{self.name} returned a non-JSON body", provider=self.name
            ) from e

        text = _extract_text(payload)
        if not text.strip():
            raise EmptyResponse(f"{self.name} returned an empty response", provider=self.name)
        return text


def build_default_providers(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> list[GenerationProvider]:
    """Build the fallback chain from settings, in GENERATION_MODELS order."""
    return [
        GeminiProvider(
            profile=profile_for(model),
            api_key=settings.gemini_api_key,
            base_url=settings.gemini_base_url,
            max_attempts=settings.provider_max_attempts,
            retry_base_delay=settings.provider_retry_base_delay,
            timeout_base_ms=settings.provider_timeout_base_ms,
            timeout_per_item_ms=settings.provider_timeout_per_item_ms,
            timeout_cap_ms=settings.provider_timeout_cap_ms,
            transport=transport,
        )
        for model in settings.generation_models_list
    ]
