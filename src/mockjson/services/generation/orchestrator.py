"""Fallback orchestration across generation providers."""

from typing import Any, Optional, Sequence

import structlog

from mockjson.services.exceptions import AllProvidersExhausted, ProviderFailure
from mockjson.services.generation.providers import GenerationProvider

logger = structlog.get_logger()


class FallbackOrchestrator:
    """Try providers in priority order and return the first successful output.

    Models have independent quota windows, so a rate-limited provider is
    skipped immediately rather than waited out. Each provider is called at
    most once per generate() call; backoff lives inside the provider.
    """

    def __init__(self, providers: Sequence[GenerationProvider]):
        if not providers:
            raise ValueError("At least one generation provider is required")
        self.providers = list(providers)

    async def generate(
        self,
        prompt: str,
        objects_count: int,
        metadata: Optional[dict[str, Any]] = None,
    ) -> tuple[str, str]:
        """Generate raw text with the first provider that succeeds.

        Args:
            prompt: Validated user prompt
            objects_count: Number of records requested
            metadata: Optional job metadata forwarded to providers

        Returns:
            Tuple of (raw_text, provider_name)

        Raises:
            AllProvidersExhausted: If every provider failed
        """
        attempts: list[tuple[str, str]] = []

        for provider in self.providers:
            try:
                raw_text = await provider.generate(prompt, objects_count, metadata=metadata)
            except ProviderFailure as e:
                attempts.append((provider.name, str(e)))
                logger.warning(
                    "generation.provider_failed",
                    provider=provider.name,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                continue

            if not raw_text or not raw_text.strip():
                attempts.append((provider.name, "Empty response"))
                logger.warning(
                    "generation.provider_failed",
                    provider=provider.name,
                    error_type="EmptyResponse",
                    error="Empty response",
                )
                continue

            logger.info(
                "generation.succeeded",
                provider=provider.name,
                failed_providers=len(attempts),
            )
            return raw_text, provider.name

        raise AllProvidersExhausted(attempts)
