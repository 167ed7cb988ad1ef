"""Tests for the Gemini provider: request shape, error classification, retry, timeout.

Upstream calls are served by httpx.MockTransport.
"""

import asyncio
import json

import httpx
import pytest

from mockjson.services.exceptions import EmptyResponse, ProviderError, RateLimited
from mockjson.services.generation.prompt_builder import build_instruction_prompt
from mockjson.services.generation.providers import (
    GeminiProvider,
    build_default_providers,
    compute_timeout_ms,
    profile_for,
)


def gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def make_provider(handler, model="gemini-1.5-flash", **kwargs) -> GeminiProvider:
    options = dict(api_key="test-key", max_attempts=3, retry_base_delay=0)
    options.update(kwargs)
    return GeminiProvider(
        profile=profile_for(model),
        transport=httpx.MockTransport(handler),
        **options,
    )


@pytest.mark.parametrize(
    "count, expected",
    [(1, 6200), (10, 8000), (15, 9000), (100, 9000), (0, 6000)],
)
def test_timeout_budget_scales_and_caps(count, expected):
    assert compute_timeout_ms(count) == expected


def test_generation_config_per_model():
    fast = profile_for("gemini-2.0-flash-exp").generation_config(50)
    assert fast == {"temperature": 0.7, "maxOutputTokens": 4096, "topP": 0.8, "topK": 40}

    small = profile_for("gemini-2.0-flash-exp").generation_config(3)
    assert small["maxOutputTokens"] == 600

    balanced = profile_for("gemini-1.5-flash").generation_config(10)
    assert balanced == {"temperature": 0.7, "maxOutputTokens": 2500}

    assert profile_for("gemini-1.5-pro").generation_config(100)["maxOutputTokens"] == 8192
    assert profile_for("some-new-model").model == "some-new-model"


def test_instruction_prompt_embeds_rules_and_fields():
    prompt = build_instruction_prompt(
        "products for a shop",
        5,
        {"fields": [{"label": "name", "type": "string"}, {"label": "price", "type": "number"}]},
    )
    assert prompt.startswith("products for a shop")
    assert "Generate EXACTLY 5 objects" in prompt
    assert "unique numeric 'id'" in prompt
    assert "name: string, price: number" in prompt
    assert prompt.endswith("Generate the 5 objects now:")


@pytest.mark.asyncio
async def test_success_posts_prompt_and_returns_text():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=gemini_body('[{"id":1}]'))

    provider = make_provider(handler)
    text = await provider.generate("list 1 fruit", 1)

    assert text == '[{"id":1}]'
    assert "/models/gemini-1.5-flash:generateContent" in seen["url"]
    assert "key=test-key" in seen["url"]
    sent_prompt = seen["body"]["contents"][0]["parts"][0]["text"]
    assert "list 1 fruit" in sent_prompt
    assert seen["body"]["generationConfig"]["maxOutputTokens"] == 250


@pytest.mark.asyncio
async def test_rate_limit_is_retried_then_raised():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, json={"error": {"code": 429, "message": "quota"}})

    provider = make_provider(handler, max_attempts=3)
    with pytest.raises(RateLimited) as exc_info:
        await provider.generate("x", 1)

    assert len(calls) == 3
    assert exc_info.value.provider == "gemini-1.5-flash"


@pytest.mark.asyncio
async def test_rate_limit_signalled_in_body_only():
    def handler(request):
        return httpx.Response(400, json={"error": {"code": 429, "message": "RESOURCE_EXHAUSTED"}})

    provider = make_provider(handler, max_attempts=1)
    with pytest.raises(RateLimited):
        await provider.generate("x", 1)


@pytest.mark.asyncio
async def test_overloaded_is_retried_until_success():
    responses = [
        httpx.Response(503, text="overloaded"),
        httpx.Response(503, text="overloaded"),
        httpx.Response(200, json=gemini_body('[{"id":1}]')),
    ]

    def handler(request):
        return responses.pop(0)

    provider = make_provider(handler, max_attempts=3)
    assert await provider.generate("x", 1) == '[{"id":1}]'
    assert responses == []


@pytest.mark.asyncio
async def test_non_retryable_error_is_raised_immediately():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"error": {"code": 400, "message": "bad request"}})

    provider = make_provider(handler, max_attempts=3)
    with pytest.raises(ProviderError) as exc_info:
        await provider.generate("x", 1)

    assert len(calls) == 1
    assert exc_info.value.status_code == 400
    assert exc_info.value.retryable is False


@pytest.mark.asyncio
async def test_empty_text_raises_empty_response():
    def handler(request):
        return httpx.Response(200, json={"candidates": []})

    provider = make_provider(handler)
    with pytest.raises(EmptyResponse):
        await provider.generate("x", 1)


@pytest.mark.asyncio
async def test_missing_api_key_is_provider_error():
    def handler(request):
        raise AssertionError("no request expected")

    provider = make_provider(handler, api_key="")
    with pytest.raises(ProviderError, match="GEMINI_API_KEY"):
        await provider.generate("x", 1)


@pytest.mark.asyncio
async def test_timeout_becomes_provider_error():
    async def handler(request):
        await asyncio.sleep(1)
        return httpx.Response(200, json=gemini_body("[]"))

    provider = make_provider(
        handler, timeout_base_ms=20, timeout_per_item_ms=0, timeout_cap_ms=20
    )
    with pytest.raises(ProviderError, match="timed out after 20ms"):
        await provider.generate("x", 1)


def test_default_providers_follow_configured_order(settings):
    providers = build_default_providers(settings)
    assert [p.name for p in providers] == [
        "gemini-2.0-flash-exp",
        "gemini-1.5-flash",
        "gemini-1.5-pro",
    ]
    assert all(p.max_attempts == settings.provider_max_attempts for p in providers)
