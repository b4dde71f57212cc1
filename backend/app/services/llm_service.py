#backend/app/services/llm_service.py
"""
Text generation against the supported providers.

Every provider error (connection failure, timeout, non-success status,
missing key) is turned into ProviderUnavailable. A provider that answers
with an envelope we can't read is an UnparsableResponse. No call here is
retried; the caller decides.
"""
import asyncio
import logging

import httpx
import openai

from app.core.async_context import get_async_context
from app.core.config import settings
from app.core.exceptions import ProviderUnavailable, UnparsableResponse

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

SUPPORTED_PROVIDERS = ("gemini", "openai", "openrouter")


async def _generate_with_gemini(prompt: str, temperature: float, max_output_tokens: int) -> str:
    if not settings.GEMINI_API_KEY:
        raise ProviderUnavailable("Gemini API key not configured")

    client = get_async_context().http_client
    url = f"{GEMINI_BASE_URL}/{settings.ANALYSIS_MODEL_GEMINI}:generateContent"
    body = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": temperature,
            "maxOutputTokens": max_output_tokens,
        },
    }
    try:
        response = await client.post(url, params={"key": settings.GEMINI_API_KEY}, json=body)
    except httpx.HTTPError as e:
        raise ProviderUnavailable(f"Gemini request failed: {e.__class__.__name__}") from e

    if response.is_error:
        raise ProviderUnavailable(f"Gemini API error: {response.status_code}")

    try:
        data = response.json()
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise UnparsableResponse("Gemini returned an unexpected response envelope") from e


async def _generate_with_openai_client(
    client: openai.AsyncOpenAI, model: str, prompt: str, temperature: float, max_output_tokens: int
) -> str:
    try:
        response = await client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_output_tokens,
        )
    except openai.APIError as e:
        raise ProviderUnavailable(f"Provider request failed: {e.__class__.__name__}") from e

    if not response.choices:
        raise UnparsableResponse("Provider returned no choices")
    return response.choices[0].message.content or ""


async def generate_text(
    prompt: str,
    provider: str,
    temperature: float | None = None,
    max_output_tokens: int | None = None,
    timeout: float | None = None,
) -> str:
    """
    Sends a single prompt to the given provider and returns the generated text.
    The whole call is bounded by `timeout` seconds; exceeding it is treated as
    the provider being unavailable.
    """
    temperature = settings.ANALYSIS_TEMPERATURE if temperature is None else temperature
    max_output_tokens = settings.ANALYSIS_MAX_OUTPUT_TOKENS if max_output_tokens is None else max_output_tokens
    timeout = settings.ANALYSIS_TIMEOUT_SECONDS if timeout is None else timeout

    if provider == "gemini":
        call = _generate_with_gemini(prompt, temperature, max_output_tokens)
    elif provider == "openai":
        if not settings.OPENAI_API_KEY:
            raise ProviderUnavailable("OpenAI API key not configured")
        call = _generate_with_openai_client(
            get_async_context().openai_client, settings.ANALYSIS_MODEL_OPENAI,
            prompt, temperature, max_output_tokens,
        )
    elif provider == "openrouter":
        if not settings.OPENROUTER_API_KEY:
            raise ProviderUnavailable("OpenRouter API key not configured")
        call = _generate_with_openai_client(
            get_async_context().openrouter_client, settings.ANALYSIS_MODEL_OPENROUTER,
            prompt, temperature, max_output_tokens,
        )
    else:
        raise ValueError(f"Unsupported provider: {provider}")

    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.warning("Provider %s did not answer within %ss", provider, timeout)
        raise ProviderUnavailable(f"{provider} did not respond within {timeout} seconds") from e
