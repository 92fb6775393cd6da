"""LLM client for the AI redesigner.

Dispatches to Anthropic (default) or any OpenAI-compatible endpoint and
normalises SDK failures into three exception types so callers can decide
what is worth retrying.

Usage:
    from quill.services.llm import chat_completion

    html = await chat_completion(prompt, system=SYSTEM_PROMPT, max_tokens=8192)
"""

import logging

import anthropic
import openai
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from quill.config import get_settings

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """The provider rejected the request or returned nothing usable."""


class LLMTransportError(LLMError):
    """Connection failure or 5xx from the provider; safe to retry."""


class LLMTimeoutError(LLMTransportError):
    """The request exceeded its deadline."""


def _get_anthropic_client(timeout: float) -> AsyncAnthropic:
    settings = get_settings()
    # Retries are owned by the caller, not the SDK
    return AsyncAnthropic(api_key=settings.anthropic_api_key, timeout=timeout, max_retries=0)


def _get_openai_client(timeout: float) -> AsyncOpenAI:
    settings = get_settings()
    return AsyncOpenAI(
        base_url=settings.openai_base_url or None,
        api_key=settings.openai_api_key,
        timeout=timeout,
        max_retries=0,
    )


async def _anthropic_completion(
    prompt: str, system: str, model: str, max_tokens: int, temperature: float, timeout: float
) -> str:
    client = _get_anthropic_client(timeout)
    try:
        message = await client.messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )
    except anthropic.APITimeoutError as e:
        raise LLMTimeoutError(f"Anthropic request timed out after {timeout}s") from e
    except anthropic.APIConnectionError as e:
        raise LLMTransportError(f"Anthropic connection error: {e}") from e
    except anthropic.InternalServerError as e:
        raise LLMTransportError(f"Anthropic server error: {e}") from e
    except anthropic.APIError as e:
        raise LLMError(f"Anthropic API error: {e}") from e

    return "".join(block.text for block in message.content if block.type == "text")


async def _openai_completion(
    prompt: str, system: str, model: str, max_tokens: int, temperature: float, timeout: float
) -> str:
    client = _get_openai_client(timeout)
    messages = [{"role": "user", "content": prompt}]
    if system:
        messages.insert(0, {"role": "system", "content": system})
    try:
        response = await client.chat.completions.create(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
    except openai.APITimeoutError as e:
        raise LLMTimeoutError(f"OpenAI request timed out after {timeout}s") from e
    except openai.APIConnectionError as e:
        raise LLMTransportError(f"OpenAI connection error: {e}") from e
    except openai.InternalServerError as e:
        raise LLMTransportError(f"OpenAI server error: {e}") from e
    except openai.APIError as e:
        raise LLMError(f"OpenAI API error: {e}") from e

    if not response.choices:
        return ""
    return response.choices[0].message.content or ""


async def chat_completion(
    prompt: str,
    *,
    system: str = "",
    model: str | None = None,
    max_tokens: int = 1000,
    temperature: float = 0.7,
    timeout: float = 45.0,
) -> str:
    """Run a single chat completion against the configured provider.

    Args:
        prompt: The user message to send.
        system: Optional system instruction.
        model: Override the provider's default model.
        max_tokens: Maximum response tokens.
        temperature: Sampling temperature.
        timeout: Request deadline in seconds.

    Returns:
        The assistant's response text (may be empty).

    Raises:
        LLMTimeoutError: The request timed out.
        LLMTransportError: Connection failure or provider 5xx.
        LLMError: Missing credentials or any other provider error.
    """
    settings = get_settings()
    if not settings.llm_configured:
        raise LLMError(f"No API key configured for LLM provider '{settings.llm_provider}'")

    if settings.llm_provider == "openai":
        model = model or settings.openai_model
        logger.debug("OpenAI completion: model=%s max_tokens=%d", model, max_tokens)
        return await _openai_completion(prompt, system, model, max_tokens, temperature, timeout)

    model = model or settings.anthropic_model
    logger.debug("Anthropic completion: model=%s max_tokens=%d", model, max_tokens)
    return await _anthropic_completion(prompt, system, model, max_tokens, temperature, timeout)
