"""
ai/base.py
Author: Yang
Description: Vision model clients — OpenAI and Gemini over plain HTTP (requests),
             Anthropic through its SDK.  All ai/* modules call call_vision()
             so provider dispatch lives in one place.
"""

import logging

import anthropic
import requests

from config import HTTP_TIMEOUT

logger = logging.getLogger(__name__)

_OPENAI_URL = "https://api.openai.com/v1/chat/completions"
_GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class VisionAPIError(Exception):
    """A provider call failed or returned an unusable body."""


def _error_message(response, default: str = "Unknown error") -> str:
    try:
        return response.json().get("error", {}).get("message") or default
    except (ValueError, AttributeError):
        return default


def call_openai_vision(api_key: str, model: str, prompt: str, base64_image: str,
                       max_tokens: int, temperature: float) -> str:
    payload = {
        "model": model,
        "messages": [{
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {
                    "url":    f"data:image/png;base64,{base64_image}",
                    "detail": "high",
                }},
            ],
        }],
        "max_tokens":  max_tokens,
        "temperature": temperature,
    }
    resp = requests.post(
        _OPENAI_URL,
        headers={"Content-Type": "application/json",
                 "Authorization": f"Bearer {api_key}"},
        json=payload,
        timeout=HTTP_TIMEOUT,
    )
    if not resp.ok:
        raise VisionAPIError(f"OpenAI API error ({resp.status_code}): {_error_message(resp)}")

    try:
        return resp.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise VisionAPIError("Invalid response from OpenAI API") from e


def call_gemini_vision(api_key: str, model: str, prompt: str, base64_image: str,
                       max_tokens: int, temperature: float) -> str:
    payload = {
        "contents": [{
            "parts": [
                {"text": prompt},
                {"inline_data": {"mime_type": "image/png", "data": base64_image}},
            ],
        }],
        "generationConfig": {"maxOutputTokens": max_tokens, "temperature": temperature},
    }
    resp = requests.post(
        _GEMINI_URL.format(model=model),
        params={"key": api_key},
        headers={"Content-Type": "application/json"},
        json=payload,
        timeout=HTTP_TIMEOUT,
    )
    if not resp.ok:
        message = _error_message(resp)
        if resp.status_code == 429:
            message = (
                "Quota exceeded. Switch to a Flash model or wait a few minutes "
                "and try again (quota: https://ai.google.dev/gemini-api/docs/quota). "
                f"Original error: {message}"
            )
        raise VisionAPIError(f"Gemini API error ({resp.status_code}): {message}")

    try:
        return resp.json()["candidates"][0]["content"]["parts"][0]["text"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise VisionAPIError("Invalid response from Gemini API") from e


def call_anthropic_vision(api_key: str, model: str, prompt: str, base64_image: str,
                          max_tokens: int, temperature: float) -> str:
    client = anthropic.Anthropic(api_key=api_key, timeout=HTTP_TIMEOUT)
    try:
        response = client.messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "image", "source": {
                        "type": "base64", "media_type": "image/png", "data": base64_image,
                    }},
                    {"type": "text", "text": prompt},
                ],
            }],
        )
    except anthropic.APIStatusError as e:
        raise VisionAPIError(f"Anthropic API error ({e.status_code}): {e.message}") from e
    except anthropic.APIError as e:
        raise VisionAPIError(f"Anthropic API error: {e}") from e

    if not response.content:
        raise VisionAPIError("Invalid response from Anthropic API")
    return response.content[0].text


_PROVIDERS = {
    "openai":    call_openai_vision,
    "gemini":    call_gemini_vision,
    "anthropic": call_anthropic_vision,
}


def call_vision(provider: str, api_key: str, model: str, prompt: str,
                base64_image: str, max_tokens: int, temperature: float) -> str:
    """
    Send one prompt + PNG image to *provider* and return the raw text reply.
    Raises VisionAPIError — callers should handle exceptions.
    """
    handler = _PROVIDERS.get(provider)
    if handler is None:
        raise VisionAPIError(f"Unsupported provider: {provider}")
    try:
        return handler(api_key, model, prompt, base64_image, max_tokens, temperature)
    except requests.RequestException as e:
        raise VisionAPIError(f"{provider} request failed: {e}") from e
