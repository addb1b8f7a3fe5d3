"""
LLM inference client for question generation.

Talks to an Ollama-compatible server (``{llm_base_url}/api/chat``) in JSON
mode. The model name comes from settings; with no model configured every
call raises LLMUnavailableError so callers can take their offline path.

Usage:
    result_dict = await chat_json(system_prompt, user_prompt)
"""
from __future__ import annotations

import json
import logging

import httpx

from ssatprep.config import settings

logger = logging.getLogger(__name__)


class LLMUnavailableError(Exception):
    """Raised when no model is configured or the server cannot be reached."""


def _strip_code_fence(content: str) -> str:
    text = content.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


async def chat_json(
    system_prompt: str,
    user_prompt: str,
    max_tokens: int = 1024,
) -> dict:
    """
    Send a chat request to the LLM expecting JSON output.

    Returns a parsed dict.
    Raises LLMUnavailableError if no model is configured or the request fails.
    Raises json.JSONDecodeError if the model returns invalid JSON (caller handles).
    """
    if not settings.llm_model:
        raise LLMUnavailableError("No LLM configured: set SSATPREP_LLM_MODEL.")

    payload = {
        "model": settings.llm_model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "format": "json",
        "stream": False,
        "options": {"num_predict": max_tokens},
    }
    try:
        async with httpx.AsyncClient(base_url=settings.llm_base_url) as client:
            res = await client.post(
                "/api/chat",
                json=payload,
                timeout=settings.llm_timeout_seconds,
            )
            res.raise_for_status()
            content = res.json()["message"]["content"]
    except (httpx.HTTPError, KeyError) as e:
        logger.warning("LLM request to %s failed: %s", settings.llm_base_url, e)
        raise LLMUnavailableError(f"LLM request failed: {e}") from e

    return json.loads(_strip_code_fence(content))
