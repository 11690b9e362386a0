"""Lightweight OpenAI client helper.

Centralises API-key handling so the rest of the codebase can simply do:

    from survey_reports.openai_client import chat_completion

and get back a plain ``dict`` shaped like ``{"choices": [{"message":
{"content": ...}}]}``.
"""
from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from openai import OpenAI


class OpenAIClientError(RuntimeError):
    """Raised when client configuration is invalid (e.g., missing API key)."""


_DEFAULT_MODEL = "gpt-4.1"

_client: Optional[OpenAI] = None


def _ensure_api_key_present() -> str:
    """Return the ``OPENAI_API_KEY`` env var or raise.

    Raises
    ------
    OpenAIClientError
        If the env var is missing or empty.
    """

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise OpenAIClientError("OPENAI_API_KEY environment variable is not set.")
    return api_key


def get_openai_client() -> OpenAI:
    """Return a configured :class:`openai.OpenAI` client, reused across calls."""

    global _client
    if _client is None:
        _client = OpenAI(
            api_key=_ensure_api_key_present(),
            organization=os.getenv("OPENAI_ORG") or None,
        )
    return _client


def reset_client() -> None:
    """Forget the cached client (used when credentials change)."""

    global _client
    _client = None


def chat_completion(
    messages: List[Dict[str, str]],
    *,
    model: Optional[str] = None,
    **kwargs: Any,
) -> Dict[str, Any]:
    """Wrapper around ``client.chat.completions.create`` with sane defaults.

    Parameters
    ----------
    messages
        Chat messages in OpenAI format.
    model
        Model id to use (default: ``OPENAI_MODEL`` or ``gpt-4.1``).
    kwargs
        Additional parameters forwarded to ``chat.completions.create``.
    """

    client = get_openai_client()
    completion = client.chat.completions.create(
        model=model or os.getenv("OPENAI_MODEL", _DEFAULT_MODEL),
        messages=messages,  # type: ignore[arg-type]
        **kwargs,
    )
    choices = [
        {"message": {"content": choice.message.content}}
        for choice in completion.choices
    ]
    return {"choices": choices, "model": completion.model}
