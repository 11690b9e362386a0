"""OpenAI-powered theme extraction for free-text answer comments."""
from __future__ import annotations

import json
import re
from typing import Any, List

from survey_reports.openai_client import chat_completion

# Regex to capture the first JSON array in the model response (robust to extra text)
_RESPONSE_RE = re.compile(r"\[[^\]]*\]")


def _parse_response(content: str) -> List[str]:
    """Return list of themes from the raw model *content* string."""

    match = _RESPONSE_RE.search(content)
    if not match:
        raise ValueError("Model response did not contain a JSON array")

    try:
        data: Any = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ValueError("Failed to parse JSON from model response") from exc

    if not isinstance(data, list) or not all(isinstance(x, str) for x in data):
        raise ValueError("JSON payload was not an array of strings")

    return data


_PROMPT_SYSTEM = (
    "You are an analyst reviewing feedback about a meeting. Given comments "
    "left next to 1-4 ratings, identify the recurring *themes* (for example "
    '"unclear agenda" or "good moderation"). Respond ONLY with a minified JSON '
    "array of short noun phrases. Do not include any other keys or text."
)


def extract_comment_themes(
    comments: List[str], *, max_themes: int = 5, temperature: float = 0.0
) -> List[str]:
    """Extract up to *max_themes* themes from answer *comments*.

    Returns an empty list without calling OpenAI when there are no comments.
    Raises ``ValueError`` if the model reply cannot be parsed.
    """

    if not comments:
        return []

    joined = "\n".join(f"- {line}" for line in comments)
    user_prompt = (
        f"Please extract up to {max_themes} themes from the following meeting "
        "feedback comments. Return ONLY a JSON array of strings.\n\nComments:\n"
        + joined
    )

    messages = [
        {"role": "system", "content": _PROMPT_SYSTEM},
        {"role": "user", "content": user_prompt},
    ]

    response = chat_completion(messages, temperature=temperature)
    content: str = response["choices"][0]["message"]["content"]
    return _parse_response(content)[:max_themes]
