"""Helpers shared by the OpenAI-backed adapters."""

from __future__ import annotations

from typing import Any

from openai import OpenAI


def build_client(api_key: str | None = None, timeout: float = 20.0) -> OpenAI:
    # ``api_key=None`` lets the library read OPENAI_API_KEY itself.
    return OpenAI(api_key=api_key, timeout=timeout)


def json_schema_format(name: str, schema: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {"name": name, "strict": True, "schema": schema},
    }


def first_message_content(response: Any) -> str | None:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if not content or not content.strip():
        return None
    return content
