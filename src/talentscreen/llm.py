"""LLM completion client and JSON response handling."""

from __future__ import annotations

import json
from typing import Any, Protocol, runtime_checkable

import structlog
from openai import OpenAI
from pydantic import TypeAdapter, ValidationError

JSON_ONLY_SUFFIX = "\n\nIMPORTANT: Output ONLY valid JSON. No markdown, no explanation."


class InvalidResponse(ValueError):
    """Raised when an LLM response is empty, not JSON, or fails validation."""


@runtime_checkable
class CompletionClient(Protocol):
    """Submit a policy prompt plus a JSON payload, receive raw text."""

    def complete(self, system_prompt: str, payload: dict[str, Any]) -> str:
        ...


class OpenAIChatClient:
    """Chat-completions client for any OpenAI-compatible endpoint (OpenRouter by default)."""

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str,
        base_url: str | None = None,
        timeout: float = 120.0,
        app_url: str | None = None,
        app_title: str | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url
        self._timeout = timeout
        self._headers = {
            key: value
            for key, value in (("HTTP-Referer", app_url), ("X-Title", app_title))
            if value
        }
        self._client: OpenAI | None = None
        self._logger = structlog.get_logger(__name__)

    def _get_client(self) -> OpenAI:
        # Built on first use so a missing key only fails the calls that need it.
        if self._client is None:
            self._client = OpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self._timeout,
                default_headers=self._headers or None,
            )
        return self._client

    def complete(self, system_prompt: str, payload: dict[str, Any]) -> str:
        completion = self._get_client().chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": system_prompt + JSON_ONLY_SUFFIX},
                {"role": "user", "content": json.dumps(payload, ensure_ascii=False, indent=2)},
            ],
        )
        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise InvalidResponse("No content received from model")
        self._logger.debug("llm.completed", model=self._model, length=len(content))
        return content


def strip_json_fences(content: str) -> str:
    """Return the body of a ```json (or bare ```) fenced block, else the text."""
    for marker in ("```json", "```"):
        start = content.find(marker)
        if start == -1:
            continue
        end = content.find("```", start + len(marker))
        if end != -1:
            return content[start + len(marker) : end].strip()
        break
    return content.strip()


def parse_json_object(content: str) -> dict[str, Any]:
    try:
        parsed = json.loads(strip_json_fences(content))
    except json.JSONDecodeError as exc:
        raise InvalidResponse(f"Response is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise InvalidResponse("Response JSON must be an object")
    return parsed


def request_structured(
    client: CompletionClient,
    system_prompt: str,
    payload: dict[str, Any],
    adapter: TypeAdapter[Any],
) -> Any:
    """Run one completion and validate it; any bad response is InvalidResponse."""
    raw = client.complete(system_prompt, payload)
    data = parse_json_object(raw)
    try:
        return adapter.validate_python(data)
    except ValidationError as exc:
        raise InvalidResponse(f"Response failed schema validation: {exc}") from exc


__all__ = [
    "CompletionClient",
    "InvalidResponse",
    "OpenAIChatClient",
    "parse_json_object",
    "request_structured",
    "strip_json_fences",
]
