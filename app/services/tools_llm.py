from __future__ import annotations

import json
import logging
import os
import re
import time
import uuid
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from openai import OpenAI

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "y", "on"}
_PLACEHOLDER_PREFIXES = ("your_", "replace_", "changeme")
_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class ToolsLLMError(RuntimeError):
    def __init__(self, message: str, *, code: str = "llm_unavailable"):
        super().__init__(message)
        self.code = code


def _api_key() -> str:
    return (os.getenv("OPENAI_API_KEY") or "").strip()


def tools_llm_enabled() -> bool:
    flag = (os.getenv("TOOLS_LLM_ENABLED") or "1").strip().lower()
    if flag not in _TRUTHY:
        return False
    key = _api_key()
    return bool(key) and not key.lower().startswith(_PLACEHOLDER_PREFIXES)


@lru_cache(maxsize=1)
def _client() -> OpenAI:
    return OpenAI(
        api_key=_api_key(),
        base_url=os.getenv("OPENAI_BASE_URL") or None,
        timeout=float(os.getenv("TOOLS_LLM_TIMEOUT_S", "60")),
        max_retries=int(os.getenv("OPENAI_MAX_RETRIES", "2")),
    )


def _model() -> str:
    return (os.getenv("AI_MODEL") or os.getenv("OPENAI_MODEL") or "gpt-4o-mini").strip()


def parse_json_object(content: str) -> dict[str, Any]:
    """Parse a model reply that may be wrapped in markdown fences or surrounding prose.

    Raises ``ValueError`` when no JSON object can be recovered.
    """
    cleaned = _FENCE_RE.sub("", (content or "").strip())
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("response did not contain a JSON object") from None
        parsed = json.loads(cleaned[start : end + 1])
    if not isinstance(parsed, dict):
        raise ValueError("response must be a JSON object")
    return parsed


@dataclass
class _Run:
    tool_slug: str
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    started: float = field(default_factory=time.perf_counter)

    def log(self, status: str, error_code: str | None = None) -> None:
        logger.info(
            "llm_run run_id=%s tool=%s model=%s status=%s error_code=%s latency_ms=%s",
            self.run_id,
            self.tool_slug,
            _model(),
            status,
            error_code,
            int((time.perf_counter() - self.started) * 1000),
        )


def json_completion(
    *,
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.0,
    max_output_tokens: int = 4000,
    tool_slug: str = "unknown",
) -> dict[str, Any] | None:
    run = _Run(tool_slug=tool_slug)
    if not tools_llm_enabled():
        run.log("skipped", "llm_disabled")
        return None

    try:
        response = _client().chat.completions.create(
            model=_model(),
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            response_format={"type": "json_object"},
            max_tokens=max_output_tokens,
        )
    except Exception as exc:  # noqa: BLE001 - callers decide whether a missing payload is fatal
        logger.warning("tools_llm_request_failed tool=%s prompt_len=%s: %s", tool_slug, len(user_prompt), exc)
        run.log("error", "llm_exception")
        return None

    content = response.choices[0].message.content if response.choices else ""
    if not content:
        run.log("empty", "empty_response")
        return None

    try:
        parsed = parse_json_object(content)
    except ValueError as exc:
        logger.warning("tools_llm_invalid_json tool=%s: %s", tool_slug, exc)
        run.log("invalid_schema", "invalid_schema")
        return None

    run.log("success")
    return parsed


def json_completion_required(
    *,
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.0,
    max_output_tokens: int = 4000,
    tool_slug: str = "unknown",
) -> dict[str, Any]:
    if not tools_llm_enabled():
        raise ToolsLLMError("Resume analysis requires an LLM but none is configured.", code="llm_disabled")

    payload = json_completion(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        temperature=temperature,
        max_output_tokens=max_output_tokens,
        tool_slug=tool_slug,
    )
    if not payload:
        raise ToolsLLMError("The AI service could not produce a valid response. Try again.", code="llm_invalid")
    return payload
