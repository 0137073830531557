from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from groq import Groq

from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class LLMResult(Generic[T]):
    """Outcome of a single best-effort LLM call.

    Exactly one of ``value`` / ``error`` is meaningful. Callers check
    ``ok`` and substitute their own default on failure.
    """

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "LLMResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "LLMResult[T]":
        return cls(error=error)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok and self.value is not None else default


def _client(config: LLMConfig) -> Groq:
    # Each external call is attempted exactly once.
    return Groq(
        api_key=config.api_key,
        base_url=config.base_url,
        timeout=config.timeout,
        max_retries=0,
    )


def _unavailable(config: LLMConfig) -> str | None:
    if not config.enabled:
        return "LLM disabled"
    if not config.api_key:
        return "LLM API key is not configured"
    return None


def chat_completion(
    system_prompt: str,
    user_prompt: str,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> LLMResult[str]:
    """Plain chat call. Returns the assistant text (possibly empty)."""
    reason = _unavailable(config)
    if reason:
        return LLMResult.failure(reason)

    try:
        response = _client(config).chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )
        return LLMResult.success(response.choices[0].message.content or "")

    except Exception as exc:
        logger.warning("LLM chat completion failed", exc_info=True)
        return LLMResult.failure(str(exc) or exc.__class__.__name__)


def tool_call(
    system_prompt: str,
    user_prompt: str,
    tool_name: str,
    tool_description: str,
    parameters: dict[str, Any],
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> LLMResult[dict[str, Any]]:
    """
    Force the model to answer through a single function tool.

    Returns the decoded tool arguments. Any API error, missing tool call or
    malformed JSON arguments yields a failed result.
    """
    reason = _unavailable(config)
    if reason:
        return LLMResult.failure(reason)

    try:
        response = _client(config).chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            tools=[{
                "type": "function",
                "function": {
                    "name": tool_name,
                    "description": tool_description,
                    "parameters": parameters,
                },
            }],
            tool_choice={"type": "function", "function": {"name": tool_name}},
        )

        tool_calls = response.choices[0].message.tool_calls or []
        if not tool_calls or not tool_calls[0].function.arguments:
            logger.warning("LLM response carried no %s tool call", tool_name)
            return LLMResult.failure(f"no {tool_name} tool call in response")

        arguments = json.loads(tool_calls[0].function.arguments)
        if not isinstance(arguments, dict):
            return LLMResult.failure(f"{tool_name} arguments are not an object")
        return LLMResult.success(arguments)

    except Exception as exc:
        logger.warning("LLM %s tool call failed", tool_name, exc_info=True)
        return LLMResult.failure(str(exc) or exc.__class__.__name__)
