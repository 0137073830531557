from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class LLMConfig:
    api_key: str = os.getenv("GROQ_API_KEY", "")
    base_url: str | None = os.getenv("LLM_BASE_URL") or None
    model: str = os.getenv("LLM_MODEL", "llama-3.3-70b-versatile")
    timeout: float = 30.0
    max_tokens: int = 1024
    temperature: float = 0.4
    enabled: bool = True


DEFAULT_LLM_CONFIG = LLMConfig()


def get_llm_config() -> LLMConfig:
    """FastAPI dependency returning the process-wide LLM configuration."""
    return DEFAULT_LLM_CONFIG
