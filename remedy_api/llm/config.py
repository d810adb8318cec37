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
    model: str = os.getenv("LLM_MODEL") or "llama-3.3-70b-versatile"
    base_url: str | None = os.getenv("LLM_BASE_URL") or None
    timeout: float = 30.0
    max_tokens: int = 2048
    temperature: float = 0.3


DEFAULT_LLM_CONFIG = LLMConfig()
