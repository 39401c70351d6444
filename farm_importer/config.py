from __future__ import annotations

import os

# ================================
# ENV VARIABLES
# ================================
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
YOUTUBE_API_KEY = os.getenv("YOUTUBE_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")

PORT = int(os.getenv("PORT", "10000"))


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Seconds between two consecutive extraction calls
PACING_DELAY_SECONDS = _float_env("PACING_DELAY_SECONDS", 1.0)

# Applies to every outbound call (YouTube listing and OpenAI)
REQUEST_TIMEOUT_SECONDS = _float_env("REQUEST_TIMEOUT_SECONDS", 30.0)

# Heuristic scores: a clean extraction always scores higher than a fallback
BASE_CONFIDENCE = _float_env("BASE_CONFIDENCE", 0.8)
FALLBACK_CONFIDENCE = _float_env("FALLBACK_CONFIDENCE", 0.3)
