"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

# OpenAI Assistants API (from env)
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_URL: str = os.getenv("OPENAI_URL", "https://api.openai.com").strip().rstrip("/") or "https://api.openai.com"
OPENAI_ASSISTANT_MODEL: str = os.getenv("OPENAI_ASSISTANT_MODEL", "gpt-4o").strip() or "gpt-4o"

# Per-request HTTP timeout against the assistant API (seconds)
OPENAI_API_TIMEOUT: float = _env_float("OPENAI_API_TIMEOUT", 30.0)

# Prepended to every assistant name, e.g. "[TEST]". Empty disables it.
AGENT_NAME_PREFIX: str = os.getenv("AGENT_NAME_PREFIX", "").strip()

# SQLite file for agents and conversations (relative to project root unless absolute)
DATABASE_PATH: str = os.getenv("DATABASE_PATH", "data/agents.db").strip() or "data/agents.db"

# Daily error log files: errors/YYYY-MM-DD.txt
ERROR_LOG_DIR: str = os.getenv("ERROR_LOG_DIR", "errors").strip() or "errors"
ERROR_LOG_DAYS_TO_KEEP: int = _env_int("ERROR_LOG_DAYS_TO_KEEP", 5)

# Message exchange (seconds unless noted)
JOB_POLL_INTERVAL: float = _env_float("JOB_POLL_INTERVAL", 5.0)
JOB_MAX_WAIT: float = _env_float("JOB_MAX_WAIT", 300.0)
STATUS_FETCH_ATTEMPTS: int = _env_int("STATUS_FETCH_ATTEMPTS", 3)
ANSWER_MAX_ATTEMPTS: int = _env_int("ANSWER_MAX_ATTEMPTS", 5)
ANSWER_RETRY_DELAY: float = _env_float("ANSWER_RETRY_DELAY", 5.0)
EXCHANGE_TIMEOUT: float = _env_float("EXCHANGE_TIMEOUT", 600.0)

# Page sizes for thread message listing
MESSAGE_LIST_LIMIT: int = _env_int("MESSAGE_LIST_LIMIT", 20)
HISTORY_LIMIT: int = _env_int("HISTORY_LIMIT", 10)
