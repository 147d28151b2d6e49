"""
Crypto Pulse — Runtime Configuration
──────────────────────────────────────
Everything tunable lives here. Values come from the environment
(or a local .env file) with sensible defaults for local runs.

Environment variables:
  ANTHROPIC_API_KEY  — enables AI predictions (disabled when empty)
  LLM_MODEL          — Anthropic model id
  NEWS_API_KEY       — NewsAPI key (news predictions empty when unset)
  REDIS_URL          — durable prediction/strategy storage
  REQUEST_TIMEOUT    — seconds per upstream HTTP call
  LLM_TIMEOUT        — seconds per model call
  CRON_ENABLED       — "0" disables the refresh scheduler
  CRON_INTERVAL_S    — seconds between refresh cycles
  CRON_WARMUP_S      — delay before the first cycle after start
  LOG_LEVEL          — INFO by default
  PORT               — HTTP port for `python app.py`
"""

import os

from dotenv import load_dotenv

load_dotenv()

ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
LLM_MODEL         = os.getenv("LLM_MODEL", "claude-sonnet-4-20250514")
NEWS_API_KEY      = os.getenv("NEWS_API_KEY", "")
REDIS_URL         = os.getenv("REDIS_URL", "redis://localhost:6379")

REQUEST_TIMEOUT   = float(os.getenv("REQUEST_TIMEOUT", "8"))
LLM_TIMEOUT       = float(os.getenv("LLM_TIMEOUT", "30"))

CRON_ENABLED      = os.getenv("CRON_ENABLED", "1") not in ("0", "false", "False", "")
CRON_INTERVAL_S   = int(os.getenv("CRON_INTERVAL_S", "60"))
CRON_WARMUP_S     = float(os.getenv("CRON_WARMUP_S", "3"))

LOG_LEVEL         = os.getenv("LOG_LEVEL", "INFO").upper()
PORT              = int(os.getenv("PORT", "8000"))

# Fixed universe. Changing it is a code change, not a runtime setting.
TRACKED_ASSETS = ("BTC", "ETH", "SOL", "BNB", "DOGE")

# How many headlines go to the model per news refresh
NEWS_TOP_N = 8
