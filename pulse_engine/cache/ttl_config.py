"""
Crypto Pulse — TTL Configuration
─────────────────────────────────
Single source of truth for all cache durations.
Organised by data source — how fast the upstream actually changes
and how expensive it is to ask again.
"""

# ── Per data-source TTL (seconds) ─────────────────────────────

TTL = {
    # Fast-changing, refreshed every scheduler cycle
    "exchange_depth":    60,        # 1 minute  (order book + long/short)
    "fear_greed":        50,        # just under one cycle, shared by all assets

    # Model-backed: each refresh costs a completion
    "news_predictions":  10 * 60,   # 10 minutes
    "prediction_memory": 5 * 60,    # in-process front cache for predictions
    "prediction_fresh":  10 * 60,   # stored prediction still counts as fresh

    # Derived views served to the dashboard
    "market_views":      5 * 60,    # 5 minutes
}

# ── Prediction lifecycle ──────────────────────────────────────
# Stored predictions older than this are deleted by the cleanup phase
PREDICTION_RETENTION_S = 12 * 3600
