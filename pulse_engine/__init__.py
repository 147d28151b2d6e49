"""
Crypto Pulse Engine
─────────────────────
Background refresh engine behind the Crypto Pulse dashboard:
exchange depth, AI price predictions and news impact, refreshed
on a fixed cadence and served from per-source caches.

    from pulse_engine.orchestrator import start_cron_jobs, stop_cron_jobs
"""

__version__ = "1.0.0"
