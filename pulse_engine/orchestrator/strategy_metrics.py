"""
Crypto Pulse — Strategy Metric Drift
─────────────────────────────────────
SIMULATED. Strategy cards show AUM, win rate and monthly return
that drift a little every cycle so the dashboard looks alive.
None of these numbers come from real trading.

  totalAum       *= 1 + U(−0.008, +0.012)     floor 10,000
  winRate        += U(−0.25,  +0.35)           clamp 60 – 99.9
  monthlyReturn  += U(−0.6,   +0.9)            clamp −10 – 120

Values are written back as 2-decimal strings.
"""

import random
from typing import Dict, Optional

from pulse_engine.models import Strategy

AUM_FLOOR          = 10_000.0
WIN_RATE_RANGE     = (60.0, 99.9)
MONTHLY_RET_RANGE  = (-10.0, 120.0)


def _num(raw: str, default: float = 0.0) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return default


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def drift_strategy(strategy: Strategy, rng: Optional[random.Random] = None) -> Dict[str, str]:
    """Patch for one random-walk step."""
    rng = rng or random.Random()

    aum = _num(strategy.total_aum)
    aum = max(AUM_FLOOR, aum + aum * rng.uniform(-0.008, 0.012))

    win_rate = _clamp(_num(strategy.win_rate, 50.0) + rng.uniform(-0.25, 0.35), *WIN_RATE_RANGE)
    monthly  = _clamp(_num(strategy.monthly_return) + rng.uniform(-0.6, 0.9), *MONTHLY_RET_RANGE)

    return {
        "totalAum":      f"{aum:.2f}",
        "winRate":       f"{win_rate:.2f}",
        "monthlyReturn": f"{monthly:.2f}",
    }
