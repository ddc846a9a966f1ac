"""Control loops run concurrently by the Arbitrageur.

- ArbitrageRoutine: spread-triggered paired orders, all markets in parallel
- BalanceRoutine: debounced imbalance correction, markets in sequence
- EmergencyReduceRoutine: margin-driven de-risking of both legs
"""

from arbitrageur.routines.arbitrage import ArbitrageOutcome, ArbitrageRoutine
from arbitrageur.routines.balance import BalanceRoutine
from arbitrageur.routines.base import Routine
from arbitrageur.routines.emergency import EmergencyReduceRoutine

__all__ = [
    "ArbitrageOutcome",
    "ArbitrageRoutine",
    "BalanceRoutine",
    "EmergencyReduceRoutine",
    "Routine",
]
