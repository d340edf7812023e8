# arbsim/metrics.py
from dataclasses import dataclass
from typing import Dict

from .models import Direction, TickResult

class RunStatistics:
    """
    Additive counters for one run, fed one TickResult at a time.
    """
    def __init__(self):
        self.total_profit = 0.0
        self.trade_count = 0
        self.buy_count = 0
        self.sell_count = 0
        self.missed_count = 0
        self.ticks_processed = 0

    def record(self, result: TickResult):
        self.ticks_processed += 1
        if result.missed:
            self.missed_count += 1
            return

        for trade in result.trades:
            self.total_profit += trade.profit
            self.trade_count += 1
            if trade.direction is Direction.A_TO_B:
                self.buy_count += 1
            else:
                self.sell_count += 1

@dataclass(frozen=True, slots=True)
class RunReport:
    """End-of-run summary handed to the reporting layer."""
    wallets: Dict[str, Dict[str, float]]
    initial_base_total: float
    final_base_total: float
    total_profit: float
    trade_count: int
    buy_count: int
    sell_count: int
    missed_count: int
    ticks_processed: int

    @property
    def total_profit_percent(self) -> float:
        if self.initial_base_total == 0:
            return 0.0
        return self.total_profit / self.initial_base_total * 100
