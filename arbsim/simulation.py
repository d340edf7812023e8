# arbsim/simulation.py
import logging
from typing import Iterator, List, Optional, Sequence, Tuple

from .errors import InputError
from .execution import ExecutionService
from .inventory import InventoryEngine, Wallet
from .metrics import RunReport, RunStatistics
from .models import PriceTick, TickResult, TradeRecord
from .risk_engine import RiskEngine, TradingParams
from .strategy import StrategyEngine

class SimulationRun:
    """
    One self-contained replay: its own wallets, statistics and trade log.
    Runs share nothing, so independent runs can execute side by side; ticks
    within a run are strictly sequential.
    """
    def __init__(self, params: Optional[TradingParams] = None,
                 wallet_a: Optional[Wallet] = None, wallet_b: Optional[Wallet] = None,
                 logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.risk = RiskEngine(params or TradingParams(), self.logger)
        self.inventory = InventoryEngine(wallet_a or Wallet(), wallet_b or Wallet(), self.logger)
        self.strategy = StrategyEngine(self.risk, self.inventory, ExecutionService(), self.logger)
        self.stats = RunStatistics()
        self.results: List[TickResult] = []
        self.series_a: Tuple[float, ...] = ()
        self.series_b: Tuple[float, ...] = ()

    @classmethod
    def from_config(cls, config: dict, logger: Optional[logging.Logger] = None) -> "SimulationRun":
        params = TradingParams.from_config(config)
        inventory = InventoryEngine.from_config(config, logger)
        return cls(params, inventory.wallet_a, inventory.wallet_b, logger)

    @property
    def trades(self) -> List[TradeRecord]:
        return [trade for result in self.results for trade in result.trades]

    def step(self, tick: PriceTick) -> TickResult:
        result = self.strategy.on_tick(tick)
        self.stats.record(result)
        self.results.append(result)
        return result

    def iter_ticks(self, series_a: Sequence[float], series_b: Sequence[float]) -> Iterator[TickResult]:
        """
        Replays both series index by index, yielding each TickResult as soon as
        it is settled. Length mismatch fails before the first tick.
        """
        if len(series_a) != len(series_b):
            raise InputError(f"Price series length mismatch: A has {len(series_a)}, B has {len(series_b)}")

        self.series_a = tuple(series_a)
        self.series_b = tuple(series_b)
        for i, (price_a, price_b) in enumerate(zip(self.series_a, self.series_b)):
            yield self.step(PriceTick(i, price_a, price_b))

    def run(self, series_a: Sequence[float], series_b: Sequence[float]) -> RunReport:
        for result in self.iter_ticks(series_a, series_b):
            for trade in result.trades:
                self.log_trade(trade)
        return self.report()

    def log_trade(self, trade: TradeRecord):
        self.logger.info(
            f"{trade.direction.value} @ idx {trade.index} | Size: {trade.amount_x:.2f} | "
            f"Profit: {trade.profit:.4f} ({trade.profit_percent:.2f}%)"
        )

    def report(self) -> RunReport:
        s = self.stats
        return RunReport(
            wallets=self.inventory.state,
            initial_base_total=self.inventory.initial_base_total(),
            final_base_total=self.inventory.get_grand_total_base(),
            total_profit=s.total_profit,
            trade_count=s.trade_count,
            buy_count=s.buy_count,
            sell_count=s.sell_count,
            missed_count=s.missed_count,
            ticks_processed=s.ticks_processed,
        )
