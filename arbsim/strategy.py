# arbsim/strategy.py
import logging
from typing import List, Optional

from .execution import ExecutionService
from .inventory import InventoryEngine, Wallet
from .models import Direction, PriceTick, TickResult, TradeRecord
from .risk_engine import RiskEngine

class StrategyEngine:
    """
    Per-tick opportunity detector.

    Each tick checks A->B first and B->A second, against the live wallets.
    The order matters: an A->B fill credits wallet B's base, and the B->A size
    is computed from that updated balance. Both directions may fire on one tick.
    The step does no I/O; callers render the returned TickResult.
    """
    def __init__(self, risk: RiskEngine, inventory: InventoryEngine, execution: ExecutionService,
                 logger: Optional[logging.Logger] = None):
        self.risk = risk
        self.params = risk.params
        self.inventory = inventory
        self.execution = execution
        self.logger = logger or logging.getLogger(__name__)

    def on_tick(self, tick: PriceTick) -> TickResult:
        p = self.params
        trades: List[TradeRecord] = []

        # Buy on A, sell on B
        trade = self.check_direction(
            Direction.A_TO_B, tick,
            buy_quote=tick.price_a, buy_fee=p.fee_a, buy_wallet=self.inventory.wallet_a,
            sell_quote=tick.price_b, sell_fee=p.fee_b, sell_wallet=self.inventory.wallet_b,
            min_amount=p.min_trade_amount_a,
        )
        if trade:
            trades.append(trade)

        # Buy on B, sell on A -- sized after the A->B leg has settled
        trade = self.check_direction(
            Direction.B_TO_A, tick,
            buy_quote=tick.price_b, buy_fee=p.fee_b, buy_wallet=self.inventory.wallet_b,
            sell_quote=tick.price_a, sell_fee=p.fee_a, sell_wallet=self.inventory.wallet_a,
            min_amount=p.min_trade_amount_b,
        )
        if trade:
            trades.append(trade)

        return TickResult(tick=tick, trades=tuple(trades))

    def check_direction(self, direction: Direction, tick: PriceTick,
                        buy_quote: float, buy_fee: float, buy_wallet: Wallet,
                        sell_quote: float, sell_fee: float, sell_wallet: Wallet,
                        min_amount: float) -> Optional[TradeRecord]:
        if not self.risk.validate_price(buy_quote) or not self.risk.validate_price(sell_quote):
            return None

        buy_price = buy_quote * (1 + buy_fee)
        sell_price = sell_quote * (1 - sell_fee)
        amount_x = buy_wallet.base * self.params.trade_percent

        if sell_price > buy_price and amount_x >= min_amount:
            return self.execution.execute(direction, tick, buy_wallet, sell_wallet,
                                          amount_x, buy_price, sell_price)
        return None
