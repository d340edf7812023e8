# arbsim/execution.py
from .inventory import Wallet
from .models import Direction, PriceTick, TradeRecord

class ExecutionService:
    """
    Applies both legs of a round trip to the two wallets in one step.
    There is no partial fill: either both legs land or the trade is not called.
    """

    def execute(self, direction: Direction, tick: PriceTick, buy_wallet: Wallet, sell_wallet: Wallet,
                amount_x: float, buy_price: float, sell_price: float) -> TradeRecord:
        """
        Spends amount_x base on buy_wallet at buy_price and sells the resulting
        quote on sell_wallet at sell_price.

        Returns:
            TradeRecord with the realized profit in base units.
        """
        amount_y = amount_x / buy_price
        proceeds_x = amount_y * sell_price

        buy_wallet.buy(amount_x, amount_y)
        sell_wallet.sell(amount_y, proceeds_x)

        return TradeRecord(
            direction=direction,
            index=tick.index,
            price_a=tick.price_a,
            price_b=tick.price_b,
            buy_price=buy_price,
            sell_price=sell_price,
            amount_x=amount_x,
            amount_y=amount_y,
            proceeds_x=proceeds_x,
            profit=proceeds_x - amount_x,
        )
