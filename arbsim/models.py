# arbsim/models.py
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

class Direction(Enum):
    """
    Which venue the base asset is spent on and which one it is recovered on.
    """
    A_TO_B = "A->B"
    B_TO_A = "B->A"

@dataclass(frozen=True, slots=True)
class PriceTick:
    """
    One index-aligned observation of both venues.
    """
    index: int
    price_a: float
    price_b: float

@dataclass(frozen=True, slots=True)
class TradeRecord:
    """
    A completed round trip. Prices are the raw venue quotes, buy_price/sell_price
    are the fee-adjusted ones the trade actually used.
    """
    direction: Direction
    index: int
    price_a: float
    price_b: float
    buy_price: float
    sell_price: float
    amount_x: float
    amount_y: float
    proceeds_x: float
    profit: float

    @property
    def profit_percent(self) -> float:
        if self.amount_x == 0:
            return 0.0
        return self.profit / self.amount_x * 100

@dataclass(frozen=True, slots=True)
class TickResult:
    """What a single engine step produced."""
    tick: PriceTick
    trades: Tuple[TradeRecord, ...] = ()

    @property
    def missed(self) -> bool:
        return not self.trades

@dataclass(frozen=True, slots=True)
class BookLevel:
    price: float
    amount: float

@dataclass(frozen=True, slots=True)
class OrderbookSnapshot:
    """
    Normalized top-of-book for one venue at one collection date.
    """
    name: str
    date: str
    ask: Optional[BookLevel]
    bid: Optional[BookLevel]

    @property
    def mid_price(self) -> float:
        return (self.ask.price + self.bid.price) / 2

    @property
    def spread_percent(self) -> float:
        return (self.ask.price - self.bid.price) / self.bid.price * 100
