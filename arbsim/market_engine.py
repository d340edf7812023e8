# arbsim/market_engine.py
import logging
import random
from typing import Dict, List, Optional, Tuple

from .errors import ConfigurationError
from .models import OrderbookSnapshot
from .orderbook import aligned_series, load_snapshots
from .store import OrderbookStore

Series = Tuple[List[float], List[float]]

def simulate_prices(initial_price: float = 100.0, fluctuation_chance: float = 0.5,
                    num_prices: int = 100, seed: Optional[int] = None) -> Series:
    """
    Two independent random walks starting at the same price.
    Each step moves up with probability `fluctuation_chance` by uniform(0, 2),
    otherwise down by the same kind of amount. Values are kept to 2 decimals.
    """
    rng = random.Random(seed)
    prices_a: List[float] = []
    prices_b: List[float] = []
    price_a = price_b = float(initial_price)

    for _ in range(num_prices):
        price_a += (1 if rng.random() < fluctuation_chance else -1) * (rng.random() * 2)
        price_b += (1 if rng.random() < fluctuation_chance else -1) * (rng.random() * 2)
        prices_a.append(round(price_a, 2))
        prices_b.append(round(price_b, 2))

    return prices_a, prices_b

class MarketEngine:
    """
    Supplies the two tick-aligned price series a run replays.
    Either a seeded random walk or mid prices rebuilt from collected orderbooks.
    """
    def __init__(self, config: dict, logger: logging.Logger):
        self.cfg = config
        self.logger = logger

    def simulated_series(self) -> Series:
        sim = self.cfg.get('simulation') or {}
        try:
            series = simulate_prices(
                initial_price=float(sim.get('initial_price', 100.0)),
                fluctuation_chance=float(sim.get('fluctuation_chance', 0.5)),
                num_prices=int(sim.get('num_prices', 100)),
                seed=sim.get('seed'),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid 'simulation' section: {e}") from e

        self.logger.info(f"📈 Simulated {len(series[0])} ticks (seed={sim.get('seed')})")
        return series

    def _store(self) -> OrderbookStore:
        db_path = (self.cfg.get('collector') or {}).get('database', './arbitrage.db')
        return OrderbookStore(db_path)

    def stored_venues(self) -> List[str]:
        with self._store() as store:
            return store.venues()

    def stored_snapshots(self) -> Dict[str, List[OrderbookSnapshot]]:
        with self._store() as store:
            return load_snapshots(store, self.logger)

    def stored_series(self, venue_a: str, venue_b: str) -> Series:
        snapshots = self.stored_snapshots()
        series = aligned_series(snapshots, venue_a, venue_b)
        self.logger.info(f"📚 Rebuilt {len(series[0])} ticks for {venue_a.upper()} / {venue_b.upper()}")
        return series
