# arbsim/inventory.py
import logging
from typing import Dict, Optional

from .errors import ConfigurationError

class Wallet:
    """
    Base (X) and quote (Y) balances held on one venue.
    Balances are allowed to go negative; the engine gates on trade size only.
    """
    def __init__(self, base: float = 100.0, quote: float = 100.0):
        self.base = float(base)
        self.quote = float(quote)
        self.initial_base = self.base
        self.initial_quote = self.quote

    def buy(self, amount_x: float, amount_y: float):
        """Buy leg: spend base, receive quote."""
        self.base -= amount_x
        self.quote += amount_y

    def sell(self, amount_y: float, amount_x: float):
        """Sell leg: give up quote, receive base."""
        self.quote -= amount_y
        self.base += amount_x

    def __repr__(self) -> str:
        return f"Wallet(base={self.base:.4f}, quote={self.quote:.4f})"

class InventoryEngine:
    """
    Owns the two venue wallets for a single run.
    """
    def __init__(self, wallet_a: Wallet, wallet_b: Wallet, logger: Optional[logging.Logger] = None):
        self.wallet_a = wallet_a
        self.wallet_b = wallet_b
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: dict, logger: Optional[logging.Logger] = None) -> "InventoryEngine":
        # { 'a': {'base': 100, 'quote': 100}, 'b': {...} }
        wallets = config.get('wallets') or {}
        try:
            built = {}
            for venue in ('a', 'b'):
                conf = wallets.get(venue) or {}
                built[venue] = Wallet(conf.get('base', 100.0), conf.get('quote', 100.0))
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"Invalid 'wallets' section: {e}") from e
        return cls(built['a'], built['b'], logger)

    @property
    def state(self) -> Dict[str, Dict[str, float]]:
        return {
            'A': {'base': self.wallet_a.base, 'quote': self.wallet_a.quote},
            'B': {'base': self.wallet_b.base, 'quote': self.wallet_b.quote},
        }

    def initial_base_total(self) -> float:
        return self.wallet_a.initial_base + self.wallet_b.initial_base

    def get_grand_total_base(self) -> float:
        """Combined base balance across both venues. Quote holdings are not priced in."""
        return self.wallet_a.base + self.wallet_b.base
