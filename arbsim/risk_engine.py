# arbsim/risk_engine.py
import logging
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError

@dataclass(frozen=True, slots=True)
class TradingParams:
    """
    Fee and sizing parameters shared by both trade directions.
    Fees are proportional (0.005 == 0.5%), minimums are in base units.
    """
    fee_a: float = 0.005
    fee_b: float = 0.005
    trade_percent: float = 0.1
    min_trade_amount_a: float = 2.0
    min_trade_amount_b: float = 2.0

    @classmethod
    def from_config(cls, config: dict) -> "TradingParams":
        section = config.get('trading') or {}
        defaults = cls()
        try:
            return cls(
                fee_a=float(section.get('fee_a', defaults.fee_a)),
                fee_b=float(section.get('fee_b', defaults.fee_b)),
                trade_percent=float(section.get('trade_percent', defaults.trade_percent)),
                min_trade_amount_a=float(section.get('min_trade_amount_a', defaults.min_trade_amount_a)),
                min_trade_amount_b=float(section.get('min_trade_amount_b', defaults.min_trade_amount_b)),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"Invalid 'trading' section: {e}") from e

class RiskEngine:
    """
    Validates parameters up front and screens prices during the run.
    Separates 'Can we trade at these prices?' from finding the trade.
    """
    def __init__(self, params: TradingParams, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.validate_params(params)
        self.params = params

    @staticmethod
    def validate_params(params: TradingParams):
        if not 0 < params.trade_percent <= 1:
            raise ConfigurationError(f"trade_percent must be in (0, 1], got {params.trade_percent}")
        for name in ('fee_a', 'fee_b'):
            fee = getattr(params, name)
            if fee < 0 or fee >= 1:
                raise ConfigurationError(f"{name} must be in [0, 1), got {fee}")
        for name in ('min_trade_amount_a', 'min_trade_amount_b'):
            if getattr(params, name) < 0:
                raise ConfigurationError(f"{name} must be >= 0, got {getattr(params, name)}")

    def validate_price(self, price: float) -> bool:
        """
        Zero or negative quotes cannot be converted base->quote.
        They mean 'no opportunity', never an error.
        """
        if price <= 0:
            self.logger.debug(f"Ignoring non-positive price {price}")
            return False
        return True
