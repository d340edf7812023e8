import logging

import pytest

from arbsim.execution import ExecutionService
from arbsim.inventory import InventoryEngine, Wallet
from arbsim.risk_engine import RiskEngine, TradingParams
from arbsim.strategy import StrategyEngine


@pytest.fixture
def logger():
    return logging.getLogger("arbsim-tests")


@pytest.fixture
def default_params():
    return TradingParams(fee_a=0.005, fee_b=0.005, trade_percent=0.1,
                         min_trade_amount_a=2, min_trade_amount_b=2)


@pytest.fixture
def make_strategy(logger):
    def _make(params, wallet_a=None, wallet_b=None, risk_cls=RiskEngine):
        inventory = InventoryEngine(wallet_a or Wallet(), wallet_b or Wallet(), logger)
        risk = risk_cls(params, logger)
        return StrategyEngine(risk, inventory, ExecutionService(), logger)
    return _make
