"""
Core modules for GreenStake.

This package contains forecasting, oracle pricing, cross-chain balance
parsing and the stake/trade flow state machines and orchestration.
"""

from .activity import ActivityEntry, activity_feed
from .assets import AssetKind, NativeBalance, TokenBalance, parse_balance, parse_balances, total_by_symbol
from .flows import FlowEvent, FlowMachine, StakeState, TradeState, new_stake_flow, new_trade_flow
from .forecast import EnergyForecaster, ForecastOutcome, ForecastSource
from .orchestrator import (
    ChainGateway,
    QueryCache,
    StakeOrchestrator,
    TradeOrchestrator,
    TransactionReverted,
    classify_wallet_error,
)
from .pricing import OraclePrice, quote_settlement

__all__ = [
    "ActivityEntry",
    "activity_feed",
    "AssetKind",
    "NativeBalance",
    "TokenBalance",
    "parse_balance",
    "parse_balances",
    "total_by_symbol",
    "FlowEvent",
    "FlowMachine",
    "StakeState",
    "TradeState",
    "new_stake_flow",
    "new_trade_flow",
    "EnergyForecaster",
    "ForecastOutcome",
    "ForecastSource",
    "ChainGateway",
    "QueryCache",
    "StakeOrchestrator",
    "TradeOrchestrator",
    "TransactionReverted",
    "classify_wallet_error",
    "OraclePrice",
    "quote_settlement",
]
