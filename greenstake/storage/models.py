"""
Data models for storage layer.

Defines the forecast, stake and trade records held by the record store.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class StakeStatus(Enum):
    """Lifecycle status of a stake record."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class TradeStatus(Enum):
    """Lifecycle status of a trade record."""
    PENDING = "pending"
    BRIDGING = "bridging"
    EXECUTED = "executed"
    FAILED = "failed"


@dataclass(frozen=True)
class Forecast:
    """AI-or-fallback prediction of next-period energy consumption.

    Forecasts are append-only: the store offers no update for them.
    """
    id: str
    timestamp: datetime
    wallet_address: str
    historical_data: str  # JSON list of kWh values
    predicted_consumption: int  # kWh
    version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "walletAddress": self.wallet_address,
            "historicalData": self.historical_data,
            "predictedConsumption": self.predicted_consumption,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
        }


@dataclass(frozen=True)
class Stake:
    """Recorded commitment of an ETK amount against a forecasted energy need."""
    id: str
    timestamp: datetime
    wallet_address: str
    amount: str  # decimal string, ETK
    energy_need: int  # kWh
    status: StakeStatus = StakeStatus.PENDING
    transaction_hash: Optional[str] = None
    version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "walletAddress": self.wallet_address,
            "amount": self.amount,
            "energyNeed": self.energy_need,
            "transactionHash": self.transaction_hash,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
        }


@dataclass(frozen=True)
class Trade:
    """Recorded exchange of ETK for PYUSD, optionally across a bridge."""
    id: str
    timestamp: datetime
    wallet_address: str
    from_chain: str
    to_chain: str
    etk_amount: str  # decimal string
    pyusd_amount: str  # decimal string
    status: TradeStatus = TradeStatus.PENDING
    transaction_hash: Optional[str] = None
    version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "walletAddress": self.wallet_address,
            "fromChain": self.from_chain,
            "toChain": self.to_chain,
            "etkAmount": self.etk_amount,
            "pyusdAmount": self.pyusd_amount,
            "transactionHash": self.transaction_hash,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
        }
