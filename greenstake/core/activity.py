"""
Per-wallet activity feed.

Merges stake and trade records into one newest-first list.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from greenstake.storage.models import Stake, Trade
from greenstake.storage.repository import RecordStore


@dataclass(frozen=True)
class ActivityEntry:
    """One stake or trade as shown in the activity history."""
    id: str
    type: str  # "stake" or "trade"
    status: str
    timestamp: datetime
    transaction_hash: Optional[str]
    details: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
            "transactionHash": self.transaction_hash,
            "details": self.details,
        }


def _from_stake(stake: Stake) -> ActivityEntry:
    return ActivityEntry(
        id=stake.id,
        type="stake",
        status=stake.status.value,
        timestamp=stake.timestamp,
        transaction_hash=stake.transaction_hash,
        details={"amount": stake.amount, "energyNeed": stake.energy_need},
    )


def _from_trade(trade: Trade) -> ActivityEntry:
    return ActivityEntry(
        id=trade.id,
        type="trade",
        status=trade.status.value,
        timestamp=trade.timestamp,
        transaction_hash=trade.transaction_hash,
        details={
            "fromChain": trade.from_chain,
            "toChain": trade.to_chain,
            "etkAmount": trade.etk_amount,
            "pyusdAmount": trade.pyusd_amount,
        },
    )


def activity_feed(store: RecordStore, wallet_address: str) -> List[ActivityEntry]:
    """Stakes and trades for a wallet, newest first; ties go to the later insert."""
    return [
        _from_stake(record) if isinstance(record, Stake) else _from_trade(record)
        for record in store.list_activity(wallet_address)
    ]
