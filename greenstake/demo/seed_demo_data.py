# greenstake/demo/seed_demo_data.py

from greenstake.core.chains import AVAIL_TESTNET, ETHEREUM_SEPOLIA
from greenstake.core.forecast import DEFAULT_HISTORICAL_DATA, history_json
from greenstake.storage.models import StakeStatus, TradeStatus
from greenstake.storage.repository import RecordStore

DEMO_WALLET = "0x71C7656EC7ab88b098defB751B7401B5f6d8976F"


def seed_demo_data(store: RecordStore, wallet_address: str = DEMO_WALLET) -> None:
    """Insert one forecast, one confirmed stake and one executed trade."""
    store.create_forecast(
        wallet_address=wallet_address,
        historical_data=history_json(DEFAULT_HISTORICAL_DATA),
        predicted_consumption=1300,
    )
    store.create_stake(
        wallet_address=wallet_address,
        amount="0.01",
        energy_need=1300,
        status=StakeStatus.CONFIRMED,
        transaction_hash="0x9f1c3a5e7b2d4f6081a3c5e7f9b1d3f5a7c9e1b3d5f7a9c1e3b5d7f9a1c3e5b7",
    )
    store.create_trade(
        wallet_address=wallet_address,
        from_chain=ETHEREUM_SEPOLIA,
        to_chain=AVAIL_TESTNET,
        etk_amount="100",
        pyusd_amount="100",
        status=TradeStatus.EXECUTED,
        transaction_hash="0x2b4d6f8a1c3e5b7d9f1a3c5e7b9d1f3a5c7e9b1d3f5a7c9e1b3d5f7a9c1e3b5d",
    )
