"""
Stake and trade orchestration.

Sequences contract calls through a ChainGateway, drives the flow state
machines with the resulting events, records confirmed outcomes in the
record store and invalidates cached reads for the wallet.

Nothing is written to the store before on-chain confirmation, so an
aborted flow leaves no partial state behind and needs no rollback.
"""

import logging
from decimal import Decimal
from typing import Any, Callable, Dict, Hashable, List, Optional, Protocol, Tuple

from greenstake.config.loader import Settings
from greenstake.errors import FlowAbortedError, StakeAmountError, WalletErrorKind
from greenstake.storage.models import Stake, StakeStatus, Trade, TradeStatus
from greenstake.storage.repository import RecordStore
from .chains import AVAIL_TESTNET, ETHEREUM_SEPOLIA
from .flows import FlowEvent, FlowMachine, new_stake_flow, new_trade_flow
from .pricing import OraclePrice, quote_settlement

logger = logging.getLogger(__name__)

USER_REJECTED_CODE = 4001
_REJECTION_PHRASES = ("user rejected", "user denied", "rejected the request")


class ChainGateway(Protocol):
    """Wallet and contract access. Implemented outside this package."""

    def stake(self, energy_need: int, amount: Decimal) -> str: ...

    def fetch_price_update(self) -> List[bytes]: ...

    def update_price(self, update_data: List[bytes]) -> str: ...

    def current_price(self) -> OraclePrice: ...

    def execute_trade(
        self, from_chain: str, to_chain: str, etk_amount: Decimal, pyusd_amount: Decimal
    ) -> str: ...

    def wait_for_receipt(self, transaction_hash: str) -> bool: ...


class TransactionReverted(Exception):
    """A submitted transaction was mined but did not succeed."""
    pass


class QueryCache:
    """Cache of read results keyed by tuples such as ("stake", wallet)."""

    def __init__(self):
        self._entries: Dict[Tuple[Hashable, ...], Any] = {}

    def get_or_load(self, key: Tuple[Hashable, ...], loader: Callable[[], Any]) -> Any:
        if key not in self._entries:
            self._entries[key] = loader()
        return self._entries[key]

    def invalidate(self, prefix: Tuple[Hashable, ...]) -> int:
        """Drop every entry whose key starts with prefix; return how many."""
        stale = [k for k in self._entries if k[:len(prefix)] == prefix]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def __contains__(self, key: Tuple[Hashable, ...]) -> bool:
        return key in self._entries


def classify_wallet_error(error: BaseException) -> WalletErrorKind:
    """Best-effort split of wallet errors into user rejections and failures."""
    if getattr(error, "code", None) == USER_REJECTED_CODE:
        return WalletErrorKind.USER_REJECTED
    message = str(error).lower()
    if any(phrase in message for phrase in _REJECTION_PHRASES):
        return WalletErrorKind.USER_REJECTED
    return WalletErrorKind.FAILED


def validate_stake_amount(amount: Decimal, minimum: Decimal) -> None:
    """Raise StakeAmountError unless amount is a finite value >= minimum."""
    if not amount.is_finite() or amount < minimum:
        raise StakeAmountError(f"Minimum stake is {minimum} ETH")


class _Orchestrator:
    def __init__(self, gateway: ChainGateway, store: RecordStore, cache: Optional[QueryCache] = None):
        self.gateway = gateway
        self.store = store
        self.cache = cache or QueryCache()

    def _confirm(self, flow: FlowMachine, transaction_hash: str) -> None:
        flow.dispatch(FlowEvent.SUBMITTED, transaction_hash)
        if not self.gateway.wait_for_receipt(transaction_hash):
            raise TransactionReverted(f"Transaction {transaction_hash} reverted")
        flow.dispatch(FlowEvent.CONFIRMED, transaction_hash)

    def _abort(self, flow: FlowMachine, label: str, error: Exception) -> FlowAbortedError:
        failed_in = flow.state.name
        flow.dispatch(FlowEvent.FAILED)
        kind = classify_wallet_error(error)
        if kind is WalletErrorKind.USER_REJECTED:
            message = f"{label} rejected in wallet"
        else:
            message = f"{label} failed: {error}"
        logger.warning("%s aborted during %s: %s", label, failed_in, error)
        return FlowAbortedError(message, kind, error)


class StakeOrchestrator(_Orchestrator):
    """Runs the stake flow: validate, submit, confirm, record."""

    def __init__(
        self,
        gateway: ChainGateway,
        store: RecordStore,
        cache: Optional[QueryCache] = None,
        min_stake: Decimal = Decimal("0.01"),
    ):
        super().__init__(gateway, store, cache)
        self.min_stake = min_stake
        self.flow = new_stake_flow()

    @classmethod
    def from_settings(
        cls, gateway: ChainGateway, store: RecordStore, settings: Settings, cache: Optional[QueryCache] = None
    ) -> "StakeOrchestrator":
        return cls(gateway, store, cache, min_stake=settings.min_stake)

    def run(self, wallet_address: str, amount: Decimal, energy_need: int) -> Stake:
        """Stake amount against energy_need and record the confirmed stake.

        Raises:
            StakeAmountError: If amount is below the minimum
            InvalidTransitionError: If a stake flow is already in progress
            FlowAbortedError: If the wallet or chain call fails
        """
        validate_stake_amount(amount, self.min_stake)
        if self.flow.completed:
            self.flow.dispatch(FlowEvent.RESET)
        self.flow.dispatch(FlowEvent.START)

        try:
            tx_hash = self.gateway.stake(energy_need, amount)
            self._confirm(self.flow, tx_hash)
        except Exception as e:
            raise self._abort(self.flow, "Stake", e) from e

        stake = self.store.create_stake(
            wallet_address=wallet_address,
            amount=str(amount),
            energy_need=energy_need,
            status=StakeStatus.CONFIRMED,
            transaction_hash=tx_hash,
        )
        self.cache.invalidate(("stake", wallet_address))
        return stake


class TradeOrchestrator(_Orchestrator):
    """Runs the trade flow, chaining an oracle price update before the trade."""

    def __init__(self, gateway: ChainGateway, store: RecordStore, cache: Optional[QueryCache] = None):
        super().__init__(gateway, store, cache)
        self.flow = new_trade_flow()

    def run(
        self,
        wallet_address: str,
        etk_amount: Decimal,
        *,
        from_chain: str = ETHEREUM_SEPOLIA,
        to_chain: str = AVAIL_TESTNET,
        refresh_price: bool = True,
        pyusd_amount: Optional[Decimal] = None,
    ) -> Trade:
        """Execute a trade and record it once confirmed.

        With refresh_price the oracle price is fetched and pushed on-chain
        first; the trade is submitted as soon as that update confirms.
        Without pyusd_amount the settlement is quoted from the oracle price.

        Raises:
            ValueError: If etk_amount is not positive
            InvalidTransitionError: If a trade flow is already in progress
            FlowAbortedError: If any wallet or chain call fails
        """
        if etk_amount <= 0:
            raise ValueError("etk_amount must be > 0")
        if self.flow.completed:
            self.flow.dispatch(FlowEvent.RESET)
        self.flow.dispatch(FlowEvent.START if refresh_price else FlowEvent.START_DIRECT)

        try:
            if refresh_price:
                update_data = self.gateway.fetch_price_update()
                self.flow.dispatch(FlowEvent.PRICE_FETCHED)
                self._confirm(self.flow, self.gateway.update_price(update_data))

            if pyusd_amount is None:
                pyusd_amount = quote_settlement(etk_amount, self.gateway.current_price())

            tx_hash = self.gateway.execute_trade(from_chain, to_chain, etk_amount, pyusd_amount)
            self._confirm(self.flow, tx_hash)
        except Exception as e:
            raise self._abort(self.flow, "Trade", e) from e

        trade = self.store.create_trade(
            wallet_address=wallet_address,
            from_chain=from_chain,
            to_chain=to_chain,
            etk_amount=str(etk_amount),
            pyusd_amount=str(pyusd_amount),
            status=TradeStatus.EXECUTED,
            transaction_hash=tx_hash,
        )
        self.cache.invalidate(("trade", wallet_address))
        return trade
