"""
Unit tests for stake and trade orchestration.

The chain gateway is faked; the record store is real.
"""

from decimal import Decimal
from typing import List

import pytest

from greenstake.config.loader import Settings
from greenstake.core.chains import AVAIL_TESTNET, ETHEREUM_SEPOLIA
from greenstake.core.flows import FlowEvent, StakeState, TradeState
from greenstake.core.orchestrator import (
    QueryCache,
    StakeOrchestrator,
    TradeOrchestrator,
    classify_wallet_error,
)
from greenstake.core.pricing import OraclePrice
from greenstake.errors import (
    FlowAbortedError,
    InvalidTransitionError,
    StakeAmountError,
    WalletErrorKind,
)
from greenstake.storage.models import StakeStatus, TradeStatus
from greenstake.storage.repository import RecordStore


class WalletError(Exception):
    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = code


class FakeGateway:
    """Records calls; fails on demand."""

    def __init__(self, fail_on=None, error=None, receipts_ok=True):
        self.calls: List[str] = []
        self.fail_on = fail_on
        self.error = error or WalletError("execution reverted")
        self.receipts_ok = receipts_ok
        self.price = OraclePrice(price=99_500_000, expo=-8, publish_time=1_700_000_000)

    def _call(self, name, result=None):
        self.calls.append(name)
        if name == self.fail_on:
            raise self.error
        return result

    def stake(self, energy_need, amount):
        return self._call("stake", "0xstake")

    def fetch_price_update(self):
        return self._call("fetch_price_update", [b"\x01"])

    def update_price(self, update_data):
        return self._call("update_price", "0xprice")

    def current_price(self):
        return self._call("current_price", self.price)

    def execute_trade(self, from_chain, to_chain, etk_amount, pyusd_amount):
        self.trade_args = (from_chain, to_chain, etk_amount, pyusd_amount)
        return self._call("execute_trade", "0xtrade")

    def wait_for_receipt(self, transaction_hash):
        self.calls.append(f"wait:{transaction_hash}")
        return self.receipts_ok


class TestClassifyWalletError:
    """Test wallet error classification."""

    def test_code_4001_is_rejection(self):
        assert classify_wallet_error(WalletError("nope", code=4001)) == WalletErrorKind.USER_REJECTED

    def test_message_is_rejection(self):
        assert classify_wallet_error(Exception("User rejected the request.")) == WalletErrorKind.USER_REJECTED
        assert classify_wallet_error(Exception("MetaMask: User denied transaction signature")) == WalletErrorKind.USER_REJECTED

    def test_anything_else_is_failure(self):
        assert classify_wallet_error(Exception("insufficient funds")) == WalletErrorKind.FAILED


class TestQueryCache:
    """Test cache invalidation by key prefix."""

    def test_invalidate_prefix(self):
        cache = QueryCache()
        cache.get_or_load(("stake", "0xabc"), lambda: [1])
        cache.get_or_load(("stake", "0xabc", "page2"), lambda: [2])
        cache.get_or_load(("trade", "0xabc"), lambda: [3])

        assert cache.invalidate(("stake", "0xabc")) == 2
        assert ("stake", "0xabc") not in cache
        assert ("trade", "0xabc") in cache

    def test_loader_called_once(self):
        cache = QueryCache()
        calls = []
        loader = lambda: calls.append(1) or len(calls)
        assert cache.get_or_load(("k",), loader) == 1
        assert cache.get_or_load(("k",), loader) == 1
        assert len(calls) == 1


class TestStakeOrchestrator:
    """Test the stake flow."""

    def test_confirmed_stake_is_recorded(self):
        """A confirmed stake is stored with its hash and the cache refreshed."""
        store = RecordStore()
        cache = QueryCache()
        cache.get_or_load(("stake", "0xabc"), lambda: [])
        gateway = FakeGateway()
        orchestrator = StakeOrchestrator(gateway, store, cache)

        stake = orchestrator.run("0xabc", Decimal("0.01"), 1200)

        assert stake.status == StakeStatus.CONFIRMED
        assert stake.transaction_hash == "0xstake"
        assert stake.amount == "0.01"
        assert store.list_stakes("0xabc") == [stake]
        assert ("stake", "0xabc") not in cache
        assert gateway.calls == ["stake", "wait:0xstake"]
        assert orchestrator.flow.state == StakeState.COMPLETED

    def test_below_minimum_rejected_before_wallet(self):
        """The minimum amount is checked locally."""
        gateway = FakeGateway()
        orchestrator = StakeOrchestrator(gateway, RecordStore(), min_stake=Decimal("0.01"))

        with pytest.raises(StakeAmountError, match="Minimum stake is 0.01"):
            orchestrator.run("0xabc", Decimal("0.001"), 1200)

        assert gateway.calls == []
        assert orchestrator.flow.state == StakeState.IDLE

    def test_minimum_from_settings(self):
        """The configured minimum applies."""
        orchestrator = StakeOrchestrator.from_settings(
            FakeGateway(), RecordStore(), Settings(min_stake=Decimal("5"))
        )
        with pytest.raises(StakeAmountError, match="Minimum stake is 5"):
            orchestrator.run("0xabc", Decimal("1"), 1200)

    def test_rejection_aborts_without_record(self):
        """A rejected signature resets the flow and records nothing."""
        store = RecordStore()
        gateway = FakeGateway(fail_on="stake", error=WalletError("User rejected", code=4001))
        orchestrator = StakeOrchestrator(gateway, store)

        with pytest.raises(FlowAbortedError) as exc_info:
            orchestrator.run("0xabc", Decimal("1"), 1200)

        assert exc_info.value.kind == WalletErrorKind.USER_REJECTED
        assert orchestrator.flow.state == StakeState.IDLE
        assert store.list_stakes("0xabc") == []

    def test_reverted_receipt_aborts(self):
        """A failed receipt is a generic failure."""
        store = RecordStore()
        orchestrator = StakeOrchestrator(FakeGateway(receipts_ok=False), store)

        with pytest.raises(FlowAbortedError, match="reverted") as exc_info:
            orchestrator.run("0xabc", Decimal("1"), 1200)

        assert exc_info.value.kind == WalletErrorKind.FAILED
        assert store.list_stakes("0xabc") == []

    def test_can_stake_again_after_completion(self):
        """A completed flow resets on the next run."""
        store = RecordStore()
        orchestrator = StakeOrchestrator(FakeGateway(), store)
        orchestrator.run("0xabc", Decimal("1"), 1200)
        orchestrator.run("0xabc", Decimal("2"), 1300)
        assert len(store.list_stakes("0xabc")) == 2


class TestTradeOrchestrator:
    """Test the trade flow."""

    def test_price_update_chains_into_trade(self):
        """The trade is submitted once the price update confirms."""
        store = RecordStore()
        cache = QueryCache()
        cache.get_or_load(("trade", "0xabc"), lambda: [])
        gateway = FakeGateway()
        orchestrator = TradeOrchestrator(gateway, store, cache)

        trade = orchestrator.run("0xabc", Decimal("100"))

        assert gateway.calls == [
            "fetch_price_update",
            "update_price",
            "wait:0xprice",
            "current_price",
            "execute_trade",
            "wait:0xtrade",
        ]
        assert trade.status == TradeStatus.EXECUTED
        assert trade.transaction_hash == "0xtrade"
        assert trade.from_chain == ETHEREUM_SEPOLIA
        assert trade.to_chain == AVAIL_TESTNET
        assert trade.etk_amount == "100"
        assert trade.pyusd_amount == "99.50"
        assert orchestrator.flow.state == TradeState.COMPLETED
        assert ("trade", "0xabc") not in cache

    def test_direct_trade_with_explicit_settlement(self):
        """Without refresh and with a fixed settlement no price is read."""
        gateway = FakeGateway()
        orchestrator = TradeOrchestrator(gateway, RecordStore())

        trade = orchestrator.run(
            "0xabc", Decimal("100"), refresh_price=False, pyusd_amount=Decimal("100")
        )

        assert gateway.calls == ["execute_trade", "wait:0xtrade"]
        assert trade.pyusd_amount == "100"

    def test_price_update_failure_aborts_before_trade(self):
        """If the oracle update fails the trade is never submitted."""
        store = RecordStore()
        gateway = FakeGateway(fail_on="update_price")
        orchestrator = TradeOrchestrator(gateway, store)

        with pytest.raises(FlowAbortedError, match="Trade failed"):
            orchestrator.run("0xabc", Decimal("100"))

        assert "execute_trade" not in gateway.calls
        assert orchestrator.flow.state == TradeState.IDLE
        assert store.list_trades("0xabc") == []

    def test_trade_rejection(self):
        """A rejected trade signature is classified as such."""
        gateway = FakeGateway(fail_on="execute_trade", error=Exception("user rejected transaction"))
        orchestrator = TradeOrchestrator(gateway, RecordStore())

        with pytest.raises(FlowAbortedError, match="rejected in wallet") as exc_info:
            orchestrator.run("0xabc", Decimal("100"))

        assert exc_info.value.kind == WalletErrorKind.USER_REJECTED
        assert orchestrator.flow.state == TradeState.IDLE

    def test_options_are_keyword_only(self):
        """Positional options cannot be mistaken for chain names."""
        gateway = FakeGateway()
        orchestrator = TradeOrchestrator(gateway, RecordStore())
        with pytest.raises(TypeError):
            orchestrator.run("0xabc", Decimal("100"), False)
        assert gateway.calls == []

    def test_non_positive_amount_rejected(self):
        orchestrator = TradeOrchestrator(FakeGateway(), RecordStore())
        with pytest.raises(ValueError):
            orchestrator.run("0xabc", Decimal("0"))
        assert orchestrator.flow.state == TradeState.IDLE

    def test_busy_flow_rejects_second_run(self):
        """A flow left mid-way cannot be started again."""
        orchestrator = TradeOrchestrator(FakeGateway(), RecordStore())
        orchestrator.flow.dispatch(FlowEvent.START)
        with pytest.raises(InvalidTransitionError):
            orchestrator.run("0xabc", Decimal("1"))
