"""
Stake and trade flow state machines.

Each flow is a fixed transition table driven by discrete events. The
machines only track state; the orchestrator performs the chain calls and
feeds the resulting events in.

Trade flow:
    IDLE -START-> FETCHING_PRICE -PRICE_FETCHED-> UPDATING_PRICE -CONFIRMED-> EXECUTING
    IDLE -START_DIRECT-> EXECUTING -CONFIRMED-> COMPLETED
    FAILED from any non-terminal state returns to IDLE.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Generic, List, Optional, Tuple, TypeVar

from greenstake.errors import InvalidTransitionError


class FlowEvent(Enum):
    """Events reported by the wallet, the chain or the user."""
    START = auto()         # Begin, refreshing the oracle price first
    START_DIRECT = auto()  # Begin without a price refresh
    PRICE_FETCHED = auto()
    SUBMITTED = auto()     # Transaction broadcast, hash known
    CONFIRMED = auto()     # Receipt confirmed
    FAILED = auto()
    RESET = auto()


class TradeState(Enum):
    IDLE = auto()
    FETCHING_PRICE = auto()
    UPDATING_PRICE = auto()
    EXECUTING = auto()
    COMPLETED = auto()


class StakeState(Enum):
    IDLE = auto()
    SUBMITTING = auto()
    CONFIRMING = auto()
    COMPLETED = auto()


TRADE_TRANSITIONS: Dict[Tuple[TradeState, FlowEvent], TradeState] = {
    (TradeState.IDLE, FlowEvent.START): TradeState.FETCHING_PRICE,
    (TradeState.IDLE, FlowEvent.START_DIRECT): TradeState.EXECUTING,
    (TradeState.FETCHING_PRICE, FlowEvent.PRICE_FETCHED): TradeState.UPDATING_PRICE,
    (TradeState.UPDATING_PRICE, FlowEvent.SUBMITTED): TradeState.UPDATING_PRICE,
    (TradeState.UPDATING_PRICE, FlowEvent.CONFIRMED): TradeState.EXECUTING,
    (TradeState.EXECUTING, FlowEvent.SUBMITTED): TradeState.EXECUTING,
    (TradeState.EXECUTING, FlowEvent.CONFIRMED): TradeState.COMPLETED,
    (TradeState.FETCHING_PRICE, FlowEvent.FAILED): TradeState.IDLE,
    (TradeState.UPDATING_PRICE, FlowEvent.FAILED): TradeState.IDLE,
    (TradeState.EXECUTING, FlowEvent.FAILED): TradeState.IDLE,
    (TradeState.IDLE, FlowEvent.RESET): TradeState.IDLE,
    (TradeState.COMPLETED, FlowEvent.RESET): TradeState.IDLE,
}

STAKE_TRANSITIONS: Dict[Tuple[StakeState, FlowEvent], StakeState] = {
    (StakeState.IDLE, FlowEvent.START): StakeState.SUBMITTING,
    (StakeState.SUBMITTING, FlowEvent.SUBMITTED): StakeState.CONFIRMING,
    (StakeState.CONFIRMING, FlowEvent.CONFIRMED): StakeState.COMPLETED,
    (StakeState.SUBMITTING, FlowEvent.FAILED): StakeState.IDLE,
    (StakeState.CONFIRMING, FlowEvent.FAILED): StakeState.IDLE,
    (StakeState.IDLE, FlowEvent.RESET): StakeState.IDLE,
    (StakeState.COMPLETED, FlowEvent.RESET): StakeState.IDLE,
}

S = TypeVar("S", TradeState, StakeState)


@dataclass
class FlowMachine(Generic[S]):
    """Finite state machine over a transition table."""
    transitions: Dict[Tuple[S, FlowEvent], S]
    state: S
    initial: S
    transaction_hash: Optional[str] = None
    history: List[Tuple[S, FlowEvent]] = field(default_factory=list)

    def dispatch(self, event: FlowEvent, transaction_hash: Optional[str] = None) -> S:
        """Apply an event and return the new state.

        Raises:
            InvalidTransitionError: If the current state does not accept the event
        """
        key = (self.state, event)
        if key not in self.transitions:
            raise InvalidTransitionError(self.state, event)

        self.history.append(key)
        self.state = self.transitions[key]
        if transaction_hash is not None:
            self.transaction_hash = transaction_hash
        if self.state == self.initial:
            self.transaction_hash = None
        return self.state

    def accepts(self, event: FlowEvent) -> bool:
        return (self.state, event) in self.transitions

    @property
    def busy(self) -> bool:
        """True while a flow is in progress (neither idle nor completed)."""
        return self.state != self.initial and not self.completed

    @property
    def completed(self) -> bool:
        return self.state.name == "COMPLETED"


def new_trade_flow() -> FlowMachine[TradeState]:
    return FlowMachine(TRADE_TRANSITIONS, TradeState.IDLE, TradeState.IDLE)


def new_stake_flow() -> FlowMachine[StakeState]:
    return FlowMachine(STAKE_TRANSITIONS, StakeState.IDLE, StakeState.IDLE)
