"""
Cross-chain balances reported by the bridge SDK.

Raw SDK payloads are parsed into a small tagged union here so that no
untyped data reaches callers.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Union


class AssetKind(Enum):
    """Kinds of asset a unified balance can describe."""
    NATIVE = "native"
    TOKEN = "token"


@dataclass(frozen=True)
class NativeBalance:
    """Gas-token balance on a chain."""
    chain_id: int
    symbol: str
    balance: Decimal
    kind: AssetKind = AssetKind.NATIVE


@dataclass(frozen=True)
class TokenBalance:
    """ERC-20 style token balance on a chain."""
    chain_id: int
    symbol: str
    balance: Decimal
    contract_address: str
    decimals: int
    kind: AssetKind = AssetKind.TOKEN


AssetBalance = Union[NativeBalance, TokenBalance]


def parse_balance(raw: Dict[str, Any]) -> AssetBalance:
    """Parse one raw balance entry.

    Args:
        raw: Balance entry with at least kind, chainId, symbol and balance

    Returns:
        NativeBalance or TokenBalance

    Raises:
        ValueError: If kind is unknown or a required field is missing/invalid
    """
    if not isinstance(raw, dict):
        raise ValueError("balance entry must be a dictionary")

    try:
        kind = AssetKind(raw.get("kind"))
    except ValueError:
        valid_kinds = [k.value for k in AssetKind]
        raise ValueError(f"'kind' must be one of: {valid_kinds}")

    for key in ("chainId", "symbol", "balance"):
        if key not in raw:
            raise ValueError(f"Missing required '{key}' in {kind.value} balance")

    chain_id = raw["chainId"]
    if not isinstance(chain_id, int) or isinstance(chain_id, bool):
        raise ValueError("'chainId' must be an integer")

    try:
        balance = Decimal(str(raw["balance"]))
    except InvalidOperation:
        raise ValueError("'balance' must be a decimal number")

    if kind is AssetKind.NATIVE:
        return NativeBalance(chain_id=chain_id, symbol=str(raw["symbol"]), balance=balance)

    for key in ("contractAddress", "decimals"):
        if key not in raw:
            raise ValueError(f"Missing required '{key}' in token balance")
    return TokenBalance(
        chain_id=chain_id,
        symbol=str(raw["symbol"]),
        balance=balance,
        contract_address=str(raw["contractAddress"]),
        decimals=int(raw["decimals"]),
    )


def parse_balances(raw: List[Dict[str, Any]]) -> List[AssetBalance]:
    return [parse_balance(entry) for entry in raw]


def total_by_symbol(balances: List[AssetBalance]) -> Dict[str, Decimal]:
    """Sum balances of the same symbol across chains."""
    totals: Dict[str, Decimal] = {}
    for b in balances:
        totals[b.symbol] = totals.get(b.symbol, Decimal("0")) + b.balance
    return totals
