"""
GreenStakeDEX deployment constants.
"""

from decimal import Decimal

# GreenStakeDEX on Sepolia, with Pyth oracle integration
CONTRACT_ADDRESS = "0x4B3E4f81B1Bc7B48E3D419860A10a953f3217D26"
PYTH_CONTRACT_ADDRESS = "0x2880aB155794e7179c9eE2e38200202908C17B43"
ETH_USD_PRICE_ID = "0xff61491a931112ddf1bd8147cd1b641375f79f5825126d665480874634fd0ace"
PYUSD_TESTNET = "0xCaC524BcA292aaade2DF8A05cC58F0a65B1B3bB9"

ETHEREUM_SEPOLIA = "ethereum-sepolia"
AVAIL_TESTNET = "avail-testnet"

SEPOLIA_CHAIN_ID = 11155111
AVAIL_TESTNET_CHAIN_ID = 11822

ETK_DECIMALS = 18
MIN_STAKE_WEI = 10_000_000_000_000_000  # 0.01 ETH


def from_wei(amount_wei: int, decimals: int = ETK_DECIMALS) -> Decimal:
    return Decimal(amount_wei).scaleb(-decimals)


def to_wei(amount: Decimal, decimals: int = ETK_DECIMALS) -> int:
    """Convert a decimal amount to integer base units, truncating dust."""
    return int(amount.scaleb(decimals))
