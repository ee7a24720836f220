"""
GreenStake backend.

Record API, AI forecast proxy and stake/trade flow orchestration for the
GreenStakeDEX testnet showcase.
"""

__version__ = "0.1.0"
