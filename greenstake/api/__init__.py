"""
REST API for GreenStake.
"""

from .server import create_app

__all__ = ["create_app"]
