"""
SDK wrappers for GreenStake.

Provides access to the hosted text-generation service used for forecasts.
"""

from .inference_client import InferenceClient

__all__ = ["InferenceClient"]
