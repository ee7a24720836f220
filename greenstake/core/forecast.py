"""
Energy consumption forecasting.

Asks a hosted model for next month's consumption and falls back to a
noisy average of the history when the answer is missing or implausible.

Decision order:
1. Upstream answer - first integer in the generated text, if within range
2. Fallback - mean of the history perturbed by up to +/-10%
"""

import json
import logging
import random
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from greenstake.errors import InferenceError
from greenstake.sdk.inference_client import InferenceClient

logger = logging.getLogger(__name__)

DEFAULT_HISTORICAL_DATA = (1000, 1200, 1100, 1350, 1250)

MIN_PREDICTION = 1000  # kWh
MAX_PREDICTION = 2000  # kWh
FALLBACK_NOISE = 0.1
MAX_HISTORY_VALUE = 10**9  # kWh, per reading

_INTEGER = re.compile(r"[0-9]+")


class ForecastSource(Enum):
    """Where a prediction came from."""
    AI = "ai"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ForecastOutcome:
    """Predicted consumption and how it was obtained."""
    predicted_consumption: int
    source: ForecastSource


def history_json(history: Sequence[int]) -> str:
    """Compact JSON array, as stored on forecast records and quoted in prompts."""
    return json.dumps(list(history), separators=(",", ":"))


def build_prompt(history: Sequence[int]) -> str:
    return (
        f"Given the historical energy consumption data in kWh: {history_json(history)}, "
        f"predict the next month's energy consumption. "
        f"Return only a number between {MIN_PREDICTION} and {MAX_PREDICTION}."
    )


def parse_prediction(text: str) -> Optional[int]:
    """Return the first integer embedded in text, or None."""
    match = _INTEGER.search(text or "")
    return int(match.group()) if match else None


def in_range(value: int) -> bool:
    return MIN_PREDICTION <= value <= MAX_PREDICTION


def fallback_prediction(history: Sequence[int], rng: random.Random) -> int:
    """Mean of history perturbed by uniform noise of up to +/-10%.

    Raises:
        ValueError: If history is empty
    """
    if not history:
        raise ValueError("historical data cannot be empty")
    mean = sum(history) / len(history)
    return round(mean * (1 + rng.uniform(-FALLBACK_NOISE, FALLBACK_NOISE)))


class EnergyForecaster:
    """Best-effort forecaster over an inference client.

    Upstream failures never propagate: every forecast returns a value.
    """

    def __init__(self, client: InferenceClient, rng: Optional[random.Random] = None):
        self.client = client
        self.rng = rng or random.Random()

    def forecast(self, history: Optional[Sequence[int]] = None) -> ForecastOutcome:
        """Predict next-period consumption.

        Args:
            history: Historical kWh values; defaults to the demo sample

        Returns:
            ForecastOutcome with the prediction and its source

        Raises:
            ValueError: If history is given but empty, or a reading is out of bounds
        """
        values: List[int] = list(DEFAULT_HISTORICAL_DATA if history is None else history)
        if not values:
            raise ValueError("historical data cannot be empty")
        if any(not 0 <= v <= MAX_HISTORY_VALUE for v in values):
            raise ValueError(f"historical data values must be between 0 and {MAX_HISTORY_VALUE}")

        try:
            text = self.client.generate(build_prompt(values))
        except InferenceError as e:
            logger.warning("AI forecast unavailable, using fallback: %s", e)
        else:
            predicted = parse_prediction(text)
            if predicted is not None and in_range(predicted):
                return ForecastOutcome(predicted, ForecastSource.AI)
            logger.warning("AI forecast %r rejected, using fallback", text)

        return ForecastOutcome(fallback_prediction(values, self.rng), ForecastSource.FALLBACK)
