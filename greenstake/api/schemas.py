"""
Request models for the REST API.

Bodies use camelCase keys on the wire and snake_case attributes in Python.
Unknown keys are rejected.
"""

from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from greenstake.core.forecast import MAX_HISTORY_VALUE
from greenstake.storage.models import StakeStatus, TradeStatus


def _check_decimal(value: str) -> str:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise ValueError("must be a decimal number")
    if not amount.is_finite() or amount < 0:
        raise ValueError("must be a non-negative decimal number")
    return value


DecimalString = Annotated[str, AfterValidator(_check_decimal)]
NonEmptyString = Annotated[str, Field(min_length=1)]
HistoryReading = Annotated[int, Field(ge=0, le=MAX_HISTORY_VALUE)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class ForecastRequest(CamelModel):
    wallet_address: NonEmptyString
    historical_data: Optional[Annotated[List[HistoryReading], Field(min_length=1)]] = None


class StakeCreate(CamelModel):
    wallet_address: NonEmptyString
    amount: DecimalString
    energy_need: int
    status: StakeStatus = StakeStatus.PENDING
    transaction_hash: Optional[str] = None


class TradeCreate(CamelModel):
    wallet_address: NonEmptyString
    from_chain: NonEmptyString
    to_chain: NonEmptyString
    etk_amount: DecimalString
    pyusd_amount: DecimalString
    status: TradeStatus = TradeStatus.PENDING
    transaction_hash: Optional[str] = None


class _PartialUpdate(CamelModel):
    """Partial update; only keys present in the body are applied.

    version, when present, is the record version the client last read.
    """
    version: Optional[int] = None

    @model_validator(mode="after")
    def _reject_null_required(self):
        for name in self.model_fields_set:
            if name not in ("transaction_hash", "version") and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def updates(self) -> Dict[str, Any]:
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name != "version"
        }


class StakeUpdate(_PartialUpdate):
    wallet_address: Optional[NonEmptyString] = None
    amount: Optional[DecimalString] = None
    energy_need: Optional[int] = None
    status: Optional[StakeStatus] = None
    transaction_hash: Optional[str] = None


class TradeUpdate(_PartialUpdate):
    wallet_address: Optional[NonEmptyString] = None
    from_chain: Optional[NonEmptyString] = None
    to_chain: Optional[NonEmptyString] = None
    etk_amount: Optional[DecimalString] = None
    pyusd_amount: Optional[DecimalString] = None
    status: Optional[TradeStatus] = None
    transaction_hash: Optional[str] = None
