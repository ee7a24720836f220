"""
Repository pattern for data access.

Holds forecast, stake and trade records in memory for the life of the process.
"""

import itertools
import logging
import threading
import uuid
from dataclasses import fields, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, Type, TypeVar, Union

from greenstake.errors import RecordNotFoundError, VersionConflictError
from .models import Forecast, Stake, Trade

logger = logging.getLogger(__name__)

R = TypeVar("R", Forecast, Stake, Trade)

# Assigned by the store, never by callers
PROTECTED_FIELDS = frozenset({"id", "timestamp", "version"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class _Collection(Generic[R]):
    """Records of one kind, keyed by id, with insertion order kept for ties.

    The sequence counter is shared across collections so that records of
    different kinds can be ordered against each other.
    """

    def __init__(self, kind: str, record_type: Type[R], sequence: Iterator[int]):
        self.kind = kind
        self.record_type = record_type
        self.mutable_fields = frozenset(
            f.name for f in fields(record_type) if f.name not in PROTECTED_FIELDS
        )
        self._records: Dict[str, R] = {}
        self._counter = sequence
        self._sequence: Dict[str, int] = {}

    def put(self, record: R) -> None:
        if record.id not in self._sequence:
            self._sequence[record.id] = next(self._counter)
        self._records[record.id] = record

    def get(self, record_id: str) -> R:
        try:
            return self._records[record_id]
        except KeyError:
            raise RecordNotFoundError(self.kind, record_id) from None

    def by_wallet(self, wallet_address: str) -> List[R]:
        matches = [r for r in self._records.values() if r.wallet_address == wallet_address]
        matches.sort(key=self.sort_key, reverse=True)
        return matches

    def sort_key(self, record: R):
        return record.timestamp, self._sequence[record.id]

    def __len__(self) -> int:
        return len(self._records)


class RecordStore:
    """In-memory store for forecast, stake and trade records.

    Construct one per process and hand it to whatever serves requests.
    Mutations are serialized by a single lock. Updates may carry the
    version the caller last read; a mismatch raises VersionConflictError,
    and an update without a version is last-write-wins.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_id,
    ):
        """Initialize an empty store.

        Args:
            clock: Returns the creation timestamp for new records
            id_factory: Returns a fresh unique record id
        """
        self._clock = clock
        self._id_factory = id_factory
        self._lock = threading.Lock()
        sequence = itertools.count()
        self._forecasts: _Collection[Forecast] = _Collection("forecast", Forecast, sequence)
        self._stakes: _Collection[Stake] = _Collection("stake", Stake, sequence)
        self._trades: _Collection[Trade] = _Collection("trade", Trade, sequence)

    # Forecasts

    def create_forecast(self, **values: Any) -> Forecast:
        return self._create(self._forecasts, values)

    def list_forecasts(self, wallet_address: str) -> List[Forecast]:
        return self._list(self._forecasts, wallet_address)

    # Stakes

    def create_stake(self, **values: Any) -> Stake:
        return self._create(self._stakes, values)

    def update_stake(
        self, record_id: str, updates: Dict[str, Any], expected_version: Optional[int] = None
    ) -> Stake:
        return self._update(self._stakes, record_id, updates, expected_version)

    def list_stakes(self, wallet_address: str) -> List[Stake]:
        return self._list(self._stakes, wallet_address)

    # Trades

    def create_trade(self, **values: Any) -> Trade:
        return self._create(self._trades, values)

    def update_trade(
        self, record_id: str, updates: Dict[str, Any], expected_version: Optional[int] = None
    ) -> Trade:
        return self._update(self._trades, record_id, updates, expected_version)

    def list_trades(self, wallet_address: str) -> List[Trade]:
        return self._list(self._trades, wallet_address)

    def list_activity(self, wallet_address: str) -> List[Union[Stake, Trade]]:
        """Stakes and trades for a wallet in one list, newest first.

        Equal timestamps are ordered latest-insert-first across both kinds.
        """
        with self._lock:
            keyed = [(self._stakes.sort_key(s), s) for s in self._stakes.by_wallet(wallet_address)]
            keyed.extend((self._trades.sort_key(t), t) for t in self._trades.by_wallet(wallet_address))
        keyed.sort(key=lambda pair: pair[0], reverse=True)
        return [record for _, record in keyed]

    def counts(self) -> Dict[str, int]:
        """Number of records held per kind."""
        with self._lock:
            return {
                "forecasts": len(self._forecasts),
                "stakes": len(self._stakes),
                "trades": len(self._trades),
            }

    def _create(self, collection: _Collection[R], values: Dict[str, Any]) -> R:
        _check_fields(collection, values)
        with self._lock:
            record = collection.record_type(
                id=self._id_factory(),
                timestamp=self._clock(),
                version=1,
                **values,
            )
            collection.put(record)
        logger.info("Created %s %s for %s", collection.kind, record.id, record.wallet_address)
        return record

    def _update(
        self,
        collection: _Collection[R],
        record_id: str,
        updates: Dict[str, Any],
        expected_version: Optional[int],
    ) -> R:
        _check_fields(collection, updates)
        with self._lock:
            existing = collection.get(record_id)
            if expected_version is not None and expected_version != existing.version:
                raise VersionConflictError(
                    collection.kind, record_id, expected_version, existing.version
                )
            updated = replace(existing, version=existing.version + 1, **updates)
            collection.put(updated)
        logger.info("Updated %s %s to version %d", collection.kind, record_id, updated.version)
        return updated

    def _list(self, collection: _Collection[R], wallet_address: str) -> List[R]:
        with self._lock:
            return collection.by_wallet(wallet_address)


def _check_fields(collection: _Collection, values: Dict[str, Any]) -> None:
    """Reject store-assigned and unknown field names.

    Raises:
        ValueError: If values name a protected or unknown field
    """
    protected = PROTECTED_FIELDS & values.keys()
    if protected:
        raise ValueError(f"Fields assigned by the store cannot be set: {sorted(protected)}")
    unknown = values.keys() - collection.mutable_fields
    if unknown:
        raise ValueError(f"Unknown {collection.kind} fields: {sorted(unknown)}")
