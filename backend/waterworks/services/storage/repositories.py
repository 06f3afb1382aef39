"""
Customer / Premises Repositories

The authoritative in-memory working set for Customer and Premises.
Each repository owns an ordered list plus an index by natural key, is
loaded once from its store, and persists every mutation with a
rewrite-all of that store. Memory is only changed after the rewrite
succeeded, so a StorageFailure leaves both in agreement.

Records handed out are shared with the repository: treat them as
read-only and go through update() with a dataclasses.replace() copy.
"""
import logging
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from ...models.records import Customer, Premises
from .record_store import RecordStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class KeyedRepository(Generic[T]):
    """Ordered collection indexed by a natural-key attribute."""

    key_field: str = ""

    def __init__(self, store: RecordStore[T]):
        self.store = store
        self._records: List[T] = list(store.scan())
        self._index: Dict[str, int] = {}
        self._reindex()

    def _reindex(self) -> None:
        self._index = {}
        for position, record in enumerate(self._records):
            # Later records win: a number may be reused once the old one is inactive.
            self._index[self.key_of(record)] = position

    def key_of(self, record: T) -> str:
        return getattr(record, self.key_field)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, key: str) -> Optional[T]:
        position = self._index.get(key)
        return None if position is None else self._records[position]

    def all(self) -> List[T]:
        return list(self._records)

    def filter(self, predicate: Callable[[T], bool]) -> List[T]:
        return [record for record in self._records if predicate(record)]

    def add(self, record: T) -> T:
        self.store.append(record)
        self._records.append(record)
        self._index[self.key_of(record)] = len(self._records) - 1
        return record

    def update(self, record: T) -> T:
        self.update_many([record])
        return record

    def update_many(self, records: List[T]) -> None:
        """Replace records by key and persist the whole collection."""
        staged = list(self._records)
        for record in records:
            key = self.key_of(record)
            if key not in self._index:
                raise KeyError(f"{type(record).__name__} {key} is not in the repository")
            staged[self._index[key]] = record

        self.store.rewrite_all(staged)
        self._records = staged

    def discard_last(self, record: T) -> None:
        """Undo an add() whose follow-up write failed."""
        self.store.remove_where(lambda r: r == record)
        for position in range(len(self._records) - 1, -1, -1):
            if self._records[position] == record:
                del self._records[position]
                break
        self._reindex()
        logger.warning(f"Discarded {type(record).__name__} {self.key_of(record)} from {self.store.name}")


class CustomerRepository(KeyedRepository[Customer]):
    key_field = "customer_number"

    def exists(self, customer_number: str) -> bool:
        """True for active and archived customers alike."""
        return customer_number in self._index

    def get_active(self, customer_number: str) -> Optional[Customer]:
        customer = self.get(customer_number)
        if customer is None or not customer.is_active:
            return None
        return customer

    def archived(self) -> List[Customer]:
        return self.filter(lambda c: not c.is_active)


class PremisesRepository(KeyedRepository[Premises]):
    key_field = "premises_number"

    def get_active(self, premises_number: str) -> Optional[Premises]:
        premises = self.get(premises_number)
        if premises is None or not premises.is_active:
            return None
        return premises

    def get_owned_active(self, premises_number: str, customer_number: str) -> Optional[Premises]:
        premises = self.get_active(premises_number)
        if premises is None or premises.customer_number != customer_number:
            return None
        return premises

    def number_in_use(self, premises_number: str) -> bool:
        return self.get_active(premises_number) is not None

    def for_customer(self, customer_number: str) -> List[Premises]:
        return self.filter(lambda p: p.customer_number == customer_number)
