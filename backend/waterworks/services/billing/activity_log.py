"""
Activity Log

Append-only per-customer activity counters (payments made, meters
surrendered). Each new entry carries forward the customer's most recent
entry and applies one increment, so the latest entry per customer is the
current state.
"""
import logging
from datetime import date
from typing import Callable, List, Optional

from ...models.records import ActivityLogEntry, generate_id
from ..storage.record_store import RecordStore

logger = logging.getLogger(__name__)


class ActivityLog:

    def __init__(self, store: RecordStore[ActivityLogEntry], today: Callable[[], date] = date.today):
        self.store = store
        self.today = today

    def latest_for(self, customer_number: str) -> Optional[ActivityLogEntry]:
        latest = None
        for entry in self.store.scan():
            if entry.customer_number == customer_number:
                latest = entry
        return latest

    def history(self, customer_number: str) -> List[ActivityLogEntry]:
        return self.store.filter(lambda e: e.customer_number == customer_number)

    def record_payment(self, customer_number: str, amount: float) -> ActivityLogEntry:
        return self._record(customer_number, payment_amount=amount)

    def record_surrender(self, customer_number: str) -> ActivityLogEntry:
        return self._record(customer_number, surrendered=True)

    def _record(
        self,
        customer_number: str,
        payment_amount: float = 0.0,
        surrendered: bool = False,
    ) -> ActivityLogEntry:
        previous = self.latest_for(customer_number)

        entry = ActivityLogEntry(
            log_id=generate_id("LOG"),
            customer_number=customer_number,
            payments_count=previous.payments_count if previous else 0,
            last_payment_amount=previous.last_payment_amount if previous else 0.0,
            meters_surrendered=previous.meters_surrendered if previous else 0,
            log_date=self.today().isoformat(),
        )

        if payment_amount > 0:
            entry.payments_count += 1
            entry.last_payment_amount = payment_amount
        if surrendered:
            entry.meters_surrendered += 1

        self.store.append(entry)
        logger.info(
            f"Activity logged for {customer_number}: payments={entry.payments_count}, "
            f"surrendered={entry.meters_surrendered}"
        )
        return entry
