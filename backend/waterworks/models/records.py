"""
Waterworks Ledger - Fixed-Shape Record Models

Every persisted entity is a flat dataclass. Field order is the on-disk
field order; string fields carry their fixed maximum width in the field
metadata so the record store can reject records that would not fit.

Lifecycle rules:
- Customer / Premises are soft-deleted via is_active, never removed.
- Bill is mutated only by payment application (amount_paid, is_paid).
- Payment, PaymentCard and ActivityLogEntry are append-only.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4


# Field widths
NUMBER_WIDTH = 7
ID_WIDTH = 19
NAME_WIDTH = 49
DATE_WIDTH = 10


def generate_id(prefix: str) -> str:
    """PREFIX-XXXXXXXXXXXX (12 upper-case hex chars)."""
    return f"{prefix}-{uuid4().hex[:12].upper()}"


def text(max_length: int, default=None):
    """Declare a bounded string field."""
    if default is None:
        return field(metadata={"max_length": max_length})
    return field(default=default, metadata={"max_length": max_length})


# =============================================================================
# ENUMS
# =============================================================================

class IncomeClass(str, Enum):
    """Customer tier bounding simulated daily usage."""
    LOW = "LOW"
    LOW_MEDIUM = "LOW_MEDIUM"
    MEDIUM = "MEDIUM"
    MEDIUM_HIGH = "MEDIUM_HIGH"
    HIGH = "HIGH"


class MeterSize(str, Enum):
    METER_15MM = "15mm"
    METER_30MM = "30mm"
    METER_150MM = "150mm"


class BillState(str, Enum):
    """Derived payment state of a bill."""
    GENERATED = "GENERATED"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"


# =============================================================================
# ACCOUNT RECORDS
# =============================================================================

@dataclass
class Customer:
    """Customer account. Keyed by customer_number."""
    customer_number: str = text(NUMBER_WIDTH)
    first_name: str = text(NAME_WIDTH)
    last_name: str = text(NAME_WIDTH)
    income_class: IncomeClass = IncomeClass.MEDIUM
    user_id: int = 0
    is_active: bool = True
    has_payment_card: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class Premises:
    """Metered premises. Invariant: current >= previous >= initial >= 0."""
    premises_number: str = text(NUMBER_WIDTH)
    customer_number: str = text(NUMBER_WIDTH)
    meter_size: MeterSize = MeterSize.METER_15MM
    initial_reading: int = 0
    previous_reading: int = 0
    current_reading: int = 0
    is_active: bool = True


@dataclass
class PaymentCard:
    customer_number: str = text(NUMBER_WIDTH)
    card_identifier: str = text(ID_WIDTH)
    is_active: bool = True


# =============================================================================
# LEDGER RECORDS
# =============================================================================

@dataclass
class Bill:
    """
    One billing cycle for a customer + premises.

    Invariant:
        total_amount_due = total_current_charges - early_payment_amount + overdue_amount
    """
    bill_id: str = text(ID_WIDTH)
    customer_number: str = text(NUMBER_WIDTH)
    premises_number: str = text(NUMBER_WIDTH)
    month_number: int = 1
    year: int = 2025

    # Readings (litres)
    previous_reading: int = 0
    current_reading: int = 0
    consumption: int = 0

    # Charge breakdown
    water_charge: float = 0.0
    sewerage_charge: float = 0.0
    service_charge: float = 0.0
    pam: float = 0.0
    x_factor: float = 0.0
    k_factor: float = 0.0
    total_current_charges: float = 0.0

    # Settlement
    early_payment_amount: float = 0.0
    overdue_amount: float = 0.0
    total_amount_due: float = 0.0
    amount_paid: float = 0.0
    is_early_payment_eligible: bool = False
    is_paid: bool = False

    bill_date: str = text(DATE_WIDTH, default="")
    due_date: str = text(DATE_WIDTH, default="")

    @property
    def balance(self) -> float:
        """Amount still owed on this bill."""
        return self.total_amount_due - self.amount_paid


@dataclass
class Payment:
    """Immutable payment ledger entry."""
    payment_id: str = text(ID_WIDTH)
    bill_id: str = text(ID_WIDTH)
    customer_number: str = text(NUMBER_WIDTH)
    premises_number: str = text(NUMBER_WIDTH)
    amount: float = 0.0
    payment_date: str = text(DATE_WIDTH, default="")


@dataclass
class ActivityLogEntry:
    """Cumulative per-customer activity snapshot. Latest entry wins."""
    log_id: str = text(ID_WIDTH)
    customer_number: str = text(NUMBER_WIDTH)
    payments_count: int = 0
    last_payment_amount: float = 0.0
    meters_surrendered: int = 0
    log_date: str = text(DATE_WIDTH, default="")
