"""
Waterworks Ledger - Operation Results

Structured values returned by the core services to the presentation shell.
A Rejection is returned (never raised) for every recoverable condition;
no state has changed when one is returned.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List

from .records import Bill, BillState, Customer, Payment, Premises


class RejectionKind(str, Enum):
    VALIDATION = "VALIDATION"          # unknown / inactive entity
    BUSINESS_RULE = "BUSINESS_RULE"    # a billing rule blocks the operation


@dataclass(frozen=True)
class Rejection:
    kind: RejectionKind
    code: str
    message: str

    @classmethod
    def validation(cls, code: str, message: str) -> "Rejection":
        return cls(RejectionKind.VALIDATION, code, message)

    @classmethod
    def business_rule(cls, code: str, message: str) -> "Rejection":
        return cls(RejectionKind.BUSINESS_RULE, code, message)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "code": self.code, "message": self.message}


@dataclass
class Receipt:
    """Outcome of applying one payment."""
    payment: Payment
    bill: Bill
    state: BillState
    remaining_balance: float
    credit: float = 0.0  # informational overpayment, not persisted

    def to_dict(self) -> Dict[str, Any]:
        return {
            "payment": asdict(self.payment),
            "bill": asdict(self.bill),
            "state": self.state.value,
            "remaining_balance": round(self.remaining_balance, 2),
            "credit": round(self.credit, 2),
        }


@dataclass
class SurrenderAck:
    customer_number: str
    premises_number: str
    meters_surrendered: int


@dataclass
class CustomerDetails:
    customer: Customer
    premises: List[Premises] = field(default_factory=list)
    bills: List[Bill] = field(default_factory=list)
    outstanding_balance: float = 0.0


# =============================================================================
# REPORT ROWS
# =============================================================================

@dataclass
class PaidBillRow:
    customer_number: str
    premises_number: str
    name: str
    month_number: int
    amount_paid: float


@dataclass
class OwingBillRow:
    customer_number: str
    premises_number: str
    name: str
    month_number: int
    amount_owing: float


@dataclass
class ArchivedCustomerRow:
    customer_number: str
    premises_numbers: List[str]
    name: str
    outstanding_balance: float
