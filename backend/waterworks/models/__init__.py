"""Waterworks Ledger - Data Models"""
from .records import (
    # Enums
    IncomeClass, MeterSize, BillState,
    # Records
    Customer, Premises, PaymentCard, Bill, Payment, ActivityLogEntry,
)
from .results import (
    RejectionKind, Rejection, Receipt, SurrenderAck, CustomerDetails,
    PaidBillRow, OwingBillRow, ArchivedCustomerRow,
)

__all__ = [
    "IncomeClass", "MeterSize", "BillState",
    "Customer", "Premises", "PaymentCard", "Bill", "Payment", "ActivityLogEntry",
    "RejectionKind", "Rejection", "Receipt", "SurrenderAck", "CustomerDetails",
    "PaidBillRow", "OwingBillRow", "ArchivedCustomerRow",
]
