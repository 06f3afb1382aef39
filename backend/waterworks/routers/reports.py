"""
Waterworks Ledger - Reports API Router

Read-only billing reports: paid bills, owing bills and archived
customers with their outstanding balance.
"""
from dataclasses import asdict

from fastapi import APIRouter, Depends

from ..database import get_ledger
from ..services.ledger import LedgerContext


router = APIRouter(prefix="/reports", tags=["reports"])


def _rows(rows) -> dict:
    return {"rows": [asdict(row) for row in rows], "total": len(rows)}


@router.get("/paid", response_model=dict)
async def list_paid_bills(ledger: LedgerContext = Depends(get_ledger)):
    """Every fully paid bill with the customer's name."""
    return _rows(ledger.list_paid_bills())


@router.get("/owing", response_model=dict)
async def list_owing_bills(ledger: LedgerContext = Depends(get_ledger)):
    """Every unpaid bill with the amount still owing."""
    return _rows(ledger.list_owing_bills())


@router.get("/archived", response_model=dict)
async def list_archived_customers(ledger: LedgerContext = Depends(get_ledger)):
    return _rows(ledger.list_archived_customers_with_balance())
