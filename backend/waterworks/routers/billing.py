"""
Waterworks Ledger - Billing API Router

Bill generation, latest-bill lookup and payment.
"""
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import BaseModel, Field

from ..database import get_ledger
from ..services.ledger import LedgerContext
from .common import NUMBER_PATTERN, raise_for_rejection


router = APIRouter(prefix="/billing", tags=["billing"])


# =============================================================================
# REQUEST MODELS
# =============================================================================

class GenerateBillRequest(BaseModel):
    customer_number: str = Field(..., pattern=NUMBER_PATTERN, description="7-digit customer number")
    premises_number: str = Field(..., pattern=NUMBER_PATTERN, description="7-digit premises number")


class PayBillRequest(BaseModel):
    customer_number: str = Field(..., pattern=NUMBER_PATTERN, description="7-digit customer number")
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Payment amount")


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/bills", response_model=dict)
async def generate_bill(
    request: GenerateBillRequest,
    ledger: LedgerContext = Depends(get_ledger),
):
    """Generate the next bill for a customer's premises."""
    bill = raise_for_rejection(ledger.generate_bill(request.customer_number, request.premises_number))
    return asdict(bill)


@router.get("/bills/latest/{customer_number}", response_model=dict)
async def get_latest_bill(
    customer_number: str = Path(..., pattern=NUMBER_PATTERN),
    ledger: LedgerContext = Depends(get_ledger),
):
    bill = ledger.get_latest_bill(customer_number)
    if bill is None:
        raise HTTPException(status_code=404, detail="No bills found for this customer")
    return asdict(bill)


@router.post("/payments", response_model=dict)
async def pay_bill(
    request: PayBillRequest,
    ledger: LedgerContext = Depends(get_ledger),
):
    """
    Pay towards the customer's latest unpaid bill.

    Requires a registered payment card. Overpayment is reported as a
    credit on the receipt.
    """
    receipt = raise_for_rejection(ledger.pay_bill(request.customer_number, request.amount))
    return receipt.to_dict()
