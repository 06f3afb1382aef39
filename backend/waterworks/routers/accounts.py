"""
Waterworks Ledger - Customer Accounts API Router

Customer intake, self-registration, edit, archive, premises,
payment-card registration and meter surrender.
"""
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import BaseModel, Field

from ..database import get_ledger
from ..models.records import ID_WIDTH, NAME_WIDTH, IncomeClass, MeterSize
from ..services.ledger import LedgerContext
from .common import NUMBER_PATTERN, raise_for_rejection


router = APIRouter(prefix="/customers", tags=["customers"])


# =============================================================================
# REQUEST MODELS
# =============================================================================

class AddCustomerRequest(BaseModel):
    customer_number: str = Field(..., pattern=NUMBER_PATTERN, description="7-digit customer number")
    premises_number: str = Field(..., pattern=NUMBER_PATTERN, description="7-digit premises number")
    first_name: str = Field(..., min_length=1, max_length=NAME_WIDTH)
    last_name: str = Field(..., min_length=1, max_length=NAME_WIDTH)
    meter_size: MeterSize = Field(..., description="15mm, 30mm or 150mm")
    first_reading: int = Field(..., ge=0, description="Meter reading at installation")
    income_class: IncomeClass = Field(IncomeClass.MEDIUM, description="Drives simulated consumption")


class RegisterCustomerRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=NAME_WIDTH)
    last_name: str = Field(..., min_length=1, max_length=NAME_WIDTH)
    user_id: int = Field(0, ge=0, description="Owning user account, 0 if none")


class EditCustomerRequest(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=NAME_WIDTH)
    last_name: Optional[str] = Field(None, min_length=1, max_length=NAME_WIDTH)
    income_class: Optional[IncomeClass] = None


class AddPremisesRequest(BaseModel):
    premises_number: str = Field(..., pattern=NUMBER_PATTERN, description="7-digit premises number")
    meter_size: MeterSize
    first_reading: int = Field(..., ge=0)


class RegisterCardRequest(BaseModel):
    card_identifier: str = Field(..., min_length=1, max_length=ID_WIDTH, description="Card reference")


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("", response_model=dict)
async def add_customer(
    request: AddCustomerRequest,
    ledger: LedgerContext = Depends(get_ledger),
):
    """Agent intake: create a customer together with their first premises."""
    customer, premises = raise_for_rejection(ledger.accounts.add_customer(
        customer_number=request.customer_number,
        premises_number=request.premises_number,
        first_name=request.first_name,
        last_name=request.last_name,
        meter_size=request.meter_size,
        first_reading=request.first_reading,
        income_class=request.income_class,
    ))
    return {"customer": asdict(customer), "premises": asdict(premises)}


@router.post("/register", response_model=dict)
async def register_customer(
    request: RegisterCustomerRequest,
    ledger: LedgerContext = Depends(get_ledger),
):
    """Self-registration. The customer number and income class are assigned."""
    customer = ledger.accounts.register_customer(
        request.first_name, request.last_name, user_id=request.user_id,
    )
    return asdict(customer)


@router.get("/{customer_number}", response_model=dict)
async def get_customer(
    customer_number: str = Path(..., pattern=NUMBER_PATTERN),
    ledger: LedgerContext = Depends(get_ledger),
):
    details = ledger.accounts.get_customer_details(customer_number)
    if details is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return asdict(details)


@router.patch("/{customer_number}", response_model=dict)
async def edit_customer(
    request: EditCustomerRequest,
    customer_number: str = Path(..., pattern=NUMBER_PATTERN),
    ledger: LedgerContext = Depends(get_ledger),
):
    customer = raise_for_rejection(ledger.accounts.edit_customer(
        customer_number,
        first_name=request.first_name,
        last_name=request.last_name,
        income_class=request.income_class,
    ))
    return asdict(customer)


@router.delete("/{customer_number}", response_model=dict)
async def archive_customer(
    customer_number: str = Path(..., pattern=NUMBER_PATTERN),
    ledger: LedgerContext = Depends(get_ledger),
):
    """Archive (soft delete) a customer and close their premises."""
    customer = raise_for_rejection(ledger.accounts.archive_customer(customer_number))
    return asdict(customer)


@router.post("/{customer_number}/premises", response_model=dict)
async def add_premises(
    request: AddPremisesRequest,
    customer_number: str = Path(..., pattern=NUMBER_PATTERN),
    ledger: LedgerContext = Depends(get_ledger),
):
    premises = raise_for_rejection(ledger.accounts.add_premises(
        customer_number, request.premises_number, request.meter_size, request.first_reading,
    ))
    return asdict(premises)


@router.post("/{customer_number}/payment-card", response_model=dict)
async def register_payment_card(
    request: RegisterCardRequest,
    customer_number: str = Path(..., pattern=NUMBER_PATTERN),
    ledger: LedgerContext = Depends(get_ledger),
):
    card = raise_for_rejection(
        ledger.accounts.register_payment_card(customer_number, request.card_identifier)
    )
    return asdict(card)


@router.post("/{customer_number}/premises/{premises_number}/surrender", response_model=dict)
async def surrender_meter(
    customer_number: str = Path(..., pattern=NUMBER_PATTERN),
    premises_number: str = Path(..., pattern=NUMBER_PATTERN),
    ledger: LedgerContext = Depends(get_ledger),
):
    """Deactivate a premises. Refused while it has unpaid bills."""
    ack = raise_for_rejection(ledger.surrender_meter(customer_number, premises_number))
    return asdict(ack)
