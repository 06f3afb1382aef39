"""
Waterworks Ledger - FastAPI Application

Main entry point for the Waterworks Ledger backend.

Architecture:
- RecordStore → one JSON-lines file per entity (customers, premises,
  bills, payments, payment_cards, system_logs)
- TariffCalculator + MeterLedger → BillEngine → Bill
- PaymentProcessor → Payment + Bill update + ActivityLog entry
- AccountService → customers, premises, payment cards, meter surrender
- BillingReports → paid / owing / archived views
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .database import build_ledger
from .routers import accounts_router, billing_router, reports_router
from .services.storage.record_store import StorageFailure

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the record stores on startup."""
    app.state.ledger = build_ledger()
    yield

# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Waterworks Ledger",
    description="""
    Waterworks Ledger - Water Utility Billing System

    Generates monthly water bills from simulated meter consumption,
    applies card payments and keeps a per-customer activity log.

    ## Flow
    1. **Accounts**: customer intake, premises, payment-card registration
    2. **Billing**: consumption → tiered tariff → bill with arrears carried forward
    3. **Payments**: applied to the latest unpaid bill
    4. **Reports**: paid bills, owing bills, archived customers

    ## Key Rules
    - At most two unpaid bills per premises before billing is refused
    - Payments need a registered payment card
    - A meter cannot be surrendered while its premises has unpaid bills
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(accounts_router)
app.include_router(billing_router)
app.include_router(reports_router)


@app.exception_handler(StorageFailure)
async def storage_failure_handler(request: Request, exc: StorageFailure):
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": {"kind": "STORAGE", "store": exc.store, "operation": exc.operation}},
    )


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Waterworks Ledger",
        "version": "1.0.0",
        "description": "Water Utility Billing System",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


# For running with: python -m waterworks.main
if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8001)
