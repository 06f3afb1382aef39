"""Waterworks Ledger - API Routers"""
from .accounts import router as accounts_router
from .billing import router as billing_router
from .reports import router as reports_router

__all__ = [
    "accounts_router",
    "billing_router",
    "reports_router",
]
