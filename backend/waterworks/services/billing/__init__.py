"""
Billing and Payment Ledger Services

Tariff calculation -> Meter advance -> Bill generation -> Payment settlement.

- TariffCalculator: pure water / sewerage / service charges
- MeterLedger: simulated consumption and reading advance
- BillEngine: bill generation with overdue roll-up and unpaid-bill guard
- PaymentProcessor: applies payments to the latest unpaid bill
- ActivityLog: carry-forward payment / surrender counters
- BillingReports: read-only paid / owing / archived views
"""

from .randomness import RandomSource, SystemRandomSource
from .tariff import TariffCalculator
from .meter_ledger import MeterLedger, daily_usage_limit
from .bill_state import BillStateMachine, bill_state
from .bill_engine import BillEngine, ChargeBreakdown, compute_charges
from .activity_log import ActivityLog
from .payment_processor import PaymentProcessor
from .reports import BillingReports

__all__ = [
    'RandomSource',
    'SystemRandomSource',
    'TariffCalculator',
    'MeterLedger',
    'daily_usage_limit',
    'BillStateMachine',
    'bill_state',
    'BillEngine',
    'ChargeBreakdown',
    'compute_charges',
    'ActivityLog',
    'PaymentProcessor',
    'BillingReports',
]
