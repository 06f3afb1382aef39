"""
Waterworks Ledger - Storage Configuration
Flat-file record stores, one per entity, inside a data directory
"""
import os
from pathlib import Path

from fastapi import Request

from .services.ledger import LedgerContext

# Data directory - one JSON-lines store file per entity
DATA_DIR = os.getenv("WATERWORKS_DATA_DIR", "./data")

# Year stamped on every generated bill
OPERATING_YEAR = int(os.getenv("WATERWORKS_OPERATING_YEAR", "2025"))


def init_db(data_dir: str = DATA_DIR) -> Path:
    """Initialize storage - create the data directory."""
    path = Path(data_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def build_ledger(data_dir: str = DATA_DIR, operating_year: int = OPERATING_YEAR) -> LedgerContext:
    """Load the working set and wire the services for one data directory."""
    return LedgerContext(init_db(data_dir), operating_year=operating_year)


def get_ledger(request: Request) -> LedgerContext:
    """Dependency for FastAPI - the ledger built at application startup."""
    return request.app.state.ledger
