"""
Shared router helpers: identifier patterns and Rejection -> HTTP mapping.
"""
from fastapi import HTTPException

from ..models.results import Rejection, RejectionKind

# 7-digit customer / premises numbers
NUMBER_PATTERN = r"^\d{7}$"


def raise_for_rejection(result):
    """Turn a service Rejection into an HTTPException; pass anything else through."""
    if not isinstance(result, Rejection):
        return result

    if result.kind == RejectionKind.BUSINESS_RULE:
        status_code = 409
    elif result.code.endswith("_not_found") or result.code.startswith("no_"):
        status_code = 404
    else:
        status_code = 400

    raise HTTPException(status_code=status_code, detail=result.to_dict())
