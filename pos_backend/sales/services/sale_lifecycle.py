"""
SALE LIFECYCLE DOMAIN RULES

This module defines the ONLY allowed lifecycle transitions
for Sale entities.

DESIGN PRINCIPLES:
- No database writes
- No stock mutation
- No side effects
- Single source of truth
"""

from common.exceptions import ConsistencyError
from sales.models import Sale

# ============================================================
# DOMAIN ERRORS
# ============================================================


class InvalidSaleTransitionError(ConsistencyError):
    code = "invalid_transition"


# ============================================================
# STATE DEFINITIONS
# ============================================================

TERMINAL_STATES = {
    Sale.STATUS_CANCELLED,
    Sale.STATUS_RETURNED,
}

ALLOWED_TRANSITIONS = {
    Sale.STATUS_PENDING: {
        Sale.STATUS_COMPLETED,
        Sale.STATUS_CANCELLED,
    },
    Sale.STATUS_COMPLETED: {
        Sale.STATUS_PARTIALLY_RETURNED,
        Sale.STATUS_RETURNED,
    },
    Sale.STATUS_PARTIALLY_RETURNED: {
        Sale.STATUS_PARTIALLY_RETURNED,
        Sale.STATUS_RETURNED,
    },
}

# Sales that accept returns and payments
SETTLED_STATES = {
    Sale.STATUS_COMPLETED,
    Sale.STATUS_PARTIALLY_RETURNED,
}


# ============================================================
# DOMAIN RULES
# ============================================================


def can_transition(*, from_status: str, to_status: str) -> bool:
    if from_status in TERMINAL_STATES:
        return False

    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def validate_transition(*, sale: Sale, target_status: str):
    if not can_transition(
        from_status=sale.status,
        to_status=target_status,
    ):
        raise InvalidSaleTransitionError(
            f"Sale {sale.invoice_no} cannot transition from "
            f"'{sale.status}' to '{target_status}'"
        )


def ensure_settled(*, sale: Sale, operation: str):
    if sale.status not in SETTLED_STATES:
        raise ConsistencyError(
            f"Cannot {operation} sale {sale.invoice_no} in status '{sale.status}'"
        )
