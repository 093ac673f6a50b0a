"""
app/flow/states.py

Purpose: Defines the quotation lifecycle

- Enum for each quotation status
  (REQUESTED, QUOTED, APPROVED, REJECTED, ONGOING, COMPLETED)
- Independent purchase-order sub-state
- Single source of truth for legal transitions
"""

from enum import Enum
from typing import Dict, List, Tuple


class QuotationStatus(str, Enum):
    """
    Main quotation status.

    requested -> quoted -> approved | rejected
    approved -> ongoing -> completed
    """

    REQUESTED = "requested"
    QUOTED = "quoted"
    APPROVED = "approved"
    REJECTED = "rejected"
    ONGOING = "ongoing"
    COMPLETED = "completed"


class PoStatus(str, Enum):
    """
    Purchase order approval sub-state. Tracked next to the main status.
    """

    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    PENDING = "pending"


# Valid state transitions
STATE_TRANSITIONS: Dict[QuotationStatus, List[QuotationStatus]] = {
    QuotationStatus.REQUESTED: [
        QuotationStatus.QUOTED,
    ],
    QuotationStatus.QUOTED: [
        QuotationStatus.QUOTED,  # Re-quote before the user decides
        QuotationStatus.APPROVED,
        QuotationStatus.REJECTED,
    ],
    QuotationStatus.APPROVED: [
        QuotationStatus.ONGOING,
    ],
    QuotationStatus.REJECTED: [],
    QuotationStatus.ONGOING: [
        QuotationStatus.COMPLETED,
    ],
    QuotationStatus.COMPLETED: [],
}

# Statuses in which the admin may still change the price
PRICE_EDITABLE_STATUSES: Tuple[QuotationStatus, ...] = (
    QuotationStatus.REQUESTED,
    QuotationStatus.QUOTED,
)

DECISION_STATUSES: Tuple[QuotationStatus, ...] = (
    QuotationStatus.APPROVED,
    QuotationStatus.REJECTED,
)


def allowed_predecessors(to_state: QuotationStatus) -> List[QuotationStatus]:
    """
    Statuses from which `to_state` may be entered.

    Used as the filter of conditional updates so that the check and the
    write happen in one database operation.
    """
    return [
        from_state
        for from_state, targets in STATE_TRANSITIONS.items()
        if to_state in targets
    ]


def status_values(statuses) -> List[str]:
    return [QuotationStatus(s).value for s in statuses]
