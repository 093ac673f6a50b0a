"""
app/models/rate_config.py

Purpose: Rate configuration document model

- Price per hour and currency
- At most one active record at a time
"""

from datetime import datetime
from typing import Optional, Dict, Any


def new_rate_config_document(
    rate_per_hour: float,
    currency: str,
    now: datetime,
    effective_from: Optional[datetime] = None,
    is_active: bool = True,
) -> Dict[str, Any]:
    return {
        "rate_per_hour": rate_per_hour,
        "currency": currency.strip().upper(),
        "effective_from": effective_from or now,
        "is_active": is_active,
        "created_at": now,
        "updated_at": now,
    }
