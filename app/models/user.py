"""
app/models/user.py

Purpose: User document model

- Identity, role and optional company profile
- Hour balance (prepaid credit, never negative)
- Email verification state
"""

from enum import Enum
from datetime import datetime
from typing import Optional, Dict, Any


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    COMPANY = "company"


COMPANY_FIELDS = ("name", "address", "website", "industry", "gst_number")

# Never leave the service layer
PRIVATE_FIELDS = ("password_hash", "email_verification_token", "email_verification_expire")


def new_user_document(
    name: str,
    email: str,
    password_hash: str,
    role: str,
    hours_balance: float,
    now: datetime,
    phone: Optional[str] = None,
    company: Optional[Dict[str, Any]] = None,
    is_verified: bool = False,
    verification_token: Optional[str] = None,
    verification_expire: Optional[datetime] = None,
) -> Dict[str, Any]:
    return {
        "name": name,
        "email": email,
        "password_hash": password_hash,
        "role": role,
        "phone": phone,
        "company": {field: (company or {}).get(field) for field in COMPANY_FIELDS},
        "hours_balance": hours_balance,
        "is_verified": is_verified,
        "email_verification_token": verification_token,
        "email_verification_expire": verification_expire,
        "created_at": now,
        "updated_at": now,
    }


def strip_private_fields(user: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in user.items() if key not in PRIVATE_FIELDS}
