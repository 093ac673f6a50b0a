"""
app/models/quotation.py

Purpose: Quotation document model

- Project metadata and attached model file
- Price (required hours) set by an admin
- Lifecycle status, purchase-order sub-state and timestamps
"""

from datetime import datetime
from typing import Optional, Dict, Any

from bson import ObjectId

from app.flow.states import QuotationStatus


# Fields the owner may edit after submitting
EDITABLE_FIELDS = ("project_name", "description", "technical_info", "resolution", "deadline", "deliverables")


def new_quotation_document(
    user_id: ObjectId,
    fields: Dict[str, Any],
    file_path: str,
    file_type: str,
    file_size: int,
    now: datetime,
) -> Dict[str, Any]:
    return {
        "user": user_id,
        "payment": None,
        "project_name": fields.get("project_name"),
        "description": fields.get("description"),
        "technical_info": fields.get("technical_info"),
        "resolution": fields.get("resolution"),
        "deadline": fields.get("deadline"),
        "deliverables": fields.get("deliverables"),
        "notes": None,
        "file": file_path,
        "file_type": file_type,
        "file_size": file_size,
        "completed_file": None,
        "completed_file_type": None,
        "completed_file_size": None,
        "required_hour": None,
        "status": QuotationStatus.REQUESTED.value,
        "po_status": None,
        "approved_at": None,
        "started_at": None,
        "completed_at": None,
        "created_at": now,
        "updated_at": now,
    }


def stored_files(quotation: Dict[str, Any]) -> list:
    return [path for path in (quotation.get("file"), quotation.get("completed_file")) if path]


def required_hours(quotation: Dict[str, Any]) -> float:
    return quotation.get("required_hour") or 0


def owner_id(quotation: Dict[str, Any]) -> Optional[ObjectId]:
    return quotation.get("user")
