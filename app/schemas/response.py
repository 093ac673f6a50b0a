"""
app/schemas/response.py

Purpose: Uniform response envelope

- {success, data, count?, message?, pagination?} for successes
- {success: false, message, code, details?} for errors
- Conversion of Mongo documents into JSON-safe dicts
"""

from datetime import datetime
from typing import Optional, Any, Dict

from bson import ObjectId
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    success: bool = False
    message: str
    code: str
    details: Optional[Any] = None


def serialize_document(value: Any) -> Any:
    """
    Recursively converts ObjectIds to strings and renames `_id` to `id`.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {
            ("id" if key == "_id" else key): serialize_document(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [serialize_document(item) for item in value]
    return value


def success_response(
    data: Any = None,
    message: Optional[str] = None,
    count: Optional[int] = None,
    pagination: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if count is not None:
        body["count"] = count
    if pagination is not None:
        body["pagination"] = pagination
    body["data"] = serialize_document(data) if data is not None else {}
    if message:
        body["message"] = message
    return body


def iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None
