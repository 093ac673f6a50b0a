"""
app/services/rate_config_service.py

Purpose: Hourly rate configuration

- Current active rate (public)
- Admin CRUD with the "one active record" rule
"""

from typing import Dict, Any, List, Tuple

from pymongo import DESCENDING, ReturnDocument

from app.core.exceptions import CannotDeleteLastActiveError, ResourceNotFoundError
from app.core.logging import get_logger
from app.db.mongo import get_rate_configs_collection, to_object_id
from app.models.rate_config import new_rate_config_document
from utils import time_utils

logger = get_logger(__name__)


def _not_found(rate_id) -> ResourceNotFoundError:
    return ResourceNotFoundError(f"Rate config not found with id of {rate_id}")


async def get_current_rate() -> Dict[str, Any]:
    """
    Active rate with the latest effective date.
    """
    rate = await get_rate_configs_collection().find_one(
        {"is_active": True},
        sort=[("effective_from", DESCENDING)],
    )
    if not rate:
        raise ResourceNotFoundError("No active rate configuration found")
    return rate


async def list_rates(page: int = 1, limit: int = 25) -> Tuple[List[Dict[str, Any]], int, Dict[str, Any]]:
    page = max(page, 1)
    limit = max(limit, 1)
    rates = get_rate_configs_collection()

    total = await rates.count_documents({})
    cursor = rates.find(
        {},
        sort=[("effective_from", DESCENDING)],
        skip=(page - 1) * limit,
        limit=limit,
    )
    items = await cursor.to_list(length=None)

    pagination: Dict[str, Any] = {}
    if page * limit < total:
        pagination["next"] = {"page": page + 1, "limit": limit}
    if page > 1:
        pagination["prev"] = {"page": page - 1, "limit": limit}
    return items, total, pagination


async def get_rate(rate_id) -> Dict[str, Any]:
    rate = await get_rate_configs_collection().find_one({"_id": to_object_id(rate_id, "Rate config")})
    if not rate:
        raise _not_found(rate_id)
    return rate


async def create_rate(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Inserts a new rate after deactivating every existing one.
    """
    rates = get_rate_configs_collection()
    now = time_utils.utcnow()

    await rates.update_many({}, {"$set": {"is_active": False, "updated_at": now}})

    document = new_rate_config_document(
        rate_per_hour=data["rate_per_hour"],
        currency=data.get("currency") or "USD",
        now=now,
        effective_from=data.get("effective_from"),
        is_active=data.get("is_active", True),
    )
    result = await rates.insert_one(document)
    document["_id"] = result.inserted_id

    logger.info(f"Rate config created: {document['rate_per_hour']} {document['currency']}/h")
    return document


async def update_rate(rate_id, changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Applies provided fields. Activating a record deactivates all others.
    """
    oid = to_object_id(rate_id, "Rate config")
    rates = get_rate_configs_collection()
    now = time_utils.utcnow()

    if not await rates.find_one({"_id": oid}, {"_id": 1}):
        raise _not_found(rate_id)

    if changes.get("is_active") is True:
        await rates.update_many(
            {"_id": {"$ne": oid}},
            {"$set": {"is_active": False, "updated_at": now}},
        )

    update = dict(changes)
    if update.get("currency"):
        update["currency"] = update["currency"].strip().upper()
    update["updated_at"] = now

    rate = await rates.find_one_and_update(
        {"_id": oid},
        {"$set": update},
        return_document=ReturnDocument.AFTER,
    )
    if not rate:
        raise _not_found(rate_id)
    return rate


async def delete_rate(rate_id) -> None:
    """
    Deletes a rate config.

    Raises:
        CannotDeleteLastActiveError: The record is active and no other active one exists
    """
    rates = get_rate_configs_collection()
    rate = await get_rate(rate_id)

    if rate.get("is_active"):
        active_count = await rates.count_documents({"is_active": True})
        if active_count <= 1:
            raise CannotDeleteLastActiveError()

    await rates.delete_one({"_id": rate["_id"]})
    logger.info(f"Rate config deleted: {rate['_id']}")
