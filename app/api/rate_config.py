"""
app/api/rate_config.py

Hourly rate configuration. The current rate is public; everything else is admin only.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from app.api.deps import require_roles
from app.models.user import Role
from app.schemas.rate_config import CreateRateConfigRequest, UpdateRateConfigRequest
from app.schemas.response import success_response
from app.services import rate_config_service

router = APIRouter(prefix="/rateconfig")

admin_only = require_roles(Role.ADMIN.value)


@router.get("/current")
async def get_current_rate():
    rate = await rate_config_service.get_current_rate()
    return success_response(rate)


@router.get("")
async def list_rates(
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    admin: Dict[str, Any] = Depends(admin_only),
):
    rates, total, pagination = await rate_config_service.list_rates(page, limit)
    return success_response(rates, count=len(rates), pagination=pagination)


@router.post("", status_code=201)
async def create_rate(body: CreateRateConfigRequest, admin: Dict[str, Any] = Depends(admin_only)):
    rate = await rate_config_service.create_rate(body.model_dump())
    return success_response(rate)


@router.get("/{rate_id}")
async def get_rate(rate_id: str, admin: Dict[str, Any] = Depends(admin_only)):
    rate = await rate_config_service.get_rate(rate_id)
    return success_response(rate)


@router.put("/{rate_id}")
async def update_rate(rate_id: str, body: UpdateRateConfigRequest, admin: Dict[str, Any] = Depends(admin_only)):
    rate = await rate_config_service.update_rate(rate_id, body.model_dump(exclude_unset=True, exclude_none=True))
    return success_response(rate)


@router.delete("/{rate_id}")
async def delete_rate(rate_id: str, admin: Dict[str, Any] = Depends(admin_only)):
    await rate_config_service.delete_rate(rate_id)
    return success_response()
