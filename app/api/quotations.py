"""
app/api/quotations.py

Quotation endpoints. Creation, owner edits and completion take multipart
forms (they carry files); the other lifecycle actions take JSON bodies.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.api.deps import get_current_user, require_roles
from app.models.user import Role
from app.schemas.quotation import (
    DecisionRequest,
    PoStatusRequest,
    RaiseQuoteRequest,
    UpdateHourRequest,
)
from app.schemas.response import success_response
from app.services.quotation_service import QuotationService, get_quotation_service

router = APIRouter(prefix="/quotations")

admin_only = require_roles(Role.ADMIN.value)
owner_roles = require_roles(Role.USER.value, Role.COMPANY.value)


@router.get("")
async def list_quotations(
    admin: Dict[str, Any] = Depends(admin_only),
    service: QuotationService = Depends(get_quotation_service),
):
    quotations = await service.list_all()
    return success_response(quotations, count=len(quotations))


@router.post("", status_code=201)
async def request_quotation(
    project_name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    technical_info: Optional[str] = Form(None),
    resolution: Optional[str] = Form(None),
    deadline: Optional[str] = Form(None),
    deliverables: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    user: Dict[str, Any] = Depends(get_current_user),
    service: QuotationService = Depends(get_quotation_service),
):
    fields = {
        "project_name": project_name,
        "description": description,
        "technical_info": technical_info,
        "resolution": resolution,
        "deadline": deadline,
        "deliverables": deliverables,
    }
    quotation = await service.request(user, fields, file)
    return success_response(quotation)


@router.get("/my-quotations")
async def my_quotations(
    user: Dict[str, Any] = Depends(get_current_user),
    service: QuotationService = Depends(get_quotation_service),
):
    quotations = await service.my_quotations(user)
    return success_response(quotations, count=len(quotations))


@router.get("/user/{user_id}")
async def user_quotations(
    user_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    service: QuotationService = Depends(get_quotation_service),
):
    quotations = await service.user_quotations(user_id, user)
    return success_response(quotations, count=len(quotations))


@router.get("/{quotation_id}")
async def get_quotation(
    quotation_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    service: QuotationService = Depends(get_quotation_service),
):
    quotation = await service.get(quotation_id, user)
    return success_response(quotation)


@router.put("/{quotation_id}")
async def update_quotation(
    quotation_id: str,
    project_name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    technical_info: Optional[str] = Form(None),
    resolution: Optional[str] = Form(None),
    deadline: Optional[str] = Form(None),
    deliverables: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    user: Dict[str, Any] = Depends(get_current_user),
    service: QuotationService = Depends(get_quotation_service),
):
    fields = {
        "project_name": project_name,
        "description": description,
        "technical_info": technical_info,
        "resolution": resolution,
        "deadline": deadline,
        "deliverables": deliverables,
    }
    quotation = await service.update(quotation_id, user, fields, file)
    return success_response(quotation)


@router.delete("/{quotation_id}")
async def delete_quotation(
    quotation_id: str,
    admin: Dict[str, Any] = Depends(admin_only),
    service: QuotationService = Depends(get_quotation_service),
):
    await service.delete(quotation_id)
    return success_response()


@router.put("/{quotation_id}/quote")
async def raise_quote(
    quotation_id: str,
    body: RaiseQuoteRequest,
    admin: Dict[str, Any] = Depends(admin_only),
    service: QuotationService = Depends(get_quotation_service),
):
    quotation = await service.raise_quote(quotation_id, body.required_hour, body.notes)
    return success_response(quotation)


@router.put("/{quotation_id}/update-hour")
async def update_required_hour(
    quotation_id: str,
    body: UpdateHourRequest,
    admin: Dict[str, Any] = Depends(admin_only),
    service: QuotationService = Depends(get_quotation_service),
):
    quotation = await service.update_required_hour(quotation_id, body.required_hour)
    return success_response(quotation)


@router.put("/{quotation_id}/decision")
async def user_decision(
    quotation_id: str,
    body: DecisionRequest,
    user: Dict[str, Any] = Depends(owner_roles),
    service: QuotationService = Depends(get_quotation_service),
):
    result = await service.decide(quotation_id, user, body.status)
    return success_response(result["quotation"], message=result["message"])


@router.put("/{quotation_id}/decisionpo")
async def user_decision_po(
    quotation_id: str,
    body: DecisionRequest,
    user: Dict[str, Any] = Depends(owner_roles),
    service: QuotationService = Depends(get_quotation_service),
):
    result = await service.decide_po(quotation_id, user, body.status)
    return success_response(result["quotation"], message=result["message"])


@router.put("/{quotation_id}/po-status")
async def update_po_status(
    quotation_id: str,
    body: PoStatusRequest,
    admin: Dict[str, Any] = Depends(admin_only),
    service: QuotationService = Depends(get_quotation_service),
):
    quotation = await service.update_po_status(quotation_id, body.po_status)
    return success_response(quotation)


@router.put("/{quotation_id}/ongoing")
async def mark_ongoing(
    quotation_id: str,
    admin: Dict[str, Any] = Depends(admin_only),
    service: QuotationService = Depends(get_quotation_service),
):
    quotation = await service.mark_ongoing(quotation_id)
    return success_response(quotation, message="Quotation marked as ongoing")


@router.put("/{quotation_id}/complete")
async def complete_quotation(
    quotation_id: str,
    completed_file: Optional[UploadFile] = File(None),
    admin: Dict[str, Any] = Depends(admin_only),
    service: QuotationService = Depends(get_quotation_service),
):
    quotation = await service.complete(quotation_id, completed_file)
    return success_response(quotation)
