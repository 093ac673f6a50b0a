"""
app/api/payments.py

Hour purchase endpoints.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.api.deps import get_current_user
from app.schemas.payment import CreateOrderRequest, VerifyPaymentRequest
from app.schemas.response import success_response
from app.services.payment_service import PaymentService, get_payment_service
from utils.constants import MSG_PO_SUBMITTED

router = APIRouter(prefix="/payments")


@router.post("/order")
async def create_order(
    body: CreateOrderRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    result = await service.create_order(body.amount, body.hours, body.gateway)
    return success_response(result)


@router.post("/verify")
async def verify_payment(
    body: VerifyPaymentRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    result = await service.verify(user, body.model_dump())
    return success_response(result, message="Payment verified")


@router.get("/history")
async def payment_history(
    user: Dict[str, Any] = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payments = await service.history(user)
    return success_response(payments, count=len(payments))


@router.post("/purchase-order", status_code=201)
async def create_purchase_order(
    amount: Optional[float] = Form(None),
    hours: Optional[float] = Form(None),
    quotation_id: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    user: Dict[str, Any] = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payment = await service.create_purchase_order(user, amount, hours, quotation_id, file)
    return success_response(payment, message=MSG_PO_SUBMITTED)
