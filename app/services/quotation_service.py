"""
app/services/quotation_service.py

Purpose: Quotation lifecycle engine

- Request (with model file), price, re-price
- Owner decision with atomic hour debit
- Purchase-order decision and PO sub-state
- Ongoing / complete (with deliverable file)
- Owner edits, admin delete, populated reads

Every status write is a conditional update filtered on the statuses the
transition table allows as predecessors; a request that loses a race gets
InvalidTransitionError instead of overwriting the winner.
"""

from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from fastapi import UploadFile
from pymongo import DESCENDING, ReturnDocument

from app.core.config import settings
from app.core.exceptions import (
    ForbiddenError,
    InsufficientHoursError,
    InvalidStatusError,
    InvalidTransitionError,
    ResourceNotFoundError,
    ValidationError,
)
from app.core.logging import get_logger, LogContext
from app.db.mongo import (
    get_payments_collection,
    get_quotations_collection,
    get_users_collection,
    to_object_id,
)
from app.flow.states import (
    DECISION_STATUSES,
    PRICE_EDITABLE_STATUSES,
    PoStatus,
    QuotationStatus,
    allowed_predecessors,
    status_values,
)
from app.models.notification import NotificationType
from app.models.payment import PaymentGateway, PaymentStatus
from app.models.quotation import (
    EDITABLE_FIELDS,
    new_quotation_document,
    owner_id,
    required_hours,
    stored_files,
)
from app.models.user import Role
from app.services import file_service, user_service
from app.services.notification_service import NotificationService, get_notification_service
from utils import email_templates, time_utils
from utils.constants import (
    EVENT_QUOTATION_COMPLETED,
    EVENT_QUOTATION_DECISION,
    EVENT_QUOTATION_HOUR_UPDATED,
    EVENT_QUOTATION_ONGOING,
    EVENT_QUOTATION_PO_STATUS,
    EVENT_QUOTATION_RAISED,
    EVENT_QUOTATION_REQUESTED,
    EVENT_QUOTATION_USER_UPDATED,
    MAX_DELIVERABLES_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_PROJECT_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    MSG_QUOTATION_APPROVED,
    MSG_QUOTATION_NOT_FOUND,
    MSG_QUOTATION_REJECTED,
)
from utils.validation_utils import check_max_length

logger = get_logger(__name__)


FIELD_LIMITS = {
    "project_name": MAX_PROJECT_NAME_LENGTH,
    "description": MAX_DESCRIPTION_LENGTH,
    "deliverables": MAX_DELIVERABLES_LENGTH,
}

USER_PROJECTION = {"name": 1, "email": 1, "phone": 1}
PAYMENT_PROJECTION = {"hours_purchased": 1, "purchase_order_file": 1}

PO_PAYMENT_STATUS = {
    PoStatus.APPROVED.value: PaymentStatus.SUCCESS.value,
    PoStatus.REJECTED.value: PaymentStatus.FAILED.value,
}


def _validate_lengths(fields: Dict[str, Any]) -> None:
    for field, limit in FIELD_LIMITS.items():
        if not check_max_length(fields.get(field), limit):
            label = field.replace("_", " ").capitalize()
            raise ValidationError(f"{label} can not be more than {limit} characters")


class QuotationService:
    """Service driving quotations through their lifecycle."""

    def __init__(self, notifier: NotificationService):
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _populate(self, quotations: List[Dict[str, Any]], with_payment: bool = True) -> List[Dict[str, Any]]:
        """Replaces `user` (and `payment`) ids with their summary documents."""
        user_ids = list({q["user"] for q in quotations if q.get("user")})
        users = {}
        if user_ids:
            cursor = get_users_collection().find({"_id": {"$in": user_ids}}, USER_PROJECTION)
            users = {u["_id"]: u for u in await cursor.to_list(length=None)}

        payments = {}
        payment_ids = list({q["payment"] for q in quotations if q.get("payment")})
        if with_payment and payment_ids:
            cursor = get_payments_collection().find({"_id": {"$in": payment_ids}}, PAYMENT_PROJECTION)
            payments = {p["_id"]: p for p in await cursor.to_list(length=None)}

        for quotation in quotations:
            quotation["user"] = users.get(quotation.get("user"), quotation.get("user"))
            if with_payment and quotation.get("payment"):
                quotation["payment"] = payments.get(quotation["payment"], quotation["payment"])
        return quotations

    async def _find(self, query: Dict[str, Any], with_payment: bool = True) -> List[Dict[str, Any]]:
        cursor = get_quotations_collection().find(query, sort=[("created_at", DESCENDING)])
        return await self._populate(await cursor.to_list(length=None), with_payment)

    async def _get_or_404(self, quotation_id) -> Dict[str, Any]:
        quotation = await get_quotations_collection().find_one(
            {"_id": to_object_id(quotation_id, "Quotation")}
        )
        if not quotation:
            raise ResourceNotFoundError(MSG_QUOTATION_NOT_FOUND)
        return quotation

    async def list_all(self) -> List[Dict[str, Any]]:
        return await self._find({}, with_payment=False)

    async def get(self, quotation_id, current_user: Dict[str, Any]) -> Dict[str, Any]:
        quotation = await self._get_or_404(quotation_id)
        if current_user.get("role") != Role.ADMIN.value and owner_id(quotation) != current_user["_id"]:
            raise ForbiddenError("Not authorized to access this quotation")
        return (await self._populate([quotation]))[0]

    async def my_quotations(self, current_user: Dict[str, Any]) -> List[Dict[str, Any]]:
        return await self._find({"user": current_user["_id"]})

    async def user_quotations(self, user_id, current_user: Dict[str, Any]) -> List[Dict[str, Any]]:
        user_service.ensure_self_or_admin(current_user, user_id)
        return await self._find({"user": to_object_id(user_id, "User")}, with_payment=False)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _transition(
        self,
        quotation_id: ObjectId,
        to_state: QuotationStatus,
        from_states: Optional[Iterable[QuotationStatus]] = None,
        extra: Optional[Dict[str, Any]] = None,
        extra_filter: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Moves a quotation to `to_state` if it currently sits in one of the
        predecessor statuses. Check and write are one database operation.

        Raises:
            ResourceNotFoundError: Quotation does not exist
            InvalidTransitionError: Current status does not allow the move
        """
        if from_states is None:
            from_states = allowed_predecessors(to_state)

        query: Dict[str, Any] = {"_id": quotation_id, "status": {"$in": status_values(from_states)}}
        query.update(extra_filter or {})

        update = {"status": to_state.value, "updated_at": time_utils.utcnow()}
        update.update(extra or {})

        quotation = await get_quotations_collection().find_one_and_update(
            query,
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
        if quotation is None:
            current = await get_quotations_collection().find_one({"_id": quotation_id}, {"status": 1})
            if not current:
                raise ResourceNotFoundError(MSG_QUOTATION_NOT_FOUND)
            raise InvalidTransitionError(
                f"Cannot move quotation from {current.get('status')} to {to_state.value}"
            )

        logger.info(
            f"Quotation → {to_state.value}",
            extra={"quotation_id": str(quotation_id), "status": to_state.value},
        )
        return quotation

    async def request(self, user: Dict[str, Any], fields: Dict[str, Any], upload: Optional[UploadFile]) -> Dict[str, Any]:
        """
        Creates a quotation request with its model file.

        All validation runs before the file is written. If the document
        cannot be inserted, the stored file is removed again.
        """
        fields = {key: value for key, value in fields.items() if key in EDITABLE_FIELDS}
        if not fields.get("project_name") or not fields.get("description"):
            raise ValidationError("Please provide project name and description")
        _validate_lengths(fields)

        stored = await file_service.save_upload(upload, file_service.model_file_rule())

        try:
            document = new_quotation_document(
                user_id=user["_id"],
                fields=fields,
                file_path=stored.relative_path,
                file_type=stored.file_type,
                file_size=stored.size,
                now=time_utils.utcnow(),
            )
            result = await get_quotations_collection().insert_one(document)
        except Exception:
            file_service.delete_stored_file(stored.relative_path)
            raise

        document["_id"] = result.inserted_id

        with LogContext(user_id=str(user["_id"]), quotation_id=str(result.inserted_id)):
            logger.info(f"Quotation requested: {document['project_name']}")
            await self._fan_out_requested(user, document)

        return document

    async def raise_quote(self, quotation_id, required_hour: float, notes: Optional[str] = None) -> Dict[str, Any]:
        if required_hour is None or required_hour < 0:
            raise ValidationError("Please provide required hours")
        if not check_max_length(notes, MAX_NOTES_LENGTH):
            raise ValidationError(f"Notes can not be more than {MAX_NOTES_LENGTH} characters")

        extra: Dict[str, Any] = {"required_hour": required_hour}
        if notes is not None:
            extra["notes"] = notes

        quotation = await self._transition(
            to_object_id(quotation_id, "Quotation"),
            QuotationStatus.QUOTED,
            extra=extra,
        )

        await self._notify_owner(
            quotation,
            title="Quote Ready",
            message=f"Your quote for \"{quotation['project_name']}\" is ready: {required_hour:g} hours",
            notification_type=NotificationType.QUOTE_RAISED,
            subject=f"Your Quote is Ready: {quotation['project_name']}",
            template=email_templates.QUOTE_RAISED_TO_USER,
            event=EVENT_QUOTATION_RAISED,
            extra_context={"requiredHour": f"{required_hour:g}"},
            extra_payload={"required_hour": required_hour},
        )
        return quotation

    async def update_required_hour(self, quotation_id, required_hour: float) -> Dict[str, Any]:
        """
        Changes the price without moving the status. Only before the owner decides.
        """
        if required_hour is None or required_hour < 0:
            raise ValidationError("Please provide required hours")

        oid = to_object_id(quotation_id, "Quotation")
        quotation = await get_quotations_collection().find_one_and_update(
            {"_id": oid, "status": {"$in": status_values(PRICE_EDITABLE_STATUSES)}},
            {"$set": {"required_hour": required_hour, "updated_at": time_utils.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if quotation is None:
            current = await self._get_or_404(oid)
            raise InvalidTransitionError(
                f"Required hours cannot be changed once a quotation is {current.get('status')}"
            )

        await self._notify_owner(
            quotation,
            title="Quote Updated",
            message=f"Quote hours for \"{quotation['project_name']}\" changed to {required_hour:g}",
            notification_type=NotificationType.QUOTE_RAISED,
            subject=f"Updated Quote Hours: {quotation['project_name']}",
            template=email_templates.QUOTE_HOUR_UPDATED,
            event=EVENT_QUOTATION_HOUR_UPDATED,
            extra_context={"requiredHour": f"{required_hour:g}"},
            extra_payload={"required_hour": required_hour},
        )
        return quotation

    def _parse_decision(self, status: Optional[str]) -> QuotationStatus:
        if status not in status_values(DECISION_STATUSES):
            raise InvalidStatusError()
        return QuotationStatus(status)

    async def _owned(self, quotation_id, user: Dict[str, Any]) -> Dict[str, Any]:
        quotation = await self._get_or_404(quotation_id)
        if owner_id(quotation) != user["_id"]:
            raise ForbiddenError("Not authorized to update this quotation")
        return quotation

    async def decide(self, quotation_id, user: Dict[str, Any], status: Optional[str]) -> Dict[str, Any]:
        """
        Owner approves or rejects a quoted price.

        Approval claims the quotation first, then debits the balance with a
        conditional update; if the balance does not cover the price, or the
        debit itself fails, the claim is put back to `quoted` and nothing else
        changes. Between claim and revert the quotation reads as `approved`;
        an admin moving it on in that window makes the revert a no-op, which
        is logged as an error.

        Returns:
            {"quotation", "message"}
        """
        decision = self._parse_decision(status)
        current = await self._owned(quotation_id, user)
        now = time_utils.utcnow()

        with LogContext(user_id=str(user["_id"]), quotation_id=str(current["_id"])):
            if decision == QuotationStatus.APPROVED:
                quotation = await self._transition(
                    current["_id"],
                    QuotationStatus.APPROVED,
                    extra={"approved_at": now},
                    extra_filter={"user": user["_id"]},
                )
                hours = required_hours(quotation)
                if hours > 0:
                    try:
                        debited = await user_service.debit_hours(user["_id"], hours)
                    except BaseException:
                        await self._revert_claim(quotation["_id"], "debit failed")
                        raise
                    if debited is None:
                        await self._revert_claim(quotation["_id"], "insufficient hours")
                        raise InsufficientHoursError(await self._shortfall_message(user["_id"], hours))
                    logger.info(f"Debited {hours:g} hours, balance now {debited.get('hours_balance'):g}")
            else:
                quotation = await self._transition(
                    current["_id"],
                    QuotationStatus.REJECTED,
                    extra_filter={"user": user["_id"]},
                )

        await self._fan_out_decision(quotation, user, decision)

        message = MSG_QUOTATION_APPROVED if decision == QuotationStatus.APPROVED else MSG_QUOTATION_REJECTED
        return {"quotation": quotation, "message": message}

    async def _revert_claim(self, quotation_id: ObjectId, reason: str) -> None:
        result = await get_quotations_collection().update_one(
            {"_id": quotation_id, "status": QuotationStatus.APPROVED.value},
            {"$set": {
                "status": QuotationStatus.QUOTED.value,
                "approved_at": None,
                "updated_at": time_utils.utcnow(),
            }},
        )
        if result.modified_count == 0:
            logger.error(
                f"Approval could not be reverted ({reason}): quotation is no longer approved",
                extra={"quotation_id": str(quotation_id)},
            )
            return
        logger.warning(f"Approval reverted: {reason}", extra={"quotation_id": str(quotation_id)})

    async def _shortfall_message(self, user_id: ObjectId, needed: float) -> str:
        user = await get_users_collection().find_one({"_id": user_id}, {"hours_balance": 1})
        balance = (user or {}).get("hours_balance", 0) or 0
        return f"Not enough hours. You have {balance:g} hours but need {needed:g}"

    async def decide_po(self, quotation_id, user: Dict[str, Any], status: Optional[str]) -> Dict[str, Any]:
        """
        Owner decision on the purchase-order path. No balance is touched;
        approving requires the purchase order itself to be approved.
        """
        decision = self._parse_decision(status)
        current = await self._owned(quotation_id, user)

        extra_filter: Dict[str, Any] = {"user": user["_id"]}
        extra: Dict[str, Any] = {}
        if decision == QuotationStatus.APPROVED:
            if current.get("po_status") != PoStatus.APPROVED.value:
                raise InvalidTransitionError("Purchase order must be approved before approving the quotation")
            extra_filter["po_status"] = PoStatus.APPROVED.value
            extra["approved_at"] = time_utils.utcnow()

        quotation = await self._transition(
            current["_id"],
            decision,
            extra=extra,
            extra_filter=extra_filter,
        )

        await self._fan_out_decision(quotation, user, decision)
        return {"quotation": quotation, "message": f"Quotation {decision.value}"}

    async def update_po_status(self, quotation_id, po_status: Optional[str]) -> Dict[str, Any]:
        """
        Sets the purchase-order sub-state and mirrors it on the linked PO payment.
        Approving a purchase order does not credit hours.
        """
        if not po_status:
            raise ValidationError("Please provide a PO status")
        if po_status not in [s.value for s in PoStatus]:
            raise ValidationError("Invalid PO status")

        oid = to_object_id(quotation_id, "Quotation")
        quotation = await get_quotations_collection().find_one_and_update(
            {"_id": oid},
            {"$set": {"po_status": po_status, "updated_at": time_utils.utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if not quotation:
            raise ResourceNotFoundError(MSG_QUOTATION_NOT_FOUND)

        if quotation.get("payment"):
            await get_payments_collection().update_one(
                {"_id": quotation["payment"], "gateway": PaymentGateway.PURCHASE_ORDER.value},
                {"$set": {"status": PO_PAYMENT_STATUS.get(po_status, PaymentStatus.PENDING.value)}},
            )

        logger.info(f"PO status → {po_status}", extra={"quotation_id": str(oid), "status": po_status})

        await self.notifier.publish(
            EVENT_QUOTATION_PO_STATUS,
            self._event_payload(quotation, f"Purchase order {po_status} for {quotation['project_name']}", {"po_status": po_status}),
            user_id=owner_id(quotation),
        )
        return quotation

    async def mark_ongoing(self, quotation_id) -> Dict[str, Any]:
        oid = to_object_id(quotation_id, "Quotation")
        try:
            quotation = await self._transition(
                oid,
                QuotationStatus.ONGOING,
                extra={"started_at": time_utils.utcnow()},
            )
        except InvalidTransitionError:
            raise InvalidTransitionError("Quotation must be approved before it can be marked as ongoing")

        await self._notify_owner(
            quotation,
            title="Work Started",
            message=f"Work has started on your project \"{quotation['project_name']}\"",
            notification_type=NotificationType.QUOTE_ONGOING,
            subject=f"Work Started: {quotation['project_name']}",
            template=email_templates.WORK_STARTED_TO_USER,
            event=EVENT_QUOTATION_ONGOING,
            extra_context={"supportEmail": settings.SUPPORT_EMAIL},
        )
        return quotation

    async def complete(self, quotation_id, upload: Optional[UploadFile]) -> Dict[str, Any]:
        """
        Records the deliverable file and moves the quotation to `completed`.

        Any status may be completed unless STRICT_COMPLETION is set, in which
        case only `ongoing` quotations qualify.
        """
        current = await self._get_or_404(quotation_id)

        if settings.STRICT_COMPLETION:
            from_states = [QuotationStatus.ONGOING]
            if current.get("status") != QuotationStatus.ONGOING.value:
                raise InvalidTransitionError("Quotation must be ongoing before it can be completed")
        else:
            from_states = list(QuotationStatus)

        stored = await file_service.save_upload(upload, file_service.deliverable_file_rule())

        try:
            quotation = await self._transition(
                current["_id"],
                QuotationStatus.COMPLETED,
                from_states=from_states,
                extra={
                    "completed_file": stored.relative_path,
                    "completed_file_type": stored.file_type,
                    "completed_file_size": stored.size,
                    "completed_at": time_utils.utcnow(),
                },
            )
        except Exception:
            file_service.delete_stored_file(stored.relative_path)
            raise

        previous = current.get("completed_file")
        if previous and previous != stored.relative_path:
            file_service.delete_stored_file(previous)

        await self._notify_owner(
            quotation,
            title="Project Completed",
            message=f"Your project \"{quotation['project_name']}\" has been completed",
            notification_type=NotificationType.QUOTE_COMPLETED,
            subject=f"Project Completed: {quotation['project_name']}",
            template=email_templates.PROJECT_COMPLETED_TO_USER,
            event=EVENT_QUOTATION_COMPLETED,
            extra_context={
                "downloadLink": self._project_link(quotation),
                "supportEmail": settings.SUPPORT_EMAIL,
            },
        )
        return quotation

    async def update(
        self,
        quotation_id,
        user: Dict[str, Any],
        fields: Dict[str, Any],
        upload: Optional[UploadFile] = None,
    ) -> Dict[str, Any]:
        """
        Owner edit. A replacement file is staged first; the old file is only
        deleted once the document points at the new one.
        """
        current = await self._owned(quotation_id, user)

        changes = {key: value for key, value in fields.items() if key in EDITABLE_FIELDS and value}
        _validate_lengths(changes)

        stored = None
        if upload is not None and upload.filename:
            stored = await file_service.save_upload(upload, file_service.model_file_rule())
            changes.update({
                "file": stored.relative_path,
                "file_type": stored.file_type,
                "file_size": stored.size,
            })

        changes["updated_at"] = time_utils.utcnow()

        try:
            quotation = await get_quotations_collection().find_one_and_update(
                {"_id": current["_id"]},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
            if quotation is None:
                raise ResourceNotFoundError(MSG_QUOTATION_NOT_FOUND)
        except Exception:
            if stored:
                file_service.delete_stored_file(stored.relative_path)
            raise

        if stored and current.get("file") and current["file"] != stored.relative_path:
            file_service.delete_stored_file(current["file"])

        await self.notifier.publish(
            EVENT_QUOTATION_USER_UPDATED,
            self._event_payload(
                quotation,
                f"User updated quotation for {quotation['project_name']}",
                {"project_name": quotation["project_name"]},
            ),
        )
        return quotation

    async def delete(self, quotation_id) -> None:
        """
        Hard delete. Stored files and notifications about the quotation go with it.
        """
        oid = to_object_id(quotation_id, "Quotation")
        quotation = await get_quotations_collection().find_one_and_delete({"_id": oid})
        if not quotation:
            raise ResourceNotFoundError(MSG_QUOTATION_NOT_FOUND)

        for path in stored_files(quotation):
            file_service.delete_stored_file(path)

        removed = await self.notifier.delete_for_quotation(oid)
        logger.info(
            f"Quotation deleted ({removed} notifications removed)",
            extra={"quotation_id": str(oid)},
        )

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    def _project_link(self, quotation: Dict[str, Any]) -> str:
        return f"{settings.FRONTEND_URL.rstrip('/')}/quotations/{quotation['_id']}"

    def _event_payload(self, quotation: Dict[str, Any], message: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = {
            "user": owner_id(quotation),
            "quotation_id": quotation["_id"],
            "status": quotation.get("status"),
            "message": message,
        }
        payload.update(extra or {})
        return payload

    async def _publish_to_owner_and_admins(self, event: str, quotation: Dict[str, Any], payload: Dict[str, Any], admins) -> None:
        await self.notifier.publish(event, payload, user_id=owner_id(quotation))
        for admin in admins:
            if admin["_id"] != owner_id(quotation):
                await self.notifier.publish(event, payload, user_id=admin["_id"])

    async def _notify_owner(
        self,
        quotation: Dict[str, Any],
        title: str,
        message: str,
        notification_type: NotificationType,
        subject: str,
        template: str,
        event: str,
        extra_context: Optional[Dict[str, Any]] = None,
        extra_payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Admin-triggered transitions: tell the owner, keep admin screens in sync."""
        owner = await get_users_collection().find_one({"_id": owner_id(quotation)}, USER_PROJECTION)

        await self.notifier.notify(owner_id(quotation), title, message, notification_type, quotation["_id"])

        if owner:
            context = {
                "userName": owner.get("name") or "",
                "projectName": quotation["project_name"],
                "projectLink": self._project_link(quotation),
            }
            context.update(extra_context or {})
            await self.notifier.email(owner.get("email"), subject, template, context)
        else:
            logger.warning("Quotation owner no longer exists, skipping email", extra={"quotation_id": str(quotation["_id"])})

        admins = await self.notifier.get_admins()
        await self._publish_to_owner_and_admins(
            event, quotation, self._event_payload(quotation, message, extra_payload), admins
        )

    async def _fan_out_requested(self, user: Dict[str, Any], quotation: Dict[str, Any]) -> None:
        project_name = quotation["project_name"]
        admins = await self.notifier.get_admins()

        await self.notifier.notify_many(
            [admin["_id"] for admin in admins],
            "New Quotation Request",
            f"New quotation requested for project: {project_name}",
            NotificationType.QUOTE_REQUESTED,
            quotation["_id"],
        )

        await self.notifier.email(
            [admin.get("email") for admin in admins],
            f"New Quotation Request: {project_name}",
            email_templates.QUOTATION_REQUESTED_TO_ADMIN,
            {
                "userName": user.get("name") or "",
                "userEmail": user.get("email") or "",
                "projectName": project_name,
                "description": quotation.get("description") or "",
                "date": time_utils.format_timestamp(quotation["created_at"]),
            },
        )
        await self.notifier.email(
            user.get("email"),
            f"Quotation Request Received: {project_name}",
            email_templates.QUOTATION_REQUESTED_TO_USER,
            {
                "userName": user.get("name") or "",
                "projectName": project_name,
                "supportEmail": settings.SUPPORT_EMAIL,
            },
        )

        await self.notifier.publish(
            EVENT_QUOTATION_REQUESTED,
            self._event_payload(
                quotation,
                f"Quotation requested for {project_name}",
                {"project_name": project_name},
            ),
        )

    async def _fan_out_decision(self, quotation: Dict[str, Any], user: Dict[str, Any], decision: QuotationStatus) -> None:
        project_name = quotation["project_name"]
        approved = decision == QuotationStatus.APPROVED
        admins = await self.notifier.get_admins()
        hours = f"{required_hours(quotation):g}"
        today = time_utils.format_timestamp(time_utils.utcnow())

        await self.notifier.notify(
            user["_id"],
            f"Quotation {decision.value.capitalize()}",
            f"Your quotation \"{project_name}\" has been {decision.value}",
            NotificationType.QUOTE_APPROVED if approved else NotificationType.QUOTE_REJECTED,
            quotation["_id"],
        )

        subject = f"Quotation {decision.value.capitalize()}: {project_name}"
        user_context = {
            "userName": user.get("name") or "",
            "projectName": project_name,
            "supportEmail": settings.SUPPORT_EMAIL,
        }
        admin_context = {
            "userName": user.get("name") or "",
            "userEmail": user.get("email") or "",
            "projectName": project_name,
            "date": today,
        }
        if approved:
            user_context["requiredHour"] = hours
            admin_context["requiredHour"] = hours

        await self.notifier.email(
            user.get("email"),
            subject,
            email_templates.QUOTE_APPROVED_TO_USER if approved else email_templates.QUOTE_REJECTED_TO_USER,
            user_context,
        )
        await self.notifier.email(
            [admin.get("email") for admin in admins],
            subject,
            email_templates.QUOTE_APPROVED_TO_ADMIN if approved else email_templates.QUOTE_REJECTED_TO_ADMIN,
            admin_context,
        )

        await self._publish_to_owner_and_admins(
            EVENT_QUOTATION_DECISION,
            quotation,
            self._event_payload(quotation, f"Quotation {decision.value} for project {project_name}"),
            admins,
        )


# Global service instance
_quotation_service: Optional[QuotationService] = None


def get_quotation_service() -> QuotationService:
    """Get or create the quotation service."""
    global _quotation_service
    if _quotation_service is None:
        _quotation_service = QuotationService(notifier=get_notification_service())
    return _quotation_service
