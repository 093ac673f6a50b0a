"""
utils/constants.py

Purpose: Centralized static content

- Upload allow-lists
- Field length limits
- Real-time event names
- Reusable user-facing messages

(Prevents hardcoding across the codebase)
"""

# ============================================================
# FILE INTAKE
# ============================================================

MODEL_EXTENSIONS = (".stl", ".obj", ".ply", ".3mf")

DELIVERABLE_EXTENSIONS = MODEL_EXTENSIONS + (".zip", ".rar")

PURCHASE_ORDER_EXTENSIONS = (".pdf", ".doc", ".docx", ".jpeg", ".jpg", ".png")

PURCHASE_ORDER_MIME_TYPES = (
    "application/pdf",
    "image/jpeg",
    "image/png",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)

# Storage areas, relative to STORAGE_ROOT; they double as public URL prefixes
UPLOADS_AREA = "uploads"
COMPLETED_AREA = "completed_files"
PURCHASE_ORDER_AREA = "uploads/purchase_orders"

UPLOAD_CHUNK_SIZE = 1024 * 1024


# ============================================================
# FIELD LIMITS
# ============================================================

MAX_NAME_LENGTH = 50
MAX_PHONE_LENGTH = 20
MAX_PROJECT_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_DELIVERABLES_LENGTH = 1000
MAX_NOTES_LENGTH = 1000
MIN_PASSWORD_LENGTH = 6


# ============================================================
# REAL-TIME EVENTS
# ============================================================

EVENT_NOTIFICATION_NEW = "notification:new"
EVENT_NOTIFICATION_READ = "notification:read"
EVENT_NOTIFICATION_DELETED = "notification:deleted"
EVENT_QUOTATION_REQUESTED = "quotation:requested"
EVENT_QUOTATION_RAISED = "quotation:raised"
EVENT_QUOTATION_HOUR_UPDATED = "quotation:hour-updated"
EVENT_QUOTATION_DECISION = "quotation:decision"
EVENT_QUOTATION_ONGOING = "quotation:ongoing"
EVENT_QUOTATION_COMPLETED = "quotation:completed"
EVENT_QUOTATION_USER_UPDATED = "quotation:userUpdated"
EVENT_QUOTATION_PO_STATUS = "quotation:po-status"
EVENT_PAYMENT_VERIFIED = "payment:verified"


# ============================================================
# MESSAGES
# ============================================================

MSG_VERIFICATION_SENT = "Verification email sent"
MSG_VERIFICATION_RESENT = "Verification email resent"
MSG_USER_EXISTS = "User already exists"
MSG_EMAIL_SEND_FAILED = "Email could not be sent"
MSG_QUOTATION_NOT_FOUND = "Quotation not found"
MSG_USER_NOT_FOUND = "User not found"
MSG_QUOTATION_APPROVED = "Quotation approved and hours deducted"
MSG_QUOTATION_REJECTED = "Quotation rejected"
MSG_PO_SUBMITTED = "Purchase order submitted for approval and linked to quotation"
