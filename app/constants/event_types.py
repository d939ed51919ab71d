"""
Event type constants for SystemEvent.

Use these instead of string literals to ensure consistency.
"""

# ---- Submission ----
EVENT_SUBMISSION_SUPPRESSED = "submission.suppressed"
EVENT_SUBMISSION_REJECTED = "submission.rejected"
EVENT_SUBMISSION_STEP_FAILURE = "submission.step_failure"

# ---- API ----
EVENT_UNHANDLED_ERROR = "api.unhandled_error"

# ---- Persistence ----
EVENT_LEAD_PERSIST_FAILURE = "lead.persist_failure"

# ---- Spreadsheet ----
EVENT_SPREADSHEET_NOT_CONFIGURED = "spreadsheet.not_configured"
EVENT_SPREADSHEET_DELIVERY_FAILURE = "spreadsheet.delivery_failure"
EVENT_SPREADSHEET_RATE_LIMITED = "spreadsheet.rate_limited"

# ---- CRM ----
EVENT_CRM_DELIVERY_FAILURE = "crm.delivery_failure"
EVENT_CRM_EXCLUSIVE_FAILURE = "crm.exclusive_failure"

# ---- WhatsApp rotation ----
EVENT_ROTATION_CURSOR_CONFLICT = "whatsapp_rotation.cursor_conflict"
EVENT_ROTATION_NO_ACTIVE_AGENT = "whatsapp_rotation.no_active_agent"

# ---- Configuration ----
EVENT_QUESTION_MODEL_INVALID = "question_model.invalid"
