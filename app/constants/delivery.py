"""
Delivery channel and status constants.
"""

CHANNEL_SPREADSHEET = "spreadsheet"
CHANNEL_CRM = "crm"
CHANNEL_DATABASE = "database"

# crm_status reported in submission results
CRM_STATUS_SENT = "sent"
CRM_STATUS_ERROR = "error"
CRM_STATUS_NOT_CONFIGURED = "not_configured"

# Keys sent separately from dynamic fields in the CRM payload
UTM_KEYS = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "gclid",
    "fbclid",
)

# Fixed fields never repeated as dynamic CRM fields
CRM_FIXED_KEYS = {"nome", "name", "telefone", "whatsapp", "phone", "email"}

# Response body phrasing that identifies a rate-limited spreadsheet receiver
RATE_LIMIT_PHRASES = (
    "muitas solicitações",
    "muitas solicitacoes",
    "too many requests",
    "rate limit",
)

# Envelope keys that clients sometimes nest the trace under
NESTED_PAYLOAD_KEYS = ("data", "body", "payload", "formData")
