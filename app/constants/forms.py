"""
Form model constants - input kinds, branching actions, analytics event types.
"""

# Question input types (stored values)
INPUT_TEXT = "text"  # free text
INPUT_PASSWORD = "password"  # hidden text
INPUT_SELECT = "select"  # single select dropdown
INPUT_BUTTONS = "buttons"  # clickable button choice

INPUT_TYPES = {INPUT_TEXT, INPUT_PASSWORD, INPUT_SELECT, INPUT_BUTTONS}
CHOICE_INPUT_TYPES = {INPUT_SELECT, INPUT_BUTTONS}

# Branching actions
ACTION_JUMP_TO_STEP = "jump_to_step"
ACTION_END_WITH_VARIANT = "end_with_variant"

# Legacy spellings still found in stored conditional_logic
LEGACY_ACTION_ALIASES = {
    "skip_to_step": ACTION_JUMP_TO_STEP,
    "success_page": ACTION_END_WITH_VARIANT,
}

DEFAULT_VARIANT = "default"

# Analytics event types
EVENT_FORM_STARTED = "form_started"
EVENT_FORM_COMPLETED = "form_completed"
EVENT_FORM_ABANDONED = "form_abandoned"
EVENT_WHATSAPP_CLICKED = "whatsapp_clicked"

FORM_EVENT_TYPES = {
    EVENT_FORM_STARTED,
    EVENT_FORM_COMPLETED,
    EVENT_FORM_ABANDONED,
    EVENT_WHATSAPP_CLICKED,
}
