"""WhatsApp rotation and handoff links. Re-exports for stable public API."""

from app.services.whatsapp.links import build_whatsapp_link, resolve_whatsapp_link
from app.services.whatsapp.rotation import Allocation, allocate, select_agent

__all__ = [
    "Allocation",
    "allocate",
    "build_whatsapp_link",
    "resolve_whatsapp_link",
    "select_agent",
]
