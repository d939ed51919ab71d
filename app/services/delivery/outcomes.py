"""
Per-channel delivery outcome.

Each delivery attempt (spreadsheet, CRM, local persistence) produces one
DeliveryOutcome; the dispatcher's aggregation policies only look at these.
"""

from dataclasses import dataclass


@dataclass
class DeliveryOutcome:
    channel: str
    ok: bool
    configured: bool = True
    status_code: int | None = None
    rate_limited: bool = False
    detail: str | None = None

    @classmethod
    def not_configured(cls, channel: str, detail: str | None = None) -> "DeliveryOutcome":
        return cls(channel=channel, ok=False, configured=False, detail=detail)

    @classmethod
    def failed(
        cls,
        channel: str,
        detail: str,
        status_code: int | None = None,
        rate_limited: bool = False,
    ) -> "DeliveryOutcome":
        return cls(
            channel=channel,
            ok=False,
            status_code=status_code,
            rate_limited=rate_limited,
            detail=detail,
        )
