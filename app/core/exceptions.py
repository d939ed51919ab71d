"""
Domain exceptions raised by the form and delivery services.

API routers translate these into structured JSON responses; nothing here
knows about HTTP.
"""


class QuestionModelError(Exception):
    """A tenant's question model is inconsistent (duplicate steps or field names)."""

    def __init__(self, subdomain: str, problems: list[str]):
        self.subdomain = subdomain
        self.problems = problems
        super().__init__(f"Invalid question model for '{subdomain}': {'; '.join(problems)}")


class ConfigurationError(Exception):
    """Admin-supplied configuration was rejected at save time."""

    def __init__(self, message: str, fields: dict[str, str] | None = None):
        self.fields = fields or {}
        super().__init__(message)


class SubmissionValidationError(Exception):
    """A submission payload violated the size/type limits. Raised before any side effect."""

    def __init__(self, fields: dict[str, str]):
        self.fields = fields
        super().__init__(f"Invalid submission fields: {', '.join(sorted(fields))}")
