from __future__ import annotations


class RemedyServiceError(Exception):
    """Base error carrying the HTTP status it is reported with."""

    status_code: int = 500
    default_message: str = "Failed to generate recommendation"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(RemedyServiceError):
    status_code = 400
    default_message = "Invalid request"


class UpstreamModelError(RemedyServiceError):
    status_code = 500
    default_message = "Invalid AI response format"


class RateLimited(UpstreamModelError):
    status_code = 429
    default_message = "Rate limit exceeded. Please try again in a moment."


class PaymentRequired(UpstreamModelError):
    status_code = 402
    default_message = "AI service requires payment. Please contact support."
