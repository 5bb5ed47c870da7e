from __future__ import annotations


class AnimationServiceError(Exception):
    """Base exception for all animation-service errors."""

    code = "internal_error"
    status_code = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AnimationServiceError):
    """Bad or empty input (e.g., whitespace-only prompt)."""

    code = "validation_error"
    status_code = 400
    default_message = "Valid prompt is required."


class MissingField(ValidationError):
    """A required body field was not supplied."""

    code = "missing_field"
    default_message = "A required field is missing."


class AuthError(AnimationServiceError):
    """Missing, invalid, or expired bearer token."""

    code = "unauthorized"
    status_code = 401
    default_message = "Invalid or expired token."


class InsufficientCredits(AnimationServiceError):
    """The caller has no credit left for a paid action."""

    code = "insufficient_credits"
    status_code = 403
    default_message = "You have run out of credits. Please purchase more to continue."


class NotFound(AnimationServiceError):
    """The record does not exist or is not owned by the caller."""

    code = "not_found"
    status_code = 404
    default_message = "Animation not found."


class GenerationError(AnimationServiceError):
    """Base class for failures of the AI text adapter."""


class RateLimited(GenerationError):
    """The AI vendor rejected the call with a rate limit."""

    code = "rate_limited"
    status_code = 429
    default_message = "Too many requests. Please wait a moment and try again."


class AdapterUnavailable(GenerationError):
    """The AI vendor is unreachable, overloaded, or the call timed out."""

    code = "adapter_unavailable"
    status_code = 500
    default_message = "The AI model is temporarily unavailable. Please try again later."


class AdapterError(GenerationError):
    """Any other AI vendor or model configuration failure."""

    code = "adapter_error"
    status_code = 500
    default_message = "An error occurred while generating the animation."


class InvalidGeneratedCode(GenerationError):
    """Generated text failed the setup()/draw() smoke test."""

    code = "invalid_generated_code"
    status_code = 500
    default_message = (
        "The AI could not produce a valid animation for this request. "
        "Please try a different prompt."
    )


class PaymentError(AnimationServiceError):
    """Base class for payment flow failures."""

    status_code = 400


class InvalidPlan(PaymentError):
    """Unknown plan id, or a plan that does not match the paid order."""

    code = "invalid_plan"
    default_message = "Invalid plan."


class InvalidSignature(PaymentError):
    """The payment callback signature does not verify."""

    code = "invalid_signature"
    default_message = "Invalid payment signature."


class UnknownOrder(PaymentError):
    """The order was not created by this service for the caller."""

    code = "unknown_order"
    default_message = "Unknown payment order."


class PaymentGatewayError(PaymentError):
    """The payment gateway could not create an order."""

    code = "payment_gateway_error"
    status_code = 502
    default_message = "Failed to create order."
