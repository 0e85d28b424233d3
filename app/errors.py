"""
Error types raised by the chat and document services.

Each exception carries a technical message (for logs) and a client-safe
message plus HTTP status (for API responses). Upstream error text is only
ever attached as the exception cause, never as the client message.
"""


class AdvocateError(Exception):
    """Base exception for service errors."""

    status_code = 500

    def __init__(self, message: str, user_message: str = None, status_code: int = None):
        super().__init__(message)
        self.user_message = user_message or message
        if status_code is not None:
            self.status_code = status_code


class Unauthenticated(AdvocateError):
    """No valid identity on the request."""

    status_code = 401

    def __init__(self, message: str = "Unauthenticated"):
        super().__init__(message, "Unauthorized")


class InvalidArgument(AdvocateError):
    """Malformed input: blank title, oversized or unsupported file."""

    status_code = 400


class NotFound(AdvocateError):
    """Entity absent or not owned by the caller."""

    status_code = 404


class PaymentRequired(AdvocateError):
    """Free-tier credits exhausted."""

    status_code = 402

    def __init__(self, user_id: str):
        super().__init__(
            f"User {user_id} has no credits remaining",
            "No credits remaining",
        )
        self.user_id = user_id


class ExtractionFailure(AdvocateError):
    """Document bytes could not be turned into text."""

    def __init__(self, message: str):
        super().__init__(message, "Failed to process document")


class AnalysisFailure(AdvocateError):
    """Completion API failed while analyzing a document."""

    def __init__(self, message: str):
        super().__init__(message, "Analysis failed")


class GenerationFailure(AdvocateError):
    """Completion API failed or timed out while generating a chat reply."""

    def __init__(self, message: str):
        super().__init__(message, "Generation failed")


class InternalFailure(AdvocateError):
    """Any other unexpected fault (store unavailable, etc.)."""

    def __init__(self, message: str):
        super().__init__(message, "Internal server error")
