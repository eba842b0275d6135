"""Domain exceptions mapped to HTTP responses in main.py."""


class HPCError(Exception):
    """Base class for application errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(HPCError):
    """A form field failed validation."""

    status_code = 422

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class AuthError(HPCError):
    status_code = 401


class NotFoundError(HPCError):
    status_code = 404


class SubscriptionRequired(HPCError):
    """Raised when a free-tier user opens a Pro-only feature."""

    status_code = 402

    def __init__(self, feature: str):
        super().__init__(f"Recurso disponível apenas no plano Pro: {feature}")
        self.feature = feature


class AIServiceError(HPCError):
    status_code = 502


class AIUnavailableError(AIServiceError):
    """No API key configured."""

    status_code = 503

    def __init__(self, message: str = "API Key missing"):
        super().__init__(message)


class PaymentError(HPCError):
    status_code = 400
