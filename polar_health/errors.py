"""
Error taxonomy for the Polar integration.
Each error carries the HTTP status the API layer answers with.
"""
from typing import Optional


class PolarIntegrationError(Exception):
    """Base class for failures surfaced to API clients."""

    http_status: int = 500


class InvalidState(PolarIntegrationError):
    """Callback state is unknown, expired or already consumed."""

    http_status = 400

    def __init__(self, state: Optional[str] = None):
        self.state = state
        super().__init__("Invalid state parameter")


class TokenExchangeFailed(PolarIntegrationError):
    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Token exchange failed: {status_code} - {body}")


class NoCredential(PolarIntegrationError):
    """No access token is stored for the user."""

    http_status = 401

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"No access token found for user {user_id}")


class RegistrationFailed(PolarIntegrationError):
    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"User registration failed: {status_code} - {body}")


class TransactionListFailed(PolarIntegrationError):
    def __init__(self, kind: str, status_code: int):
        self.kind = kind
        self.status_code = status_code
        super().__init__(f"{kind.capitalize()} transactions failed: {status_code}")
