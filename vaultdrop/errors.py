from __future__ import annotations


class ClientError(RuntimeError):
    """Base class for every failure surfaced by the VaultDrop client."""


class NetworkError(ClientError):
    def __init__(self, message: str = "Network request failed.") -> None:
        super().__init__(message)


def _friendly_error_message(status_code: int) -> str:
    if status_code == 401:
        return "Authentication failed. Your session may have expired."
    if status_code == 403:
        return "You don't have permission to perform this action."
    if status_code == 404:
        return "The requested resource was not found."
    if status_code == 429:
        return "Too many requests. Please try again later."
    if status_code >= 500:
        return "VaultDrop is experiencing issues. Please try again later."
    return f"Request failed with status {status_code}."


class HttpError(ClientError):
    def __init__(self, status_code: int, body=None, message: str | None = None) -> None:
        if message is None and isinstance(body, dict):
            server_message = body.get("message")
            if isinstance(server_message, str) and server_message:
                message = server_message
        super().__init__(message or _friendly_error_message(status_code))
        self.status_code = status_code
        self.body = body

    @property
    def message(self) -> str:
        return str(self)


class AuthExpiredError(HttpError):
    """A refreshable 401. Resolved by the client, never raised to callers."""

    def __init__(self, body=None, *, access_token: str | None = None) -> None:
        super().__init__(401, body)
        self.access_token = access_token


class RefreshFailedError(ClientError):
    def __init__(self, message: str = "Session refresh failed. Please log in again.") -> None:
        super().__init__(message)


class NoRefreshTokenError(RefreshFailedError):
    def __init__(self, message: str = "No refresh token available. Please log in again.") -> None:
        super().__init__(message)


class SubscriptionRequiredError(ClientError):
    def __init__(self, message: str = "An active premium subscription is required.") -> None:
        super().__init__(message)
