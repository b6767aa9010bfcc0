"""Exceptions shared by the backend client and the screens."""


class BackendError(Exception):
    """Raised when a backend call fails or returns an unsuccessful envelope."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        server_message: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.server_message = server_message
        super().__init__(message)


class FormError(ValueError):
    """Raised when local form input is rejected before any backend call."""
