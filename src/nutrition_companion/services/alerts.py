"""User-facing alerts raised by the screens."""

from dataclasses import dataclass
from enum import Enum

from nutrition_companion.errors import BackendError


class AlertLevel(Enum):
    """Severity of an alert."""

    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Alert:
    """Modal message shown to the user after an action."""

    title: str
    message: str
    level: AlertLevel = AlertLevel.INFO

    @property
    def is_error(self) -> bool:
        """Return true for error alerts."""
        return self.level is AlertLevel.ERROR


def success_alert(title: str, message: str) -> Alert:
    """Build a success alert."""
    return Alert(title=title, message=message, level=AlertLevel.SUCCESS)


def error_alert(title: str, message: str) -> Alert:
    """Build an error alert."""
    return Alert(title=title, message=message, level=AlertLevel.ERROR)


def failure_alert(
    title: str, exc: Exception, fallback: str, *, debug: bool = False
) -> Alert:
    """Turn a failed call into an alert, preferring the server's message."""
    if isinstance(exc, BackendError) and exc.server_message:
        return error_alert(title, exc.server_message)
    if debug:
        detail = f"{type(exc).__name__}: {exc}".strip()
        return error_alert(title, f"{fallback} (debug: {detail})")
    return error_alert(title, fallback)
