"""Shared base for backend DTOs."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class BackendModel(BaseModel):
    """Record mirrored from a backend response."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def zero_if_missing(value: object) -> object:
    """Treat a missing or null numeric field as zero."""
    if value is None or value == "":
        return 0
    return value


def empty_if_missing(value: object) -> object:
    """Treat a missing or null list field as empty."""
    if value is None:
        return []
    return value


def text_if_missing(value: object) -> object:
    """Treat a missing or null text field as empty."""
    if value is None:
        return ""
    return value


def date_part_or_none(value: object) -> object:
    """Read the calendar date of an ISO date or timestamp, or None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError:
            return None
    return value
