from __future__ import annotations

import math
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _coerce_number(value: Any) -> float | None:
    """Return a finite float for numeric-looking input, otherwise ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _coerce_points(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [dict(item) for item in value if isinstance(item, dict)]


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Viewport(CamelModel):
    width: float | None = None
    height: float | None = None

    @field_validator("width", "height", mode="before")
    @classmethod
    def _numeric(cls, value: Any) -> float | None:
        return _coerce_number(value)


class TelemetryEvent(CamelModel):
    """A single raw interaction record submitted by a client session.

    Every field is optional. Values of the wrong shape are coerced to their
    empty form rather than rejected, so a malformed event simply contributes
    nothing to the affected metrics.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    session_id: str | None = None
    current_page: str | None = Field(
        default=None,
        validation_alias=AliasChoices("currentPage", "pageUrl", "current_page"),
    )
    event_type: str | None = None
    clicks: list[dict[str, Any]] = Field(default_factory=list)
    mouse_movements: list[dict[str, Any]] = Field(default_factory=list)
    scrolls: list[dict[str, Any]] = Field(default_factory=list)
    rage_clicks: list[dict[str, Any]] = Field(default_factory=list)
    time_on_page: float | None = None
    viewport: Viewport | None = None
    conversion_time: float | None = None
    session_status: str | None = None

    @field_validator("session_id", "current_page", "event_type", "session_status", mode="before")
    @classmethod
    def _stringish(cls, value: Any) -> str | None:
        if value is None or isinstance(value, (dict, list)):
            return None
        return str(value)

    @field_validator("clicks", "mouse_movements", "scrolls", "rage_clicks", mode="before")
    @classmethod
    def _points(cls, value: Any) -> list[dict[str, Any]]:
        return _coerce_points(value)

    @field_validator("time_on_page", "conversion_time", mode="before")
    @classmethod
    def _numeric(cls, value: Any) -> float | None:
        return _coerce_number(value)

    @field_validator("viewport", mode="before")
    @classmethod
    def _viewport(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None


class EventReceipt(BaseModel):
    """Acknowledgement returned after an event is appended to the log."""

    message: str = "Event data received"
    received: dict[str, Any] | None = None
    counts: dict[str, Any] | None = None


class ResetResponse(BaseModel):
    message: str = "Event log cleared"
    cleared: int
