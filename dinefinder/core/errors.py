from __future__ import annotations

from typing import Literal

ErrorStep = Literal["config", "validation", "geocoding", "places_search", "place_details", "unknown"]

_STATUS_BY_STEP = {
    "validation": 400,
}


class ScanError(Exception):
    """A failure tagged with the pipeline step that produced it."""

    def __init__(self, step: ErrorStep, message: str, status_code: int | None = None):
        super().__init__(message)
        self.step = step
        self.message = message
        self.status_code = status_code or _STATUS_BY_STEP.get(step, 500)

    def to_payload(self) -> dict:
        return {"error": {"step": self.step, "message": self.message}}
