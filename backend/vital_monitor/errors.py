"""
Errors raised by the vital service.

The API layer turns these into ErrorResponse bodies; see main.create_app.
"""

from vital_monitor.models import ErrorCode, ErrorResponse


class VitalValidationError(Exception):
    """A submission or query was rejected. Carries the rejection details."""

    def __init__(self, failure: ErrorResponse):
        super().__init__(failure.error)
        self.failure = failure


class VitalNotFoundError(Exception):
    """No reading is stored under the requested id."""

    def __init__(self, vital_id: int):
        super().__init__(f"Vital {vital_id} not found.")
        self.vital_id = vital_id

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=str(self), field="id", code=ErrorCode.NOT_FOUND)
