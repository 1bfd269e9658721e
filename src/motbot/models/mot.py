"""MOT History API models.

Fields are mapped from the ``/v1/trade/vehicles/registration/{registration}``
response of the DVSA MOT History API.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from motbot.models._base import ApiBaseModel


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


class Defect(ApiBaseModel):
    """A defect or advisory recorded against one MOT test."""

    text: str = ""
    """Free-text description from the tester."""
    type: str = ""
    """Category such as ``ADVISORY``, ``FAIL``, ``MAJOR`` or ``USER ENTERED``."""
    dangerous: bool = False
    """Whether the defect was marked dangerous."""


class MotTest(ApiBaseModel):
    """One historical MOT test."""

    completed_date: str = ""
    """ISO timestamp the test was completed (e.g. ``2023-01-01T00:00:00Z``)."""
    test_result: str = ""
    """``PASSED`` or ``FAILED``."""
    expiry_date: str = ""
    """Certificate expiry (``YYYY-MM-DD``), only present for passes."""
    odometer_value: str = ""
    """Odometer reading as sent by the API."""
    odometer_unit: str = ""
    """``MI`` or ``KM``."""
    odometer_result_type: str = ""
    """``READ``, ``UNREADABLE`` or ``NO_ODOMETER``."""
    mot_test_number: str = ""
    """Test certificate number."""
    defects: list[Defect] = Field(default_factory=list)
    """Defects in the order the API returned them."""

    @field_validator(
        "completed_date",
        "test_result",
        "expiry_date",
        "odometer_value",
        "odometer_unit",
        "odometer_result_type",
        "mot_test_number",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value)

    @property
    def failed(self) -> bool:
        """Whether the test result is a fail (case-insensitive)."""
        return self.test_result.strip().upper() == "FAILED"


class MotVehicle(ApiBaseModel):
    """Test-history oriented vehicle record returned by the MOT History API."""

    registration: str = ""
    make: str = ""
    model: str = ""
    first_used_date: str = ""
    fuel_type: str = ""
    primary_colour: str = ""
    registration_date: str = ""
    manufacture_date: str = ""
    engine_size: str = ""
    mot_test_due_date: str = ""
    """Present for vehicles that have not had their first test yet."""
    mot_tests: list[MotTest] = Field(default_factory=list)
    """Tests in the order the API returned them (newest first)."""

    @field_validator(
        "registration",
        "make",
        "model",
        "first_used_date",
        "fuel_type",
        "primary_colour",
        "registration_date",
        "manufacture_date",
        "engine_size",
        "mot_test_due_date",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value)
