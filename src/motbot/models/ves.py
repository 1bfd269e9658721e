"""Vehicle Enquiry Service model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from motbot.models._base import ApiBaseModel


class VesVehicle(ApiBaseModel):
    """Registration/tax oriented vehicle record returned by the DVLA VES API.

    Dates stay as the ``YYYY-MM-DD`` strings the API sends; rendering them
    for display is the formatter's job.
    """

    registration_number: str = ""
    tax_status: str = ""
    tax_due_date: str = ""
    mot_status: str = ""
    make: str = ""
    colour: str = ""
    fuel_type: str = ""
    year_of_manufacture: int | None = None
    engine_capacity: int | None = None
    co2_emissions: int | None = None
    wheelplan: str = ""
    euro_status: str = ""
    date_of_last_v5c_issued: str = Field(
        default="",
        validation_alias=AliasChoices("dateOfLastV5CIssued", "date_of_last_v5c_issued"),
    )

    @field_validator(
        "registration_number",
        "tax_status",
        "tax_due_date",
        "mot_status",
        "make",
        "colour",
        "fuel_type",
        "wheelplan",
        "euro_status",
        "date_of_last_v5c_issued",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("year_of_manufacture", "engine_capacity", "co2_emissions", mode="before")
    @classmethod
    def _coerce_int(cls, value: Any) -> int | None:
        try:
            return int(value)
        except (TypeError, ValueError):
            return None
