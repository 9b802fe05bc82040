from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


SourceName = Literal[
    "county_records",
    "google_places",
    "yelp",
    "openstreetmap",
    "census",
    "auction_com",
    "biggerpockets",
    "public_auctions",
]


class FreeDataRequest(BaseModel):
    """Body of ``POST /free-data-integration``. Only ``location`` is required."""

    source: Optional[SourceName] = None
    location: str
    property_type: Optional[str] = None
    # miles
    radius: Optional[float] = Field(default=None, gt=0)

    @field_validator("location")
    @classmethod
    def location_not_blank(cls, value: str) -> str:
        cleaned = " ".join(value.split())
        if not cleaned:
            raise ValueError("location must not be blank")
        return cleaned

    @field_validator("property_type")
    @classmethod
    def blank_type_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None
