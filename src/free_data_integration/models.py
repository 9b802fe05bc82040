from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from free_data_integration.extract import norm_ws


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True)
class CensusData:
    industry: str
    employees: int
    establishments: int


@dataclass(frozen=True)
class PropertyData:
    """Normalized output record shared by every adapter.

    Instances are never mutated after an adapter builds them; the aggregator
    only filters and deduplicates.
    """

    address: str
    city: str
    state: str
    property_type: str
    source: str
    zip_code: Optional[str] = None
    listing_url: Optional[str] = None
    description: Optional[str] = None
    square_footage: Optional[float] = None
    asking_price: Optional[float] = None
    lot_size_acres: Optional[float] = None
    year_built: Optional[int] = None
    assessed_value: Optional[float] = None
    market_value: Optional[float] = None
    owner_name: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    auction_date: Optional[str] = None
    roi_estimate: Optional[float] = None
    census_data: Optional[CensusData] = None
    voltage_level: Optional[str] = None
    capacity_mva: Optional[float] = None

    def dedupe_key(self) -> str:
        return f"{self.address}|{self.city}|{self.state}"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_property(
    *,
    address: Optional[str],
    city: Optional[str] = None,
    state: Optional[str] = None,
    property_type: Optional[str] = None,
    source: str,
    **optional: Any,
) -> Optional[PropertyData]:
    """Build a record, or None when there is no usable address."""

    cleaned = norm_ws(address)
    if not cleaned:
        return None
    return PropertyData(
        address=cleaned,
        city=norm_ws(city) or "Unknown",
        state=norm_ws(state),
        property_type=norm_ws(property_type) or "commercial",
        source=source,
        **optional,
    )


@dataclass(frozen=True)
class AdapterRequest:
    location: str
    property_type: Optional[str] = None
    radius: Optional[float] = None

    @property
    def city(self) -> str:
        return norm_ws(self.location.split(",")[0]) if self.location else ""


@dataclass(frozen=True)
class AdapterResult:
    properties: Tuple[PropertyData, ...]
    message: str

    @classmethod
    def empty(cls, message: str) -> "AdapterResult":
        return cls(properties=(), message=message)


@dataclass(frozen=True)
class SourceOutcome:
    name: str
    access_method: str
    found: int
    message: str
    status: str

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AggregationReport:
    properties: List[PropertyData]
    sources_attempted: int
    total_found: int
    message: str
    outcomes: List[SourceOutcome] = field(default_factory=list)

    @property
    def successful_sources(self) -> List[SourceOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed_sources(self) -> List[SourceOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    def to_dict(self) -> dict:
        return {
            "properties": [p.to_dict() for p in self.properties],
            "sources_attempted": self.sources_attempted,
            "total_found": self.total_found,
            "message": self.message,
            "sources": [o.to_dict() for o in self.outcomes],
        }
