from __future__ import annotations

from typing import Optional

from free_data_integration.adapters.base import SourceAdapter, collect, map_records, register_adapter
from free_data_integration.adapters.http import JSON_HEADERS
from free_data_integration.extract import (
    extract_city,
    extract_field_value,
    extract_state,
    extract_zip_code,
    norm_ws,
    parse_numeric,
)
from free_data_integration.models import (
    AdapterRequest,
    AdapterResult,
    Coordinates,
    PropertyData,
    build_property,
)


GOOGLE_MAX_RESULTS = 20
YELP_CATEGORIES = "realestateagents,commercialrealestate,industrialequipment"
YELP_LIMIT = 50
# Yelp rejects radii above 40 km.
YELP_MAX_RADIUS_M = 40_000
METRES_PER_MILE = 1609.344


def _coordinates(lat, lng) -> Optional[Coordinates]:
    lat = parse_numeric(lat)
    lng = parse_numeric(lng)
    if lat is None or lng is None:
        return None
    return Coordinates(lat=lat, lng=lng)


def place_to_property(place: dict, property_type: Optional[str]) -> Optional[PropertyData]:
    formatted = norm_ws(place.get("formatted_address"))
    name = norm_ws(place.get("name"))
    types = ", ".join(str(t) for t in place.get("types") or [])
    place_id = place.get("place_id")
    return build_property(
        address=formatted or name,
        city=extract_city(formatted),
        state=extract_state(formatted),
        zip_code=extract_zip_code(formatted) or None,
        property_type=property_type or "commercial",
        source="google_places",
        listing_url=f"https://maps.google.com/place/{place_id}" if place_id else None,
        description=f"{name} - {types}" if types else name or None,
        coordinates=_coordinates(
            extract_field_value(place, "geometry.location.lat"),
            extract_field_value(place, "geometry.location.lng"),
        ),
    )


@register_adapter
class GooglePlacesAdapter(SourceAdapter):
    adapter_key = "google_places"

    def fetch(self, request: AdapterRequest) -> AdapterResult:
        key = self._require_key()
        query = f"commercial real estate {request.property_type or 'industrial'} {request.location}"
        params = {"query": query, "key": key}
        if request.radius:
            params["radius"] = int(request.radius * METRES_PER_MILE)
        response = self._get(self.config.url, params=params, headers=JSON_HEADERS)
        payload = response.json()
        status = payload.get("status") if isinstance(payload, dict) else None
        if status in ("REQUEST_DENIED", "INVALID_REQUEST", "OVER_QUERY_LIMIT"):
            raise ValueError(payload.get("error_message") or status)
        results = payload.get("results") or [] if isinstance(payload, dict) else []
        properties = collect(
            map_records(
                results[:GOOGLE_MAX_RESULTS],
                lambda place: place_to_property(place, request.property_type),
                self.name,
            )
        )
        return AdapterResult(
            properties=tuple(properties),
            message=f"Found {len(properties)} commercial properties via Google Places",
        )


def business_to_property(business: dict) -> Optional[PropertyData]:
    location = business.get("location") or {}
    display = location.get("display_address") or []
    address = ", ".join(norm_ws(part) for part in display if norm_ws(part))
    categories = ", ".join(
        norm_ws(c.get("title")) for c in business.get("categories") or [] if isinstance(c, dict)
    )
    name = norm_ws(business.get("name"))
    return build_property(
        address=address or norm_ws(location.get("address1")),
        city=location.get("city") or extract_city(address),
        state=location.get("state") or extract_state(address),
        zip_code=norm_ws(location.get("zip_code")) or None,
        property_type="commercial",
        source="yelp",
        listing_url=business.get("url"),
        description=f"{name} - {categories}" if categories else name or None,
        coordinates=_coordinates(
            extract_field_value(business, "coordinates.latitude"),
            extract_field_value(business, "coordinates.longitude"),
        ),
    )


@register_adapter
class YelpAdapter(SourceAdapter):
    adapter_key = "yelp"

    def fetch(self, request: AdapterRequest) -> AdapterResult:
        key = self._require_key()
        params = {
            "location": request.location,
            "categories": YELP_CATEGORIES,
            "limit": YELP_LIMIT,
        }
        if request.radius:
            params["radius"] = min(int(request.radius * METRES_PER_MILE), YELP_MAX_RADIUS_M)
        headers = dict(JSON_HEADERS)
        headers["Authorization"] = f"Bearer {key}"
        response = self._get(self.config.url, params=params, headers=headers)
        payload = response.json()
        businesses = payload.get("businesses") or [] if isinstance(payload, dict) else []
        properties = collect(map_records(businesses, business_to_property, self.name))
        return AdapterResult(
            properties=tuple(properties),
            message=f"Found {len(properties)} business properties via Yelp",
        )
