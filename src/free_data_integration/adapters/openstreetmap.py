from __future__ import annotations

import re
from typing import Optional

from free_data_integration.adapters.base import SourceAdapter, collect, map_records, register_adapter
from free_data_integration.adapters.http import JSON_HEADERS
from free_data_integration.adapters.places import METRES_PER_MILE
from free_data_integration.extract import norm_ws, parse_numeric
from free_data_integration.models import (
    AdapterRequest,
    AdapterResult,
    Coordinates,
    PropertyData,
    build_property,
)


NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
MAX_ELEMENTS = 30
_UNSAFE_QL = re.compile(r"[\"\\\[\]{};()~]")


def ql_literal(value: str) -> str:
    """Strip characters that would break out of an Overpass QL string."""

    return _UNSAFE_QL.sub("", norm_ws(value))


def city_query(city: str) -> str:
    city = ql_literal(city)
    return f"""
[out:json][timeout:25];
(
  way["landuse"~"commercial|industrial|retail"]["addr:city"~"{city}",i];
  way["building"~"commercial|industrial|warehouse"]["addr:city"~"{city}",i];
  relation["landuse"~"commercial|industrial"]["addr:city"~"{city}",i];
);
out center;
""".strip()


def around_query(lat: float, lng: float, radius_m: int) -> str:
    around = f"around:{radius_m},{lat},{lng}"
    return f"""
[out:json][timeout:25];
(
  way["landuse"~"commercial|industrial|retail"]({around});
  way["building"~"commercial|industrial|warehouse"]({around});
  relation["landuse"~"commercial|industrial"]({around});
);
out center;
""".strip()


def element_coordinates(element: dict) -> Optional[Coordinates]:
    if element.get("type") == "node":
        lat, lng = element.get("lat"), element.get("lon")
    else:
        center = element.get("center") or {}
        lat, lng = center.get("lat"), center.get("lon")
    lat, lng = parse_numeric(lat), parse_numeric(lng)
    if lat is None or lng is None:
        return None
    return Coordinates(lat=lat, lng=lng)


def element_to_property(element: dict, fallback_city: str) -> Optional[PropertyData]:
    coordinates = element_coordinates(element)
    if coordinates is None:
        return None
    tags = element.get("tags") or {}
    street = f"{tags.get('addr:housenumber', '')} {tags.get('addr:street') or 'Unknown Street'}"
    kind = tags.get("landuse") or tags.get("building")
    return build_property(
        address=street,
        city=tags.get("addr:city") or fallback_city,
        state=tags.get("addr:state") or "",
        zip_code=tags.get("addr:postcode") or None,
        property_type=kind or "commercial",
        source="openstreetmap",
        listing_url=f"https://www.openstreetmap.org/{element.get('type')}/{element.get('id')}",
        description=f"{tags.get('name') or 'Commercial Property'} - {kind or 'commercial'}",
        coordinates=coordinates,
    )


@register_adapter
class OpenStreetMapAdapter(SourceAdapter):
    """Overpass query for commercial and industrial land in a city."""

    adapter_key = "openstreetmap"

    def geocode(self, location: str) -> Optional[Coordinates]:
        response = self._get(
            NOMINATIM_URL,
            params={"q": location, "format": "json", "limit": 1},
            headers=JSON_HEADERS,
        )
        hits = response.json()
        if not isinstance(hits, list) or not hits:
            return None
        lat, lng = parse_numeric(hits[0].get("lat")), parse_numeric(hits[0].get("lon"))
        if lat is None or lng is None:
            return None
        return Coordinates(lat=lat, lng=lng)

    def build_query(self, request: AdapterRequest) -> str:
        if request.radius:
            center = self.geocode(request.location)
            if center is not None:
                return around_query(center.lat, center.lng, int(request.radius * METRES_PER_MILE))
        return city_query(request.city or request.location)

    def fetch(self, request: AdapterRequest) -> AdapterResult:
        query = self.build_query(request)
        response = self._post(
            self.config.url,
            data=query.encode("utf-8"),
            headers={**JSON_HEADERS, "Content-Type": "text/plain"},
        )
        payload = response.json()
        elements = payload.get("elements") or [] if isinstance(payload, dict) else []
        fallback_city = request.city or request.location
        properties = collect(
            map_records(
                elements[:MAX_ELEMENTS],
                lambda element: element_to_property(element, fallback_city),
                self.name,
            )
        )
        return AdapterResult(
            properties=tuple(properties),
            message=f"Found {len(properties)} properties from OpenStreetMap",
        )
