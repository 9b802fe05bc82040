from __future__ import annotations

from typing import Any, List, Mapping, Optional

from free_data_integration.adapters.base import SourceAdapter, collect, map_records, register_adapter
from free_data_integration.adapters.http import JSON_HEADERS
from free_data_integration.extract import (
    address_locality,
    extract_field_value,
    extract_zip_code,
    norm_ws,
    parse_int,
    parse_numeric,
)
from free_data_integration.models import (
    AdapterRequest,
    AdapterResult,
    Coordinates,
    PropertyData,
    build_property,
)


SQFT_PER_ACRE = 43_560.0
_LIST_KEYS = ("results", "data", "records", "features", "properties", "items")


def records_from_payload(payload: Any) -> List[dict]:
    """Find the record list in the shapes JSON APIs commonly return."""

    if isinstance(payload, list):
        rows = payload
    elif isinstance(payload, dict):
        rows = None
        for key in _LIST_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                rows = value
                break
        if rows is None:
            return []
    else:
        return []
    out = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        # ArcGIS feature services wrap fields in "attributes".
        attrs = row.get("attributes")
        out.append(attrs if isinstance(attrs, dict) else row)
    return out


def _mapped(record: Mapping, field_map: Mapping[str, str], field: str):
    path = field_map.get(field)
    if not path:
        return None
    return extract_field_value(record, path)


def _text(value) -> Optional[str]:
    cleaned = norm_ws(value)
    return cleaned or None


def map_record(
    record: Mapping,
    field_map: Mapping[str, str],
    *,
    source: str,
    default_city: Optional[str] = None,
    default_state: str = "",
    default_type: Optional[str] = None,
) -> Optional[PropertyData]:
    address = norm_ws(_mapped(record, field_map, "address"))
    found_city, found_state = address_locality(address)
    city = _text(_mapped(record, field_map, "city")) or found_city or default_city
    state = _text(_mapped(record, field_map, "state")) or found_state or default_state
    zip_code = _text(_mapped(record, field_map, "zip_code")) or extract_zip_code(address) or None

    lot_acres = parse_numeric(_mapped(record, field_map, "lot_size_acres"))
    if lot_acres is None:
        lot_sqft = parse_numeric(_mapped(record, field_map, "lot_size_sqft"))
        if lot_sqft is not None:
            lot_acres = round(lot_sqft / SQFT_PER_ACRE, 4)

    lat = parse_numeric(_mapped(record, field_map, "lat"))
    lng = parse_numeric(_mapped(record, field_map, "lng"))
    coordinates = Coordinates(lat=lat, lng=lng) if lat is not None and lng is not None else None

    return build_property(
        address=address,
        city=city,
        state=state,
        zip_code=zip_code,
        property_type=_text(_mapped(record, field_map, "property_type")) or default_type,
        source=source,
        listing_url=_text(_mapped(record, field_map, "listing_url")),
        description=_text(_mapped(record, field_map, "description")),
        owner_name=_text(_mapped(record, field_map, "owner_name")),
        assessed_value=parse_numeric(_mapped(record, field_map, "assessed_value")),
        market_value=parse_numeric(_mapped(record, field_map, "market_value")),
        asking_price=parse_numeric(_mapped(record, field_map, "asking_price")),
        square_footage=parse_numeric(_mapped(record, field_map, "square_footage")),
        year_built=parse_int(_mapped(record, field_map, "year_built")),
        lot_size_acres=lot_acres,
        coordinates=coordinates,
    )


@register_adapter
class CountyApiAdapter(SourceAdapter):
    """Typed JSON API of a county assessor or municipal open-data portal."""

    adapter_key = "county_api"
    max_records = 50

    def fetch(self, request: AdapterRequest) -> AdapterResult:
        key = self._require_key()
        params = {
            "address": request.city or request.location,
            "property_type": request.property_type or "commercial",
            "limit": self.max_records,
        }
        headers = dict(JSON_HEADERS)
        if key:
            headers["Authorization"] = f"Bearer {key}"
        response = self._get(self.config.url, params=params, headers=headers)
        rows = records_from_payload(response.json())
        properties = collect(
            map_records(
                rows,
                lambda row: map_record(
                    row,
                    self.config.field_map,
                    source=self.config.key,
                    default_city=request.city,
                    default_state=self.config.jurisdiction,
                    default_type=request.property_type,
                ),
                self.name,
            ),
            limit=self.max_records,
        )
        if not properties:
            return AdapterResult.empty(f"{self.name} API returned no matching records")
        return AdapterResult(
            properties=tuple(properties),
            message=f"Found {len(properties)} properties via {self.name} API",
        )
