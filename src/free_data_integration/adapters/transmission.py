"""Alberta transmission-grid facilities.

Live data comes from the AESO asset list. When that is unavailable the adapter
answers from a small static table of known substations instead, tagged with a
separate ``source`` so callers can tell the two apart.
"""

from __future__ import annotations

import logging
from typing import Optional

from free_data_integration.adapters.base import (
    SourceAdapter,
    SourceConfigurationError,
    collect,
    map_records,
    register_adapter,
)
from free_data_integration.adapters.http import JSON_HEADERS
from free_data_integration.extract import norm_ws
from free_data_integration.models import (
    AdapterRequest,
    AdapterResult,
    Coordinates,
    PropertyData,
    build_property,
)
from free_data_integration.registry import PublicApiSource


logger = logging.getLogger("fdi.adapters.transmission")

AESO_BASE_URL = "https://api.aeso.ca/report/v1.1"
LIVE_SOURCE = "aeso_transmission"
FALLBACK_SOURCE = "aeso_transmission_fallback"

AESO_SOURCE = PublicApiSource(
    name="AESO Transmission",
    jurisdiction="AB",
    access_method="public_api",
    api_url=f"{AESO_BASE_URL}/assetlist",
    api_key_env="AESO_SUB_KEY",
    adapter_key="aeso_transmission",
    slug=LIVE_SOURCE,
)

# (name, city, voltage, capacity MVA, lat, lng)
_KNOWN_SUBSTATIONS = (
    ("East Calgary 5S Substation", "Calgary", "240kV", 400.0, 51.0373, -113.9756),
    ("Sarcee 42S Substation", "Calgary", "138kV", 250.0, 50.9939, -114.1470),
    ("Janet 74S Substation", "Calgary", "240kV", 600.0, 50.9645, -113.9021),
    ("Ellerslie 89S Substation", "Edmonton", "240kV", 500.0, 53.4255, -113.4536),
    ("Clover Bar 987S Substation", "Edmonton", "240kV", 450.0, 53.5836, -113.3631),
    ("Benalto 17S Substation", "Red Deer", "240kV", 300.0, 52.2928, -114.2386),
    ("North Lethbridge 370S Substation", "Lethbridge", "240kV", 250.0, 49.7297, -112.8145),
    ("Bowmanton 244S Substation", "Medicine Hat", "240kV", 200.0, 50.0095, -110.6453),
    ("Wesley Creek 834S Substation", "Grande Prairie", "144kV", 150.0, 55.1707, -118.7947),
    ("Thickwood Hills 951S Substation", "Fort McMurray", "240kV", 300.0, 56.7267, -111.4601),
)


def fallback_facilities(city: str) -> list[PropertyData]:
    """Known substations for ``city``, or all of them when the city is not listed."""

    wanted = norm_ws(city).lower()
    rows = [row for row in _KNOWN_SUBSTATIONS if wanted and row[1].lower() == wanted]
    if not rows:
        rows = list(_KNOWN_SUBSTATIONS)
    return collect(
        build_property(
            address=name,
            city=row_city,
            state="AB",
            property_type="transmission_substation",
            source=FALLBACK_SOURCE,
            description=f"{name} ({voltage}, ~{capacity:.0f} MVA), static reference data",
            voltage_level=voltage,
            capacity_mva=capacity,
            coordinates=Coordinates(lat=lat, lng=lng),
        )
        for name, row_city, voltage, capacity, lat, lng in rows
    )


def asset_to_property(asset: dict, city: str) -> Optional[PropertyData]:
    name = norm_ws(asset.get("asset_name"))
    asset_id = norm_ws(asset.get("asset_ID"))
    label = f"{name} ({asset_id})" if name and asset_id else name or asset_id
    if not label:
        return None
    participant = norm_ws(asset.get("pool_participant_name"))
    kind = norm_ws(asset.get("asset_type")).lower() or "grid_asset"
    status = norm_ws(asset.get("operating_status"))
    details = ", ".join(part for part in (participant, status) if part)
    return build_property(
        address=label,
        city=city or "Unknown",
        state="AB",
        property_type=f"transmission_{kind}",
        source=LIVE_SOURCE,
        description=f"AESO asset {label}" + (f" - {details}" if details else ""),
    )


@register_adapter
class AesoTransmissionAdapter(SourceAdapter):
    adapter_key = "aeso_transmission"

    def __init__(self, config=None, session=None, settings=None):
        super().__init__(config or AESO_SOURCE, session=session, settings=settings)

    def fetch_live(self, request: AdapterRequest) -> list[PropertyData]:
        key = self._require_key()
        headers = {**JSON_HEADERS, "Ocp-Apim-Subscription-Key": key}
        response = self._get(self.config.url, headers=headers)
        payload = response.json()
        assets = payload.get("return") or [] if isinstance(payload, dict) else []
        if not isinstance(assets, list):
            raise ValueError("unexpected asset list shape")
        city = request.city
        wanted = city.lower()
        matching = [a for a in assets if isinstance(a, dict) and wanted and wanted in norm_ws(a.get("asset_name")).lower()]
        return collect(
            map_records(matching or assets, lambda asset: asset_to_property(asset, city), self.name),
            limit=self.settings.scrape_limit,
        )

    def fetch(self, request: AdapterRequest) -> AdapterResult:
        reason = None
        try:
            live = self.fetch_live(request)
        except SourceConfigurationError:
            live, reason = [], "AESO API key not configured"
        except Exception as exc:
            logger.warning("AESO live asset list failed, using fallback: %s", exc)
            live, reason = [], "AESO API unavailable"
        if live:
            return AdapterResult(
                properties=tuple(live),
                message=f"Found {len(live)} transmission assets via AESO",
            )
        fallback = fallback_facilities(request.city)
        why = reason or "AESO returned no assets"
        return AdapterResult(
            properties=tuple(fallback),
            message=f"{why}; using {len(fallback)} known Alberta transmission facilities",
        )
