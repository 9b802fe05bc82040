from __future__ import annotations

from typing import Optional

import requests

from free_data_integration.adapters.auctions import AuctionListingAdapter
from free_data_integration.adapters.base import (
    SourceAdapter,
    SourceConfigurationError,
    SourceResponseError,
    get_adapter_class,
    list_adapters,
)
from free_data_integration.adapters.bulk import BulkDatasetAdapter
from free_data_integration.adapters.census import CensusBusinessPatternsAdapter
from free_data_integration.adapters.county_api import CountyApiAdapter
from free_data_integration.adapters.county_web import CountyWebsiteAdapter
from free_data_integration.adapters.openstreetmap import OpenStreetMapAdapter
from free_data_integration.adapters.places import GooglePlacesAdapter, YelpAdapter
from free_data_integration.adapters.transmission import (
    AESO_SOURCE,
    FALLBACK_SOURCE,
    LIVE_SOURCE,
    AesoTransmissionAdapter,
)
from free_data_integration.config import Settings
from free_data_integration.registry import SourceConfig


_BY_ACCESS_METHOD = {
    "public_api": "county_api",
    "web_scraping": "county_web",
    "data_download": "bulk",
}

# Jurisdiction -> source that runs ahead of the registry sources.
SPECIALIZED_SOURCES = {"Alberta": AESO_SOURCE}


def adapter_key_for(config: SourceConfig) -> str:
    if config.adapter_key:
        return config.adapter_key
    try:
        return _BY_ACCESS_METHOD[config.access_method]
    except KeyError:
        raise ValueError(f"Unsupported access method: {config.access_method}") from None


def build_adapter(
    config: SourceConfig,
    session: Optional[requests.Session] = None,
    settings: Optional[Settings] = None,
) -> SourceAdapter:
    cls = get_adapter_class(adapter_key_for(config))
    return cls(config, session=session, settings=settings)


def specialized_source(jurisdiction: Optional[str]) -> Optional[SourceConfig]:
    if not jurisdiction:
        return None
    return SPECIALIZED_SOURCES.get(jurisdiction)


__all__ = [
    "AESO_SOURCE",
    "AesoTransmissionAdapter",
    "AuctionListingAdapter",
    "BulkDatasetAdapter",
    "CensusBusinessPatternsAdapter",
    "CountyApiAdapter",
    "CountyWebsiteAdapter",
    "FALLBACK_SOURCE",
    "GooglePlacesAdapter",
    "LIVE_SOURCE",
    "OpenStreetMapAdapter",
    "SPECIALIZED_SOURCES",
    "SourceAdapter",
    "SourceConfigurationError",
    "SourceResponseError",
    "YelpAdapter",
    "adapter_key_for",
    "build_adapter",
    "list_adapters",
    "specialized_source",
]
