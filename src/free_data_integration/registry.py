"""Static source registry.

Built once at import time and read-only afterwards: jurisdiction tables are
tuples inside a ``MappingProxyType`` and every config is a frozen dataclass
with a read-only field map.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple


def canonicalize_source_name(name: str) -> str:
    if not name:
        return ""
    cleaned = name.strip().lower()
    cleaned = re.sub(r"[\s\-]+", "_", cleaned)
    cleaned = re.sub(r"[^a-z0-9_]", "", cleaned)
    cleaned = re.sub(r"_+", "_", cleaned).strip("_")
    return cleaned


def _freeze(mapping: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class SourceConfig:
    name: str
    jurisdiction: str
    access_method: str
    field_map: Mapping[str, str] = field(
        default_factory=lambda: _freeze({}), hash=False
    )
    api_key_env: Optional[str] = None
    api_key_required: bool = True
    priority: int = 100
    adapter_key: Optional[str] = None
    slug: Optional[str] = None

    @property
    def key(self) -> str:
        return self.slug or canonicalize_source_name(self.name)

    @property
    def url(self) -> str:
        return ""


@dataclass(frozen=True)
class PublicApiSource(SourceConfig):
    api_url: str = ""

    @property
    def url(self) -> str:
        return self.api_url


@dataclass(frozen=True)
class WebScrapeSource(SourceConfig):
    search_url: str = ""
    query_param: str = "q"

    @property
    def url(self) -> str:
        return self.search_url


@dataclass(frozen=True)
class DataDownloadSource(SourceConfig):
    download_url: str = ""
    data_format: str = "json"
    location_field: str = "city"

    @property
    def url(self) -> str:
        return self.download_url


@dataclass(frozen=True)
class Location:
    state: str
    city: Optional[str] = None
    county: Optional[str] = None


_DEFAULT_SCRAPE_FIELDS = {
    "address": "property_address",
    "owner_name": "owner_name",
    "assessed_value": "assessed_value",
}


def _api(name, state, url, fields, **kwargs):
    return PublicApiSource(
        name=name,
        jurisdiction=state,
        access_method="public_api",
        api_url=url,
        field_map=_freeze(fields),
        **kwargs,
    )


def _download(name, state, url, fields, **kwargs):
    return DataDownloadSource(
        name=name,
        jurisdiction=state,
        access_method="data_download",
        download_url=url,
        field_map=_freeze(fields),
        **kwargs,
    )


def _web(name, state, url, fields=None, **kwargs):
    return WebScrapeSource(
        name=name,
        jurisdiction=state,
        access_method="web_scraping",
        search_url=url,
        field_map=_freeze(fields or _DEFAULT_SCRAPE_FIELDS),
        **kwargs,
    )


_TEXAS_COUNTIES = (
    _api(
        "Harris County",
        "TX",
        "https://www.hcad.org/api/property",
        {
            "address": "site_addr_1",
            "owner_name": "owner_name",
            "assessed_value": "appraised_val",
            "market_value": "market_val",
            "property_type": "state_class",
            "year_built": "yr_built",
            "square_footage": "bldg_sqft",
            "lot_size_sqft": "land_sqft",
        },
    ),
    _web(
        "Dallas County",
        "TX",
        "https://www.dallascad.org/SearchAddr.aspx",
        {
            "address": "property_address",
            "owner_name": "owner_name",
            "assessed_value": "total_appraised_value",
            "property_type": "property_type",
            "year_built": "year_built",
        },
    ),
    _api(
        "Travis County",
        "TX",
        "https://prop.traviscad.org/api/property",
        {
            "address": "prop_addr",
            "owner_name": "owner_name",
            "assessed_value": "total_val",
            "market_value": "market_val",
        },
    ),
    _api(
        "Tarrant County",
        "TX",
        "https://www.tad.org/api/property",
        {
            "address": "property_address",
            "owner_name": "owner_name",
            "assessed_value": "assessed_value",
            "market_value": "market_value",
        },
    ),
    _web(
        "Bexar County",
        "TX",
        "https://www.bcad.org/clientdb/PropertySearch.aspx",
        {
            "address": "situs_address",
            "owner_name": "owner_name",
            "assessed_value": "total_value",
        },
    ),
    _api(
        "Collin County",
        "TX",
        "https://www.collincad.org/api/property",
        {
            "address": "property_address",
            "owner_name": "owner_name",
            "assessed_value": "appraised_value",
        },
    ),
    _web(
        "Denton County",
        "TX",
        "https://www.dentoncad.com/property-search",
        {
            "address": "property_location",
            "owner_name": "owner_name",
            "assessed_value": "total_assessed_value",
        },
    ),
    _api(
        "Fort Bend County",
        "TX",
        "https://www.fbcad.org/api/property",
        {
            "address": "situs_address",
            "owner_name": "owner_name",
            "assessed_value": "total_value",
        },
    ),
    _web(
        "Montgomery County",
        "TX",
        "https://www.mctx.org/departments/departments_a_-_m/appraisal_district",
    ),
    _api(
        "Williamson County",
        "TX",
        "https://www.wcad.org/api/property",
        {
            "address": "property_address",
            "owner_name": "owner_name",
            "assessed_value": "total_appraised_value",
        },
    ),
    _web("Galveston County", "TX", "https://www.galvestoncad.org/property-search"),
    _web("Brazoria County", "TX", "https://www.brazoriacad.org/property-search"),
    _web("Jefferson County", "TX", "https://www.jcad.org/property-search"),
    _web("Nueces County", "TX", "https://www.nuecescad.org/property-search"),
    _api(
        "El Paso County",
        "TX",
        "https://www.epcad.org/api/property",
        dict(_DEFAULT_SCRAPE_FIELDS),
    ),
    _download(
        "Bell County",
        "TX",
        "https://www.bellcad.org/downloads/appraisal_roll.csv",
        {
            "address": "situs_address",
            "city": "situs_city",
            "owner_name": "owner_name",
            "assessed_value": "appraised_value",
            "market_value": "market_value",
            "property_type": "state_cd",
        },
        data_format="csv",
        location_field="situs_city",
    ),
    _web("McLennan County", "TX", "https://www.mclennancad.org/property-search"),
    _web("Guadalupe County", "TX", "https://www.guadalupecad.org/property-search"),
    _web("Hays County", "TX", "https://www.hayscad.com/property-search"),
    _web("Kaufman County", "TX", "https://www.kaufmancad.org/property-search"),
    _web("Johnson County", "TX", "https://www.johnsoncad.com/property-search"),
    _web("Liberty County", "TX", "https://www.libertycad.com/property-search"),
    _web("Chambers County", "TX", "https://www.chamberscad.org/property-search"),
    _web("Walker County", "TX", "https://www.walkercad.org/property-search"),
    _web("Ellis County", "TX", "https://www.elliscad.com/property-search"),
    _web("Rockwall County", "TX", "https://www.rockwallcad.com/property-search"),
    _web("Brazos County", "TX", "https://www.brazoscad.org/property-search"),
    _web("Smith County", "TX", "https://www.smithcad.org/property-search"),
    _web("Lubbock County", "TX", "https://www.lubbockcad.org/property-search"),
    _web("Webb County", "TX", "https://www.webbcad.com/property-search"),
    _web("Parker County", "TX", "https://www.parkercad.org/property-search"),
    _web("Comal County", "TX", "https://www.comalcad.org/property-search"),
    _web("Hunt County", "TX", "https://www.huntcad.com/property-search"),
    _web("Victoria County", "TX", "https://www.victoriacad.org/property-search"),
    _web("Grayson County", "TX", "https://www.graysoncad.org/property-search"),
    _web("Hidalgo County", "TX", "https://www.hidalgocad.org/property-search"),
    _web("Cameron County", "TX", "https://www.cameroncad.org/property-search"),
    _web("Orange County", "TX", "https://www.orangecad.com/property-search"),
    _web("Gregg County", "TX", "https://www.greggcad.com/property-search"),
    _web("Henderson County", "TX", "https://www.hendersoncad.org/property-search"),
    _web("Wichita County", "TX", "https://www.wichitacad.org/property-search"),
)


_ALBERTA_REGIONS = (
    _api(
        "City of Calgary",
        "AB",
        "https://data.calgary.ca/api/property",
        {
            "address": "address",
            "owner_name": "owner",
            "assessed_value": "assessed_value",
            "market_value": "market_value",
            "property_type": "property_type",
            "year_built": "year_built",
        },
    ),
    _api(
        "City of Edmonton",
        "AB",
        "https://data.edmonton.ca/api/property",
        {
            "address": "address",
            "owner_name": "owner_name",
            "assessed_value": "assessed_value",
            "property_type": "property_class",
        },
    ),
    _web(
        "Municipal District of Foothills",
        "AB",
        "https://www.mdfoothills.com/property-search",
        {
            "address": "property_address",
            "owner_name": "registered_owner",
            "assessed_value": "total_assessment",
        },
    ),
    _api(
        "Strathcona County",
        "AB",
        "https://www.strathcona.ca/api/property",
        {
            "address": "civic_address",
            "owner_name": "owner_name",
            "assessed_value": "total_value",
        },
    ),
    _web(
        "Regional Municipality of Wood Buffalo",
        "AB",
        "https://www.rmwb.ca/property-tax/property-search",
        {
            "address": "property_address",
            "owner_name": "owner",
            "assessed_value": "assessed_value",
        },
    ),
    _web("Parkland County", "AB", "https://www.parklandcounty.com/property-search"),
    _web("Sturgeon County", "AB", "https://www.sturgeoncounty.ca/property-search"),
    _web("Leduc County", "AB", "https://www.leduc-county.com/property-search"),
    _web("Lac Ste. Anne County", "AB", "https://www.lsac.ca/property-search"),
    _web(
        "Wetaskiwin County",
        "AB",
        "https://www.county.wetaskiwin.ab.ca/property-search",
    ),
    _web("City of Red Deer", "AB", "https://www.reddeer.ca/property-search"),
    _web("City of Lethbridge", "AB", "https://www.lethbridge.ca/property-search"),
    _web("City of Medicine Hat", "AB", "https://www.medicinehat.ca/property-search"),
    _web("City of Grande Prairie", "AB", "https://www.cityofgp.com/property-search"),
    _web("City of Airdrie", "AB", "https://www.airdrie.ca/property-search"),
    _web("City of Spruce Grove", "AB", "https://www.sprucegrove.org/property-search"),
    _web("City of Leduc", "AB", "https://www.leduc.ca/property-search"),
    _web("City of St. Albert", "AB", "https://www.stalbert.ca/property-search"),
    _web("City of Sherwood Park", "AB", "https://www.sherwoodpark.ca/property-search"),
    _web("City of Fort Saskatchewan", "AB", "https://www.fortsask.ca/property-search"),
    _web("City of Lloydminster", "AB", "https://www.lloydminster.ca/property-search"),
    _web("City of Camrose", "AB", "https://www.camrose.ca/property-search"),
    _web("County of Grande Prairie", "AB", "https://www.countygp.ab.ca/property-search"),
    _web("Rocky View County", "AB", "https://www.rockyview.ca/property-search"),
    _web("Brazeau County", "AB", "https://www.brazeau.ab.ca/property-search"),
    _web("County of Lethbridge", "AB", "https://www.lethcounty.ca/property-search"),
    _web("Wheatland County", "AB", "https://www.wheatlandcounty.ca/property-search"),
    _web("Vulcan County", "AB", "https://www.vulcancounty.ab.ca/property-search"),
    _web("Newell County", "AB", "https://www.newellcountyab.ca/property-search"),
    _web("Ponoka County", "AB", "https://www.ponokacounty.com/property-search"),
    _web("Lacombe County", "AB", "https://www.lacombecounty.com/property-search"),
    _web("Red Deer County", "AB", "https://www.rdcounty.ca/property-search"),
    _web("Clearwater County", "AB", "https://www.clearwatercounty.ca/property-search"),
    _web("Mountain View County", "AB", "https://www.mvmd.ab.ca/property-search"),
    _web("Olds County", "AB", "https://www.olds.ca/property-search"),
    _web("Kneehill County", "AB", "https://www.kneehillcounty.com/property-search"),
)


_JURISDICTION_SOURCES: Mapping[str, Tuple[SourceConfig, ...]] = MappingProxyType(
    {
        "Texas": _TEXAS_COUNTIES,
        "Alberta": _ALBERTA_REGIONS,
    }
)

# Labels used in user-facing messages ("36 regions").
_JURISDICTION_UNITS = MappingProxyType({"Texas": "counties", "Alberta": "regions"})


_JURISDICTION_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "Alberta": (
            "alberta",
            "ab",
            "calgary",
            "edmonton",
            "red deer",
            "lethbridge",
            "medicine hat",
            "grande prairie",
            "airdrie",
            "spruce grove",
            "leduc",
            "st. albert",
            "st albert",
            "sherwood park",
            "fort saskatchewan",
            "lloydminster",
            "camrose",
            "okotoks",
            "canmore",
            "strathcona",
            "wood buffalo",
            "fort mcmurray",
            "rocky view",
            "wetaskiwin",
            "ponoka",
            "lacombe",
            "rocky view county",
            "strathcona county",
        ),
        "Texas": (
            "texas",
            "tx",
            "houston",
            "dallas",
            "austin",
            "san antonio",
            "fort worth",
            "el paso",
            "plano",
            "corpus christi",
            "laredo",
            "lubbock",
            "frisco",
            "mckinney",
            "amarillo",
            "brownsville",
            "killeen",
            "mcallen",
            "waco",
            "beaumont",
            "denton",
            "round rock",
            "sugar land",
            "the woodlands",
            "conroe",
            "galveston",
            "pearland",
            "league city",
            "tyler",
            "college station",
            "san marcos",
            "new braunfels",
            "wichita falls",
            "longview",
            "harlingen",
            "katy",
            "harris county",
            "bexar county",
            "tarrant county",
            "travis county",
            "collin county",
            "fort bend county",
            "hidalgo county",
            "nueces county",
        ),
    }
)


def _keyword_patterns() -> Dict[str, Tuple["re.Pattern[str]", ...]]:
    patterns = {}
    for jurisdiction, keywords in _JURISDICTION_KEYWORDS.items():
        compiled = []
        for keyword in keywords:
            escaped = re.escape(keyword)
            if len(keyword) <= 4:
                # Short codes ("ab", "tx", "waco") only count as whole tokens.
                compiled.append(re.compile(rf"(?<![a-z]){escaped}(?![a-z])"))
            else:
                compiled.append(re.compile(escaped))
        patterns[jurisdiction] = tuple(compiled)
    return patterns


_KEYWORD_PATTERNS = MappingProxyType(_keyword_patterns())


def resolve_jurisdiction(location: Optional[str]) -> Optional[str]:
    text = (location or "").strip().lower()
    if not text:
        return None
    for jurisdiction, patterns in _KEYWORD_PATTERNS.items():
        if any(p.search(text) for p in patterns):
            return jurisdiction
    return None


def lookup(location: Optional[str]) -> Tuple[SourceConfig, ...]:
    jurisdiction = resolve_jurisdiction(location)
    if jurisdiction is None:
        return ()
    return _JURISDICTION_SOURCES[jurisdiction]


def normalize_location(location: Optional[str]) -> Location:
    parts = [p.strip() for p in (location or "").split(",") if p.strip()]
    jurisdiction = resolve_jurisdiction(location)
    city = parts[0] if parts else None
    county = None
    if len(parts) > 2:
        county = parts[1]
    else:
        county = next((p for p in parts if "county" in p.lower()), None)
    return Location(state=jurisdiction or "Unknown", city=city, county=county)


def jurisdictions() -> Tuple[str, ...]:
    return tuple(_JURISDICTION_SOURCES.keys())


def source_counts(jurisdiction: str) -> Dict[str, int]:
    configs = _JURISDICTION_SOURCES.get(jurisdiction, ())
    counts = {method: 0 for method in ("public_api", "web_scraping", "data_download")}
    for config in configs:
        counts[config.access_method] = counts.get(config.access_method, 0) + 1
    counts["total"] = len(configs)
    return counts


def supported_summary() -> str:
    return ", ".join(
        f"{name} ({len(configs)} {_JURISDICTION_UNITS.get(name, 'sources')})"
        for name, configs in _JURISDICTION_SOURCES.items()
    )


_NATIONAL_SOURCES: Mapping[str, SourceConfig] = MappingProxyType(
    {
        "google_places": PublicApiSource(
            name="Google Places",
            jurisdiction="*",
            access_method="public_api",
            api_url="https://maps.googleapis.com/maps/api/place/textsearch/json",
            api_key_env="GOOGLE_PLACES_API_KEY",
            adapter_key="google_places",
            slug="google_places",
        ),
        "yelp": PublicApiSource(
            name="Yelp",
            jurisdiction="*",
            access_method="public_api",
            api_url="https://api.yelp.com/v3/businesses/search",
            api_key_env="YELP_API_KEY",
            adapter_key="yelp",
            slug="yelp",
        ),
        "openstreetmap": PublicApiSource(
            name="OpenStreetMap",
            jurisdiction="*",
            access_method="public_api",
            api_url="https://overpass-api.de/api/interpreter",
            adapter_key="openstreetmap",
            slug="openstreetmap",
        ),
        "census": DataDownloadSource(
            name="Census",
            jurisdiction="*",
            access_method="data_download",
            download_url="https://api.census.gov/data/2021/cbp",
            data_format="json",
            location_field="NAME",
            api_key_env="CENSUS_API_KEY",
            api_key_required=False,
            adapter_key="census",
            slug="census",
        ),
        "auction_com": WebScrapeSource(
            name="Auction.com",
            jurisdiction="*",
            access_method="web_scraping",
            search_url="https://www.auction.com/residential/search",
            query_param="location",
            adapter_key="auctions",
            slug="auction_com",
        ),
        "biggerpockets": WebScrapeSource(
            name="BiggerPockets",
            jurisdiction="*",
            access_method="web_scraping",
            search_url="https://www.biggerpockets.com/search",
            query_param="term",
            adapter_key="auctions",
            slug="biggerpockets",
        ),
        "public_auctions": WebScrapeSource(
            name="Public Auctions",
            jurisdiction="*",
            access_method="web_scraping",
            search_url="https://www.foreclosure.com/listing/search",
            query_param="q",
            adapter_key="auctions",
            slug="public_auctions",
        ),
    }
)


def national_source_names() -> Tuple[str, ...]:
    return tuple(_NATIONAL_SOURCES.keys())


def get_source(name: str) -> Optional[SourceConfig]:
    return _NATIONAL_SOURCES.get(canonicalize_source_name(name))


def iter_all_sources() -> Iterable[SourceConfig]:
    for configs in _JURISDICTION_SOURCES.values():
        yield from configs
    yield from _NATIONAL_SOURCES.values()
