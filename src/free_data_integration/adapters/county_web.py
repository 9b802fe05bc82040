from __future__ import annotations

import re
from typing import Iterator, Mapping, Optional

from bs4 import BeautifulSoup

from free_data_integration.adapters.base import SourceAdapter, collect, register_adapter
from free_data_integration.adapters.http import HTML_HEADERS, truncated_text
from free_data_integration.extract import (
    address_locality,
    extract_zip_code,
    norm_ws,
    parse_int,
    parse_numeric,
    safe_text,
)
from free_data_integration.models import AdapterRequest, AdapterResult, PropertyData, build_property


# Street number, a few words, then a street suffix.
ADDRESS_RE = re.compile(
    r"\b\d{1,6}\s+(?:[A-Za-z0-9.'-]+\s+){0,5}?"
    r"(?:St|Street|Ave|Avenue|Rd|Road|Dr|Drive|Blvd|Boulevard|Way|Ln|Lane|Ct|Court|"
    r"Pl|Place|Hwy|Highway|Pkwy|Parkway|Trl|Trail|Cir|Circle|Fwy|Freeway)\b\.?"
    r"(?:\s+(?:NE|NW|SE|SW|N|S|E|W)\b)?"
    r"(?:,\s*[A-Z][a-z.'-]+(?:\s[A-Z][a-z.'-]+)*)?"
    r"(?:,\s*[A-Z]{2}\b(?:\s+(?:\d{5}(?:-\d{4})?|[A-Z]\d[A-Z]\s?\d[A-Z]\d))?)?"
)
PRICE_RE = re.compile(r"(?:C\$|US\$|\$)\s?\d{1,3}(?:,\d{3})+(?:\.\d{2})?|(?:C\$|US\$|\$)\s?\d+(?:\.\d{2})?")

_ADDRESS_HEADERS = {"address", "property_address", "situs_address", "site_address", "location"}


def header_key(text: str) -> str:
    """'Total Appraised Value' -> 'total_appraised_value'."""

    cleaned = re.sub(r"[^a-z0-9]+", "_", norm_ws(text).lower())
    return cleaned.strip("_")


def _column_fields(headers: list[str], field_map: Mapping[str, str]) -> dict[int, str]:
    by_header = {header_key(external): canonical for canonical, external in field_map.items()}
    columns: dict[int, str] = {}
    for idx, header in enumerate(headers):
        key = header_key(header)
        if key in by_header:
            columns[idx] = by_header[key]
        elif key in _ADDRESS_HEADERS and "address" not in columns.values():
            columns[idx] = "address"
    return columns


def city_state(address: str, city: str, state: str) -> tuple[str, str]:
    found_city, found_state = address_locality(address)
    return found_city or city, found_state or state


def property_from_row(
    values: Mapping[str, str],
    *,
    source: str,
    city: str,
    state: str,
    property_type: Optional[str],
) -> Optional[PropertyData]:
    """Best-effort: one table row to a record, or None."""

    address = safe_text(values.get("address"))
    if not address:
        return None
    row_city, row_state = city_state(address, city, state)
    lot_acres = None
    lot_sqft = parse_numeric(values.get("lot_size_sqft"))
    if lot_sqft is not None:
        lot_acres = round(lot_sqft / 43_560.0, 4)
    return build_property(
        address=address,
        city=row_city,
        state=row_state,
        zip_code=extract_zip_code(address) or None,
        property_type=safe_text(values.get("property_type")) or property_type,
        source=source,
        owner_name=safe_text(values.get("owner_name")) or None,
        assessed_value=parse_numeric(values.get("assessed_value")),
        market_value=parse_numeric(values.get("market_value")),
        square_footage=parse_numeric(values.get("square_footage")),
        year_built=parse_int(values.get("year_built")),
        lot_size_acres=lot_acres,
    )


def property_from_text(
    match_text: str,
    context: str,
    *,
    source: str,
    city: str,
    state: str,
    property_type: Optional[str],
    listing_url: Optional[str] = None,
    price_field: str = "assessed_value",
) -> Optional[PropertyData]:
    """Best-effort: an address-looking match plus nearby text to a record, or None."""

    address = norm_ws(match_text).rstrip(",")
    if len(address) < 6:
        return None
    price = PRICE_RE.search(context or "")
    extra = {price_field: parse_numeric(price.group(0))} if price else {}
    match_city, match_state = city_state(address, city, state)
    return build_property(
        address=address,
        city=match_city,
        state=match_state,
        zip_code=extract_zip_code(address) or None,
        property_type=property_type,
        source=source,
        listing_url=listing_url,
        **extra,
    )


def iter_table_rows(soup: BeautifulSoup, field_map: Mapping[str, str]) -> Iterator[dict[str, str]]:
    for table in soup.find_all("table"):
        rows = table.find_all("tr")
        if len(rows) < 2:
            continue
        headers = [cell.get_text(" ", strip=True) for cell in rows[0].find_all(["th", "td"])]
        columns = _column_fields(headers, field_map)
        if "address" not in columns.values():
            continue
        for row in rows[1:]:
            cells = row.find_all(["td", "th"])
            values = {}
            for idx, canonical in columns.items():
                if idx < len(cells):
                    values[canonical] = cells[idx].get_text(" ", strip=True)
            if values:
                yield values


def iter_text_matches(text: str, window: int = 160) -> Iterator[tuple[str, str]]:
    seen = set()
    for match in ADDRESS_RE.finditer(text or ""):
        found = norm_ws(match.group(0))
        if found in seen:
            continue
        seen.add(found)
        yield found, text[match.end(): match.end() + window]


@register_adapter
class CountyWebsiteAdapter(SourceAdapter):
    """County assessor search page, scraped without any guarantee of accuracy."""

    adapter_key = "county_web"

    def fetch(self, request: AdapterRequest) -> AdapterResult:
        query_param = getattr(self.config, "query_param", "q")
        response = self._get(
            self.config.url,
            params={query_param: request.city or request.location},
            headers=HTML_HEADERS,
        )
        properties = self.parse(truncated_text(response), request)
        if not properties:
            return AdapterResult.empty(
                f"{self.name} website returned no parseable records (site may require manual search)"
            )
        return AdapterResult(
            properties=tuple(properties),
            message=f"Scraped {len(properties)} properties from {self.name} website",
        )

    def parse(self, html: str, request: AdapterRequest) -> list[PropertyData]:
        soup = BeautifulSoup(html or "", "html.parser")
        kwargs = dict(
            source=self.config.key,
            city=request.city or "Unknown",
            state=self.config.jurisdiction,
            property_type=request.property_type,
        )
        limit = self.settings.scrape_limit
        from_rows = collect(
            (property_from_row(values, **kwargs) for values in iter_table_rows(soup, self.config.field_map)),
            limit=limit,
        )
        if from_rows:
            return from_rows
        text = soup.get_text(" ", strip=True)
        return collect(
            (property_from_text(found, context, **kwargs) for found, context in iter_text_matches(text)),
            limit=limit,
        )
