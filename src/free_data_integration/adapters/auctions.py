from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from free_data_integration.adapters.base import SourceAdapter, collect, register_adapter
from free_data_integration.adapters.county_web import (
    ADDRESS_RE,
    PRICE_RE,
    city_state,
    iter_text_matches,
    property_from_text,
)
from free_data_integration.adapters.http import HTML_HEADERS, truncated_text
from free_data_integration.extract import extract_zip_code, norm_ws, parse_numeric
from free_data_integration.models import AdapterRequest, AdapterResult, PropertyData, build_property


LISTING_SELECTOR = (
    ".property-card, .listing-card, .search-result, .result-card, "
    "article.listing, li.listing, div[data-testid*=property], div[class*=PropertyCard]"
)
_ASKING_LABELS = re.compile(r"(opening bid|starting bid|current bid|list price|asking price|price)", re.I)
_VALUE_LABELS = re.compile(r"(est\.? value|estimated value|market value|arv)", re.I)
_DATE_RE = re.compile(
    r"\b(?:\d{1,2}/\d{1,2}/\d{2,4}|"
    r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+\d{1,2}(?:,\s*\d{4})?)\b"
)


def roi_estimate(price: Optional[float], value: Optional[float]) -> Optional[float]:
    if price is None or value is None or price <= 0:
        return None
    return round((value - price) / price * 100.0, 2)


def labelled_price(text: str, labels: "re.Pattern[str]") -> Optional[float]:
    """Find the first dollar amount within a short window after a label."""

    for label in labels.finditer(text):
        price = PRICE_RE.search(text[label.end(): label.end() + 40])
        if price:
            return parse_numeric(price.group(0))
    return None


def listing_from_card(
    card,
    *,
    source: str,
    city: str,
    state: str,
    base_url: str,
) -> Optional[PropertyData]:
    """Best-effort: one listing card to a foreclosure record, or None."""

    text = norm_ws(card.get_text(" ", strip=True))
    match = ADDRESS_RE.search(text)
    if not match:
        return None
    address = norm_ws(match.group(0)).rstrip(",")
    asking = labelled_price(text, _ASKING_LABELS)
    value = labelled_price(text, _VALUE_LABELS)
    if asking is None:
        first = PRICE_RE.search(text)
        asking = parse_numeric(first.group(0)) if first else None
    date = _DATE_RE.search(text)
    link = card.find("a", href=True)
    card_city, card_state = city_state(address, city, state)
    return build_property(
        address=address,
        city=card_city,
        state=card_state,
        zip_code=extract_zip_code(address) or None,
        property_type="foreclosure",
        source=source,
        listing_url=urljoin(base_url, link["href"]) if link else None,
        asking_price=asking,
        market_value=value,
        auction_date=date.group(0) if date else None,
        roi_estimate=roi_estimate(asking, value),
    )


@register_adapter
class AuctionListingAdapter(SourceAdapter):
    """Foreclosure and auction listing pages (Auction.com, BiggerPockets, foreclosure.com)."""

    adapter_key = "auctions"

    def fetch(self, request: AdapterRequest) -> AdapterResult:
        query_param = getattr(self.config, "query_param", "q")
        response = self._get(
            self.config.url,
            params={query_param: request.location},
            headers=HTML_HEADERS,
        )
        properties = self.parse(truncated_text(response), request)
        if not properties:
            return AdapterResult.empty(
                f"{self.name} listings could not be read (site may block automated access)"
            )
        return AdapterResult(
            properties=tuple(properties),
            message=f"Found {len(properties)} auction listings on {self.name}",
        )

    def parse(self, html: str, request: AdapterRequest) -> list[PropertyData]:
        soup = BeautifulSoup(html or "", "html.parser")
        city = request.city or "Unknown"
        state = ""
        limit = self.settings.scrape_limit
        cards = soup.select(LISTING_SELECTOR)
        found = collect(
            (
                listing_from_card(card, source=self.config.key, city=city, state=state, base_url=self.config.url)
                for card in cards
            ),
            limit=limit,
        )
        if found:
            return found
        text = soup.get_text(" ", strip=True)
        return collect(
            (
                property_from_text(
                    match,
                    context,
                    source=self.config.key,
                    city=city,
                    state=state,
                    property_type="foreclosure",
                    price_field="asking_price",
                )
                for match, context in iter_text_matches(text)
            ),
            limit=limit,
        )
