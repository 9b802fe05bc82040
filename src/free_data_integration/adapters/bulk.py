from __future__ import annotations

import csv
import io

from free_data_integration.adapters.base import SourceAdapter, collect, map_records, register_adapter
from free_data_integration.adapters.county_api import map_record, records_from_payload
from free_data_integration.adapters.http import JSON_HEADERS, truncated_text
from free_data_integration.extract import extract_field_value, norm_ws
from free_data_integration.models import AdapterRequest, AdapterResult


def rows_from_csv(text: str) -> list[dict]:
    reader = csv.DictReader(io.StringIO(text or ""))
    return [dict(row) for row in reader]


def matches_location(row: dict, location_field: str, needle: str) -> bool:
    if not needle:
        return True
    value = extract_field_value(row, location_field)
    return needle in norm_ws(value).lower()


@register_adapter
class BulkDatasetAdapter(SourceAdapter):
    """Downloadable JSON/CSV dataset filtered client-side by location."""

    adapter_key = "bulk"

    def fetch(self, request: AdapterRequest) -> AdapterResult:
        self._require_key()
        fmt = (getattr(self.config, "data_format", "json") or "json").lower()
        location_field = getattr(self.config, "location_field", "city") or "city"
        response = self._get(self.config.url, headers=JSON_HEADERS)
        if fmt == "csv":
            rows = rows_from_csv(truncated_text(response))
        else:
            rows = records_from_payload(response.json())

        needle = (request.city or request.location).lower()
        wanted = [row for row in rows if matches_location(row, location_field, needle)]
        properties = collect(
            map_records(
                wanted,
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
            limit=self.settings.scrape_limit,
        )
        if not properties:
            return AdapterResult.empty(f"{self.name} dataset has no rows for {request.location}")
        return AdapterResult(
            properties=tuple(properties),
            message=f"Found {len(properties)} records in {self.name} dataset",
        )
