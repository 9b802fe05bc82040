from __future__ import annotations

from typing import Optional, Sequence

from free_data_integration.adapters.base import SourceAdapter, collect, register_adapter
from free_data_integration.adapters.http import JSON_HEADERS
from free_data_integration.extract import norm_ws, parse_int
from free_data_integration.models import (
    AdapterRequest,
    AdapterResult,
    CensusData,
    PropertyData,
    build_property,
)


CBP_FIELDS = ("NAME", "NAICS2017_LABEL", "EMP", "ESTAB")
# Construction, manufacturing, wholesale, retail, transport, real estate, services.
CBP_SECTORS = "23,31-33,42,44-45,48-49,53,54,56"
MAX_DISTRICTS = 20


def census_state(name: str) -> str:
    """'Harris County, Texas' -> 'Texas'."""

    parts = [p.strip() for p in (name or "").split(",")]
    return parts[-1] if len(parts) > 1 else ""


def district_from_row(
    row: Sequence, columns: dict[str, int], index: int, fallback_city: str
) -> Optional[PropertyData]:
    def cell(field: str):
        idx = columns.get(field)
        if idx is None or idx >= len(row):
            return None
        return row[idx]

    name = norm_ws(cell("NAME"))
    industry = norm_ws(cell("NAICS2017_LABEL")) or "All industries"
    employees = parse_int(cell("EMP")) or 0
    establishments = parse_int(cell("ESTAB")) or 0
    return build_property(
        address=f"Business District {index}",
        city=name.split(",")[0].strip() or fallback_city,
        state=census_state(name),
        zip_code="",
        property_type="commercial",
        source="census",
        description=f"{industry} - {establishments} establishments, {employees} employees",
        census_data=CensusData(industry=industry, employees=employees, establishments=establishments),
    )


@register_adapter
class CensusBusinessPatternsAdapter(SourceAdapter):
    """County Business Patterns rows turned into business-district records."""

    adapter_key = "census"

    def fetch(self, request: AdapterRequest) -> AdapterResult:
        key = self._require_key()
        params = {
            "get": ",".join(CBP_FIELDS),
            "for": "county:*",
            "in": "state:*",
            "NAICS2017": CBP_SECTORS,
        }
        if key:
            params["key"] = key
        response = self._get(self.config.url, params=params, headers=JSON_HEADERS)
        table = response.json()
        if not isinstance(table, list) or not table or not isinstance(table[0], list):
            raise ValueError("expected a header row")

        columns = {str(name): idx for idx, name in enumerate(table[0])}
        if "NAME" not in columns:
            raise ValueError("NAME column missing")
        needle = (request.city or request.location).lower()
        name_idx = columns["NAME"]
        relevant = [
            row
            for row in table[1:]
            if isinstance(row, list) and name_idx < len(row) and needle in norm_ws(row[name_idx]).lower()
        ]
        properties = collect(
            (
                district_from_row(row, columns, idx, request.city)
                for idx, row in enumerate(relevant[:MAX_DISTRICTS], start=1)
            )
        )
        if not properties:
            return AdapterResult.empty(f"No Census business data matched {request.location}")
        return AdapterResult(
            properties=tuple(properties),
            message=f"Found {len(properties)} business areas from Census data",
        )
